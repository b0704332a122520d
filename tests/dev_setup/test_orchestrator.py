"""
L5 Orchestration — group sequencing, plan validation, fail-fast.

Every test runs against the MockCommandRunner: the host is never
touched, and the recorded commands are the assertion surface.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from devsetup.adapters.mock import MockCommandRunner
from devsetup.core.config.catalog import Catalog, default_catalog
from devsetup.core.errors import (
    ExternalCommandFailed,
    MissingConfigFile,
    UnsupportedEnvironment,
    UnsupportedPackageForManager,
)
from devsetup.core.models.package import AbstractPackage, PackageManagerKind, PinnedTool
from devsetup.core.models.run_config import RunConfig
from devsetup.core.services.dev_setup.orchestration.orchestrator import (
    InstallOrchestrator,
    bootstrap,
)

CHANNEL = "nightly-2022-05-19"


def _executed(runner: MockCommandRunner) -> list[list[str]]:
    return [c.command for c in runner.call_log if not c.capture_output]


def _apt(pkg: str) -> list[str]:
    return ["sudo", "apt-get", "install", "--no-install-recommends", "-yq", pkg]


class TestBuildTools:
    def test_exact_apt_sequence(self, mock_runner, make_orchestrator):
        report = make_orchestrator().run(RunConfig.from_flags())
        assert report.ok

        executed = _executed(mock_runner)
        assert executed[:3] == [
            ["sudo", "apt-get", "update"],
            _apt("ca-certificates"),
            _apt("curl"),
        ]
        assert executed[3][:2] == ["sh", "-c"]
        assert executed[4:11] == [
            ["rustup", "toolchain", "install", CHANNEL],
            ["rustup", "set", "profile", "minimal"],
            ["rustup", "default", CHANNEL],
            ["rustup", "component", "add", "rustfmt", "--toolchain", CHANNEL],
            ["rustup", "component", "add", "rust-src", "--toolchain", CHANNEL],
            ["rustup", "component", "add", "clippy", "--toolchain", CHANNEL],
            ["rustup", "component", "add", "miri", "--toolchain", CHANNEL],
        ]
        assert executed[11:] == [
            _apt("build-essential"),
            _apt("pkg-config"),
            _apt("libssl-dev"),
            _apt("protobuf-compiler"),
            _apt("cmake"),
            _apt("clang"),
            _apt("llvm"),
        ]

    def test_report_commands_match_runner(self, mock_runner, make_orchestrator):
        report = make_orchestrator().run(RunConfig.from_flags())
        assert report.commands == _executed(mock_runner)
        assert report.manager == "apt"
        assert report.elevate

    def test_rerun_skips_system_packages(self, mock_runner, make_orchestrator):
        mock_runner.set_provides("protobuf-compiler", "protoc")
        orchestrator = make_orchestrator()
        orchestrator.run(RunConfig.from_flags())
        mock_runner.call_log.clear()

        report = orchestrator.run(RunConfig.from_flags())
        assert report.ok
        assert not any(c[:2] == ["sudo", "apt-get"] and "install" in c for c in _executed(mock_runner))

    def test_non_apt_has_no_index_update(self, mock_runner, make_orchestrator):
        mock_runner.add_binary("pacman")
        make_orchestrator(manager=PackageManagerKind.PACMAN).run(RunConfig.from_flags())
        executed = _executed(mock_runner)
        assert ["sudo", "apt-get", "update"] not in executed
        assert executed[0] == ["sudo", "pacman", "--quiet", "--noconfirm", "-Syu", "curl"]

    def test_brew_never_uses_sudo(self, mock_runner, make_orchestrator):
        report = make_orchestrator(manager=PackageManagerKind.BREW, elevate=False).run(
            RunConfig.from_flags(dev_tools=True, codegen=True),
        )
        assert report.ok
        assert all(c[0] != "sudo" for c in report.commands)

    def test_root_runs_without_sudo(self, mock_runner, make_orchestrator):
        report = make_orchestrator(elevate=False).run(RunConfig.from_flags())
        assert report.ok
        assert report.commands[0] == ["apt-get", "update"]


class TestGroupSelection:
    def test_no_groups_runs_only_init(self, mock_runner, make_orchestrator):
        report = make_orchestrator().run(RunConfig())
        assert report.ok
        assert _executed(mock_runner) == [
            ["sudo", "apt-get", "update"],
            _apt("ca-certificates"),
            _apt("curl"),
        ]

    def test_profile_only(self, mock_runner, make_orchestrator, home: Path):
        report = make_orchestrator().run(RunConfig.from_flags(profile=True))
        assert report.ok
        assert (home / ".profile").is_file()
        assert not any(c[0] == "rustup" for c in report.commands)

    def test_profile_runs_before_curl(self, make_orchestrator):
        steps = make_orchestrator().plan(RunConfig.from_flags(profile=True))
        labels = [s.label for s in steps]
        assert labels.index("update ~/.profile") < labels.index("install curl")

    def test_group_order(self, make_orchestrator):
        steps = make_orchestrator().plan(
            RunConfig.from_flags(build_tools=True, dev_tools=True, codegen=True),
        )
        groups = [s.group for s in steps]
        seen = list(dict.fromkeys(groups))
        assert seen == ["init", "build_tools", "dev_tools", "codegen_tools"]

    def test_dev_tools(self, mock_runner, make_orchestrator):
        report = make_orchestrator().run(RunConfig.from_flags(dev_tools=True))
        assert report.ok
        executed = _executed(mock_runner)
        assert _apt("default-mysql-client") in executed
        assert _apt("lcov") == executed[-1]
        pip = [c for c in executed if c[:3] == ["python3", "-m", "pip"]]
        assert pip[0][-5:] == ["boto3", "moto[all]", "yapf", "shfmt-py", "toml"]
        assert "clickhouse_driver" in pip[1]
        assert not any(c[0] == "rustup" for c in executed)

    def test_codegen_pip_is_elevated(self, mock_runner, make_orchestrator):
        report = make_orchestrator().run(RunConfig.from_flags(codegen=True))
        assert report.ok
        executed = _executed(mock_runner)
        assert executed[-1] == [
            "sudo", "python3", "-m", "pip", "install", "--quiet", "coscmd", "PyYAML",
        ]
        assert _apt("python3-all-dev") in executed


class TestPinnedTools:
    def test_cargo_tools_after_toolchain(self, mock_runner, make_orchestrator, home: Path):
        orchestrator = make_orchestrator(
            pinned_tools=[PinnedTool(name="cargo-audit", version="0.17.0")],
        )
        report = orchestrator.run(RunConfig.from_flags(build_tools=True, dev_tools=True))
        assert report.ok

        ctx = next(c for c in mock_runner.call_log if c.command[:2] == ["cargo", "install"]
                   and not c.capture_output)
        assert ctx.command == ["cargo", "install", "--version", "0.17.0", "cargo-audit"]
        assert ctx.env_overrides["RUSTFLAGS"] == "-C target-feature=-crt-static"
        # bootstrap put the cargo bin dir on PATH
        assert mock_runner.search_path.split(os.pathsep)[0] == str(home / ".cargo" / "bin")

    def test_dev_only_skips_toolchain(self, mock_runner, make_orchestrator):
        orchestrator = make_orchestrator(pinned_tools=[PinnedTool(name="cargo-udeps")])
        orchestrator.run(RunConfig.from_flags(dev_tools=True))
        assert ["cargo", "install", "cargo-udeps"] in _executed(mock_runner)
        assert not any(c[:2] == ["sh", "-c"] and "rustup" in c[2] for c in _executed(mock_runner))


class TestFailFast:
    def test_first_failure_stops_run(self, mock_runner, make_orchestrator):
        mock_runner.set_failure("libssl-dev", return_code=100)
        report = make_orchestrator().run(RunConfig.from_flags())

        assert not report.ok
        assert report.failed_step.step == "install openssl libs"
        assert report.results[-1].failed
        executed = _executed(mock_runner)
        assert executed[-1] == _apt("libssl-dev")
        assert _apt("protobuf-compiler") not in executed

        with pytest.raises(ExternalCommandFailed):
            report.raise_for_status()

    def test_toolchain_failure_stops_build_packages(self, mock_runner, make_orchestrator):
        mock_runner.set_failure("sh.rustup.rs")
        report = make_orchestrator().run(RunConfig.from_flags())
        assert report.failed_step.step == "install rustup"
        assert not any(c[0] == "rustup" for c in _executed(mock_runner))
        assert _apt("build-essential") not in _executed(mock_runner)

    def test_missing_sudo(self, mock_runner, toolchain, home: Path):
        runner = MockCommandRunner(available={"apt-get"}, env=mock_runner.env)
        orchestrator = InstallOrchestrator(
            runner, PackageManagerKind.APT, True, toolchain, home=home,
        )
        report = orchestrator.run(RunConfig.from_flags())
        assert report.failed_step.error_kind == "missing_privilege_tool"
        assert runner.call_count == 0

    def test_unsupported_package_fails_before_any_command(self, mock_runner, make_orchestrator):
        catalog = default_catalog()
        cmake = catalog.get("cmake")
        broken = Catalog(
            packages=[p for p in catalog.packages if p.name != "cmake"]
            + [AbstractPackage(name="cmake", packages={k: v for k, v in cmake.packages.items()
                                                       if k is not PackageManagerKind.APT})],
            python_packages=catalog.python_packages,
        )
        report = make_orchestrator(catalog=broken).run(RunConfig.from_flags())

        assert not report.ok
        assert report.failed_step.error_kind == UnsupportedPackageForManager.kind
        assert "Unable to install cmake with package manager: apt" in report.failed_step.error
        assert mock_runner.call_count == 0

    def test_unsupported_package_in_disabled_group_is_ignored(self, mock_runner, make_orchestrator):
        catalog = default_catalog()
        broken = Catalog(
            packages=[p for p in catalog.packages if p.name != "lcov"]
            + [AbstractPackage(name="lcov", packages={"brew": ["lcov"]})],
            python_packages=catalog.python_packages,
        )
        report = make_orchestrator(catalog=broken).run(RunConfig.from_flags())
        assert report.ok

    def test_missing_catalogue_entry(self, mock_runner, make_orchestrator):
        catalog = Catalog(packages=[default_catalog().get("curl")])
        report = make_orchestrator(catalog=catalog).run(RunConfig.from_flags())
        assert report.failed_step.error_kind == "invalid_catalog"
        assert mock_runner.call_count == 0


class TestCallbacks:
    def test_on_start_and_on_result(self, make_orchestrator):
        started, finished = [], []
        orchestrator = make_orchestrator(on_start=started.append, on_result=finished.append)
        report = orchestrator.run(RunConfig())
        assert [s.label for s in started] == [
            "check privileges", "update package index", "install CA certificates", "install curl",
        ]
        assert finished == report.results


class TestForHost:
    def test_detects_from_runner(self, mock_runner, repo_root: Path, home: Path):
        orchestrator = InstallOrchestrator.for_host(
            mock_runner, repo_root, user="dev", os_name="Linux",
        )
        assert orchestrator.manager is PackageManagerKind.APT
        assert orchestrator.elevate
        assert orchestrator.toolchain.channel == CHANNEL
        assert orchestrator.home == home
        assert orchestrator.cargo_home is None

    def test_root_user(self, mock_runner, repo_root: Path):
        orchestrator = InstallOrchestrator.for_host(
            mock_runner, repo_root, user="root", os_name="Linux",
        )
        assert not orchestrator.elevate

    def test_cargo_home_from_env(self, repo_root: Path, home: Path, tmp_path: Path):
        runner = MockCommandRunner(
            available={"apt-get", "sudo"},
            env={"PATH": "/usr/bin", "HOME": str(home), "CARGO_HOME": str(tmp_path / "cargo")},
        )
        orchestrator = InstallOrchestrator.for_host(runner, repo_root, user="dev", os_name="Linux")
        assert orchestrator.cargo_home == tmp_path / "cargo"

    def test_reads_tool_manifest(self, mock_runner, repo_root: Path):
        manifest = repo_root / "scripts" / "setup" / "rust-tools.txt"
        manifest.parent.mkdir(parents=True)
        manifest.write_text("cargo-audit@0.17.0\n")
        orchestrator = InstallOrchestrator.for_host(
            mock_runner, repo_root, user="dev", os_name="Linux",
        )
        assert orchestrator.pinned_tools == [PinnedTool(name="cargo-audit", version="0.17.0")]

    def test_missing_toolchain_file(self, mock_runner, tmp_path: Path):
        with pytest.raises(MissingConfigFile):
            InstallOrchestrator.for_host(mock_runner, tmp_path, user="dev", os_name="Linux")

    def test_unsupported_os(self, mock_runner, repo_root: Path):
        with pytest.raises(UnsupportedEnvironment):
            InstallOrchestrator.for_host(mock_runner, repo_root, user="dev", os_name="SunOS")

    def test_bootstrap(self, mock_runner, repo_root: Path):
        report = bootstrap(RunConfig(), mock_runner, repo_root, user="dev", os_name="Linux")
        assert report.ok
        assert report.commands[0] == ["sudo", "apt-get", "update"]
