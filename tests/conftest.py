"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from devsetup.adapters.mock import MockCommandRunner
from devsetup.core.models.package import PackageManagerKind, ToolchainSpec
from devsetup.core.services.dev_setup.orchestration.orchestrator import InstallOrchestrator

CHANNEL = "nightly-2022-05-19"


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    """A repository with a toolchain descriptor."""
    root = tmp_path / "repo"
    root.mkdir()
    (root / "rust-toolchain.toml").write_text(
        f'[toolchain]\nchannel = "{CHANNEL}"\n', encoding="utf-8",
    )
    return root


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def toolchain() -> ToolchainSpec:
    return ToolchainSpec(channel=CHANNEL)


@pytest.fixture
def mock_runner(home: Path) -> MockCommandRunner:
    """A bare Linux host with apt-get and sudo, nothing else installed."""
    return MockCommandRunner(
        available={"apt-get", "sudo"},
        env={"PATH": "/usr/bin:/bin", "HOME": str(home)},
    )


@pytest.fixture
def make_orchestrator(mock_runner: MockCommandRunner, toolchain: ToolchainSpec, home: Path):
    """Factory for an orchestrator bound to the mock runner."""

    def _make(
        manager: PackageManagerKind = PackageManagerKind.APT,
        elevate: bool = True,
        **kwargs,
    ) -> InstallOrchestrator:
        kwargs.setdefault("home", home)
        return InstallOrchestrator(mock_runner, manager, elevate, toolchain, **kwargs)

    return _make


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() replaces root handlers; undo that after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
