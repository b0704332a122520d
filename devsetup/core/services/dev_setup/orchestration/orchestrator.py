"""
L5 Orchestration — Install group sequencing.

Turns a RunConfig into an ordered plan of steps, checks the plan
against the detected package manager, then executes the steps one at a
time and stops at the first failure.

Group order is fixed: Init (index refresh, baseline fetch tool, profile
update), BuildTools, DevTools, CodegenTools. BuildTools puts the cargo
bin dir on the runner's PATH; the pinned cargo tools of DevTools rely
on that, which is why the order never changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Iterable

from devsetup.adapters.base import CommandRunner
from devsetup.core.config.catalog import Catalog, default_catalog
from devsetup.core.config.loader import load_tool_manifest, load_toolchain_spec
from devsetup.core.errors import MissingPrivilegeTool, SetupError, UnsupportedPackageForManager
from devsetup.core.models.package import (
    AbstractPackage,
    PackageManagerKind,
    PinnedTool,
    ToolchainSpec,
)
from devsetup.core.models.result import InstallResult, RunReport
from devsetup.core.models.run_config import InstallGroup, RunConfig
from devsetup.core.services.dev_setup.detection.package_manager import detect_package_manager
from devsetup.core.services.dev_setup.detection.privilege import (
    check_elevation_tool,
    current_user,
    needs_elevation,
)
from devsetup.core.services.dev_setup.execution.package_installer import PackageInstaller
from devsetup.core.services.dev_setup.execution.pip_installer import install_python_packages
from devsetup.core.services.dev_setup.execution.profile import update_path_and_profile
from devsetup.core.services.dev_setup.execution.toolchain_installer import ToolchainInstaller

logger = logging.getLogger(__name__)

INIT = "init"

BUILD_PACKAGES = ("build-essentials", "pkg-config", "openssl", "protobuf", "cmake", "clang", "llvm")
DEV_PACKAGES = ("mysql-client", "git", "python3", "dev-utilities")
CODEGEN_PACKAGES = ("clang", "llvm", "python-dev")

StepOutcome = InstallResult | Iterable[InstallResult]


@dataclass(frozen=True)
class PlannedStep:
    """One lazily evaluated step of the plan."""

    label: str
    group: str
    run: Callable[[], StepOutcome]
    packages: tuple[AbstractPackage, ...] = field(default=())


class InstallOrchestrator:
    """Sequence install groups for one host.

    Everything the run depends on (manager, elevation, toolchain, home
    directories) is passed in; nothing is read from the ambient
    environment once the orchestrator exists.
    """

    def __init__(
        self,
        runner: CommandRunner,
        manager: PackageManagerKind,
        elevate: bool,
        toolchain: ToolchainSpec,
        *,
        home: Path,
        cargo_home: Path | None = None,
        pinned_tools: Iterable[PinnedTool] = (),
        catalog: Catalog | None = None,
        on_start: Callable[[PlannedStep], None] | None = None,
        on_result: Callable[[InstallResult], None] | None = None,
    ):
        self.runner = runner
        self.manager = manager
        self.elevate = elevate
        self.toolchain = toolchain
        self.home = home
        self.cargo_home = cargo_home
        self.pinned_tools = list(pinned_tools)
        self.catalog = catalog or default_catalog()
        self._on_start = on_start
        self._on_result = on_result
        self._packages = PackageInstaller(runner)
        self._toolchain = ToolchainInstaller(runner, home=home, cargo_home=cargo_home)

    @classmethod
    def for_host(
        cls,
        runner: CommandRunner,
        repo_root: Path,
        *,
        user: str | None = None,
        os_name: str | None = None,
        **kwargs,
    ) -> InstallOrchestrator:
        """Detect manager and privilege policy, read repository config.

        Raises:
            MissingConfigFile: No toolchain descriptor under *repo_root*.
            UnsupportedEnvironment: No usable package manager.
        """
        toolchain = load_toolchain_spec(repo_root)
        manager = detect_package_manager(runner, os_name=os_name)
        elevate = needs_elevation(user or current_user(), manager)

        home = Path(runner.getenv("HOME") or Path.home())
        cargo_home_env = runner.getenv("CARGO_HOME")
        cargo_home = Path(cargo_home_env) if cargo_home_env else None

        return cls(
            runner,
            manager,
            elevate,
            toolchain,
            home=home,
            cargo_home=cargo_home,
            pinned_tools=load_tool_manifest(repo_root),
            **kwargs,
        )

    # ── Planning ────────────────────────────────────────────────

    def plan(self, cfg: RunConfig) -> list[PlannedStep]:
        """All steps *cfg* enables, in execution order."""
        steps = self._init_steps(cfg)
        if cfg.is_enabled(InstallGroup.BUILD_TOOLS):
            steps += self._build_steps()
        if cfg.is_enabled(InstallGroup.DEV_TOOLS):
            steps += self._dev_steps()
        if cfg.is_enabled(InstallGroup.CODEGEN_TOOLS):
            steps += self._codegen_steps()
        return steps

    def _package_step(self, name: str, group: str) -> PlannedStep:
        pkg = self.catalog.get(name)
        return PlannedStep(
            label=f"install {pkg.display_name}",
            group=group,
            run=partial(self._packages.install, pkg, self.manager, self.elevate),
            packages=(pkg,),
        )

    def _pip_step(self, set_name: str, group: str, elevate: bool = False) -> PlannedStep:
        return PlannedStep(
            label=f"pip install {set_name}",
            group=group,
            run=partial(
                install_python_packages,
                self.runner,
                self.catalog.python_set(set_name),
                label=set_name,
                elevate=elevate,
            ),
        )

    def _init_steps(self, cfg: RunConfig) -> list[PlannedStep]:
        steps = [PlannedStep("check privileges", INIT, self._check_privileges)]
        if self.manager is PackageManagerKind.APT:
            steps.append(PlannedStep(
                "update package index", INIT,
                partial(self._packages.update_index, self.manager, self.elevate),
            ))
            steps.append(self._package_step("ca-certificates", INIT))
        if cfg.is_enabled(InstallGroup.PROFILE_UPDATE):
            steps.append(PlannedStep(
                "update ~/.profile", InstallGroup.PROFILE_UPDATE.value,
                partial(update_path_and_profile, self.runner, self.home, self.cargo_home),
            ))
        steps.append(self._package_step("curl", INIT))
        return steps

    def _build_steps(self) -> list[PlannedStep]:
        group = InstallGroup.BUILD_TOOLS.value
        steps = [PlannedStep(
            f"install toolchain {self.toolchain.channel}", group,
            partial(self._toolchain.install_toolchain, self.toolchain),
        )]
        steps += [self._package_step(name, group) for name in BUILD_PACKAGES]
        return steps

    def _dev_steps(self) -> list[PlannedStep]:
        group = InstallGroup.DEV_TOOLS.value
        steps = [self._package_step(name, group) for name in DEV_PACKAGES]
        steps.append(self._pip_step("dev_tools", group))
        steps.append(self._pip_step("drivers", group))
        for tool in self.pinned_tools:
            steps.append(PlannedStep(
                f"cargo install {tool}", group,
                partial(self._toolchain.install_cargo_binary, tool),
            ))
        steps.append(self._package_step("lcov", group))
        return steps

    def _codegen_steps(self) -> list[PlannedStep]:
        group = InstallGroup.CODEGEN_TOOLS.value
        steps = [self._package_step(name, group) for name in CODEGEN_PACKAGES]
        steps.append(self._pip_step("codegen", group, elevate=self.elevate))
        return steps

    def validate(self, steps: list[PlannedStep]) -> InstallResult | None:
        """Check every planned package has an entry for the manager.

        Returns:
            A failed result for the first unsupported package, or None.
        """
        for step in steps:
            for pkg in step.packages:
                if not pkg.supports(self.manager):
                    return InstallResult.failure(
                        step=step.label,
                        error=f"Unable to install {pkg.display_name} "
                              f"with package manager: {self.manager}",
                        error_kind=UnsupportedPackageForManager.kind,
                    )
        return None

    # ── Execution ───────────────────────────────────────────────

    def _check_privileges(self) -> InstallResult:
        step = "check privileges"
        try:
            check_elevation_tool(self.runner, self.elevate)
        except MissingPrivilegeTool as e:
            return InstallResult.failure(step, error=str(e), error_kind=e.kind)
        return InstallResult.skip(step, reason="sudo available" if self.elevate else "running without sudo")

    def run(self, cfg: RunConfig) -> RunReport:
        """Execute every enabled group, stopping at the first failure."""
        report = RunReport(manager=str(self.manager), elevate=self.elevate)

        try:
            steps = self.plan(cfg)
        except SetupError as e:
            report.add(InstallResult.failure("plan", error=str(e), error_kind=e.kind))
            return report

        problem = self.validate(steps)
        if problem is not None:
            logger.error("%s", problem.error)
            report.add(problem)
            return report

        logger.debug(
            "Plan: %d steps for %s (groups: %s)",
            len(steps), self.manager, ", ".join(g.value for g in cfg.enabled_groups) or "none",
        )

        for step in steps:
            if self._on_start:
                self._on_start(step)
            outcome = step.run()
            results = [outcome] if isinstance(outcome, InstallResult) else outcome
            for result in results:
                report.add(result)
                if self._on_result:
                    self._on_result(result)
                if result.failed:
                    logger.error("%s failed: %s", result.step, result.error)
                    return report

        return report


def bootstrap(
    cfg: RunConfig,
    runner: CommandRunner,
    repo_root: Path,
    **kwargs,
) -> RunReport:
    """Detect the host, then run *cfg* against it.

    Raises:
        SetupError: Environment or configuration problems found before
            anything is installed. Install failures are in the report.
    """
    orchestrator = InstallOrchestrator.for_host(runner, repo_root, **kwargs)
    return orchestrator.run(cfg)

