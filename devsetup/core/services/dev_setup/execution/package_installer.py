"""
L4 Execution — System package installation.

Translates an AbstractPackage into the detected manager's
non-interactive install command and runs it, skipping identifiers that
are already present. The first failing command ends the package with a
failed result; nothing is retried.
"""

from __future__ import annotations

import logging

from devsetup.adapters.base import CommandRunner
from devsetup.core.errors import UnsupportedPackageForManager
from devsetup.core.models.package import AbstractPackage, PackageManagerKind
from devsetup.core.models.result import InstallResult
from devsetup.core.services.dev_setup.detection.installed import is_installed
from devsetup.core.services.dev_setup.detection.privilege import elevation_prefix

logger = logging.getLogger(__name__)


def build_install_cmd(identifier: str, manager: PackageManagerKind, elevate: bool) -> list[str]:
    """Build the quiet, no-confirm install command for one identifier.

    The identifier is always the last argument.
    """
    if manager is PackageManagerKind.APT:
        cmd = ["apt-get", "install", "--no-install-recommends", "-yq", identifier]
    elif manager is PackageManagerKind.YUM:
        cmd = ["yum", "install", "-yq", identifier]
    elif manager is PackageManagerKind.PACMAN:
        cmd = ["pacman", "--quiet", "--noconfirm", "-Syu", identifier]
    elif manager is PackageManagerKind.APK:
        cmd = ["apk", "--quiet", "--update", "add", "--no-cache", identifier]
    elif manager is PackageManagerKind.DNF:
        cmd = ["dnf", "install", "-y", "--quiet", identifier]
    else:
        cmd = ["brew", "install", "--quiet", identifier]
    return elevation_prefix(elevate) + cmd


def build_index_update_cmd(manager: PackageManagerKind, elevate: bool) -> list[str] | None:
    """Package index refresh, for managers that need one before installing."""
    if manager is PackageManagerKind.APT:
        return elevation_prefix(elevate) + ["apt-get", "update"]
    return None


class PackageInstaller:
    """Install AbstractPackages through a CommandRunner."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def install(
        self,
        pkg: AbstractPackage,
        manager: PackageManagerKind,
        elevate: bool,
    ) -> InstallResult:
        """Install *pkg* with *manager*, prefixing ``sudo`` when *elevate*.

        Returns:
            ``skipped`` when everything is already present (or the manager
            needs nothing), ``ok`` when at least one identifier was
            installed, ``failed`` on a missing catalogue entry or the
            first non-zero exit.
        """
        step = f"install {pkg.display_name}"

        if not pkg.supports(manager):
            return InstallResult.failure(
                step=step,
                error=f"Unable to install {pkg.display_name} with package manager: {manager}",
                error_kind=UnsupportedPackageForManager.kind,
            )

        identifiers = pkg.identifiers_for(manager)
        if not identifiers:
            return InstallResult.skip(step, reason=f"nothing to install on {manager}")

        missing: list[str] = []
        for identifier in identifiers:
            if is_installed(identifier, pkg, manager, self._runner):
                logger.info("%s is already installed", identifier)
            else:
                missing.append(identifier)

        if not missing:
            return InstallResult.skip(step, reason="already installed")

        commands: list[list[str]] = []
        duration_ms = 0

        planned = [elevation_prefix(elevate) + c for c in pkg.pre_steps.get(manager, [])]
        planned += [build_install_cmd(i, manager, elevate) for i in missing]
        planned += [elevation_prefix(elevate) + c for c in pkg.post_steps.get(manager, [])]

        for cmd in planned:
            if cmd[-1] in missing:
                logger.info("Installing %s.", cmd[-1])
            result = self._runner.run(cmd, step=step)
            commands.extend(result.commands)
            duration_ms += result.duration_ms
            if result.failed:
                return result.model_copy(
                    update={"step": step, "commands": commands, "duration_ms": duration_ms}
                )

        return InstallResult.success(
            step=step,
            output=f"installed {', '.join(missing)}",
            commands=commands,
            duration_ms=duration_ms,
        )

    def update_index(self, manager: PackageManagerKind, elevate: bool) -> InstallResult:
        """Refresh the package index (apt only)."""
        step = f"update {manager} package index"
        cmd = build_index_update_cmd(manager, elevate)
        if cmd is None:
            return InstallResult.skip(step, reason=f"{manager} has no index to update")
        result = self._runner.run(cmd, step=step)
        return result.model_copy(update={"step": step})
