"""
L3 Detection — "already installed" probes.

Read-only checks used to make every install step idempotent. Each
AbstractPackage names the probe it wants (``probe:`` in packages.yml);
the default ``command`` probe assumes the package provides a binary of
the same name. Libraries and meta packages (``libssl-dev``,
``build-essential``) use ``package`` and ask the manager's database;
packages whose binary is named differently (``protobuf-compiler`` ships
``protoc``) use ``binary``.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from devsetup.adapters.base import CommandRunner
from devsetup.core.models.package import AbstractPackage, PackageManagerKind

logger = logging.getLogger(__name__)

Probe = Callable[[str, AbstractPackage, PackageManagerKind, CommandRunner], bool]


def _probe_command(
    identifier: str, pkg: AbstractPackage, manager: PackageManagerKind, runner: CommandRunner,
) -> bool:
    return runner.has_command(identifier)


def _probe_binary(
    identifier: str, pkg: AbstractPackage, manager: PackageManagerKind, runner: CommandRunner,
) -> bool:
    return runner.has_command(pkg.binary or identifier)


def _probe_package_db(
    identifier: str, pkg: AbstractPackage, manager: PackageManagerKind, runner: CommandRunner,
) -> bool:
    """Ask the manager's own database.

    apt    → dpkg-query -W -f='${Status}' PKG
    dnf    → rpm -q PKG
    yum    → rpm -q PKG
    apk    → apk info -e PKG
    pacman → pacman -Q PKG
    brew   → brew ls --versions PKG
    """
    query = {
        PackageManagerKind.APT: ["dpkg-query", "-W", "-f=${Status}", identifier],
        PackageManagerKind.DNF: ["rpm", "-q", identifier],
        PackageManagerKind.YUM: ["rpm", "-q", identifier],
        PackageManagerKind.APK: ["apk", "info", "-e", identifier],
        PackageManagerKind.PACMAN: ["pacman", "-Q", identifier],
        PackageManagerKind.BREW: ["brew", "ls", "--versions", identifier],
    }[manager]

    result = runner.run(query, step=f"query {identifier}", capture_output=True, timeout=30)
    if not result.ok:
        return False
    if manager is PackageManagerKind.APT:
        return "install ok installed" in result.output
    return True


def _probe_never(
    identifier: str, pkg: AbstractPackage, manager: PackageManagerKind, runner: CommandRunner,
) -> bool:
    return False


PROBES: dict[str, Probe] = {
    "command": _probe_command,
    "binary": _probe_binary,
    "package": _probe_package_db,
    "never": _probe_never,
}


def is_installed(
    identifier: str,
    pkg: AbstractPackage,
    manager: PackageManagerKind,
    runner: CommandRunner,
) -> bool:
    """Run *pkg*'s probe for one concrete identifier."""
    probe = PROBES.get(pkg.probe)
    if probe is None:
        logger.warning("Unknown probe '%s' for %s, assuming not installed", pkg.probe, pkg.name)
        return False
    return probe(identifier, pkg, manager, runner)


# ── Toolchain probes ────────────────────────────────────────────


# arch-vendor-os[-env], e.g. "x86_64-unknown-linux-gnu", "aarch64-apple-darwin"
_TARGET_TRIPLE_RE = re.compile(r"^[a-z][a-z0-9_]*-[a-z0-9_]+-[a-z0-9_]+(-[a-z0-9_]+)?$")


def _looks_like_target_suffix(rest: str) -> bool:
    return _TARGET_TRIPLE_RE.match(rest) is not None


def installed_toolchains(runner: CommandRunner) -> list[str]:
    """Toolchains reported by ``rustup toolchain list``."""
    result = runner.run(
        ["rustup", "toolchain", "list"], step="rustup toolchain list", capture_output=True,
    )
    if not result.ok:
        return []
    return [line.split()[0] for line in result.output.splitlines() if line.strip()]


def has_toolchain(installed: list[str], channel: str) -> bool:
    """Whether *channel* appears in *installed* (with or without target triple)."""
    for name in installed:
        if name == channel:
            return True
        if name.startswith(channel + "-") and _looks_like_target_suffix(name[len(channel) + 1:]):
            return True
    return False


def installed_components(runner: CommandRunner, toolchain: str) -> list[str]:
    """Components reported by ``rustup component list --installed``."""
    result = runner.run(
        ["rustup", "component", "list", "--installed", "--toolchain", toolchain],
        step="rustup component list",
        capture_output=True,
    )
    if not result.ok:
        return []
    return [line.strip() for line in result.output.splitlines() if line.strip()]


def has_component(installed: list[str], component: str) -> bool:
    for name in installed:
        if name == component:
            return True
        if name.startswith(component + "-") and _looks_like_target_suffix(name[len(component) + 1:]):
            return True
    return False


def installed_crates(runner: CommandRunner) -> set[str]:
    """Crate names listed by ``cargo install --list``.

    Output looks like::

        cargo-audit v0.17.0:
            cargo-audit
    """
    result = runner.run(
        ["cargo", "install", "--list"], step="cargo install --list", capture_output=True,
    )
    if not result.ok:
        return set()
    crates: set[str] = set()
    for line in result.output.splitlines():
        if line and not line[0].isspace():
            crates.add(line.split()[0])
    return crates
