"""
L3 Detection — Package manager selection.

Picks exactly one package manager for the host. ``detect`` is a pure
function of the OS name and a command lookup, so every OS/manager
combination can be tested without touching the machine.
"""

from __future__ import annotations

import logging
import platform
from typing import Callable

from devsetup.adapters.base import CommandRunner
from devsetup.core.errors import UnsupportedEnvironment
from devsetup.core.models.package import PackageManagerKind

logger = logging.getLogger(__name__)

# Probe order on Linux; first binary found wins.
LINUX_PROBE_ORDER: tuple[PackageManagerKind, ...] = (
    PackageManagerKind.YUM,
    PackageManagerKind.APT,
    PackageManagerKind.PACMAN,
    PackageManagerKind.APK,
    PackageManagerKind.DNF,
)

EXPERIMENTAL_MANAGERS = frozenset({PackageManagerKind.DNF})


def detect(os_name: str, has_command: Callable[[str], bool]) -> PackageManagerKind:
    """Select the package manager for *os_name*.

    Args:
        os_name: ``platform.system()`` value (``Linux``, ``Darwin``, ...).
        has_command: Answers whether a binary is on the search path.

    Raises:
        UnsupportedEnvironment: Unknown OS, no Linux manager found, or
            Homebrew missing on macOS.
    """
    if os_name == "Linux":
        for kind in LINUX_PROBE_ORDER:
            if has_command(kind.binary):
                if kind in EXPERIMENTAL_MANAGERS:
                    logger.warning("WARNING: %s package manager support is experimental", kind)
                return kind
        raise UnsupportedEnvironment(
            "Unable to find supported package manager "
            "(yum, apt-get, dnf, apk, or pacman). Abort"
        )

    if os_name == "Darwin":
        if has_command(PackageManagerKind.BREW.binary):
            return PackageManagerKind.BREW
        raise UnsupportedEnvironment("Missing package manager Homebrew (https://brew.sh/). Abort")

    raise UnsupportedEnvironment(f"Unknown OS '{os_name}'. Abort.")


def detect_package_manager(runner: CommandRunner, os_name: str | None = None) -> PackageManagerKind:
    """Detect the manager for this host using *runner*'s search path."""
    kind = detect(os_name or platform.system(), runner.has_command)
    logger.debug("Selected package manager: %s", kind)
    return kind
