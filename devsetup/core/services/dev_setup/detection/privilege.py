"""
L3 Detection — Privilege escalation policy.

Decided once per run; the resulting flag is passed to every install
call rather than re-evaluated per package.
"""

from __future__ import annotations

import getpass

from devsetup.adapters.base import CommandRunner
from devsetup.core.errors import MissingPrivilegeTool
from devsetup.core.models.package import PackageManagerKind

ELEVATION_COMMAND = "sudo"
SUPERUSER = "root"

# Homebrew refuses to run as root.
NEVER_ELEVATE = frozenset({PackageManagerKind.BREW})


def current_user() -> str:
    """Login name of the user running the process (``whoami``)."""
    return getpass.getuser()


def needs_elevation(user: str, manager: PackageManagerKind) -> bool:
    """Whether install commands must be prefixed with ``sudo``."""
    return user != SUPERUSER and manager not in NEVER_ELEVATE


def check_elevation_tool(runner: CommandRunner, elevate: bool) -> None:
    """Ensure the elevation command exists when it will be needed.

    Raises:
        MissingPrivilegeTool: ``elevate`` is set but ``sudo`` is not
            on the search path.
    """
    if elevate and not runner.has_command(ELEVATION_COMMAND):
        raise MissingPrivilegeTool(
            f"'{ELEVATION_COMMAND}' is required to install packages as a "
            "non-root user but was not found. Re-run as root or install it."
        )


def elevation_prefix(elevate: bool) -> list[str]:
    return [ELEVATION_COMMAND] if elevate else []
