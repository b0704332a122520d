"""
Error taxonomy for a bootstrap run.

Every error is fatal: the run stops at the first one and the process
exits with ``exit_code``. Nothing is retried or rolled back; re-running
is safe because each install step detects work already done.
"""

from __future__ import annotations


class SetupError(Exception):
    """Base class for all fatal bootstrap errors."""

    kind = "setup_error"
    exit_code = 1


class UnsupportedEnvironment(SetupError):
    """No usable OS / package manager combination was found."""

    kind = "unsupported_environment"


class MissingPrivilegeTool(SetupError):
    """Elevation is required but the elevation command is not available."""

    kind = "missing_privilege_tool"


class UnsupportedPackageForManager(SetupError):
    """The package catalogue has no entry for the detected manager."""

    kind = "unsupported_package"


class ExternalCommandFailed(SetupError):
    """A package manager or toolchain command exited non-zero."""

    kind = "command_failed"


class MissingConfigFile(SetupError):
    """A required repository file (the toolchain descriptor) is absent."""

    kind = "missing_config"


ERRORS_BY_KIND: dict[str, type[SetupError]] = {
    cls.kind: cls
    for cls in (
        UnsupportedEnvironment,
        MissingPrivilegeTool,
        UnsupportedPackageForManager,
        ExternalCommandFailed,
        MissingConfigFile,
    )
}


def error_for_kind(kind: str | None, message: str) -> SetupError:
    """Build the exception matching a failure kind."""
    return ERRORS_BY_KIND.get(kind or "", SetupError)(message)
