"""Adapters — how installers reach the host.

Public re-exports for convenient access.
"""

from devsetup.adapters.base import CommandRunner, ExecutionContext
from devsetup.adapters.mock import MockCommandRunner
from devsetup.adapters.shell.command import ShellCommandRunner

__all__ = [
    "CommandRunner",
    "ExecutionContext",
    "MockCommandRunner",
    "ShellCommandRunner",
]
