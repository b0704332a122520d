"""
Adapter base — the contract between installers and the host.

Installers never call ``subprocess`` or ``shutil.which`` directly; they
go through a CommandRunner. The runner owns a private copy of the
process environment, so a PATH change made by one step (toolchain
bootstrap, profile update) is seen by every later step of the same run.
"""

from __future__ import annotations

import logging
import os
import shlex
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from devsetup.core.models.result import InstallResult

logger = logging.getLogger(__name__)


class ExecutionContext(BaseModel):
    """Everything a runner needs to execute one command."""

    command: list[str]
    step: str = ""
    env_overrides: dict[str, str] = Field(default_factory=dict)
    capture_output: bool = False
    timeout: int | None = None

    @property
    def display(self) -> str:
        """Shell-quoted command line, for logs."""
        return shlex.join(self.command)


class CommandRunner(ABC):
    """Abstract base class for command runners.

    Runners execute commands and return InstallResults.
    They NEVER raise on command failure: a non-zero exit, a missing
    executable or a timeout is captured in the result.
    """

    def __init__(self, env: dict[str, str] | None = None):
        self._env: dict[str, str] = dict(os.environ if env is None else env)

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'shell', 'mock')."""

    @abstractmethod
    def which(self, binary: str) -> str | None:
        """Resolve *binary* on this runner's search path."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> InstallResult:
        """Execute the command and return a result. MUST never raise."""

    # ── Environment ─────────────────────────────────────────────

    @property
    def env(self) -> dict[str, str]:
        """A copy of the environment commands run with."""
        return dict(self._env)

    @property
    def search_path(self) -> str:
        return self._env.get("PATH", "")

    def getenv(self, key: str, default: str | None = None) -> str | None:
        return self._env.get(key, default)

    def prepend_path(self, directory: str) -> None:
        """Put *directory* first on the search path (no duplicates)."""
        entries = [p for p in self.search_path.split(os.pathsep) if p]
        if entries and entries[0] == directory:
            return
        entries = [directory] + [p for p in entries if p != directory]
        self._env["PATH"] = os.pathsep.join(entries)
        logger.debug("PATH now starts with %s", directory)

    # ── Convenience ─────────────────────────────────────────────

    def has_command(self, binary: str) -> bool:
        return self.which(binary) is not None

    def run(
        self,
        command: list[str],
        *,
        step: str = "",
        env_overrides: dict[str, str] | None = None,
        capture_output: bool = False,
        timeout: int | None = None,
    ) -> InstallResult:
        """Build an ExecutionContext and execute it."""
        context = ExecutionContext(
            command=command,
            step=step or command[0],
            env_overrides=env_overrides or {},
            capture_output=capture_output,
            timeout=timeout,
        )
        return self.execute(context)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
