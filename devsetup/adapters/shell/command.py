"""
Shell command runner — execute install commands on the host.

This is the SINGLE PLACE where ``subprocess.run`` is called. Output of
long-running installs streams straight to the terminal unless the
caller asks to capture it (used for read-only queries such as
``rustup toolchain list``).
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

from devsetup.adapters.base import CommandRunner, ExecutionContext
from devsetup.core.models.result import InstallResult

logger = logging.getLogger(__name__)


class ShellCommandRunner(CommandRunner):
    """Run commands with ``subprocess`` against the runner's environment."""

    @property
    def name(self) -> str:
        return "shell"

    def which(self, binary: str) -> str | None:
        return shutil.which(binary, path=self.search_path or None)

    def execute(self, context: ExecutionContext) -> InstallResult:
        env = self.env
        env.update(context.env_overrides)

        # set -x style trace
        logger.debug("+ %s", context.display)
        start = time.monotonic()

        try:
            result = subprocess.run(
                context.command,
                env=env,
                capture_output=context.capture_output,
                text=True,
                timeout=context.timeout,
            )
        except FileNotFoundError:
            return InstallResult.failure(
                step=context.step,
                error=f"Command not found: {context.command[0]}",
                commands=[context.command],
            )
        except subprocess.TimeoutExpired:
            return InstallResult.failure(
                step=context.step,
                error=f"Command timed out after {context.timeout}s",
                commands=[context.command],
            )
        except OSError as e:
            return InstallResult.failure(
                step=context.step,
                error=f"Command execution error: {e}",
                commands=[context.command],
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = (result.stdout or "").strip()

        if result.returncode == 0:
            return InstallResult.success(
                step=context.step,
                output=output,
                commands=[context.command],
                return_code=0,
                duration_ms=elapsed_ms,
            )

        stderr = (result.stderr or "").strip()
        return InstallResult.failure(
            step=context.step,
            error=stderr[-2000:] or f"Command exited with code {result.returncode}",
            commands=[context.command],
            output=output[-2000:],
            return_code=result.returncode,
            duration_ms=elapsed_ms,
        )
