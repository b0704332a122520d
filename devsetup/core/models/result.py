"""
InstallResult and RunReport — the execution contract.

Installers return an InstallResult for every step; they never raise.
The orchestrator collects them in a RunReport and stops at the first
failed one.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from devsetup.core.errors import ExternalCommandFailed, error_for_kind


class InstallResult(BaseModel):
    """Outcome of one installation step."""

    step: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    commands: list[list[str]] = Field(default_factory=list)
    output: str = ""
    error: str | None = None
    error_kind: str | None = None
    return_code: int | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, step: str, output: str = "", **kwargs: Any) -> InstallResult:
        """Create a success result."""
        return cls(step=step, status="ok", output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        step: str,
        error: str,
        error_kind: str = ExternalCommandFailed.kind,
        **kwargs: Any,
    ) -> InstallResult:
        """Create a failure result."""
        return cls(step=step, status="failed", error=error, error_kind=error_kind, **kwargs)

    @classmethod
    def skip(cls, step: str, reason: str = "", **kwargs: Any) -> InstallResult:
        """Create a skip result (already installed, nothing to do)."""
        return cls(step=step, status="skipped", output=reason, **kwargs)


class RunReport(BaseModel):
    """Ordered results of one orchestrator run."""

    manager: str = ""
    elevate: bool = False
    results: list[InstallResult] = Field(default_factory=list)

    def add(self, result: InstallResult) -> None:
        self.results.append(result)

    @property
    def failed_step(self) -> InstallResult | None:
        """The failing result, if any (there is at most one)."""
        for r in self.results:
            if r.failed:
                return r
        return None

    @property
    def ok(self) -> bool:
        return self.failed_step is None

    @property
    def installed(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def commands(self) -> list[list[str]]:
        """Every command issued, in order."""
        return [cmd for r in self.results for cmd in r.commands]

    def raise_for_status(self) -> None:
        """Raise the taxonomy error matching the failed step, if any."""
        failed = self.failed_step
        if failed is not None:
            raise error_for_kind(failed.error_kind, f"{failed.step}: {failed.error}")
