"""
Mock runner — simulated host for tests and dry runs.

Records every command instead of executing it. Binaries can be marked
as present on the search path, commands can be configured to fail or
to print canned output, and successful commands can make new binaries
appear (a package install "provides" its binary). Package database
queries (dpkg-query, rpm -q, apk info, pacman -Q, brew ls) answer from
the same simulated set of installed names.
"""

from __future__ import annotations

import os

from devsetup.adapters.base import CommandRunner, ExecutionContext
from devsetup.core.models.result import InstallResult

# Package database queries, answered from the simulated host
_PACKAGE_QUERIES = ("dpkg-query ", "rpm -q ", "apk info ", "pacman -Q ", "brew ls ")


class MockCommandRunner(CommandRunner):
    """Universal mock runner for testing.

    By default every command succeeds, and a successful command makes
    its last argument resolvable on the search path (package managers
    take the package name last). Disable with ``simulate_installs=False``.
    """

    def __init__(
        self,
        available: tuple[str, ...] | list[str] | set[str] = (),
        env: dict[str, str] | None = None,
        simulate_installs: bool = True,
    ):
        super().__init__(env if env is not None else {"PATH": "/usr/bin:/bin", "HOME": "/home/dev"})
        self._available: set[str] = set(available)
        self._simulate_installs = simulate_installs
        self._failures: dict[str, tuple[int, str]] = {}
        self._outputs: dict[str, str] = {}
        self._provides: dict[str, tuple[str, ...]] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[list[str]]:
        """Every command received, in order."""
        return [c.command for c in self._call_log]

    def which(self, binary: str) -> str | None:
        if binary in self._available:
            return f"/usr/bin/{binary}"
        return None

    def add_binary(self, *binaries: str) -> None:
        """Mark binaries as present on the search path."""
        self._available.update(binaries)

    def set_failure(self, fragment: str, return_code: int = 1, error: str = "Mock failure") -> None:
        """Fail every command whose command line contains *fragment*."""
        self._failures[fragment] = (return_code, error)

    def set_output(self, fragment: str, output: str) -> None:
        """Return *output* for commands containing *fragment*."""
        self._outputs[fragment] = output

    def set_provides(self, fragment: str, *binaries: str) -> None:
        """A successful command containing *fragment* makes *binaries* available."""
        self._provides[fragment] = binaries

    def execute(self, context: ExecutionContext) -> InstallResult:
        self._call_log.append(context)
        line = " ".join(context.command)

        for fragment, (code, error) in self._failures.items():
            if fragment in line:
                return InstallResult.failure(
                    step=context.step,
                    error=error,
                    commands=[context.command],
                    return_code=code,
                )

        explicit = next(
            (out for fragment, out in self._outputs.items() if fragment in line), None,
        )
        if explicit is None and line.startswith(_PACKAGE_QUERIES):
            return self._answer_package_query(context)
        output = explicit if explicit is not None else "[mock] executed"

        for fragment, binaries in self._provides.items():
            if fragment in line:
                self._available.update(binaries)
        if self._simulate_installs and context.command:
            self._available.add(os.path.basename(context.command[-1]))

        return InstallResult.success(
            step=context.step,
            output=output,
            commands=[context.command],
            return_code=0,
        )

    def _answer_package_query(self, context: ExecutionContext) -> InstallResult:
        package = context.command[-1]
        if package not in self._available:
            return InstallResult.failure(
                step=context.step,
                error=f"package {package} is not installed",
                commands=[context.command],
                return_code=1,
            )
        output = "install ok installed" if context.command[0] == "dpkg-query" else package
        return InstallResult.success(
            step=context.step,
            output=output,
            commands=[context.command],
            return_code=0,
        )

    def reset(self) -> None:
        """Clear call log and configured responses."""
        self._call_log.clear()
        self._failures.clear()
        self._outputs.clear()
        self._provides.clear()
