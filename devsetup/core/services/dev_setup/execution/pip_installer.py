"""
L4 Execution — Python package installation.

pip is idempotent on its own (already satisfied requirements are left
alone), so there is no pre-check here.
"""

from __future__ import annotations

from devsetup.adapters.base import CommandRunner
from devsetup.core.models.result import InstallResult
from devsetup.core.services.dev_setup.detection.privilege import elevation_prefix

PYTHON = "python3"


def build_pip_cmd(packages: list[str], elevate: bool = False) -> list[str]:
    return elevation_prefix(elevate) + [PYTHON, "-m", "pip", "install", "--quiet"] + packages


def install_python_packages(
    runner: CommandRunner,
    packages: list[str],
    *,
    label: str = "python packages",
    elevate: bool = False,
) -> InstallResult:
    """``python3 -m pip install --quiet`` *packages* in one call."""
    step = f"pip install {label}"
    if not packages:
        return InstallResult.skip(step, reason="no packages")
    return runner.run(build_pip_cmd(packages, elevate), step=step)
