"""
L4 Execution — Shell profile persistence.

Writes the cargo and ``~/bin`` PATH entries to ``~/.profile`` so new
login shells see the toolchain, and applies the same entries to the
runner's environment for the rest of this run. Lines already present in
the profile are not written again.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from devsetup.adapters.base import CommandRunner
from devsetup.core.models.result import InstallResult
from devsetup.core.services.dev_setup.execution.toolchain_installer import cargo_bin_dir

logger = logging.getLogger(__name__)

PROFILE_FILE = ".profile"


def _export_line(name: str, value: str) -> str:
    return f'export {name}="{value}"'


def profile_lines(home: Path, cargo_home: Path | None) -> list[str]:
    """Export lines for the profile, CARGO_HOME first when it is set."""
    bin_dirs = f"{home / 'bin'}:{cargo_bin_dir(home, cargo_home)}"
    lines = []
    if cargo_home is not None:
        lines.append(_export_line("CARGO_HOME", os.fspath(cargo_home)))
    lines.append(_export_line("PATH", f"{bin_dirs}:$PATH"))
    return lines


def update_path_and_profile(
    runner: CommandRunner,
    home: Path,
    cargo_home: Path | None = None,
) -> InstallResult:
    """Persist PATH entries to ``~/.profile`` and apply them now."""
    step = "update ~/.profile"
    profile = home / PROFILE_FILE

    try:
        (home / "bin").mkdir(parents=True, exist_ok=True)
        profile.touch(exist_ok=True)
        existing = profile.read_text(encoding="utf-8")

        added: list[str] = []
        for line in profile_lines(home, cargo_home):
            if line not in existing:
                added.append(line)

        if added:
            with profile.open("a", encoding="utf-8") as f:
                if existing and not existing.endswith("\n"):
                    f.write("\n")
                for line in added:
                    f.write(line + "\n")
    except OSError as e:
        return InstallResult.failure(step, error=f"Cannot update {profile}: {e}")

    # Same effect as sourcing the lines: ~/bin ends up first.
    runner.prepend_path(os.fspath(cargo_bin_dir(home, cargo_home)))
    runner.prepend_path(os.fspath(home / "bin"))

    if not added:
        return InstallResult.skip(step, reason="profile already up to date")
    logger.info("Added %d line(s) to %s", len(added), profile)
    return InstallResult.success(step, output="\n".join(added))
