"""
L4 Execution — Rust toolchain installation.

Bootstraps rustup, installs the pinned channel, makes it the default
and adds its components. Each step checks what rustup already reports
and does nothing when the work is done. Toolchain commands run as the
invoking user and are never elevated.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

from devsetup.adapters.base import CommandRunner
from devsetup.core.models.package import PinnedTool, ToolchainSpec
from devsetup.core.models.result import InstallResult
from devsetup.core.services.dev_setup.detection.installed import (
    has_component,
    has_toolchain,
    installed_components,
    installed_crates,
    installed_toolchains,
)

logger = logging.getLogger(__name__)

RUSTUP_INIT_URL = "https://sh.rustup.rs"

# Statically linked musl binaries break proc-macro crates.
CARGO_INSTALL_ENV = {"RUSTFLAGS": "-C target-feature=-crt-static"}


def cargo_bin_dir(home: Path, cargo_home: Path | None = None) -> Path:
    """Where rustup puts ``cargo``/``rustup``: ``$CARGO_HOME/bin`` or ``~/.cargo/bin``."""
    return (cargo_home or home / ".cargo") / "bin"


class ToolchainInstaller:
    """Install and configure a pinned toolchain through a CommandRunner."""

    def __init__(self, runner: CommandRunner, home: Path, cargo_home: Path | None = None):
        self._runner = runner
        self._home = home
        self._cargo_home = cargo_home

    @property
    def bin_dir(self) -> Path:
        return cargo_bin_dir(self._home, self._cargo_home)

    # ── Step 1: rustup itself ───────────────────────────────────

    def ensure_toolchain_present(self, spec: ToolchainSpec) -> InstallResult:
        """Install rustup non-interactively unless it is already on PATH.

        On success the cargo bin dir is put at the front of the runner's
        search path, so later steps find ``rustup`` and ``cargo``.
        """
        step = "install rustup"
        if self._runner.has_command("rustup"):
            logger.info("Rust is already installed")
            return InstallResult.skip(step, reason="already installed")

        logger.info("==> Installing Rust......")
        script = (
            f"curl {RUSTUP_INIT_URL} -sSf | sh -s -- -y "
            f"--default-toolchain {spec.channel} --profile {spec.profile}"
        )
        result = self._runner.run(["sh", "-c", script], step=step)
        if result.failed:
            return result

        self._runner.prepend_path(os.fspath(self.bin_dir))
        return result

    # ── Steps 2–4 ───────────────────────────────────────────────

    def install_version(self, spec: ToolchainSpec) -> InstallResult:
        """Install the pinned channel and select its profile."""
        step = f"install toolchain {spec.channel}"
        commands: list[list[str]] = []

        if has_toolchain(installed_toolchains(self._runner), spec.channel):
            logger.info("Toolchain %s is already installed", spec.channel)
        else:
            logger.info("==> Installing %s of rust toolchain...", spec.channel)
            result = self._runner.run(["rustup", "toolchain", "install", spec.channel], step=step)
            commands.extend(result.commands)
            if result.failed:
                return result.model_copy(update={"commands": commands})

        result = self._runner.run(["rustup", "set", "profile", spec.profile], step=step)
        commands.extend(result.commands)
        if result.failed:
            return result.model_copy(update={"commands": commands})
        return InstallResult.success(step, output=spec.channel, commands=commands)

    def set_default(self, spec: ToolchainSpec) -> InstallResult:
        step = f"set default toolchain {spec.channel}"
        return self._runner.run(["rustup", "default", spec.channel], step=step)

    def configure_components(self, version: str, components: tuple[str, ...] | list[str]) -> InstallResult:
        """Add each missing component to *version*."""
        step = f"add components to {version}"
        present = installed_components(self._runner, version)
        missing = [c for c in components if not has_component(present, c)]
        if not missing:
            return InstallResult.skip(step, reason="all components installed")

        commands: list[list[str]] = []
        for component in missing:
            result = self._runner.run(
                ["rustup", "component", "add", component, "--toolchain", version], step=step,
            )
            commands.extend(result.commands)
            if result.failed:
                return result.model_copy(update={"commands": commands})
        return InstallResult.success(step, output=", ".join(missing), commands=commands)

    def install_toolchain(self, spec: ToolchainSpec) -> Iterator[InstallResult]:
        """Run steps 1–4 in order, stopping after the first failure."""
        steps = (
            lambda: self.ensure_toolchain_present(spec),
            lambda: self.install_version(spec),
            lambda: self.set_default(spec),
            lambda: self.configure_components(spec.channel, spec.components),
        )
        for run_step in steps:
            result = run_step()
            yield result
            if result.failed:
                return

    # ── Pinned cargo tools ──────────────────────────────────────

    def install_cargo_binary(self, tool: PinnedTool) -> InstallResult:
        """``cargo install`` *tool* unless cargo already lists it."""
        step = f"cargo install {tool}"
        if tool.name in installed_crates(self._runner):
            logger.info("%s is already installed", tool.name)
            return InstallResult.skip(step, reason="already installed")

        cmd = ["cargo", "install"]
        if tool.version:
            cmd += ["--version", tool.version]
        cmd.append(tool.name)
        return self._runner.run(cmd, step=step, env_overrides=CARGO_INSTALL_ENV)
