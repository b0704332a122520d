"""
devsetup — CLI entrypoint.

Usage:
    python -m devsetup.main            # build tools (default)
    python -m devsetup.main -y -b -d   # build + dev tools, no prompt
    python -m devsetup.main -h
"""

from __future__ import annotations

import os
import sys

import click

from devsetup import __version__
from devsetup.adapters.base import CommandRunner
from devsetup.adapters.shell.command import ShellCommandRunner
from devsetup.core.config.loader import TOOLCHAIN_FILE, find_repo_root
from devsetup.core.errors import MissingConfigFile, SetupError
from devsetup.core.models.result import InstallResult
from devsetup.core.models.run_config import RunConfig
from devsetup.core.observability.logging_config import setup_logging
from devsetup.core.services.dev_setup.orchestration.orchestrator import (
    InstallOrchestrator,
    PlannedStep,
)


class _UsageOnErrorCommand(click.Command):
    """Unknown options or stray arguments print usage and exit 0."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError:
            click.echo(ctx.get_help())
            ctx.exit(0)


_ENV_HELP = """\b
Environment:
  DEVSETUP_LOG_LEVEL       console log level (default INFO; -v means DEBUG)
  DEVSETUP_LOG_FILE        also write the log, with timestamps, to this file
  DEVSETUP_LOG_FILE_LEVEL  level for the log file (default: the console level)
"""


def _make_runner() -> CommandRunner:
    return ShellCommandRunner()


def welcome_message(cfg: RunConfig) -> str:
    """Summary of what the selected groups will install."""
    lines = [
        "Welcome to devsetup!",
        "",
        "This script will download and install the necessary dependencies needed to",
        "build, test and inspect this project.",
        "",
        "Based on your selection, these tools will be included:",
    ]
    if cfg.build_tools:
        lines += [
            "Build tools (since -b or no option was provided):",
            "  * Rust (and the necessary components, e.g. rust-fmt, clippy)",
            "  * build-essential",
            "  * pkg-config",
            "  * libssl-dev",
            "  * protobuf-compiler",
            "  * cmake, clang, llvm",
        ]
    if cfg.dev_tools:
        lines += [
            "Development tools (since -d was provided):",
            "  * mysql client",
            "  * python3 (boto3, yapf, ...)",
            "  * lcov",
            "  * tools from rust-tools.txt ( e.g. cargo-audit, cargo-udeps, taplo-cli)",
        ]
    if cfg.codegen:
        lines += [
            "Codegen tools (since -s was provided):",
            "  * Python3 (coscmd, PyYAML)",
        ]
    if cfg.profile:
        lines.append("Moreover, ~/.profile will be updated (since -p was provided).")
    lines += [
        "If you'd prefer to install these dependencies yourself, please exit this script",
        "now with Ctrl-C.",
    ]
    return "\n".join(lines)


def _echo_start(step: PlannedStep) -> None:
    click.secho(f"==> {step.label}", fg="cyan", bold=True)


def _echo_result(result: InstallResult) -> None:
    if result.ok:
        timing = f" ({result.duration_ms}ms)" if result.duration_ms else ""
        click.secho(f"   ✓ {result.step}{timing}", fg="green")
    elif result.skipped:
        click.secho(f"   ⏭ {result.step} ({result.output})", fg="yellow")
    else:
        click.secho(f"   ✗ {result.step}", fg="red")
        if result.error:
            for line in result.error.split("\n")[-5:]:
                click.echo(f"     │ {line}")


@click.command(
    cls=_UsageOnErrorCommand,
    epilog=_ENV_HELP,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__, prog_name="devsetup")
@click.option("-y", "auto_approve", is_flag=True, help="Auto approve installation.")
@click.option("-b", "build_tools", is_flag=True, help="Install build tools.")
@click.option("-d", "dev_tools", is_flag=True, help="Install development tools.")
@click.option("-p", "profile", is_flag=True, help="Install profile.")
@click.option("-s", "codegen", is_flag=True, help="Install codegen tools.")
@click.option("-v", "verbose", is_flag=True, help="Verbose mode.")
def cli(
    auto_approve: bool,
    build_tools: bool,
    dev_tools: bool,
    profile: bool,
    codegen: bool,
    verbose: bool,
) -> None:
    """Install the toolchain and dependencies needed to build this project."""
    cfg = RunConfig.from_flags(
        auto_approve=auto_approve,
        verbose=verbose,
        build_tools=build_tools,
        dev_tools=dev_tools,
        profile=profile,
        codegen=codegen,
    )

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level="DEBUG" if verbose else os.environ.get("DEVSETUP_LOG_LEVEL", "INFO"),
        log_file=os.environ.get("DEVSETUP_LOG_FILE"),
        log_file_level=os.environ.get("DEVSETUP_LOG_FILE_LEVEL"),
    )

    runner = _make_runner()
    try:
        repo_root = find_repo_root()
        if repo_root is None:
            raise MissingConfigFile(
                f"Unknown location: no {TOOLCHAIN_FILE} found. "
                "Please run this from the repository. Abort."
            )
        orchestrator = InstallOrchestrator.for_host(
            runner, repo_root, on_start=_echo_start, on_result=_echo_result,
        )
    except SetupError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(e.exit_code)

    if not cfg.auto_approve:
        click.echo(welcome_message(cfg))
        if not click.confirm("Proceed with installing necessary dependencies?", default=False):
            click.echo("Exiting...")
            return

    report = orchestrator.run(cfg)

    click.echo()
    failed = report.failed_step
    if failed is not None:
        click.secho(f"❌ {failed.step}: {failed.error}", fg="red", bold=True)
        sys.exit(1)

    click.secho(
        f"✅ Done: {report.installed} installed, {report.skipped} already present",
        fg="green",
        bold=True,
    )
    if not cfg.auto_approve:
        click.echo("Finished installing all dependencies.")
        click.echo()
        click.echo("You should now be able to build the project by running:")
        click.echo("\tcargo build")


if __name__ == "__main__":
    cli()
