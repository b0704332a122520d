"""
Repository configuration — the toolchain descriptor and tool manifest.

``rust-toolchain.toml`` is required: it pins the toolchain channel and
marks the repository root. ``scripts/setup/rust-tools.txt`` is optional:
one ``name@version`` per line, installed with ``cargo install``.

Both are read with small line parsers, not a TOML library: only
``key = "value"`` lines and one ``components = [...]`` list matter.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from devsetup.core.errors import MissingConfigFile
from devsetup.core.models.package import PinnedTool, ToolchainSpec

logger = logging.getLogger(__name__)

TOOLCHAIN_FILE = "rust-toolchain.toml"
TOOL_MANIFEST = Path("scripts") / "setup" / "rust-tools.txt"

_KEY_VALUE_RE = re.compile(r'^([A-Za-z0-9_.-]+)\s*=\s*"([^"]*)"')
_LIST_RE = re.compile(r"^([A-Za-z0-9_.-]+)\s*=\s*\[(.*)\]")
_QUOTED_RE = re.compile(r'"([^"]*)"')


def find_repo_root(start_dir: Path | None = None) -> Path | None:
    """Walk up from *start_dir* (default: cwd) to the directory holding
    the toolchain descriptor.

    Returns:
        The repository root, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        if (current / TOOLCHAIN_FILE).is_file():
            return current
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def parse_key_values(text: str) -> dict[str, str]:
    """Extract ``key = "value"`` pairs, one per line.

    Section headers, comments and anything else are ignored. Later
    keys win.
    """
    values: dict[str, str] = {}
    for line in text.splitlines():
        m = _KEY_VALUE_RE.match(line)
        if m:
            values[m.group(1)] = m.group(2)
    return values


def parse_string_list(text: str, key: str) -> list[str] | None:
    """Extract a single-line ``key = ["a", "b"]`` list, or None."""
    for line in text.splitlines():
        m = _LIST_RE.match(line)
        if m and m.group(1) == key:
            return _QUOTED_RE.findall(m.group(2))
    return None


def load_toolchain_spec(repo_root: Path) -> ToolchainSpec:
    """Read the toolchain descriptor at the repository root.

    Raises:
        MissingConfigFile: If the descriptor is absent or names no channel.
    """
    path = repo_root / TOOLCHAIN_FILE
    if not path.is_file():
        raise MissingConfigFile(
            f"Unknown location: {TOOLCHAIN_FILE} not found in {repo_root}. "
            "Please run this from the repository root. Abort."
        )

    text = path.read_text(encoding="utf-8")
    channel = parse_key_values(text).get("channel")
    if not channel:
        raise MissingConfigFile(f"No toolchain channel in {path}")

    components = parse_string_list(text, "components")
    if components:
        spec = ToolchainSpec(channel=channel, components=tuple(components))
    else:
        spec = ToolchainSpec(channel=channel)

    logger.info("Toolchain channel %s (%s)", spec.channel, ", ".join(spec.components))
    return spec


def parse_tool_manifest(text: str) -> list[PinnedTool]:
    """Parse ``name@version`` lines into pinned tools.

    A line without ``@`` (or with an empty version) installs the latest
    release. Blank lines and ``#`` comments are skipped.
    """
    tools: list[PinnedTool] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        name, _, version = line.partition("@")
        tools.append(PinnedTool(name=name.strip(), version=version.strip() or None))
    return tools


def load_tool_manifest(repo_root: Path) -> list[PinnedTool]:
    """Read the optional pinned-tool manifest; missing means no tools."""
    path = repo_root / TOOL_MANIFEST
    if not path.is_file():
        logger.debug("No tool manifest at %s", path)
        return []
    return parse_tool_manifest(path.read_text(encoding="utf-8"))
