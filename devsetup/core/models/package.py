"""
Package models — what can be installed, and by which manager.

An AbstractPackage names a capability ("openssl dev libraries") and maps
every supported package manager to the concrete identifiers that provide
it there. The catalogue of these lives in ``core/data/packages.yml``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PackageManagerKind(str, Enum):
    """Supported system package managers."""

    APT = "apt"
    YUM = "yum"
    PACMAN = "pacman"
    APK = "apk"
    DNF = "dnf"
    BREW = "brew"

    @property
    def binary(self) -> str:
        """Executable that drives this manager."""
        if self is PackageManagerKind.APT:
            return "apt-get"
        return self.value

    def __str__(self) -> str:
        return self.value


class AbstractPackage(BaseModel):
    """A logical installable capability.

    ``packages`` maps a manager to zero or more concrete identifiers.
    A missing key means the capability is unknown on that manager; an
    empty list means there is nothing to install there (e.g. brew ships
    the build essentials with the Xcode command-line tools).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    label: str = ""
    packages: dict[PackageManagerKind, list[str]] = Field(default_factory=dict)
    pre_steps: dict[PackageManagerKind, list[list[str]]] = Field(default_factory=dict)
    post_steps: dict[PackageManagerKind, list[list[str]]] = Field(default_factory=dict)

    # Installed-check predicate name (see detection/installed.py)
    probe: str = "command"
    binary: str | None = None

    @property
    def display_name(self) -> str:
        return self.label or self.name

    def supports(self, manager: PackageManagerKind) -> bool:
        """Whether the catalogue defines an entry for *manager*."""
        return manager in self.packages

    def identifiers_for(self, manager: PackageManagerKind) -> list[str]:
        """Concrete identifiers for *manager*.

        Raises:
            KeyError: If the package has no entry for the manager.
        """
        return list(self.packages[manager])


class ToolchainSpec(BaseModel):
    """A pinned compiler toolchain: channel plus named components."""

    model_config = ConfigDict(frozen=True)

    channel: str
    components: tuple[str, ...] = ("rustfmt", "rust-src", "clippy", "miri")
    profile: str = "minimal"


class PinnedTool(BaseModel):
    """An auxiliary cargo-installed tool, optionally pinned to a version."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None

    def __str__(self) -> str:
        return f"{self.name}@{self.version}" if self.version else self.name
