"""
Run configuration — which install groups a run performs.

Resolved once from the command-line flags and read-only afterwards.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class InstallGroup(str, Enum):
    """Independently toggleable bundles of installation steps."""

    BUILD_TOOLS = "build_tools"
    DEV_TOOLS = "dev_tools"
    CODEGEN_TOOLS = "codegen_tools"
    PROFILE_UPDATE = "profile_update"


class RunConfig(BaseModel):
    """Flags for one bootstrap run."""

    model_config = ConfigDict(frozen=True)

    auto_approve: bool = False
    verbose: bool = False
    build_tools: bool = False
    dev_tools: bool = False
    profile: bool = False
    codegen: bool = False

    @classmethod
    def from_flags(
        cls,
        *,
        auto_approve: bool = False,
        verbose: bool = False,
        build_tools: bool = False,
        dev_tools: bool = False,
        profile: bool = False,
        codegen: bool = False,
    ) -> RunConfig:
        """Build a config from CLI flags.

        When no group is selected at all, build tools are enabled.
        """
        if not (build_tools or dev_tools or profile or codegen):
            build_tools = True
        return cls(
            auto_approve=auto_approve,
            verbose=verbose,
            build_tools=build_tools,
            dev_tools=dev_tools,
            profile=profile,
            codegen=codegen,
        )

    def is_enabled(self, group: InstallGroup) -> bool:
        return {
            InstallGroup.BUILD_TOOLS: self.build_tools,
            InstallGroup.DEV_TOOLS: self.dev_tools,
            InstallGroup.CODEGEN_TOOLS: self.codegen,
            InstallGroup.PROFILE_UPDATE: self.profile,
        }[group]

    @property
    def enabled_groups(self) -> list[InstallGroup]:
        return [g for g in InstallGroup if self.is_enabled(g)]
