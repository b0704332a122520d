"""
Domain models — Pydantic types for the bootstrapper.

All models are re-exported here for convenient access:

    from devsetup.core.models import AbstractPackage, RunConfig, InstallResult
"""

from devsetup.core.models.package import (
    AbstractPackage,
    PackageManagerKind,
    PinnedTool,
    ToolchainSpec,
)
from devsetup.core.models.result import InstallResult, RunReport
from devsetup.core.models.run_config import InstallGroup, RunConfig

__all__ = [
    # package.py
    "AbstractPackage",
    "PackageManagerKind",
    "PinnedTool",
    "ToolchainSpec",
    # result.py
    "InstallResult",
    "RunReport",
    # run_config.py
    "InstallGroup",
    "RunConfig",
]
