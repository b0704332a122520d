"""
L3 Detection — ``__init__.py`` re-exports all detection functions.

These functions READ host state but never WRITE.
"""

from devsetup.core.services.dev_setup.detection.installed import (  # noqa: F401
    PROBES,
    has_component,
    has_toolchain,
    installed_components,
    installed_crates,
    installed_toolchains,
    is_installed,
)
from devsetup.core.services.dev_setup.detection.package_manager import (  # noqa: F401
    LINUX_PROBE_ORDER,
    detect,
    detect_package_manager,
)
from devsetup.core.services.dev_setup.detection.privilege import (  # noqa: F401
    ELEVATION_COMMAND,
    check_elevation_tool,
    current_user,
    elevation_prefix,
    needs_elevation,
)
