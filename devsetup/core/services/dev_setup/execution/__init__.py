"""
L4 Execution — ``__init__.py`` re-exports all execution functions.

These functions WRITE to the system: package installs, toolchain
setup, profile edits.
"""

from devsetup.core.services.dev_setup.execution.package_installer import (  # noqa: F401
    PackageInstaller,
    build_index_update_cmd,
    build_install_cmd,
)
from devsetup.core.services.dev_setup.execution.pip_installer import (  # noqa: F401
    build_pip_cmd,
    install_python_packages,
)
from devsetup.core.services.dev_setup.execution.profile import (  # noqa: F401
    profile_lines,
    update_path_and_profile,
)
from devsetup.core.services.dev_setup.execution.toolchain_installer import (  # noqa: F401
    ToolchainInstaller,
    cargo_bin_dir,
)
