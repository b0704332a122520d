"""
Development environment setup service — package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate layer (detection → execution → orchestration); the static
package catalogue lives in ``devsetup/core/data/packages.yml``::

    from devsetup.core.services.dev_setup import InstallOrchestrator
"""

# ── L3: Detection ──
from devsetup.core.services.dev_setup.detection.package_manager import (  # noqa: F401
    detect,
    detect_package_manager,
)
from devsetup.core.services.dev_setup.detection.privilege import (  # noqa: F401
    needs_elevation,
)

# ── L4: Execution ──
from devsetup.core.services.dev_setup.execution.package_installer import (  # noqa: F401
    PackageInstaller,
)
from devsetup.core.services.dev_setup.execution.toolchain_installer import (  # noqa: F401
    ToolchainInstaller,
)

# ── L5: Orchestration ──
from devsetup.core.services.dev_setup.orchestration.orchestrator import (  # noqa: F401
    InstallOrchestrator,
    bootstrap,
)
