"""prodready — detect and auto-fix production-readiness defects in JavaScript."""

__all__ = [
    "__version__",
    "scan_project",
    "fix_project",
    "preview_project",
    "build_report",
    "validate_instance",
]
__version__ = "0.3.0"

# Programmatic entrypoints (backend use).
from prodready.api import (  # noqa: E402, F401
    build_report,
    fix_project,
    preview_project,
    scan_project,
    validate_instance,
)
