# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - diagnostics.py: Error-capture check endpoint
#
# Each router is mounted in factory.py with a URL prefix. The notification
# channel lives in app/realtime/.
# =============================================================================

from . import health
from . import diagnostics

__all__ = [
    "health",
    "diagnostics",
]
