# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .sampling_service import DROPPED_URLS, evaluate_sampling

__all__ = [
    "DROPPED_URLS",
    "evaluate_sampling",
]
