# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# - tracing.py: TraceContext, the per-transaction sampling input
# =============================================================================

from .tracing import SamplingDecision, TraceContext

__all__ = [
    "SamplingDecision",
    "TraceContext",
]
