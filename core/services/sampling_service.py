# =============================================================================
# core/services/sampling_service.py - Trace Sampling Policy
# =============================================================================
# Decides whether a transaction should be traced.
#
# Rules, in order:
# 1. Continuation of an existing trace: follow the parent's decision
# 2. Real-time notification channel: always drop
# 3. Everything else: unset, the caller applies its default rate
# =============================================================================

from core.models.tracing import SamplingDecision, TraceContext


# The websocket channel and its negotiation endpoint are pure noise.
# Compared with plain string equality; the two spellings are kept as-is.
DROPPED_URLS = frozenset({
    "/api/notify",
    "api/notify/negotiate",
})


def evaluate_sampling(context: TraceContext) -> SamplingDecision:
    """
    Produce the sampling decision for one transaction.

    Args:
        context: Parent decision and request url for the transaction

    Returns:
        1.0 or 0.0 when a parent decision exists, 0.0 for dropped urls,
        None when the default sample rate should apply

    Example:
        evaluate_sampling(TraceContext(url="/api/notify"))  # 0.0
        evaluate_sampling(TraceContext(url="/orders/42"))   # None
    """
    if context.parent_sampled is not None:
        return 1.0 if context.parent_sampled else 0.0

    if context.url in DROPPED_URLS:
        return 0.0

    return None
