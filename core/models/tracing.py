# =============================================================================
# core/models/tracing.py - Trace Sampling Schemas
# =============================================================================
# These models describe the input and output of the trace sampling policy:
# - TraceContext: what is known about a transaction when it starts
# - SamplingDecision: a rate in [0.0, 1.0], or None to defer to the
#   configured default rate
#
# A TraceContext is built once per inbound transaction and thrown away as
# soon as the decision is made. It is never stored or shared.
# =============================================================================

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


# None means "unset": the caller falls back to its default sample rate
SamplingDecision = Optional[float]


class TraceContext(BaseModel):
    """
    Sampling context for a single transaction.

    Example:
        {
            "parent_sampled": null,
            "url": "/api/notify"
        }
    """

    model_config = ConfigDict(frozen=True)

    # None for a root transaction, True/False when continuing a trace
    parent_sampled: Optional[bool] = Field(
        default=None,
        description="Sampling decision inherited from the upstream service"
    )

    url: Optional[str] = Field(
        default=None,
        description="Path of the incoming request"
    )

    @classmethod
    def from_sampling_context(cls, sampling_context: Mapping[str, Any]) -> "TraceContext":
        """
        Build a TraceContext from a sampling context mapping.

        Reads the "parent_sampled" and "url" keys; anything missing is None.
        The url is used exactly as given.
        """
        return cls(
            parent_sampled=sampling_context.get("parent_sampled"),
            url=sampling_context.get("url"),
        )
