"""Services package."""

from airfine.services.transform import (
    DEFAULT_CONTEXT,
    OutcomeStatus,
    TransformOutcome,
    TransformRequest,
    run,
    select_backend,
)

__all__ = [
    "DEFAULT_CONTEXT",
    "OutcomeStatus",
    "TransformOutcome",
    "TransformRequest",
    "run",
    "select_backend",
]
