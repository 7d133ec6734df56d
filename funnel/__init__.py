# Funnel package - visitor funnel logic
from .errors import (
    FunnelError,
    ValidationError,
    UpstreamError,
    InvalidSessionState,
    ConfigurationError,
    PersistenceError,
)
from .translator import translate_issue, translate_and_prioritize
from .progress import progress_at

__all__ = [
    # Errors
    "FunnelError",
    "ValidationError",
    "UpstreamError",
    "InvalidSessionState",
    "ConfigurationError",
    "PersistenceError",
    # Translation
    "translate_issue",
    "translate_and_prioritize",
    # Progress display
    "progress_at",
]
