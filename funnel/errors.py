"""
Error taxonomy for the funnel.

Every failure a funnel step can surface is one of these. Routes translate
them into HTTP responses; nothing provider-specific is carried in the
user-facing message.
"""

from typing import Optional


class FunnelError(Exception):
    """Base class for all funnel errors."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str = "", user_message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if user_message:
            self.user_message = user_message


class ValidationError(FunnelError):
    """Malformed visitor input (URL or email). Never touches the session."""

    def __init__(self, message: str):
        super().__init__(message, user_message=message)


class UpstreamError(FunnelError):
    """Analysis, CRM or payment provider failure, including timeouts."""

    user_message = (
        "An error occurred during analysis. The analysis service may be "
        "unavailable. Please try again later."
    )


class InvalidSessionState(FunnelError):
    """A step was attempted without the session the previous step writes."""

    user_message = "Your session has expired. Please start again from the beginning."


class ConfigurationError(FunnelError):
    """A required credential or secret is missing."""

    user_message = "The service is temporarily unavailable. Please try again later."


class PersistenceError(FunnelError):
    """The session cookie could not be written."""

    user_message = "We could not save your progress. Please try again."
