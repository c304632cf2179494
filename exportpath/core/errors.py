"""Error taxonomy shared by the pipeline, the backend and its clients."""

from __future__ import annotations

RATE_LIMIT_MESSAGE = "API Rate Limit Exceeded. Please try again later."


class ExportPathError(RuntimeError):
    """Base class for failures surfaced to the user."""


class QuotaExceededError(ExportPathError):
    """Raised before any external call when the local daily quota is spent."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"You've used your {limit} free analysis credits for today."
        )
        self.limit = limit


class RemoteServiceError(ExportPathError):
    """A research or synthesis call failed at the transport or upstream level."""

    def __init__(self, message: str, *, rate_limited: bool = False) -> None:
        super().__init__(message)
        self.rate_limited = rate_limited

    @property
    def user_message(self) -> str:
        if self.rate_limited:
            return RATE_LIMIT_MESSAGE
        return str(self)


class ConfigurationError(ExportPathError):
    """A setting required by the requested mode is missing or invalid."""


class SchemaViolationError(ExportPathError):
    """The model answered, but not with a payload matching the contract."""


__all__ = [
    "ConfigurationError",
    "ExportPathError",
    "QuotaExceededError",
    "RATE_LIMIT_MESSAGE",
    "RemoteServiceError",
    "SchemaViolationError",
]
