"""Exceptions raised by the dispatch layer."""


class DispatchError(Exception):
    """Base class for dispatch errors."""


class EndpointValidationError(DispatchError, ValueError):
    """Raised when an endpoint or request is rejected before any network call."""


class EndpointNotFoundError(DispatchError, ValueError):
    """Raised when the referenced endpoint or webhook configuration does not exist."""


class RateLimitExceededError(DispatchError):
    """Raised when a user exceeds the per-webhook message budget."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(
            f"Rate limit exceeded. Maximum {limit} messages per minute per webhook."
        )


__all__ = [
    "DispatchError",
    "EndpointNotFoundError",
    "EndpointValidationError",
    "RateLimitExceededError",
]
