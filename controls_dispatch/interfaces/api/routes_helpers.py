"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from controls_dispatch.domain.errors import EndpointNotFoundError, RateLimitExceededError


def http_error_for(exc: Exception) -> HTTPException:
    """Translate a use case exception into the matching HTTP error."""

    if isinstance(exc, EndpointNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, RateLimitExceededError):
        return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


__all__ = ["http_error_for"]
