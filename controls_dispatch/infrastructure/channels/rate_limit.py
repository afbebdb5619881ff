"""Moving-window limiter for chat webhook sends."""

from __future__ import annotations

from limits import RateLimitItemPerMinute
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from controls_dispatch.domain.errors import RateLimitExceededError


def _identifiers(user_id: int | None, endpoint: str) -> tuple[str, str]:
    return ("anonymous" if user_id is None else str(user_id), endpoint)


class ChatRateLimiter:
    """Allow at most ``max_per_minute`` sends per (user, webhook) in any 60 s window.

    Rejections raise :class:`RateLimitExceededError`; nothing is queued.
    """

    def __init__(self, max_per_minute: int = 30) -> None:
        if max_per_minute <= 0:
            raise ValueError("max_per_minute must be positive")
        self.max_per_minute = max_per_minute
        self._item = RateLimitItemPerMinute(max_per_minute, namespace="chat-webhook")
        self._storage = MemoryStorage()
        self._limiter = MovingWindowRateLimiter(self._storage)

    def acquire(self, user_id: int | None, endpoint: str) -> None:
        """Record one send for ``(user_id, endpoint)`` or raise when over budget."""

        if not self._limiter.hit(self._item, *_identifiers(user_id, endpoint)):
            raise RateLimitExceededError(self.max_per_minute)

    def remaining(self, user_id: int | None, endpoint: str) -> int:
        stats = self._limiter.get_window_stats(self._item, *_identifiers(user_id, endpoint))
        return max(stats.remaining, 0)

    def reset(self) -> None:
        self._storage.reset()


__all__ = ["ChatRateLimiter"]
