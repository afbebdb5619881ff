"""Notification priority scale."""

from __future__ import annotations

from enum import IntEnum


class NotificationPriority(IntEnum):
    """Ordinal priority used to compare notifications against thresholds."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: "NotificationPriority | str | int | None") -> "NotificationPriority":
        """Return the priority named by ``value``.

        Unrecognized labels resolve to ``MEDIUM``; ``Normal`` is an alias of
        ``Medium`` used by older clients.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return cls.MEDIUM
        label = str(value or "").strip().lower()
        return _ALIASES.get(label, cls.MEDIUM)

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return str(value or "").strip().lower() in _ALIASES


_ALIASES: dict[str, NotificationPriority] = {
    "low": NotificationPriority.LOW,
    "medium": NotificationPriority.MEDIUM,
    "normal": NotificationPriority.MEDIUM,
    "high": NotificationPriority.HIGH,
    "critical": NotificationPriority.CRITICAL,
}


__all__ = ["NotificationPriority"]
