"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    get_app_timezone,
    is_known_timezone,
    now_in_app_naive_datetime,
    now_in_app_timezone,
    parse_clock,
    resolve_timezone,
)

__all__ = [
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "get_app_timezone",
    "is_known_timezone",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
    "parse_clock",
    "resolve_timezone",
]
