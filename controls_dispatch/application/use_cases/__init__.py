"""Aggregate application use cases."""

from .dispatch import FanOutDispatcher, RetrySweep
from .preferences import PreferenceResolver

__all__ = [
    "FanOutDispatcher",
    "PreferenceResolver",
    "RetrySweep",
]
