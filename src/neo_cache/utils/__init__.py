"""Utilities module for neo-cache."""

from .datetime import Clock, current_millis, is_past

__all__ = [
    "Clock",
    "current_millis",
    "is_past",
]
