"""
Cross-cutting utilities for songqueue.

Contains:
- formatting: duration display helpers
"""

from .formatting import format_duration, format_millis

__all__ = [
    "format_duration",
    "format_millis",
]
