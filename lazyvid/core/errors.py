"""Error taxonomy for the timeline engine.

Two families:
 - ``EditError`` subclasses describe recoverable conditions. Edit operations never
   raise them; they hand them back inside an ``EditResult`` after leaving the
   timeline untouched (or clamped).
 - Everything else is raised, because the caller has to decide what to do
   (unusable source media, exporting an empty timeline, encoder failure).
"""

from __future__ import annotations

from typing import Optional


class TimelineError(Exception):
    """Base class for every error raised or reported by lazyvid."""


class EditError(TimelineError):
    def __init__(self, message: str, item_id: Optional[str] = None):
        super().__init__(message)
        self.item_id = item_id


class NotFoundError(EditError):
    """An operation referenced an item id that is not on the timeline."""


class InvalidRangeError(EditError):
    """A trim or split would invert a range or go below the minimum duration."""


class InvalidSourceError(TimelineError):
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class EmptyTimelineError(TimelineError):
    """Export was requested while the timeline holds no items."""


class ExportError(TimelineError):
    """The external encoder failed; ``reason`` keeps its raw message."""

    def __init__(self, reason: str, returncode: Optional[int] = None):
        super().__init__(f"Export failed: {reason}")
        self.reason = reason
        self.returncode = returncode


__all__ = [
    "TimelineError",
    "EditError",
    "NotFoundError",
    "InvalidRangeError",
    "InvalidSourceError",
    "EmptyTimelineError",
    "ExportError",
]
