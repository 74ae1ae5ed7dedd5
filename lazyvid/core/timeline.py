"""Timeline model: the ordered, gap-free sequence of placed items.

Every structural edit ends with ``TimelineModel.compact()``, which is the single
place contiguity is restored:

    sort items by start_time (stable, so ties keep their list order)
    start_time[0] = 0
    start_time[i + 1] = start_time[i] + visible_duration[i]

The model itself knows nothing about selection, the playhead or snapping; those live
in ``editing`` and ``playhead``.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .source import SourceMedia


@dataclass(eq=False)
class TimelineItem:
    id: str
    source: SourceMedia
    start_time: float = 0.0
    trim_start: float = 0.0
    trim_end: float = 0.0

    @property
    def visible_duration(self) -> float:
        return self.trim_end - self.trim_start

    @property
    def end_time(self) -> float:
        return self.start_time + self.visible_duration

    def contains(self, t: float) -> bool:
        return self.start_time <= t < self.end_time

    def source_time_at(self, t: float) -> float:
        """Position inside the source file shown at global time ``t``."""
        return self.trim_start + (t - self.start_time)

    def global_time_at(self, source_time: float) -> float:
        return self.start_time + (source_time - self.trim_start)

    def __repr__(self) -> str:
        return (
            f"TimelineItem(id={self.id!r}, path={self.source.path!r}, "
            f"start={self.start_time:.3f}, trim=[{self.trim_start:.3f}, {self.trim_end:.3f}))"
        )


class ItemIdGenerator:
    """Monotonic ids owned by whoever creates timeline items."""

    def __init__(self, prefix: str = "item"):
        self._prefix = prefix
        self._counter = itertools.count(1)

    def next(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


class TimelineModel:
    def __init__(self):
        self._items: List[TimelineItem] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[TimelineItem]:
        return iter(tuple(self._items))

    # --- Read side ---
    def items(self) -> Tuple[TimelineItem, ...]:
        return tuple(self._items)

    def total_duration(self) -> float:
        if not self._items:
            return 0.0
        return self._items[-1].end_time

    def get(self, item_id: str) -> Optional[TimelineItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def index_of(self, item_id: str) -> int:
        for idx, item in enumerate(self._items):
            if item.id == item_id:
                return idx
        return -1

    def item_containing(self, t: float) -> Optional[TimelineItem]:
        # Scans rather than bisecting so a gap (which compaction should have removed)
        # simply yields None.
        for item in self._items:
            if item.contains(t):
                return item
        return None

    # --- Structural edits (callers compact afterwards) ---
    def append(self, item: TimelineItem) -> None:
        self._items.append(item)

    def insert(self, index: int, item: TimelineItem) -> None:
        self._items.insert(index, item)

    def remove(self, item_id: str) -> Optional[TimelineItem]:
        idx = self.index_of(item_id)
        if idx < 0:
            return None
        return self._items.pop(idx)

    def reorder(self, item_id: str, index: int) -> bool:
        """Move an item to ``index`` (counted without the item) and restack by list order."""
        item = self.remove(item_id)
        if item is None:
            return False
        index = max(0, min(index, len(self._items)))
        self._items.insert(index, item)
        self._restack()
        return True

    def compact(self) -> None:
        self._items.sort(key=lambda item: item.start_time)
        self._restack()

    def _restack(self) -> None:
        running = 0.0
        for item in self._items:
            item.start_time = running
            running = item.end_time


__all__ = ["TimelineItem", "TimelineModel", "ItemIdGenerator"]
