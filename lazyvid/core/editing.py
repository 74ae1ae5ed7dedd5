"""Edit operations over a ``TimelineModel``.

All operations are synchronous and finish with a compaction pass, so the model is
contiguous again by the time they return. User-reachable mistakes (unknown id, split
on a boundary, a mark-in past the out point) never raise: the operation leaves the
timeline as it was and returns an ``EditResult`` whose ``error`` says why. Only
unusable source media raises (``InvalidSourceError``).

Interactive edits go through gestures. ``begin_drag``/``begin_trim`` hand back a
gesture object that carries the interaction state between pointer events; only one
gesture can be live at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

import structlog

from ..config import EditorSettings
from .errors import EditError, InvalidRangeError, InvalidSourceError, NotFoundError
from .playhead import Playhead
from .source import SourceMedia, is_usable_duration
from .timeline import ItemIdGenerator, TimelineItem, TimelineModel

logger = structlog.get_logger(__name__)

# Tolerance for comparing float boundaries against the minimum quantum.
EPSILON = 1e-9


class TrimEdge(str, Enum):
    START = "start"
    END = "end"


class SnapKind(str, Enum):
    AFTER_ITEM = "after_item"
    BEFORE_ITEM = "before_item"
    ORIGIN = "origin"


@dataclass(frozen=True)
class EditResult:
    applied: bool
    error: Optional[EditError] = None
    item_ids: Tuple[str, ...] = ()
    snap: Optional[SnapKind] = None

    def __bool__(self) -> bool:
        return self.applied


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


class EditOperations:
    def __init__(
        self,
        model: Optional[TimelineModel] = None,
        playhead: Optional[Playhead] = None,
        settings: Optional[EditorSettings] = None,
        id_generator: Optional[ItemIdGenerator] = None,
    ):
        self.settings = settings or EditorSettings()
        self.model = model if model is not None else TimelineModel()
        self.playhead = playhead if playhead is not None else Playhead()
        self._ids = id_generator or ItemIdGenerator()
        self.selected_id: Optional[str] = None
        self._gesture: Optional["_Gesture"] = None

    @property
    def min_quantum(self) -> float:
        return self.settings.min_quantum

    # --- Selection ---
    def select(self, item_id: str) -> EditResult:
        if self.model.get(item_id) is None:
            return self._not_found("select", item_id)
        self.selected_id = item_id
        return EditResult(True, item_ids=(item_id,))

    def clear_selection(self) -> None:
        self.selected_id = None

    def selected_item(self) -> Optional[TimelineItem]:
        if self.selected_id is None:
            return None
        return self.model.get(self.selected_id)

    # --- Place ---
    def place(
        self,
        source: SourceMedia,
        at_time: Optional[float] = None,
        *,
        duration_override: Optional[float] = None,
    ) -> EditResult:
        """Put a whole source on the timeline, appended unless dropped at ``at_time``."""
        if not is_usable_duration(source.total_duration):
            if not is_usable_duration(duration_override):
                raise InvalidSourceError(
                    f"cannot place source with duration {source.total_duration!r}",
                    path=source.path,
                )
            logger.warning(
                "timeline.duration_override",
                path=source.path,
                probed=source.total_duration,
                override=duration_override,
            )
            source = source.with_duration(duration_override)
        if source.total_duration < self.min_quantum:
            raise InvalidSourceError(
                f"source shorter than the minimum duration {self.min_quantum}s",
                path=source.path,
            )
        start = self.model.total_duration() if at_time is None else max(0.0, at_time)
        item = TimelineItem(
            id=self._ids.next(),
            source=source,
            start_time=start,
            trim_start=0.0,
            trim_end=source.total_duration,
        )
        self.model.append(item)
        self._settle()
        logger.debug("timeline.place", item_id=item.id, path=source.path, start=item.start_time)
        return EditResult(True, item_ids=(item.id,))

    # --- Trim ---
    def trim(
        self, item_id: str, edge: Union[TrimEdge, str], requested_time: float
    ) -> EditResult:
        """Drag-handle trim: the requested source time is clamped into the legal range."""
        item = self.model.get(item_id)
        if item is None:
            return self._not_found("trim", item_id)
        edge = TrimEdge(edge)
        q = self.min_quantum
        if edge is TrimEdge.START:
            item.trim_start = _clamp(requested_time, 0.0, item.trim_end - q)
        else:
            item.trim_end = _clamp(
                requested_time, item.trim_start + q, item.source.total_duration
            )
        self._settle()
        return EditResult(True, item_ids=(item_id,))

    def mark_in(self, item_id: Optional[str] = None) -> EditResult:
        """Set the in point at the playhead and pull the playhead back by the trimmed amount."""
        item, error = self._item_under_playhead("mark_in", item_id)
        if item is None:
            return EditResult(False, error)
        t = self.playhead.current_time
        source_time = item.source_time_at(t)
        if source_time > item.trim_end - self.min_quantum + EPSILON:
            return self._invalid_range(
                "mark_in", item.id, "in point would leave less than the minimum duration"
            )
        removed = source_time - item.trim_start
        item.trim_start = source_time
        self._settle()
        self.playhead.move_to(t - removed, self.model.total_duration())
        logger.debug("timeline.mark_in", item_id=item.id, trim_start=source_time)
        return EditResult(True, item_ids=(item.id,))

    def mark_out(self, item_id: Optional[str] = None) -> EditResult:
        """Set the out point at the playhead; the playhead stays where it is."""
        item, error = self._item_under_playhead("mark_out", item_id)
        if item is None:
            return EditResult(False, error)
        source_time = item.source_time_at(self.playhead.current_time)
        if source_time < item.trim_start + self.min_quantum - EPSILON:
            return self._invalid_range(
                "mark_out", item.id, "out point would leave less than the minimum duration"
            )
        item.trim_end = source_time
        self._settle()
        logger.debug("timeline.mark_out", item_id=item.id, trim_end=source_time)
        return EditResult(True, item_ids=(item.id,))

    # --- Split ---
    def split(self, item_id: str, at_time: Optional[float] = None) -> EditResult:
        """Cut an item in two at global time ``at_time`` (the playhead by default)."""
        item = self.model.get(item_id)
        if item is None:
            return self._not_found("split", item_id)
        t = self.playhead.current_time if at_time is None else at_time
        if not item.start_time < t < item.end_time:
            return self._invalid_range("split", item_id, "split point is not inside the item")
        q = self.min_quantum
        if t - item.start_time < q - EPSILON or item.end_time - t < q - EPSILON:
            return self._invalid_range(
                "split", item_id, "split would create an item shorter than the minimum"
            )
        split_point = item.source_time_at(t)
        right = TimelineItem(
            id=self._ids.next(),
            source=item.source,
            start_time=t,
            trim_start=split_point,
            trim_end=item.trim_end,
        )
        item.trim_end = split_point
        self.model.insert(self.model.index_of(item_id) + 1, right)
        self.selected_id = item.id
        self._settle()
        logger.debug("timeline.split", item_id=item_id, new_id=right.id, source_time=split_point)
        return EditResult(True, item_ids=(item.id, right.id))

    # --- Move ---
    def move(
        self, item_id: str, proposed_start: float, snap_threshold: float = 0.0
    ) -> EditResult:
        """Reposition an item, snapping to a neighbour edge or the origin when close.

        ``snap_threshold`` is in seconds; the pointer layer converts its pixel
        tolerance before calling.
        """
        item = self.model.get(item_id)
        if item is None:
            return self._not_found("move", item_id)
        others = [other for other in self.model.items() if other.id != item_id]
        target = self._find_snap(item, others, proposed_start, snap_threshold)
        if target is None:
            item.start_time = max(0.0, proposed_start)
            self._settle()
            return EditResult(True, item_ids=(item_id,))
        index, kind = target
        self.model.reorder(item_id, index)
        self._settle()
        logger.debug("timeline.move_snapped", item_id=item_id, snap=kind.value, index=index)
        return EditResult(True, item_ids=(item_id,), snap=kind)

    def _find_snap(
        self,
        item: TimelineItem,
        others: List[TimelineItem],
        proposed: float,
        threshold: float,
    ) -> Optional[Tuple[int, SnapKind]]:
        if threshold <= 0:
            return None
        for idx, other in enumerate(others):
            if abs(proposed - other.end_time) < threshold:
                return idx + 1, SnapKind.AFTER_ITEM
        for idx, other in enumerate(others):
            if abs(proposed - (other.start_time - item.visible_duration)) < threshold:
                return idx, SnapKind.BEFORE_ITEM
        if abs(proposed) < threshold:
            return 0, SnapKind.ORIGIN
        return None

    # --- Delete ---
    def delete(self, item_id: str) -> EditResult:
        removed = self.model.remove(item_id)
        if removed is None:
            return self._not_found("delete", item_id)
        if self.selected_id == item_id:
            self.selected_id = None
        self._settle()
        logger.debug("timeline.delete", item_id=item_id)
        return EditResult(True, item_ids=(item_id,))

    # --- Gestures ---
    def begin_drag(self, item_id: str) -> Optional["DragGesture"]:
        item = self._gesture_target("drag", item_id)
        if item is None:
            return None
        gesture = DragGesture(self, item_id, item.start_time)
        self._gesture = gesture
        return gesture

    def begin_trim(self, item_id: str, edge: Union[TrimEdge, str]) -> Optional["TrimGesture"]:
        item = self._gesture_target("trim", item_id)
        if item is None:
            return None
        gesture = TrimGesture(self, item_id, TrimEdge(edge), item.trim_start, item.trim_end)
        self._gesture = gesture
        return gesture

    @property
    def active_gesture(self) -> Optional["_Gesture"]:
        return self._gesture

    def _gesture_target(self, kind: str, item_id: str) -> Optional[TimelineItem]:
        if self._gesture is not None:
            logger.warning("gesture.busy", requested=kind, active=type(self._gesture).__name__)
            return None
        item = self.model.get(item_id)
        if item is None:
            logger.warning("edit.not_found", op=f"begin_{kind}", item_id=item_id)
        return item

    def _release_gesture(self, gesture: "_Gesture") -> None:
        if self._gesture is gesture:
            self._gesture = None

    # --- Internals ---
    def _settle(self) -> None:
        self.model.compact()
        self.playhead.move_to(self.playhead.current_time, self.model.total_duration())

    def _item_under_playhead(
        self, op: str, item_id: Optional[str]
    ) -> Tuple[Optional[TimelineItem], Optional[EditError]]:
        t = self.playhead.current_time
        if item_id is None:
            item = self.selected_item() or self.model.item_containing(t)
            if item is None:
                return None, self._not_found(op, None).error
        else:
            item = self.model.get(item_id)
            if item is None:
                return None, self._not_found(op, item_id).error
        if not item.contains(t):
            return None, self._invalid_range(op, item.id, "playhead is not over the item").error
        return item, None

    def _not_found(self, op: str, item_id: Optional[str]) -> EditResult:
        logger.warning("edit.not_found", op=op, item_id=item_id)
        return EditResult(False, NotFoundError(f"{op}: no item {item_id!r}", item_id))

    def _invalid_range(self, op: str, item_id: str, reason: str) -> EditResult:
        logger.info("edit.rejected", op=op, item_id=item_id, reason=reason)
        return EditResult(False, InvalidRangeError(f"{op}: {reason}", item_id))


class GestureState(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class _Gesture:
    def __init__(self, ops: EditOperations, item_id: str):
        self._ops = ops
        self.item_id = item_id
        self.state = GestureState.ACTIVE

    @property
    def active(self) -> bool:
        return self.state is GestureState.ACTIVE

    def _finish(self, state: GestureState) -> None:
        self.state = state
        self._ops._release_gesture(self)

    def _inactive(self) -> EditResult:
        return EditResult(
            False, InvalidRangeError(f"gesture already {self.state.value}", self.item_id)
        )


class DragGesture(_Gesture):
    """Idle -> Dragging -> Idle. The model is untouched until ``end``."""

    def __init__(self, ops: EditOperations, item_id: str, origin_start: float):
        super().__init__(ops, item_id)
        self.origin_start = origin_start
        self.preview_start = origin_start

    def update(self, proposed_start: float) -> bool:
        if not self.active:
            return False
        self.preview_start = max(0.0, proposed_start)
        return True

    def end(self, proposed_start: float, snap_threshold: float = 0.0) -> EditResult:
        if not self.active:
            return self._inactive()
        self._finish(GestureState.FINISHED)
        return self._ops.move(self.item_id, proposed_start, snap_threshold)

    def cancel(self) -> None:
        if self.active:
            self.preview_start = self.origin_start
            self._finish(GestureState.CANCELLED)


class TrimGesture(_Gesture):
    """Live trim: every update is applied (clamped); cancel restores the original range."""

    def __init__(
        self,
        ops: EditOperations,
        item_id: str,
        edge: TrimEdge,
        trim_start: float,
        trim_end: float,
    ):
        super().__init__(ops, item_id)
        self.edge = edge
        self.original = (trim_start, trim_end)

    @property
    def original_value(self) -> float:
        return self.original[0] if self.edge is TrimEdge.START else self.original[1]

    def update(self, requested_time: float) -> EditResult:
        if not self.active:
            return self._inactive()
        return self._ops.trim(self.item_id, self.edge, requested_time)

    def end(self, requested_time: float) -> EditResult:
        if not self.active:
            return self._inactive()
        result = self._ops.trim(self.item_id, self.edge, requested_time)
        self._finish(GestureState.FINISHED)
        return result

    def cancel(self) -> None:
        if not self.active:
            return
        item = self._ops.model.get(self.item_id)
        if item is not None:
            item.trim_start, item.trim_end = self.original
            self._ops._settle()
        self._finish(GestureState.CANCELLED)


__all__ = [
    "EditOperations",
    "EditResult",
    "TrimEdge",
    "SnapKind",
    "DragGesture",
    "TrimGesture",
    "GestureState",
]
