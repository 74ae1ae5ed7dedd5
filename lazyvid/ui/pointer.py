"""Pointer events (pixels) -> edit gestures and seeks (seconds).

The timeline strip widget forwards raw x positions here; nothing below this layer
sees a pixel. Drag offsets are measured from the press position, so the item keeps
its grip point under the cursor.
"""

from __future__ import annotations

from typing import Optional, Union

from ..core.editing import DragGesture, EditOperations, EditResult, TrimEdge, TrimGesture
from ..core.playhead import Playhead, PlayheadMapper
from ..utils.timescale import TimeScale


class PointerTranslator:
    def __init__(
        self,
        ops: EditOperations,
        scale: Optional[TimeScale] = None,
        playhead: Optional[Playhead] = None,
    ):
        self.ops = ops
        self.scale = scale or TimeScale.from_settings(ops.settings)
        self.mapper = PlayheadMapper(ops.model, playhead or ops.playhead)
        self._gesture: Optional[Union[DragGesture, TrimGesture]] = None
        self._press_px = 0.0
        self._origin = 0.0

    @property
    def gesture(self) -> Optional[Union[DragGesture, TrimGesture]]:
        return self._gesture

    def press_item(self, item_id: str, x_px: float) -> bool:
        gesture = self.ops.begin_drag(item_id)
        if gesture is None:
            return False
        self.ops.select(item_id)
        self._start(gesture, x_px, gesture.origin_start)
        return True

    def press_trim_handle(
        self, item_id: str, edge: Union[TrimEdge, str], x_px: float
    ) -> bool:
        gesture = self.ops.begin_trim(item_id, edge)
        if gesture is None:
            return False
        self._start(gesture, x_px, gesture.original_value)
        return True

    def drag(self, x_px: float) -> None:
        if self._gesture is None:
            return
        self._gesture.update(self._proposed(x_px))

    def release(self, x_px: float) -> Optional[EditResult]:
        gesture, self._gesture = self._gesture, None
        if gesture is None:
            return None
        if isinstance(gesture, DragGesture):
            threshold = self.scale.threshold_seconds(self.ops.settings.snap_threshold_px)
            return gesture.end(self._proposed(x_px), threshold)
        return gesture.end(self._proposed(x_px))

    def cancel(self) -> None:
        gesture, self._gesture = self._gesture, None
        if gesture is not None:
            gesture.cancel()

    def click_ruler(self, x_px: float) -> float:
        """Seek to the time under ``x_px``; returns the new playhead time."""
        self.mapper.seek(self.scale.px_to_time(x_px, self.ops.model.total_duration()))
        return self.mapper.playhead.current_time

    def _start(self, gesture, x_px: float, origin: float) -> None:
        self._gesture = gesture
        self._press_px = x_px
        self._origin = origin

    def _proposed(self, x_px: float) -> float:
        return self._origin + self.scale.px_delta_to_seconds(x_px - self._press_px)


__all__ = ["PointerTranslator"]
