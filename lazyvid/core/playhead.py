"""Playhead, global <-> source time mapping, and sequential multi-item playback.

``SequentialPlayback`` is driven from outside: the preview collaborator reports the
source-relative time of the frame it just showed through ``tick``. The state machine
only ever moves forward through the item list, and switches source exactly once per
item boundary.

    Stopped --play()--> Playing(index)
    Playing(i) --tick(t >= trim_end), i+1 exists--> Playing(i + 1)   [request source]
    Playing(last) --tick(t >= trim_end)--> Stopped
    Playing(i) --pause()/stop()--> Stopped   [playhead untouched]
    Playing(i) --tick from another file--> Playing(i)   [ignored]
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, NamedTuple, Optional

import structlog

from .timeline import TimelineItem, TimelineModel

logger = structlog.get_logger(__name__)

class Playhead:
    """Single global-time cursor. Exactly one interaction writes it at a time."""

    def __init__(self, current_time: float = 0.0):
        self.current_time = max(0.0, current_time)

    def move_to(self, t: float, upper: Optional[float] = None) -> float:
        t = max(0.0, t)
        if upper is not None:
            t = min(t, max(0.0, upper))
        self.current_time = t
        return t

    def __repr__(self) -> str:
        return f"Playhead({self.current_time:.3f})"


class PlayheadPosition(NamedTuple):
    item: TimelineItem
    source_time: float
    index: int


class PlayheadMapper:
    def __init__(self, model: TimelineModel, playhead: Playhead):
        self.model = model
        self.playhead = playhead

    def seek(self, global_time: float) -> None:
        self.playhead.move_to(global_time, self.model.total_duration())

    def resolve(self, global_time: float) -> Optional[PlayheadPosition]:
        for idx, item in enumerate(self.model.items()):
            if item.contains(global_time):
                return PlayheadPosition(item, item.source_time_at(global_time), idx)
        return None

    def resolve_current(self) -> Optional[PlayheadPosition]:
        return self.resolve(self.playhead.current_time)

    def to_global(self, item_id: str, source_time: float) -> Optional[float]:
        """Inverse of ``resolve``; None when the source time is outside the item's trim."""
        item = self.model.get(item_id)
        if item is None:
            return None
        if not item.trim_start <= source_time <= item.trim_end:
            return None
        return item.global_time_at(source_time)


class PlaybackState(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"


SourceRequest = Callable[[TimelineItem, float], None]


class SequentialPlayback:
    def __init__(
        self,
        model: TimelineModel,
        playhead: Playhead,
        *,
        on_source_request: Optional[SourceRequest] = None,
        on_position: Optional[Callable[[float], None]] = None,
        on_state: Optional[Callable[[PlaybackState], None]] = None,
    ):
        self.model = model
        self.playhead = playhead
        self.mapper = PlayheadMapper(model, playhead)
        self.state = PlaybackState.STOPPED
        self.current_index: Optional[int] = None
        self._on_source_request = on_source_request
        self._on_position = on_position
        self._on_state = on_state

    @property
    def playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    def current_item(self) -> Optional[TimelineItem]:
        if self.current_index is None:
            return None
        items = self.model.items()
        if self.current_index >= len(items):
            return None
        return items[self.current_index]

    def play(self) -> bool:
        if self.playing:
            return True
        items = self.model.items()
        if not items:
            logger.info("playback.empty_timeline")
            return False
        position = self.mapper.resolve_current()
        if position is None:
            index, item = 0, items[0]
            source_time = item.trim_start
            self.playhead.move_to(item.start_time)
        else:
            index, item, source_time = position.index, position.item, position.source_time
        self.current_index = index
        self._set_state(PlaybackState.PLAYING)
        self._request(item, source_time)
        return True

    def pause(self) -> None:
        if self.playing:
            self._set_state(PlaybackState.STOPPED)

    stop = pause

    def tick(self, source_time: float, path: Optional[str] = None) -> None:
        """Advance from the source-relative time of the frame just presented.

        ``path`` names the file the frame came from. A frame from any file other than
        the current item's source is a leftover from before a switch and is dropped.
        """
        if not self.playing:
            return
        item = self.current_item()
        if item is None:
            self._set_state(PlaybackState.STOPPED)
            return
        if path is not None and path != item.source.path:
            logger.debug("playback.foreign_tick", path=path, expected=item.source.path)
            return
        if source_time >= item.trim_end:
            self._advance(item)
            return
        t = item.global_time_at(max(source_time, item.trim_start))
        self.playhead.move_to(t, self.model.total_duration())
        self._emit_position()

    def _advance(self, finished: TimelineItem) -> None:
        items = self.model.items()
        next_index = (self.current_index or 0) + 1
        if next_index >= len(items):
            self.playhead.move_to(finished.end_time, self.model.total_duration())
            self._emit_position()
            logger.debug("playback.finished", item_id=finished.id)
            self._set_state(PlaybackState.STOPPED)
            return
        nxt = items[next_index]
        self.current_index = next_index
        self.playhead.move_to(nxt.start_time, self.model.total_duration())
        self._emit_position()
        logger.debug("playback.switch", from_id=finished.id, to_id=nxt.id, index=next_index)
        self._request(nxt, nxt.trim_start)

    def _request(self, item: TimelineItem, source_time: float) -> None:
        if self._on_source_request is not None:
            self._on_source_request(item, source_time)

    def _emit_position(self) -> None:
        if self._on_position is not None:
            self._on_position(self.playhead.current_time)

    def _set_state(self, state: PlaybackState) -> None:
        if state is self.state:
            return
        self.state = state
        if state is PlaybackState.STOPPED:
            self.current_index = None
        if self._on_state is not None:
            self._on_state(state)


__all__ = [
    "Playhead",
    "PlayheadPosition",
    "PlayheadMapper",
    "PlaybackState",
    "SequentialPlayback",
]
