"""Qt-facing controller for multi-item timeline playback.

Goals:
- Expose ``SequentialPlayback`` through Qt signals so the preview collaborator can
  connect without knowing about the engine types.
- Keep decoding out of the engine: the collaborator plays whatever source it is told
  to, and reports back the source time of each presented frame via ``tick``.

Signals:
    sourceRequested(str, float)   # path + source time to start playing from
    itemChanged(str)              # id of the item now playing
    positionChanged(float)        # global playhead time
    stateChanged(str)             # 'stopped'|'playing'

Typical wiring with a QMediaPlayer-like preview::

    controller.sourceRequested.connect(preview.openAt)
    preview.positionChanged.connect(
        lambda ms: controller.tick(ms / 1000.0, preview.currentPath())
    )

Passing the path lets the engine drop frames the preview still reports from the
previous file after a switch.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, Signal

from ..core.playhead import (
    PlaybackState,
    Playhead,
    PlayheadMapper,
    SequentialPlayback,
)
from ..core.timeline import TimelineItem, TimelineModel


class TimelinePlaybackController(QObject):
    sourceRequested = Signal(str, float)
    itemChanged = Signal(str)
    positionChanged = Signal(float)
    stateChanged = Signal(str)

    def __init__(
        self,
        model: TimelineModel,
        playhead: Playhead,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._mapper = PlayheadMapper(model, playhead)
        self._playback = SequentialPlayback(
            model,
            playhead,
            on_source_request=self._onSourceRequest,
            on_position=self.positionChanged.emit,
            on_state=self._onState,
        )

    # Public API
    def play(self) -> bool:
        return self._playback.play()

    def pause(self):
        self._playback.pause()

    def stop(self):
        self._playback.stop()

    def tick(self, source_time: float, path: Optional[str] = None):
        self._playback.tick(source_time, path)

    def seek(self, t: float):
        """Manual seek; playback is paused first so the clock stops owning the playhead."""
        self._playback.pause()
        self._mapper.seek(t)
        self.positionChanged.emit(self.position())

    def position(self) -> float:
        return self._mapper.playhead.current_time

    def is_playing(self) -> bool:
        return self._playback.playing

    def current_item(self) -> Optional[TimelineItem]:
        return self._playback.current_item()

    # Internal
    def _onSourceRequest(self, item: TimelineItem, source_time: float):
        self.itemChanged.emit(item.id)
        self.sourceRequested.emit(item.source.path, source_time)

    def _onState(self, state: PlaybackState):
        self.stateChanged.emit(state.value)


__all__ = ["TimelinePlaybackController"]
