"""Pixel <-> seconds conversion for the timeline strip.

The domain layer only speaks seconds. Everything that starts life as a pixel (pointer
positions, drag deltas, the snap tolerance) goes through a ``TimeScale`` first.
"""

from __future__ import annotations

from typing import Optional

from ..config import EditorSettings


class TimeScale:
    def __init__(
        self,
        pixels_per_second: float = 10.0,
        *,
        minimum: float = 5.0,
        maximum: float = 50.0,
        zoom_step: float = 1.25,
    ):
        if minimum <= 0 or maximum < minimum:
            raise ValueError("zoom bounds must satisfy 0 < minimum <= maximum")
        self.minimum = minimum
        self.maximum = maximum
        self.zoom_step = zoom_step
        self.pixels_per_second = self._clamp_zoom(pixels_per_second)

    @classmethod
    def from_settings(cls, settings: EditorSettings) -> "TimeScale":
        return cls(
            settings.pixels_per_second,
            minimum=settings.min_pixels_per_second,
            maximum=settings.max_pixels_per_second,
            zoom_step=settings.zoom_step,
        )

    def time_to_px(self, seconds: float) -> float:
        return seconds * self.pixels_per_second

    def px_to_time(self, px: float, max_duration: Optional[float] = None) -> float:
        """Seconds under pixel ``px``, clamped to [0, max_duration]."""
        t = max(0.0, px / self.pixels_per_second)
        if max_duration is not None:
            t = min(t, max(0.0, max_duration))
        return t

    def px_delta_to_seconds(self, dx: float) -> float:
        return dx / self.pixels_per_second

    def threshold_seconds(self, px: float) -> float:
        return abs(px) / self.pixels_per_second

    def set_zoom(self, pixels_per_second: float) -> float:
        self.pixels_per_second = self._clamp_zoom(pixels_per_second)
        return self.pixels_per_second

    def zoom_in(self) -> float:
        return self.set_zoom(self.pixels_per_second * self.zoom_step)

    def zoom_out(self) -> float:
        return self.set_zoom(self.pixels_per_second / self.zoom_step)

    def _clamp_zoom(self, value: float) -> float:
        return max(self.minimum, min(value, self.maximum))


def ruler_interval(visible_duration: float) -> int:
    """Seconds between labelled ruler ticks for the visible span."""
    if visible_duration > 60:
        return 10
    if visible_duration > 30:
        return 5
    return 1


__all__ = ["TimeScale", "ruler_interval"]
