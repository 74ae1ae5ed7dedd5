"""Editor settings shared by the timeline engine, the pointer layer and export.

Settings are plain values injected into each component; nothing reads a global.
``EditorSettings.from_env`` lets a shell (or a test run) override individual fields
through ``LAZYVID_<FIELD>`` environment variables, e.g. ``LAZYVID_MIN_QUANTUM=0.04``.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional

import structlog

logger = structlog.get_logger(__name__)

ENV_PREFIX = "LAZYVID_"


@dataclass(frozen=True)
class EditorSettings:
    min_quantum: float = 0.1  # seconds, smallest visible duration of an item
    snap_threshold_px: float = 10.0
    pixels_per_second: float = 10.0
    min_pixels_per_second: float = 5.0
    max_pixels_per_second: float = 50.0
    zoom_step: float = 1.25
    ffmpeg_binary: str = "ffmpeg"
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    temp_dir: Optional[str] = None  # None -> system temp directory
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EditorSettings":
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            try:
                overrides[f.name] = _coerce(f.name, raw)
            except ValueError:
                logger.warning("settings.invalid_override", field=f.name, value=raw)
        return replace(cls(), **overrides)


def _coerce(name: str, raw: str) -> Any:
    default = getattr(EditorSettings, name)
    if name == "temp_dir":
        return raw or None
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(raw)
    if isinstance(default, float):
        value = float(raw)
        # Numeric settings are all positive quantities.
        if not math.isfinite(value) or value <= 0:
            raise ValueError(raw)
        return value
    return raw


__all__ = ["EditorSettings", "ENV_PREFIX"]
