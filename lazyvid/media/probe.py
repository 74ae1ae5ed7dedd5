"""Probe a media file into a ``SourceMedia``.

MoviePy opens the file through its ffmpeg reader, which gives us duration and frame
size; the file size comes from the filesystem. Streamed containers (e.g. webm from
a live capture) can report no duration at all, and MoviePy refuses to open those.
When the caller supplied ``duration_override`` we fall back to ``ffmpeg.probe`` for the
frame size and trust the override for the length.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import ffmpeg
import structlog
from moviepy import VideoFileClip

from ..core.errors import InvalidSourceError
from ..core.source import (
    Resolution,
    SourceMedia,
    display_name_for,
    is_usable_duration,
    resolve_duration,
)

logger = structlog.get_logger(__name__)


def _read_with_moviepy(path: str) -> Tuple[Optional[float], Resolution]:
    clip = VideoFileClip(path, audio=False)
    try:
        width, height = (int(v) for v in (clip.size or (0, 0)))
        return clip.duration, Resolution(width, height)
    finally:
        clip.close()


def _read_with_ffprobe(path: str) -> Tuple[Optional[float], Resolution]:
    info = ffmpeg.probe(path)
    video = next((s for s in info.get("streams", []) if s.get("codec_type") == "video"), None)
    if video is None:
        raise InvalidSourceError("no video stream", path=path)
    raw = video.get("duration", info.get("format", {}).get("duration"))
    try:
        duration = float(raw) if raw not in (None, "N/A") else None
    except ValueError:
        duration = None
    return duration, Resolution(int(video.get("width", 0)), int(video.get("height", 0)))


def probe(path: str | Path, duration_override: Optional[float] = None) -> SourceMedia:
    path_str = str(path)
    p = Path(path_str)
    if not p.is_file():
        raise InvalidSourceError("file does not exist", path=path_str)
    try:
        probed, resolution = _read_with_moviepy(path_str)
    except (OSError, ValueError, KeyError, IndexError) as e:
        if not is_usable_duration(duration_override):
            raise InvalidSourceError(f"could not read media: {e}", path=path_str) from e
        logger.info("media.probe_fallback", path=path_str, reason=str(e))
        try:
            probed, resolution = _read_with_ffprobe(path_str)
        except ffmpeg.Error as probe_error:
            stderr = (probe_error.stderr or b"").decode("utf-8", errors="ignore")
            raise InvalidSourceError(
                f"could not read media: {stderr.strip() or probe_error}", path=path_str
            ) from probe_error
    duration = resolve_duration(probed, duration_override, path=path_str)
    media = SourceMedia(
        path=path_str,
        total_duration=duration,
        resolution=resolution,
        file_size_bytes=p.stat().st_size,
        display_name=display_name_for(path_str),
    )
    logger.debug(
        "media.probed",
        path=path_str,
        duration=duration,
        resolution=str(media.resolution),
        size=media.file_size_bytes,
    )
    return media


__all__ = ["probe"]
