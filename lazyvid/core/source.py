"""Probed source media and the catalog that holds them.

A ``SourceMedia`` is immutable once probed. Timeline items share a reference to it;
they never own or mutate it. When a live-captured file reports no usable duration,
the caller may supply an override, which produces a corrected copy via
``SourceMedia.with_duration``.
"""

from __future__ import annotations

import itertools
import math
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import structlog

from .errors import InvalidSourceError

logger = structlog.get_logger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".mov", ".webm")
_VIDEO_PATTERN = re.compile(r"\.(mp4|mov|webm)$", re.IGNORECASE)

# Probed and override durations further apart than this are logged.
DURATION_MISMATCH_TOLERANCE = 0.5


def is_supported_video(path: str | Path) -> bool:
    return bool(_VIDEO_PATTERN.search(str(path)))


def is_usable_duration(duration: Optional[float]) -> bool:
    return duration is not None and math.isfinite(duration) and duration > 0


def display_name_for(path: str | Path) -> str:
    """Basename of ``path`` whether it uses Windows or POSIX separators."""
    return re.split(r"[\\/]", str(path))[-1]


def resolve_duration(
    probed: Optional[float],
    override: Optional[float] = None,
    path: Optional[str] = None,
) -> float:
    """Pick the duration the engine will trust for a source.

    A usable probed value always wins; an override only fills in for a probe that
    reported nothing usable. Overrides are never checked against the real length,
    so a disagreement with a finite probe is logged.
    """
    if is_usable_duration(probed):
        if override is not None and abs(override - probed) > DURATION_MISMATCH_TOLERANCE:
            logger.warning(
                "source.override_mismatch", path=path, probed=probed, override=override
            )
        return float(probed)
    if is_usable_duration(override):
        logger.info("source.duration_override", path=path, override=override)
        return float(override)
    raise InvalidSourceError(
        f"source has no usable duration ({probed!r}) and no override was given",
        path=path,
    )


@dataclass(frozen=True)
class Resolution:
    width: int = 0
    height: int = 0

    @property
    def known(self) -> bool:
        return self.width > 0 and self.height > 0

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class SourceMedia:
    path: str
    total_duration: float
    resolution: Resolution = field(default_factory=Resolution)
    file_size_bytes: int = 0
    display_name: str = ""
    media_id: Optional[int] = None
    tags: Tuple[str, ...] = ()
    added_at: Optional[datetime] = None

    @property
    def usable(self) -> bool:
        return is_usable_duration(self.total_duration)

    def with_duration(self, duration: float) -> "SourceMedia":
        return replace(self, total_duration=float(duration))


Prober = Callable[..., SourceMedia]


class SourceCatalog:
    """In-memory library of probed media, keyed by a catalog-issued id."""

    def __init__(self, prober: Optional[Prober] = None):
        self._media: Dict[int, SourceMedia] = {}
        self._ids = itertools.count()
        self._prober = prober

    def __len__(self) -> int:
        return len(self._media)

    def __contains__(self, media_id: object) -> bool:
        return media_id in self._media

    def add(
        self,
        path: str | Path,
        *,
        display_name: Optional[str] = None,
        tags: Iterable[str] = (),
        duration_override: Optional[float] = None,
    ) -> SourceMedia:
        """Probe ``path`` and register it. Raises InvalidSourceError for unusable media."""
        path_str = str(path)
        if not is_supported_video(path_str):
            raise InvalidSourceError(
                f"unsupported file type (expected one of {', '.join(VIDEO_EXTENSIONS)})",
                path=path_str,
            )
        prober = self._prober
        if prober is None:
            from ..media.probe import probe as prober
        media = prober(path_str, duration_override=duration_override)
        return self.add_media(media, display_name=display_name, tags=tags)

    def add_media(
        self,
        media: SourceMedia,
        *,
        display_name: Optional[str] = None,
        tags: Iterable[str] = (),
    ) -> SourceMedia:
        if not media.usable:
            raise InvalidSourceError("source has no usable duration", path=media.path)
        media_id = next(self._ids)
        registered = replace(
            media,
            media_id=media_id,
            display_name=display_name or media.display_name or display_name_for(media.path),
            tags=tuple(tags) or media.tags,
            added_at=media.added_at or datetime.now(timezone.utc),
        )
        self._media[media_id] = registered
        logger.debug("catalog.added", media_id=media_id, path=registered.path)
        return registered

    def remove(self, media_id: int) -> bool:
        return self._media.pop(media_id, None) is not None

    def get(self, media_id: int) -> Optional[SourceMedia]:
        return self._media.get(media_id)

    def all(self) -> List[SourceMedia]:
        return list(self._media.values())

    def search(self, query: str) -> List[SourceMedia]:
        needle = query.lower()
        return [
            m
            for m in self._media.values()
            if needle in m.display_name.lower()
            or any(needle in tag.lower() for tag in m.tags)
        ]

    def clear(self) -> None:
        self._media.clear()
        self._ids = itertools.count()

    def statistics(self) -> dict:
        media = self.all()
        return {
            "total": len(media),
            "total_duration": sum(m.total_duration for m in media),
            "oldest": media[0].added_at if media else None,
            "newest": media[-1].added_at if media else None,
        }

    def scan_directory(self, directory: str | Path) -> List[SourceMedia]:
        """Add every supported video in ``directory``; unreadable files are skipped."""
        added: List[SourceMedia] = []
        for entry in sorted(Path(directory).iterdir()):
            if not entry.is_file() or not is_supported_video(entry.name):
                continue
            try:
                added.append(self.add(entry))
            except InvalidSourceError as e:
                logger.warning("catalog.scan_skipped", path=str(entry), reason=str(e))
        logger.info("catalog.scanned", directory=str(directory), added=len(added))
        return added


__all__ = [
    "Resolution",
    "SourceMedia",
    "SourceCatalog",
    "VIDEO_EXTENSIONS",
    "is_supported_video",
    "is_usable_duration",
    "display_name_for",
    "resolve_duration",
]
