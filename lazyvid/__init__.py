"""Top-level package exports.

Public API surface (keep minimal):
 - EditorSettings (configuration)
 - TimelineModel, EditOperations (timeline engine)
 - PlayheadMapper, SequentialPlayback (playback mapping)
 - ExportPlanner, ResolutionPolicy (export planning)

Qt-backed pieces (``media.playback``, ``services.export.ExportWorker``, ``ui.pointer``)
are imported from their modules so the engine can be used without a Qt runtime.
"""

from .config import EditorSettings  # noqa: F401
from .core.editing import EditOperations, EditResult, TrimEdge  # noqa: F401
from .core.errors import (  # noqa: F401
    EmptyTimelineError,
    ExportError,
    InvalidRangeError,
    InvalidSourceError,
    NotFoundError,
)
from .core.export_plan import ExportPlanner, ExportRange, ResolutionPolicy  # noqa: F401
from .core.playhead import Playhead, PlayheadMapper, SequentialPlayback  # noqa: F401
from .core.source import Resolution, SourceCatalog, SourceMedia  # noqa: F401
from .core.timeline import TimelineItem, TimelineModel  # noqa: F401

__all__ = [
    "EditorSettings",
    "EditOperations",
    "EditResult",
    "TrimEdge",
    "EmptyTimelineError",
    "ExportError",
    "InvalidRangeError",
    "InvalidSourceError",
    "NotFoundError",
    "ExportPlanner",
    "ExportRange",
    "ResolutionPolicy",
    "Playhead",
    "PlayheadMapper",
    "SequentialPlayback",
    "Resolution",
    "SourceCatalog",
    "SourceMedia",
    "TimelineItem",
    "TimelineModel",
]
