"""Turn the timeline into an export plan: ordered source ranges for the encoder.

Planning is pure. It never touches the filesystem or starts an encoder; the
``services.export`` module consumes the plan.

Resolution policies:
 - ``ResolutionPolicy.source()``: keep native sizes. With several items whose sizes
   differ, the common target is the max width x max height across items, attached only
   to ranges whose native size differs.
 - ``ResolutionPolicy.fixed(w, h)``: every range carries the requested target.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import structlog

from .errors import EmptyTimelineError
from .source import Resolution
from .timeline import TimelineItem

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExportRange:
    source_path: str
    in_point: float
    out_point: float
    target_width: Optional[int] = None
    target_height: Optional[int] = None

    @property
    def duration(self) -> float:
        return self.out_point - self.in_point

    @property
    def needs_scaling(self) -> bool:
        return self.target_width is not None and self.target_height is not None

    @property
    def target(self) -> Optional[Resolution]:
        if not self.needs_scaling:
            return None
        return Resolution(self.target_width, self.target_height)


@dataclass(frozen=True)
class ResolutionPolicy:
    target: Optional[Resolution] = None

    @classmethod
    def source(cls) -> "ResolutionPolicy":
        return cls()

    @classmethod
    def fixed(cls, width: int, height: int) -> "ResolutionPolicy":
        return cls(Resolution(width, height))

    @property
    def is_source(self) -> bool:
        return self.target is None


def _range_for(item: TimelineItem, target: Optional[Resolution] = None) -> ExportRange:
    return ExportRange(
        source_path=item.source.path,
        in_point=item.trim_start,
        out_point=item.trim_end,
        target_width=target.width if target else None,
        target_height=target.height if target else None,
    )


def common_resolution(items: Sequence[TimelineItem]) -> Resolution:
    return Resolution(
        max(item.source.resolution.width for item in items),
        max(item.source.resolution.height for item in items),
    )


class ExportPlanner:
    def plan(
        self,
        items: Sequence[TimelineItem],
        policy: Optional[ResolutionPolicy] = None,
    ) -> List[ExportRange]:
        policy = policy or ResolutionPolicy.source()
        if not items:
            raise EmptyTimelineError("No clips to export")
        if len(items) == 1:
            # Single range: direct trim + encode, no concatenation.
            ranges = [_range_for(items[0], policy.target)]
        elif not policy.is_source:
            ranges = [_range_for(item, policy.target) for item in items]
        else:
            common = common_resolution(items)
            ranges = [
                _range_for(item, None if item.source.resolution == common else common)
                for item in items
            ]
        logger.info(
            "export.planned",
            ranges=len(ranges),
            rescaled=sum(1 for r in ranges if r.needs_scaling),
            policy="source" if policy.is_source else str(policy.target),
        )
        return ranges


def needs_normalization(ranges: Sequence[ExportRange]) -> bool:
    return any(r.needs_scaling for r in ranges)


def plan_duration(ranges: Sequence[ExportRange]) -> float:
    return sum(r.duration for r in ranges)


__all__ = [
    "ExportRange",
    "ExportPlanner",
    "ResolutionPolicy",
    "common_resolution",
    "needs_normalization",
    "plan_duration",
]
