"""Time formatting for labels, the ruler and log output.

``format_time`` gives millisecond precision (mm:ss.mmm) for playhead and trim labels;
``format_clock`` gives the coarse m:ss used on ruler ticks and item badges.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

__all__ = ["format_time", "format_clock"]


def _millis(seconds: float) -> int:
    # Decimal(str()) keeps 1.2345 -> 1235 instead of binary-float rounding down.
    return int(
        (Decimal(str(seconds)) * Decimal(1000)).to_integral_value(
            rounding=ROUND_HALF_UP
        )
    )


def format_time(seconds: float) -> str:
    """Return mm:ss.mmm, rounding milliseconds half-up. Negative input shows as zero."""
    if seconds < 0 or not math.isfinite(seconds):
        seconds = 0.0
    minutes, rem = divmod(_millis(seconds), 60000)
    secs, ms = divmod(rem, 1000)
    return f"{minutes:02d}:{secs:02d}.{ms:03d}"


def format_clock(seconds: float) -> str:
    """Return m:ss with whole seconds floored (125 -> '2:05', 3665 -> '61:05')."""
    if seconds < 0 or not math.isfinite(seconds):
        seconds = 0.0
    whole = int(math.floor(seconds))
    return f"{whole // 60}:{whole % 60:02d}"
