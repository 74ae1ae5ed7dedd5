"""Export pipeline: realise an export plan with ffmpeg.

Responsibilities:
 - Single range: trim + encode straight from the source (-ss/-t), no concatenation.
 - Several ranges, no rescaling: one pass through the concat demuxer, using
   ``inpoint``/``outpoint`` directives so the sources are never pre-cut.
 - Several ranges where some carry a target resolution: re-encode only those ranges
   to scaled/padded intermediates, then concatenate.
 - Report 0-100 progress parsed from ffmpeg's ``time=`` output.
 - Remove every temporary (list file, intermediates) on success and on failure.

Export is single-flight and not cancellable; the shell must not start a second one
while ``ExportWorker.finished`` has not fired.
"""

from __future__ import annotations

import re
import shutil
import subprocess
import tempfile
from collections import deque
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import ffmpeg
import structlog
from PySide6.QtCore import QObject, Signal

from ..config import EditorSettings
from ..core.errors import EmptyTimelineError, ExportError, TimelineError
from ..core.export_plan import (
    ExportPlanner,
    ExportRange,
    ResolutionPolicy,
    plan_duration,
)
from ..core.timeline import TimelineModel

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int], None]  # 0 - 100
Runner = Callable[[List[str], float, Optional[ProgressCallback]], None]

_TIME_PATTERN = re.compile(r"time=(\d{2}):(\d{2}):(\d{2})\.(\d{2})")
_OUTPUT_TAIL_LINES = 20


class ExportSettings:
    def __init__(
        self,
        video_codec: str = "libx264",
        audio_codec: str = "aac",
        ffmpeg_binary: str = "ffmpeg",
        temp_dir: str | None = None,
    ):
        self.video_codec = video_codec
        self.audio_codec = audio_codec
        self.ffmpeg_binary = ffmpeg_binary
        self.temp_dir = temp_dir

    @classmethod
    def from_editor_settings(cls, settings: EditorSettings) -> "ExportSettings":
        return cls(
            video_codec=settings.video_codec,
            audio_codec=settings.audio_codec,
            ffmpeg_binary=settings.ffmpeg_binary,
            temp_dir=settings.temp_dir,
        )


# --- Text helpers ---
def format_seconds(value: float) -> str:
    """Compact decimal seconds: 5.0 -> '5', 1.5 -> '1.5'."""
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text or "0"


def quote_concat_path(path: str) -> str:
    normalized = path.replace("\\", "/")
    return "'" + normalized.replace("'", "'\\''") + "'"


def concat_list_text(ranges: Sequence[ExportRange]) -> str:
    """Concat demuxer script: one file/inpoint/outpoint block per range."""
    return "\n".join(
        f"file {quote_concat_path(r.source_path)}\n"
        f"inpoint {format_seconds(r.in_point)}\n"
        f"outpoint {format_seconds(r.out_point)}"
        for r in ranges
    )


def parse_progress(line: str, total_seconds: float) -> Optional[int]:
    match = _TIME_PATTERN.search(line)
    if not match or total_seconds <= 0:
        return None
    h, m, s, cs = (int(g) for g in match.groups())
    processed = h * 3600 + m * 60 + s + cs / 100.0
    return max(0, min(100, int(processed / total_seconds * 100)))


# --- Command builders ---
def _scale_filter(width: int, height: int) -> str:
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,setsar=1"
    )


def _codec_args(settings: ExportSettings) -> dict:
    return {"vcodec": settings.video_codec, "acodec": settings.audio_codec}


def build_single_command(
    export_range: ExportRange, output: Path, settings: ExportSettings
) -> List[str]:
    stream = ffmpeg.input(
        export_range.source_path, ss=export_range.in_point, t=export_range.duration
    )
    kwargs = _codec_args(settings)
    if export_range.needs_scaling:
        kwargs["vf"] = _scale_filter(export_range.target_width, export_range.target_height)
    return (
        ffmpeg.output(stream, str(output), **kwargs)
        .overwrite_output()
        .compile(cmd=settings.ffmpeg_binary)
    )


def build_normalize_command(
    export_range: ExportRange, intermediate: Path, settings: ExportSettings
) -> List[str]:
    if not export_range.needs_scaling:
        raise ValueError("range has no target resolution to normalise to")
    return build_single_command(export_range, intermediate, settings)


def build_concat_command(
    list_file: Path, output: Path, settings: ExportSettings
) -> List[str]:
    stream = ffmpeg.input(str(list_file), f="concat", safe=0)
    return (
        ffmpeg.output(stream, str(output), **_codec_args(settings))
        .overwrite_output()
        .compile(cmd=settings.ffmpeg_binary)
    )


# --- Running ---
def run_ffmpeg(
    args: List[str], total_seconds: float, progress: Optional[ProgressCallback] = None
) -> None:
    """Run one ffmpeg invocation, streaming progress. Raises ExportError on failure."""
    tail: deque[str] = deque(maxlen=_OUTPUT_TAIL_LINES)
    try:
        process = subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            universal_newlines=True,
            encoding="utf-8",
            errors="ignore",
        )
    except OSError as e:
        raise ExportError(f"could not start {args[0]}: {e}") from e
    try:
        for line in iter(process.stdout.readline, ""):
            tail.append(line.rstrip())
            percent = parse_progress(line, total_seconds)
            if percent is not None and progress is not None:
                progress(percent)
    except BaseException:
        process.kill()
        raise
    finally:
        process.stdout.close()
        returncode = process.wait()
    if returncode != 0:
        reason = "\n".join(entry for entry in tail if entry) or f"ffmpeg exited with code {returncode}"
        raise ExportError(reason, returncode=returncode)


class _ProgressReporter:
    """Folds per-step ffmpeg progress into one non-decreasing 0-100 stream."""

    def __init__(self, callback: Optional[ProgressCallback], steps: int):
        self._callback = callback
        self._steps = max(1, steps)
        self._last = -1

    def step(self, index: int) -> ProgressCallback:
        def report(percent: int) -> None:
            self._emit(int((index * 100 + percent) / self._steps))

        return report

    def finish(self) -> None:
        self._emit(100)

    def _emit(self, value: int) -> None:
        value = max(0, min(100, value))
        if value <= self._last:
            return
        self._last = value
        if self._callback is not None:
            self._callback(value)


def export_plan(
    ranges: Sequence[ExportRange],
    output_path: str | Path,
    settings: ExportSettings | None = None,
    progress: Optional[ProgressCallback] = None,
    runner: Optional[Runner] = None,
) -> Path:
    """Render ``ranges`` into ``output_path``.

    Parameters
    ----------
    ranges: Export plan, in timeline order.
    output_path: Destination file; parent directories are created.
    settings: Codecs, ffmpeg binary and temp directory.
    progress: Optional callback receiving integer percent, ending at 100.
    runner: ffmpeg invoker; defaults to ``run_ffmpeg``.

    Raises
    ------
    EmptyTimelineError if ``ranges`` is empty, ExportError if ffmpeg fails.
    """
    if not ranges:
        raise EmptyTimelineError("No clips to export")
    settings = settings or ExportSettings()
    runner = runner or run_ffmpeg
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    rescaled = [r for r in ranges if r.needs_scaling] if len(ranges) > 1 else []
    reporter = _ProgressReporter(progress, len(rescaled) + 1)
    logger.info(
        "export.started",
        output=str(output),
        ranges=len(ranges),
        rescaled=len(rescaled),
        duration=plan_duration(ranges),
    )
    try:
        if len(ranges) == 1:
            runner(
                build_single_command(ranges[0], output, settings),
                ranges[0].duration,
                reporter.step(0),
            )
        else:
            _export_concat(ranges, output, settings, runner, reporter)
    except ExportError as e:
        logger.error("export.failed", output=str(output), reason=e.reason)
        raise
    reporter.finish()
    logger.info("export.finished", output=str(output))
    return output


def _export_concat(
    ranges: Sequence[ExportRange],
    output: Path,
    settings: ExportSettings,
    runner: Runner,
    reporter: _ProgressReporter,
) -> None:
    if settings.temp_dir:
        Path(settings.temp_dir).mkdir(parents=True, exist_ok=True)
    workdir = Path(tempfile.mkdtemp(prefix="lazyvid-export-", dir=settings.temp_dir))
    try:
        step = 0
        concat_ranges: List[ExportRange] = []
        for idx, r in enumerate(ranges):
            if not r.needs_scaling:
                concat_ranges.append(r)
                continue
            intermediate = workdir / f"segment-{idx:03d}.mp4"
            logger.debug("export.normalize", index=idx, target=f"{r.target_width}x{r.target_height}")
            runner(build_normalize_command(r, intermediate, settings), r.duration, reporter.step(step))
            step += 1
            concat_ranges.append(ExportRange(str(intermediate), 0.0, r.duration))
        list_file = workdir / "concat-list.txt"
        list_file.write_text(concat_list_text(concat_ranges), encoding="utf-8")
        runner(
            build_concat_command(list_file, output, settings),
            plan_duration(ranges),
            reporter.step(step),
        )
    finally:
        shutil.rmtree(workdir, ignore_errors=True)


def export_timeline(
    model: TimelineModel,
    output_path: str | Path,
    policy: ResolutionPolicy | None = None,
    settings: ExportSettings | None = None,
    progress: Optional[ProgressCallback] = None,
) -> Path:
    ranges = ExportPlanner().plan(model.items(), policy)
    return export_plan(ranges, output_path, settings, progress)


class ExportWorker(QObject):
    """Runs ``export_plan`` on a QThread; the raw encoder message is passed through on failure."""

    progress = Signal(int)
    finished = Signal(bool, str)  # success, output path or failure reason

    def __init__(
        self,
        ranges: Sequence[ExportRange],
        output_path: str | Path,
        settings: ExportSettings | None = None,
        runner: Optional[Runner] = None,
    ):
        super().__init__()
        self._ranges = list(ranges)
        self._output = Path(output_path)
        self._settings = settings
        self._runner = runner

    def run(self):  # executed in thread
        try:
            out = export_plan(
                self._ranges,
                self._output,
                self._settings,
                progress=self.progress.emit,
                runner=self._runner,
            )
        except ExportError as e:
            self.finished.emit(False, e.reason)
            return
        except (TimelineError, OSError) as e:
            logger.error("export.aborted", output=str(self._output), reason=str(e))
            self.finished.emit(False, str(e))
            return
        self.finished.emit(True, str(out))


__all__ = [
    "ExportSettings",
    "ExportWorker",
    "ProgressCallback",
    "build_concat_command",
    "build_normalize_command",
    "build_single_command",
    "concat_list_text",
    "export_plan",
    "export_timeline",
    "format_seconds",
    "parse_progress",
    "quote_concat_path",
    "run_ffmpeg",
]
