"""Offline render driver — deterministic, non-realtime.

For frame_index in 0 .. frames, where frames = floor((end - start) * fps),
the frame at t = start + frame_index / fps is sampled, composited and
handed to the frame sink in strictly increasing frame_index order. Range
audio is resolved once, before the first frame, and handed to the audio
mix sink.

Frames can be computed on a thread pool (sampling and compositing share
no mutable state). Results are delivered in order regardless of which
worker finishes first; at most ``workers * 2`` frames are in flight, so
a slow sink applies backpressure instead of buffering the whole render.

The sink may return SinkResponse.STOP to end the render early at a frame
boundary. That truncates the output; it is not an error.
"""

import logging
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .audio import AudioInstruction, resolve_range
from .common import format_hms
from .compositor import render_frame
from .errors import ReelError, SinkError
from .model import Timeline
from .sinks import AudioMixSink, FrameSink, SinkResponse


logger = logging.getLogger(__name__)


# ── Progress reporting ───────────────────────────────────────────


@dataclass(frozen=True)
class RenderProgress:
    enabled: bool = False
    log_every_frames: int = 100
    show_time: bool = True
    show_eta: bool = True


class _ProgressTracker:
    """Logs `frames: i/N (p%) time hh:mm:ss/hh:mm:ss eta hh:mm:ss` lines.

    ETA comes from the per-frame time over the most recent 100-frame
    window; until a window completes, elapsed wall time is shown instead.
    """

    WINDOW = 100

    def __init__(self, progress: RenderProgress, frames: int, fps: float):
        self.progress = progress
        self.frames = frames
        self.fps = fps
        self.overall_start = time.monotonic()
        self.window_start = self.overall_start
        self.window_frame = 0
        self.last_logged = 0
        self.per_frame_secs: float | None = None

    def frame_done(self, frame_number: int) -> None:
        if not self.progress.enabled:
            return

        if frame_number - self.window_frame >= self.WINDOW:
            now = time.monotonic()
            self.per_frame_secs = (now - self.window_start) / (frame_number - self.window_frame)
            self.window_frame = frame_number
            self.window_start = now

        if frame_number - self.last_logged < self.progress.log_every_frames:
            return
        self.last_logged = frame_number
        logger.info(self.format_line(frame_number))

    def format_line(self, frame_number: int) -> str:
        percent = frame_number / max(1, self.frames) * 100
        line = f"frames: {frame_number}/{self.frames} ({percent:.1f}%)"
        if self.progress.show_time:
            rendered = format_hms(frame_number / self.fps)
            total = format_hms(self.frames / self.fps)
            line += f" time {rendered}/{total}"
            if self.progress.show_eta:
                if self.per_frame_secs is not None:
                    eta = (self.frames - frame_number) * self.per_frame_secs
                    line += f" eta {format_hms(eta)}"
                else:
                    elapsed = time.monotonic() - self.overall_start
                    line += f" elapsed {format_hms(elapsed)}"
        return line


# ── Render driver ────────────────────────────────────────────────


@dataclass
class RenderResult:
    frames_total: int
    frames_delivered: int = 0
    stopped_early: bool = False
    audio_instructions: list[AudioInstruction] = field(default_factory=list)


def frame_time(start_time: float, frame_index: int, fps: float) -> float:
    return start_time + frame_index / fps


def _deliver(frame_sink: FrameSink, index: int, rgba, timeline: Timeline) -> SinkResponse:
    try:
        return frame_sink.accept(index, rgba, timeline.width, timeline.height)
    except ReelError:
        raise
    except Exception as exc:
        raise SinkError(
            "sink.frame_rejected", f"frame sink rejected frame {index}: {exc}",
        ) from exc


def render_timeline(
    timeline: Timeline,
    frame_sink: FrameSink,
    start_time: float = 0.0,
    end_time: float | None = None,
    audio_sink: AudioMixSink | None = None,
    audio_output_path: str | None = None,
    workers: int = 1,
    progress: RenderProgress | None = None,
) -> RenderResult:
    """Render [start_time, end_time) of a timeline into the sinks.

    Args:
        timeline: Validated timeline (read-only, shared across workers).
        frame_sink: Receives (frame_index, rgba, width, height) in order.
        start_time: Range start in seconds.
        end_time: Range end in seconds; defaults to the timeline duration.
        audio_sink: Optional offline mixer; receives the range audio once,
            before any frame is rendered.
        audio_output_path: Where the audio sink should write its mix.
        workers: Threads computing frames. 1 renders inline.
        progress: Optional progress logging settings.

    Returns:
        RenderResult with counts, the early-stop flag and the audio plan.

    Raises:
        ConfigError: Invalid range.
        SinkError: A sink raised, or the audio sink reported failure.
    """
    end = timeline.duration if end_time is None else end_time
    timeline.validate_range(start_time, end)
    frames = timeline.frame_count(start_time, end)
    result = RenderResult(frames_total=frames)

    result.audio_instructions = resolve_range(timeline.audio, start_time, end)
    if audio_sink is not None:
        try:
            accepted = audio_sink.accept(result.audio_instructions, audio_output_path)
        except ReelError:
            raise
        except Exception as exc:
            raise SinkError("sink.audio_rejected", f"audio mix sink failed: {exc}") from exc
        if not accepted:
            raise SinkError(
                "sink.audio_rejected",
                f"audio mix sink rejected {len(result.audio_instructions)} instruction(s)",
            )

    logger.info(
        "Rendering %d frame(s) %.3fs-%.3fs at %s fps (%dx%d, %d worker(s))",
        frames, start_time, end, timeline.fps, timeline.width, timeline.height, workers,
    )
    tracker = _ProgressTracker(progress or RenderProgress(), frames, timeline.fps)

    if workers <= 1:
        for index in range(frames):
            rgba = render_frame(timeline, frame_time(start_time, index, timeline.fps))
            if not _handoff(frame_sink, index, rgba, timeline, result, tracker):
                break
    else:
        _render_parallel(timeline, frame_sink, start_time, frames, workers, result, tracker)

    if result.stopped_early:
        logger.info(
            "Frame sink stopped the render after %d/%d frame(s)",
            result.frames_delivered, frames,
        )
    return result


def _handoff(frame_sink, index, rgba, timeline, result, tracker) -> bool:
    response = _deliver(frame_sink, index, rgba, timeline)
    result.frames_delivered += 1
    tracker.frame_done(index + 1)
    if response is SinkResponse.STOP:
        result.stopped_early = result.frames_delivered < result.frames_total
        return False
    return True


def _render_parallel(timeline, frame_sink, start_time, frames, workers, result, tracker):
    window = workers * 2
    with ThreadPoolExecutor(max_workers=workers) as pool:
        pending = deque()
        next_index = 0
        try:
            while next_index < frames or pending:
                while next_index < frames and len(pending) < window:
                    t = frame_time(start_time, next_index, timeline.fps)
                    pending.append((next_index, pool.submit(render_frame, timeline, t)))
                    next_index += 1
                index, future = pending.popleft()
                if not _handoff(frame_sink, index, future.result(), timeline, result, tracker):
                    break
        finally:
            for _, future in pending:
                future.cancel()
