"""Live preview driver — wall-clock paced, shares the sampling core.

Each tick computes t = start_time + elapsed wall time, clamped into
[start_time, end_time) at the last frame time the offline render would
produce, then samples, composites and presents the frame and passes
edge-triggered audio to the live sink. The loop ends at a tick boundary
when the stop event is set or the sink asks to close; a tick in progress
always completes.

This driver never feeds the offline render path: wall-clock jitter only
changes which instants get previewed, never what a given instant looks
like.
"""

import logging
import threading
import time
from typing import Callable

from .audio import AudioEventCollector
from .compositor import render_frame
from .model import Timeline
from .sinks import LiveSink


logger = logging.getLogger(__name__)


class PreviewDriver:
    """Real-time preview loop.

    Args:
        timeline: Timeline to preview.
        live_sink: Receives present() / play_instant() each tick.
        start_time: Preview range start.
        end_time: Preview range end; defaults to the timeline duration.
        clock: Monotonic seconds source (injectable for tests).
        sleep: Sleep function (injectable for tests).
        stop_event: Optional external stop signal.
    """

    def __init__(
        self,
        timeline: Timeline,
        live_sink: LiveSink,
        start_time: float = 0.0,
        end_time: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        stop_event: threading.Event | None = None,
    ):
        self.timeline = timeline
        self.live_sink = live_sink
        self.start_time = start_time
        self.end_time = timeline.duration if end_time is None else end_time
        timeline.validate_range(self.start_time, self.end_time)
        self.clock = clock
        self.sleep = sleep
        self.stop_event = stop_event or threading.Event()

        frames = timeline.frame_count(self.start_time, self.end_time)
        self.last_frame_time = self.start_time + max(0, frames - 1) / timeline.fps
        self.collector = AudioEventCollector(timeline.audio, self.start_time)

    def stop(self) -> None:
        self.stop_event.set()

    def _should_stop(self) -> bool:
        if self.stop_event.is_set():
            return True
        should_close = getattr(self.live_sink, "should_close", None)
        return bool(should_close and should_close())

    def time_at(self, elapsed: float) -> float:
        """Timeline time for a given elapsed wall time."""
        return min(self.last_frame_time, max(self.start_time, self.start_time + elapsed))

    def tick(self, t: float) -> None:
        """Render and present one instant, and pass its audio to the sink."""
        self.live_sink.present(render_frame(self.timeline, t))
        audio = self.collector.resolve_instant(t)
        self.live_sink.play_instant(audio.active, audio.fired)

    def run(self, max_ticks: int | None = None) -> int:
        """Run until stopped (or max_ticks). Returns the number of ticks."""
        tick_interval = 1.0 / self.timeline.fps
        began = self.clock()
        ticks = 0
        logger.info(
            "Preview %.3fs-%.3fs at %s fps", self.start_time, self.end_time, self.timeline.fps,
        )
        while not self._should_stop():
            if max_ticks is not None and ticks >= max_ticks:
                break
            tick_started = self.clock()
            self.tick(self.time_at(tick_started - began))
            ticks += 1

            remaining = tick_interval - (self.clock() - tick_started)
            if remaining > 0:
                self.sleep(remaining)
        logger.info("Preview stopped after %d tick(s)", ticks)
        return ticks
