"""Frame, audio-mix and live-display sinks.

The render drivers only talk to the protocols defined here. Concrete
sinks: an in-memory frame collector, an ffmpeg encoder fed raw RGBA on
stdin, and an ffmpeg audio mixer driven by a filter graph built from
resolved AudioInstructions. ffmpeg comes from imageio-ffmpeg.
"""

import enum
import logging
import subprocess
from pathlib import Path
from typing import Protocol, Sequence

import imageio_ffmpeg
import numpy as np

from .audio import AudioInstruction, ActiveTrack
from .errors import SinkError
from .model import SfxEvent


logger = logging.getLogger(__name__)

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


class SinkResponse(enum.Enum):
    CONTINUE = "continue"
    STOP = "stop"


# ── Protocols ────────────────────────────────────────────────────


class FrameSink(Protocol):
    def accept(
        self, frame_index: int, rgba: np.ndarray, width: int, height: int,
    ) -> SinkResponse: ...


class AudioMixSink(Protocol):
    def accept(
        self, instructions: Sequence[AudioInstruction], output_path: str,
    ) -> bool: ...


class LiveSink(Protocol):
    def present(self, rgba: np.ndarray) -> None: ...

    def play_instant(
        self, active: Sequence[ActiveTrack], fired: Sequence[SfxEvent],
    ) -> None: ...

    def should_close(self) -> bool: ...


# ── In-memory ────────────────────────────────────────────────────


class MemoryFrameSink:
    """Collect frames in a list; optionally stop after ``limit`` frames."""

    def __init__(self, limit: int | None = None):
        self.limit = limit
        self.frames: list[tuple[int, np.ndarray]] = []

    def accept(self, frame_index, rgba, width, height) -> SinkResponse:
        self.frames.append((frame_index, rgba))
        if self.limit is not None and len(self.frames) >= self.limit:
            return SinkResponse.STOP
        return SinkResponse.CONTINUE

    @property
    def indices(self) -> list[int]:
        return [i for i, _ in self.frames]


# ── ffmpeg video encoder ─────────────────────────────────────────


class FfmpegFrameSink:
    """Pipe raw RGBA frames into ffmpeg (libx264, yuv420p).

    Use as a context manager, or call close() to flush and check the
    encoder's exit status.
    """

    def __init__(
        self,
        output_path: str | Path,
        width: int,
        height: int,
        fps: float,
        crf: int = 18,
    ):
        self.output_path = str(output_path)
        self.width = width
        self.height = height
        self.fps = fps
        Path(self.output_path).parent.mkdir(parents=True, exist_ok=True)

        cmd = [
            _FFMPEG, "-y",
            "-loglevel", "error",
            "-f", "rawvideo",
            "-pix_fmt", "rgba",
            "-s", f"{width}x{height}",
            "-r", str(fps),
            "-i", "-",
            "-c:v", "libx264",
            "-pix_fmt", "yuv420p",
            "-crf", str(crf),
            self.output_path,
        ]
        logger.debug("Starting encoder: %s", " ".join(cmd))
        try:
            self._process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise SinkError("sink.ffmpeg.spawn", f"failed to spawn ffmpeg: {exc}") from exc

    def accept(self, frame_index, rgba, width, height) -> SinkResponse:
        if (width, height) != (self.width, self.height):
            raise SinkError(
                "sink.ffmpeg.frame_size",
                f"frame {frame_index} is {width}x{height}, "
                f"encoder expects {self.width}x{self.height}",
            )
        expected = self.width * self.height * 4
        data = np.ascontiguousarray(rgba, dtype=np.uint8).tobytes()
        if len(data) != expected:
            raise SinkError(
                "sink.ffmpeg.frame_size",
                f"frame size mismatch: got {len(data)} bytes, expected {expected}",
            )
        try:
            self._process.stdin.write(data)
        except (BrokenPipeError, ValueError) as exc:
            raise SinkError(
                "sink.ffmpeg.write",
                f"ffmpeg stopped accepting frames at frame {frame_index}",
            ) from exc
        return SinkResponse.CONTINUE

    def close(self) -> None:
        if self._process.stdin and not self._process.stdin.closed:
            try:
                self._process.stdin.close()
            except BrokenPipeError:
                pass
        stderr = self._process.stderr.read().decode(errors="replace") if self._process.stderr else ""
        status = self._process.wait()
        if status != 0:
            raise SinkError(
                "sink.ffmpeg.exit",
                f"ffmpeg exited with status {status}: {stderr.strip()}",
            )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            self._process.kill()
            self._process.wait()
        return False


# ── ffmpeg audio mixer ───────────────────────────────────────────


def build_mix_command(
    instructions: Sequence[AudioInstruction],
    output_path: str,
    total_duration: float,
) -> list[str]:
    """Build an ffmpeg command that mixes instructions into one file.

    Each input is trimmed to [source_offset, source_offset + duration),
    gain-adjusted and delayed to its onset, then all are summed with amix.
    Looping inputs are read with -stream_loop -1 so the trim can run past
    the end of the file. With no instructions, a silent track of
    total_duration is produced.
    """
    cmd = [_FFMPEG, "-y", "-loglevel", "error"]
    if not instructions:
        return cmd + [
            "-f", "lavfi", "-i", "anullsrc=r=44100:cl=stereo",
            "-t", f"{total_duration:.3f}",
            output_path,
        ]

    filter_parts = []
    labels = []
    for i, ins in enumerate(instructions):
        if ins.loop:
            cmd.extend(["-stream_loop", "-1"])
        cmd.extend(["-i", ins.file])
        delay_ms = round(ins.onset * 1000)
        filter_parts.append(
            f"[{i}:a]atrim=start={ins.source_offset:.3f}"
            f":duration={ins.duration:.3f},asetpts=PTS-STARTPTS,"
            f"volume={ins.volume:.3f},adelay={delay_ms}:all=1[a{i}]"
        )
        labels.append(f"[a{i}]")

    filter_parts.append(
        f"{''.join(labels)}amix=inputs={len(labels)}:duration=longest"
        f":normalize=0,apad,atrim=duration={total_duration:.3f}[aout]"
    )
    return cmd + [
        "-filter_complex", ";".join(filter_parts),
        "-map", "[aout]",
        output_path,
    ]


class FfmpegAudioMixSink:
    """Offline audio mixer: writes the mixed schedule to output_path."""

    def __init__(self, total_duration: float):
        self.total_duration = total_duration

    def accept(self, instructions, output_path) -> bool:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        cmd = build_mix_command(instructions, str(output_path), self.total_duration)
        logger.debug("Mixing %d audio instruction(s): %s", len(instructions), " ".join(cmd))
        result = subprocess.run(cmd, capture_output=True)
        if result.returncode != 0:
            logger.error(
                "ffmpeg audio mix failed (%d): %s",
                result.returncode, result.stderr.decode(errors="replace").strip(),
            )
            return False
        return True


def mux_audio(video_path: str, audio_path: str, output_path: str) -> None:
    """Combine a silent video and a mixed audio track into output_path."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    cmd = [
        _FFMPEG, "-y", "-loglevel", "error",
        "-i", str(video_path),
        "-i", str(audio_path),
        "-map", "0:v", "-map", "1:a",
        "-c:v", "copy", "-c:a", "aac",
        "-shortest",
        str(output_path),
    ]
    result = subprocess.run(cmd, capture_output=True)
    if result.returncode != 0:
        raise SinkError(
            "sink.ffmpeg.mux",
            f"ffmpeg mux failed: {result.stderr.decode(errors='replace').strip()}",
        )
