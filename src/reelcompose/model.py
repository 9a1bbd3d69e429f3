"""Timeline data model: timeline → layers → clips → objects + transforms.

Everything here is immutable once constructed. Constructing a Timeline
validates the whole graph, so structural problems (overlapping clips,
clips outside the timeline, bad audio bounds) surface before any
sampling begins. Layer order is z-order: later layers draw on top.
"""

from dataclasses import dataclass, field

from .assets import AudioAsset
from .common import frame_count, to_rgba, validate_time_range
from .errors import ConfigError, TimelineModelError
from .objects import OBJECT_TYPES, RenderObject
from .transform import TransformSpec


# ── Clips and layers ─────────────────────────────────────────────


@dataclass(frozen=True)
class Clip:
    """One object placed on a layer for [start_time, end_time)."""

    start_time: float
    end_time: float
    object: RenderObject
    transform: TransformSpec = field(default_factory=TransformSpec)

    def __post_init__(self) -> None:
        if not self.start_time < self.end_time:
            raise TimelineModelError(
                "model.clip_bounds",
                f"clip start_time ({self.start_time}) must be < end_time ({self.end_time})",
            )
        if getattr(self.object, "kind", None) not in OBJECT_TYPES:
            raise TimelineModelError(
                "model.object", f"Not a renderable object: {self.object!r}"
            )

    def is_active(self, t: float) -> bool:
        return self.start_time <= t < self.end_time

    def local_time(self, t: float) -> float:
        return t - self.start_time

    def overlaps(self, other: "Clip") -> bool:
        return self.start_time < other.end_time and other.start_time < self.end_time


@dataclass(frozen=True)
class Layer:
    clips: tuple[Clip, ...] = ()
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "clips", tuple(self.clips))

    def active_clips(self, t: float) -> list[tuple[int, Clip]]:
        return [(i, c) for i, c in enumerate(self.clips) if c.is_active(t)]


# ── Audio ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MusicTrack:
    file: AudioAsset
    start_time: float
    end_time: float
    loop: bool = False
    volume: float = 1.0

    @property
    def track_duration(self) -> float:
        return self.file.duration


@dataclass(frozen=True)
class SfxEvent:
    file: AudioAsset
    time: float
    volume: float = 1.0


@dataclass(frozen=True)
class AudioSchedule:
    music: tuple[MusicTrack, ...] = ()
    sfx: tuple[SfxEvent, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "music", tuple(self.music))
        object.__setattr__(self, "sfx", tuple(self.sfx))


# ── Timeline ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Timeline:
    """Root of the model: output geometry, layer stack and audio schedule."""

    duration: float
    fps: float
    width: int
    height: int
    background_color: tuple[int, int, int, int] = (0, 0, 0, 255)
    layers: tuple[Layer, ...] = ()
    audio: AudioSchedule = field(default_factory=AudioSchedule)

    def __post_init__(self) -> None:
        object.__setattr__(self, "layers", tuple(self.layers))
        self._validate_config()
        self._validate_layers()
        self._validate_audio()

    def frame_count(self, start_time: float = 0.0, end_time: float | None = None) -> int:
        end = self.duration if end_time is None else end_time
        return frame_count(start_time, end, self.fps)

    def validate_range(self, start_time: float, end_time: float) -> None:
        validate_time_range(start_time, end_time, self.duration)

    # ── validation ──

    def _validate_config(self) -> None:
        for name in ("duration", "fps", "width", "height"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(
                    f"config.{name}", f"{name} must be a positive number, got {value!r}"
                )
        if self.width != int(self.width) or self.height != int(self.height):
            raise ConfigError(
                "config.resolution",
                f"width/height must be whole pixels, got {self.width}x{self.height}",
            )
        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))
        try:
            color = to_rgba(self.background_color)
        except ValueError as exc:
            raise ConfigError("config.background", str(exc)) from exc
        object.__setattr__(self, "background_color", color)

    def _validate_layers(self) -> None:
        for li, layer in enumerate(self.layers):
            for ci, clip in enumerate(layer.clips):
                if not (0 <= clip.start_time < clip.end_time <= self.duration):
                    raise TimelineModelError(
                        "model.clip_bounds",
                        f"Layer {li}, clip {ci}: bounds must satisfy "
                        f"0 <= start < end <= duration ({self.duration}), "
                        f"got [{clip.start_time}, {clip.end_time})",
                    )
                for cj in range(ci):
                    if clip.overlaps(layer.clips[cj]):
                        raise TimelineModelError(
                            "model.clip_overlap",
                            f"Layer {li}: clip {ci} overlaps clip {cj} "
                            f"([{clip.start_time}, {clip.end_time}) vs "
                            f"[{layer.clips[cj].start_time}, {layer.clips[cj].end_time}))",
                        )

    def _validate_audio(self) -> None:
        for i, track in enumerate(self.audio.music):
            if not (0 <= track.start_time < track.end_time <= self.duration):
                raise TimelineModelError(
                    "model.audio_bounds",
                    f"Music track {i} ({track.file.path}): bounds must satisfy "
                    f"0 <= start < end <= duration, got "
                    f"[{track.start_time}, {track.end_time})",
                )
            if track.volume < 0:
                raise TimelineModelError(
                    "model.audio_volume",
                    f"Music track {i}: volume must be >= 0, got {track.volume}",
                )
        for i, event in enumerate(self.audio.sfx):
            if not (0 <= event.time <= self.duration):
                raise TimelineModelError(
                    "model.audio_bounds",
                    f"Sfx event {i} ({event.file.path}): time {event.time} "
                    f"outside [0, {self.duration}]",
                )
            if event.volume < 0:
                raise TimelineModelError(
                    "model.audio_volume",
                    f"Sfx event {i}: volume must be >= 0, got {event.volume}",
                )
