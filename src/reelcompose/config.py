"""Render configuration surface.

Owned by the caller (CLI or library user): output geometry, frame rate,
duration, background, output path and the [start_time, end_time) range.
Validated on construction, before any sampling begins.
"""

from dataclasses import dataclass

from .common import frame_count, to_rgba, validate_time_range
from .errors import ConfigError


@dataclass(frozen=True)
class RenderConfig:
    width: int
    height: int
    fps: float
    duration: float
    background_color: tuple[int, int, int, int] = (0, 0, 0, 255)
    output_path: str = "output.mp4"
    start_time: float = 0.0
    end_time: float | None = None

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigError(
                    f"config.{name}", f"{name} must be a positive integer, got {value!r}"
                )
        for name in ("fps", "duration"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                raise ConfigError(
                    f"config.{name}", f"{name} must be a positive number, got {value!r}"
                )
        try:
            object.__setattr__(self, "background_color", to_rgba(self.background_color))
        except ValueError as exc:
            raise ConfigError("config.background", str(exc)) from exc
        validate_time_range(self.start_time, self.resolved_end_time, self.duration)

    @property
    def resolved_end_time(self) -> float:
        return self.duration if self.end_time is None else self.end_time

    @property
    def frames(self) -> int:
        return frame_count(self.start_time, self.resolved_end_time, self.fps)
