"""Renderable object variants.

Objects are a tagged union: each variant is a frozen dataclass with a
``kind`` tag and its own static content descriptor. Geometry is in
object-local pixels before the clip's transform is applied. Colors are
RGBA tuples; the color's alpha is the object's own opacity, multiplied
with the sampled opacity channel at composite time.

The compositor dispatches on ``kind`` once per sampled state.
"""

import math
import numbers
from dataclasses import dataclass
from typing import ClassVar, Union

from PIL import Image, ImageDraw

from .assets import ImageAsset
from .common import load_font, to_rgba
from .errors import TimelineModelError


Color = tuple[int, int, int, int]

WHITE = (255, 255, 255, 255)


def _color(obj, name: str) -> None:
    value = getattr(obj, name)
    if value is None:
        return
    try:
        object.__setattr__(obj, name, to_rgba(value))
    except ValueError as exc:
        raise TimelineModelError("model.color", f"{obj.kind}.{name}: {exc}") from exc


def _positive(obj, *names: str) -> None:
    for name in names:
        value = getattr(obj, name)
        if not isinstance(value, numbers.Real) or isinstance(value, bool) or not value > 0:
            raise TimelineModelError(
                "model.geometry",
                f"{obj.kind}.{name} must be a number > 0, got {value!r}",
            )


def _numeric(obj, *names: str, minimum: float | None = None) -> None:
    for name in names:
        value = getattr(obj, name)
        if (
            not isinstance(value, numbers.Real) or isinstance(value, bool)
            or (minimum is not None and value < minimum)
        ):
            bound = "" if minimum is None else f" >= {minimum}"
            raise TimelineModelError(
                "model.geometry",
                f"{obj.kind}.{name} must be a number{bound}, got {value!r}",
            )


@dataclass(frozen=True)
class RectShape:
    kind: ClassVar[str] = "rect"

    width: float
    height: float
    color: Color = WHITE
    corner_radius: float = 0.0
    outline: Color | None = None
    outline_width: int = 0

    def __post_init__(self) -> None:
        _positive(self, "width", "height")
        _numeric(self, "corner_radius", "outline_width", minimum=0)
        _color(self, "color")
        _color(self, "outline")


@dataclass(frozen=True)
class CircleShape:
    kind: ClassVar[str] = "circle"

    radius: float
    color: Color = WHITE
    outline: Color | None = None
    outline_width: int = 0

    def __post_init__(self) -> None:
        _positive(self, "radius")
        _numeric(self, "outline_width", minimum=0)
        _color(self, "color")
        _color(self, "outline")


@dataclass(frozen=True)
class LineShape:
    """Straight segment between two object-local points."""

    kind: ClassVar[str] = "line"

    x1: float
    y1: float
    x2: float
    y2: float
    width: float = 2.0
    color: Color = WHITE

    def __post_init__(self) -> None:
        _positive(self, "width")
        _numeric(self, "x1", "y1", "x2", "y2")
        _color(self, "color")


@dataclass(frozen=True)
class TextObject:
    """A single styled text run (newlines allowed, no shaping)."""

    kind: ClassVar[str] = "text"

    text: str
    font_size: int = 32
    color: Color = WHITE
    font_path: str | None = None
    align: str = "left"

    def __post_init__(self) -> None:
        if not self.text:
            raise TimelineModelError("model.text", "text must be non-empty")
        _positive(self, "font_size")
        if self.align not in ("left", "center", "right"):
            raise TimelineModelError(
                "model.text", f"invalid align '{self.align}'"
            )
        _color(self, "color")


@dataclass(frozen=True)
class ImageObject:
    kind: ClassVar[str] = "image"

    asset: ImageAsset


@dataclass(frozen=True)
class VideoClipPlaceholder:
    """Stand-in box for a video clip; drawn as a labelled flat fill."""

    kind: ClassVar[str] = "video"

    width: float
    height: float
    label: str = ""
    color: Color = (48, 48, 48, 255)
    source: str | None = None

    def __post_init__(self) -> None:
        _positive(self, "width", "height")
        _color(self, "color")


RenderObject = Union[
    RectShape, CircleShape, LineShape, TextObject, ImageObject, VideoClipPlaceholder,
]

OBJECT_TYPES: dict[str, type] = {
    cls.kind: cls
    for cls in (RectShape, CircleShape, LineShape, TextObject, ImageObject, VideoClipPlaceholder)
}


# ── Local geometry ───────────────────────────────────────────────

def text_bbox(obj: TextObject) -> tuple[int, int, int, int]:
    """Pixel bbox (left, top, right, bottom) of the text as Pillow draws it."""
    font = load_font(obj.font_size, obj.font_path)
    draw = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    return draw.textbbox((0, 0), obj.text, font=font, align=obj.align)


def line_bounds(obj: LineShape) -> tuple[float, float, float, float]:
    """(min_x, min_y, width, height) of the stroked segment."""
    pad = obj.width / 2
    min_x = min(obj.x1, obj.x2) - pad
    min_y = min(obj.y1, obj.y2) - pad
    return (
        min_x, min_y,
        abs(obj.x2 - obj.x1) + obj.width,
        abs(obj.y2 - obj.y1) + obj.width,
    )


def object_size(obj: RenderObject) -> tuple[float, float]:
    """Unscaled local (width, height) of an object's bounding box."""
    if isinstance(obj, (RectShape, VideoClipPlaceholder)):
        return (float(obj.width), float(obj.height))
    if isinstance(obj, CircleShape):
        return (2.0 * obj.radius, 2.0 * obj.radius)
    if isinstance(obj, LineShape):
        _, _, w, h = line_bounds(obj)
        return (w, h)
    if isinstance(obj, TextObject):
        left, top, right, bottom = text_bbox(obj)
        return (float(right - left), float(bottom - top))
    if isinstance(obj, ImageObject):
        return (float(obj.asset.width), float(obj.asset.height))
    raise TypeError(f"Not a renderable object: {obj!r}")


def raster_size(obj: RenderObject) -> tuple[int, int]:
    """Integer pixel size used when rasterizing the object locally."""
    w, h = object_size(obj)
    return (max(1, math.ceil(w)), max(1, math.ceil(h)))
