"""reelcompose.common — shared utilities.

Contains: color parsing, path variable resolution, font loading, the
frame-count rule, time-range validation and h:m:s formatting.
"""

import math
import re
from functools import lru_cache
from pathlib import Path

from PIL import ImageFont

from .errors import ConfigError


# ── Font paths ─────────────────────────────────────────────────────
# Inter preferred, DejaVu Sans as fallback.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int, int]:
    """Convert '#RRGGBB' or '#RRGGBBAA' (hash optional) to an RGBA tuple.

    Six-digit colors are fully opaque.
    """
    hex_str = hex_str.lstrip("#")
    if len(hex_str) not in (6, 8) or not all(
        c in "0123456789abcdefABCDEF" for c in hex_str
    ):
        raise ValueError(f"Invalid hex color: '#{hex_str}'")
    r, g, b = (int(hex_str[i:i + 2], 16) for i in (0, 2, 4))
    a = int(hex_str[6:8], 16) if len(hex_str) == 8 else 255
    return (r, g, b, a)


def to_rgba(value) -> tuple[int, int, int, int]:
    """Normalize an RGB/RGBA sequence to an RGBA int tuple."""
    try:
        channels = tuple(int(c) for c in value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid color: {value!r}") from None
    if len(channels) == 3:
        channels = (*channels, 255)
    if len(channels) != 4 or not all(0 <= c <= 255 for c in channels):
        raise ValueError(f"Invalid color: {value!r}")
    return channels


def resolve_color(
    value, palette: dict[str, tuple[int, int, int, int]],
) -> tuple[int, int, int, int]:
    """Resolve a color reference — palette key, inline hex, or RGB(A) list.

    Palette keys are tried first. If the value starts with '#' or is 6/8 hex
    chars, it's parsed as inline hex. Otherwise raises ValueError.
    """
    if isinstance(value, (list, tuple)):
        return to_rgba(value)
    if not isinstance(value, str):
        raise ValueError(f"Unknown color: {value!r}")
    if value in palette:
        return palette[value]
    if value.startswith("#") or (
        len(value) in (6, 8)
        and all(c in "0123456789abcdefABCDEF" for c in value)
    ):
        return parse_hex_color(value)
    raise ValueError(
        f"Unknown color: '{value}'. Not in palette and not a hex value."
    )


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font loading ───────────────────────────────────────────────────

@lru_cache(maxsize=64)
def load_font(
    size: int, font_path: str | None = None,
) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a font at the given size, cached per (size, path).

    An explicit font_path must load; otherwise Inter (or the DejaVu
    fallback) is used, and Pillow's default font as a last resort.
    """
    if font_path is not None:
        return ImageFont.truetype(str(font_path), size=size)
    for candidate in FONT_PATHS:
        if candidate.exists():
            try:
                return ImageFont.truetype(str(candidate), size=size, index=0)
            except (OSError, IndexError):
                continue
    # Last resort: Pillow default font (scalable on Pillow >= 10.1).
    try:
        return ImageFont.load_default(size=size)
    except TypeError:
        return ImageFont.load_default()


# ── Time utilities ─────────────────────────────────────────────────

def frame_count(start_time: float, end_time: float, fps: float) -> int:
    """Number of frames in [start_time, end_time) at fps.

    floor((end - start) * fps). Every caller (render loop, validation,
    CLI range checks) goes through here.
    """
    return max(0, math.floor((end_time - start_time) * fps))


def validate_time_range(
    start_time: float, end_time: float, duration: float,
) -> None:
    """Enforce 0 <= start_time < end_time <= duration."""
    if not (0 <= start_time < end_time <= duration):
        raise ConfigError(
            "config.time_range",
            f"start/end time must satisfy 0 <= start < end <= duration "
            f"(got start={start_time}, end={end_time}, duration={duration})",
        )


def format_hms(seconds: float) -> str:
    """Format seconds as HH:MM:SS (rounded, negative clamps to zero)."""
    total = round(max(0.0, seconds))
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"
