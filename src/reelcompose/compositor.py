"""Compositor — turn sampled states into one RGBA frame.

Each object is rasterized into a local RGBA patch with Pillow, scaled
and rotated about its center, then alpha-blended onto the frame at its
sampled draw center. Blending is straight (non-premultiplied) "over":

    rgb   = src * a + dst * (1 - a)
    alpha = a * 255 + dst_alpha * (1 - a)
    a     = src_alpha / 255 * opacity

in 8-bit RGBA, with no color-space conversion. Only pixels covered by an
object's patch are touched. The background is always opaque.
"""

import numpy as np
from PIL import Image, ImageDraw

from .common import load_font
from .model import Timeline
from .objects import (
    CircleShape,
    ImageObject,
    LineShape,
    RectShape,
    RenderObject,
    TextObject,
    VideoClipPlaceholder,
    line_bounds,
    raster_size,
    text_bbox,
)
from .sampler import SampledState, sample


# ── Local rasterizers ────────────────────────────────────────────
# Each returns an (h, w, 4) uint8 straight-alpha patch at unscaled size.


def _blank(obj: RenderObject) -> tuple[Image.Image, ImageDraw.ImageDraw]:
    img = Image.new("RGBA", raster_size(obj), (0, 0, 0, 0))
    return img, ImageDraw.Draw(img)


def _rasterize_rect(obj: RectShape) -> np.ndarray:
    img, draw = _blank(obj)
    box = [(0, 0), (img.width - 1, img.height - 1)]
    kwargs = {"fill": obj.color}
    if obj.outline is not None and obj.outline_width > 0:
        kwargs.update(outline=obj.outline, width=obj.outline_width)
    if obj.corner_radius > 0:
        draw.rounded_rectangle(box, radius=obj.corner_radius, **kwargs)
    else:
        draw.rectangle(box, **kwargs)
    return np.array(img)


def _rasterize_circle(obj: CircleShape) -> np.ndarray:
    img, draw = _blank(obj)
    kwargs = {"fill": obj.color}
    if obj.outline is not None and obj.outline_width > 0:
        kwargs.update(outline=obj.outline, width=obj.outline_width)
    draw.ellipse([(0, 0), (img.width - 1, img.height - 1)], **kwargs)
    return np.array(img)


def _rasterize_line(obj: LineShape) -> np.ndarray:
    img, draw = _blank(obj)
    min_x, min_y, _, _ = line_bounds(obj)
    draw.line(
        [(obj.x1 - min_x, obj.y1 - min_y), (obj.x2 - min_x, obj.y2 - min_y)],
        fill=obj.color,
        width=max(1, round(obj.width)),
    )
    return np.array(img)


def _rasterize_text(obj: TextObject) -> np.ndarray:
    img, draw = _blank(obj)
    left, top, _, _ = text_bbox(obj)
    font = load_font(obj.font_size, obj.font_path)
    draw.text((-left, -top), obj.text, fill=obj.color, font=font, align=obj.align)
    return np.array(img)


def _rasterize_image(obj: ImageObject) -> np.ndarray:
    return obj.asset.pixels


def _rasterize_video_placeholder(obj: VideoClipPlaceholder) -> np.ndarray:
    img, draw = _blank(obj)
    draw.rectangle([(0, 0), (img.width - 1, img.height - 1)], fill=obj.color)
    if obj.label:
        font = load_font(max(8, round(min(img.width, img.height) / 8)))
        bbox = draw.textbbox((0, 0), obj.label, font=font)
        tx = (img.width - (bbox[2] - bbox[0])) // 2 - bbox[0]
        ty = (img.height - (bbox[3] - bbox[1])) // 2 - bbox[1]
        draw.text((tx, ty), obj.label, fill=(255, 255, 255, 255), font=font)
    return np.array(img)


RASTERIZERS = {
    "rect": _rasterize_rect,
    "circle": _rasterize_circle,
    "line": _rasterize_line,
    "text": _rasterize_text,
    "image": _rasterize_image,
    "video": _rasterize_video_placeholder,
}


def rasterize(obj: RenderObject) -> np.ndarray:
    """Rasterize an object at its unscaled local size."""
    return RASTERIZERS[obj.kind](obj)


# ── Patch transform and blending ─────────────────────────────────


def transform_patch(
    patch: np.ndarray, scale: tuple[float, float], rotation: float,
) -> np.ndarray | None:
    """Scale (negative flips) and rotate a patch about its center.

    Returns None when the scaled patch has no pixels.
    """
    sx, sy = scale
    h, w = patch.shape[:2]
    new_w, new_h = round(w * abs(sx)), round(h * abs(sy))
    if new_w <= 0 or new_h <= 0:
        return None

    needs_resize = (new_w, new_h) != (w, h)
    flips = sx < 0 or sy < 0
    turns = rotation % 360 != 0
    if not (needs_resize or flips or turns):
        return patch

    # Resample premultiplied so transparent pixels don't bleed black into edges.
    img = Image.fromarray(patch).convert("RGBa")
    if needs_resize:
        img = img.resize((new_w, new_h), Image.Resampling.BILINEAR)
    if sx < 0:
        img = img.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    if sy < 0:
        img = img.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
    if turns:
        # Pillow rotates counter-clockwise; positive rotation is clockwise.
        img = img.rotate(-rotation, expand=True, resample=Image.Resampling.BICUBIC)
    return np.array(img.convert("RGBA"))


def blend_patch(
    frame: np.ndarray, patch: np.ndarray, x: int, y: int, opacity: float,
) -> None:
    """Alpha-blend patch onto frame in place with its top-left at (x, y).

    The patch is clipped to the frame; pixels outside it are untouched.
    """
    frame_h, frame_w = frame.shape[:2]
    patch_h, patch_w = patch.shape[:2]
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(frame_w, x + patch_w), min(frame_h, y + patch_h)
    if x0 >= x1 or y0 >= y1:
        return

    src = patch[y0 - y:y1 - y, x0 - x:x1 - x].astype(np.float32)
    dest = frame[y0:y1, x0:x1].astype(np.float32)

    alpha = src[:, :, 3:4] / 255.0 * np.float32(opacity)
    rgb = src[:, :, :3] * alpha + dest[:, :, :3] * (1 - alpha)
    out_alpha = alpha * 255.0 + dest[:, :, 3:4] * (1 - alpha)
    blended = np.concatenate([rgb, out_alpha], axis=2)
    frame[y0:y1, x0:x1] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)


# ── Frame compositing ────────────────────────────────────────────


def new_frame(
    frame_width: int, frame_height: int, background_color,
) -> np.ndarray:
    """Opaque background frame, shape (h, w, 4)."""
    r, g, b = background_color[:3]
    return np.full((frame_height, frame_width, 4), (r, g, b, 255), dtype=np.uint8)


def composite(
    sampled_states,
    frame_width: int,
    frame_height: int,
    background_color,
) -> np.ndarray:
    """Composite sampled states back-to-front onto an opaque background.

    Args:
        sampled_states: SampledStates, lowest z first (as ``sample`` returns).
        frame_width, frame_height: Output frame size in pixels.
        background_color: RGB or RGBA; alpha is ignored (always opaque).

    Returns:
        numpy array of shape (frame_height, frame_width, 4), dtype uint8.
    """
    frame = new_frame(frame_width, frame_height, background_color)
    for state in sampled_states:
        draw_state(frame, state)
    return frame


def draw_state(frame: np.ndarray, state: SampledState) -> None:
    opacity = min(1.0, max(0.0, state.opacity))
    if opacity <= 0.0:
        return
    patch = transform_patch(rasterize(state.object), state.scale, state.rotation)
    if patch is None:
        return
    patch_h, patch_w = patch.shape[:2]
    x = round(state.center[0] - patch_w / 2)
    y = round(state.center[1] - patch_h / 2)
    blend_patch(frame, patch, x, y, opacity)


def render_frame(timeline: Timeline, t: float) -> np.ndarray:
    """Sample the timeline at t and composite the result."""
    return composite(
        sample(timeline, t),
        timeline.width,
        timeline.height,
        timeline.background_color,
    )
