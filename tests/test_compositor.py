"""Tests for rasterizing and compositing sampled states."""

import numpy as np
import pytest

from reelcompose.compositor import (
    blend_patch,
    composite,
    rasterize,
    render_frame,
    transform_patch,
)
from reelcompose.model import Clip, Layer, Timeline
from reelcompose.objects import (
    CircleShape,
    ImageObject,
    LineShape,
    RectShape,
    TextObject,
    VideoClipPlaceholder,
)
from reelcompose.sampler import sample
from reelcompose.transform import TransformSpec


BG = (10, 20, 30, 255)
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def _timeline(*layers):
    return Timeline(
        duration=2.0, fps=10, width=64, height=36, background_color=BG, layers=layers,
    )


def _clip(obj, **transform):
    return Clip(0.0, 2.0, obj, TransformSpec(**transform))


class TestBackground:
    def test_empty_timeline_is_background(self):
        frame = render_frame(_timeline(), 0.0)
        assert frame.shape == (36, 64, 4)
        assert frame.dtype == np.uint8
        assert (frame == BG).all()

    def test_background_always_opaque(self):
        frame = composite((), 8, 4, (10, 20, 30, 0))
        assert (frame[:, :, 3] == 255).all()


class TestOpaqueObjects:
    def test_rect_covers_its_box(self):
        timeline = _timeline(Layer((_clip(RectShape(20, 10, RED), position=(32, 18)),)))
        frame = render_frame(timeline, 0.5)
        assert tuple(frame[18, 32]) == RED
        assert tuple(frame[13, 22]) == RED
        assert tuple(frame[22, 41]) == RED
        assert tuple(frame[12, 22]) == BG
        assert tuple(frame[18, 42]) == BG

    def test_opaque_composite_is_idempotent(self):
        clip = _clip(RectShape(20, 10, RED), position=(32, 18))
        once = render_frame(_timeline(Layer((clip,))), 0.0)
        twice = render_frame(_timeline(Layer((clip,)), Layer((clip,))), 0.0)
        np.testing.assert_array_equal(once, twice)

    def test_later_layer_draws_on_top(self):
        timeline = _timeline(
            Layer((_clip(RectShape(20, 10, RED), position=(32, 18)),)),
            Layer((_clip(RectShape(20, 10, BLUE), position=(32, 18)),)),
        )
        assert tuple(render_frame(timeline, 0.0)[18, 32]) == BLUE

    def test_only_covered_pixels_touched(self):
        timeline = _timeline(Layer((_clip(RectShape(4, 4, RED), position=(2, 2)),)))
        frame = render_frame(timeline, 0.0)
        assert (frame[4:, :] == BG).all()
        assert (frame[:, 4:] == BG).all()

    def test_clipped_at_frame_edge(self):
        timeline = _timeline(Layer((_clip(RectShape(20, 20, RED), position=(0, 0)),)))
        frame = render_frame(timeline, 0.0)
        assert tuple(frame[0, 0]) == RED
        assert tuple(frame[9, 9]) == RED
        assert tuple(frame[10, 10]) == BG

    def test_fully_offscreen_leaves_frame_untouched(self):
        timeline = _timeline(Layer((_clip(RectShape(10, 10, RED), position=(500, -500)),)))
        assert (render_frame(timeline, 0.0) == BG).all()

    def test_circle_corners_stay_background(self):
        timeline = _timeline(Layer((_clip(CircleShape(10, RED), position=(32, 18)),)))
        frame = render_frame(timeline, 0.0)
        assert tuple(frame[18, 32]) == RED
        assert tuple(frame[8, 22]) == BG


class TestBlending:
    def test_half_opacity_blend(self):
        timeline = Timeline(
            duration=1.0, fps=10, width=8, height=8, background_color=(0, 0, 0),
            layers=(Layer((_clip(RectShape(8, 8, (255, 255, 255)), position=(4, 4), opacity=0.5),)),),
        )
        frame = render_frame(timeline, 0.0)
        expected = 255 * 0.5 + 0 * 0.5
        assert np.abs(frame[:, :, :3].astype(float) - expected).max() <= 1
        assert (frame[:, :, 3] == 255).all()

    def test_zero_opacity_draws_nothing(self):
        timeline = _timeline(Layer((_clip(RectShape(20, 10, RED), position=(32, 18), opacity=0),)))
        assert (render_frame(timeline, 0.0) == BG).all()

    def test_color_alpha_multiplies_opacity(self):
        frame = np.zeros((1, 1, 4), dtype=np.uint8)
        frame[..., 3] = 255
        patch = np.array([[[255, 255, 255, 128]]], dtype=np.uint8)
        blend_patch(frame, patch, 0, 0, 1.0)
        assert tuple(frame[0, 0]) == (128, 128, 128, 255)

    def test_blend_patch_clips_negative_offset(self):
        frame = np.zeros((4, 4, 4), dtype=np.uint8)
        patch = np.full((4, 4, 4), 255, dtype=np.uint8)
        blend_patch(frame, patch, -2, -2, 1.0)
        assert (frame[:2, :2] == 255).all()
        assert (frame[2:, :] == 0).all()

    def test_image_alpha_respected(self, half_red_asset):
        timeline = _timeline(Layer((_clip(ImageObject(half_red_asset), position=(20, 20)),)))
        frame = render_frame(timeline, 0.0)
        assert tuple(frame[20, 16]) == RED
        assert tuple(frame[20, 23]) == BG


class TestTransformPatch:
    def test_identity_returns_same_patch(self):
        patch = rasterize(RectShape(4, 2, RED))
        assert transform_patch(patch, (1.0, 1.0), 0.0) is patch

    def test_scale_resizes(self):
        patch = rasterize(RectShape(4, 2, RED))
        assert transform_patch(patch, (2.0, 3.0), 0.0).shape == (6, 8, 4)

    def test_zero_scale_returns_none(self):
        patch = rasterize(RectShape(4, 2, RED))
        assert transform_patch(patch, (0.0, 1.0), 0.0) is None

    def test_rotation_swaps_dimensions(self):
        patch = rasterize(RectShape(20, 10, RED))
        assert transform_patch(patch, (1.0, 1.0), 90.0).shape == (20, 10, 4)

    def test_negative_scale_flips(self, half_red_asset):
        flipped = transform_patch(half_red_asset.pixels, (-1.0, 1.0), 0.0)
        assert flipped[5, 9, 0] == 255
        assert flipped[5, 0, 3] == 0

    def test_rotated_edges_keep_source_color(self):
        rotated = transform_patch(rasterize(RectShape(20, 10, RED)), (1.0, 1.0), 45.0)
        covered = rotated[rotated[:, :, 3] > 0]
        assert len(covered) > 0
        assert covered[:, 0].min() >= 250
        assert covered[:, 1:3].max() <= 5

    def test_scaled_edges_keep_source_color(self, half_red_asset):
        scaled = transform_patch(half_red_asset.pixels, (2.5, 2.5), 0.0)
        covered = scaled[scaled[:, :, 3] > 0]
        assert covered[:, 0].min() >= 250

    def test_rotated_rect_in_frame(self):
        timeline = _timeline(Layer((_clip(RectShape(20, 10, RED), position=(32, 18), rotation=90),)))
        frame = render_frame(timeline, 0.0)
        assert tuple(frame[10, 32]) == RED
        assert tuple(frame[18, 40]) == BG


class TestRasterize:
    @pytest.mark.parametrize("obj", [
        RectShape(12, 6, RED, corner_radius=2, outline=BLUE, outline_width=1),
        CircleShape(5, RED),
        LineShape(0, 0, 10, 0, width=2, color=RED),
        VideoClipPlaceholder(40, 20, label="clip"),
    ])
    def test_patch_is_rgba(self, obj):
        patch = rasterize(obj)
        assert patch.ndim == 3 and patch.shape[2] == 4
        assert patch.dtype == np.uint8
        assert patch[:, :, 3].max() == 255

    def test_text_draws_pixels(self):
        patch = rasterize(TextObject("Hi", font_size=20, color=RED))
        assert patch[:, :, 3].max() > 0

    def test_line_patch_size(self):
        patch = rasterize(LineShape(0, 0, 10, 0, width=2))
        assert patch.shape[:2] == (2, 12)

    def test_composite_of_sampled_states(self):
        timeline = _timeline(Layer((_clip(RectShape(20, 10, RED), position=(32, 18)),)))
        frame = composite(sample(timeline, 0.0), 64, 36, BG)
        np.testing.assert_array_equal(frame, render_frame(timeline, 0.0))
