"""Tests for renderable object variants and their local geometry."""

import pytest

from reelcompose.errors import TimelineModelError
from reelcompose.objects import (
    OBJECT_TYPES,
    CircleShape,
    ImageObject,
    LineShape,
    RectShape,
    TextObject,
    VideoClipPlaceholder,
    line_bounds,
    object_size,
    raster_size,
)


class TestValidation:
    def test_kinds_registered(self):
        assert set(OBJECT_TYPES) == {"rect", "circle", "line", "text", "image", "video"}

    def test_rect_needs_positive_size(self):
        with pytest.raises(TimelineModelError) as exc_info:
            RectShape(0, 10)
        assert exc_info.value.code == "model.geometry"

    def test_circle_needs_positive_radius(self):
        with pytest.raises(TimelineModelError):
            CircleShape(-1)

    @pytest.mark.parametrize("width", ["wide", None, True])
    def test_non_numeric_size_rejected(self, width):
        with pytest.raises(TimelineModelError) as exc_info:
            RectShape(width, 10)
        assert exc_info.value.code == "model.geometry"

    def test_line_endpoints_must_be_numbers(self):
        with pytest.raises(TimelineModelError, match="line.x2"):
            LineShape(0, 0, "far", 0)

    def test_negative_outline_width_rejected(self):
        with pytest.raises(TimelineModelError, match="outline_width"):
            CircleShape(4, outline_width=-1)

    def test_colors_normalized(self):
        assert RectShape(1, 1, color=(1, 2, 3)).color == (1, 2, 3, 255)

    def test_bad_color(self):
        with pytest.raises(TimelineModelError) as exc_info:
            CircleShape(3, color=(1, 2))
        assert exc_info.value.code == "model.color"

    def test_empty_text(self):
        with pytest.raises(TimelineModelError, match="non-empty"):
            TextObject("")

    def test_bad_align(self):
        with pytest.raises(TimelineModelError, match="align"):
            TextObject("x", align="justify")


class TestGeometry:
    def test_rect_size(self):
        assert object_size(RectShape(12.5, 4)) == (12.5, 4.0)
        assert raster_size(RectShape(12.5, 4)) == (13, 4)

    def test_circle_size(self):
        assert object_size(CircleShape(5)) == (10.0, 10.0)

    def test_line_bounds_include_stroke(self):
        line = LineShape(10, 5, 0, 5, width=4)
        assert line_bounds(line) == (-2.0, 3.0, 14.0, 4.0)

    def test_image_size(self, half_red_asset):
        assert object_size(ImageObject(half_red_asset)) == (10.0, 10.0)

    def test_video_placeholder_size(self):
        assert object_size(VideoClipPlaceholder(320, 180)) == (320.0, 180.0)

    def test_text_size_grows_with_font(self):
        small = object_size(TextObject("Hello", font_size=12))
        large = object_size(TextObject("Hello", font_size=48))
        assert large[0] > small[0]
        assert large[1] > small[1]

    def test_raster_size_at_least_one_pixel(self):
        assert raster_size(LineShape(0, 0, 0, 0, width=0.2)) == (1, 1)

    def test_not_an_object(self):
        with pytest.raises(TypeError):
            object_size("rect")
