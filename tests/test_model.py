"""Tests for timeline model construction and validation."""

import pytest

from reelcompose.errors import ConfigError, TimelineModelError
from reelcompose.model import (
    AudioSchedule,
    Clip,
    Layer,
    MusicTrack,
    SfxEvent,
    Timeline,
)
from reelcompose.objects import RectShape


def _rect_clip(start, end):
    return Clip(start, end, RectShape(10, 10))


def _timeline(**kwargs):
    params = dict(duration=5.0, fps=30, width=64, height=36)
    params.update(kwargs)
    return Timeline(**params)


class TestClip:
    def test_active_interval_is_half_open(self):
        clip = _rect_clip(1.0, 2.0)
        assert not clip.is_active(0.999)
        assert clip.is_active(1.0)
        assert clip.is_active(1.999)
        assert not clip.is_active(2.0)

    def test_local_time(self):
        assert _rect_clip(1.5, 3.0).local_time(2.0) == pytest.approx(0.5)

    def test_start_must_precede_end(self):
        with pytest.raises(TimelineModelError) as exc_info:
            _rect_clip(2.0, 2.0)
        assert exc_info.value.code == "model.clip_bounds"

    def test_object_must_be_renderable(self):
        with pytest.raises(TimelineModelError):
            Clip(0.0, 1.0, "not an object")

    def test_adjacent_clips_do_not_overlap(self):
        assert not _rect_clip(0.0, 1.0).overlaps(_rect_clip(1.0, 2.0))
        assert _rect_clip(0.0, 1.5).overlaps(_rect_clip(1.0, 2.0))


class TestLayer:
    def test_active_clips_with_indices(self):
        layer = Layer((_rect_clip(0.0, 1.0), _rect_clip(1.0, 2.0)))
        active = layer.active_clips(1.0)
        assert [i for i, _ in active] == [1]

    def test_clips_list_normalized_to_tuple(self):
        layer = Layer([_rect_clip(0.0, 1.0)])
        assert isinstance(layer.clips, tuple)


class TestTimelineConfig:
    @pytest.mark.parametrize("field", ["duration", "fps", "width", "height"])
    def test_non_positive_rejected(self, field):
        with pytest.raises(ConfigError) as exc_info:
            _timeline(**{field: 0})
        assert exc_info.value.code == f"config.{field}"

    def test_fractional_resolution_rejected(self):
        with pytest.raises(ConfigError):
            _timeline(width=64.5)

    def test_background_normalized_to_rgba(self):
        assert _timeline(background_color=(1, 2, 3)).background_color == (1, 2, 3, 255)

    def test_bad_background_rejected(self):
        with pytest.raises(ConfigError):
            _timeline(background_color=(300, 0, 0))

    def test_frame_count(self):
        timeline = _timeline(duration=2.0, fps=30)
        assert timeline.frame_count() == 60
        assert timeline.frame_count(0.0, 2.04) == 61

    def test_frame_count_floors_fractional_duration(self):
        assert _timeline(duration=2.05, fps=30).frame_count() == 61

    def test_validate_range(self):
        timeline = _timeline()
        timeline.validate_range(0.0, 5.0)
        with pytest.raises(ConfigError):
            timeline.validate_range(3.0, 3.0)
        with pytest.raises(ConfigError):
            timeline.validate_range(0.0, 5.5)


class TestTimelineLayers:
    def test_overlapping_clips_rejected(self):
        layer = Layer((_rect_clip(0.0, 2.0), _rect_clip(1.0, 3.0)))
        with pytest.raises(TimelineModelError) as exc_info:
            _timeline(layers=(layer,))
        assert exc_info.value.code == "model.clip_overlap"

    def test_back_to_back_clips_allowed(self):
        layer = Layer((_rect_clip(0.0, 1.0), _rect_clip(1.0, 2.0)))
        assert len(_timeline(layers=(layer,)).layers[0].clips) == 2

    def test_overlap_across_layers_allowed(self):
        layers = (Layer((_rect_clip(0.0, 2.0),)), Layer((_rect_clip(1.0, 3.0),)))
        assert len(_timeline(layers=layers).layers) == 2

    def test_clip_past_duration_rejected(self):
        with pytest.raises(TimelineModelError, match="duration"):
            _timeline(layers=(Layer((_rect_clip(4.0, 6.0),)),))


class TestTimelineAudio:
    def test_music_bounds(self, music_asset):
        music = MusicTrack(music_asset, 1.0, 9.0)
        with pytest.raises(TimelineModelError) as exc_info:
            _timeline(audio=AudioSchedule(music=(music,)))
        assert exc_info.value.code == "model.audio_bounds"

    def test_negative_volume_rejected(self, ding_asset):
        with pytest.raises(TimelineModelError) as exc_info:
            _timeline(audio=AudioSchedule(sfx=(SfxEvent(ding_asset, 1.0, volume=-1),)))
        assert exc_info.value.code == "model.audio_volume"

    def test_sfx_outside_duration_rejected(self, ding_asset):
        with pytest.raises(TimelineModelError):
            _timeline(audio=AudioSchedule(sfx=(SfxEvent(ding_asset, 6.0),)))

    def test_valid_schedule(self, music_asset, ding_asset):
        audio = AudioSchedule(
            music=[MusicTrack(music_asset, 0.0, 5.0, loop=True)],
            sfx=[SfxEvent(ding_asset, 2.5)],
        )
        timeline = _timeline(audio=audio)
        assert timeline.audio.music[0].track_duration == 4.0
