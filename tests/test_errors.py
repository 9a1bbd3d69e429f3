"""Tests for the error taxonomy."""

from pathlib import Path

from reelcompose.errors import (
    AssetError,
    ConfigError,
    ReelError,
    SinkError,
    TimelineModelError,
)


class TestErrorTaxonomy:
    def test_codes(self):
        assert ConfigError("config.fps", "bad").code == "config.fps"
        assert str(TimelineModelError("model.x", "broken")) == "broken"

    def test_builtin_bases(self):
        assert issubclass(ConfigError, ValueError)
        assert issubclass(TimelineModelError, ValueError)
        assert issubclass(SinkError, RuntimeError)
        for cls in (ConfigError, TimelineModelError, AssetError, SinkError):
            assert issubclass(cls, ReelError)


class TestAssetError:
    def test_single_path(self):
        err = AssetError("a.png", AssetError.NOT_FOUND)
        assert err.paths == ["a.png"]
        assert err.code == "asset.not_found"
        assert str(err) == "Asset not found: a.png"

    def test_path_object(self):
        assert AssetError(Path("/x/a.png"), AssetError.NOT_FOUND).path == "/x/a.png"

    def test_many_paths_listed(self):
        err = AssetError(["a.png", "b.wav"], AssetError.NOT_FOUND)
        assert "2 asset(s) not found" in str(err)
        assert "  - b.wav" in str(err)

    def test_custom_message(self):
        err = AssetError("a.png", AssetError.UNSUPPORTED_FORMAT, "cannot read a.png")
        assert str(err) == "cannot read a.png"
        assert err.reason == "unsupported_format"
