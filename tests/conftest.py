"""Shared test fixtures for reelcompose tests."""

import subprocess

import numpy as np
import pytest
import imageio_ffmpeg
from PIL import Image

from reelcompose.assets import AudioAsset, ImageAsset

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


@pytest.fixture
def tone_wav(tmp_path):
    """Create a 2-second 440Hz mono wav with ffmpeg."""
    out = tmp_path / "tone.wav"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "sine=frequency=440:sample_rate=22050:duration=2",
            "-ac", "1",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


@pytest.fixture
def logo_png(tmp_path):
    """A 40x20 PNG: left half opaque red, right half fully transparent."""
    pixels = np.zeros((20, 40, 4), dtype=np.uint8)
    pixels[:, :20] = (255, 0, 0, 255)
    out = tmp_path / "logo.png"
    Image.fromarray(pixels).save(out)
    return out


@pytest.fixture
def music_asset():
    return AudioAsset("music.wav", 4.0)


@pytest.fixture
def ding_asset():
    return AudioAsset("ding.wav", 0.5)


@pytest.fixture
def half_red_asset():
    """In-memory 10x10 image: left half opaque red, right half transparent."""
    pixels = np.zeros((10, 10, 4), dtype=np.uint8)
    pixels[:, :5] = (255, 0, 0, 255)
    return ImageAsset("half_red.png", pixels)
