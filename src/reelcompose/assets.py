"""Asset handles and the default asset decoder.

The timeline never holds raw file bytes: image objects reference an
ImageAsset (decoded RGBA pixels plus dimensions) and audio entries an
AudioAsset (path plus duration). Decoding happens once, before the
timeline is constructed, through an AssetDecoder.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import numpy as np
from PIL import Image, UnidentifiedImageError
from moviepy import AudioFileClip

from .errors import AssetError


logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ImageAsset:
    """Decoded image: (h, w, 4) uint8 straight-alpha RGBA pixels."""

    path: str
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(
                f"ImageAsset pixels must have shape (h, w, 4), got {self.pixels.shape}"
            )
        if self.pixels.dtype != np.uint8:
            object.__setattr__(self, "pixels", self.pixels.astype(np.uint8))
        self.pixels.setflags(write=False)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


@dataclass(frozen=True)
class AudioAsset:
    path: str
    duration: float

    def __post_init__(self) -> None:
        if self.duration <= 0:
            raise AssetError(
                self.path, AssetError.UNSUPPORTED_FORMAT,
                f"Audio asset has no playable duration: {self.path}",
            )


class AssetDecoder(Protocol):
    def decode_image(self, path: str) -> ImageAsset: ...

    def decode_audio_duration(self, path: str) -> float: ...


# ── Default decoder ──────────────────────────────────────────────


class PillowAssetDecoder:
    """Decode images with Pillow and read audio durations with moviepy.

    Missing files raise AssetError(reason="not_found"); files that exist
    but cannot be decoded raise AssetError(reason="unsupported_format").
    """

    def decode_image(self, path: str) -> ImageAsset:
        _require_file(path)
        try:
            with Image.open(path) as img:
                rgba = np.array(img.convert("RGBA"))
        except (UnidentifiedImageError, OSError) as exc:
            raise AssetError(
                path, AssetError.UNSUPPORTED_FORMAT,
                f"Cannot decode image {path}: {exc}",
            ) from exc
        logger.debug("Decoded image %s (%dx%d)", path, rgba.shape[1], rgba.shape[0])
        return ImageAsset(str(path), rgba)

    def decode_audio_duration(self, path: str) -> float:
        _require_file(path)
        try:
            with AudioFileClip(str(path)) as clip:
                duration = clip.duration
        except (OSError, KeyError, ValueError) as exc:
            raise AssetError(
                path, AssetError.UNSUPPORTED_FORMAT,
                f"Cannot decode audio {path}: {exc}",
            ) from exc
        if not duration or duration <= 0:
            raise AssetError(
                path, AssetError.UNSUPPORTED_FORMAT,
                f"Audio file has no duration: {path}",
            )
        logger.debug("Read audio duration %s (%.3fs)", path, duration)
        return float(duration)

    def load_audio(self, path: str) -> AudioAsset:
        return AudioAsset(str(path), self.decode_audio_duration(path))


def _require_file(path: str) -> None:
    if not Path(path).is_file():
        raise AssetError(path, AssetError.NOT_FOUND)
