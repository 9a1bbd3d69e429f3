"""Timeline manifest loader.

Parses YAML manifests, resolves ${path} variables, converts hex colors
to RGBA tuples, validates object types and per-type required fields,
then builds an immutable Timeline (decoding assets on the way).

Manifest schema:
  video:
    resolution: [1280, 720]
    fps: 30
    duration: 6
    background: "#101018"
  paths:
    assets: "/data/assets"
  colors:
    accent: "#B1134D"           # or "#RRGGBBAA"
  layers:
    - name: title
      clips:
        - start: 0.5
          end: 5
          object: {type: text, text: "Hello", font_size: 64, color: accent}
          transform:
            position:            # constant [x, y] or keyframes
              keyframes:
                - {time: 0.5, value: [640, 420]}
                - {time: 1.5, value: [640, 360], easing: ease_out_cubic}
            opacity: 1.0
            anchor: center       # preset or [u, v]
            local_time: false
  audio:
    music:
      - {file: "${assets}/bed.wav", start: 0, end: 6, loop: true, volume: 0.6}
    sfx:
      - {file: "${assets}/ding.wav", time: 1.5, volume: 1.0}
"""

from pathlib import Path

import yaml

from .assets import AssetDecoder, AudioAsset, PillowAssetDecoder
from .common import parse_hex_color, resolve_color, resolve_path_vars, to_rgba
from .errors import AssetError, ConfigError, TimelineModelError
from .model import AudioSchedule, Clip, Layer, MusicTrack, SfxEvent, Timeline
from .objects import (
    CircleShape,
    ImageObject,
    LineShape,
    RectShape,
    TextObject,
    VideoClipPlaceholder,
)
from .transform import Keyframe, Keyframed, TransformSpec


# ── Valid object types and their fields ───────────────────────────

OBJECT_FIELDS = {
    "rect": ({"width", "height"}, {"color", "corner_radius", "outline", "outline_width"}),
    "circle": ({"radius"}, {"color", "outline", "outline_width"}),
    "line": ({"x1", "y1", "x2", "y2"}, {"width", "color"}),
    "text": ({"text"}, {"font_size", "color", "font", "align"}),
    "image": ({"path"}, set()),
    "video": ({"width", "height"}, {"label", "color", "path"}),
}

VALID_OBJECT_TYPES = set(OBJECT_FIELDS)

COLOR_FIELDS = {"color", "outline"}

NUMERIC_FIELDS = {
    "width", "height", "radius", "x1", "y1", "x2", "y2",
    "corner_radius", "outline_width", "font_size",
}

TRANSFORM_CHANNELS = ("position", "scale", "rotation", "opacity")

VALID_TRANSFORM_KEYS = set(TRANSFORM_CHANNELS) | {"anchor", "local_time"}


# ── Manifest loading ──────────────────────────────────────────────


def load_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a timeline manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Validate video settings; parse resolution as tuple, background
         as RGBA.
      3. Parse all colors.* hex strings to RGBA tuples.
      4. Resolve ${path} variables in all layer and audio string values.
      5. Validate object types, per-type required fields and colors.

    Args:
        manifest_path: Path to the YAML manifest file.

    Returns:
        Normalized config dict ready for build_timeline.

    Raises:
        ConfigError: Invalid video settings.
        TimelineModelError: Invalid layer, clip, object or audio entry.
        FileNotFoundError: Missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    config = {"video": _parse_video(raw.get("video"))}

    paths = raw.get("paths", {}) or {}

    colors = {}
    for key, value in (raw.get("colors", {}) or {}).items():
        try:
            colors[key] = parse_hex_color(value) if isinstance(value, str) else to_rgba(value)
        except ValueError as exc:
            raise ConfigError("config.colors", f"colors.{key}: {exc}") from exc
    config["colors"] = colors

    layers = []
    for li, layer in enumerate(raw.get("layers", []) or []):
        resolved = _resolve_paths(layer, paths)
        _validate_layer(resolved, li, colors)
        layers.append(resolved)
    config["layers"] = layers

    audio = _resolve_paths(raw.get("audio", {}) or {}, paths)
    _validate_audio(audio)
    config["audio"] = {"music": audio.get("music", []) or [], "sfx": audio.get("sfx", []) or []}

    return config


def _parse_video(video) -> dict:
    if not isinstance(video, dict):
        raise ConfigError("config.video", "Manifest: missing required 'video' section")
    for key in ("resolution", "fps", "duration"):
        if key not in video:
            raise ConfigError(f"config.{key}", f"Manifest: video.{key} is required")

    resolution = video["resolution"]
    if not isinstance(resolution, list) or len(resolution) != 2:
        raise ConfigError(
            "config.resolution",
            f"Manifest: video.resolution must be [width, height], got {resolution!r}",
        )
    video["resolution"] = tuple(resolution)

    try:
        video["background"] = parse_hex_color(video.get("background", "#000000"))
    except ValueError as exc:
        raise ConfigError("config.background", f"Manifest: video.background: {exc}") from exc
    return video


def _resolve_paths(obj, paths: dict):
    """Recursively resolve ${var} in all string values."""
    if isinstance(obj, str):
        try:
            return resolve_path_vars(obj, paths)
        except ValueError as exc:
            raise ConfigError("config.paths", str(exc)) from exc
    elif isinstance(obj, dict):
        return {k: _resolve_paths(v, paths) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_resolve_paths(item, paths) for item in obj]
    return obj


def _model_error(message: str) -> TimelineModelError:
    return TimelineModelError("manifest.invalid", message)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_layer(layer: dict, index: int, colors: dict) -> None:
    if not isinstance(layer, dict):
        raise _model_error(f"Layer {index}: must be a mapping")
    clips = layer.get("clips", [])
    if not isinstance(clips, list):
        raise _model_error(f"Layer {index}: 'clips' must be a list")
    for ci, clip in enumerate(clips):
        _validate_clip(clip, index, ci, colors)


def _validate_clip(clip: dict, layer_idx: int, clip_idx: int, colors: dict) -> None:
    """Validate a single clip dict: start, end, object, optional transform."""
    prefix = f"Layer {layer_idx}, clip {clip_idx}"

    for key in ("start", "end", "object"):
        if key not in clip:
            raise _model_error(f"{prefix}: missing required field '{key}'")
    for key in ("start", "end"):
        if not _is_number(clip[key]):
            raise _model_error(f"{prefix}: '{key}' must be a number, got {clip[key]!r}")

    obj = clip["object"]
    obj_type = obj.get("type") if isinstance(obj, dict) else None
    if obj_type not in VALID_OBJECT_TYPES:
        raise _model_error(
            f"{prefix}: Unknown object type '{obj_type}'. "
            f"Valid: {sorted(VALID_OBJECT_TYPES)}"
        )
    required, optional = OBJECT_FIELDS[obj_type]
    for key in sorted(required):
        if key not in obj:
            raise _model_error(f"{prefix} ({obj_type}): missing required field '{key}'")
    unknown = set(obj) - required - optional - {"type"}
    if unknown:
        raise _model_error(f"{prefix} ({obj_type}): unknown field(s) {sorted(unknown)}")
    for key in sorted(NUMERIC_FIELDS & set(obj)):
        if not _is_number(obj[key]):
            raise _model_error(
                f"{prefix} ({obj_type}): '{key}' must be a number, got {obj[key]!r}"
            )
    for key in COLOR_FIELDS & set(obj):
        try:
            resolve_color(obj[key], colors)
        except ValueError as exc:
            raise _model_error(f"{prefix} ({obj_type}): {exc}") from exc

    transform = clip.get("transform", {}) or {}
    if not isinstance(transform, dict):
        raise _model_error(f"{prefix}: 'transform' must be a mapping")
    unknown = set(transform) - VALID_TRANSFORM_KEYS
    if unknown:
        raise _model_error(f"{prefix}: unknown transform key(s) {sorted(unknown)}")
    for channel in TRANSFORM_CHANNELS:
        value = transform.get(channel)
        if isinstance(value, dict):
            keyframes = value.get("keyframes")
            if not isinstance(keyframes, list) or not keyframes:
                raise _model_error(
                    f"{prefix}: transform.{channel} needs a non-empty 'keyframes' list"
                )
            for ki, kf in enumerate(keyframes):
                if not isinstance(kf, dict) or "time" not in kf or "value" not in kf:
                    raise _model_error(
                        f"{prefix}: transform.{channel} keyframe {ki} needs 'time' and 'value'"
                    )


def _validate_audio(audio: dict) -> None:
    for i, track in enumerate(audio.get("music", []) or []):
        for key in ("file", "start", "end"):
            if key not in track:
                raise _model_error(f"Music track {i}: missing required field '{key}'")
        for key in ("start", "end", "volume"):
            if key in track and not _is_number(track[key]):
                raise _model_error(
                    f"Music track {i}: '{key}' must be a number, got {track[key]!r}"
                )
    for i, event in enumerate(audio.get("sfx", []) or []):
        for key in ("file", "time"):
            if key not in event:
                raise _model_error(f"Sfx event {i}: missing required field '{key}'")
        for key in ("time", "volume"):
            if key in event and not _is_number(event[key]):
                raise _model_error(
                    f"Sfx event {i}: '{key}' must be a number, got {event[key]!r}"
                )


# ── Path validation ───────────────────────────────────────────────


def asset_paths(config: dict) -> list[str]:
    """All image/audio file paths referenced by a normalized manifest."""
    found = []
    for layer in config["layers"]:
        for clip in layer.get("clips", []):
            obj = clip["object"]
            if obj["type"] == "image":
                found.append(obj["path"])
    for entry in config["audio"]["music"] + config["audio"]["sfx"]:
        found.append(entry["file"])
    return found


def validate_paths(config: dict) -> None:
    """Check that every referenced asset exists on disk.

    Reports all missing paths at once.

    Raises:
        AssetError: reason "not_found", listing every missing file.
    """
    missing = []
    for p in asset_paths(config):
        if not Path(p).exists() and p not in missing:
            missing.append(p)
    if missing:
        raise AssetError(missing, AssetError.NOT_FOUND)


# ── Timeline construction ─────────────────────────────────────────


def _channel(value):
    if isinstance(value, dict):
        return Keyframed(tuple(
            Keyframe(kf["time"], kf["value"], kf.get("easing", "linear"))
            for kf in value["keyframes"]
        ))
    return value


def _build_transform(transform: dict) -> TransformSpec:
    kwargs = {
        name: _channel(transform[name])
        for name in TRANSFORM_CHANNELS
        if name in transform
    }
    anchor = transform.get("anchor", "center")
    kwargs["anchor"] = tuple(anchor) if isinstance(anchor, list) else anchor
    kwargs["local_time"] = bool(transform.get("local_time", False))
    return TransformSpec(**kwargs)


def _build_object(obj: dict, colors: dict, decoder: AssetDecoder, images: dict):
    fields = {k: v for k, v in obj.items() if k != "type"}
    for key in COLOR_FIELDS & set(fields):
        fields[key] = resolve_color(fields[key], colors)

    obj_type = obj["type"]
    if obj_type == "rect":
        return RectShape(**fields)
    if obj_type == "circle":
        return CircleShape(**fields)
    if obj_type == "line":
        return LineShape(**fields)
    if obj_type == "text":
        fields["text"] = str(fields["text"])
        if "font" in fields:
            fields["font_path"] = fields.pop("font")
        return TextObject(**fields)
    if obj_type == "image":
        path = fields["path"]
        if path not in images:
            images[path] = decoder.decode_image(path)
        return ImageObject(images[path])
    fields["source"] = fields.pop("path", None)
    return VideoClipPlaceholder(**fields)


def _audio_asset(path: str, decoder: AssetDecoder, cache: dict) -> AudioAsset:
    if path not in cache:
        cache[path] = AudioAsset(path, decoder.decode_audio_duration(path))
    return cache[path]


def build_timeline(config: dict, decoder: AssetDecoder | None = None) -> Timeline:
    """Decode assets and construct the Timeline for a normalized manifest.

    Each distinct asset path is decoded once and shared by every clip or
    audio entry that references it.

    Raises:
        AssetError: A referenced asset is missing or undecodable.
        ConfigError / TimelineModelError: From Timeline validation.
    """
    decoder = decoder or PillowAssetDecoder()
    colors = config["colors"]
    images: dict = {}
    sounds: dict = {}

    layers = []
    for layer in config["layers"]:
        clips = []
        for clip in layer.get("clips", []):
            clips.append(Clip(
                start_time=float(clip["start"]),
                end_time=float(clip["end"]),
                object=_build_object(clip["object"], colors, decoder, images),
                transform=_build_transform(clip.get("transform", {}) or {}),
            ))
        layers.append(Layer(tuple(clips), name=str(layer.get("name", ""))))

    music = tuple(
        MusicTrack(
            file=_audio_asset(m["file"], decoder, sounds),
            start_time=float(m["start"]),
            end_time=float(m["end"]),
            loop=bool(m.get("loop", False)),
            volume=float(m.get("volume", 1.0)),
        )
        for m in config["audio"]["music"]
    )
    sfx = tuple(
        SfxEvent(
            file=_audio_asset(s["file"], decoder, sounds),
            time=float(s["time"]),
            volume=float(s.get("volume", 1.0)),
        )
        for s in config["audio"]["sfx"]
    )

    video = config["video"]
    width, height = video["resolution"]
    return Timeline(
        duration=video["duration"],
        fps=video["fps"],
        width=width,
        height=height,
        background_color=video["background"],
        layers=tuple(layers),
        audio=AudioSchedule(music, sfx),
    )
