"""Time-varying transform channels and their evaluation.

A channel is one of three tagged variants:
  - Constant(value): the same value at every t.
  - Keyframed(keyframes): (time, value, easing) triples with strictly
    increasing times. Between neighbours the value is interpolated with
    the easing named on the *incoming* keyframe; outside the keyframe
    range it clamps to the nearest keyframe.
  - Custom(fn): fn(t) -> value, supplied by the caller (must be pure).

Values are floats (rotation, opacity) or (x, y) pairs (position, scale).
A TransformSpec groups the four channels with an anchor: rotation and
scale are applied about the anchor point, and the anchor is the point of
the object that lands on ``position``.
"""

import bisect
import numbers
from dataclasses import dataclass, field
from typing import Callable, Union

from .easing import VALID_EASINGS, apply_easing
from .errors import TimelineModelError


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _components(value) -> tuple:
    """Tuple of a sequence's items, or () for scalars, strings and None."""
    if isinstance(value, (str, bytes)):
        return ()
    try:
        return tuple(value)
    except TypeError:
        return ()


# ── Anchors ──────────────────────────────────────────────────────

ANCHOR_PRESETS: dict[str, tuple[float, float]] = {
    "top-left": (0.0, 0.0),
    "top-center": (0.5, 0.0),
    "top-right": (1.0, 0.0),
    "middle-left": (0.0, 0.5),
    "center": (0.5, 0.5),
    "middle-center": (0.5, 0.5),
    "middle-right": (1.0, 0.5),
    "bottom-left": (0.0, 1.0),
    "bottom-center": (0.5, 1.0),
    "bottom-right": (1.0, 1.0),
}


def resolve_anchor(anchor) -> tuple[float, float]:
    """Resolve a preset name or custom (u, v) to normalized coordinates.

    Raises:
        TimelineModelError: Unknown preset or component outside [0, 1].
    """
    if isinstance(anchor, str):
        if anchor not in ANCHOR_PRESETS:
            raise TimelineModelError(
                "model.anchor",
                f"Unknown anchor '{anchor}'. Valid: {sorted(ANCHOR_PRESETS)}",
            )
        return ANCHOR_PRESETS[anchor]

    components = _components(anchor)
    if len(components) != 2 or not all(_is_number(c) for c in components):
        raise TimelineModelError(
            "model.anchor",
            f"Anchor must be a preset name or a (u, v) pair of numbers, got {anchor!r}",
        )
    u, v = (float(c) for c in components)
    if not (0.0 <= u <= 1.0 and 0.0 <= v <= 1.0):
        raise TimelineModelError(
            "model.anchor",
            f"Anchor components must lie in [0, 1], got ({u}, {v})",
        )
    return (u, v)


def anchor_offset(
    anchor: tuple[float, float], width: float, height: float,
) -> tuple[float, float]:
    """Pixel offset of the anchor point from the object's center."""
    u, v = anchor
    return ((u - 0.5) * width, (v - 0.5) * height)


# ── Channel variants ─────────────────────────────────────────────

def _normalize_value(value):
    if _is_number(value):
        return float(value)
    components = _components(value)
    if not components or not all(_is_number(c) for c in components):
        raise TimelineModelError(
            "model.channel_shape",
            f"Channel value must be a number or a tuple of numbers, got {value!r}",
        )
    return tuple(float(c) for c in components)


@dataclass(frozen=True)
class Keyframe:
    time: float
    value: Union[float, tuple[float, ...]]
    easing: str = "linear"

    def __post_init__(self) -> None:
        if not _is_number(self.time):
            raise TimelineModelError(
                "model.keyframes", f"Keyframe time must be a number, got {self.time!r}"
            )
        object.__setattr__(self, "time", float(self.time))
        object.__setattr__(self, "value", _normalize_value(self.value))
        if self.easing not in VALID_EASINGS:
            raise TimelineModelError(
                "model.easing",
                f"Unknown easing '{self.easing}'. Valid: {sorted(VALID_EASINGS)}",
            )


@dataclass(frozen=True)
class Constant:
    value: Union[float, tuple[float, ...]]

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _normalize_value(self.value))


@dataclass(frozen=True)
class Keyframed:
    keyframes: tuple[Keyframe, ...]

    def __post_init__(self) -> None:
        keyframes = tuple(
            k if isinstance(k, Keyframe) else Keyframe(*k)
            for k in self.keyframes
        )
        if not keyframes:
            raise TimelineModelError(
                "model.keyframes", "A keyframed channel needs at least one keyframe"
            )
        for prev, cur in zip(keyframes, keyframes[1:]):
            if cur.time <= prev.time:
                raise TimelineModelError(
                    "model.keyframes",
                    f"Keyframe times must be strictly increasing "
                    f"({prev.time} followed by {cur.time})",
                )
        shapes = {_arity(k.value) for k in keyframes}
        if len(shapes) > 1:
            raise TimelineModelError(
                "model.keyframes",
                "All keyframes in a channel must have the same value shape",
            )
        object.__setattr__(self, "keyframes", keyframes)
        # Cached for bisect; derived from keyframes, never mutated.
        object.__setattr__(self, "_times", tuple(k.time for k in keyframes))


@dataclass(frozen=True)
class Custom:
    fn: Callable[[float], object]


Channel = Union[Constant, Keyframed, Custom]


def _arity(value) -> int:
    return 0 if isinstance(value, float) else len(value)


def as_channel(value) -> Channel:
    """Wrap a raw value or callable into a channel variant."""
    if isinstance(value, (Constant, Keyframed, Custom)):
        return value
    if callable(value):
        return Custom(value)
    return Constant(value)


# ── Evaluation ───────────────────────────────────────────────────

def _lerp(v0, v1, u: float):
    if isinstance(v0, float):
        return v0 + (v1 - v0) * u
    return tuple(a + (b - a) * u for a, b in zip(v0, v1))


def evaluate(channel: Channel, t: float):
    """Evaluate a channel at time t.

    Keyframed channels locate the bracketing pair by binary search,
    normalize u = (t - t0) / (t1 - t0), ease u with the incoming
    keyframe's easing, then interpolate v0 + (v1 - v0) * u'.
    """
    if isinstance(channel, Constant):
        return channel.value
    if isinstance(channel, Custom):
        return _normalize_value(channel.fn(t))
    if not isinstance(channel, Keyframed):
        raise TypeError(f"Not a transform channel: {channel!r}")

    keyframes = channel.keyframes
    if t <= keyframes[0].time:
        return keyframes[0].value
    if t >= keyframes[-1].time:
        return keyframes[-1].value

    i = bisect.bisect_right(channel._times, t)
    k0, k1 = keyframes[i - 1], keyframes[i]
    span = k1.time - k0.time
    if span == 0:
        return k0.value
    u = apply_easing(k1.easing, (t - k0.time) / span)
    return _lerp(k0.value, k1.value, u)


# ── Transform spec ───────────────────────────────────────────────

@dataclass(frozen=True)
class TransformSpec:
    """Position/scale/rotation/opacity channels plus an anchor.

    Raw values and callables are wrapped into channels on construction.
    Scale may be a single number (uniform). With ``local_time`` the
    channels are evaluated at clip-relative time instead of timeline time.
    """

    position: Channel = (0.0, 0.0)
    scale: Channel = (1.0, 1.0)
    rotation: Channel = 0.0
    opacity: Channel = 1.0
    anchor: Union[str, tuple[float, float]] = "center"
    local_time: bool = False
    anchor_uv: tuple[float, float] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("position", "scale", "rotation", "opacity"):
            channel = as_channel(getattr(self, name))
            _check_shape(name, channel)
            object.__setattr__(self, name, channel)
        object.__setattr__(self, "anchor_uv", resolve_anchor(self.anchor))


# Allowed value arities per channel: 0 = scalar, 2 = (x, y) pair.
CHANNEL_ARITIES = {
    "position": {2},
    "scale": {0, 2},
    "rotation": {0},
    "opacity": {0},
}


def _check_shape(name: str, channel: Channel) -> None:
    """Reject constant/keyframed values of the wrong shape for a channel.

    Custom channels are only checked when evaluated.
    """
    if isinstance(channel, Constant):
        arity = _arity(channel.value)
    elif isinstance(channel, Keyframed):
        arity = _arity(channel.keyframes[0].value)
    else:
        return
    if arity not in CHANNEL_ARITIES[name]:
        expected = " or ".join(
            "a number" if a == 0 else f"a {a}-tuple" for a in sorted(CHANNEL_ARITIES[name])
        )
        got = "a number" if arity == 0 else f"{arity} components"
        raise TimelineModelError(
            "model.channel_shape", f"{name} must be {expected}, got {got}",
        )


@dataclass(frozen=True)
class ResolvedTransform:
    position: tuple[float, float]
    scale: tuple[float, float]
    rotation: float
    opacity: float


def _vec2(value) -> tuple[float, float]:
    if isinstance(value, float):
        return (value, value)
    x, y = value
    return (x, y)


def _evaluate_channel(spec: TransformSpec, name: str, t: float):
    value = evaluate(getattr(spec, name), t)
    if _arity(value) not in CHANNEL_ARITIES[name]:
        raise TimelineModelError(
            "model.channel_shape", f"{name} evaluated to {value!r} at t={t}",
        )
    return value


def sample_transform(spec: TransformSpec, t: float) -> ResolvedTransform:
    """Evaluate every channel of a TransformSpec at t."""
    return ResolvedTransform(
        position=_vec2(_evaluate_channel(spec, "position", t)),
        scale=_vec2(_evaluate_channel(spec, "scale", t)),
        rotation=_evaluate_channel(spec, "rotation", t),
        opacity=_evaluate_channel(spec, "opacity", t),
    )
