"""Sampler — resolve the timeline's visible state at one instant.

``sample(timeline, t)`` walks layers in z-order and clips in declaration
order, keeps the clips active at t (start_time <= t < end_time) and
evaluates their transforms. Inactive clips are simply omitted: content
pops in and out at clip boundaries unless the caller keyframes opacity.

Frame coordinates: origin at the top-left pixel corner, x to the right,
y down, rotation in degrees clockwise on screen. The anchor point of the
object lands on ``position``; the object's center is found by rotating
and scaling the anchor's offset from center and subtracting it.

Sampling is a pure read of the timeline: the same (timeline, t) always
yields equal SampledState tuples.
"""

import math
from dataclasses import dataclass

from .model import Timeline
from .objects import RenderObject, object_size
from .transform import anchor_offset, sample_transform


@dataclass(frozen=True)
class SampledState:
    layer_index: int
    clip_index: int
    object: RenderObject
    local_time: float
    position: tuple[float, float]
    scale: tuple[float, float]
    rotation: float
    opacity: float
    anchor: tuple[float, float]
    pivot_offset: tuple[float, float]
    center: tuple[float, float]


def draw_center(
    position: tuple[float, float],
    scale: tuple[float, float],
    rotation: float,
    pivot_offset: tuple[float, float],
) -> tuple[float, float]:
    """Frame position of the object's center given its anchor placement.

    center = position + R(rotation) · S(scale) · (-pivot_offset)
    """
    dx = -pivot_offset[0] * scale[0]
    dy = -pivot_offset[1] * scale[1]
    theta = math.radians(rotation)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    return (
        position[0] + dx * cos_t - dy * sin_t,
        position[1] + dx * sin_t + dy * cos_t,
    )


def sample(timeline: Timeline, t: float) -> tuple[SampledState, ...]:
    """Return one SampledState per active clip, back-to-front.

    Ordered by layer index, then clip order within the layer.
    """
    states = []
    for li, layer in enumerate(timeline.layers):
        for ci, clip in layer.active_clips(t):
            spec = clip.transform
            local_t = clip.local_time(t)
            resolved = sample_transform(spec, local_t if spec.local_time else t)

            width, height = object_size(clip.object)
            pivot = anchor_offset(spec.anchor_uv, width, height)
            center = draw_center(
                resolved.position, resolved.scale, resolved.rotation, pivot,
            )

            states.append(SampledState(
                layer_index=li,
                clip_index=ci,
                object=clip.object,
                local_time=local_t,
                position=resolved.position,
                scale=resolved.scale,
                rotation=resolved.rotation,
                opacity=resolved.opacity,
                anchor=spec.anchor_uv,
                pivot_offset=pivot,
                center=center,
            ))
    return tuple(states)
