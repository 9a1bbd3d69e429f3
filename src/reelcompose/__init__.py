"""reelcompose — declarative timelines for programmatic video.

Describe layered, time-varying shapes, text and images plus an audio
schedule, then sample that description deterministically into RGBA
frames and an audio mix, either offline (render) or live (preview).
"""

from .audio import AudioEventCollector, resolve_range
from .compositor import composite, render_frame
from .errors import AssetError, ConfigError, ReelError, SinkError, TimelineModelError
from .model import AudioSchedule, Clip, Layer, MusicTrack, SfxEvent, Timeline
from .render import RenderProgress, render_timeline
from .sampler import SampledState, sample
from .transform import Constant, Custom, Keyframe, Keyframed, TransformSpec

__all__ = [
    "AssetError", "AudioEventCollector", "AudioSchedule", "Clip", "ConfigError",
    "Constant", "Custom", "Keyframe", "Keyframed", "Layer", "MusicTrack",
    "ReelError", "RenderProgress", "SampledState", "SfxEvent", "SinkError",
    "Timeline", "TimelineModelError", "TransformSpec", "composite",
    "render_frame", "render_timeline", "resolve_range", "sample",
]
