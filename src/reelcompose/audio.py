"""Audio event collector — which music plays and which sfx fire.

Two modes share the same resolution rules:

  - Instant (preview): AudioEventCollector.resolve_instant(t) reports the
    music tracks active at t with their playback offsets, and the sfx
    events whose scheduled time was crossed since the previous call.
    Sfx are edge-triggered: asking about the same t twice fires nothing
    the second time.

  - Range (render): resolve_range(schedule, start, end) is a pure function
    producing one AudioInstruction per music overlap and per sfx in
    [start, end), ready for an offline mixer.

Music playback offset: (t - start) mod file duration when looping,
otherwise t - start clamped to the file duration.
"""

from dataclasses import dataclass

from .model import AudioSchedule, MusicTrack, SfxEvent


# ── Results ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class ActiveTrack:
    track: MusicTrack
    offset: float
    exhausted: bool = False


@dataclass(frozen=True)
class InstantAudio:
    active: tuple[ActiveTrack, ...]
    fired: tuple[SfxEvent, ...]


@dataclass(frozen=True)
class AudioInstruction:
    """One placement of an audio file in an offline mix.

    Attributes:
        kind: "music" or "sfx".
        file: Source file path.
        onset: Start within the rendered range, in seconds from range start.
        volume: Linear gain (>= 0).
        source_offset: Seek position into the source file.
        duration: How long to play, in seconds.
        loop: Whether the source wraps around while playing.
        file_duration: Length of the source file.
    """

    kind: str
    file: str
    onset: float
    volume: float
    source_offset: float
    duration: float
    loop: bool
    file_duration: float


# ── Shared resolution ────────────────────────────────────────────


def playback_offset(track: MusicTrack, t: float) -> tuple[float, bool]:
    """(offset into the file, whether a non-looping file has run out) at t."""
    elapsed = t - track.start_time
    length = track.track_duration
    if track.loop:
        return elapsed % length, False
    if elapsed >= length:
        return length, True
    return elapsed, False


def active_tracks(schedule: AudioSchedule, t: float) -> tuple[ActiveTrack, ...]:
    """Music tracks with start_time <= t < end_time, in declaration order."""
    result = []
    for track in schedule.music:
        if track.start_time <= t < track.end_time:
            offset, exhausted = playback_offset(track, t)
            result.append(ActiveTrack(track, offset, exhausted))
    return tuple(result)


# ── Instant mode ─────────────────────────────────────────────────


class AudioEventCollector:
    """Edge-triggered sfx detection for live playback.

    The first call fires events in [start_time, t]; later calls fire events
    in (previous t, t]. Moving backwards (a seek) re-arms at the new t, so
    only events scheduled exactly there fire.
    """

    def __init__(self, schedule: AudioSchedule, start_time: float = 0.0):
        self.schedule = schedule
        self.start_time = start_time
        self._last_t: float | None = None

    def reset(self, t: float | None = None) -> None:
        """Forget the last observed time; the next call starts at t."""
        if t is not None:
            self.start_time = t
        self._last_t = None

    def resolve_instant(self, t: float) -> InstantAudio:
        if self._last_t is None:
            fired = [e for e in self.schedule.sfx if self.start_time <= e.time <= t]
        elif t < self._last_t:
            fired = [e for e in self.schedule.sfx if e.time == t]
        else:
            fired = [e for e in self.schedule.sfx if self._last_t < e.time <= t]
        self._last_t = t
        return InstantAudio(active_tracks(self.schedule, t), tuple(fired))


# ── Range mode ───────────────────────────────────────────────────


def _music_instruction(
    track: MusicTrack, start_time: float, end_time: float,
) -> AudioInstruction | None:
    overlap_start = max(track.start_time, start_time)
    overlap_end = min(track.end_time, end_time)
    if overlap_start >= overlap_end:
        return None

    offset, exhausted = playback_offset(track, overlap_start)
    duration = overlap_end - overlap_start
    if not track.loop:
        if exhausted:
            return None
        duration = min(duration, track.track_duration - offset)

    return AudioInstruction(
        kind="music",
        file=track.file.path,
        onset=overlap_start - start_time,
        volume=track.volume,
        source_offset=offset,
        duration=duration,
        loop=track.loop,
        file_duration=track.track_duration,
    )


def _sfx_instruction(
    event: SfxEvent, start_time: float, end_time: float,
) -> AudioInstruction:
    return AudioInstruction(
        kind="sfx",
        file=event.file.path,
        onset=event.time - start_time,
        volume=event.volume,
        source_offset=0.0,
        duration=min(event.file.duration, end_time - event.time),
        loop=False,
        file_duration=event.file.duration,
    )


def resolve_range(
    schedule: AudioSchedule, start_time: float, end_time: float,
) -> list[AudioInstruction]:
    """Resolve every audio placement in [start_time, end_time).

    Includes each music track overlapping the range and each sfx event with
    start_time <= time < end_time. Ordered by onset; ties keep music before
    sfx and declaration order within each.

    Depends only on its arguments, never on earlier calls.
    """
    entries = []
    for i, track in enumerate(schedule.music):
        instruction = _music_instruction(track, start_time, end_time)
        if instruction is not None:
            entries.append((instruction.onset, 0, i, instruction))
    for i, event in enumerate(schedule.sfx):
        if start_time <= event.time < end_time:
            instruction = _sfx_instruction(event, start_time, end_time)
            entries.append((instruction.onset, 1, i, instruction))
    entries.sort(key=lambda e: e[:3])
    return [e[3] for e in entries]
