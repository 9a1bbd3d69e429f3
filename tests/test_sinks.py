"""Tests for frame, audio-mix and mux sinks."""

import imageio_ffmpeg
import numpy as np
import pytest

from reelcompose.audio import AudioInstruction
from reelcompose.errors import SinkError
from reelcompose.sinks import (
    FfmpegAudioMixSink,
    FfmpegFrameSink,
    MemoryFrameSink,
    SinkResponse,
    build_mix_command,
    mux_audio,
)


def _instruction(**overrides):
    params = dict(
        kind="sfx", file="ding.wav", onset=1.5, volume=0.8,
        source_offset=0.0, duration=0.5, loop=False, file_duration=0.5,
    )
    params.update(overrides)
    return AudioInstruction(**params)


def _frames(n, width=32, height=16):
    for i in range(n):
        frame = np.zeros((height, width, 4), dtype=np.uint8)
        frame[..., 0] = i * 10
        frame[..., 3] = 255
        yield frame


class TestMemoryFrameSink:
    def test_collects_frames(self):
        sink = MemoryFrameSink()
        for i, frame in enumerate(_frames(3)):
            assert sink.accept(i, frame, 32, 16) is SinkResponse.CONTINUE
        assert sink.indices == [0, 1, 2]

    def test_limit_stops(self):
        sink = MemoryFrameSink(limit=2)
        frames = list(_frames(2))
        assert sink.accept(0, frames[0], 32, 16) is SinkResponse.CONTINUE
        assert sink.accept(1, frames[1], 32, 16) is SinkResponse.STOP


class TestBuildMixCommand:
    def test_empty_schedule_is_silence(self):
        cmd = build_mix_command([], "out.wav", 2.5)
        assert "anullsrc=r=44100:cl=stereo" in cmd
        assert cmd[cmd.index("-t") + 1] == "2.500"
        assert cmd[-1] == "out.wav"

    def test_filter_graph(self):
        cmd = build_mix_command([_instruction()], "out.wav", 4.0)
        graph = cmd[cmd.index("-filter_complex") + 1]
        assert "[0:a]atrim=start=0.000:duration=0.500" in graph
        assert "volume=0.800" in graph
        assert "adelay=1500:all=1[a0]" in graph
        assert "amix=inputs=1:duration=longest:normalize=0" in graph
        assert graph.endswith("atrim=duration=4.000[aout]")
        assert cmd[cmd.index("-map") + 1] == "[aout]"

    def test_looping_input_is_stream_looped(self):
        music = _instruction(kind="music", file="bed.wav", onset=0.0, loop=True, duration=8.0)
        cmd = build_mix_command([music, _instruction()], "out.wav", 8.0)
        loop_at = cmd.index("-stream_loop")
        assert cmd[loop_at + 1:loop_at + 4] == ["-1", "-i", "bed.wav"]
        assert cmd.count("-stream_loop") == 1
        graph = cmd[cmd.index("-filter_complex") + 1]
        assert "[a0][a1]amix=inputs=2" in graph


class TestFfmpegFrameSink:
    def test_writes_mp4(self, tmp_path):
        out = tmp_path / "out.mp4"
        with FfmpegFrameSink(out, 32, 16, 10) as sink:
            for i, frame in enumerate(_frames(10)):
                sink.accept(i, frame, 32, 16)
        n_frames, _ = imageio_ffmpeg.count_frames_and_secs(str(out))
        assert n_frames == 10

    def test_size_mismatch(self, tmp_path):
        with pytest.raises(SinkError) as exc_info:
            with FfmpegFrameSink(tmp_path / "out.mp4", 32, 16, 10) as sink:
                sink.accept(0, next(_frames(1, 8, 8)), 8, 8)
        assert exc_info.value.code == "sink.ffmpeg.frame_size"


class TestFfmpegAudioMixSink:
    def test_mixes_to_file(self, tmp_path, tone_wav):
        out = tmp_path / "mix.wav"
        music = _instruction(
            kind="music", file=str(tone_wav), onset=0.0, duration=3.0,
            loop=True, file_duration=2.0,
        )
        assert FfmpegAudioMixSink(3.0).accept([music], str(out))
        assert out.stat().st_size > 0

    def test_silence_for_empty_schedule(self, tmp_path):
        out = tmp_path / "silence.wav"
        assert FfmpegAudioMixSink(1.0).accept([], str(out))
        assert out.exists()

    def test_missing_input_reports_failure(self, tmp_path):
        bad = _instruction(file=str(tmp_path / "missing.wav"))
        assert not FfmpegAudioMixSink(2.0).accept([bad], str(tmp_path / "mix.wav"))


class TestMuxAudio:
    def test_mux(self, tmp_path, tone_wav):
        video = tmp_path / "video.mp4"
        with FfmpegFrameSink(video, 32, 16, 10) as sink:
            for i, frame in enumerate(_frames(10)):
                sink.accept(i, frame, 32, 16)
        out = tmp_path / "final.mp4"
        mux_audio(str(video), str(tone_wav), str(out))
        assert out.stat().st_size > 0

    def test_mux_failure(self, tmp_path):
        with pytest.raises(SinkError) as exc_info:
            mux_audio(str(tmp_path / "a.mp4"), str(tmp_path / "b.wav"), str(tmp_path / "c.mp4"))
        assert exc_info.value.code == "sink.ffmpeg.mux"
