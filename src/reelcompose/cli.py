"""CLI for rendering a timeline manifest.

Reads a YAML manifest, validates all asset paths, builds the timeline,
mixes the audio schedule, streams frames through ffmpeg and muxes the
two into an mp4.

Usage:
    # Render the whole timeline
    python -m reelcompose.cli \
        --manifest timeline.yaml --output /tmp/out.mp4

    # Render a sub-range on 4 worker threads
    python -m reelcompose.cli \
        --manifest timeline.yaml --output /tmp/out.mp4 \
        --start 2 --end 4.5 --workers 4

    # Validate only (no rendering)
    python -m reelcompose.cli --manifest timeline.yaml --validate

    # Single frame as PNG (via the dispatcher)
    reelcompose still --manifest timeline.yaml --time 1.5 --output /tmp/frame.png
"""

import argparse
import logging
import sys
import tempfile
import time
from pathlib import Path

from PIL import Image

from .compositor import render_frame
from .config import RenderConfig
from .errors import ConfigError, ReelError
from .manifest import build_timeline, load_manifest, validate_paths
from .render import RenderProgress, render_timeline
from .sinks import FfmpegAudioMixSink, FfmpegFrameSink, mux_audio


logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _render_config(config: dict, output_path: str, start: float, end: float | None) -> RenderConfig:
    video = config["video"]
    width, height = video["resolution"]
    return RenderConfig(
        width=width,
        height=height,
        fps=video["fps"],
        duration=video["duration"],
        background_color=video["background"],
        output_path=output_path,
        start_time=start,
        end_time=end,
    )


# ── Render ───────────────────────────────────────────────────────


def render(
    manifest_path: str,
    output_path: str,
    start_time: float = 0.0,
    end_time: float | None = None,
    workers: int = 1,
    audio: bool = True,
    progress_every: int = 100,
) -> None:
    """Load manifest, validate, render frames (and audio) to an mp4.

    Args:
        manifest_path: Path to YAML manifest.
        output_path: Output mp4 path.
        start_time: Range start in seconds.
        end_time: Range end in seconds (default: timeline duration).
        workers: Threads computing frames in parallel.
        audio: Mix and mux the audio schedule when it has any entries.
        progress_every: Log a progress line every N frames (0 disables).
    """
    config = load_manifest(manifest_path)
    validate_paths(config)
    render_config = _render_config(config, output_path, start_time, end_time)
    timeline = build_timeline(config)

    start = render_config.start_time
    end = render_config.resolved_end_time
    has_audio = audio and bool(timeline.audio.music or timeline.audio.sfx)

    print(
        f"Rendering {render_config.frames} frames ({start:.2f}s-{end:.2f}s), "
        f"{timeline.width}x{timeline.height}, {timeline.fps}fps"
    )
    print(f"Writing to: {output_path}")

    progress = RenderProgress(
        enabled=progress_every > 0, log_every_frames=max(1, progress_every),
    )
    t0 = time.monotonic()

    with tempfile.TemporaryDirectory(prefix="reelcompose-") as tmp:
        video_path = str(Path(tmp) / "video.mp4") if has_audio else output_path
        audio_path = str(Path(tmp) / "audio.wav")
        audio_sink = FfmpegAudioMixSink(end - start) if has_audio else None

        with FfmpegFrameSink(video_path, timeline.width, timeline.height, timeline.fps) as sink:
            result = render_timeline(
                timeline, sink,
                start_time=start,
                end_time=end,
                audio_sink=audio_sink,
                audio_output_path=audio_path,
                workers=workers,
                progress=progress,
            )

        if has_audio:
            mux_audio(video_path, audio_path, output_path)

    elapsed = time.monotonic() - t0
    suffix = " (stopped early)" if result.stopped_early else ""
    print(
        f"\nDone: {output_path} — {result.frames_delivered}/{result.frames_total} "
        f"frames, {len(result.audio_instructions)} audio event(s), "
        f"{elapsed:.1f}s wall{suffix}"
    )


def still(manifest_path: str, t: float, output_path: str) -> None:
    """Render the single frame at time t to a PNG."""
    config = load_manifest(manifest_path)
    validate_paths(config)
    timeline = build_timeline(config)
    if not 0 <= t < timeline.duration:
        raise ConfigError(
            "config.time_range", f"--time {t} outside [0, {timeline.duration})"
        )
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(render_frame(timeline, t)).save(output_path)
    print(f"Done: {output_path} (t={t:.3f}s)")


# ── CLI entry points ─────────────────────────────────────────────


def _validate(manifest_path: str) -> None:
    config = load_manifest(manifest_path)
    validate_paths(config)
    timeline = build_timeline(config)
    print(
        f"Manifest valid: {len(timeline.layers)} layers, "
        f"{timeline.frame_count()} frames"
    )
    for i, layer in enumerate(timeline.layers):
        name = f" [{layer.name}]" if layer.name else ""
        print(f"  {i}{name}: {len(layer.clips)} clip(s)")
        for clip in layer.clips:
            print(
                f"      {clip.start_time:7.2f}s — {clip.end_time:7.2f}s  {clip.object.kind}"
            )
    audio = timeline.audio
    print(f"  audio: {len(audio.music)} music track(s), {len(audio.sfx)} sfx event(s)")
    print("All paths verified.")


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render a YAML timeline manifest to mp4.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML manifest file",
    )
    parser.add_argument(
        "--output",
        help="Output mp4 path",
    )
    parser.add_argument(
        "--start", type=float, default=0.0,
        help="Range start in seconds (default: 0)",
    )
    parser.add_argument(
        "--end", type=float, default=None,
        help="Range end in seconds (default: timeline duration)",
    )
    parser.add_argument(
        "--workers", type=int, default=1,
        help="Number of frame-rendering threads (default: 1)",
    )
    parser.add_argument(
        "--no-audio", action="store_true",
        help="Skip the audio mix; write a silent video",
    )
    parser.add_argument(
        "--progress-every", type=int, default=100,
        help="Log progress every N frames, 0 to disable (default: 100)",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate manifest only — check paths, don't render",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Debug logging",
    )
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    try:
        if args.validate:
            _validate(args.manifest)
            return

        if not args.output:
            parser.error("--output is required (unless using --validate)")

        render(
            args.manifest, args.output,
            start_time=args.start,
            end_time=args.end,
            workers=args.workers,
            audio=not args.no_audio,
            progress_every=args.progress_every,
        )
    except ReelError as exc:
        logger.error("%s: %s", exc.code, str(exc).strip())
        sys.exit(1)


def still_main(args=None):
    parser = argparse.ArgumentParser(
        description="Render one frame of a YAML timeline manifest to PNG.",
    )
    parser.add_argument("--manifest", required=True, help="Path to YAML manifest file")
    parser.add_argument("--time", type=float, required=True, help="Timestamp in seconds")
    parser.add_argument("--output", required=True, help="Output PNG path")
    args = parser.parse_args(args)
    configure_logging()

    try:
        still(args.manifest, args.time, args.output)
    except ReelError as exc:
        logger.error("%s: %s", exc.code, str(exc).strip())
        sys.exit(1)


if __name__ == "__main__":
    main()
