#!/usr/bin/env python3
"""Generate synthetic assets for the demo timeline manifest.

Creates a logo PNG with a transparent border, a looping music bed and a
short "ding" sound effect in examples/demo-assets/.

Usage:
    python examples/generate_demo_assets.py
    # Then render:
    reelcompose render --manifest examples/demo-timeline.yaml \
        --output examples/demo-renders/demo.mp4
"""

import numpy as np
from moviepy import AudioClip
from pathlib import Path
from PIL import Image, ImageDraw

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-assets"
SAMPLE_RATE = 44100

# (name, left frequency, right frequency, duration, gain)
SOUNDS = [
    ("bed", 220.0, 330.0, 4.0, 0.2),
    ("ding", 880.0, 880.0, 0.4, 0.5),
]


def _make_logo() -> Image.Image:
    """Accent-colored rounded badge on a transparent 200x120 canvas."""
    img = Image.new("RGBA", (200, 120), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rounded_rectangle([(10, 10), (189, 109)], radius=24, fill=(177, 19, 77, 255))
    draw.ellipse([(30, 35), (80, 85)], fill=(255, 255, 255, 230))
    return img


def _tone(left: float, right: float, duration: float, gain: float) -> AudioClip:
    def frame_function(t):
        # Short fade-out so looping and one-shots don't click.
        envelope = np.clip((duration - t) / 0.05, 0.0, 1.0) * gain
        return np.array([
            np.sin(2 * np.pi * left * t) * envelope,
            np.sin(2 * np.pi * right * t) * envelope,
        ]).T.copy(order="C")

    return AudioClip(frame_function, duration=duration, fps=SAMPLE_RATE)


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

    logo = OUTPUT_DIR / "logo.png"
    if logo.exists():
        print("  skip logo (exists)")
    else:
        _make_logo().save(logo)
        print("  wrote logo")

    for name, left, right, duration, gain in SOUNDS:
        out = OUTPUT_DIR / f"{name}.wav"
        if out.exists():
            print(f"  skip {name} (exists)")
            continue
        _tone(left, right, duration, gain).write_audiofile(
            str(out), fps=SAMPLE_RATE, logger=None,
        )
        print(f"  wrote {name} ({duration}s)")

    print(f"\nDone. Assets in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
