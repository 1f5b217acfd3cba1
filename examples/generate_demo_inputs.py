#!/usr/bin/env python3
"""Generate a demo video and GIF overlay for multiplyblend.

Writes into examples/demo-inputs/:
  - demo.mp4      4s horizontal color sweep with a 440Hz tone
  - silent.mp4    same picture, no audio track
  - overlay.gif   6-frame looping GIF of a moving dark bar on white

White areas of the GIF leave the video untouched under multiply; the
bar darkens whatever it passes over, so the loop is easy to spot.

Usage:
    python examples/generate_demo_inputs.py
    multiplyblend blend examples/demo-inputs/demo.mp4 \
        examples/demo-inputs/overlay.gif --output examples/demo-renders/
"""

from pathlib import Path

import numpy as np
from moviepy import AudioClip, VideoClip
from PIL import Image, ImageDraw

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-inputs"
SIZE = (320, 240)
FPS = 24
DURATION = 4.0

GIF_SIZE = (80, 60)
GIF_FRAMES = 6
GIF_FRAME_MS = 120


def _sweep_frame(t: float) -> np.ndarray:
    """Horizontal hue sweep that scrolls left over time."""
    w, h = SIZE
    x = (np.arange(w) + t * 60) / w
    r = (np.sin(2 * np.pi * x) * 0.5 + 0.5) * 255
    g = (np.sin(2 * np.pi * (x + 1 / 3)) * 0.5 + 0.5) * 255
    b = (np.sin(2 * np.pi * (x + 2 / 3)) * 0.5 + 0.5) * 255
    row = np.stack([r, g, b], axis=-1).astype(np.uint8)
    return np.repeat(row[np.newaxis, :, :], h, axis=0)


def _tone(t):
    return 0.2 * np.sin(2 * np.pi * 440 * t)


def _write_videos():
    clip = VideoClip(_sweep_frame, duration=DURATION)
    silent = OUTPUT_DIR / "silent.mp4"
    clip.write_videofile(str(silent), fps=FPS, audio=False, logger=None)
    print(f"  wrote {silent.name}")

    audio = AudioClip(_tone, duration=DURATION, fps=44100)
    with_audio = OUTPUT_DIR / "demo.mp4"
    clip.with_audio(audio).write_videofile(
        str(with_audio), fps=FPS, audio_codec="aac", logger=None,
    )
    print(f"  wrote {with_audio.name}")


def _write_gif():
    w, h = GIF_SIZE
    bar_w = w // GIF_FRAMES
    frames = []
    for i in range(GIF_FRAMES):
        img = Image.new("RGB", GIF_SIZE, (255, 255, 255))
        draw = ImageDraw.Draw(img)
        draw.rectangle([i * bar_w, 0, (i + 1) * bar_w - 1, h - 1], fill=(40, 40, 40))
        frames.append(img)
    out = OUTPUT_DIR / "overlay.gif"
    frames[0].save(
        out, save_all=True, append_images=frames[1:],
        duration=GIF_FRAME_MS, loop=0,
    )
    print(f"  wrote {out.name}")


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    _write_videos()
    _write_gif()
    print(f"\nDone. Demo inputs in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
