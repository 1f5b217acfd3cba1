"""CLI for a single multiply blend job.

Loads the engine, stages the video and GIF, renders, and writes the
result next to (or at) --output.

Usage:
    # Write multiply_<video-name>.mp4 into the current directory
    multiplyblend blend clip.mp4 overlay.gif

    # Explicit output file, echo ffmpeg's log
    multiplyblend blend clip.mp4 overlay.gif --output /tmp/out.mp4 --verbose

    # Output directory + engine settings from a config file
    multiplyblend blend clip.mp4 overlay.gif --output renders/ --config blend.yaml
"""

import argparse
import asyncio
import sys
import time
from pathlib import Path

from .compositor import Compositor, InputFile
from .config import load_config
from .engine import Engine
from .status import Done, Error, LoadingEngine, Processing, Ready


class StatusPrinter:
    """Prints one console line per meaningful status change."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self._last_percent = None
        self._last_log = None

    def __call__(self, status):
        if isinstance(status, LoadingEngine):
            print("  LOAD      ffmpeg engine", flush=True)
        elif isinstance(status, Ready):
            print("  READY", flush=True)
        elif isinstance(status, Processing):
            percent = round(status.progress * 100)
            if percent != self._last_percent:
                self._last_percent = percent
                print(f"  PROGRESS  {percent:3d}%", flush=True)
            if self.verbose and status.log and status.log != self._last_log:
                self._last_log = status.log
                print(f"  LOG       {status.log}", flush=True)
        elif isinstance(status, Done):
            self._last_percent = None
            print(f"  DONE      {status.filename}", flush=True)
        elif isinstance(status, Error):
            self._last_percent = None
            print(f"  ERROR     {status.message}", file=sys.stderr, flush=True)


def resolve_output_path(output: str | None, filename: str) -> Path:
    """Pick the file to write: --output as a file, or filename inside a dir."""
    if output is None:
        return Path.cwd() / filename
    path = Path(output)
    if path.is_dir() or output.endswith(("/", "\\")):
        return path / filename
    return path


async def blend(
    video: InputFile,
    overlay: InputFile,
    output: str | None = None,
    config: dict | None = None,
    verbose: bool = False,
) -> Path | None:
    """Run one job end to end. Returns the written path, or None on error."""
    engine = Engine.from_config(config or load_config())
    compositor = Compositor(engine)
    compositor.subscribe(StatusPrinter(verbose=verbose))
    try:
        if not await compositor.initialize():
            return None
        print(f"  ENGINE    {engine.version}", flush=True)

        compositor.select_video(video)
        compositor.select_overlay(overlay)
        artifact = await compositor.run()
        if artifact is None:
            return None

        out_path = resolve_output_path(output, artifact.filename)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(artifact.data)
        return out_path
    finally:
        compositor.close()


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Loop a GIF over a video with a multiply blend, render to mp4.",
    )
    parser.add_argument(
        "video",
        help="Path to the source video",
    )
    parser.add_argument(
        "overlay",
        help="Path to the GIF overlay",
    )
    parser.add_argument(
        "--output", default=None,
        help="Output mp4 path or directory (default: derived name in the current directory)",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML engine config",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Echo ffmpeg log lines while rendering",
    )
    parsed = parser.parse_args(args)

    for label, path in (("Video", parsed.video), ("Overlay", parsed.overlay)):
        if not Path(path).is_file():
            parser.error(f"{label} not found: {path}")

    config = load_config(parsed.config)
    video = InputFile.from_path(parsed.video)
    overlay = InputFile.from_path(parsed.overlay)

    print(f"Blending {video.name} x {overlay.name} (multiply)")
    t0 = time.monotonic()
    out_path = asyncio.run(
        blend(video, overlay, parsed.output, config=config, verbose=parsed.verbose)
    )
    if out_path is None:
        sys.exit(1)
    print(f"\nDone: {out_path} ({time.monotonic() - t0:.1f}s)")


if __name__ == "__main__":
    main()
