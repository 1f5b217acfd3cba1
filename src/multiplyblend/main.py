"""Subcommand dispatcher for multiplyblend.

Usage:
    multiplyblend blend  clip.mp4 overlay.gif --output out.mp4
    multiplyblend check  [--config blend.yaml]
"""

import argparse
import asyncio
import sys

from .config import load_config
from .engine import Engine
from .errors import InitError


def check_main(args=None):
    """Load the engine once and report which ffmpeg it booted."""
    parser = argparse.ArgumentParser(
        description="Check that the ffmpeg engine resolves and boots.",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML engine config",
    )
    parsed = parser.parse_args(args)

    engine = Engine.from_config(load_config(parsed.config))
    try:
        asyncio.run(engine.load())
    except InitError as e:
        print(f"Engine failed: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        engine.terminate()

    print(f"ffmpeg:  {engine.ffmpeg}")
    print(f"version: {engine.version}")
    print("Engine ready.")


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="multiplyblend",
        description="Blend a looping GIF over a video with multiply.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own main().
    subparsers.add_parser("blend", help="Render a video with a GIF multiplied over it")
    subparsers.add_parser("check", help="Verify the ffmpeg engine loads")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "blend":
        from .cli import main as blend_main
        blend_main(remaining)
    elif parsed.command == "check":
        check_main(remaining)


if __name__ == "__main__":
    main()
