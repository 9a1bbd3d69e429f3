"""Subcommand dispatcher for reelcompose.

Usage:
    reelcompose render   --manifest ... --output ...
    reelcompose still    --manifest ... --time 1.5 --output frame.png
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="reelcompose",
        description="Declarative timeline rendering: layered, keyframed video and audio.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own parser in cli.py.
    subparsers.add_parser("render", help="Render a YAML timeline manifest to mp4")
    subparsers.add_parser("still", help="Render one frame of a manifest to PNG")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        # No subcommand given at all — show help and exit with error.
        parser.print_help()
        sys.exit(1)

    if parsed.command == "render":
        from .cli import main as render_main
        render_main(remaining)
    elif parsed.command == "still":
        from .cli import still_main
        still_main(remaining)


if __name__ == "__main__":
    main()
