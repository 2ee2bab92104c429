"""Main module for the media derivatives CLI."""

import sys
import json
import os
import argparse

from . import __version__
from .core.dispatcher import build_s3_event
from .handler import handler


def main() -> None:
    """
    Entry point for the command-line interface of the derivatives generator.

    ``process`` runs the same code path as the Lambda handler, for an event
    read from a file or synthesized from a key, and prints the response.
    Configuration comes from the same environment variables.
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="media-derivatives",
        description="Media Derivatives - resized images and video proxies for stored originals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate derivatives for one original
  media-derivatives process --key uploads/photo.jpg

  # Replay a stored S3 notification
  media-derivatives process --event event.json --debug

  # Show version
  media-derivatives version
        """,
    )

    subparsers: argparse._SubParsersAction = parser.add_subparsers(
        dest="command", help="Available commands"
    )

    process_parser: argparse.ArgumentParser = subparsers.add_parser(
        "process", help="Generate derivatives for one stored original"
    )
    source = process_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--key", help="Key of the original object")
    source.add_argument("--event", help="Path to an S3 notification JSON file")
    process_parser.add_argument(
        "--bucket",
        default=None,
        help="Bucket of the original (defaults to SOURCE_BUCKET)",
    )
    process_parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )

    subparsers.add_parser("version", help="Show version information")

    args: argparse.Namespace = parser.parse_args()

    if args.command == "process":
        if args.debug:
            os.environ["LOG_LEVEL"] = "DEBUG"

        if args.event:
            with open(args.event, encoding="utf-8") as event_file:
                event = json.load(event_file)
        else:
            bucket = args.bucket or os.getenv("SOURCE_BUCKET", "")
            event = build_s3_event(bucket, args.key)

        response = handler(event)
        print(json.dumps(response, indent=2))
        sys.exit(0 if 200 <= response["statusCode"] < 300 else 1)

    elif args.command == "version":
        print("Media Derivatives CLI")
        print(f"Version {__version__}")
        print("Resized image and video proxy derivatives for S3 originals")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
