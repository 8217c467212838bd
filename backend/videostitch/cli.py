"""
VideoStitch CLI - thin entrypoint for operator commands.

Commands:
- serve:    run the HTTP backend (uvicorn)
- probe:    print technical metadata for a media file as JSON
- classify: print source category and embedded timestamp for filenames

Design Principles:
==================
- CLI is a dispatcher only
- Surface errors verbatim from the layer below
- Exit non-zero on failure

Exit Codes:
===========
- 0: Success
- 1: Failure
"""

import argparse
import json
import sys
from datetime import timezone
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError

from .metadata.errors import MetadataError
from .metadata.extractors import describe_file, extract_metadata
from .metadata.filename import classify_source, extract_filename_timestamp
from .settings import AppSettings


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP backend until interrupted."""
    import uvicorn

    try:
        settings = AppSettings.from_env()
    except ValidationError as e:
        print(f"ERROR: Invalid configuration:\n{e}", file=sys.stderr)
        return 1

    port = args.port if args.port is not None else settings.port
    uvicorn.run(
        "videostitch.main:create_app",
        factory=True,
        host=args.host,
        port=port,
        log_level=settings.log_level.lower(),
    )
    return 0


def cmd_probe(args: argparse.Namespace) -> int:
    """
    Print ffprobe-derived metadata for one file.

    Exit codes:
        0: Metadata extracted
        1: ffprobe missing or extraction failed
    """
    try:
        settings = AppSettings.from_env()
        metadata = extract_metadata(
            args.file,
            ffprobe_path=settings.ffprobe_path,
            timeout=settings.probe_timeout_seconds,
        )
    except (MetadataError, ValidationError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    output = describe_file(args.file)
    output.update(metadata.model_dump(mode="json"))
    print(json.dumps(output, indent=2))
    return 0


def cmd_classify(args: argparse.Namespace) -> int:
    """Print source category and filename timestamp, one line per filename."""
    tz = timezone.utc
    if args.tz:
        try:
            tz = ZoneInfo(args.tz)
        except (ZoneInfoNotFoundError, ValueError) as e:
            print(f"ERROR: Unknown time zone '{args.tz}': {e}", file=sys.stderr)
            return 1

    for filename in args.filenames:
        timestamp = extract_filename_timestamp(filename, tz=tz)
        print(
            f"{filename}\t{classify_source(filename).value}\t"
            f"{timestamp.isoformat() if timestamp else '-'}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="videostitch",
        description="VideoStitch - collaborative clip collection and export planning",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to execute")

    parser_serve = subparsers.add_parser("serve", help="Run the HTTP backend")
    parser_serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser_serve.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port (default: PORT environment variable or 3333)",
    )
    parser_serve.set_defaults(func=cmd_serve)

    parser_probe = subparsers.add_parser("probe", help="Print metadata for a media file as JSON")
    parser_probe.add_argument("file", help="Path to media file")
    parser_probe.set_defaults(func=cmd_probe)

    parser_classify = subparsers.add_parser(
        "classify",
        help="Print source category and embedded timestamp for filenames",
    )
    parser_classify.add_argument("filenames", nargs="+", help="Filenames to classify")
    parser_classify.add_argument(
        "--tz",
        default=None,
        help="IANA zone for wall-clock times in filenames (default: UTC)",
    )
    parser_classify.set_defaults(func=cmd_classify)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and dispatch to subcommands."""
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
