"""Command-line entry point for sorting photos into a dated tree."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence

from photosort.processing import run_application_logic

_USAGE = "photocp -sourceDir <source_directory> -targetDir <target_directory> [-verbose]"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="photocp", usage=_USAGE, add_help=False)
    parser.add_argument(
        "-sourceDir",
        "--sourceDir",
        dest="source_dir",
        default="",
        help=(
            "Source directory containing photos to sort (e.g., common formats like "
            "JPG, PNG, GIF, HEIC, and various RAW types) (required)"
        ),
    )
    parser.add_argument(
        "-targetDir",
        "--targetDir",
        dest="target_dir",
        default="",
        help="Target directory to store sorted photos (required)",
    )
    parser.add_argument(
        "-verbose",
        "--verbose",
        dest="verbose",
        action="store_true",
        help="Enable verbose output for detailed processing information.",
    )
    parser.add_argument(
        "-help",
        "--help",
        "-h",
        dest="show_help",
        action="store_true",
        help="Show this help message",
    )
    return parser


def _help_text() -> str:
    parser = _build_parser()
    options = []
    for action in parser._actions:
        flags = ", ".join(action.option_strings)
        options.append(f"  {flags}\n        {action.help}")
    return f"Usage: {_USAGE}\n\nOptions:\n" + "\n".join(options)


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse and validate the command line.

    Returns a namespace with ``source_dir``, ``target_dir``, ``verbose`` and
    ``show_help``. When help is requested nothing else is validated. Raises
    ValueError for a missing flag, FileNotFoundError for a missing source,
    NotADirectoryError when the source is not a directory, and OSError when
    it cannot be examined.
    """
    args = _build_parser().parse_args(list(argv) if argv is not None else None)
    if args.show_help:
        return args

    if not args.source_dir:
        raise ValueError("Error: -sourceDir flag is required")
    if not args.target_dir:
        raise ValueError("Error: -targetDir flag is required")

    try:
        info = os.stat(args.source_dir)
    except FileNotFoundError:
        raise FileNotFoundError(
            f"Error: Source directory '{args.source_dir}' does not exist"
        ) from None
    except OSError as exc:
        raise OSError(
            f"Error: Could not stat source directory '{args.source_dir}': {exc}"
        ) from exc
    if not os.path.isdir(args.source_dir) or info is None:
        raise NotADirectoryError(
            f"Error: Source path '{args.source_dir}' is not a directory"
        )
    return args


def main(argv: Sequence[str] | None = None) -> int:
    """Run the photo sorter and return the process exit status."""
    try:
        args = parse_arguments(argv)
    except (ValueError, OSError) as exc:
        print(exc, file=sys.stderr)
        return 1

    if args.show_help:
        print(_help_text())
        return 0

    try:
        result = run_application_logic(args.source_dir, args.target_dir, args.verbose)
    except OSError as exc:
        print(f"Application Error: {exc}", file=sys.stderr)
        return 1

    print(
        f"Run Summary: Processed: {result.processed_files_count}, "
        f"Copied: {result.copied_files_count}, "
        f"Duplicates Found: {len(result.duplicates)}, "
        f"Pixel Hash Unsupported (Unique Files): {result.pixel_hash_unsupported_count}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())