"""Command-line interface for song merger."""

import argparse
import locale
import sys
from pathlib import Path
from typing import Optional

from .extractor import extract_packs
from .merger import merge_songs, print_summary
from .models import MergeConfig


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for the merge tool."""
    parser = argparse.ArgumentParser(
        description="Merge extracted song folders into a songs folder organized by title.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Running this is destructive: song folders are moved or deleted from the source directory.

Examples:
  %(prog)s ~/Downloads/be-music-seeker-output/Base ~/bms/songs
  %(prog)s ~/Downloads/be-music-seeker-output/Append ~/bms/songs Append
        """
    )

    parser.add_argument("source", type=Path, help="Directory containing extracted song folders")
    parser.add_argument("destination", type=Path, help="Songs folder organized by title")
    parser.add_argument(
        "tag",
        nargs="?",
        default=None,
        help='Name for conflicts, e.g. "Append". Different songs sharing a name are kept as "<name> (<tag>)"'
    )

    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments."""
    if not args.source.exists():
        print(f"Error: Source directory does not exist: {args.source}", file=sys.stderr)
        sys.exit(1)
    if not args.source.is_dir():
        print(f"Error: Source is not a directory: {args.source}", file=sys.stderr)
        sys.exit(1)
    if args.destination.exists() and not args.destination.is_dir():
        print(f"Error: Destination is not a directory: {args.destination}", file=sys.stderr)
        sys.exit(1)
    if args.tag is not None and not args.tag.strip():
        print("Error: Conflict tag must not be blank", file=sys.stderr)
        sys.exit(1)


def setup_collation() -> None:
    """Use the user's locale for name ordering, falling back to the C locale."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        print(f"Warning: Could not set locale ({e}). Using C locale ordering.")


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    validate_args(args)
    setup_collation()

    config = MergeConfig(
        source_root=args.source.absolute(),
        dest_root=args.destination.absolute(),
        conflict_tag=args.tag
    )

    print("=" * 60)
    print("SONG MERGER")
    print("=" * 60)
    print(f"Source:      {config.source_root}")
    print(f"Destination: {config.dest_root}")
    if config.conflict_tag:
        print(f"Conflicts:   \"<name>{config.conflict_suffix}\"")
    print()

    try:
        summary = merge_songs(config)
    except KeyboardInterrupt:
        print("\n\nInterrupted! Folders already processed have been moved.")
        print("Run the same command again to continue with the remaining folders.")
        sys.exit(1)

    print_summary(summary)


def parse_extract_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for the extraction tool."""
    parser = argparse.ArgumentParser(
        description="Extract BMS pack archives into Base and Append song directories.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ~/Downloads ~/Downloads/be-music-seeker-output
  %(prog)s --seven-zip /usr/bin/7za --workers 4 ~/Downloads ~/out
        """
    )

    parser.add_argument("input", type=Path, help="Directory containing the downloaded packs")
    parser.add_argument("output", type=Path, help="Directory to create Base and Append in")
    parser.add_argument(
        "--seven-zip",
        default="7z",
        help="7-Zip executable (default: 7z)"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum concurrent extractions (default: CPU count)"
    )

    return parser.parse_args(argv)


def extract_main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the extraction tool."""
    args = parse_extract_args(argv)
    if not args.input.is_dir():
        print(f"Error: Input directory does not exist: {args.input}", file=sys.stderr)
        sys.exit(1)
    if args.workers is not None and args.workers < 1:
        print("Error: --workers must be at least 1", file=sys.stderr)
        sys.exit(1)

    try:
        failed = extract_packs(args.input.absolute(), args.output.absolute(), args.seven_zip, args.workers)
    except KeyboardInterrupt:
        print("\n\nInterrupted! Extraction output is incomplete.")
        sys.exit(1)

    if failed:
        print(f"\n--- Extraction Errors ({len(failed)} archives failed) ---")
        for task in failed:
            print(f"  {task.archive}")
        sys.exit(1)
    print("Done")
