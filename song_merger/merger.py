"""Core merge logic: move every extracted song folder into its title bucket."""

from pathlib import Path
from typing import Optional

from .buckets import bucket_name_for, make_bucket_folders
from .fsops import move_directory
from .models import FolderError, MergeAction, MergeConfig, MergeOutcome, MergeSummary
from .resolver import resolve_conflict
from .scanner import compare_directories


def find_destination(bucket: Path, name: str, conflict_suffix: Optional[str] = None) -> Path:
    """
    Return the destination folder a song should be compared against.

    A folder already renamed with the conflict suffix takes precedence over
    the plain name, so reruns compare against the renamed copy.
    """
    if conflict_suffix:
        alternate = bucket / f"{name}{conflict_suffix}"
        if alternate.is_dir():
            return alternate
    return bucket / name


def merge_song_folder(song_folder: Path, buckets: dict[str, Path], config: MergeConfig) -> MergeOutcome:
    """Merge a single source song folder into its bucket."""
    name = song_folder.name
    bucket = buckets[bucket_name_for(name)]
    dest = find_destination(bucket, name, config.conflict_suffix)

    if not dest.exists():
        move_directory(song_folder, dest)
        return MergeOutcome(
            action=MergeAction.MOVE_NEW,
            source_name=name,
            message=f"\"{bucket.name}/{dest.name}\""
        )

    result = compare_directories(song_folder, dest)
    return resolve_conflict(song_folder, dest, result, config.conflict_suffix)


def print_summary(summary: MergeSummary) -> None:
    """Print counters for a finished merge run."""
    print("\n" + "=" * 60)
    print("MERGE COMPLETE!")
    print("=" * 60)
    print(f"Song folders processed: {summary.processed}")
    print(f"  - Moved (no existing folder): {summary.count(MergeAction.MOVE_NEW)}")
    print(f"  - Source deleted (dest kept): {summary.count(MergeAction.DELETE_SOURCE)}")
    print(f"  - Dest replaced by source: {summary.count(MergeAction.REPLACE_DEST_WITH_SOURCE)}")
    print(f"  - Source files merged into dest: {summary.count(MergeAction.MERGE_UNIQUE_SOURCE_FILES)}")
    print(f"  - Kept both (renamed source): {summary.count(MergeAction.RENAME_SOURCE_AND_KEEP_BOTH)}")
    print(f"  - Unsafe conflicts (manual merge needed): {summary.count(MergeAction.UNSAFE)}")

    if summary.failures:
        print(f"\n--- Failures ({len(summary.failures)} folders) ---")
        for failure in summary.failures[:10]:  # Show first 10
            print(f"  {failure.name}")
            print(f"    {failure.error}")
        if len(summary.failures) > 10:
            print(f"  ... and {len(summary.failures) - 10} more failures")
        print("-" * 20)


def merge_songs(config: MergeConfig) -> MergeSummary:
    """
    Merge every song folder directly under the source root into the
    destination root's title buckets.

    Folders are handled one at a time. A failure in one folder is printed
    and recorded, and processing continues with the next.
    """
    buckets = make_bucket_folders(config.dest_root)
    summary = MergeSummary()

    song_folders = sorted(p for p in config.source_root.iterdir() if p.is_dir())
    for song_folder in song_folders:
        try:
            outcome = merge_song_folder(song_folder, buckets, config)
        except Exception as e:
            print(f"Failed to merge \"{song_folder.name}\": {e}")
            summary.failures.append(FolderError(song_folder.name, str(song_folder), str(e)))
            continue

        print(outcome.describe())
        summary.record(outcome)

    return summary
