"""Recursive comparison of a source song folder against its destination."""

import locale
import os
from pathlib import Path
from typing import Iterator, Optional, TypeVar

from .models import ComparisonResult, FileEntry

T = TypeVar("T")


class ComparisonError(Exception):
    """A directory pair could not be listed."""

    def __init__(self, source: Path, dest: Path, error: OSError):
        super().__init__(f"Could not compare {source} with {dest}: {error}")
        self.source = source
        self.dest = dest
        self.error = error


def sort_key(name: str) -> str:
    """Locale-aware, case-insensitive collation key for a file or folder name."""
    return locale.strxfrm(name.casefold())


def list_directory(path: Path) -> tuple[list[FileEntry], list[Path]]:
    """List the files (with lengths) and subdirectories directly inside path."""
    files = []
    subdirs = []
    with os.scandir(path) as it:
        for entry in it:
            if entry.is_dir():
                subdirs.append(Path(entry.path))
            elif entry.is_file():
                files.append(FileEntry(entry.name, Path(entry.path), entry.stat().st_size))
    return files, subdirs


def match_entries(
    source: list[tuple[str, T]],
    dest: list[tuple[str, T]]
) -> Iterator[tuple[Optional[T], Optional[T]]]:
    """
    Sorted merge-join of two (name, item) lists.

    Yields (source_item, dest_item) pairs in collation order. Names present
    on one side only are yielded with None on the other side.
    """
    src = sorted(((sort_key(name), item) for name, item in source), key=lambda pair: pair[0])
    dst = sorted(((sort_key(name), item) for name, item in dest), key=lambda pair: pair[0])

    si = di = 0
    while si < len(src) and di < len(dst):
        src_key, src_item = src[si]
        dst_key, dst_item = dst[di]
        if src_key < dst_key:
            yield src_item, None
            si += 1
        elif src_key > dst_key:
            yield None, dst_item
            di += 1
        else:
            yield src_item, dst_item
            si += 1
            di += 1

    for _, item in src[si:]:
        yield item, None
    for _, item in dst[di:]:
        yield None, item


def _compare_level(source: Path, dest: Path) -> ComparisonResult:
    try:
        source_files, source_dirs = list_directory(source)
        dest_files, dest_dirs = list_directory(dest)
    except OSError as e:
        raise ComparisonError(source, dest, e) from e

    result = ComparisonResult(
        files_in_source=len(source_files),
        files_in_dest=len(dest_files)
    )

    for src_file, dst_file in match_entries(
        [(f.name, f) for f in source_files],
        [(f.name, f) for f in dest_files]
    ):
        if dst_file is None:
            result.unique_source_files += 1
        elif src_file is None:
            result.unique_dest_files += 1
        else:
            result.common_files += 1
            # Length is the identity proxy; contents are never read.
            if src_file.length != dst_file.length:
                result.divergent_common_files += 1
                if src_file.length > dst_file.length:
                    result.larger_divergent_source += 1
                else:
                    result.larger_divergent_dest += 1

    for src_dir, dst_dir in match_entries(
        [(d.name, d) for d in source_dirs],
        [(d.name, d) for d in dest_dirs]
    ):
        if dst_dir is None:
            result.unique_source_subdirs += 1
        elif src_dir is None:
            result.unique_dest_subdirs += 1
        else:
            result.common_subdirs += 1
            result.add(_compare_level(src_dir, dst_dir))

    return result


def compare_directories(source: Path, dest: Path) -> ComparisonResult:
    """
    Compare two directory trees and return statistics for the full subtree.

    Files and subdirectories are matched by name at each level. Common
    subdirectories are compared recursively and their statistics added to
    the parent's; unmatched subdirectories are counted as a whole and not
    descended into.

    Raises:
        ComparisonError: if any directory in the pair cannot be listed
    """
    return _compare_level(Path(source), Path(dest))
