"""Filesystem mutations applied by the resolver and driver."""

import os
import shutil
import stat
import sys
from pathlib import Path


def _make_writable(func, path, _exc) -> None:
    """rmtree error handler: clear the read-only bit and retry once."""
    os.chmod(path, stat.S_IWRITE | stat.S_IREAD | stat.S_IEXEC)
    func(path)


def delete_directory(path: Path) -> None:
    """Delete a directory tree, including read-only files inside it."""
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_make_writable)
    else:
        shutil.rmtree(path, onerror=_make_writable)


def move_directory(src: Path, dst: Path) -> None:
    """Move a directory to a path that must not exist yet."""
    if dst.exists():
        raise FileExistsError(f"Destination already exists: {dst}")
    shutil.move(str(src), str(dst))


def move_file(src: Path, dst: Path) -> None:
    """Move a file to a path that must not exist yet."""
    if dst.exists():
        raise FileExistsError(f"Destination already exists: {dst}")
    shutil.move(str(src), str(dst))


def replace_directory(src: Path, dst: Path) -> None:
    """Delete the dst tree, then move the src tree into its place."""
    delete_directory(dst)
    move_directory(src, dst)
