"""Shared test fixtures."""

import tempfile
from pathlib import Path

import pytest

from song_merger.models import ComparisonResult, MergeConfig


def build_tree(root: Path, spec: dict) -> Path:
    """
    Create a directory tree from a nested dict.

    Integer values become files of that many bytes, dict values become
    subdirectories.
    """
    root.mkdir(parents=True, exist_ok=True)
    for name, value in spec.items():
        if isinstance(value, dict):
            build_tree(root / name, value)
        else:
            (root / name).write_bytes(b"x" * value)
    return root


def read_tree(root: Path) -> dict:
    """Inverse of build_tree: describe an existing directory as a nested dict."""
    tree = {}
    for path in root.iterdir():
        if path.is_dir():
            tree[path.name] = read_tree(path)
        else:
            tree[path.name] = path.stat().st_size
    return tree


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_tree(temp_dir):
    """Build a tree under the temporary directory: make_tree("src/song", {...})."""
    def _make(relative: str, spec: dict) -> Path:
        return build_tree(temp_dir / relative, spec)
    return _make


@pytest.fixture
def pair(make_tree):
    """Build a (source, dest) song folder pair sharing the name "song"."""
    def _pair(source_spec: dict, dest_spec: dict, name: str = "song") -> tuple[Path, Path]:
        return make_tree(f"source/{name}", source_spec), make_tree(f"dest/{name}", dest_spec)
    return _pair


@pytest.fixture
def roots(temp_dir):
    """Source and destination roots for driver tests."""
    source_root = temp_dir / "extracted"
    dest_root = temp_dir / "songs"
    source_root.mkdir()
    dest_root.mkdir()
    return source_root, dest_root


@pytest.fixture
def merge_config(roots):
    """MergeConfig with an "Append" conflict tag."""
    source_root, dest_root = roots
    return MergeConfig(source_root=source_root, dest_root=dest_root, conflict_tag="Append")


@pytest.fixture
def sample_result():
    """A ComparisonResult with every field set to a distinct value."""
    return ComparisonResult(
        unique_source_files=1,
        unique_dest_files=2,
        common_files=3,
        divergent_common_files=4,
        larger_divergent_source=5,
        larger_divergent_dest=6,
        files_in_source=7,
        files_in_dest=8,
        unique_source_subdirs=9,
        unique_dest_subdirs=10,
        common_subdirs=11
    )


@pytest.fixture
def tree_of():
    """Return read_tree for asserting on directory contents."""
    return read_tree
