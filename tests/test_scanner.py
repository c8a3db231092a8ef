"""Tests for song_merger.scanner module."""

import os
from unittest.mock import patch

import pytest

from song_merger.models import ComparisonResult
from song_merger.scanner import (
    ComparisonError,
    compare_directories,
    list_directory,
    match_entries,
    sort_key,
)


def assert_identities(result: ComparisonResult) -> None:
    assert result.unique_source_files + result.common_files == result.files_in_source
    assert result.unique_dest_files + result.common_files == result.files_in_dest
    assert result.larger_divergent_source + result.larger_divergent_dest == result.divergent_common_files


class TestSortKey:
    """Tests for sort_key function."""

    def test_case_insensitive(self):
        assert sort_key("Chart.BMS") == sort_key("chart.bms")

    def test_orders_names(self):
        names = ["b.wav", "A.ogg", "c.bms"]
        assert sorted(names, key=sort_key) == ["A.ogg", "b.wav", "c.bms"]


class TestListDirectory:
    """Tests for list_directory function."""

    def test_lists_files_and_subdirs(self, make_tree):
        root = make_tree("song", {"a.bms": 10, "b.ogg": 3, "bga": {"x.mp4": 1}})

        files, subdirs = list_directory(root)

        assert sorted((f.name, f.length) for f in files) == [("a.bms", 10), ("b.ogg", 3)]
        assert [d.name for d in subdirs] == ["bga"]

    def test_empty_directory(self, make_tree):
        files, subdirs = list_directory(make_tree("empty", {}))
        assert files == []
        assert subdirs == []

    def test_missing_directory_raises(self, temp_dir):
        with pytest.raises(OSError):
            list_directory(temp_dir / "nonexistent")


class TestMatchEntries:
    """Tests for the sorted merge-join."""

    def _names(self, names):
        return [(name, name) for name in names]

    def test_all_common(self):
        pairs = list(match_entries(self._names(["a", "b"]), self._names(["b", "a"])))
        assert pairs == [("a", "a"), ("b", "b")]

    def test_unique_on_each_side(self):
        pairs = list(match_entries(self._names(["a", "c", "e"]), self._names(["b", "c", "d"])))
        assert pairs == [("a", None), (None, "b"), ("c", "c"), (None, "d"), ("e", None)]

    def test_source_longer(self):
        pairs = list(match_entries(self._names(["a", "b", "c"]), self._names(["a"])))
        assert pairs == [("a", "a"), ("b", None), ("c", None)]

    def test_dest_longer(self):
        pairs = list(match_entries(self._names(["z"]), self._names(["a", "b", "z"])))
        assert pairs == [(None, "a"), (None, "b"), ("z", "z")]

    def test_empty_sides(self):
        assert list(match_entries([], [])) == []
        assert list(match_entries(self._names(["a"]), [])) == [("a", None)]
        assert list(match_entries([], self._names(["a"]))) == [(None, "a")]

    def test_names_match_ignoring_case(self):
        pairs = list(match_entries([("README.txt", 1)], [("readme.TXT", 2)]))
        assert pairs == [(1, 2)]

    def test_every_name_yielded_once(self):
        source = self._names(["d", "a", "q", "m", "b"])
        dest = self._names(["m", "c", "a", "z"])
        pairs = list(match_entries(source, dest))

        assert sorted(s for s, _ in pairs if s is not None) == ["a", "b", "d", "m", "q"]
        assert sorted(d for _, d in pairs if d is not None) == ["a", "c", "m", "z"]


class TestCompareDirectories:
    """Tests for compare_directories function."""

    def test_identical_files(self, pair):
        source, dest = pair({"a.txt": 10, "b.txt": 20}, {"a.txt": 10, "b.txt": 20})

        result = compare_directories(source, dest)

        assert result == ComparisonResult(common_files=2, files_in_source=2, files_in_dest=2)

    def test_unique_and_divergent_files(self, pair):
        source, dest = pair(
            {"a.txt": 10, "x.txt": 5, "big.wav": 100, "small.wav": 1},
            {"a.txt": 20, "y.txt": 5, "big.wav": 50, "small.wav": 1}
        )

        result = compare_directories(source, dest)

        assert result.unique_source_files == 1
        assert result.unique_dest_files == 1
        assert result.common_files == 3
        assert result.divergent_common_files == 2
        assert result.larger_divergent_source == 1
        assert result.larger_divergent_dest == 1
        assert_identities(result)

    def test_common_subdirs_are_folded_in(self, pair):
        source, dest = pair(
            {"a.bms": 1, "bga": {"movie.mp4": 30, "extra.png": 2, "deep": {"z": 1}}},
            {"a.bms": 1, "bga": {"movie.mp4": 10, "deep": {"z": 1, "w": 1}}}
        )

        result = compare_directories(source, dest)

        assert result.files_in_source == 4
        assert result.files_in_dest == 4
        assert result.common_files == 3
        assert result.unique_source_files == 1
        assert result.unique_dest_files == 1
        assert result.divergent_common_files == 1
        assert result.larger_divergent_source == 1
        assert result.common_subdirs == 2
        assert_identities(result)

    def test_unique_subdirs_not_descended(self, pair):
        source, dest = pair(
            {"a.bms": 1, "only_src": {"x": 1, "y": 2}},
            {"a.bms": 1, "only_dst": {"z": 1}, "other": {}}
        )

        result = compare_directories(source, dest)

        assert result.unique_source_subdirs == 1
        assert result.unique_dest_subdirs == 2
        assert result.common_subdirs == 0
        assert result.files_in_source == 1
        assert result.files_in_dest == 1

    def test_self_comparison_is_clean(self, make_tree):
        root = make_tree("song", {"a": 1, "b": 2, "sub": {"c": 3, "subsub": {"d": 4}}})

        result = compare_directories(root, root)

        assert result.unique_source_files == 0
        assert result.unique_dest_files == 0
        assert result.divergent_common_files == 0
        assert result.unique_source_subdirs == 0
        assert result.unique_dest_subdirs == 0
        assert result.files_in_source == 4
        assert result.common_subdirs == 2

    def test_empty_pair(self, pair):
        source, dest = pair({}, {})
        assert compare_directories(source, dest) == ComparisonResult()

    def test_listing_error_raises_comparison_error(self, pair):
        source, dest = pair({"a": 1}, {"a": 1})

        with patch("song_merger.scanner.os.scandir", side_effect=PermissionError("denied")):
            with pytest.raises(ComparisonError) as exc_info:
                compare_directories(source, dest)

        assert exc_info.value.source == source
        assert exc_info.value.dest == dest
        assert isinstance(exc_info.value.error, PermissionError)

    def test_nested_listing_error(self, pair):
        source, dest = pair({"sub": {"a": 1}}, {"sub": {"a": 1}})
        real_scandir = os.scandir

        def flaky_scandir(path):
            if os.path.basename(path) == "sub":
                raise PermissionError("denied")
            return real_scandir(path)

        with patch("song_merger.scanner.os.scandir", side_effect=flaky_scandir):
            with pytest.raises(ComparisonError) as exc_info:
                compare_directories(source, dest)

        assert exc_info.value.source == source / "sub"
