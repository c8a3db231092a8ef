"""Data models for song merger."""

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Optional


class MergeAction(Enum):
    """Outcome chosen for a source song folder."""
    MOVE_NEW = "move_new"
    DELETE_SOURCE = "delete_source"
    REPLACE_DEST_WITH_SOURCE = "replace_dest_with_source"
    MERGE_UNIQUE_SOURCE_FILES = "merge_unique_source_files"
    RENAME_SOURCE_AND_KEEP_BOTH = "rename_source_and_keep_both"
    UNSAFE = "unsafe"


@dataclass
class FileEntry:
    """A file within one directory. Length stands in for content identity."""
    name: str
    path: Path
    length: int


@dataclass
class ComparisonResult:
    """Divergence statistics for a source/destination directory pair.

    Counts cover the whole subtree below the pair: results for common
    subdirectories are folded into their parent with ``add``.
    """
    unique_source_files: int = 0
    unique_dest_files: int = 0
    common_files: int = 0
    divergent_common_files: int = 0
    larger_divergent_source: int = 0
    larger_divergent_dest: int = 0
    files_in_source: int = 0
    files_in_dest: int = 0
    unique_source_subdirs: int = 0
    unique_dest_subdirs: int = 0
    common_subdirs: int = 0

    def add(self, other: "ComparisonResult") -> None:
        """Fold a subdirectory result into this one."""
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))


@dataclass
class MergeConfig:
    """Settings for one merge run."""
    source_root: Path
    dest_root: Path
    conflict_tag: Optional[str] = None

    @property
    def conflict_suffix(self) -> Optional[str]:
        if not self.conflict_tag:
            return None
        return f" ({self.conflict_tag})"


@dataclass
class MergeOutcome:
    """What happened to one source song folder."""
    action: MergeAction
    source_name: str
    message: str
    rule: Optional[int] = None
    moved_files: list[str] = field(default_factory=list)
    new_name: Optional[str] = None
    report: Optional[str] = None

    def describe(self) -> str:
        if self.report is not None:
            return self.report
        return f"\"{self.source_name}\" -> {self.message}"


class FolderError:
    """Record of a song folder that failed to merge."""

    def __init__(self, name: str, path: str, error: str):
        self.name = name
        self.path = path
        self.error = error


@dataclass
class MergeSummary:
    """Counters collected over a merge run."""
    actions: dict[MergeAction, int] = field(
        default_factory=lambda: {action: 0 for action in MergeAction}
    )
    failures: list[FolderError] = field(default_factory=list)

    def record(self, outcome: MergeOutcome) -> None:
        self.actions[outcome.action] += 1

    def count(self, action: MergeAction) -> int:
        return self.actions[action]

    @property
    def processed(self) -> int:
        return sum(self.actions.values()) + len(self.failures)
