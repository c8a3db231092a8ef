"""
Automatic conflict resolution between a source song folder and an existing
destination folder of the same name.

The policy is an ordered table of rules evaluated against one
ComparisonResult. The first rule whose predicate holds wins and its action
is applied to the filesystem immediately. Rules near the top cover empty,
identical and superset trees; lower rules accept small deltas and size
divergence that looks like an upgrade. When nothing matches, both trees are
left untouched and an unsafe conflict report is produced for a human.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .fsops import delete_directory, move_directory, move_file, replace_directory
from .models import ComparisonResult, MergeAction, MergeOutcome
from .scanner import list_directory

SMALL = 0.05
LARGE = 0.95
PATCH = 0.5
TINY = 0.01


class IncompleteMergeError(Exception):
    """Fewer source files could be merged than were unique to the source."""

    def __init__(self, source: Path, moved: int, expected: int):
        super().__init__(
            f"Merged only {moved} of {expected} unique files from {source}. Source left in place."
        )
        self.source = source
        self.moved = moved
        self.expected = expected


@dataclass(frozen=True)
class RuleContext:
    """Inputs a rule may look at besides the statistics."""
    dest_name: str
    conflict_suffix: Optional[str] = None


@dataclass(frozen=True)
class Rule:
    """One row of the resolution table."""
    number: int
    action: MergeAction
    message: str
    predicate: Callable[[ComparisonResult, RuleContext], bool]
    # MERGE_UNIQUE_SOURCE_FILES only: skip exact names already present at dest
    skip_existing: bool = True

    def matches(self, r: ComparisonResult, ctx: RuleContext) -> bool:
        return self.predicate(r, ctx)


def _no_subdir_divergence(r: ComparisonResult) -> bool:
    return r.common_subdirs == 0 and r.unique_source_subdirs == 0 and r.unique_dest_subdirs == 0


def _source_empty(r, ctx):
    return r.files_in_source == 0 and r.unique_source_subdirs == 0 and r.common_subdirs == 0


def _dest_empty(r, ctx):
    return r.files_in_dest == 0 and r.unique_dest_subdirs == 0 and r.common_subdirs == 0


def _identical(r, ctx):
    return (r.unique_source_files == 0
            and r.unique_dest_files == 0
            and r.divergent_common_files == 0
            and r.unique_source_subdirs == 0
            and r.unique_dest_subdirs == 0)


def _dest_superset(r, ctx):
    return ((r.unique_dest_files > 0 or r.unique_dest_subdirs > 0)
            and r.unique_source_files == 0
            and r.divergent_common_files == 0
            and r.unique_source_subdirs == 0)


def _source_superset(r, ctx):
    return ((r.unique_source_files > 0 or r.unique_source_subdirs > 0)
            and r.unique_dest_files == 0
            and r.unique_dest_subdirs == 0
            and r.divergent_common_files == 0)


def _small_disjoint_patch(r, ctx):
    return (r.common_files == 0
            and r.divergent_common_files == 0
            and r.common_subdirs == 0
            and r.unique_source_subdirs == 0
            and r.unique_source_files == r.files_in_source
            and r.unique_dest_files == r.files_in_dest
            and r.files_in_source > 0
            and r.files_in_dest > 0
            and r.files_in_source < SMALL * r.files_in_dest)


def _small_patch(r, ctx):
    return (r.divergent_common_files == 0
            and 0 < r.files_in_source < PATCH * r.files_in_dest
            and r.common_subdirs == 0
            and r.unique_source_subdirs == 0
            and r.unique_source_files > 0)


def _mostly_common(r, ctx):
    return (r.common_files > 0
            and r.divergent_common_files == 0
            and r.common_files > LARGE * r.files_in_source
            and r.common_files > LARGE * r.files_in_dest
            and _no_subdir_divergence(r)
            and r.files_in_source > 0
            and 0 < r.unique_source_files < SMALL * r.files_in_source
            and r.files_in_dest > 0
            and 0 < r.unique_dest_files < SMALL * r.files_in_dest)


def _few_divergent(r):
    return (r.unique_source_files == 0
            and r.unique_dest_files == 0
            and _no_subdir_divergence(r)
            and r.common_files > 0
            and r.files_in_source == r.common_files
            and r.files_in_dest == r.common_files
            and 0 < r.divergent_common_files < SMALL * r.common_files)


def _few_divergent_larger_source(r, ctx):
    return _few_divergent(r) and r.larger_divergent_source == r.divergent_common_files


def _few_divergent_larger_dest(r, ctx):
    return _few_divergent(r) and r.larger_divergent_dest == r.divergent_common_files


def _few_unique_source_larger_source(r, ctx):
    return (0 < r.unique_source_files < SMALL * r.files_in_source
            and r.unique_dest_files == 0
            and _no_subdir_divergence(r)
            and r.common_files > 0
            and r.files_in_source > LARGE * r.common_files
            and r.files_in_dest == r.common_files
            and 0 < r.divergent_common_files < SMALL * r.common_files
            and r.larger_divergent_source == r.divergent_common_files
            and r.larger_divergent_dest == 0)


def _few_unique_dest_larger_dest(r, ctx):
    return (0 < r.unique_dest_files < SMALL * r.files_in_dest
            and r.unique_source_files == 0
            and _no_subdir_divergence(r)
            and r.common_files > 0
            and r.files_in_dest > LARGE * r.common_files
            and r.files_in_source == r.common_files
            and 0 < r.divergent_common_files < SMALL * r.common_files
            and r.larger_divergent_dest == r.divergent_common_files
            and r.larger_divergent_source == 0)


def _unique_only_in_source(r, ctx):
    return (r.unique_source_files > 0
            and r.unique_dest_files == 0
            and _no_subdir_divergence(r)
            and r.common_files > 0
            and r.files_in_source > r.common_files
            and r.files_in_dest == r.common_files)


def _unique_only_in_dest(r, ctx):
    return (r.unique_dest_files > 0
            and r.unique_source_files == 0
            and _no_subdir_divergence(r)
            and r.common_files > 0
            and r.files_in_dest > r.common_files
            and r.files_in_source == r.common_files)


def _different_songs(r, ctx):
    return (ctx.conflict_suffix is not None
            and not ctx.dest_name.endswith(ctx.conflict_suffix)
            and _no_subdir_divergence(r)
            and r.unique_source_files > LARGE * r.files_in_source
            and r.unique_dest_files > LARGE * r.files_in_dest
            and r.common_files < SMALL * r.files_in_source
            and r.common_files < SMALL * r.files_in_dest
            and r.divergent_common_files < TINY * r.files_in_source
            and r.divergent_common_files < TINY * r.files_in_dest)


RULES = (
    Rule(1, MergeAction.DELETE_SOURCE,
         "Deleted. Source is empty.",
         _source_empty),
    Rule(2, MergeAction.REPLACE_DEST_WITH_SOURCE,
         "Dest was empty.",
         _dest_empty),
    Rule(3, MergeAction.DELETE_SOURCE,
         "Deleted. Identical to existing output folder.",
         _identical),
    Rule(4, MergeAction.DELETE_SOURCE,
         "Deleted. Only difference is unique files already in output folder.",
         _dest_superset),
    Rule(5, MergeAction.REPLACE_DEST_WITH_SOURCE,
         "Deleted existing output before move. Only difference is unique source files.",
         _source_superset),
    Rule(6, MergeAction.MERGE_UNIQUE_SOURCE_FILES,
         "Source only contained a small number of files and they were all unique.",
         _small_disjoint_patch,
         skip_existing=False),
    Rule(7, MergeAction.MERGE_UNIQUE_SOURCE_FILES,
         "Source only contained a small number of files and there were no conflicts.",
         _small_patch),
    Rule(8, MergeAction.MERGE_UNIQUE_SOURCE_FILES,
         "Source and dest contained no conflicts and each had a small number of unique files.",
         _mostly_common),
    Rule(9, MergeAction.REPLACE_DEST_WITH_SOURCE,
         "Source and dest were identical except for {divergent} divergent files, "
         "all of which were larger in the source.",
         _few_divergent_larger_source),
    Rule(9, MergeAction.DELETE_SOURCE,
         "Deleted. Source and dest were identical except for {divergent} divergent files, "
         "all of which were larger in the destination.",
         _few_divergent_larger_dest),
    Rule(10, MergeAction.REPLACE_DEST_WITH_SOURCE,
         "Only source had a small number of unique files, and all {divergent} divergent "
         "files were larger in the source.",
         _few_unique_source_larger_source),
    Rule(11, MergeAction.DELETE_SOURCE,
         "Deleted. Only dest had a small number of unique files, and all {divergent} "
         "divergent files were larger in the dest.",
         _few_unique_dest_larger_dest),
    Rule(12, MergeAction.REPLACE_DEST_WITH_SOURCE,
         "Unique files were all in source. There were divergent files but source was "
         "preferred as a last resort.",
         _unique_only_in_source),
    Rule(13, MergeAction.DELETE_SOURCE,
         "Deleted. Unique files were all in dest. There were divergent files but dest was "
         "preferred as a last resort.",
         _unique_only_in_dest),
    Rule(14, MergeAction.RENAME_SOURCE_AND_KEEP_BOTH,
         "Source and dest look like different songs. Kept dest and moved source alongside it.",
         _different_songs),
)

UNSAFE_RULE = 15


def matching_rules(r: ComparisonResult, ctx: RuleContext) -> list[Rule]:
    """Return every rule whose predicate holds, in priority order."""
    return [rule for rule in RULES if rule.matches(r, ctx)]


def choose_rule(r: ComparisonResult, ctx: RuleContext) -> Optional[Rule]:
    """Return the first matching rule, or None when the conflict is unsafe."""
    for rule in RULES:
        if rule.matches(r, ctx):
            return rule
    return None


def format_unsafe_report(name: str, r: ComparisonResult) -> str:
    """Build the multi-line report printed for a conflict needing manual merging."""
    lines = [
        f"UNSAFE CONFLICT: \"{name}\":",
        f"\tUnique Source Files: {r.unique_source_files}/{r.files_in_source}.",
        f"\tUnique Source Subdirectories: {r.unique_source_subdirs}.",
        f"\tUnique Dest Files: {r.unique_dest_files}/{r.files_in_dest}.",
        f"\tUnique Dest Subdirectories: {r.unique_dest_subdirs}.",
        f"\tFiles in Both Source and Dest: {r.common_files}.",
        f"\tFiles in Both Source and Dest Not Identical: {r.divergent_common_files}.",
        f"\tDivergent Files Larger in Source: {r.larger_divergent_source}.",
        f"\tDivergent Files Larger in Dest: {r.larger_divergent_dest}.",
        f"\tSubdirectories in Both Source and Dest: {r.common_subdirs}.",
    ]
    return "\n".join(lines)


def _display_path(path: Path) -> str:
    return f"{path.parent.name}/{path.name}" if path.parent.name else path.name


def merge_source_files(source: Path, dest: Path, skip_existing: bool = True) -> list[str]:
    """
    Move the files directly inside source into dest.

    With skip_existing, files whose exact name already exists at dest
    stay behind.
    Returns the names of the moved files.
    """
    source_files, _ = list_directory(source)
    moved = []
    for entry in source_files:
        if skip_existing and (dest / entry.name).exists():
            continue
        move_file(entry.path, dest / entry.name)
        moved.append(entry.name)
    return moved


def resolve_conflict(
    source: Path,
    dest: Path,
    result: ComparisonResult,
    conflict_suffix: Optional[str] = None
) -> MergeOutcome:
    """
    Pick the action for a source/dest pair and apply it.

    The filesystem is changed before this returns, except for unsafe
    conflicts, which leave both trees as they were.
    """
    ctx = RuleContext(dest_name=dest.name, conflict_suffix=conflict_suffix)
    rule = choose_rule(result, ctx)

    if rule is None:
        return MergeOutcome(
            action=MergeAction.UNSAFE,
            source_name=source.name,
            message="Unsafe conflict. Left untouched.",
            rule=UNSAFE_RULE,
            report=format_unsafe_report(source.name, result)
        )

    message = rule.message.format(divergent=result.divergent_common_files)
    outcome = MergeOutcome(action=rule.action, source_name=source.name, message=message, rule=rule.number)

    if rule.action == MergeAction.DELETE_SOURCE:
        delete_directory(source)

    elif rule.action == MergeAction.REPLACE_DEST_WITH_SOURCE:
        replace_directory(source, dest)
        outcome.message = f"\"{_display_path(dest)}\". {message}"

    elif rule.action == MergeAction.MERGE_UNIQUE_SOURCE_FILES:
        outcome.moved_files = merge_source_files(source, dest, skip_existing=rule.skip_existing)
        if len(outcome.moved_files) < result.unique_source_files:
            raise IncompleteMergeError(source, len(outcome.moved_files), result.unique_source_files)
        delete_directory(source)
        outcome.message = f"Merged {len(outcome.moved_files)} files. {message}"

    elif rule.action == MergeAction.RENAME_SOURCE_AND_KEEP_BOTH:
        renamed = dest.with_name(dest.name + conflict_suffix)
        move_directory(source, renamed)
        outcome.new_name = renamed.name
        outcome.message = f"\"{_display_path(renamed)}\". {message}"

    return outcome
