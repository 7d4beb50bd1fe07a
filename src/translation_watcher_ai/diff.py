"""
Key-level diffing of translation trees.

Compares two trees leaf by leaf and classifies every key path as added,
modified, removed or unchanged. Also hosts the selection policies that decide
which keys a translation run sends to the provider.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from translation_watcher_ai.tree import TranslationTree, extract_keys, get_value


class ChangeType(str, Enum):
    """Classification of a single key path."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


@dataclass
class DiffOptions:
    """Comparison options for :class:`DiffDetector`."""

    ignore_case: bool = False
    ignore_whitespace: bool = True
    deep_comparison: bool = True
    context_lines: int = 3


@dataclass
class KeyChange:
    """Per-key detail of a diff."""

    change_type: ChangeType
    old_value: str | None = None
    new_value: str | None = None


@dataclass
class TranslationDiff:
    """The four key-path lists of a diff. Together they partition both key sets."""

    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)


@dataclass
class DiffSummary:
    """Aggregate counts of a diff."""

    total_keys: int = 0
    added_count: int = 0
    modified_count: int = 0
    removed_count: int = 0
    unchanged_count: int = 0

    @classmethod
    def from_diff(cls, diff: TranslationDiff) -> DiffSummary:
        """Compute counts from the key lists. ``total_keys`` counts keys of the new tree."""
        return cls(
            total_keys=len(diff.added) + len(diff.modified) + len(diff.unchanged),
            added_count=len(diff.added),
            modified_count=len(diff.modified),
            removed_count=len(diff.removed),
            unchanged_count=len(diff.unchanged),
        )


@dataclass
class DiffResult:
    """Result of :meth:`DiffDetector.detect_diff`."""

    diff: TranslationDiff
    summary: DiffSummary
    details: dict[str, KeyChange] = field(default_factory=dict)


class DiffDetector:
    """
    Compares translation trees.

    The detector is stateless apart from its options and never mutates the
    trees it is given.
    """

    def __init__(self, options: DiffOptions | None = None):
        self.options = options or DiffOptions()

    def detect_diff(self, old_tree: TranslationTree, new_tree: TranslationTree) -> DiffResult:
        """
        Classify every key path of both trees.

        A key present in ``new_tree`` with an empty string is a valid value:
        it is only ``added`` when the key is absent from ``old_tree``.

        Args:
            old_tree: Previous tree (or base tree).
            new_tree: Current tree (or target tree).

        Returns:
            DiffResult with key lists, counts and per-key details.
        """
        old_keys = extract_keys(old_tree)
        new_keys = extract_keys(new_tree)
        new_key_set = set(new_keys)

        diff = TranslationDiff()
        details: dict[str, KeyChange] = {}

        for key in new_keys:
            old_value = get_value(old_tree, key)
            new_value = get_value(new_tree, key) or ""

            if old_value is None:
                diff.added.append(key)
                details[key] = KeyChange(ChangeType.ADDED, new_value=new_value)
            elif self.values_are_different(old_value, new_value):
                diff.modified.append(key)
                details[key] = KeyChange(ChangeType.MODIFIED, old_value, new_value)
            else:
                diff.unchanged.append(key)
                details[key] = KeyChange(ChangeType.UNCHANGED, old_value, new_value)

        for key in old_keys:
            if key not in new_key_set:
                diff.removed.append(key)
                details[key] = KeyChange(
                    ChangeType.REMOVED, old_value=get_value(old_tree, key) or ""
                )

        return DiffResult(diff=diff, summary=DiffSummary.from_diff(diff), details=details)

    def detect_new_keys(self, old_tree: TranslationTree, new_tree: TranslationTree) -> list[str]:
        """Keys present in ``new_tree`` but not in ``old_tree``."""
        old_keys = set(extract_keys(old_tree))
        return [key for key in extract_keys(new_tree) if key not in old_keys]

    def detect_modified_keys(
        self, old_tree: TranslationTree, new_tree: TranslationTree
    ) -> list[str]:
        """Keys present in both trees whose values differ."""
        old_keys = set(extract_keys(old_tree))
        return [
            key
            for key in extract_keys(new_tree)
            if key in old_keys
            and self.values_are_different(
                get_value(old_tree, key) or "", get_value(new_tree, key) or ""
            )
        ]

    def get_keys_needing_translation(self, diff_result: DiffResult) -> list[str]:
        """Added and modified keys of a diff."""
        return [*diff_result.diff.added, *diff_result.diff.modified]

    def get_keys_needing_incremental_translation(
        self, base_tree: TranslationTree, target_tree: TranslationTree
    ) -> list[str]:
        """
        Base keys that are missing or blank in the target.

        This is the default selection policy of a translation run: a key that
        already has a non-blank target value is never re-translated, even if
        its base text changed.
        """
        keys: list[str] = []

        for key in extract_keys(base_tree):
            target_value = get_value(target_tree, key)
            if target_value is None or not target_value.strip():
                keys.append(key)

        return keys

    def get_changed_keys(
        self, current_base: TranslationTree, previous_base: TranslationTree
    ) -> list[str]:
        """
        Keys of ``current_base`` that are new or whose value changed since ``previous_base``.

        Modified keys come first, followed by newly added keys.
        """
        current_keys = extract_keys(current_base)
        previous_keys = set(extract_keys(previous_base))

        modified = [
            key
            for key in current_keys
            if key in previous_keys
            and self.values_are_different(
                get_value(current_base, key) or "", get_value(previous_base, key) or ""
            )
        ]
        added = [key for key in current_keys if key not in previous_keys]

        return modified + added

    def filter_diff_by_pattern(
        self, diff_result: DiffResult, pattern: str | re.Pattern[str]
    ) -> DiffResult:
        """
        Keep only key paths matching ``pattern`` (``re.search`` semantics).

        Counts are recomputed from the filtered lists.
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern

        def _keep(keys: list[str]) -> list[str]:
            return [key for key in keys if regex.search(key)]

        filtered = TranslationDiff(
            added=_keep(diff_result.diff.added),
            modified=_keep(diff_result.diff.modified),
            removed=_keep(diff_result.diff.removed),
            unchanged=_keep(diff_result.diff.unchanged),
        )
        details = {
            key: change for key, change in diff_result.details.items() if regex.search(key)
        }

        return DiffResult(diff=filtered, summary=DiffSummary.from_diff(filtered), details=details)

    def generate_diff_report(self, diff_result: DiffResult) -> str:
        """Render a diff as deterministic, human-readable text."""
        diff, summary = diff_result.diff, diff_result.summary

        lines = [
            "Translation Diff Report",
            "========================",
            "",
            "Summary:",
            f"- Total keys: {summary.total_keys}",
            f"- Added: {summary.added_count}",
            f"- Modified: {summary.modified_count}",
            f"- Removed: {summary.removed_count}",
            f"- Unchanged: {summary.unchanged_count}",
            "",
        ]

        if diff.added:
            lines.append("Added Keys:")
            lines.extend(f"+ {key}" for key in diff.added)
            lines.append("")

        if diff.modified:
            lines.append("Modified Keys:")
            for key in diff.modified:
                lines.append(f"~ {key}")
                detail = diff_result.details.get(key)
                if detail and detail.old_value and detail.new_value:
                    lines.append(f'  Old: "{detail.old_value}"')
                    lines.append(f'  New: "{detail.new_value}"')
            lines.append("")

        if diff.removed:
            lines.append("Removed Keys:")
            lines.extend(f"- {key}" for key in diff.removed)
            lines.append("")

        return "\n".join(lines) + "\n"

    def has_changes(self, diff_result: DiffResult) -> bool:
        """True if anything was added, modified or removed."""
        summary = diff_result.summary
        return summary.added_count + summary.modified_count + summary.removed_count > 0

    def values_are_different(self, old_value: str | None, new_value: str | None) -> bool:
        """
        Compare two leaf values under the configured normalization.

        ``None`` is compared as an empty string, so a missing value is never
        reported as different from a blank one.
        """
        old, new = old_value or "", new_value or ""
        if old == new:
            return False

        if self.options.ignore_case:
            old, new = old.lower(), new.lower()

        if self.options.ignore_whitespace:
            old, new = old.strip(), new.strip()

        return old != new
