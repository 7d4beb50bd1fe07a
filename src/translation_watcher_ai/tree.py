"""
Key-path utilities for nested translation trees.

A translation tree is a plain dict whose leaves are strings. Leaves are
addressed by dot-joined key paths such as ``"user.profile.title"``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

TranslationTree = dict[str, Any]

KEY_SEPARATOR = "."


class MergeStrategy(str, Enum):
    """How :func:`merge_trees` combines two trees."""

    REPLACE = "replace"
    MERGE = "merge"
    PRESERVE = "preserve"


@dataclass
class StructureValidation:
    """Result of :func:`validate_structure`."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)


def join_key(prefix: str, key: str) -> str:
    """Join a parent path and a child key."""
    return f"{prefix}{KEY_SEPARATOR}{key}" if prefix else key


def split_key(path: str) -> list[str]:
    """Split a key path into its segments."""
    return path.split(KEY_SEPARATOR)


def extract_keys(tree: TranslationTree, prefix: str = "") -> list[str]:
    """
    List every leaf key path in depth-first pre-order.

    String values are leaves and dicts are recursed into. Any other value is
    skipped here; use :func:`validate_structure` to report it.
    """
    keys: list[str] = []

    for key, value in tree.items():
        full_key = join_key(prefix, key)

        if isinstance(value, str):
            keys.append(full_key)
        elif isinstance(value, dict):
            keys.extend(extract_keys(value, full_key))

    return keys


def get_node(tree: TranslationTree, segments: list[str]) -> Any | None:
    """Return whatever object sits at ``segments``, or None if the walk fails."""
    current: Any = tree

    for segment in segments:
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        else:
            return None

    return current


def get_value(tree: TranslationTree, path: str) -> str | None:
    """Return the string leaf at ``path``, or None when absent or not a string."""
    value = get_node(tree, split_key(path))
    return value if isinstance(value, str) else None


def set_value(tree: TranslationTree, path: str, value: str) -> None:
    """
    Set the leaf at ``path`` to ``value``, creating intermediate dicts.

    Non-dict values found along the way are overwritten. Mutates ``tree``.
    """
    segments = [segment for segment in split_key(path) if segment]
    if not segments:
        return

    current = tree
    for segment in segments[:-1]:
        if not isinstance(current.get(segment), dict):
            current[segment] = {}
        current = current[segment]

    current[segments[-1]] = value


def merge_trees(
    base: TranslationTree,
    updates: TranslationTree,
    strategy: MergeStrategy | str = MergeStrategy.MERGE,
) -> TranslationTree:
    """
    Combine two trees into a new one without mutating ``base``.

    Args:
        base: Existing tree.
        updates: Tree whose values are applied on top of ``base``.
        strategy: ``replace`` overrides whole top-level entries, ``merge``
            recurses into nested dicts, ``preserve`` only fills missing keys.

    Returns:
        The merged tree.
    """
    strategy = MergeStrategy(strategy)
    result = dict(base)

    for key, value in updates.items():
        if strategy == MergeStrategy.REPLACE:
            result[key] = value
        elif strategy == MergeStrategy.MERGE:
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = merge_trees(result[key], value, strategy)
            else:
                result[key] = value
        elif key not in result:
            result[key] = value

    return result


def validate_structure(tree: Any) -> StructureValidation:
    """Report every value that is neither a string leaf nor a nested dict."""
    errors: list[str] = []

    def _visit(node: Any, path: str) -> None:
        if isinstance(node, str):
            return
        if not isinstance(node, dict):
            errors.append(f"Invalid node type at {path or '<root>'}: {type(node).__name__}")
            return

        for key, value in node.items():
            full_path = join_key(path, str(key))
            if isinstance(value, dict):
                _visit(value, full_path)
            elif not isinstance(value, str):
                errors.append(f"Invalid value type at {full_path}: {type(value).__name__}")

    _visit(tree, "")

    return StructureValidation(is_valid=not errors, errors=errors)
