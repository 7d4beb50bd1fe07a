from __future__ import annotations

import copy

from translation_watcher_ai.tree import (
    MergeStrategy,
    extract_keys,
    get_value,
    merge_trees,
    set_value,
    validate_structure,
)


def test_extract_keys_is_depth_first_and_skips_non_strings() -> None:
    tree = {
        "a": "A",
        "b": {"c": "C", "d": {"e": "E"}},
        "count": 3,
        "missing": None,
        "f": "F",
    }

    assert extract_keys(tree) == ["a", "b.c", "b.d.e", "f"]


def test_get_value_returns_none_for_absent_or_non_string() -> None:
    tree = {"nav": {"home": "Home"}, "n": 1}

    assert get_value(tree, "nav.home") == "Home"
    assert get_value(tree, "nav") is None
    assert get_value(tree, "nav.home.deeper") is None
    assert get_value(tree, "n") is None
    assert get_value(tree, "absent") is None


def test_set_value_creates_and_overwrites_intermediates() -> None:
    tree = {"nav": "flat value"}

    set_value(tree, "nav.home", "Accueil")
    set_value(tree, "footer..links.blog", "Blog")

    assert tree == {"nav": {"home": "Accueil"}, "footer": {"links": {"blog": "Blog"}}}
    assert get_value(tree, "nav.home") == "Accueil"


def test_setting_each_key_to_its_own_value_leaves_tree_unchanged() -> None:
    tree = {
        "title": "Title",
        "nav": {"home": "Home", "menu": {"open": "Open", "close": ""}},
        "count": 3,
        "empty": {},
    }
    original = copy.deepcopy(tree)

    for key in extract_keys(tree):
        set_value(tree, key, get_value(tree, key))

    assert tree == original


def test_merge_strategies_do_not_mutate_base() -> None:
    base = {"a": "1", "nested": {"x": "X", "y": "Y"}}
    updates = {"a": "2", "nested": {"y": "Y2"}, "b": "3"}

    merged = merge_trees(base, updates)
    replaced = merge_trees(base, updates, MergeStrategy.REPLACE)
    preserved = merge_trees(base, updates, "preserve")

    assert merged == {"a": "2", "nested": {"x": "X", "y": "Y2"}, "b": "3"}
    assert replaced == {"a": "2", "nested": {"y": "Y2"}, "b": "3"}
    assert preserved == {"a": "1", "nested": {"x": "X", "y": "Y"}, "b": "3"}
    assert base == {"a": "1", "nested": {"x": "X", "y": "Y"}}


def test_validate_structure_reports_non_string_leaves() -> None:
    result = validate_structure({"ok": "fine", "nested": {"n": 5, "items": ["a"]}, "flag": True})

    assert not result.is_valid
    assert result.errors == [
        "Invalid value type at nested.n: int",
        "Invalid value type at nested.items: list",
        "Invalid value type at flag: bool",
    ]
    assert validate_structure({"a": {"b": "c"}}).is_valid
