from __future__ import annotations

from pathlib import Path

import pytest

from translation_watcher_ai.languages import (
    detect_language_from_path,
    is_translation_file,
    is_valid_language_code,
    sibling_language_file,
)


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("locales/fr.json", "fr"),
        ("locales/pt-BR.yaml", "pt-BR"),
        ("app/i18n/de/common.json", "de"),
        ("app/translations/fil/errors.ts", "fil"),
        ("locales/common.json", None),
        ("src/messages.json", None),
    ],
)
def test_detect_language_from_path(path: str, expected: str | None) -> None:
    assert detect_language_from_path(path) == expected


def test_language_code_format() -> None:
    assert is_valid_language_code("en")
    assert is_valid_language_code("zh-CN")
    assert not is_valid_language_code("EN")
    assert not is_valid_language_code("english")
    assert not is_valid_language_code("en_US")


def test_is_translation_file_checks_pattern_and_extension() -> None:
    assert is_translation_file("locales/en.json", r".*\.json$")
    assert not is_translation_file("locales/en.yaml", r".*\.json$")
    assert is_translation_file("locales/en.yaml")
    assert not is_translation_file("locales/en.txt")


def test_sibling_language_file_for_flat_and_directory_layouts() -> None:
    assert sibling_language_file(Path("locales/en.json"), "en", "fr") == Path("locales/fr.json")
    assert sibling_language_file(Path("locales/en/common.json"), "en", "fr") == Path(
        "locales/fr/common.json"
    )
