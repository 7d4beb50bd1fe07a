"""
Language-tag resolution for translation file paths.

Shared by the watcher, the orchestrator and the auto-translator so that a file
is attributed to the same language everywhere.
"""

from __future__ import annotations

import re
from pathlib import Path

# ISO 639-1/639-2 code with an optional upper-case region, e.g. "en", "fil", "pt-BR"
LANGUAGE_CODE_PATTERN = re.compile(r"^[a-z]{2,3}(-[A-Z]{2})?$")

# Supported translation file extensions
TRANSLATION_EXTENSIONS = {".json", ".yaml", ".yml", ".js", ".ts"}

# Directory names whose child directory is a language tag, e.g. locales/fr/common.json
LOCALE_DIRECTORIES = {"locales", "i18n", "translations", "lang"}


def is_valid_language_code(code: str) -> bool:
    """Check that ``code`` looks like ``xx``, ``xxx`` or ``xx-XX``."""
    return bool(LANGUAGE_CODE_PATTERN.match(code))


def detect_language_from_path(file_path: str | Path) -> str | None:
    """
    Resolve the language tag of a translation file.

    The file stem is tried first (``fr.json`` -> ``fr``); otherwise the path
    segment right after a ``locales``/``i18n``/``translations``/``lang``
    directory is used (``locales/fr/common.json`` -> ``fr``).

    Returns:
        The language tag, or None if neither rule applies.
    """
    path = Path(file_path)

    if is_valid_language_code(path.stem):
        return path.stem

    parts = path.parts
    for index, part in enumerate(parts[:-1]):
        if part.lower() in LOCALE_DIRECTORIES:
            candidate = parts[index + 1]
            if is_valid_language_code(candidate):
                return candidate
            break

    return None


def is_translation_file(file_path: str | Path, file_pattern: str | None = None) -> bool:
    """
    Check whether a path names a translation file.

    Args:
        file_path: Path to check.
        file_pattern: Optional regular expression searched in the file name.

    Returns:
        True if the name matches the pattern and the extension is supported.
    """
    path = Path(file_path)

    if file_pattern and not re.search(file_pattern, path.name):
        return False

    return path.suffix in TRANSLATION_EXTENSIONS


def sibling_language_file(base_file: str | Path, base_language: str, language: str) -> Path:
    """
    Build the path of ``language``'s counterpart to a base-language file.

    ``locales/en.json`` maps to ``locales/fr.json`` and
    ``locales/en/common.json`` maps to ``locales/fr/common.json``.
    """
    path = Path(base_file)

    if path.stem == base_language:
        return path.with_name(f"{language}{path.suffix}")

    parts = list(path.parts)
    for index in range(len(parts) - 2, -1, -1):
        if parts[index] == base_language:
            parts[index] = language
            return Path(*parts)

    return path.with_name(f"{language}{path.suffix}")
