"""
Semantic validation of loaded settings.

Pydantic enforces types and numeric ranges when the settings are built; the
checks here cover what a model cannot see on its own: the filesystem, language
tags, provider credentials and cross-field rules.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from translation_watcher_ai.config import API_KEY_ENV_VARS, Settings
from translation_watcher_ai.languages import is_valid_language_code

# API key values that are obviously not real keys
PLACEHOLDER_API_KEYS = {"your-api-key", "your-api-key-here", "sk-...", "changeme", "xxx"}

LARGE_BATCH_SIZE = 50
HIGH_RETRY_ATTEMPTS = 5


@dataclass
class ValidationIssue:
    """One configuration error."""

    path: str
    message: str
    value: Any = None
    expected: str | None = None


@dataclass
class ValidationResult:
    """Outcome of :func:`validate_settings`."""

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_settings(settings: Settings) -> ValidationResult:
    """
    Check settings for problems that would stop the watcher from working.

    Args:
        settings: Loaded settings.

    Returns:
        ValidationResult with errors (blocking) and warnings (advisory).
    """
    result = ValidationResult()
    watch = settings.watch

    if not watch.path.exists():
        result.errors.append(
            ValidationIssue("watch.path", "Watch path does not exist", str(watch.path))
        )
    elif not watch.path.is_dir():
        result.errors.append(
            ValidationIssue("watch.path", "Watch path must be a directory", str(watch.path))
        )

    if not is_valid_language_code(watch.base_language):
        result.errors.append(
            ValidationIssue(
                "watch.base_language",
                "Invalid language code format",
                watch.base_language,
                "ISO 639-1 or 639-2 language code",
            )
        )

    if not watch.target_languages:
        result.errors.append(
            ValidationIssue(
                "watch.target_languages",
                "At least one target language is required",
                expected="non-empty list",
            )
        )

    for index, language in enumerate(watch.target_languages):
        if not is_valid_language_code(language):
            result.errors.append(
                ValidationIssue(
                    f"watch.target_languages[{index}]",
                    "Invalid language code format",
                    language,
                    "ISO 639-1 or 639-2 language code",
                )
            )

    if watch.base_language in watch.target_languages:
        result.errors.append(
            ValidationIssue(
                "watch.target_languages",
                "Target languages must not include the base language",
                watch.base_language,
            )
        )

    if len(set(watch.target_languages)) != len(watch.target_languages):
        result.warnings.append("Duplicate target languages are translated only once per file.")

    try:
        re.compile(watch.file_pattern)
    except re.error as e:
        result.errors.append(
            ValidationIssue("watch.file_pattern", f"Invalid regular expression: {e}", watch.file_pattern)
        )

    provider = settings.provider
    if provider.type in API_KEY_ENV_VARS:
        if not provider.api_key:
            result.errors.append(
                ValidationIssue(
                    "provider.api_key",
                    "API key is required",
                    expected=f"provider.api_key or {API_KEY_ENV_VARS[provider.type]}",
                )
            )
        elif provider.api_key.lower() in PLACEHOLDER_API_KEYS:
            result.warnings.append("The provider API key looks like a placeholder.")

    translation = settings.translation
    if translation.batch_size > LARGE_BATCH_SIZE:
        result.warnings.append(
            "Large batch size may cause rate limiting issues with some LLM providers."
        )
    if translation.retry_attempts > HIGH_RETRY_ATTEMPTS:
        result.warnings.append("High retry attempts may cause excessive API usage and costs.")
    if translation.retry_attempts == 1:
        result.warnings.append("Retries are disabled; transient provider errors fail immediately.")

    return result


def generate_validation_report(result: ValidationResult) -> str:
    """Render a validation result as plain text."""
    lines = ["Configuration Validation Report", "=" * 34, ""]

    if result.is_valid:
        lines += ["Configuration is valid!", ""]
    else:
        lines += ["Configuration has errors:", ""]
        for index, error in enumerate(result.errors, start=1):
            lines.append(f"{index}. {error.path}: {error.message}")
            if error.value is not None:
                lines.append(f"   Value: {error.value!r}")
            if error.expected:
                lines.append(f"   Expected: {error.expected}")
            lines.append("")

    if result.warnings:
        lines += ["Warnings:", ""]
        lines += [f"{index}. {warning}" for index, warning in enumerate(result.warnings, start=1)]
        lines.append("")

    return "\n".join(lines)
