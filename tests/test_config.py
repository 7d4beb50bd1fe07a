from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from translation_watcher_ai.config import (
    ProviderType,
    Settings,
    create_default_config,
    find_config_file,
    load_config,
)
from translation_watcher_ai.validation import generate_validation_report, validate_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "LOCALE_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings()

    assert settings.watch.base_language == "en"
    assert settings.watch.debounce_ms == 300
    assert settings.provider.type is ProviderType.OPENAI
    assert settings.provider.model == "gpt-4o-mini"
    assert settings.translation.batch_size == 10
    assert settings.logging.level == "INFO"


def test_settings_are_frozen() -> None:
    settings = Settings()

    with pytest.raises(ValidationError):
        settings.watch.base_language = "de"


def test_load_yaml_with_env_substitution_and_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOCALE_KEY", "sk-from-env")
    config_file = tmp_path / "translation-config.yaml"
    config_file.write_text(
        yaml.safe_dump(
            {
                "watch": {"path": str(tmp_path), "target_languages": "fr, de"},
                "provider": {"type": "openai", "api_key": "${LOCALE_KEY}"},
                "logging": {"level": "warn"},
            }
        ),
        encoding="utf-8",
    )

    settings = load_config(config_file, watch={"base_language": "es", "file_pattern": None})

    assert settings.watch.target_languages == ["fr", "de"]
    assert settings.watch.base_language == "es"
    assert settings.watch.file_pattern == r".*\.json$"
    assert settings.provider.api_key == "sk-from-env"
    assert settings.logging.level == "WARNING"


def test_environment_variables_configure_nested_sections(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRANSLATION_WATCHER_TRANSLATION__BATCH_SIZE", "25")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")

    settings = Settings(provider={"type": "anthropic"})

    assert settings.translation.batch_size == 25
    assert settings.provider.api_key == "sk-ant"
    assert settings.provider.model == "claude-3-5-haiku-latest"


def test_out_of_range_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(translation={"batch_size": 0})


def test_create_default_config_round_trips(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    create_default_config(tmp_path / "translation-config.yaml", target_languages=["ja"], provider="local")

    assert find_config_file(tmp_path) == tmp_path / "translation-config.yaml"
    settings = load_config()
    assert settings.watch.target_languages == ["ja"]
    assert settings.watch.file_pattern == r".*\.json$"
    assert settings.provider.type is ProviderType.LOCAL
    assert settings.provider.model == "llama2"


def test_validation_accepts_good_settings(settings) -> None:
    result = validate_settings(settings)

    assert result.is_valid
    assert "Configuration is valid!" in generate_validation_report(result)


def test_validation_reports_errors_and_warnings(tmp_path: Path) -> None:
    settings = Settings(
        watch={
            "path": tmp_path / "missing",
            "base_language": "EN",
            "target_languages": ["fr", "fr", "german"],
            "file_pattern": "([",
        },
        provider={"type": "openai", "api_key": ""},
        translation={"batch_size": 80, "retry_attempts": 1},
    )

    result = validate_settings(settings)
    paths = [error.path for error in result.errors]

    assert not result.is_valid
    assert paths == [
        "watch.path",
        "watch.base_language",
        "watch.target_languages[2]",
        "watch.file_pattern",
        "provider.api_key",
    ]
    assert len(result.warnings) == 3

    report = generate_validation_report(result)
    assert "1. watch.path: Watch path does not exist" in report
    assert "Warnings:" in report


def test_base_language_in_targets_and_empty_targets(settings) -> None:
    overlapping = settings.with_overrides(watch={"target_languages": ["en", "fr"]})
    empty = settings.with_overrides(watch={"target_languages": []})

    assert [e.message for e in validate_settings(overlapping).errors] == [
        "Target languages must not include the base language"
    ]
    assert [e.message for e in validate_settings(empty).errors] == [
        "At least one target language is required"
    ]
