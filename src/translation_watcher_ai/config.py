"""
Configuration management for translation-watcher-ai.

Handles loading configuration from YAML/JSON files and environment variables.
The resulting Settings object is frozen: it is built once and shared
read-only by every component.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if present (before Settings initialization)
load_dotenv()


class ProviderType(str, Enum):
    """Available translation providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    LOCAL = "local"


# Environment variables consulted when no API key is configured
API_KEY_ENV_VARS = {
    ProviderType.OPENAI: "OPENAI_API_KEY",
    ProviderType.ANTHROPIC: "ANTHROPIC_API_KEY",
}

DEFAULT_MODELS = {
    ProviderType.OPENAI: "gpt-4o-mini",
    ProviderType.ANTHROPIC: "claude-3-5-haiku-latest",
    ProviderType.LOCAL: "llama2",
}

DEFAULT_CONFIG_FILES = (
    "translation-config.yaml",
    "translation-config.yml",
    "translation-config.json",
    ".translation-watcher.yaml",
)


class WatchConfig(BaseModel):
    """Configuration for the file watcher."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(default=Path("./locales"))
    base_language: str = Field(default="en")
    target_languages: list[str] = Field(default_factory=list)
    file_pattern: str = Field(default=r".*\.json$")
    debounce_ms: int = Field(default=300, ge=0, le=60000)
    ignore_patterns: list[str] = Field(
        default_factory=lambda: ["*/node_modules/*", "*/.git/*", "*.backup"]
    )

    @field_validator("path")
    @classmethod
    def expand_path(cls, v: Path) -> Path:
        """Expand user home directory and make path absolute."""
        return Path(v).expanduser().resolve()

    @field_validator("target_languages", mode="before")
    @classmethod
    def split_languages(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [lang.strip() for lang in v.split(",") if lang.strip()]
        return v


class ProviderConfig(BaseModel):
    """Configuration for the translation provider."""

    model_config = ConfigDict(frozen=True)

    type: ProviderType = Field(default=ProviderType.OPENAI)
    api_key: str = Field(default="")
    model: str = Field(default="")
    temperature: float = Field(default=0.3)
    max_tokens: int = Field(default=1000)
    # OpenAI/Anthropic-compatible base URL override
    base_url: str | None = Field(default=None)
    # Local provider generate endpoint
    endpoint: str = Field(default="http://localhost:11434/api/generate")
    # Request timeout in seconds
    timeout: float = Field(default=30.0)
    headers: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def fill_from_environment(cls, data: Any) -> Any:
        """Fall back to the provider's API key environment variable and default model."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        provider_type = ProviderType(data.get("type", ProviderType.OPENAI))

        if not data.get("api_key") and provider_type in API_KEY_ENV_VARS:
            data["api_key"] = os.getenv(API_KEY_ENV_VARS[provider_type], "")
        if not data.get("model"):
            data["model"] = DEFAULT_MODELS[provider_type]

        return data

    def options(self) -> dict[str, Any]:
        """Provider-facing configuration dict, as passed to ``validate_config``."""
        return self.model_dump(exclude={"type"})


class TranslationConfig(BaseModel):
    """Configuration for translation runs."""

    model_config = ConfigDict(frozen=True)

    batch_size: int = Field(default=10, ge=1, le=100)
    retry_attempts: int = Field(default=3, ge=1, le=10)
    # Seconds; the n-th retry waits retry_delay * n
    retry_delay: float = Field(default=1.0, ge=0.0, le=60.0)
    # Seconds between two batches
    rate_limit_delay: float = Field(default=0.1, ge=0.0, le=60.0)
    preserve_formatting: bool = Field(default=True)
    context_injection: bool = Field(default=True)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    file: Path | None = Field(default=None)
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    max_file_size_mb: int = Field(default=10, ge=1, le=100)
    backup_count: int = Field(default=5, ge=1, le=20)

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept lower-case and ``warn`` spellings."""
        level = v.upper()
        return "WARNING" if level == "WARN" else level


class Settings(BaseSettings):
    """Main settings class that combines all configurations."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSLATION_WATCHER_",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    # Configuration sections
    watch: WatchConfig = Field(default_factory=WatchConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    translation: TranslationConfig = Field(default_factory=TranslationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str, **overrides: Any) -> Settings:
        """Load settings from a YAML or JSON file, with environment variable overrides."""
        path = Path(path)
        if not path.exists():
            # Return defaults if file doesn't exist
            return cls(**overrides)

        with open(path, encoding="utf-8") as f:
            file_config = yaml.safe_load(f) or {}

        # Process environment variable substitutions in file values
        file_config = _substitute_env_vars(file_config)

        return cls(**merge_overrides(file_config, overrides))

    def with_overrides(self, **overrides: Any) -> Settings:
        """Return a new Settings with section overrides applied on top of this one."""
        return type(self)(**merge_overrides(self.model_dump(), overrides))


def merge_overrides(config: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge ``{"section": {"field": value}}`` overrides, skipping None values."""
    result = dict(config)
    for section, values in overrides.items():
        if isinstance(values, dict):
            merged = dict(result.get(section) or {})
            merged.update({k: v for k, v in values.items() if v is not None})
            result[section] = merged
        elif values is not None:
            result[section] = values
    return result


def _substitute_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively substitute ${ENV_VAR} patterns in config values."""
    result = {}
    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = _substitute_env_vars(value)
        elif isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            result[key] = os.getenv(env_var, "")
        elif isinstance(value, list):
            result[key] = [
                _substitute_env_vars(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value
    return result


def find_config_file(directory: Path | str = ".") -> Path | None:
    """Return the first default config file found in ``directory``."""
    for name in DEFAULT_CONFIG_FILES:
        candidate = Path(directory) / name
        if candidate.exists():
            return candidate
    return None


def load_config(path: Path | str | None = None, **overrides: Any) -> Settings:
    """
    Load configuration from a file or return defaults.

    Args:
        path: Path to a YAML/JSON config file. If None, looks for one of the
            default file names in the current directory.
        **overrides: Section overrides, e.g. ``watch={"base_language": "de"}``.

    Returns:
        Settings instance with merged file and environment configurations.
    """
    if path is None:
        path = find_config_file()

    if path is not None:
        return Settings.from_file(path, **overrides)

    return Settings(**merge_overrides({}, overrides))


def create_default_config(
    path: Path | str = "translation-config.yaml",
    *,
    base_language: str = "en",
    target_languages: list[str] | None = None,
    provider: ProviderType | str = ProviderType.OPENAI,
    watch_path: str = "./locales",
) -> None:
    """Create a default configuration file."""
    provider = ProviderType(provider)
    targets = ", ".join(f'"{lang}"' for lang in (target_languages or ["es", "fr", "de"]))
    api_key_line = (
        f'  api_key: "${{{API_KEY_ENV_VARS[provider]}}}"'
        if provider in API_KEY_ENV_VARS
        else '  endpoint: "http://localhost:11434/api/generate"'
    )

    default_config = f"""# translation-watcher-ai configuration
watch:
  # Directory containing the translation files
  path: "{watch_path}"
  # Base language whose edits trigger translation
  base_language: "{base_language}"
  # Languages to translate into
  target_languages: [{targets}]
  # Regular expression matched against file names
  file_pattern: ".*\\\\.json$"
  # Quiet period after the last file event before translating
  debounce_ms: 300

provider:
  # "openai", "anthropic" or "local"
  type: "{provider.value}"
{api_key_line}
  model: "{DEFAULT_MODELS[provider]}"
  temperature: 0.3
  max_tokens: 1000

translation:
  # Number of keys per batch
  batch_size: 10
  # Attempts per key before it is reported as failed
  retry_attempts: 3
  # Seconds; the n-th retry waits retry_delay * n
  retry_delay: 1.0
  # Seconds to pause between batches
  rate_limit_delay: 0.1
  # Send parent/sibling values as context
  context_injection: true

logging:
  level: "INFO"
"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(default_config)
