from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest

from translation_watcher_ai.config import Settings
from translation_watcher_ai.errors import ProviderError
from translation_watcher_ai.providers.base import TranslationProvider


class FakeProvider(TranslationProvider):
    """Deterministic provider: ``hello`` into ``fr`` becomes ``[fr] hello``."""

    def __init__(
        self,
        *,
        failures: dict[str, int] | None = None,
        always_fail: set[str] | None = None,
        valid: bool = True,
    ) -> None:
        super().__init__({})
        # text -> number of calls that fail before one succeeds
        self._failures = dict(failures or {})
        self._always_fail = set(always_fail or ())
        self._valid = valid
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    def validate_config(self, config: dict[str, Any]) -> bool:
        return self._valid

    async def translate(self, text: str, target_language: str, context: str | None = None) -> str:
        self.calls.append({"text": text, "target_language": target_language, "context": context})
        sanitized = self.sanitize_input(text)

        if sanitized in self._always_fail:
            raise ProviderError(f"Provider rejected {sanitized}")
        if self._failures.get(sanitized, 0) > 0:
            self._failures[sanitized] -= 1
            raise ProviderError("Temporary failure")

        return f"[{target_language}] {sanitized}"

    async def aclose(self) -> None:
        self.closed = True


class GatedProvider(FakeProvider):
    """Holds every call until ``gate`` is set."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.gate = asyncio.Event()
        self.started = 0

    async def translate(self, text: str, target_language: str, context: str | None = None) -> str:
        self.started += 1
        await self.gate.wait()
        return await super().translate(text, target_language, context)


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


# Comfortably longer than the 20 ms debounce used by make_settings
SETTLE = 0.15


class FakeObserver:
    """Stands in for a watchdog observer without starting a thread."""

    def __init__(self) -> None:
        self.handlers = []
        self.started = False
        self.stopped = False
        self.joined = False

    def schedule(self, handler, path: str, recursive: bool = False) -> None:
        self.handlers.append((handler, path, recursive))

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout: float | None = None) -> None:
        self.joined = True


def write_json(path: Path, tree: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(tree, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def make_settings(locales: Path, **translation: Any) -> Settings:
    return Settings(
        watch={
            "path": locales,
            "base_language": "en",
            "target_languages": ["fr", "de"],
            "debounce_ms": 20,
        },
        provider={"type": "local"},
        translation={"retry_delay": 0.0, "rate_limit_delay": 0.0, **translation},
    )


@pytest.fixture()
def locales(tmp_path: Path) -> Path:
    directory = tmp_path / "locales"
    write_json(
        directory / "en.json",
        {"welcome": "Welcome", "nav": {"home": "Home", "about": "About"}},
    )
    write_json(directory / "fr.json", {"welcome": "Bienvenue"})
    write_json(directory / "de.json", {})
    return directory


@pytest.fixture()
def settings(locales: Path) -> Settings:
    return make_settings(locales)


@pytest.fixture()
def provider() -> FakeProvider:
    return FakeProvider()
