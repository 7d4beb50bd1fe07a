"""
CLI for translation-watcher-ai.

Provides commands to watch a locales directory, translate a file once,
validate and scaffold configuration, and inspect translation status and diffs.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import signal
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from translation_watcher_ai.config import (
    ProviderType,
    Settings,
    create_default_config,
    load_config,
)
from translation_watcher_ai.coordinator import AutoTranslator, TranslationResult
from translation_watcher_ai.diff import DiffDetector, DiffOptions
from translation_watcher_ai.errors import TranslationWatcherError
from translation_watcher_ai.events import Event, EventKind
from translation_watcher_ai.languages import detect_language_from_path, sibling_language_file
from translation_watcher_ai.logging_setup import setup_logging
from translation_watcher_ai.parser import TranslationParser
from translation_watcher_ai.validation import generate_validation_report, validate_settings
from translation_watcher_ai.watcher import TranslationWatcher

app = typer.Typer(
    name="translation-watcher",
    help="AI-powered translation file watcher and translator.",
    add_completion=False,
)

console = Console()

# Keys written to freshly scaffolded locale files
STARTER_KEYS = {"welcome": "Welcome", "hello": "Hello", "goodbye": "Goodbye"}


def _display_config(settings: Settings, config_path: Path | None) -> None:
    """Display the configuration being used."""
    config_source = str(config_path) if config_path else "default (translation-config.yaml or built-in)"

    config_table = Table(show_header=False, box=None, padding=(0, 2))
    config_table.add_column("Key", style="cyan")
    config_table.add_column("Value", style="green")

    config_table.add_row("Config file", config_source)
    config_table.add_row("", "")
    config_table.add_row("[bold]Watch Settings[/bold]", "")
    config_table.add_row("  Path", str(settings.watch.path))
    config_table.add_row("  Base language", settings.watch.base_language)
    config_table.add_row("  Target languages", ", ".join(settings.watch.target_languages) or "-")
    config_table.add_row("  File pattern", settings.watch.file_pattern)
    config_table.add_row("", "")
    config_table.add_row("[bold]Provider Settings[/bold]", "")
    config_table.add_row("  Type", settings.provider.type.value)
    config_table.add_row("  Model", settings.provider.model)
    if settings.provider.type is not ProviderType.LOCAL:
        config_table.add_row(
            "  API key", "configured" if settings.provider.api_key else "[red]not set[/red]"
        )
    else:
        config_table.add_row("  Endpoint", settings.provider.endpoint)
    config_table.add_row("  Batch size", str(settings.translation.batch_size))

    console.print(
        Panel(
            config_table,
            title="[bold blue]translation-watcher-ai[/bold blue]",
            border_style="blue",
        )
    )


def get_settings(config_path: Path | None = None, **overrides) -> Settings:
    """Load settings, exiting with a readable message if they are invalid."""
    try:
        return load_config(config_path, **overrides)
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red]\n{e}")
        raise typer.Exit(1) from None
    except yaml.YAMLError as e:
        console.print(f"[red]Could not read configuration file: {e}[/red]")
        raise typer.Exit(1) from None


def _check_settings(settings: Settings) -> None:
    result = validate_settings(settings)
    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")
    if not result.is_valid:
        console.print(generate_validation_report(result), markup=False, highlight=False)
        raise typer.Exit(1)


def _print_result(file_path: Path, result: TranslationResult) -> None:
    result_table = Table(show_header=False, box=None)
    result_table.add_column("Key", style="cyan")
    result_table.add_column("Value")
    result_table.add_row("File", str(file_path))
    result_table.add_row("Batches", str(result.batches_processed))
    result_table.add_row("Translated", f"[green]{result.total_translations}[/green]")
    result_table.add_row(
        "Failed",
        f"[red]{result.failed_translations}[/red]" if result.failed_translations else "0",
    )
    for updated in result.updated_files:
        result_table.add_row("Updated", str(updated))
    for error in result.errors:
        result_table.add_row("Error", f"[red]{error}[/red]")

    ok = result.success and not result.errors
    console.print(
        Panel(
            result_table,
            title="[bold green]Translation complete[/bold green]" if ok else "[bold red]Translation failed[/bold red]",
            border_style="green" if ok else "red",
        )
    )


@app.command()
def watch(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
    path: Path | None = typer.Option(None, "--path", "-p", help="Directory to watch"),
    base: str | None = typer.Option(None, "--base", "-b", help="Base language code (e.g. en)"),
    targets: str | None = typer.Option(
        None, "--targets", "-t", help="Target language codes (comma-separated, e.g. fr,de,es)"
    ),
    pattern: str | None = typer.Option(None, "--pattern", "-f", help="File name pattern (regex)"),
    provider: ProviderType | None = typer.Option(None, "--provider", help="LLM provider type"),
    api_key: str | None = typer.Option(None, "--api-key", help="API key for the provider"),
    model: str | None = typer.Option(None, "--model", help="Model to use for translation"),
    log_level: str | None = typer.Option(None, "--log-level", help="debug, info, warning, error"),
) -> None:
    """Watch base-language files and translate every change."""
    settings = get_settings(
        config,
        watch={
            "path": path,
            "base_language": base,
            "target_languages": targets,
            "file_pattern": pattern,
        },
        provider={
            "type": provider.value if provider else None,
            "api_key": api_key,
            "model": model,
        },
        logging={"level": log_level},
    )
    logger = setup_logging(settings.logging, console=console)
    _display_config(settings, config)
    _check_settings(settings)

    async def run_watcher() -> None:
        translator = AutoTranslator(settings, logger=logger)

        def on_failed(event: Event) -> None:
            response = event.payload["response"]
            console.print(f"[red]Failed {response.key} ({response.target_language}): {response.error}[/red]")

        translator.events.on(EventKind.TRANSLATION_FAILED, on_failed)

        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
            except NotImplementedError:
                # Windows: Ctrl-C arrives as KeyboardInterrupt instead
                pass

        await translator.start()
        console.print("[green]Watching for changes. Press Ctrl-C to stop.[/green]")
        try:
            await stop.wait()
        finally:
            await translator.stop()

    try:
        asyncio.run(run_watcher())
    except TranslationWatcherError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        pass

    console.print("\n[bold green]Stopped.[/bold green]")


@app.command()
def translate(
    file: Path = typer.Argument(..., help="Base-language file to translate"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
    changed_only: bool = typer.Option(
        False, "--changed-only", help="Only translate keys changed since the previous run"
    ),
) -> None:
    """Translate one base-language file into its target files."""
    if not file.exists():
        console.print(f"[red]File not found: {file}[/red]")
        raise typer.Exit(1)

    settings = get_settings(config)
    logger = setup_logging(settings.logging, console=console)
    _check_settings(settings)

    async def run_translation() -> TranslationResult:
        translator = AutoTranslator(settings, logger=logger)
        await translator.start()
        try:
            return await translator.translate_file(file, changed_only=changed_only)
        finally:
            await translator.stop()

    try:
        result = asyncio.run(run_translation())
    except TranslationWatcherError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    _print_result(file, result)
    if result.errors:
        raise typer.Exit(1)


@app.command()
def validate(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Validate the configuration."""
    settings = get_settings(config)
    result = validate_settings(settings)

    console.print(generate_validation_report(result), markup=False, highlight=False)
    if not result.is_valid:
        raise typer.Exit(1)


@app.command()
def init(
    project_path: Path = typer.Option(
        Path("./translation-project"), "--path", "-p", help="Project directory"
    ),
    base: str = typer.Option("en", "--base", help="Base language code"),
    targets: str = typer.Option("fr,de,es", "--targets", help="Target language codes (comma-separated)"),
    provider: ProviderType = typer.Option(ProviderType.OPENAI, "--provider", help="LLM provider type"),
) -> None:
    """Scaffold a translation project with a config file and locale files."""
    target_languages = [lang.strip() for lang in targets.split(",") if lang.strip()]
    config_path = project_path / "translation-config.yaml"

    if config_path.exists():
        overwrite = typer.confirm(f"{config_path} already exists. Overwrite?")
        if not overwrite:
            raise typer.Abort()

    create_default_config(
        config_path,
        base_language=base,
        target_languages=target_languages,
        provider=provider,
        watch_path="./locales",
    )

    locales_path = project_path / "locales"
    locales_path.mkdir(parents=True, exist_ok=True)

    def write_locale(language: str, tree: dict[str, str]) -> None:
        locale_file = locales_path / f"{language}.json"
        if not locale_file.exists():
            locale_file.write_text(json.dumps(tree, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    write_locale(base, STARTER_KEYS)
    for language in target_languages:
        write_locale(language, {key: "" for key in STARTER_KEYS})

    file_lines = "\n".join(
        [f"├── {base}.json     # Base language"]
        + [f"├── {language}.json     # Target language" for language in target_languages]
    )
    readme = f"""# Translation Project

This project uses translation-watcher-ai to translate locale files automatically.

## Setup

1. Set your API key in `translation-config.yaml` or the environment
2. Run: `translation-watcher watch -c translation-config.yaml`

## File Structure

```
locales/
{file_lines}
```

## Commands

- `translation-watcher watch` - Start watching for changes
- `translation-watcher validate -c translation-config.yaml` - Validate configuration
- `translation-watcher status` - Show keys waiting for translation
"""
    (project_path / "README.md").write_text(readme, encoding="utf-8")

    console.print(f"[green]Created translation project: {project_path}[/green]")
    console.print(f"  Config: {config_path}")
    console.print(f"  Base language: {base}")
    console.print(f"  Target languages: {', '.join(target_languages)}")
    console.print("\nNext steps:")
    console.print(f"  cd {project_path}")
    console.print("  translation-watcher watch -c translation-config.yaml")


@app.command()
def status(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show the configuration and how many keys each target file is missing."""
    settings = get_settings(config)
    _display_config(settings, config)

    if not settings.watch.path.is_dir():
        console.print(f"[red]Watch path does not exist: {settings.watch.path}[/red]")
        raise typer.Exit(1)

    parser = TranslationParser()
    detector = DiffDetector()
    base_language = settings.watch.base_language
    watcher = TranslationWatcher(settings, logger=logging.getLogger(__name__))
    base_files = [
        path for path in watcher.get_watched_files() if detect_language_from_path(path) == base_language
    ]

    if not base_files:
        console.print(f"[yellow]No {base_language} translation files found[/yellow]")
        return

    table = Table(title="Translation Status")
    table.add_column("Base file", style="cyan")
    table.add_column("Language", style="magenta")
    table.add_column("Pending keys", justify="right")

    async def collect() -> None:
        for base_file in base_files:
            base = await parser.parse_file(base_file)
            for language in settings.watch.target_languages:
                target_file = sibling_language_file(base_file, base_language, language)
                if not target_file.exists():
                    table.add_row(base_file.name, language, "[red]missing file[/red]")
                    continue
                target = await parser.parse_file(target_file)
                pending = len(detector.get_keys_needing_incremental_translation(base.tree, target.tree))
                style = "green" if pending == 0 else "yellow"
                table.add_row(base_file.name, language, f"[{style}]{pending}[/{style}]")

    try:
        asyncio.run(collect())
    except TranslationWatcherError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    console.print(table)


@app.command()
def diff(
    old_file: Path = typer.Argument(..., help="Previous version of the translation file"),
    new_file: Path = typer.Argument(..., help="Current version of the translation file"),
    pattern: str | None = typer.Option(None, "--pattern", help="Only show keys matching this regex"),
    ignore_case: bool = typer.Option(False, "--ignore-case", "-i", help="Compare values case-insensitively"),
) -> None:
    """Show the key-level differences between two translation files."""
    parser = TranslationParser()
    detector = DiffDetector(DiffOptions(ignore_case=ignore_case))

    async def load() -> tuple[dict, dict]:
        old = await parser.parse_file(old_file)
        new = await parser.parse_file(new_file)
        return old.tree, new.tree

    try:
        old_tree, new_tree = asyncio.run(load())
    except TranslationWatcherError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    result = detector.detect_diff(old_tree, new_tree)
    if pattern:
        try:
            result = detector.filter_diff_by_pattern(result, pattern)
        except re.error as e:
            console.print(f"[red]Invalid pattern: {e}[/red]")
            raise typer.Exit(1) from None

    console.print(detector.generate_diff_report(result), markup=False, highlight=False)


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
