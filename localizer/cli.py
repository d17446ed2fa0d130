"""
Command-line interface for Localizer.

Usage:
    localizer import locales/en.json locales/de.json
    localizer languages
    localizer add-key nav.home
    localizer set nav.home en "Home"
    localizer translate --source en --target tr --target de
    localizer export tr de --out dist/
"""

from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TextColumn, TimeRemainingColumn
from rich.table import Table

from localizer import __version__
from localizer.errors import LocalizerError
from localizer.file_io import export_languages, load_translation_files
from localizer.languages import SUPPORTED_LANGUAGES, get_language_by_code
from localizer.project_store import ProjectShelf, ProjectStore
from localizer.settings import load_settings
from localizer.translate_client import GoogleTranslateClient
from localizer.translation_engine import (
    RunState, TranslationEngine, format_duration, translate_key,
)
from localizer.value_types import parse_value

app = typer.Typer(
    name="localizer",
    help="Localizer: merge, translate and export multi-language JSON files",
    add_completion=False,
)
console = Console()

_state = {"settings_path": None}


def version_callback(value: bool):
    if value:
        console.print(f"Localizer v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    settings_file: Optional[Path] = typer.Option(
        None, "--settings",
        help="Settings file (default: ~/.localizer/settings.json)",
    ),
):
    """Localizer: multi-language JSON translation workbench."""
    _state["settings_path"] = str(settings_file) if settings_file else None
    settings = load_settings(_state["settings_path"])
    level = logging.DEBUG if verbose else getattr(logging, str(settings.log_level).upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _open_store() -> ProjectStore:
    settings = load_settings(_state["settings_path"])
    return ProjectStore(ProjectShelf(settings.project_path))


def _fail(message: str):
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


@app.command("import")
def import_files(
    files: List[Path] = typer.Argument(..., help="JSON files named after their language, e.g. de.json"),
):
    """Merge translation files into the project."""
    loaded, errors = load_translation_files([str(p) for p in files])
    for err in errors:
        console.print(f"[yellow]Skipped[/yellow] {err}")
    if not loaded:
        _fail("no valid files to import")
    store = _open_store()
    data = store.merge_uploaded_files(loaded)
    total_keys = len({k for f in loaded for k in f.data})
    console.print(f"[green]✓[/green] Imported {len(loaded)} file(s), {total_keys} key(s); "
                  f"project has {len(data.keys)} key(s) in {len(data.languages)} language(s)")


@app.command()
def languages(
    catalog: bool = typer.Option(False, "--catalog", help="List every supported language instead"),
):
    """List project languages and their completion."""
    if catalog:
        table = Table(title="Supported languages")
        table.add_column("Code", style="cyan")
        table.add_column("Name")
        for lang in SUPPORTED_LANGUAGES:
            table.add_row(lang.code, f"{lang.flag} {lang.name}")
        console.print(table)
        return

    data = _open_store().data
    if not data.languages:
        console.print("[dim]No languages yet[/dim]")
        return
    table = Table(title="Languages")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Translated", justify="right")
    table.add_column("Completion", justify="right")
    for lang, stats in zip(data.languages, data.language_stats()):
        table.add_row(lang.code, f"{lang.flag} {lang.name}",
                      f"{stats.completed}/{stats.total}", f"{lang.completion_rate:.0f}%")
    console.print(table)


@app.command("add-language")
def add_language(code: str = typer.Argument(..., help="Catalog language code")):
    """Add an empty language column."""
    store = _open_store()
    if store.data.get_language(code) is not None:
        _fail(f"language {code} is already in the project")
    lang = get_language_by_code(code)
    if lang is None:
        _fail(f"unknown language code {code!r} (see: localizer languages --catalog)")
    store.add_language(lang)
    console.print(f"[green]✓[/green] Added {lang.flag} {lang.name}")


@app.command("remove-language")
def remove_language(code: str = typer.Argument(...)):
    """Remove a language and all of its translations."""
    store = _open_store()
    if store.data.get_language(code) is None:
        _fail(f"language {code} is not in the project")
    store.remove_language(code)
    console.print(f"[yellow]Removed[/yellow] {code} and its translations")


@app.command("add-key")
def add_key(key: str = typer.Argument(..., help="Dotted key, e.g. nav.home")):
    """Add a new, untranslated key."""
    try:
        _open_store().add_key(key)
    except LocalizerError as e:
        _fail(str(e))
    console.print(f'[green]✓[/green] Added "{key}"')


@app.command("remove-key")
def remove_key(key: str = typer.Argument(...)):
    """Delete a key and all of its translations."""
    _open_store().remove_key(key)
    console.print(f'[yellow]Removed[/yellow] "{key}"')


@app.command("rename-key")
def rename_key(old: str = typer.Argument(...), new: str = typer.Argument(...)):
    """Rename a key, keeping its translations."""
    try:
        _open_store().rename_key(old, new)
    except LocalizerError as e:
        _fail(str(e))
    console.print(f'[green]✓[/green] "{old}" -> "{new}"')


@app.command("set")
def set_value(
    key: str = typer.Argument(...),
    code: str = typer.Argument(..., help="Language code"),
    value: str = typer.Argument(..., help='Text; "true"/"false" and numbers are typed'),
):
    """Set one translation."""
    store = _open_store()
    if not store.data.has_key(key):
        _fail(f'key "{key}" does not exist')
    if store.data.get_language(code) is None:
        _fail(f"language {code} is not in the project")
    store.set_translation(key, code, parse_value(value))
    console.print(f"[green]✓[/green] {key} ({code}) updated")


@app.command()
def keys(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter keys by substring"),
):
    """Show the key table."""
    data = _open_store().data
    rows = data.search(search) if search else data.keys
    codes = data.language_codes
    table = Table(title=f"Keys ({len(rows)})")
    table.add_column("Key", style="cyan")
    table.add_column("Type", style="dim")
    for code in codes:
        table.add_column(code)
    for k in rows:
        cells = []
        for code in codes:
            value = k.value(code)
            cells.append(str(value) if k.has_translation(code) else "[red]—[/red]")
        table.add_row(k.key, k.value_type.value, *cells)
    console.print(table)


@app.command()
def stats():
    """Show project statistics and the keys with most gaps."""
    data = _open_store().data
    s = data.statistics()
    console.print(f"Keys: {s.total_keys}   Languages: {s.total_languages}   "
                  f"Translations: {s.total_translations}   "
                  f"Average completion: {s.average_completion:.1f}%")
    missing = data.missing_by_key()
    if missing:
        table = Table(title="Missing translations")
        table.add_column("Key", style="cyan")
        table.add_column("Missing", justify="right")
        table.add_column("Languages")
        for key, codes in missing[:20]:
            table.add_row(key, str(len(codes)), ", ".join(codes))
        console.print(table)


@app.command()
def translate(
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Source language code"),
    targets: Optional[List[str]] = typer.Option(None, "--target", "-t", help="Target language (repeatable)"),
    all_keys: bool = typer.Option(False, "--all", help="Retranslate keys that already have values"),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Only fill the gaps of one key"),
):
    """Machine-translate missing values."""
    from PyQt6.QtCore import QCoreApplication, QTimer

    settings = load_settings(_state["settings_path"])
    store = _open_store()
    source = source or settings.default_source_language
    client = GoogleTranslateClient(settings.translate_url, timeout=settings.request_timeout)

    if key:
        try:
            count = translate_key(store, client, key, source)
        except LocalizerError as e:
            _fail(str(e))
        console.print(f'[green]✓[/green] Filled {count} language(s) of "{key}"')
        return

    qt_app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    engine = TranslationEngine(client, store)
    engine.request_delay = settings.request_delay
    only_missing = settings.only_missing and not all_keys

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Translating", total=None)

        engine.progress.connect(
            lambda done, total, current: progress.update(
                task, completed=done, total=total, description=current[:40]))
        engine.finished.connect(lambda _count: qt_app.quit())
        engine.cancelled.connect(qt_app.quit)

        previous = signal.signal(signal.SIGINT, lambda *_: engine.cancel())
        # Wake the interpreter periodically so SIGINT reaches Python during exec()
        heartbeat = QTimer()
        heartbeat.timeout.connect(lambda: None)
        heartbeat.start(200)
        try:
            engine.start(source, targets or [], only_missing=only_missing)
        except LocalizerError as e:
            heartbeat.stop()
            signal.signal(signal.SIGINT, previous)
            progress.stop()
            _fail(str(e))
        qt_app.exec()
        heartbeat.stop()
        signal.signal(signal.SIGINT, previous)

    snapshot = engine.progress_snapshot()
    if engine.state is RunState.COMPLETED:
        console.print(f"[green]✓[/green] Translation complete: "
                      f"{snapshot.completed}/{snapshot.total} pair(s) in "
                      f"{format_duration(snapshot.elapsed)}")
    else:
        console.print("[yellow]Cancelled:[/yellow] no changes applied")


@app.command()
def export(
    codes: List[str] = typer.Argument(None, help="Language codes (default: all)"),
    out: Path = typer.Option(Path("."), "--out", "-o", help="Output directory"),
):
    """Export languages as JSON (one) or a zip archive (several)."""
    data = _open_store().data
    selected = list(dict.fromkeys(codes)) if codes else data.language_codes
    prefix = "translations" if codes else "all-translations"
    try:
        path = export_languages(data, selected, str(out), prefix=prefix)
    except LocalizerError as e:
        _fail(str(e))
    console.print(f"[green]✓[/green] Exported {len(selected)} language(s) to {path}")


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete every language and key."""
    if not yes and not typer.confirm("Delete all languages and keys?"):
        raise typer.Exit()
    _open_store().clear()
    console.print("[yellow]Project cleared[/yellow]")


if __name__ == "__main__":
    app()
