"""linemarks CLI — line bookmarks kept in a plain-text marks file.

Commands:
    linemarks init                     create the marks file with a header
    linemarks path                     print the marks file path
    linemarks list                     list bookmarks
    linemarks add PATH:LINE            add a bookmark (--name, --prepend, --symbols)
    linemarks delete PATH:LINE         delete the bookmark at PATH:LINE
    linemarks delete-file PATH         delete every bookmark in PATH
    linemarks recall N                 print bookmark N as path:line
    linemarks shift FILE F L NL        apply one edit event and write the shifts
    linemarks relocate-symbols JSON    move @symbol bookmarks to current definitions
    linemarks watch                    log external changes to the marks file
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO

import click

from linemarks.config import LinemarksConfig, init_marks_file, load_config
from linemarks.models import EditOutcome, EditResult, LinemarksError
from linemarks.navigation import Navigator, label
from linemarks.store import BookmarkStore
from linemarks.symbols import flatten_symbols, relocate_symbol_bookmarks, symbol_at_line
from linemarks.tracker import ChangeTracker
from linemarks.watcher import run_from_config

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg() -> LinemarksConfig:
    try:
        return load_config()
    except LinemarksError as exc:
        raise click.ClickException(str(exc)) from exc


def _store() -> BookmarkStore:
    return BookmarkStore(_load_cfg())


def _parse_location(location: str) -> tuple[str, int]:
    path, sep, line = location.rpartition(":")
    if not sep or not path or not line.isdigit() or int(line) < 1:
        msg = f"expected PATH:LINE with a positive line number, got {location!r}"
        raise click.BadParameter(msg, param_hint="LOCATION")
    return str(Path(path).resolve()), int(line)


def _load_symbols(fh: IO[str]) -> dict[str, list]:
    """Read a JSON map of file path -> document symbols, keyed by resolved path."""
    try:
        raw = json.load(fh)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"invalid symbols JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise click.ClickException("symbols JSON must map file paths to symbol lists")
    return {str(Path(p).resolve()): syms for p, syms in raw.items()}


def _report(result: EditResult) -> None:
    if result.outcome is EditOutcome.OK or result.outcome is EditOutcome.NOOP:
        click.echo(result.message)
        return
    raise click.ClickException(result.message)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="linemarks")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def cli(verbose: bool) -> None:
    """linemarks — bookmarks that follow your edits."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s")


@cli.command()
def init() -> None:
    """Create the marks file in the workspace root."""
    path, created = init_marks_file(_load_cfg())
    if created:
        click.echo(f"Created {path}")
    else:
        click.echo(f"{path} already exists — skipping init")


@cli.command("path")
def path_cmd() -> None:
    """Print the resolved marks file path."""
    click.echo(str(_load_cfg().marks_path))


@cli.command("list")
def list_cmd() -> None:
    """List bookmarks in file order."""
    store = _store()
    bookmarks = store.read_bookmarks()
    if not bookmarks:
        click.echo("No marks found")
        return
    for bm in bookmarks:
        name = bm.name or Path(bm.file_path).name
        click.echo(f"{label(bm):<4} {name:<30} {store.relative_path(bm.file_path)}:{bm.line}")


@cli.command()
@click.argument("location")
@click.option("--name", "-n", default=None, help="Bookmark name (use @symbol for symbol marks)")
@click.option("--prepend", is_flag=True, help="Insert below the header instead of appending")
@click.option(
    "--symbols", "symbols_json", type=click.File("r"), default=None,
    help="Document symbols JSON; names the mark @<symbol> at LINE when --name is not given",
)
def add(location: str, name: str | None, prepend: bool, symbols_json: IO[str] | None) -> None:
    """Add a bookmark at PATH:LINE."""
    file_path, line = _parse_location(location)
    if name is None and symbols_json is not None:
        symbol = symbol_at_line(flatten_symbols(_load_symbols(symbols_json).get(file_path) or []), line)
        if symbol is None:
            raise click.ClickException(f"No symbol at {location}")
        name = f"@{symbol}"
    _report(_store().add_bookmark(file_path, line, name=name, prepend=prepend))


@cli.command()
@click.argument("location")
def delete(location: str) -> None:
    """Delete the bookmark at PATH:LINE."""
    file_path, line = _parse_location(location)
    _report(_store().delete_bookmark_at(file_path, line))


@cli.command("delete-file")
@click.argument("path")
def delete_file(path: str) -> None:
    """Delete every bookmark pointing at PATH."""
    _report(_store().delete_bookmarks_in_file(str(Path(path).resolve())))


@cli.command()
@click.argument("n", type=int)
def recall(n: int) -> None:
    """Print bookmark N (1-based) as path:line."""
    bm = Navigator(_store()).recall(n)
    if bm is None:
        raise click.ClickException(f"Mark {n} out of range")
    click.echo(bm.location)


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False))
@click.argument("first", type=click.IntRange(min=0))
@click.argument("last", type=click.IntRange(min=0))
@click.argument("new_last", type=click.IntRange(min=0))
def shift(file: str, first: int, last: int, new_last: int) -> None:
    """Apply one edit of FILE ([FIRST, LAST) -> NEW_LAST, 0-based) to its bookmarks."""
    cfg = _load_cfg()
    file_path = str(Path(file).resolve())
    tracker = ChangeTracker(BookmarkStore(cfg), delay=cfg.debounce_seconds)
    try:
        if not tracker.maybe_attach(file_path):
            click.echo("No marks in this file")
            return
        tracker.on_edit(file_path, first, last, new_last)
        updated = tracker.flush()
    finally:
        tracker.teardown()
    click.echo(f"Updated {updated} mark{'s' if updated != 1 else ''}")


@cli.command("relocate-symbols")
@click.argument("symbols_json", type=click.File("r"))
def relocate_symbols(symbols_json: IO[str]) -> None:
    """Move @symbol bookmarks using document symbols from SYMBOLS_JSON.

    SYMBOLS_JSON maps file paths to lists of language-server document symbols.
    """
    _report(relocate_symbol_bookmarks(_store(), _load_symbols(symbols_json).get))


@cli.command()
def watch() -> None:
    """Watch the marks file and log external changes (Ctrl-C to stop)."""
    cfg = _load_cfg()
    store = BookmarkStore(cfg)

    def _changed() -> None:
        click.echo(f"{len(store.read_bookmarks())} marks")

    run_from_config(cfg.root, on_change=_changed)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
