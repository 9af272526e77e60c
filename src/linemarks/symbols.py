"""Symbol bookmarks (``@name: path:line``) and document-symbol lookups.

Symbols are language-server DocumentSymbol / SymbolInformation dicts:

    {"name": "parse", "range": {"start": {"line": 9}, "end": {"line": 30}},
     "children": [...]}

Lines inside symbol ranges are 0-based; everything this module returns is
1-based. Fetching the symbols is the editor's job.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from linemarks.models import EditOutcome, EditResult

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from linemarks.store import BookmarkStore

logger = logging.getLogger("linemarks.symbols")

Symbol = dict[str, Any]


def flatten_symbols(symbols: Iterable[Symbol], out: list[Symbol] | None = None) -> list[Symbol]:
    """Depth-first flat list of symbols and all their children."""
    if out is None:
        out = []
    for sym in symbols:
        out.append(sym)
        if sym.get("children"):
            flatten_symbols(sym["children"], out)
    return out


def _range(sym: Symbol) -> tuple[int, int] | None:
    rng = sym.get("range") or (sym.get("location") or {}).get("range")
    if not rng:
        return None
    return rng["start"]["line"], rng["end"]["line"]


def symbol_at_line(symbols: Iterable[Symbol], line: int) -> str | None:
    """Name of the innermost (smallest) symbol containing the 1-based line."""
    line_0 = line - 1
    best: Symbol | None = None
    best_size: int | None = None
    for sym in symbols:
        rng = _range(sym)
        if rng is None:
            continue
        start, end = rng
        if start <= line_0 <= end:
            size = end - start
            if best_size is None or size < best_size:
                best, best_size = sym, size
    return best["name"] if best is not None else None


def find_closest_symbol(symbols: Iterable[Symbol] | None, name: str, reference_line: int) -> int | None:
    """1-based start line of the symbol called name nearest reference_line.

    On a distance tie the first symbol in the list wins.
    """
    if not symbols:
        return None
    ref_0 = reference_line - 1
    best_line: int | None = None
    best_dist: int | None = None
    for sym in symbols:
        if sym.get("name") != name:
            continue
        rng = _range(sym)
        if rng is None:
            continue
        dist = abs(rng[0] - ref_0)
        if best_dist is None or dist < best_dist:
            best_dist = dist
            best_line = rng[0] + 1
    return best_line


def relocate_symbol_bookmarks(
    store: BookmarkStore,
    symbols_for: Callable[[str], Iterable[Symbol] | None],
) -> EditResult:
    """Move every ``@symbol`` bookmark to where its symbol is now defined.

    symbols_for(file_path) returns that file's symbols (nested is fine), or
    None when no symbol provider is available for it.
    """
    changes: dict[int, int] = {}
    cache: dict[str, list[Symbol] | None] = {}
    for bm in store.read_bookmarks():
        if not bm.is_symbol:
            continue
        if bm.file_path not in cache:
            found = symbols_for(bm.file_path)
            cache[bm.file_path] = flatten_symbols(found) if found else None
        flat = cache[bm.file_path]
        if not flat:
            continue
        new_line = find_closest_symbol(flat, bm.name[1:], bm.line)  # type: ignore[index]
        if new_line is None:
            logger.debug("symbol %s not found in %s", bm.name, bm.file_path)
        elif new_line != bm.line:
            changes[bm.index] = new_line

    if not changes:
        return EditResult(EditOutcome.NOOP, "All symbol marks are up to date")
    return store.update_lines(changes)
