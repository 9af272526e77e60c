"""BookmarkStore: the bookmark file as the single source of truth.

    store = BookmarkStore(load_config())
    for bm in store.read_bookmarks():
        print(bm.index, bm.name, bm.file_path, bm.line)
    store.add_bookmark("/ws/src/app.py", 42, name="entry point")

Reads are cached against the file's mtime (seconds, nanoseconds); any
mismatch, including the file disappearing, forces a re-parse. Every write the
store performs goes through write(), which raises the self-write flag for its
duration so a file watcher can ignore the change it causes, and drops the
cache afterwards.

Mutations never raise for expected conditions. They return an EditResult
whose message is meant for the user. When a bookmark cannot be located in a
fresh read of the file, the file is left untouched.
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
import os
from typing import TYPE_CHECKING

from linemarks.models import Bookmark, EditOutcome, EditResult
from linemarks.parser import (
    find_bookmark_file_line,
    find_header_end,
    format_entry,
    parse_file,
    rewrite_line_number,
    validate_name,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

    from linemarks.config import LinemarksConfig

logger = logging.getLogger("linemarks.store")

Mtime = tuple[int, int]


def canonical_path(path: str | os.PathLike[str]) -> str:
    """Absolute, symlink-resolved form used to compare editor paths with bookmarks."""
    return os.path.realpath(os.fspath(path))


def _split_file_text(text: str) -> list[str]:
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


class BookmarkStore:
    """Owns the bookmark file, its parsed cache, and the self-write flag."""

    def __init__(self, cfg: LinemarksConfig) -> None:
        self.cfg = cfg
        self._cached: list[Bookmark] | None = None
        self._cached_mtime: Mtime | None = None
        self._self_write = False
        # mtime after our last write; a file still at this mtime is our own write.
        self.last_write_mtime: Mtime | None = None

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def workspace_root(self) -> str:
        return str(self.cfg.root)

    @property
    def marks_path(self) -> Path:
        return self.cfg.marks_path

    def relative_path(self, file_path: str) -> str:
        """Path relative to the workspace root, or unchanged when outside it."""
        root = self.workspace_root.rstrip("/")
        if file_path.startswith(root + "/"):
            return file_path[len(root) + 1:]
        return file_path

    def is_marks_file(self, path: str) -> bool:
        return canonical_path(path) == canonical_path(self.marks_path)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _stat_mtime(self) -> Mtime | None:
        try:
            st = os.stat(self.marks_path)
        except FileNotFoundError:
            return None
        sec, nsec = divmod(st.st_mtime_ns, 1_000_000_000)
        return sec, nsec

    def read_lines(self) -> list[str] | None:
        """Read the bookmark file fresh from disk. None when it does not exist."""
        try:
            with self.marks_path.open(encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                text = f.read()
        except FileNotFoundError:
            return None
        return _split_file_text(text)

    def parse_lines(self, lines: Sequence[str]) -> list[Bookmark]:
        bookmarks = parse_file("\n".join(lines), self.workspace_root)
        for i, bm in enumerate(bookmarks):
            bm.index = i
        return bookmarks

    def read_bookmarks(self) -> list[Bookmark]:
        """Parsed bookmarks, re-read only when the file's mtime changed."""
        mtime = self._stat_mtime()
        if mtime is None:
            self._cached = []
            self._cached_mtime = None
            return []

        if self._cached is not None and self._cached_mtime == mtime:
            return self._cached

        lines = self.read_lines()
        if lines is None:
            self._cached = []
            self._cached_mtime = None
            return []

        bookmarks = self.parse_lines(lines)
        logger.debug("parsed %d bookmarks from %s", len(bookmarks), self.marks_path)
        self._cached = bookmarks
        self._cached_mtime = mtime
        return bookmarks

    def invalidate_cache(self) -> None:
        self._cached = None
        self._cached_mtime = None

    def bookmarks_for(self, file_path: str) -> list[Bookmark]:
        """Bookmarks pointing at file_path, in file order."""
        path = canonical_path(file_path)
        return [bm for bm in self.read_bookmarks() if bm.file_path == path]

    def has_bookmark_at(self, file_path: str, line: int) -> bool:
        path = canonical_path(file_path)
        return any(bm.file_path == path and bm.line == line for bm in self.read_bookmarks())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @property
    def is_self_write(self) -> bool:
        return self._self_write

    def current_mtime(self) -> Mtime | None:
        return self._stat_mtime()

    def changed_by_self(self) -> bool:
        """True while we are writing, or when the file is exactly as our last write left it."""
        if self._self_write:
            return True
        return self.last_write_mtime is not None and self._stat_mtime() == self.last_write_mtime

    def write(self, lines: Sequence[str]) -> None:
        """Persist lines to the bookmark file (tmp file + rename, under flock)."""
        path = self.marks_path
        path.parent.mkdir(parents=True, exist_ok=True)
        text = "".join(f"{line}\n" for line in lines)
        tmp = path.with_name(path.name + ".tmp")
        self._self_write = True
        try:
            with tmp.open("w", encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                f.write(text)
            tmp.replace(path)
            self.last_write_mtime = self._stat_mtime()
            logger.debug("wrote %d lines to %s", len(lines), path)
        except OSError:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise
        finally:
            self._self_write = False
            self.invalidate_cache()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_bookmark(
        self,
        file_path: str,
        line: int,
        name: str | None = None,
        prepend: bool = False,
    ) -> EditResult:
        """Append (or insert below the header) an entry for file_path:line."""
        if name is not None:
            check = validate_name(name)
            if not check.ok:
                return EditResult(EditOutcome.INVALID_NAME, check.message)

        path = canonical_path(file_path)
        if self.has_bookmark_at(path, line):
            return EditResult(EditOutcome.NOOP, "Mark already exists at this location")

        entry = format_entry(self.relative_path(path), line, name)
        if not self._reads_back(entry, path, line, name):
            if name is not None:
                return EditResult(EditOutcome.INVALID_NAME, "Bookmark name cannot be stored in the marks file")
            return EditResult(EditOutcome.LOOKUP_FAILURE, "Path cannot be stored in the marks file")

        lines = self.read_lines() or []
        if prepend:
            lines.insert(find_header_end(lines) - 1, entry)
        else:
            lines.append(entry)
        self.write(lines)
        return EditResult(EditOutcome.OK, "Mark added", changed=1)

    def _reads_back(self, entry: str, path: str, line: int, name: str | None) -> bool:
        """True when entry parses as exactly one bookmark (name, path, line)."""
        parsed = parse_file(entry, self.workspace_root)
        if len(parsed) != 1:
            return False
        bm = parsed[0]
        return (bm.name, bm.file_path, bm.line) == (name, path, line)

    def delete_bookmark_at(self, file_path: str, line: int) -> EditResult:
        path = canonical_path(file_path)
        target = next(
            (bm for bm in self.read_bookmarks() if bm.file_path == path and bm.line == line),
            None,
        )
        if target is None:
            return EditResult(EditOutcome.NOOP, "No mark at current line")

        lines = self.read_lines() or []
        file_line = find_bookmark_file_line(lines, target.index)
        if file_line is None:
            logger.warning("bookmark %d not found in %s", target.index, self.marks_path)
            return EditResult(EditOutcome.LOOKUP_FAILURE, "Could not find mark in marks file")

        del lines[file_line - 1]
        self.write(lines)
        return EditResult(EditOutcome.OK, "Mark deleted", changed=1)

    def delete_bookmarks_in_file(self, file_path: str) -> EditResult:
        """Remove every bookmark pointing at file_path in a single rewrite."""
        path = canonical_path(file_path)
        lines = self.read_lines()
        if lines is None:
            return EditResult(EditOutcome.NOOP, "No marks in this file")

        indices = [bm.index for bm in self.parse_lines(lines) if bm.file_path == path]
        if not indices:
            return EditResult(EditOutcome.NOOP, "No marks in this file")

        file_lines: list[int] = []
        for index in indices:
            file_line = find_bookmark_file_line(lines, index)
            if file_line is None:
                return EditResult(EditOutcome.LOOKUP_FAILURE, "Could not find mark in marks file")
            file_lines.append(file_line)

        for file_line in sorted(file_lines, reverse=True):
            del lines[file_line - 1]
        self.write(lines)
        n = len(file_lines)
        return EditResult(EditOutcome.OK, f"Deleted {n} mark{'s' if n != 1 else ''}", changed=n)

    def update_lines(self, changes: Mapping[int, int]) -> EditResult:
        """Rewrite the line numbers of bookmarks by index: {index: new_line}."""
        if not changes:
            return EditResult(EditOutcome.NOOP, "No marks changed")
        lines = self.read_lines()
        if lines is None:
            return EditResult(EditOutcome.LOOKUP_FAILURE, "Marks file not found")

        rewritten = list(lines)
        for index, new_line in changes.items():
            file_line = find_bookmark_file_line(lines, index)
            if file_line is None:
                return EditResult(EditOutcome.LOOKUP_FAILURE, "Could not find mark in marks file")
            rewritten[file_line - 1] = rewrite_line_number(lines[file_line - 1], new_line)

        if rewritten == lines:
            return EditResult(EditOutcome.NOOP, "No marks changed")
        self.write(rewritten)
        n = sum(1 for old, new in zip(lines, rewritten, strict=True) if old != new)
        return EditResult(EditOutcome.OK, f"Updated {n} mark{'s' if n != 1 else ''}", changed=n)
