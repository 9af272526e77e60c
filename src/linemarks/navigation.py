"""Bookmark navigation: per-file and global next/previous, recall by number.

Navigator returns the bookmark to jump to; opening the file and moving the
cursor is up to the editor. The last navigated index is remembered so global
cycling keeps its place when the cursor is not on a bookmark.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from linemarks.store import canonical_path

if TYPE_CHECKING:
    from linemarks.models import Bookmark
    from linemarks.store import BookmarkStore

logger = logging.getLogger("linemarks.navigation")

_NUMBERED_LABELS = 9


def label(bookmark: Bookmark) -> str:
    """Picker label: [1]..[9] for the first nine bookmarks, [*] after."""
    if bookmark.index < _NUMBERED_LABELS:
        return f"[{bookmark.index + 1}]"
    return "[*]"


class Navigator:
    def __init__(self, store: BookmarkStore) -> None:
        self.store = store
        self.last_index: int | None = None

    def reset(self) -> None:
        self.last_index = None

    def _visit(self, bookmark: Bookmark) -> Bookmark:
        self.last_index = bookmark.index
        return bookmark

    def _in_file(self, path: str) -> list[Bookmark]:
        return sorted(self.store.bookmarks_for(path), key=lambda bm: bm.line)

    def next_in_file(self, path: str, cursor_line: int) -> Bookmark | None:
        """First bookmark of path below cursor_line, wrapping to the top."""
        marks = self._in_file(path)
        if not marks:
            return None
        for bm in marks:
            if bm.line > cursor_line:
                return self._visit(bm)
        return self._visit(marks[0])

    def prev_in_file(self, path: str, cursor_line: int) -> Bookmark | None:
        """Last bookmark of path above cursor_line, wrapping to the bottom."""
        marks = self._in_file(path)
        if not marks:
            return None
        for bm in reversed(marks):
            if bm.line < cursor_line:
                return self._visit(bm)
        return self._visit(marks[-1])

    def _current_index(self, marks: list[Bookmark], path: str | None, cursor_line: int | None) -> int | None:
        if path is not None and cursor_line is not None:
            file_path = canonical_path(path)
            for bm in marks:
                if bm.file_path == file_path and bm.line == cursor_line:
                    self.last_index = bm.index
                    return bm.index
        if self.last_index is not None and self.last_index < len(marks):
            return self.last_index
        return None

    def next_global(self, path: str | None = None, cursor_line: int | None = None) -> Bookmark | None:
        marks = self.store.read_bookmarks()
        if not marks:
            return None
        current = self._current_index(marks, path, cursor_line)
        idx = (current + 1) % len(marks) if current is not None else 0
        return self._visit(marks[idx])

    def prev_global(self, path: str | None = None, cursor_line: int | None = None) -> Bookmark | None:
        marks = self.store.read_bookmarks()
        if not marks:
            return None
        current = self._current_index(marks, path, cursor_line)
        idx = (current - 1) % len(marks) if current is not None else 0
        return self._visit(marks[idx])

    def recall(self, n: int) -> Bookmark | None:
        """Bookmark number n (1-based), or None when out of range."""
        marks = self.store.read_bookmarks()
        if n < 1 or n > len(marks):
            logger.warning("mark %d out of range (have %d marks)", n, len(marks))
            return None
        return self._visit(marks[n - 1])
