"""Lenient line-oriented parser for the bookmark file.

Format, one entry per line:

    [<name>: ]<path>:<line>

    # comment lines and blank lines are ignored
    <!-- bracketed comments, on one line
         or spanning several -->
    mymark: src/utils.py:10
    @pkg::Type::method: src/time.cpp:5
    src/helpers.py:18

The name is split off at the first ": " (colon-space), so scoped names like
@pkg::Type::method stay whole. Names cannot contain "/" or "\\"; without a
valid name the whole prefix is the path.

Anything that does not end in ``:<positive integer>`` is free-form prose and
is skipped without complaint. parse_file() and find_bookmark_file_line() share
one line-acceptance routine (_iter_entries) so that bookmark index N always
maps back to the same source line.
"""

from __future__ import annotations

import enum
import os
import re
from typing import TYPE_CHECKING

from linemarks.models import Bookmark, NameCheck, NameProblem

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"
NAME_SEPARATOR = ": "

_DIGITS_RE = re.compile(r"[0-9]+")
_TRAILING_LINE_RE = re.compile(r":[ \t]*[0-9]+\s*$")


class _ScanState(enum.Enum):
    NORMAL = "normal"
    IN_COMMENT = "in_comment"


def split_lines(content: str) -> list[str]:
    """Split file content into lines (no trailing newline handling)."""
    return content.split("\n")


def _parse_line_number(text: str) -> int | None:
    """Return a positive integer line number, or None for anything else."""
    text = text.strip()
    if not _DIGITS_RE.fullmatch(text):
        return None
    value = int(text)
    return value if value > 0 else None


def _iter_entries(lines: Sequence[str]) -> Iterator[tuple[int, str, int, int]]:
    """Yield (lineno, trimmed, colon_pos, line_number) for every bookmark line.

    lineno is 1-based. colon_pos is the index of the last ':' in trimmed.
    """
    state = _ScanState.NORMAL
    for lineno, raw in enumerate(lines, start=1):
        trimmed = raw.strip()

        if state is _ScanState.IN_COMMENT:
            if COMMENT_CLOSE in trimmed:
                state = _ScanState.NORMAL
            continue

        if trimmed.startswith(COMMENT_OPEN):
            if COMMENT_CLOSE not in trimmed[len(COMMENT_OPEN):]:
                state = _ScanState.IN_COMMENT
            continue

        if not trimmed or trimmed.startswith("#"):
            continue

        colon = trimmed.rfind(":")
        if colon < 0:
            continue

        line_number = _parse_line_number(trimmed[colon + 1:])
        if line_number is None:
            continue

        yield lineno, trimmed, colon, line_number


def _split_head(head: str) -> tuple[str | None, str]:
    """Split ``name: path`` on the first colon-space; bare colons stay in the name."""
    pos = head.find(NAME_SEPARATOR)
    if pos < 0:
        return None, head
    name = head[:pos].strip()
    path = head[pos + len(NAME_SEPARATOR):].strip()
    if name and "/" not in name and "\\" not in name and path:
        return name, path
    return None, head


def resolve_path(path: str, workspace_root: str) -> str:
    """Absolute paths pass through; relative ones are joined to the workspace root."""
    if path.startswith("/"):
        return os.path.normpath(path)
    return os.path.normpath(workspace_root.rstrip("/") + "/" + path)


def parse_file(content: str, workspace_root: str) -> list[Bookmark]:
    """Parse bookmark file content into Bookmarks, indexed 0..n-1 in file order."""
    bookmarks: list[Bookmark] = []
    for _lineno, trimmed, colon, line_number in _iter_entries(split_lines(content)):
        name, path = _split_head(trimmed[:colon].strip())
        bookmarks.append(
            Bookmark(
                file_path=resolve_path(path, workspace_root),
                line=line_number,
                name=name,
                index=len(bookmarks),
            )
        )
    return bookmarks


def find_bookmark_file_line(file_lines: Sequence[str], target_index: int) -> int | None:
    """Return the 1-based file line holding bookmark ``target_index``, or None."""
    if target_index < 0:
        return None
    for count, (lineno, _trimmed, _colon, _line) in enumerate(_iter_entries(file_lines)):
        if count == target_index:
            return lineno
    return None


def find_header_end(file_lines: Sequence[str]) -> int:
    """1-based insertion point after the leading block of blank and ``#`` lines."""
    for lineno, raw in enumerate(file_lines, start=1):
        trimmed = raw.strip()
        if trimmed and not trimmed.startswith("#"):
            return lineno
    return len(file_lines) + 1


def validate_name(name: str | None) -> NameCheck:
    if not name:
        return NameCheck(ok=False, error=NameProblem.EMPTY_NAME)
    if NAME_SEPARATOR in name:
        return NameCheck(ok=False, error=NameProblem.RESERVED_SEPARATOR)
    return NameCheck(ok=True)


def rewrite_line_number(raw_line: str, new_line: int) -> str:
    """Replace the trailing ``:<digits>`` of raw_line with ``:<new_line>``.

    Returns raw_line unchanged when it has no trailing line number.
    """
    match = _TRAILING_LINE_RE.search(raw_line)
    if match is None:
        return raw_line
    return raw_line[:match.start()] + f":{new_line}"


def format_entry(path: str, line: int, name: str | None = None) -> str:
    """Serialize one bookmark entry."""
    if name:
        return f"{name}{NAME_SEPARATOR}{path}:{line}"
    return f"{path}:{line}"
