"""Line-adjustment algebra for live buffer edits.

An edit arrives as the editor reports it: the half-open, 0-based region
[first, last) of the old buffer was replaced by [first, new_last) in the new
buffer. Bookmark lines are 1-based.

Pending adjustments are keyed by the line number currently written in the
bookmark file (the "original" line), so any number of edits between two
flushes fold into one rewrite:

    pending = {}
    adj = compute_adjustments([3, 10], first=0, last=0, new_last=2)  # {3: 5, 10: 12}
    merge_adjustments(pending, [3, 10], adj)                          # {3: {"current": 5}, ...}
    adj = compute_adjustments([5, 12], first=0, last=1, new_last=0)  # {5: 4, 12: 11}
    merge_adjustments(pending, [3, 10], adj)                          # {3: {"current": 4}, ...}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

PendingMap = dict[int, dict[str, int]]


def compute_adjustments(
    bookmark_lines: Iterable[int],
    first_line: int,
    last_line: int,
    new_last_line: int,
) -> dict[int, int]:
    """Map each bookmark line displaced by the edit to its new line.

    Lines below the region shift by the length delta. Lines inside a region
    that shrank collapse onto its first surviving line (first_line + 1) and are
    always reported. Lines above the region, or inside a region that grew,
    stay put and are omitted.
    """
    delta = new_last_line - last_line
    if delta == 0:
        return {}

    result: dict[int, int] = {}
    for line in bookmark_lines:
        if line > last_line:
            result[line] = line + delta
        elif delta < 0 and first_line < line <= last_line:
            result[line] = first_line + 1
    return result


def merge_adjustments(
    pending: PendingMap,
    bookmark_lines: Iterable[int],
    adjustments: Mapping[int, int],
) -> PendingMap:
    """Fold ``adjustments`` (current -> current) into ``pending`` (original -> current).

    ``bookmark_lines`` are the on-disk lines of the file's bookmarks; those
    without a pending entry are their own current line. Mutates and returns
    ``pending``.
    """
    current_to_original: dict[int, int] = {}
    for original, entry in pending.items():
        current_to_original[entry["current"]] = original
    for line in bookmark_lines:
        if line not in pending:
            current_to_original[line] = line

    for old_current, new_current in adjustments.items():
        original = current_to_original.get(old_current)
        if original is not None:
            pending[original] = {"current": new_current}
    return pending


def current_lines(bookmark_lines: Iterable[int], pending: Mapping[int, Mapping[str, int]] | None) -> list[int]:
    """Apply pending entries to on-disk lines, giving each bookmark's live line."""
    if not pending:
        return list(bookmark_lines)
    return [pending[line]["current"] if line in pending else line for line in bookmark_lines]
