"""ChangeTracker: keep bookmark line numbers in step with live buffer edits.

The host editor calls maybe_attach(path) whenever a file is opened or
focused, and on_edit(path, first, last, new_last) for every line-range change
of an attached file (0-based, half-open, as editors report them). Shifts are
collected in a pending map keyed by the line currently written in the
bookmark file; a debounce timer coalesces a burst of edits into one flush,
which rewrites the affected entries in a single write.

Only one flush timer is live at a time. Restarting it cancels the previous
one, and a superseded timer whose callback already started finds its
generation stale and does nothing. A flush always re-reads the bookmark
file, so edits made to it by hand in the meantime are respected; if it
vanished or cannot be decoded, pending shifts are dropped.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Protocol

from linemarks.adjust import compute_adjustments, current_lines, merge_adjustments
from linemarks.parser import find_bookmark_file_line, rewrite_line_number
from linemarks.store import canonical_path

if TYPE_CHECKING:
    from collections.abc import Callable

    from linemarks.adjust import PendingMap
    from linemarks.store import BookmarkStore

logger = logging.getLogger("linemarks.tracker")

DEFAULT_DELAY = 0.5


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadTimerScheduler:
    """Single-shot callbacks on threading.Timer daemon threads."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class ChangeTracker:
    """Tracks files that have bookmarks and folds their edits into pending shifts."""

    def __init__(
        self,
        store: BookmarkStore,
        delay: float = DEFAULT_DELAY,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.store = store
        self.delay = delay
        self.scheduler: Scheduler = scheduler or ThreadTimerScheduler()
        self._tracked: set[str] = set()
        self._pending: dict[str, PendingMap] = {}
        self._timer: TimerHandle | None = None
        self._generation = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Attachment
    # ------------------------------------------------------------------

    def maybe_attach(self, path: str) -> bool:
        """Track path if some bookmark points at it, stop tracking otherwise."""
        if not path:
            return False
        file_path = canonical_path(path)
        if self.store.is_marks_file(file_path):
            return False
        with self._lock:
            if any(bm.file_path == file_path for bm in self.store.read_bookmarks()):
                if file_path not in self._tracked:
                    logger.debug("tracking %s", file_path)
                self._tracked.add(file_path)
                return True
            if file_path in self._tracked:
                logger.debug("no longer tracking %s", file_path)
            self._tracked.discard(file_path)
            return False

    def is_tracked(self, path: str) -> bool:
        return canonical_path(path) in self._tracked

    def recheck(self) -> None:
        """Re-run maybe_attach for every tracked file, e.g. after the bookmark file changed."""
        for file_path in sorted(self._tracked):
            self.maybe_attach(file_path)

    def pending_for(self, path: str) -> PendingMap:
        pending = self._pending.get(canonical_path(path), {})
        return {original: dict(entry) for original, entry in pending.items()}

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def on_edit(self, path: str, first_line: int, last_line: int, new_last_line: int) -> bool:
        """Fold one buffer change into the pending map. Returns True if any bookmark moved."""
        file_path = canonical_path(path)
        with self._lock:
            if file_path not in self._tracked:
                return False

            disk_lines = [bm.line for bm in self.store.read_bookmarks() if bm.file_path == file_path]
            if not disk_lines:
                self._tracked.discard(file_path)
                return False

            pending = self._pending.get(file_path)
            adjustments = compute_adjustments(
                current_lines(disk_lines, pending), first_line, last_line, new_last_line,
            )
            if not adjustments:
                return False

            merge_adjustments(self._pending.setdefault(file_path, {}), disk_lines, adjustments)
            self._schedule_flush()
            return True

    def _schedule_flush(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._generation += 1
        generation = self._generation
        self._timer = self.scheduler.schedule(self.delay, lambda: self._on_timer(generation))

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            # cancel() cannot stop a Timer whose callback is already waiting on the lock
            if generation != self._generation:
                return
            self.flush()

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    def flush(self) -> int:
        """Write all pending shifts to the bookmark file. Returns the number of rewritten lines."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

            pending, self._pending = self._pending, {}
            if not pending:
                return 0

            try:
                lines = self.store.read_lines()
            except (OSError, UnicodeError):
                logger.warning("could not read %s, discarding pending line shifts", self.store.marks_path)
                return 0
            self.store.invalidate_cache()
            if lines is None:
                logger.warning("%s is gone, discarding pending line shifts", self.store.marks_path)
                return 0

            updated = 0
            for bm in self.store.parse_lines(lines):
                entry = pending.get(bm.file_path, {}).get(bm.line)
                if entry is None or entry["current"] == bm.line:
                    continue
                file_line = find_bookmark_file_line(lines, bm.index)
                if file_line is None:
                    continue
                lines[file_line - 1] = rewrite_line_number(lines[file_line - 1], entry["current"])
                updated += 1

            if updated:
                try:
                    self.store.write(lines)
                except (OSError, UnicodeError):
                    logger.warning("could not write %s, discarding pending line shifts", self.store.marks_path)
                    return 0
                logger.info("updated %d bookmark line%s", updated, "s" if updated != 1 else "")
            return updated

    def teardown(self) -> None:
        """Cancel the flush timer and forget all tracked files and pending shifts."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._tracked.clear()
            self._pending.clear()
