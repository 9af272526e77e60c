"""inotify watcher for the bookmark file.

    python -m linemarks.watcher [WORKSPACE]

Watches the directory holding the bookmark file (editors and the store
itself replace the file by rename, so the file's own inode is not stable) and
reacts to events for the bookmark file name:

    - writes made by BookmarkStore are ignored
    - anything else invalidates the parse cache, re-checks which files the
      ChangeTracker follows, resets navigation, and calls on_change()

Falls back to mtime polling if inotify_simple is unavailable (macOS, Docker).
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from linemarks.config import load_config
from linemarks.navigation import Navigator
from linemarks.store import BookmarkStore
from linemarks.tracker import ChangeTracker

if TYPE_CHECKING:
    from collections.abc import Callable

    from linemarks.config import LinemarksConfig
    from linemarks.store import Mtime

logger = logging.getLogger("linemarks.watcher")

_INOTIFY_TIMEOUT_MS = 1000


class BookmarkWatcher:
    """Turns external edits of the bookmark file into cache invalidation and callbacks."""

    def __init__(
        self,
        store: BookmarkStore,
        on_change: Callable[[], None] | None = None,
        tracker: ChangeTracker | None = None,
        navigator: Navigator | None = None,
        poll_interval: float = 1.0,
    ) -> None:
        self.store = store
        self.on_change = on_change
        self.tracker = tracker
        self.navigator = navigator
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._last_mtime: Mtime | None = store.current_mtime()

    def stop(self) -> None:
        self._stop.set()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def handle_change(self) -> bool:
        """React to a change of the bookmark file. Returns False for our own writes."""
        self._last_mtime = self.store.current_mtime()
        if self.store.changed_by_self():
            logger.debug("ignoring self-write to %s", self.store.marks_path)
            return False

        logger.info("bookmark file changed: %s", self.store.marks_path)
        self.store.invalidate_cache()
        if self.navigator is not None:
            self.navigator.reset()
        try:
            if self.tracker is not None:
                self.tracker.recheck()
            if self.on_change is not None:
                self.on_change()
        except Exception:
            logger.exception("change handler failed for %s", self.store.marks_path)
        return True

    def poll_once(self) -> bool:
        """Compare the bookmark file's mtime with the last one seen."""
        mtime = self.store.current_mtime()
        if mtime == self._last_mtime:
            return False
        return self.handle_change()

    # ------------------------------------------------------------------
    # inotify watcher
    # ------------------------------------------------------------------

    def watch_inotify(self) -> None:
        """Watch using inotify_simple (Linux). Blocks until stop()."""
        import inotify_simple  # type: ignore[import]

        inotify = inotify_simple.INotify()
        flags = inotify_simple.flags  # type: ignore[attr-defined]
        marks_path = self.store.marks_path
        marks_path.parent.mkdir(parents=True, exist_ok=True)
        inotify.add_watch(
            str(marks_path.parent),
            flags.CLOSE_WRITE | flags.MOVED_TO | flags.CREATE | flags.DELETE | flags.MOVED_FROM,
        )
        logger.info("inotify watching %s", marks_path)

        try:
            while not self._stop.is_set():
                names = {event.name for event in inotify.read(timeout=_INOTIFY_TIMEOUT_MS)}
                if marks_path.name in names:
                    self.handle_change()
        finally:
            inotify.close()

    # ------------------------------------------------------------------
    # Polling fallback
    # ------------------------------------------------------------------

    def watch_poll(self) -> None:
        """Polling fallback for macOS/Docker. Checks mtime every poll_interval seconds."""
        logger.info("polling %s interval=%.1fs", self.store.marks_path, self.poll_interval)
        while not self._stop.is_set():
            self.poll_once()
            self._stop.wait(self.poll_interval)

    def run(self) -> None:
        try:
            self.watch_inotify()
        except ImportError:
            logger.warning("inotify_simple not available, falling back to polling")
            self.watch_poll()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_watcher(cfg: LinemarksConfig, on_change: Callable[[], None] | None = None) -> BookmarkWatcher:
    store = BookmarkStore(cfg)
    tracker = ChangeTracker(store, delay=cfg.debounce_seconds)
    return BookmarkWatcher(
        store,
        on_change=on_change,
        tracker=tracker,
        navigator=Navigator(store),
        poll_interval=cfg.watch.poll_interval,
    )


def run_from_config(root: Path | None = None, on_change: Callable[[], None] | None = None) -> None:
    """Load linemarks.toml and watch the bookmark file until interrupted."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")
    cfg = load_config(root)
    watcher = build_watcher(cfg, on_change)
    try:
        watcher.run()
    except KeyboardInterrupt:
        watcher.stop()


if __name__ == "__main__":
    run_from_config(Path(sys.argv[1]) if len(sys.argv) > 1 else None)
