from __future__ import annotations

import os

from linemarks.navigation import Navigator
from linemarks.tracker import ChangeTracker
from linemarks.watcher import BookmarkWatcher, build_watcher


def _bump_mtime(path, seconds: int = 5) -> None:
    st = os.stat(path)
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + seconds * 1_000_000_000))


def test_poll_without_change(store, write_marks):
    write_marks("src/a.py:1")
    calls = []
    watcher = BookmarkWatcher(store, on_change=lambda: calls.append(1))
    assert not watcher.poll_once()
    assert calls == []


def test_external_change_invalidates_and_notifies(store, root, write_marks, scheduler):
    path = write_marks("src/a.py:1")
    tracker = ChangeTracker(store, scheduler=scheduler)
    navigator = Navigator(store)
    tracker.maybe_attach(f"{root}/src/a.py")
    navigator.recall(1)
    calls = []
    watcher = BookmarkWatcher(store, on_change=lambda: calls.append(1), tracker=tracker, navigator=navigator)

    path.write_text("src/b.py:1\n")
    _bump_mtime(path)
    assert watcher.poll_once()
    assert calls == [1]
    assert navigator.last_index is None
    assert not tracker.is_tracked(f"{root}/src/a.py")
    assert not watcher.poll_once()


def test_self_write_is_ignored(store, write_marks):
    write_marks("src/a.py:1")
    calls = []
    watcher = BookmarkWatcher(store, on_change=lambda: calls.append(1))
    store.write(["src/a.py:2"])
    assert not watcher.poll_once()
    assert calls == []


def test_failing_callback_is_logged(store, write_marks, caplog):
    path = write_marks("src/a.py:1")

    def _boom():
        raise RuntimeError("ui gone")

    watcher = BookmarkWatcher(store, on_change=_boom)
    _bump_mtime(path)
    assert watcher.poll_once()
    assert "change handler failed" in caplog.text


def test_deleted_file_counts_as_change(store, write_marks):
    path = write_marks("src/a.py:1")
    calls = []
    watcher = BookmarkWatcher(store, on_change=lambda: calls.append(1))
    path.unlink()
    assert watcher.poll_once()
    assert calls == [1]
    assert store.read_bookmarks() == []


def test_watch_poll_stops(store, write_marks):
    write_marks("src/a.py:1")
    watcher = BookmarkWatcher(store, poll_interval=0.01)
    watcher.stop()
    watcher.watch_poll()


def test_build_watcher_wires_config(cfg):
    cfg.watch.poll_interval = 3.0
    watcher = build_watcher(cfg)
    assert watcher.poll_interval == 3.0
    assert watcher.tracker is not None
    assert watcher.tracker.delay == cfg.debounce_seconds
    assert watcher.navigator is not None
