from __future__ import annotations

from pathlib import Path

import pytest

from linemarks.config import LinemarksConfig
from linemarks.store import BookmarkStore


class ManualTimer:
    def __init__(self, delay: float, callback) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Records scheduled callbacks; tests fire them explicitly."""

    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def schedule(self, delay: float, callback) -> ManualTimer:
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def fire(self) -> None:
        for timer in self.active:
            timer.cancelled = True
            timer.callback()


@pytest.fixture
def root(tmp_path: Path) -> Path:
    return tmp_path.resolve()


@pytest.fixture
def cfg(root: Path) -> LinemarksConfig:
    return LinemarksConfig(root=root)


@pytest.fixture
def store(cfg: LinemarksConfig) -> BookmarkStore:
    return BookmarkStore(cfg)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def write_marks(cfg: LinemarksConfig):
    def _write(*lines: str) -> Path:
        cfg.marks_path.write_text("".join(f"{line}\n" for line in lines))
        return cfg.marks_path

    return _write
