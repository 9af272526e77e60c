from __future__ import annotations

import pytest

from linemarks.models import Bookmark
from linemarks.navigation import Navigator, label


@pytest.fixture
def nav(store, write_marks):
    write_marks(
        "src/a.py:30",
        "first: src/a.py:10",
        "src/b.py:5",
        "src/a.py:20",
    )
    return Navigator(store)


@pytest.fixture
def a(root):
    return f"{root}/src/a.py"


def test_next_in_file_sorted_by_line(nav, a):
    assert nav.next_in_file(a, 10).line == 20
    assert nav.next_in_file(a, 1).line == 10


def test_next_in_file_wraps(nav, a):
    assert nav.next_in_file(a, 30).line == 10


def test_prev_in_file_wraps(nav, a):
    assert nav.prev_in_file(a, 20).line == 10
    assert nav.prev_in_file(a, 10).line == 30


def test_in_file_without_bookmarks(nav, root):
    assert nav.next_in_file(f"{root}/src/none.py", 1) is None
    assert nav.prev_in_file(f"{root}/src/none.py", 1) is None


def test_global_starts_from_bookmark_under_cursor(nav, a):
    assert nav.next_global(a, 10).index == 2
    assert nav.prev_global(a, 10).index == 0


def test_global_continues_from_last_index(nav, root):
    elsewhere = f"{root}/src/none.py"
    assert nav.next_global(elsewhere, 1).index == 0
    assert nav.next_global(elsewhere, 1).index == 1
    assert nav.next_global(elsewhere, 1).index == 2
    assert nav.next_global(elsewhere, 1).index == 3
    assert nav.next_global(elsewhere, 1).index == 0


def test_prev_global_wraps(nav):
    nav.last_index = 0
    assert nav.prev_global().index == 3


def test_reset_forgets_last_index(nav):
    nav.recall(3)
    nav.reset()
    assert nav.next_global().index == 0


def test_recall(nav, root):
    bm = nav.recall(3)
    assert bm.file_path == f"{root}/src/b.py"
    assert nav.last_index == 2


@pytest.mark.parametrize("n", [0, 5, -1])
def test_recall_out_of_range(nav, n):
    assert nav.recall(n) is None


def test_empty_store(store):
    nav = Navigator(store)
    assert nav.next_global() is None
    assert nav.prev_global() is None


def test_label():
    assert label(Bookmark("/x", 1, index=0)) == "[1]"
    assert label(Bookmark("/x", 1, index=8)) == "[9]"
    assert label(Bookmark("/x", 1, index=9)) == "[*]"
