from __future__ import annotations

import pytest

from linemarks.config import LinemarksConfig, init_marks_file, load_config
from linemarks.models import ConfigError


def test_defaults_without_any_file(root, monkeypatch):
    monkeypatch.delenv("LINEMARKS_FILE", raising=False)
    cfg = load_config(root)
    assert cfg.root == root
    assert cfg.marks_path == root / "marks.md"
    assert cfg.debounce_ms == 500
    assert cfg.debounce_seconds == 0.5


def test_root_is_nearest_ancestor_with_marks_file(root, monkeypatch):
    monkeypatch.delenv("LINEMARKS_FILE", raising=False)
    (root / "marks.md").write_text("")
    nested = root / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)
    assert load_config().root == root


def test_toml_settings(root, monkeypatch):
    monkeypatch.delenv("LINEMARKS_FILE", raising=False)
    (root / "linemarks.toml").write_text(
        '[linemarks]\nmarks_file = "notes/bookmarks.md"\ndebounce_ms = 250\n\n[watch]\npoll_interval = 2.5\n'
    )
    sub = root / "pkg"
    sub.mkdir()
    cfg = load_config(sub)
    assert cfg.root == root
    assert cfg.marks_path == root / "notes" / "bookmarks.md"
    assert cfg.debounce_seconds == 0.25
    assert cfg.watch.poll_interval == 2.5


def test_env_overrides_marks_file(root, monkeypatch):
    monkeypatch.setenv("LINEMARKS_FILE", "todo.md")
    (root / "todo.md").write_text("")
    sub = root / "x"
    sub.mkdir()
    cfg = load_config(sub)
    assert cfg.root == root
    assert cfg.marks_path == root / "todo.md"


def test_absolute_marks_file(tmp_path):
    cfg = LinemarksConfig(root=tmp_path, marks_file="/var/marks.md")
    assert str(cfg.marks_path) == "/var/marks.md"


@pytest.mark.parametrize(
    "body",
    [
        "[linemarks]\ndebounce_ms = 0\n",
        '[linemarks]\ndebounce_ms = "soon"\n',
        "[watch]\npoll_interval = -1\n",
        "[linemarks]\nmarks_file = 3\n",
        "[linemarks\n",
    ],
)
def test_invalid_config(root, monkeypatch, body):
    monkeypatch.delenv("LINEMARKS_FILE", raising=False)
    (root / "linemarks.toml").write_text(body)
    with pytest.raises(ConfigError):
        load_config(root)


def test_init_marks_file(cfg):
    path, created = init_marks_file(cfg)
    assert created
    assert path.read_text().startswith("# Marks\n")
    assert path.read_text().endswith("\n\n")
    _, created_again = init_marks_file(cfg)
    assert not created_again
