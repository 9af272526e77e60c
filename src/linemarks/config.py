"""LinemarksConfig: project-local config for the bookmark file.

The workspace root is the nearest ancestor of the working directory that
holds either linemarks.toml or the bookmark file itself (marks.md by
default); the working directory otherwise.

linemarks.toml example:

    [linemarks]
    marks_file = "marks.md"   # relative to the workspace root, or absolute
    debounce_ms = 500         # delay before pending line shifts are written

    [watch]
    poll_interval = 1.0       # seconds, used when inotify is unavailable

LINEMARKS_FILE in the environment overrides marks_file.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from linemarks.models import ConfigError

_CONFIG_FILENAME = "linemarks.toml"
_DEFAULT_MARKS_FILE = "marks.md"
_DEFAULT_DEBOUNCE_MS = 500
_DEFAULT_POLL_INTERVAL = 1.0
_ENV_MARKS_FILE = "LINEMARKS_FILE"

MARKS_FILE_HEADER = [
    "# Marks",
    "# Examples: name: path:line | @symbol: path:line | path:line",
    "",
]


@dataclass
class WatchConfig:
    poll_interval: float = _DEFAULT_POLL_INTERVAL


@dataclass
class LinemarksConfig:
    """Resolved configuration for one workspace."""

    root: Path                      # workspace root
    marks_file: str = _DEFAULT_MARKS_FILE
    debounce_ms: int = _DEFAULT_DEBOUNCE_MS
    watch: WatchConfig = field(default_factory=WatchConfig)

    @property
    def marks_path(self) -> Path:
        path = Path(self.marks_file)
        if path.is_absolute():
            return path
        return self.root / path

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


def _find_root(start: Path, marks_file: str) -> Path:
    """Walk upward from start looking for linemarks.toml or the bookmark file."""
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists() or (directory / marks_file).exists():
            return directory
    return start


def _positive(value: Any, key: str, kind: type) -> Any:
    try:
        converted = kind(value)
    except (TypeError, ValueError) as exc:
        msg = f"{_CONFIG_FILENAME}: {key} must be a number, got {value!r}"
        raise ConfigError(msg) from exc
    if converted <= 0:
        msg = f"{_CONFIG_FILENAME}: {key} must be positive, got {value!r}"
        raise ConfigError(msg)
    return converted


def load_config(start: Path | str | None = None) -> LinemarksConfig:
    """Load linemarks.toml from the workspace containing start (default: cwd)."""
    start_path = Path(start) if start else Path.cwd()
    start_path = start_path.resolve()

    env_marks = os.environ.get(_ENV_MARKS_FILE, "")
    root = _find_root(start_path, env_marks or _DEFAULT_MARKS_FILE)
    config_path = root / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            msg = f"{config_path}: {exc}"
            raise ConfigError(msg) from exc

    section = raw.get("linemarks", {})
    watch_section = raw.get("watch", {})

    marks_file = env_marks or section.get("marks_file", _DEFAULT_MARKS_FILE)
    if not isinstance(marks_file, str) or not marks_file:
        msg = f"{_CONFIG_FILENAME}: marks_file must be a non-empty string"
        raise ConfigError(msg)

    # A custom marks_file name can only be discovered once the config is read.
    if marks_file != _DEFAULT_MARKS_FILE and not config_path.exists():
        root = _find_root(start_path, marks_file)

    return LinemarksConfig(
        root=root,
        marks_file=marks_file,
        debounce_ms=_positive(section.get("debounce_ms", _DEFAULT_DEBOUNCE_MS), "debounce_ms", int),
        watch=WatchConfig(
            poll_interval=_positive(
                watch_section.get("poll_interval", _DEFAULT_POLL_INTERVAL), "poll_interval", float,
            ),
        ),
    )


def init_marks_file(cfg: LinemarksConfig) -> tuple[Path, bool]:
    """Create the bookmark file with a comment header. Returns (path, created)."""
    path = cfg.marks_path
    if path.exists():
        return path, False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(MARKS_FILE_HEADER) + "\n")
    return path, True
