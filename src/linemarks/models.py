"""Data models for the bookmark file."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class LinemarksError(Exception):
    """Base class for errors raised by linemarks."""


class ConfigError(LinemarksError, ValueError):
    """Raised when linemarks.toml holds an unusable value."""


@dataclass
class Bookmark:
    """One entry of the bookmark file.

    ``index`` is the 0-based position in parse order. It is assigned on every
    parse and never written back to the file.
    """

    file_path: str
    line: int
    name: str | None = None
    index: int = 0

    @property
    def is_symbol(self) -> bool:
        """Symbol bookmarks are named ``@<symbol>``."""
        return bool(self.name) and self.name.startswith("@")  # type: ignore[union-attr]

    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.line}"


class NameProblem(enum.Enum):
    EMPTY_NAME = "empty_name"
    RESERVED_SEPARATOR = "reserved_separator"


@dataclass(frozen=True)
class NameCheck:
    """Outcome of validate_name: ok, or the reason the name was rejected."""

    ok: bool
    error: NameProblem | None = None

    @property
    def message(self) -> str:
        if self.error is NameProblem.EMPTY_NAME:
            return "Bookmark name must not be empty"
        if self.error is NameProblem.RESERVED_SEPARATOR:
            return "Bookmark name must not contain ': '"
        return ""


class EditOutcome(enum.Enum):
    OK = "ok"
    NOOP = "noop"                    # nothing to do (duplicate, no bookmark here)
    INVALID_NAME = "invalid_name"
    LOOKUP_FAILURE = "lookup_failure"


@dataclass(frozen=True)
class EditResult:
    """Result of a store mutation, carrying a user-facing message."""

    outcome: EditOutcome
    message: str = ""
    changed: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome is EditOutcome.OK
