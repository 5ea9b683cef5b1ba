"""
Core domain models for format-modifications.

These dataclasses describe repositories, file statuses, diff hunks and
formatting ranges. They intentionally avoid any subprocess or formatter
dependencies so they can be reused by every part of the system.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence


@dataclass(frozen=True)
class RepositoryHandle:
    """
    One version-control working copy.

    All relative paths computed during an invocation are relative to
    root, which is resolved once and never changes afterwards.
    """

    root: Path
    backend: str


@dataclass(frozen=True)
class FileStatus:
    """
    Classification of a path within a repository.

    For untracked files only relative_path is meaningful. A conflicted
    file is always tracked.
    """

    relative_path: str
    tracked: bool
    conflicted: bool = False
    mode: Optional[str] = None
    object_id: Optional[str] = None
    stage: Optional[int] = None
    index_eol: Optional[str] = None
    worktree_eol: Optional[str] = None

    def __post_init__(self) -> None:
        if self.conflicted and not self.tracked:
            raise ValueError("a conflicted file must be tracked")

    @classmethod
    def untracked(cls, relative_path: str) -> "FileStatus":
        return cls(relative_path=relative_path, tracked=False)


@dataclass(frozen=True)
class Hunk:
    """
    A contiguous change region between the baseline and the current text.

    Ranges follow the unified diff convention: starts are 1-based and,
    when a count is zero, the start names the line after which the
    change sits.
    """

    old_start: int
    old_count: int
    new_start: int
    new_count: int

    @property
    def is_deletion(self) -> bool:
        return self.new_count == 0

    @property
    def new_end(self) -> int:
        """Last line (inclusive) of the new range."""
        return self.new_start + self.new_count - 1


@dataclass(frozen=True)
class Position:
    """A 1-based line and a 0-based column."""

    line: int
    column: int


@dataclass(frozen=True)
class FormatRange:
    """
    An inclusive span handed to a formatter.

    The start column is always 0 and the end column is anchored to the
    last character of the last line, so whole lines are formatted.
    """

    start: Position
    end: Position

    @classmethod
    def from_lines(cls, lines: Sequence[str], start_line: int, end_line: int) -> "FormatRange":
        end_column = max(len(lines[end_line - 1]) - 1, 0)
        return cls(start=Position(start_line, 0), end=Position(end_line, end_column))

    @property
    def start_line(self) -> int:
        return self.start.line

    @property
    def end_line(self) -> int:
        return self.end.line


class ReformatOutcome(enum.Enum):
    NOT_IN_REPOSITORY = "not-in-repository"
    CONFLICTED = "conflicted"
    FORMATTED_WHOLE = "formatted-whole"
    FORMATTED_HUNKS = "formatted-hunks"


@dataclass(frozen=True)
class ReformatResult:
    """
    Summary of one reformat invocation.

    passes counts diff computations; dispatches counts formatter calls.
    """

    outcome: ReformatOutcome
    passes: int = 0
    dispatches: int = 0
