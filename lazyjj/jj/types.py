"""Structured records recovered from jj's human-oriented text output."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class EntryKind(enum.Enum):
    """What a classified line starts, if anything."""

    NONE = "none"
    CHANGE = "change"
    OPERATION = "operation"


@dataclass(frozen=True)
class EntryMatch:
    """Tagged result of classifying one line.

    ``id`` is the bare identity token; for historical change versions the
    ``/N`` suffix is kept in ``id`` (it is what jj accepts back as a revision)
    and also exposed numerically as ``version``.
    """

    kind: EntryKind
    id: str = ""
    version: int | None = None
    marker: str = ""
    header: str = ""

    @property
    def is_entry_start(self) -> bool:
        return self.kind is not EntryKind.NONE


NO_MATCH = EntryMatch(EntryKind.NONE)


@dataclass(frozen=True)
class Change:
    """One revision row of ``jj log`` (or an evolution-log entry)."""

    id: str
    description: str = ""
    raw: str = ""
    marker: str = ""
    version: int | None = None
    author: str = ""
    timestamp: str = ""
    commit_id: str = ""
    bookmarks: tuple[str, ...] = ()

    @property
    def is_working_copy(self) -> bool:
        return self.marker == "@"

    @property
    def is_immutable(self) -> bool:
        return self.marker == "◆"

    @property
    def is_conflicted(self) -> bool:
        return self.marker == "×"

    @property
    def is_empty(self) -> bool:
        return self.description.startswith("(empty)")


@dataclass(frozen=True)
class Operation:
    """One entry of ``jj op log``."""

    id: str
    description: str = ""
    args: str = ""
    raw: str = ""
    marker: str = ""
    user: str = ""
    time: str = ""

    @property
    def is_current(self) -> bool:
        return self.marker == "@"


Entity = Change | Operation


class FileStatus(str, enum.Enum):
    MODIFIED = "M"
    ADDED = "A"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"


@dataclass(frozen=True)
class File:
    path: str
    status: FileStatus

    @property
    def id(self) -> str:
        # Files are selected by path across refreshes.
        return self.path


@dataclass(frozen=True)
class Hunk:
    """Inclusive line range of one diff section within a blob."""

    header: str
    start_line: int
    end_line: int


@dataclass(frozen=True)
class DetailsHeader:
    """Commit metadata shown above a change's diff."""

    change_id: str = ""
    commit_id: str = ""
    author: str = ""
    date: str = ""
    description: str = ""


@dataclass(frozen=True)
class Assembly:
    """Entities parsed from one blob plus their header line numbers."""

    entities: tuple[Entity, ...] = ()
    start_lines: tuple[int, ...] = ()
    total_lines: int = 0
    raw: str = ""

    def __len__(self) -> int:
        return len(self.entities)


__all__ = [
    "Assembly",
    "Change",
    "DetailsHeader",
    "Entity",
    "EntryKind",
    "EntryMatch",
    "File",
    "FileStatus",
    "Hunk",
    "NO_MATCH",
    "Operation",
]
