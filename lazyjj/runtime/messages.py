"""Messages delivered to the UI loop from background work.

Every result is applied on the UI thread, one message at a time. Load results
carry the generation of the request that produced them so a slow, stale
response never overwrites a newer one.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..jj.types import DetailsHeader
from ..jj.watcher import WatcherSignal


@dataclass(frozen=True)
class LogLoaded:
    blob: str
    generation: int = 0


@dataclass(frozen=True)
class OpLogLoaded:
    blob: str
    generation: int = 0


@dataclass(frozen=True)
class EvologLoaded:
    change_id: str
    blob: str
    generation: int = 0


@dataclass(frozen=True)
class FilesLoaded:
    change_id: str
    blob: str
    generation: int = 0


@dataclass(frozen=True)
class DiffLoaded:
    """Diff text for ``subject`` (e.g. ``change:<id>`` or ``op:<id>``)."""

    subject: str
    title: str
    blob: str
    details: DetailsHeader | None = None
    generation: int = 0


@dataclass(frozen=True)
class ActionCompleted:
    """A mutating jj command finished; the views need a refresh."""

    description: str


@dataclass(frozen=True)
class CommandFailed:
    command: str
    error: str


@dataclass(frozen=True)
class WatcherStopped:
    reason: str = ""


Message = (
    LogLoaded
    | OpLogLoaded
    | EvologLoaded
    | FilesLoaded
    | DiffLoaded
    | ActionCompleted
    | CommandFailed
    | WatcherSignal
    | WatcherStopped
)

__all__ = [
    "ActionCompleted",
    "CommandFailed",
    "DiffLoaded",
    "EvologLoaded",
    "FilesLoaded",
    "LogLoaded",
    "Message",
    "OpLogLoaded",
    "WatcherSignal",
    "WatcherStopped",
]
