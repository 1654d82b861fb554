"""Background change watcher feeding a one-slot refresh signal.

A single daemon thread polls stat snapshots of every registered directory and
forwards interesting events into a queue that holds at most one pending
signal. Bursts therefore collapse into one refresh on the consumer side.
"""

from __future__ import annotations

import enum
import logging
import os
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Full, Queue

logger = logging.getLogger(__name__)

DEFAULT_POLL_SECONDS = 0.5
DEFAULT_DEBOUNCE_SECONDS = 0.1
LOCK_SUFFIX = ".lock"
EXCLUDED_DIR_NAMES = frozenset({".jj", ".git"})
OP_HEADS_RELATIVE = Path(".jj") / "repo" / "op_heads" / "heads"

IgnorePredicate = Callable[[Path, bool], bool]


class FsOp(enum.IntFlag):
    CREATE = 1
    WRITE = 2
    REMOVE = 4
    RENAME = 8
    CHMOD = 16


FORWARDED_OPS = FsOp.CREATE | FsOp.WRITE | FsOp.REMOVE | FsOp.RENAME


@dataclass(frozen=True)
class FsEvent:
    """One raw filesystem event."""

    path: Path
    op: FsOp
    is_dir: bool = False


@dataclass(frozen=True)
class WatcherSignal:
    """Debounced "repository changed" notification for the UI loop."""

    coalesced: int = 1


class WatcherError(RuntimeError):
    """The repository root could not be watched."""


# (is_dir, mtime_ns, size, mode)
_StatEntry = tuple[bool, int, int, int]


def _entry_stat(entry: os.DirEntry) -> _StatEntry | None:
    try:
        st = entry.stat(follow_symlinks=False)
        is_dir = entry.is_dir(follow_symlinks=False)
    except FileNotFoundError:
        return None
    return (is_dir, st.st_mtime_ns, st.st_size, st.st_mode)


def _snapshot_dir(directory: Path) -> dict[str, _StatEntry]:
    """Return stat metadata of the direct children of ``directory``.

    Raises ``OSError`` when the directory itself cannot be listed.
    """
    snapshot: dict[str, _StatEntry] = {}
    with os.scandir(directory) as entries:
        for entry in entries:
            stat_entry = _entry_stat(entry)
            if stat_entry is not None:
                snapshot[entry.name] = stat_entry
    return snapshot


class PollingEventSource:
    """Raw event source diffing ``os.scandir`` snapshots between polls."""

    def __init__(self) -> None:
        self._snapshots: dict[Path, dict[str, _StatEntry]] = {}

    def add(self, directory: Path) -> list[Path]:
        """Start watching ``directory`` and return its child directories."""
        snapshot = _snapshot_dir(directory)
        self._snapshots[directory] = snapshot
        return [directory / name for name, entry in sorted(snapshot.items()) if entry[0]]

    def remove(self, directory: Path) -> None:
        self._snapshots.pop(directory, None)

    def is_watched(self, directory: Path) -> bool:
        return directory in self._snapshots

    def watched(self) -> list[Path]:
        return list(self._snapshots)

    def poll(self) -> list[FsEvent]:
        events: list[FsEvent] = []
        for directory in list(self._snapshots):
            previous = self._snapshots.get(directory)
            if previous is None:
                continue
            try:
                current = _snapshot_dir(directory)
            except OSError:
                # Gone; the parent's snapshot reports the removal.
                self._snapshots.pop(directory, None)
                continue

            for name, entry in current.items():
                old = previous.get(name)
                path = directory / name
                if old is None or old[0] != entry[0]:
                    events.append(FsEvent(path, FsOp.CREATE, entry[0]))
                elif old[1:3] != entry[1:3]:
                    events.append(FsEvent(path, FsOp.WRITE, entry[0]))
                elif old[3] != entry[3]:
                    events.append(FsEvent(path, FsOp.CHMOD, entry[0]))
            for name, old in previous.items():
                if name not in current:
                    events.append(FsEvent(directory / name, FsOp.REMOVE, old[0]))
            self._snapshots[directory] = current
        return events


class _Closed:
    pass


_CLOSED = _Closed()


class ChangeWatcher:
    """Watches a repository tree and exposes a one-slot change signal."""

    def __init__(
        self,
        root: Path,
        should_ignore: IgnorePredicate | None = None,
        *,
        poll_seconds: float = DEFAULT_POLL_SECONDS,
        source: PollingEventSource | None = None,
    ) -> None:
        self.root = root.resolve()
        self.op_heads_dir = self.root / OP_HEADS_RELATIVE
        self.poll_seconds = poll_seconds
        self._should_ignore = should_ignore
        self._source = source if source is not None else PollingEventSource()
        self._signals: Queue[FsEvent | _Closed] = Queue(maxsize=1)
        self._done = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def closed(self) -> bool:
        return self._done.is_set()

    def watched_dirs(self) -> list[Path]:
        return self._source.watched()

    def _is_excluded_dir(self, path: Path) -> bool:
        if path.name in EXCLUDED_DIR_NAMES:
            return True
        return self._should_ignore is not None and self._should_ignore(path, True)

    def _is_ignored(self, path: Path, is_dir: bool) -> bool:
        if is_dir and path.name in EXCLUDED_DIR_NAMES:
            return True
        return self._should_ignore is not None and self._should_ignore(path, is_dir)

    def _in_op_heads(self, path: Path) -> bool:
        return path.parent == self.op_heads_dir

    def register_tree(self, directory: Path) -> None:
        """Watch ``directory`` and every non-excluded directory below it.

        Failures below the root are logged and skipped; failing to watch the
        root raises ``WatcherError``.
        """
        stack = [directory]
        while stack:
            current = stack.pop()
            if self._source.is_watched(current):
                continue
            try:
                children = self._source.add(current)
            except OSError as exc:
                if current == self.root:
                    raise WatcherError(f"cannot watch {current}: {exc}") from exc
                logger.warning("failed to watch directory %s: %s", current, exc)
                continue
            stack.extend(child for child in reversed(children) if not self._is_excluded_dir(child))

    def _register_op_heads(self) -> None:
        if not self.op_heads_dir.is_dir():
            return
        try:
            self._source.add(self.op_heads_dir)
        except OSError as exc:
            logger.warning("failed to watch operation heads %s: %s", self.op_heads_dir, exc)

    def start(self) -> None:
        self.register_tree(self.root)
        self._register_op_heads()
        logger.debug("watching %d directories under %s", len(self._source.watched()), self.root)
        self._thread = threading.Thread(
            target=self._run,
            name="lazyjj-change-watcher",
            daemon=True,
        )
        self._thread.start()

    def _run(self) -> None:
        while not self._done.wait(self.poll_seconds):
            try:
                self.poll_once()
            except Exception:
                logger.exception("watcher poll failed")

    def poll_once(self) -> int:
        """Poll the event source once; return how many events passed the filter."""
        forwarded = 0
        for event in self._source.poll():
            if self._handle_event(event):
                forwarded += 1
        return forwarded

    def _handle_event(self, event: FsEvent) -> bool:
        if event.op & FsOp.CREATE and event.is_dir and not self._is_excluded_dir(event.path):
            self.register_tree(event.path)
        if event.op & FsOp.REMOVE and event.is_dir:
            self._source.remove(event.path)

        if event.path.name.endswith(LOCK_SUFFIX):
            return False
        if not event.op & FORWARDED_OPS:
            return False
        if not self._in_op_heads(event.path) and self._is_ignored(event.path, event.is_dir):
            return False

        try:
            self._signals.put_nowait(event)
        except Full:
            logger.debug("dropping watcher event %s %s: signal pending", event.op.name, event.path)
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until a change is signalled.

        Returns ``False`` on timeout and, permanently, once the watcher is
        closed.
        """
        if self.closed and self._signals.empty():
            return False
        try:
            item = self._signals.get(timeout=timeout)
        except Empty:
            return False
        if isinstance(item, _Closed):
            self._signals.put_nowait(item)
            return False
        return True

    def pending(self) -> bool:
        if self.closed:
            return False
        return not self._signals.empty()

    def drain(self) -> bool:
        """Consume a pending signal without blocking."""
        try:
            item = self._signals.get_nowait()
        except Empty:
            return False
        if isinstance(item, _Closed):
            self._signals.put_nowait(item)
            return False
        return True

    def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return ``False`` if closed meanwhile."""
        return not self._done.wait(seconds)

    def close(self) -> None:
        if self._done.is_set():
            return
        self._done.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        while True:
            try:
                self._signals.get_nowait()
            except Empty:
                break
        self._signals.put_nowait(_CLOSED)


def start_watcher(
    root: Path,
    should_ignore: IgnorePredicate | None = None,
    *,
    poll_seconds: float = DEFAULT_POLL_SECONDS,
) -> ChangeWatcher:
    """Create and start a watcher; raises ``WatcherError`` if ``root`` fails."""
    watcher = ChangeWatcher(root, should_ignore, poll_seconds=poll_seconds)
    watcher.start()
    return watcher


def wait_for_change(
    watcher: ChangeWatcher,
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
) -> WatcherSignal | None:
    """Block for a change, let the burst settle, and return one signal.

    Returns ``None`` once the watcher is closed.
    """
    if not watcher.wait():
        return None
    if not watcher.sleep(debounce_seconds):
        return None
    coalesced = 1
    if watcher.drain():
        coalesced += 1
    return WatcherSignal(coalesced=coalesced)


__all__ = [
    "ChangeWatcher",
    "DEFAULT_DEBOUNCE_SECONDS",
    "DEFAULT_POLL_SECONDS",
    "FORWARDED_OPS",
    "FsEvent",
    "FsOp",
    "PollingEventSource",
    "WatcherError",
    "WatcherSignal",
    "start_watcher",
    "wait_for_change",
]
