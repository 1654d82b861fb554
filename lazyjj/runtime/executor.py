"""Background execution of jj commands and the watcher wait.

Work runs on a small thread pool; each job produces one message that is
queued for the UI loop. Nothing here touches panel state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from queue import Empty, Queue

from ..jj.runner import JJCommandError
from ..jj.watcher import ChangeWatcher, wait_for_change
from .messages import CommandFailed, Message, WatcherStopped

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


class CommandExecutor:
    """Runs jobs off the UI thread and collects their messages."""

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="lazyjj-cmd")
        self.results: Queue[Message] = Queue()
        self._watch_future: Future | None = None

    def submit(self, label: str, job: Callable[[], Message | None]) -> Future:
        """Run ``job`` in the pool; ``JJCommandError`` becomes ``CommandFailed``."""

        def run() -> None:
            try:
                message = job()
            except JJCommandError as exc:
                logger.warning("%s failed: %s", label, exc)
                message = CommandFailed(command=label, error=str(exc))
            except Exception as exc:
                logger.exception("%s crashed", label)
                message = CommandFailed(command=label, error=f"{type(exc).__name__}: {exc}")
            if message is not None:
                self.results.put(message)

        return self._pool.submit(run)

    def watch(self, watcher: ChangeWatcher, debounce_seconds: float) -> None:
        """Arm one debounced wait on ``watcher``.

        Re-arming while a wait is still outstanding is a no-op, so at most one
        waiter exists at a time.
        """
        if self._watch_future is not None and not self._watch_future.done():
            return

        def job() -> Message:
            signal = wait_for_change(watcher, debounce_seconds)
            if signal is None:
                return WatcherStopped(reason="watcher closed")
            logger.debug("watcher signalled a change (%d coalesced)", signal.coalesced)
            return signal

        self._watch_future = self.submit("watch", job)

    def get(self, timeout: float | None = None) -> Message | None:
        try:
            return self.results.get(timeout=timeout)
        except Empty:
            return None

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)


__all__ = ["CommandExecutor"]
