"""Main interactive event loop and session bootstrap.

One thread owns the terminal and the app model. Each iteration applies queued
background messages, redraws when something changed, then waits briefly for a
key so results keep flowing even while the user is idle.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from ..config import Settings
from ..jj.ignore import IgnoreMatcher
from ..jj.runner import CommandRunner
from ..jj.watcher import ChangeWatcher, WatcherError, start_watcher
from .app import App
from .executor import CommandExecutor
from .input import KeyReader
from .render import compute_layout, frame_bytes, render_frame
from .terminal import TerminalController, terminal_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Timing constants controlling interactive loop behavior."""

    key_timeout_ms: int = 50
    max_messages_per_tick: int = 64


def run_main_loop(
    app: App,
    terminal: TerminalController,
    reader: KeyReader,
    timing: RuntimeLoopTiming = RuntimeLoopTiming(),
) -> None:
    """Run until the app asks to quit."""
    with terminal.raw_mode():
        while app.running:
            columns, rows = terminal_size()
            app.resize(compute_layout(columns, rows, app.left_pane_percent))

            for _ in range(timing.max_messages_per_tick):
                message = app.executor.get(timeout=0)
                if message is None:
                    break
                app.update(message)

            if app.dirty and app.layout is not None:
                terminal.write(frame_bytes(render_frame(app, app.layout, app.theme)))
                app.dirty = False

            key = reader.read_key(timeout_ms=timing.key_timeout_ms)
            app.handle_key(key)


def _start_watcher(repo_root: Path, settings: Settings) -> ChangeWatcher | None:
    try:
        return start_watcher(
            repo_root,
            IgnoreMatcher.for_repo(repo_root),
            poll_seconds=settings.poll_seconds,
        )
    except WatcherError as exc:
        logger.warning("auto-refresh disabled: %s", exc)
        return None


def run_tui(
    repo_root: Path,
    *,
    settings: Settings,
    style: str,
    theme_name: str | None = None,
    watch: bool = True,
    no_color: bool = False,
) -> None:
    """Wire runner, watcher, executor and terminal together and run the UI."""
    runner = CommandRunner(repo_root)
    executor = CommandExecutor()
    watcher = _start_watcher(repo_root, settings) if watch else None
    app = App(
        runner,
        executor,
        watcher=watcher,
        settings=settings,
        style=style,
        theme_name=theme_name,
        no_color=no_color,
    )
    if watch and watcher is None:
        app.set_status("cannot watch repository; auto-refresh disabled", error=True)

    stdin_fd = sys.stdin.fileno()
    terminal = TerminalController(stdin_fd, sys.stdout.fileno())
    logger.info("starting session in %s (pid %d)", repo_root, os.getpid())
    app.start()
    try:
        run_main_loop(app, terminal, KeyReader(stdin_fd))
    finally:
        app.running = False
        if watcher is not None:
            watcher.close()
        executor.shutdown()
        logger.info("session ended")


__all__ = ["RuntimeLoopTiming", "run_main_loop", "run_tui"]
