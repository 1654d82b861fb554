"""Application model: owns the panels and applies keys and messages.

All mutation happens here on the UI thread. jj commands are handed to the
``CommandExecutor`` and come back as messages; each message is applied
synchronously, so list refreshes and their selection reconciliation never
interleave.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from ..config import Settings, save_left_pane_percent, save_theme
from ..highlight import DEFAULT_STYLE, colorize_diff
from ..jj.parse import parse_details
from ..jj.runner import CommandRunner
from ..jj.types import Change, File, Operation
from ..jj.watcher import ChangeWatcher, WatcherSignal
from ..panels.diff import DiffPanel
from ..panels.entity_list import (
    ChangeLogPanel,
    EntityListPanel,
    EvologPanel,
    FileListPanel,
    OperationLogPanel,
)
from ..ui_theme import UITheme, next_theme_name, normalize_theme_name, resolve_theme
from .executor import CommandExecutor
from .input import MouseEvent, parse_mouse_token
from .messages import (
    ActionCompleted,
    CommandFailed,
    DiffLoaded,
    EvologLoaded,
    FilesLoaded,
    LogLoaded,
    Message,
    OpLogLoaded,
    WatcherStopped,
)
from .panes import Pane
from .render import Layout

logger = logging.getLogger(__name__)

RESIZE_STEP_COLUMNS = 4
REFRESHING_STATUS = "refreshing"


class App:
    """Single-threaded model behind the TUI."""

    def __init__(
        self,
        runner: CommandRunner,
        executor: CommandExecutor,
        *,
        watcher: ChangeWatcher | None = None,
        settings: Settings | None = None,
        style: str = DEFAULT_STYLE,
        theme_name: str | None = None,
        no_color: bool = False,
        config_path: Path | None = None,
    ) -> None:
        self.runner = runner
        self.executor = executor
        self.watcher = watcher
        self.settings = settings or Settings()
        self.style = style
        self.no_color = no_color
        self.config_path = config_path
        self.theme_name = normalize_theme_name(theme_name or self.settings.theme)
        self.left_pane_percent = self.settings.left_pane_percent

        self.log_panel = ChangeLogPanel()
        self.oplog_panel = OperationLogPanel()
        self.files_panel = FileListPanel()
        self.evolog_panel = EvologPanel()
        self.diff_panel = DiffPanel()

        self.focus = Pane.CHANGES
        self.diff_source = Pane.CHANGES
        self.drilled_change: str | None = None
        self.wanted_diff_subject = ""
        self.layout: Layout | None = None

        self.status = ""
        self.status_is_error = False
        self.show_help = False
        self.pending_abandon: str | None = None
        self.describe_target: str | None = None
        self.describe_text = ""
        self.running = True
        self.dirty = True
        self.watch_enabled = watcher is not None

        self._issued: dict[str, int] = {}
        self._applied: dict[str, int] = {}
        self._key_handlers: dict[str, Callable[[], None]] = {
            "q": self.quit,
            "CTRL_C": self.quit,
            "?": self.toggle_help,
            "j": lambda: self.move(1),
            "DOWN": lambda: self.move(1),
            "k": lambda: self.move(-1),
            "UP": lambda: self.move(-1),
            "g": self.goto_top,
            "HOME": self.goto_top,
            "G": self.goto_bottom,
            "END": self.goto_bottom,
            "{": self.prev_hunk,
            "}": self.next_hunk,
            "CTRL_U": lambda: self.page(-1),
            "PAGE_UP": lambda: self.page(-1),
            "CTRL_D": lambda: self.page(1),
            "PAGE_DOWN": lambda: self.page(1),
            "TAB": self.next_pane,
            "l": self.next_pane,
            "RIGHT": self.next_pane,
            "h": self.prev_pane,
            "LEFT": self.prev_pane,
            "SHIFT_TAB": self.prev_pane,
            "0": lambda: self.focus_pane(Pane.DIFF),
            "1": lambda: self.focus_pane(Pane.CHANGES),
            "2": lambda: self.focus_pane(Pane.OPERATIONS),
            "ENTER": self.enter,
            "ESC": self.back,
            "n": self.new_change,
            "e": self.edit_change,
            "a": self.request_abandon,
            "d": self.start_describe,
            "r": self.manual_refresh,
            "CTRL_L": self.manual_refresh,
            "t": self.cycle_theme,
            "<": lambda: self.resize_left(-RESIZE_STEP_COLUMNS),
            ">": lambda: self.resize_left(RESIZE_STEP_COLUMNS),
        }

    # -- panels -----------------------------------------------------------

    @property
    def theme(self) -> UITheme:
        return resolve_theme(self.theme_name, no_color=self.no_color)

    @property
    def top_panel(self) -> EntityListPanel:
        return self.files_panel if self.drilled_change is not None else self.log_panel

    @property
    def bottom_panel(self) -> EntityListPanel:
        return self.evolog_panel if self.drilled_change is not None else self.oplog_panel

    def list_panel(self, pane: Pane) -> EntityListPanel:
        if pane == Pane.OPERATIONS:
            return self.bottom_panel
        return self.top_panel

    def resize(self, layout: Layout) -> None:
        if layout == self.layout:
            return
        self.layout = layout
        for panel in (self.log_panel, self.files_panel):
            panel.set_height(layout.top_height)
        for panel in (self.oplog_panel, self.evolog_panel):
            panel.set_height(layout.bottom_height)
        self.diff_panel.set_height(layout.diff_height)
        self.dirty = True

    def set_status(self, text: str, *, error: bool = False) -> None:
        self.status = text
        self.status_is_error = error
        self.dirty = True

    def target_change_id(self) -> str | None:
        if self.drilled_change is not None:
            return self.drilled_change
        change = self.log_panel.selected_change
        return change.id if change is not None else None

    # -- requests ---------------------------------------------------------

    def _issue(self, kind: str) -> int:
        generation = self._issued.get(kind, 0) + 1
        self._issued[kind] = generation
        return generation

    def _accept(self, kind: str, generation: int) -> bool:
        """Return whether a result is newer than the last one applied."""
        if generation < self._applied.get(kind, 0):
            logger.debug("dropping stale %s result (generation %d)", kind, generation)
            return False
        self._applied[kind] = generation
        return True

    def start(self) -> None:
        self.refresh()
        self._arm_watch()

    def _arm_watch(self) -> None:
        if self.watcher is not None and self.watch_enabled:
            self.executor.watch(self.watcher, self.settings.debounce_seconds)

    def refresh(self) -> None:
        logger.debug("refresh requested")
        runner = self.runner
        log_generation = self._issue("log")
        self.executor.submit("log", lambda: LogLoaded(runner.log(), log_generation))
        oplog_generation = self._issue("oplog")
        self.executor.submit("op log", lambda: OpLogLoaded(runner.op_log(), oplog_generation))
        if self.drilled_change is not None:
            self._request_drilled(self.drilled_change)
        self.request_diff()

    def _request_drilled(self, change_id: str) -> None:
        runner = self.runner
        files_generation = self._issue("files")
        self.executor.submit(
            "diff",
            lambda: FilesLoaded(change_id, runner.diff(change_id), files_generation),
        )
        evolog_generation = self._issue("evolog")
        self.executor.submit(
            "evolog",
            lambda: EvologLoaded(change_id, runner.evolog(change_id), evolog_generation),
        )

    def request_diff(self) -> None:
        """Load the diff matching the selection of the diff source pane."""
        runner = self.runner
        style = self.style
        entity = self.list_panel(self.diff_source).selected

        if isinstance(entity, Operation):
            op_id = entity.id
            subject, title = f"op:{op_id}", f"Operation {op_id}"

            def job() -> DiffLoaded:
                return DiffLoaded(subject, title, colorize_diff(runner.op_show(op_id), style), None, generation)

        elif isinstance(entity, File) and self.drilled_change is not None:
            change_id, path = self.drilled_change, entity.path
            subject, title = f"file:{change_id}:{path}", f"{path} @ {change_id}"

            def job() -> DiffLoaded:
                blob = runner.diff_file(change_id, path)
                return DiffLoaded(subject, title, colorize_diff(blob, style), None, generation)

        else:
            if isinstance(entity, Change):
                rev = entity.id
            elif self.drilled_change is not None:
                rev = self.drilled_change
            else:
                self.wanted_diff_subject = ""
                self.diff_panel.clear()
                return
            subject, title = f"change:{rev}", f"Change {rev}"

            def job() -> DiffLoaded:
                details = parse_details(runner.show(rev))
                blob = colorize_diff(runner.diff(rev), style)
                return DiffLoaded(subject, title, blob, details, generation)

        generation = self._issue("diff")
        self.wanted_diff_subject = subject
        self.executor.submit(f"diff {subject}", job)

    # -- messages ---------------------------------------------------------

    def update(self, message: Message) -> None:
        """Apply one background result."""
        self.dirty = True
        if isinstance(message, LogLoaded):
            if self._accept("log", message.generation):
                previous = self.log_panel.selection.selected_key
                self.log_panel.set_content(message.blob)
                if self.status == REFRESHING_STATUS:
                    self.set_status("")
                if self._is_diff_source(self.log_panel) and previous != self.log_panel.selection.selected_key:
                    self.request_diff()
        elif isinstance(message, OpLogLoaded):
            if self._accept("oplog", message.generation):
                previous = self.oplog_panel.selection.selected_key
                self.oplog_panel.set_content(message.blob)
                if self._is_diff_source(self.oplog_panel) and previous != self.oplog_panel.selection.selected_key:
                    self.request_diff()
        elif isinstance(message, FilesLoaded):
            if message.change_id == self.drilled_change and self._accept("files", message.generation):
                previous = self.files_panel.selection.selected_key
                self.files_panel.show_change(message.change_id, message.blob)
                if self._is_diff_source(self.files_panel) and previous != self.files_panel.selection.selected_key:
                    self.request_diff()
        elif isinstance(message, EvologLoaded):
            if message.change_id == self.drilled_change and self._accept("evolog", message.generation):
                previous = self.evolog_panel.selection.selected_key
                self.evolog_panel.show_change(message.change_id, message.blob)
                if self._is_diff_source(self.evolog_panel) and previous != self.evolog_panel.selection.selected_key:
                    self.request_diff()
        elif isinstance(message, DiffLoaded):
            if message.subject == self.wanted_diff_subject and self._accept("diff", message.generation):
                self.diff_panel.set_content(
                    message.blob,
                    subject=message.subject,
                    title=message.title,
                    details=message.details,
                )
        elif isinstance(message, ActionCompleted):
            self.set_status(message.description)
            self.refresh()
        elif isinstance(message, CommandFailed):
            self.set_status(f"{message.command}: {message.error}", error=True)
        elif isinstance(message, WatcherSignal):
            logger.debug("refreshing after filesystem change")
            self.refresh()
            self._arm_watch()
        elif isinstance(message, WatcherStopped):
            if self.running and self.watch_enabled:
                logger.warning("auto-refresh stopped: %s", message.reason)
                self.watch_enabled = False
                self.set_status("auto-refresh stopped; press r to refresh", error=True)

    def _is_diff_source(self, panel: EntityListPanel) -> bool:
        return self.list_panel(self.diff_source) is panel

    # -- keys -------------------------------------------------------------

    def handle_key(self, key: str) -> None:
        if not key:
            return
        mouse = parse_mouse_token(key)
        if mouse is not None:
            self.handle_mouse(mouse)
            return
        if key == "MOUSE":
            return
        self.dirty = True

        if self.show_help:
            if key in {"?", "ESC", "q"}:
                self.show_help = False
            return
        if self.pending_abandon is not None:
            change_id = self.pending_abandon
            self.pending_abandon = None
            if key in {"y", "Y"}:
                self._abandon(change_id)
            else:
                self.set_status("abandon cancelled")
            return

        if self.describe_target is not None:
            self._describe_key(key)
            return

        if self.status:
            self.set_status("")
        handler = self._key_handlers.get(key)
        if handler is not None:
            handler()

    def quit(self) -> None:
        self.running = False

    def toggle_help(self) -> None:
        self.show_help = not self.show_help

    def move(self, delta: int) -> None:
        if self.focus == Pane.DIFF:
            self.diff_panel.scroll(delta)
            return
        panel = self.list_panel(self.focus)
        moved = panel.cursor_down() if delta > 0 else panel.cursor_up()
        if moved:
            self.request_diff()

    def page(self, direction: int) -> None:
        self.diff_panel.scroll(direction * max(1, self.diff_panel.height // 2))

    def goto_top(self) -> None:
        if self.focus == Pane.DIFF:
            self.diff_panel.goto_top()
        elif self.list_panel(self.focus).cursor_top():
            self.request_diff()

    def goto_bottom(self) -> None:
        if self.focus == Pane.DIFF:
            self.diff_panel.goto_bottom()
        elif self.list_panel(self.focus).cursor_bottom():
            self.request_diff()

    def next_hunk(self) -> None:
        if self.focus == Pane.DIFF:
            self.diff_panel.next_hunk()

    def prev_hunk(self) -> None:
        if self.focus == Pane.DIFF:
            self.diff_panel.prev_hunk()

    def focus_pane(self, pane: Pane) -> None:
        self.focus = pane
        if pane != Pane.DIFF and pane != self.diff_source:
            self.diff_source = pane
            self.request_diff()

    def next_pane(self) -> None:
        self.focus_pane(Pane((int(self.focus) + 1) % len(Pane)))

    def prev_pane(self) -> None:
        self.focus_pane(Pane((int(self.focus) - 1) % len(Pane)))

    def enter(self) -> None:
        if self.focus == Pane.CHANGES and self.drilled_change is None:
            change = self.log_panel.selected_change
            if change is not None:
                self.drill_into(change.id)
            return
        if self.focus != Pane.DIFF:
            self.focus = Pane.DIFF

    def drill_into(self, change_id: str) -> None:
        logger.debug("showing files of %s", change_id)
        self.drilled_change = change_id
        self.files_panel.show_change(change_id, "")
        self.evolog_panel.show_change(change_id, "")
        self.focus = Pane.CHANGES
        self.diff_source = Pane.CHANGES
        self._request_drilled(change_id)
        self.request_diff()

    def back(self) -> None:
        if self.drilled_change is None:
            return
        self.drilled_change = None
        self.files_panel.clear()
        self.evolog_panel.clear()
        if self.focus != Pane.OPERATIONS:
            self.focus = Pane.CHANGES
        self.diff_source = Pane.OPERATIONS if self.focus == Pane.OPERATIONS else Pane.CHANGES
        self.request_diff()

    def manual_refresh(self) -> None:
        self.set_status(REFRESHING_STATUS)
        self.refresh()

    def _run_action(self, label: str, action: Callable[[], None], done: str) -> None:
        self.set_status(f"running jj {label}")

        def job() -> ActionCompleted:
            action()
            return ActionCompleted(done)

        self.executor.submit(label, job)

    def new_change(self) -> None:
        self._run_action("new", self.runner.new, "created a new change")

    def edit_change(self) -> None:
        change_id = self.target_change_id()
        if change_id is None:
            return
        self._run_action("edit", lambda: self.runner.edit(change_id), f"editing {change_id}")

    def request_abandon(self) -> None:
        change_id = self.target_change_id()
        if change_id is None:
            return
        self.pending_abandon = change_id
        self.set_status(f"abandon {change_id}? (y/n)")

    def _abandon(self, change_id: str) -> None:
        if self.drilled_change == change_id:
            self.back()
        self._run_action("abandon", lambda: self.runner.abandon(change_id), f"abandoned {change_id}")

    def start_describe(self) -> None:
        """Open a one-line prompt prefilled with the current description."""
        change_id = self.target_change_id()
        if change_id is None:
            return
        current = next((c for c in self.log_panel.entities if c.id == change_id), None)
        self.describe_target = change_id
        self.describe_text = current.description if current is not None else ""
        self._show_describe_prompt()

    def _show_describe_prompt(self) -> None:
        self.set_status(f"describe {self.describe_target}: {self.describe_text}")

    def _describe_key(self, key: str) -> None:
        change_id = self.describe_target
        if key == "ENTER":
            message = self.describe_text
            self.describe_target = None
            self._run_action(
                "describe",
                lambda: self.runner.describe(change_id, message),
                f"described {change_id}",
            )
            return
        if key in {"ESC", "CTRL_C"}:
            self.describe_target = None
            self.set_status("describe cancelled")
            return
        if key == "BACKSPACE":
            self.describe_text = self.describe_text[:-1]
        elif key == "CTRL_U":
            self.describe_text = ""
        elif len(key) == 1 and key.isprintable():
            self.describe_text += key
        self._show_describe_prompt()

    def cycle_theme(self) -> None:
        self.theme_name = next_theme_name(self.theme_name)
        save_theme(self.theme_name, self.config_path)
        self.set_status(f"theme: {self.theme_name}")

    def resize_left(self, delta: int) -> None:
        if self.layout is None:
            return
        columns = self.layout.columns
        left = max(1, min(columns - 2, self.layout.left_width + delta))
        if left == self.layout.left_width:
            return
        self.left_pane_percent = max(1.0, min(99.0, left / columns * 100.0))
        save_left_pane_percent(columns, left, self.config_path)

    # -- mouse ------------------------------------------------------------

    def handle_mouse(self, event: MouseEvent) -> None:
        if self.layout is None or self.show_help:
            return
        hit = self.layout.pane_at(event.col, event.row)
        if hit is None:
            return
        pane, row = hit
        self.dirty = True
        if event.kind in {"WHEEL_UP", "WHEEL_DOWN"}:
            ticks = -1 if event.kind == "WHEEL_UP" else 1
            if pane == Pane.DIFF:
                self.diff_panel.wheel(ticks)
            else:
                self.list_panel(pane).wheel(ticks)
            return
        if event.kind != "LEFT_DOWN":
            return
        previous_source = self.diff_source
        self.focus = pane
        if pane == Pane.DIFF:
            return
        self.diff_source = pane
        panel = self.list_panel(pane)
        before = panel.selection.selected_key
        if row >= 0:
            panel.click(row)
        if previous_source != pane or before != panel.selection.selected_key:
            self.request_diff()


__all__ = ["App"]
