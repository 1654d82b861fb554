"""Frame composition for the three-pane layout.

The left column stacks the change list (pane 1) over the operation list
(pane 2); the diff (pane 0) fills the right column and the last row is the
status bar. Rendering is a pure function of the app model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..ansi import pad_ansi_line
from ..ui_theme import UITheme
from .panes import KEY_HELP, Pane

if TYPE_CHECKING:
    from .app import App

MIN_PANE_WIDTH = 12
CURSOR_MARKER = "→ "
NO_MARKER = "  "
DIVIDER = "│"


@dataclass(frozen=True)
class Layout:
    """Screen geometry derived from terminal size and the pane split."""

    columns: int
    rows: int
    left_width: int

    @property
    def body_rows(self) -> int:
        return max(2, self.rows - 1)

    @property
    def top_block(self) -> int:
        return self.body_rows // 2

    @property
    def bottom_block(self) -> int:
        return self.body_rows - self.top_block

    @property
    def top_height(self) -> int:
        return max(1, self.top_block - 1)

    @property
    def bottom_height(self) -> int:
        return max(1, self.bottom_block - 1)

    @property
    def diff_height(self) -> int:
        return max(1, self.body_rows - 1)

    @property
    def right_width(self) -> int:
        return max(1, self.columns - self.left_width - 1)

    def pane_at(self, col: int, row: int) -> tuple[Pane, int] | None:
        """Map a 1-based terminal cell to ``(pane, content_row)``.

        ``content_row`` is ``-1`` on a pane's title row.
        """
        x = col - 1
        y = row - 1
        if y < 0 or y >= self.body_rows:
            return None
        if x < self.left_width:
            if y < self.top_block:
                return Pane.CHANGES, y - 1
            return Pane.OPERATIONS, y - self.top_block - 1
        if x > self.left_width:
            return Pane.DIFF, y - 1
        return None


def compute_layout(columns: int, rows: int, left_percent: float) -> Layout:
    columns = max(3, columns)
    left = int(round(columns * left_percent / 100.0))
    if columns >= 2 * MIN_PANE_WIDTH + 1:
        left = max(MIN_PANE_WIDTH, min(columns - MIN_PANE_WIDTH - 1, left))
    else:
        left = max(1, min(columns - 2, left))
    return Layout(columns=columns, rows=max(3, rows), left_width=left)


def _title(text: str, focused: bool, theme: UITheme) -> str:
    color = theme.title_focused if focused else theme.title
    return f"{color}{text}{theme.reset}"


def _list_block(app: App, pane: Pane, height: int, theme: UITheme) -> list[str]:
    panel = app.list_panel(pane)
    lines = [_title(f"[{int(pane)}] {panel.title}", app.focus == pane, theme)]
    rows = panel.visible_rows()
    if not rows:
        lines.append(f"{theme.help_dim}{NO_MARKER}{panel.empty_message}{theme.reset}")
    for row in rows:
        if row.selected and row.entry_start:
            marker = f"{theme.cursor_marker}{CURSOR_MARKER}{theme.reset}"
        else:
            marker = NO_MARKER
        lines.append(marker + row.text)
    lines = lines[: height + 1]
    lines.extend("" for _ in range(height + 1 - len(lines)))
    return lines


def help_lines(theme: UITheme) -> list[str]:
    lines = [f"{theme.help_heading}Keys{theme.reset}", ""]
    width = max(len(keys) for keys, _ in KEY_HELP)
    for keys, description in KEY_HELP:
        lines.append(f"  {theme.help_key}{keys.ljust(width)}{theme.reset}  {description}")
    lines.append("")
    lines.append(f"{theme.help_dim}press ? or esc to close{theme.reset}")
    return lines


def _details_row(row: str, theme: UITheme) -> str:
    key, sep, value = row.partition(": ")
    if not sep or row.startswith(" "):
        return row
    return f"{theme.details_key}{key}:{theme.reset} {value}"


def _diff_block(app: App, height: int, theme: UITheme) -> list[str]:
    diff = app.diff_panel
    if app.show_help:
        lines = [_title("Help", True, theme)] + help_lines(theme)
    else:
        lines = [_title(f"[{int(Pane.DIFF)}] {diff.status_label()}", app.focus == Pane.DIFF, theme)]
        start = diff.state.scroll_offset
        for offset, row in enumerate(diff.visible_lines()):
            lines.append(_details_row(row, theme) if start + offset < diff.header_lines else row)
    lines = lines[: height + 1]
    lines.extend("" for _ in range(height + 1 - len(lines)))
    return lines


def status_text(app: App, theme: UITheme) -> str:
    if app.status:
        color = theme.status_error if app.status_is_error else theme.status
        return f"{color}{app.status}{theme.reset}"
    hints = "? help  q quit"
    if not app.watch_enabled:
        hints = "auto-refresh off (r to refresh)  " + hints
    return f"{theme.help_dim}{hints}{theme.reset}"


def render_frame(app: App, layout: Layout, theme: UITheme) -> list[str]:
    """Return exactly ``layout.rows`` padded screen rows."""
    left = _list_block(app, Pane.CHANGES, layout.top_block - 1, theme)
    left += _list_block(app, Pane.OPERATIONS, layout.bottom_block - 1, theme)
    right = _diff_block(app, layout.body_rows - 1, theme)
    divider = f"{theme.divider}{DIVIDER}{theme.reset}"

    rows: list[str] = []
    for index in range(layout.body_rows):
        left_text = left[index] if index < len(left) else ""
        right_text = right[index] if index < len(right) else ""
        rows.append(
            pad_ansi_line(left_text, layout.left_width)
            + divider
            + pad_ansi_line(right_text, layout.right_width)
        )
    rows.append(pad_ansi_line(status_text(app, theme), layout.columns))
    return rows[: layout.rows]


def frame_bytes(rows: list[str]) -> str:
    """Serialize rows as one cursor-home redraw."""
    return "\x1b[H" + "\r\n".join(rows)


__all__ = [
    "Layout",
    "compute_layout",
    "frame_bytes",
    "help_lines",
    "render_frame",
    "status_text",
]
