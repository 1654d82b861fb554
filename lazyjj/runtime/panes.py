"""Pane identifiers and the key reference shown in the help view."""

from __future__ import annotations

import enum


class Pane(enum.IntEnum):
    """Focusable panes, numbered as shown in their titles."""

    DIFF = 0
    CHANGES = 1
    OPERATIONS = 2


KEY_HELP: tuple[tuple[str, str], ...] = (
    ("j / k", "move down / up (scroll in diff)"),
    ("g / G", "top / bottom"),
    ("{ / }", "previous / next hunk in diff"),
    ("ctrl-u / ctrl-d", "half page up / down in diff"),
    ("tab / l", "next pane"),
    ("h", "previous pane"),
    ("0 / 1 / 2", "focus pane"),
    ("enter", "show files and evolog of change"),
    ("esc", "back to log"),
    ("n", "new change"),
    ("e", "edit change"),
    ("a", "abandon change"),
    ("d", "describe change (enter saves, esc cancels)"),
    ("r", "refresh"),
    ("t", "switch theme"),
    ("< / >", "narrow / widen left column"),
    ("?", "toggle help"),
    ("q", "quit"),
)

__all__ = ["KEY_HELP", "Pane"]
