"""Terminal control for the TUI session.

Owns raw-mode lifecycle, alternate-screen switching and mouse reporting.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty

ENTER_TUI = b"\x1b[?1049h\x1b[?25l"
EXIT_TUI = b"\x1b[?25h\x1b[?1049l"
MOUSE_ON = b"\x1b[?1000h\x1b[?1006h"
MOUSE_OFF = b"\x1b[?1000l\x1b[?1006l"


def terminal_size(fallback: tuple[int, int] = (100, 30)) -> tuple[int, int]:
    """Return ``(columns, rows)`` of the controlling terminal."""
    size = shutil.get_terminal_size(fallback)
    return max(1, size.columns), max(1, size.lines)


class TerminalController:
    """Manage terminal mode transitions."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    def write(self, data: str) -> None:
        os.write(self.stdout_fd, data.encode("utf-8", errors="replace"))

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with mouse reporting enabled."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, ENTER_TUI + MOUSE_ON)

    def disable_tui_mode(self) -> None:
        """Restore the main screen and the saved tty state."""
        os.write(self.stdout_fd, MOUSE_OFF + EXIT_TUI)
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()


__all__ = ["TerminalController", "terminal_size"]
