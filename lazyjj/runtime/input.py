"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into normalized key tokens
such as ``"j"``, ``"UP"``, ``"TAB"`` or ``"MOUSE_WHEEL_DOWN:col:row"``.
"""

from __future__ import annotations

import os
import select
from collections import deque
from dataclasses import dataclass

ESC_SEQUENCE_TIMEOUT_MS = 25
_MAX_MOUSE_PAYLOAD = 64

_CONTROL_KEYS = {
    b"\t": "TAB",
    b"\r": "ENTER",
    b"\n": "ENTER",
    b"\x7f": "BACKSPACE",
    b"\x08": "BACKSPACE",
    b"\x03": "CTRL_C",
    b"\x04": "CTRL_D",
    b"\x15": "CTRL_U",
    b"\x0c": "CTRL_L",
}

_CSI_FINAL_KEYS = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
    b"Z": "SHIFT_TAB",
}

_CSI_TILDE_KEYS = {
    "1": "HOME",
    "4": "END",
    "5": "PAGE_UP",
    "6": "PAGE_DOWN",
    "7": "HOME",
    "8": "END",
}


@dataclass(frozen=True)
class MouseEvent:
    """Decoded mouse token; ``col``/``row`` are 1-based terminal cells."""

    kind: str
    col: int
    row: int


def parse_mouse_token(key: str) -> MouseEvent | None:
    """Split ``MOUSE_<KIND>:<col>:<row>`` tokens produced by ``KeyReader``."""
    if not key.startswith("MOUSE_"):
        return None
    parts = key.split(":")
    if len(parts) != 3:
        return None
    try:
        col = int(parts[1])
        row = int(parts[2])
    except ValueError:
        return None
    return MouseEvent(kind=parts[0][len("MOUSE_"):], col=col, row=row)


class KeyReader:
    """Decodes keys from a raw-mode file descriptor."""

    def __init__(self, fd: int) -> None:
        self.fd = fd
        self._pending: deque[bytes] = deque()

    def _read_ready_byte(self, timeout_ms: int) -> bytes | None:
        if self._pending:
            return self._pending.popleft()
        ready, _, _ = select.select([self.fd], [], [], max(0.0, timeout_ms / 1000.0))
        if not ready:
            return None
        ch = os.read(self.fd, 1)
        return ch or None

    def _read_utf8_tail(self, first: bytes) -> str:
        lead = first[0]
        if lead >= 0xF0:
            extra = 3
        elif lead >= 0xE0:
            extra = 2
        elif lead >= 0xC0:
            extra = 1
        else:
            extra = 0
        data = first
        for _ in range(extra):
            nxt = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if nxt is None:
                break
            data += nxt
        return data.decode("utf-8", errors="replace")

    def read_key(self, timeout_ms: int | None = None) -> str:
        """Return the next key token, or ``""`` on timeout/EOF."""
        if self._pending:
            ch = self._pending.popleft()
        else:
            if timeout_ms is not None:
                ready, _, _ = select.select([self.fd], [], [], max(0.0, timeout_ms / 1000.0))
                if not ready:
                    return ""
            ch = os.read(self.fd, 1)
            if not ch:
                return ""

        control = _CONTROL_KEYS.get(ch)
        if control is not None:
            return control
        if ch != b"\x1b":
            return self._read_utf8_tail(ch)

        seq = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            return "ESC"
        if seq not in {b"[", b"O"}:
            self._pending.append(seq)
            return "ESC"
        return self._read_csi()

    def _read_csi(self) -> str:
        seq = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            return "ESC"
        key = _CSI_FINAL_KEYS.get(seq)
        if key is not None:
            return key
        if seq == b"<":
            return self._read_sgr_mouse()
        if seq.isdigit():
            digits = seq.decode("ascii")
            while True:
                part = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
                if part is None:
                    return "ESC"
                if part == b"~":
                    return _CSI_TILDE_KEYS.get(digits, "ESC")
                if not part.isdigit() and part != b";":
                    # Modified arrows (ESC [ 1 ; 2 A) decode to the plain arrow.
                    return _CSI_FINAL_KEYS.get(part, "ESC")
                digits += part.decode("ascii")
                if len(digits) > 8:
                    return "ESC"
        return "ESC"

    def _read_sgr_mouse(self) -> str:
        # ESC [ < btn ; col ; row (M press / m release)
        payload: list[bytes] = []
        while True:
            part = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if part is None:
                return "ESC"
            if part in {b"M", b"m"}:
                break
            payload.append(part)
            if len(payload) > _MAX_MOUSE_PAYLOAD:
                return "ESC"
        try:
            btn_s, col_s, row_s = b"".join(payload).decode("ascii").split(";")
            btn = int(btn_s)
            col = int(col_s)
            row = int(row_s)
        except ValueError:
            return "ESC"
        button = btn & 0b11
        if btn & 0b0100_0000:
            if button == 0:
                return f"MOUSE_WHEEL_UP:{col}:{row}"
            if button == 1:
                return f"MOUSE_WHEEL_DOWN:{col}:{row}"
            return "MOUSE"
        if btn & 0b0010_0000:
            # Motion while dragging.
            return "MOUSE"
        if button == 0:
            suffix = "DOWN" if part == b"M" else "UP"
            return f"MOUSE_LEFT_{suffix}:{col}:{row}"
        return "MOUSE"


__all__ = ["KeyReader", "MouseEvent", "parse_mouse_token"]
