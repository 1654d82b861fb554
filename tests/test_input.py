"""Regression tests for raw-key decoding.

Covers ESC timing, arrow and page sequences, SGR mouse reports and
control-key token mapping.
"""

import os
import time
import unittest

from lazyjj.runtime.input import KeyReader, MouseEvent, parse_mouse_token


class ReadKeyRegressionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.read_fd, self.write_fd = os.pipe()
        self.reader = KeyReader(self.read_fd)

    def tearDown(self) -> None:
        os.close(self.read_fd)
        os.close(self.write_fd)

    def _keys(self, data: bytes, count: int) -> list[str]:
        os.write(self.write_fd, data)
        return [self.reader.read_key(timeout_ms=20) for _ in range(count)]

    def test_single_escape_returns_esc_without_second_keypress(self) -> None:
        os.write(self.write_fd, b"\x1b")
        started = time.monotonic()
        key = self.reader.read_key(timeout_ms=20)
        elapsed = time.monotonic() - started

        self.assertEqual(key, "ESC")
        self.assertLess(elapsed, 0.2)

    def test_escape_does_not_swallow_following_printable_key(self) -> None:
        self.assertEqual(self._keys(b"\x1bj", 2), ["ESC", "j"])

    def test_arrow_and_navigation_sequences(self) -> None:
        keys = self._keys(b"\x1b[A\x1b[B\x1bOH\x1b[4~\x1b[5~\x1b[6~\x1b[Z\x1b[1;2C", 8)
        self.assertEqual(keys, ["UP", "DOWN", "HOME", "END", "PAGE_UP", "PAGE_DOWN", "SHIFT_TAB", "RIGHT"])

    def test_control_keys(self) -> None:
        keys = self._keys(b"\t\r\x03\x04\x15\x0c", 6)
        self.assertEqual(keys, ["TAB", "ENTER", "CTRL_C", "CTRL_D", "CTRL_U", "CTRL_L"])

    def test_multibyte_character_is_one_key(self) -> None:
        self.assertEqual(self._keys("é<".encode("utf-8"), 2), ["é", "<"])

    def test_sgr_mouse_reports(self) -> None:
        keys = self._keys(b"\x1b[<64;10;5M\x1b[<65;3;4M\x1b[<0;7;8M\x1b[<0;7;8m\x1b[<32;7;9M", 5)
        self.assertEqual(
            keys,
            [
                "MOUSE_WHEEL_UP:10:5",
                "MOUSE_WHEEL_DOWN:3:4",
                "MOUSE_LEFT_DOWN:7:8",
                "MOUSE_LEFT_UP:7:8",
                "MOUSE",
            ],
        )

    def test_timeout_returns_empty_token(self) -> None:
        self.assertEqual(self.reader.read_key(timeout_ms=0), "")


class ParseMouseTokenTests(unittest.TestCase):
    def test_parses_kind_and_cell(self) -> None:
        self.assertEqual(parse_mouse_token("MOUSE_WHEEL_DOWN:12:3"), MouseEvent("WHEEL_DOWN", 12, 3))

    def test_rejects_other_tokens(self) -> None:
        self.assertIsNone(parse_mouse_token("MOUSE"))
        self.assertIsNone(parse_mouse_token("j"))
        self.assertIsNone(parse_mouse_token("MOUSE_LEFT_DOWN:x:3"))


if __name__ == "__main__":
    unittest.main()
