from __future__ import annotations

import random
import unittest

from lazyjj.ansi import clip_ansi_line, display_width, has_ansi, pad_ansi_line, strip_ansi

_ALPHABET = ["a", "b", " ", "@", "○", "│", "\x1b", "[", "]", "3", "1", ";", "m", "\x07", "\\", "K", "世"]


def _random_text(rng: random.Random, length: int) -> str:
    return "".join(rng.choice(_ALPHABET) for _ in range(length))


class StripAnsiTests(unittest.TestCase):
    def test_plain_text_is_returned_unchanged(self) -> None:
        text = "@  xsssnyux user@example.com 2024-01-01"
        self.assertIs(strip_ansi(text), text)

    def test_removes_sgr_sequences(self) -> None:
        line = "\x1b[1m\x1b[38;5;2m@\x1b[0m  \x1b[1m\x1b[38;5;5mxsssnyux\x1b[0m rest"
        self.assertEqual(strip_ansi(line), "@  xsssnyux rest")

    def test_removes_osc_hyperlinks(self) -> None:
        line = "\x1b]8;;https://example.com\x07link\x1b]8;;\x1b\\ tail"
        self.assertEqual(strip_ansi(line), "link tail")

    def test_removes_trailing_unterminated_csi(self) -> None:
        self.assertEqual(strip_ansi("abc\x1b[38;5"), "abc")
        self.assertEqual(strip_ansi("abc\x1b"), "abc")

    def test_removes_two_byte_escapes(self) -> None:
        self.assertEqual(strip_ansi("a\x1bMb"), "ab")

    def test_idempotent_and_never_grows(self) -> None:
        rng = random.Random(1234)
        for _ in range(2000):
            text = _random_text(rng, rng.randint(0, 40))
            once = strip_ansi(text)
            self.assertLessEqual(len(once), len(text))
            self.assertEqual(strip_ansi(once), once)
            self.assertNotIn("\x1b", once)


class ClipAnsiTests(unittest.TestCase):
    def test_clip_preserves_escapes_and_counts_visible_columns(self) -> None:
        line = "\x1b[31mhello\x1b[0m world"
        clipped = clip_ansi_line(line, 3)
        self.assertEqual(strip_ansi(clipped), "hel")
        self.assertTrue(has_ansi(clipped))

    def test_wide_characters_take_two_columns(self) -> None:
        self.assertEqual(display_width("世界"), 4)
        self.assertEqual(clip_ansi_line("世界", 3), "世")

    def test_tabs_expand_to_next_stop(self) -> None:
        self.assertEqual(clip_ansi_line("a\tb", 20), "a       b")

    def test_pad_fills_to_width_and_resets_colour(self) -> None:
        padded = pad_ansi_line("\x1b[32mok\x1b[0m", 6)
        self.assertEqual(display_width(padded), 6)
        self.assertIn("\x1b[0m    ", padded)
        self.assertEqual(pad_ansi_line("", 3), "   ")


if __name__ == "__main__":
    unittest.main()
