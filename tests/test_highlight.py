"""Tests for Pygments diff colouring of plain jj output."""

import unittest

from lazyjj.ansi import has_ansi, strip_ansi
from lazyjj.highlight import DEFAULT_STYLE, colorize_diff, normalize_style

PLAIN_DIFF = (
    "diff --git a/src/app.py b/src/app.py\n"
    "--- a/src/app.py\n"
    "+++ b/src/app.py\n"
    "@@ -1,2 +1,2 @@\n"
    "-import os\n"
    "+import sys\n"
)


class ColorizeDiffTests(unittest.TestCase):
    def test_plain_diff_gains_colour_but_keeps_text(self) -> None:
        rendered = colorize_diff(PLAIN_DIFF)
        self.assertTrue(has_ansi(rendered))
        self.assertEqual(strip_ansi(rendered), PLAIN_DIFF)

    def test_already_coloured_text_is_untouched(self) -> None:
        coloured = "\x1b[1mModified regular file a.txt:\x1b[0m\n"
        self.assertIs(colorize_diff(coloured), coloured)

    def test_missing_trailing_newline_is_not_added(self) -> None:
        rendered = colorize_diff("+added line")
        self.assertEqual(strip_ansi(rendered), "+added line")

    def test_empty_text(self) -> None:
        self.assertEqual(colorize_diff(""), "")


class StyleNameTests(unittest.TestCase):
    def test_unknown_style_falls_back_to_default(self) -> None:
        self.assertEqual(normalize_style("no-such-style"), DEFAULT_STYLE)

    def test_known_style_is_kept(self) -> None:
        self.assertEqual(normalize_style("friendly"), "friendly")


if __name__ == "__main__":
    unittest.main()
