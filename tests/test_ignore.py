from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from lazyjj.jj.ignore import GitIgnoreSnapshot, IgnoreMatcher


class IgnoreMatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name).resolve()

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_noisy_directory_names_are_ignored_without_git(self) -> None:
        matcher = IgnoreMatcher(self.root)
        self.assertTrue(matcher(self.root / "node_modules", True))
        self.assertTrue(matcher(self.root / "pkg" / "__pycache__", True))
        self.assertFalse(matcher(self.root / "node_modules", False))
        self.assertFalse(matcher(self.root / "src", True))
        self.assertFalse(matcher(self.root, True))

    def test_snapshot_covers_files_and_everything_below_ignored_dirs(self) -> None:
        snapshot = GitIgnoreSnapshot(
            root=self.root,
            ignored_files=frozenset({self.root / "debug.log"}),
            ignored_dirs=frozenset({self.root / "build"}),
        )
        matcher = IgnoreMatcher(self.root, snapshot)
        self.assertTrue(matcher.should_ignore(self.root / "debug.log", False))
        self.assertTrue(matcher.should_ignore(self.root / "build", True))
        self.assertTrue(matcher.should_ignore(self.root / "build" / "out" / "a.o", False))
        self.assertFalse(matcher.should_ignore(self.root / "src" / "main.py", False))
        self.assertFalse(snapshot.is_ignored(Path("/elsewhere/debug.log")))


if __name__ == "__main__":
    unittest.main()
