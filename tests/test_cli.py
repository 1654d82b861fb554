"""CLI behavior tests: argument parsing, ``--render`` output and startup checks."""

from __future__ import annotations

import io
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from lazyjj import cli
from lazyjj.jj.runner import JJCommandError

LOG = (
    "@  \x1b[1m\x1b[38;5;13mq\x1b[38;5;8mpvuntsm\x1b[39m user@example.com 2024-05-01 10:00:00 my-branch 7d3f0e21\x1b[0m\n"
    "│  working on it\n"
    "○  rlvkpnrz user@example.com 2024-04-30 12:00:00 1a2b3c4d\n"
    "│  fix parser\n"
    "◆  zzzzzzzz root() 00000000\n"
)
OP_LOG = (
    "@  d3b6a0b0c7e1 user@host 2 minutes ago, lasted 10ms\n"
    "│  snapshot working copy\n"
    "│  args: jj log\n"
)
DIFF = (
    "Modified regular file src/app.py:\n"
    "   1    1: import os\n"
    "Added regular file README.md:\n"
    "        1: # Title\n"
)


class FakeRunner:
    def __init__(self) -> None:
        self.revs: list[str] = []

    def log(self) -> str:
        return LOG

    def op_log(self) -> str:
        return OP_LOG

    def diff(self, rev: str) -> str:
        self.revs.append(rev)
        return DIFF


class RenderLinesTests(unittest.TestCase):
    def test_log_summary_lists_changes_with_flags(self) -> None:
        lines = cli.render_lines("log", FakeRunner())
        self.assertEqual(
            lines,
            [
                "   0 qpvuntsm     @  working on it",
                "   2 rlvkpnrz        fix parser",
                "   4 zzzzzzzz     ◆  ",
            ],
        )

    def test_oplog_summary_includes_args(self) -> None:
        lines = cli.render_lines("oplog", FakeRunner())
        self.assertEqual(lines, ["   0 d3b6a0b0c7e1 2 minutes ago, lasted 10ms: snapshot working copy [jj log]"])

    def test_diff_summary_lists_files_then_sections(self) -> None:
        runner = FakeRunner()
        lines = cli.render_lines("diff", runner, "kkkkkkkk")
        self.assertEqual(runner.revs, ["kkkkkkkk"])
        self.assertEqual(
            lines,
            [
                "M src/app.py",
                "A README.md",
                "   0-1    Modified regular file src/app.py:",
                "   2-3    Added regular file README.md:",
            ],
        )

    def test_unknown_kind_raises(self) -> None:
        with self.assertRaises(ValueError):
            cli.render_lines("bogus", FakeRunner())


class ParserTests(unittest.TestCase):
    def test_defaults(self) -> None:
        args = cli.build_parser().parse_args([])
        self.assertIsNone(args.path)
        self.assertIsNone(args.log_level)
        self.assertFalse(args.no_watch)
        self.assertEqual(args.rev, "@")

    def test_rejects_unknown_render_kind_and_bad_width(self) -> None:
        parser = cli.build_parser()
        with mock.patch("sys.stderr", new=io.StringIO()):
            with self.assertRaises(SystemExit):
                parser.parse_args(["--render", "status"])
            with self.assertRaises(SystemExit):
                parser.parse_args(["--max-cols", "0"])


class MainTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name).resolve()
        patcher = mock.patch("lazyjj.cli.configure_logging", return_value=None)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_missing_path_exits(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main([str(self.root / "missing")])
        self.assertIn("Path not found", str(ctx.exception.code))

    def test_requires_jj_on_path(self) -> None:
        with mock.patch("lazyjj.cli.jj_available", return_value=False):
            with self.assertRaises(SystemExit) as ctx:
                cli.main([str(self.root)])
        self.assertEqual(ctx.exception.code, "jj executable not found on PATH")

    def test_requires_repository(self) -> None:
        with mock.patch("lazyjj.cli.jj_available", return_value=True), \
                mock.patch("lazyjj.cli.find_repo_root", return_value=None):
            with self.assertRaises(SystemExit) as ctx:
                cli.main([str(self.root)])
        self.assertIn("Not a jj repository", str(ctx.exception.code))

    def test_render_prints_clipped_lines(self) -> None:
        out = io.StringIO()
        with mock.patch("lazyjj.cli.jj_available", return_value=True), \
                mock.patch("lazyjj.cli.find_repo_root", return_value=self.root), \
                mock.patch("lazyjj.cli.CommandRunner", return_value=FakeRunner()), \
                redirect_stdout(out):
            cli.main([str(self.root), "--render", "diff", "--max-cols", "8"])
        self.assertEqual(out.getvalue().splitlines()[:2], ["M src/ap", "A README"])

    def test_render_failure_exits_with_jj_message(self) -> None:
        runner = mock.Mock()
        runner.log.side_effect = JJCommandError("log", "broken repo", 1)
        with mock.patch("lazyjj.cli.jj_available", return_value=True), \
                mock.patch("lazyjj.cli.find_repo_root", return_value=self.root), \
                mock.patch("lazyjj.cli.CommandRunner", return_value=runner):
            with self.assertRaises(SystemExit) as ctx:
                cli.main([str(self.root), "--render", "log"])
        self.assertEqual(str(ctx.exception.code), "jj log: broken repo")

    def test_interactive_mode_starts_tui(self) -> None:
        with mock.patch("lazyjj.cli.jj_available", return_value=True), \
                mock.patch("lazyjj.cli.find_repo_root", return_value=self.root), \
                mock.patch("lazyjj.cli.load_settings") as load_settings, \
                mock.patch("lazyjj.cli.run_tui") as run_tui:
            cli.main([str(self.root), "--no-watch", "--theme", "ocean"])

        run_tui.assert_called_once_with(
            self.root,
            settings=load_settings.return_value,
            style="monokai",
            theme_name="ocean",
            watch=False,
            no_color=False,
        )


if __name__ == "__main__":
    unittest.main()
