"""Command-line front door for lazyjj.

Parses options, sets up session logging, locates the jj repository and then
either prints a parsed view (``--render``) or starts the interactive UI.
"""

from __future__ import annotations

import argparse
import shutil
import sys
from collections.abc import Sequence
from pathlib import Path

from .ansi import clip_ansi_line
from .config import load_settings
from .highlight import DEFAULT_STYLE
from .jj.parse import find_hunks, parse_changes, parse_files, parse_operations
from .jj.runner import CommandRunner, JJCommandError, find_repo_root, jj_available
from .logger import InvalidLogLevelError, LOG_LEVELS, configure_logging
from .runtime import run_tui
from .ui_theme import available_theme_names

RENDER_KINDS = ("log", "oplog", "diff")


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _default_render_width() -> int:
    term = shutil.get_terminal_size((80, 24))
    return max(1, term.columns)


def render_lines(kind: str, runner: CommandRunner, rev: str = "@") -> list[str]:
    """Return the parsed summary ``--render`` prints for ``kind``."""
    if kind == "log":
        assembly = parse_changes(runner.log())
        lines = []
        for change, start in zip(assembly.entities, assembly.start_lines):
            flags = "".join(
                flag
                for flag, present in (
                    ("@", change.is_working_copy),
                    ("◆", change.is_immutable),
                    ("×", change.is_conflicted),
                )
                if present
            )
            lines.append(f"{start:>4} {change.id:<12} {flags:<2} {change.description}")
        return lines

    if kind == "oplog":
        assembly = parse_operations(runner.op_log())
        lines = []
        for op, start in zip(assembly.entities, assembly.start_lines):
            line = f"{start:>4} {op.id} {op.time}: {op.description}"
            if op.args:
                line += f" [{op.args}]"
            lines.append(line)
        return lines

    if kind == "diff":
        blob = runner.diff(rev)
        lines = [f"{file.status.value} {file.path}" for file in parse_files(blob)]
        lines.extend(f"{hunk.start_line:>4}-{hunk.end_line:<4} {hunk.header}" for hunk in find_hunks(blob))
        return lines

    raise ValueError(f"unknown render kind: {kind!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazyjj",
        description="Terminal UI for the jj version control system.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Repository path. Defaults to current directory.")
    parser.add_argument(
        "-l",
        "--log-level",
        default=None,
        help=f"Write a session log at this level ({', '.join(sorted(LOG_LEVELS))}).",
    )
    parser.add_argument("--style", default=DEFAULT_STYLE, help="Pygments style for uncoloured diffs.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable UI chrome colours.")
    parser.add_argument("--no-watch", action="store_true", help="Disable automatic refresh on file changes.")
    parser.add_argument("--render", metavar="KIND", choices=RENDER_KINDS, help="Print parsed log, oplog or diff and exit.")
    parser.add_argument("--rev", default="@", help="Revision used by --render diff (default: @).")
    parser.add_argument(
        "--max-cols",
        type=_positive_int,
        default=None,
        help="Column width for --render output (default: terminal width).",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Parse CLI arguments and launch lazyjj."""
    args = build_parser().parse_args(argv)

    try:
        log_path = configure_logging(args.log_level)
    except InvalidLogLevelError as exc:
        print(f"lazyjj: warning: {exc}; logging disabled", file=sys.stderr)
        log_path = None
    except OSError as exc:
        print(f"lazyjj: warning: cannot open log file: {exc}; logging disabled", file=sys.stderr)
        configure_logging(None)
        log_path = None
    if log_path is not None:
        print(f"lazyjj: logging to {log_path}", file=sys.stderr)

    start = Path(args.path) if args.path else Path.cwd()
    if not start.exists():
        raise SystemExit(f"Path not found: {start}")
    if not jj_available():
        raise SystemExit("jj executable not found on PATH")
    repo_root = find_repo_root(start)
    if repo_root is None:
        raise SystemExit(f"Not a jj repository: {start}")

    if args.render is not None:
        max_cols = args.max_cols if args.max_cols is not None else _default_render_width()
        try:
            lines = render_lines(args.render, CommandRunner(repo_root), args.rev)
        except JJCommandError as exc:
            raise SystemExit(str(exc)) from exc
        for line in lines:
            sys.stdout.write(clip_ansi_line(line, max_cols) + "\n")
        return

    settings = load_settings()
    run_tui(
        repo_root,
        settings=settings,
        style=args.style,
        theme_name=args.theme,
        watch=not args.no_watch,
        no_color=args.no_color,
    )


if __name__ == "__main__":
    main()
