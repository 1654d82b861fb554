"""Thin subprocess wrapper around the ``jj`` CLI.

All display-oriented commands request colour explicitly because the raw text
is shown as-is; parsers strip it again before looking at the content.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

JJ_COMMAND_TIMEOUT_SECONDS = 30.0
COLOR_ALWAYS = "--color=always"

# Formats evolog rows like op-log rows so their ids can be fed to ``op show``.
EVOLOG_TEMPLATE = (
    'self.operation().id().short(12) ++ " " ++ self.operation().user() ++ " " '
    '++ self.operation().time().start().ago() ++ ", lasted " '
    '++ self.operation().time().duration() ++ "\\n" ++ self.operation().description()'
)


class JJCommandError(RuntimeError):
    """A jj invocation failed or could not be started."""

    def __init__(self, command: str, stderr: str = "", returncode: int | None = None) -> None:
        self.command = command
        self.stderr = stderr
        self.returncode = returncode
        detail = stderr.strip() or (f"exit status {returncode}" if returncode is not None else "failed")
        super().__init__(f"jj {command}: {detail}")


def jj_available() -> bool:
    return shutil.which("jj") is not None


def find_repo_root(start: Path) -> Path | None:
    """Return the nearest directory at or above ``start`` holding ``.jj``."""
    current = start.resolve()
    while True:
        if (current / ".jj").is_dir():
            return current
        parent = current.parent
        if parent == current:
            return None
        current = parent


class CommandRunner:
    """Runs jj subcommands inside one repository."""

    def __init__(
        self,
        work_dir: Path,
        *,
        executable: str = "jj",
        timeout_seconds: float = JJ_COMMAND_TIMEOUT_SECONDS,
    ) -> None:
        self.work_dir = work_dir
        self.executable = executable
        self.timeout_seconds = timeout_seconds

    def run(self, *args: str) -> str:
        """Execute ``jj *args`` and return stdout.

        Raises ``JJCommandError`` with jj's stderr when the command exits
        non-zero, times out, or cannot be launched.
        """
        command = " ".join(args)
        logger.debug("executing jj command: %s", command)
        try:
            proc = subprocess.run(
                [self.executable, *args],
                cwd=self.work_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("jj command timed out: %s", command)
            raise JJCommandError(command, f"timed out after {self.timeout_seconds:g}s") from exc
        except OSError as exc:
            logger.error("jj command could not start: %s: %s", command, exc)
            raise JJCommandError(command, str(exc)) from exc

        if proc.returncode != 0:
            logger.error("jj command failed: %s (exit %s)", command, proc.returncode)
            raise JJCommandError(command, proc.stderr, proc.returncode)

        logger.debug("jj command completed: %s (%d bytes)", command, len(proc.stdout))
        return proc.stdout

    def log(self) -> str:
        return self.run("log", COLOR_ALWAYS)

    def show(self, rev: str) -> str:
        return self.run("show", "-r", rev, COLOR_ALWAYS)

    def diff(self, rev: str) -> str:
        return self.run("diff", "-r", rev, COLOR_ALWAYS)

    def diff_file(self, rev: str, path: str) -> str:
        return self.run("diff", "-r", rev, COLOR_ALWAYS, path)

    def op_log(self) -> str:
        return self.run("op", "log", COLOR_ALWAYS)

    def evolog(self, rev: str) -> str:
        return self.run("evolog", "-r", rev, COLOR_ALWAYS, "-T", EVOLOG_TEMPLATE)

    def op_show(self, op_id: str) -> str:
        return self.run("op", "show", op_id, COLOR_ALWAYS, "--patch")

    def edit(self, rev: str) -> None:
        self.run("edit", rev)

    def describe(self, rev: str, message: str) -> None:
        self.run("describe", "-r", rev, "-m", message)

    def new(self) -> None:
        self.run("new")

    def abandon(self, rev: str) -> None:
        self.run("abandon", rev)


__all__ = [
    "CommandRunner",
    "EVOLOG_TEMPLATE",
    "JJCommandError",
    "find_repo_root",
    "jj_available",
]
