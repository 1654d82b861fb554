"""Path filtering consulted by the change watcher.

Commonly noisy directories are rejected by name; when the repository is
colocated with git, a snapshot of git's ignored paths is used as well.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

IGNORED_DIR_NAMES = frozenset(
    {
        # Version control
        ".git",
        ".jj",
        ".svn",
        ".hg",
        ".bzr",
        # IDE / editor
        ".vscode",
        ".idea",
        # Dependencies & caches
        "node_modules",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".cache",
        # OS generated
        ".Trash",
        ".Spotlight-V100",
        ".fseventsd",
    }
)


def _is_within(path: Path, root: Path) -> bool:
    """Return whether ``path`` is at or under ``root``."""
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


@dataclass(frozen=True)
class GitIgnoreSnapshot:
    """Resolved git-ignored paths below ``root`` at load time."""

    root: Path
    ignored_files: frozenset[Path]
    ignored_dirs: frozenset[Path]

    def is_ignored(self, path: Path) -> bool:
        if not _is_within(path, self.root):
            return False
        if path in self.ignored_files:
            return True
        current = path
        while True:
            if current in self.ignored_dirs:
                return True
            if current == self.root:
                return False
            parent = current.parent
            if parent == current:
                return False
            current = parent


def load_git_ignore_snapshot(root: Path) -> GitIgnoreSnapshot | None:
    """Query git for ignored files/directories under ``root``.

    Returns ``None`` when git is unavailable, ``root`` is not inside a git
    work tree (pure jj repos), or probing fails.
    """
    if shutil.which("git") is None:
        return None

    root = root.resolve()
    try:
        top_proc = subprocess.run(
            ["git", "-C", str(root), "rev-parse", "--show-toplevel"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None

    top_level = top_proc.stdout.strip()
    if not top_level:
        return None
    repo_root = Path(top_level).resolve()
    if not _is_within(root, repo_root):
        return None

    try:
        proc = subprocess.run(
            ["git", "-C", str(repo_root), "ls-files", "-z", "--others", "-i", "--exclude-standard", "--directory"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None

    ignored_files: set[Path] = set()
    ignored_dirs: set[Path] = set()
    for raw in proc.stdout.split(b"\x00"):
        if not raw:
            continue
        rel = raw.decode("utf-8", errors="replace")
        is_dir = rel.endswith("/")
        rel = rel.rstrip("/")
        if not rel:
            continue
        abs_path = (repo_root / rel).resolve()
        if not _is_within(abs_path, root):
            continue
        if is_dir or abs_path.is_dir():
            ignored_dirs.add(abs_path)
        else:
            ignored_files.add(abs_path)

    return GitIgnoreSnapshot(
        root=root,
        ignored_files=frozenset(ignored_files),
        ignored_dirs=frozenset(ignored_dirs),
    )


class IgnoreMatcher:
    """``should_ignore(path, is_dir)`` predicate rooted at a repository."""

    def __init__(self, root: Path, snapshot: GitIgnoreSnapshot | None = None) -> None:
        self.root = root.resolve()
        self.snapshot = snapshot

    @classmethod
    def for_repo(cls, root: Path) -> IgnoreMatcher:
        return cls(root, load_git_ignore_snapshot(root))

    def __call__(self, path: Path, is_dir: bool) -> bool:
        return self.should_ignore(path, is_dir)

    def should_ignore(self, path: Path, is_dir: bool) -> bool:
        if is_dir and path.name in IGNORED_DIR_NAMES:
            return True
        if path == self.root:
            return False
        if self.snapshot is None:
            return False
        return self.snapshot.is_ignored(path)


__all__ = [
    "GitIgnoreSnapshot",
    "IGNORED_DIR_NAMES",
    "IgnoreMatcher",
    "load_git_ignore_snapshot",
]
