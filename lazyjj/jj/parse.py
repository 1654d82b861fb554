"""Turn jj's decorated text dumps into entities, hunks, files and details.

Everything here is a pure function of the text blob: no component state is
consulted, so each refresh simply re-runs the parsers from scratch.
"""

from __future__ import annotations

import re

from ..ansi import strip_ansi
from .grammar import CHANGE_LOG, EVOLUTION_LOG, OPERATION_LOG, LineGrammar, strip_connector_prefix
from .types import (
    Assembly,
    Change,
    DetailsHeader,
    Entity,
    EntryKind,
    EntryMatch,
    File,
    FileStatus,
    Hunk,
    Operation,
)

ARGS_PREFIX = "args:"

_COMMIT_ID_RE = re.compile(r"^[0-9a-f]{8,}$")
_TIMESTAMP_TOKEN_RE = re.compile(r"^(?:\d{4}-\d{2}-\d{2}|\d{2}:\d{2}(?::\d{2})?|[+-]\d{2}:?\d{2})$")

_UNIFIED_HUNK_RE = re.compile(r"^@@.*@@")
_JJ_FILE_HEADER_RE = re.compile(r"^(?P<status>Added|Modified|Removed) regular file (?P<path>.+):$")
_GIT_DIFF_RE = re.compile(r"^diff --git a/(?P<old>.+) b/(?P<new>.+)$")
_GIT_NEW_FILE_RE = re.compile(r"^new file mode")
_GIT_DELETED_FILE_RE = re.compile(r"^deleted file mode")
_GIT_STATUS_LOOKAHEAD = 4

_JJ_STATUS = {
    "Added": FileStatus.ADDED,
    "Modified": FileStatus.MODIFIED,
    "Removed": FileStatus.DELETED,
}

_CHANGE_ID_RE = re.compile(r"(?i)change\s*id[:\s]+([a-z0-9]+)")
_COMMIT_ID_LINE_RE = re.compile(r"(?i)commit\s*id[:\s]+([a-f0-9]+)")
_AUTHOR_RE = re.compile(r"(?i)^author[:\s]+(.+)")
_DATE_RE = re.compile(r"(?i)^(?:date|timestamp)[:\s]+(.+)")
_PAREN_DATE_RE = re.compile(r"\((\d{4}-\d{2}-\d{2}[^)]*)\)\s*$")
_DESCRIPTION_INDENT = "    "


def split_lines(blob: str) -> list[str]:
    """Split ``blob`` into display lines.

    A single trailing newline terminates the last line rather than opening
    an empty one, so line indices agree between parsers and panels.
    """
    if not blob:
        return []
    lines = blob.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def _parse_change_header(header: str) -> tuple[str, str, str, tuple[str, ...]]:
    """Best-effort split of a log header into author, timestamp, commit, bookmarks."""
    tokens = header.split()
    commit_id = ""
    if tokens and _COMMIT_ID_RE.match(tokens[-1]):
        commit_id = tokens.pop()

    author = ""
    timestamp_parts: list[str] = []
    bookmarks: list[str] = []
    for token in tokens:
        if not author and not timestamp_parts and "@" in token:
            author = token
            continue
        if _TIMESTAMP_TOKEN_RE.match(token):
            timestamp_parts.append(token)
            continue
        if token.endswith("()"):
            continue
        bookmarks.append(token)
    return author, " ".join(timestamp_parts), commit_id, tuple(bookmarks)


class _EntityBuilder:
    """Accumulates one entity while the assembler walks its lines."""

    def __init__(self, match: EntryMatch, line: str) -> None:
        self.match = match
        self.raw_lines = [line]
        self.description_parts: list[str] = []
        self.args = ""

    def add_continuation(self, line: str, stripped: str) -> None:
        self.raw_lines.append(line)
        text = strip_connector_prefix(stripped)
        if not text:
            return
        if self.match.kind is EntryKind.OPERATION and text.startswith(ARGS_PREFIX):
            self.args = text[len(ARGS_PREFIX):].strip()
            return
        self.description_parts.append(text)

    def build(self) -> Entity:
        description = " ".join(" ".join(self.description_parts).split())
        raw = "\n".join(self.raw_lines)
        match = self.match
        if match.kind is EntryKind.OPERATION:
            user, _, time = match.header.partition(" ")
            return Operation(
                id=match.id,
                description=description,
                args=self.args,
                raw=raw,
                marker=match.marker,
                user=user,
                time=time.strip(),
            )
        author, timestamp, commit_id, bookmarks = _parse_change_header(match.header)
        return Change(
            id=match.id,
            description=description,
            raw=raw,
            marker=match.marker,
            version=match.version,
            author=author,
            timestamp=timestamp,
            commit_id=commit_id,
            bookmarks=bookmarks,
        )


def assemble(blob: str, grammar: LineGrammar) -> Assembly:
    """Segment ``blob`` into entities using ``grammar`` in one linear pass.

    Every entry-start line opens a new entity; non-blank lines after it are
    continuation text. Text before the first entry start cannot belong to any
    entity and is dropped.
    """
    lines = split_lines(blob)
    entities: list[Entity] = []
    start_lines: list[int] = []
    builder: _EntityBuilder | None = None

    for line_no, line in enumerate(lines):
        stripped = strip_ansi(line)
        match = grammar.match_stripped(stripped)
        if match.is_entry_start:
            if builder is not None:
                entities.append(builder.build())
            builder = _EntityBuilder(match, line)
            start_lines.append(line_no)
            continue
        if builder is None or not stripped.strip():
            continue
        builder.add_continuation(line, stripped)

    if builder is not None:
        entities.append(builder.build())

    return Assembly(
        entities=tuple(entities),
        start_lines=tuple(start_lines),
        total_lines=len(lines),
        raw=blob,
    )


def parse_changes(blob: str) -> Assembly:
    return assemble(blob, CHANGE_LOG)


def parse_operations(blob: str) -> Assembly:
    return assemble(blob, OPERATION_LOG)


def parse_evolog(blob: str) -> Assembly:
    return assemble(blob, EVOLUTION_LOG)


def is_section_header(stripped: str) -> bool:
    return bool(_UNIFIED_HUNK_RE.match(stripped) or _JJ_FILE_HEADER_RE.match(stripped))


def find_hunks(blob: str) -> list[Hunk]:
    """Return non-overlapping hunk/file-section ranges of a diff blob.

    Both unified ``@@ ... @@`` markers and jj's ``<Status> regular file
    <path>:`` headers open a section; each header closes the previous one on
    the line above it, and the last section runs to the last display line.

    Line indices follow ``split_lines``: a single trailing newline ends the
    last line instead of adding an empty one, so ``"a\\nb\\n"`` ends at line 1.
    """
    lines = split_lines(blob)
    hunks: list[Hunk] = []
    header: str | None = None
    start = 0

    for line_no, line in enumerate(lines):
        stripped = strip_ansi(line)
        if not is_section_header(stripped):
            continue
        if header is not None:
            hunks.append(Hunk(header=header, start_line=start, end_line=line_no - 1))
        header = stripped
        start = line_no

    if header is not None:
        hunks.append(Hunk(header=header, start_line=start, end_line=len(lines) - 1))
    return hunks


def parse_files(blob: str) -> list[File]:
    """Extract the changed-file list from ``jj diff`` output.

    jj's native headers are tried first; git-style ``diff --git`` sections are
    supported for repos configured with the git diff format.
    """
    lines = [strip_ansi(line) for line in split_lines(blob)]
    files: list[File] = []

    for line_no, stripped in enumerate(lines):
        match = _JJ_FILE_HEADER_RE.match(stripped)
        if match:
            files.append(File(path=match.group("path"), status=_JJ_STATUS[match.group("status")]))
            continue

        match = _GIT_DIFF_RE.match(stripped)
        if not match:
            continue
        status = FileStatus.MODIFIED
        lookahead_end = min(len(lines), line_no + 1 + _GIT_STATUS_LOOKAHEAD)
        for next_line in lines[line_no + 1:lookahead_end]:
            if _GIT_NEW_FILE_RE.match(next_line):
                status = FileStatus.ADDED
                break
            if _GIT_DELETED_FILE_RE.match(next_line):
                status = FileStatus.DELETED
                break
            if next_line.startswith("diff --git"):
                break
        files.append(File(path=match.group("new"), status=status))

    return files


def parse_details(show_blob: str) -> DetailsHeader:
    """Extract commit metadata and description from ``jj show`` output.

    jj prints ``Key: value`` metadata lines, then the description indented by
    four spaces, then the diff. An explicit ``Description:`` line is honoured
    as well.
    """
    change_id = ""
    commit_id = ""
    author = ""
    date = ""
    description_lines: list[str] = []
    in_description = False

    for line in split_lines(show_blob):
        stripped = strip_ansi(line)

        if in_description:
            if stripped.startswith("diff ") or is_section_header(stripped):
                break
            if stripped.strip() and not stripped.startswith(_DESCRIPTION_INDENT) and description_lines:
                break
            if stripped.strip():
                description_lines.append(stripped.strip())
            continue

        if stripped.lower().startswith("description:"):
            in_description = True
            rest = stripped[len("description:"):].strip()
            if rest:
                description_lines.append(rest)
            continue

        match = _CHANGE_ID_RE.search(stripped)
        if match and not change_id:
            change_id = match.group(1)
            continue
        match = _COMMIT_ID_LINE_RE.search(stripped)
        if match and not commit_id:
            commit_id = match.group(1)
            continue
        match = _AUTHOR_RE.match(stripped)
        if match and not author:
            author = match.group(1).strip()
            paren_date = _PAREN_DATE_RE.search(author)
            if paren_date:
                date = date or paren_date.group(1).strip()
                author = author[: paren_date.start()].strip()
            continue
        match = _DATE_RE.match(stripped)
        if match:
            date = match.group(1).strip()
            continue

        if change_id and stripped.startswith(_DESCRIPTION_INDENT) and stripped.strip():
            in_description = True
            description_lines.append(stripped.strip())

    return DetailsHeader(
        change_id=change_id,
        commit_id=commit_id,
        author=author,
        date=date,
        description="\n".join(description_lines),
    )


__all__ = [
    "ARGS_PREFIX",
    "assemble",
    "find_hunks",
    "is_section_header",
    "parse_changes",
    "parse_details",
    "parse_evolog",
    "parse_files",
    "parse_operations",
    "split_lines",
]
