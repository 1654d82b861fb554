"""Diff panel: optional commit-details header above hunk-navigable diff text."""

from __future__ import annotations

import hashlib

from ..jj.parse import find_hunks, split_lines
from ..jj.types import DetailsHeader, Hunk
from . import viewport
from .viewport import DiffGeometry, ViewportState


def format_details(details: DetailsHeader) -> list[str]:
    """Render commit metadata as plain header rows, ending with a blank row."""
    rows: list[str] = []
    if details.change_id:
        rows.append(f"Change ID: {details.change_id}")
    if details.commit_id:
        rows.append(f"Commit ID: {details.commit_id}")
    if details.author:
        rows.append(f"Author:    {details.author}")
    if details.date:
        rows.append(f"Date:      {details.date}")
    if details.description:
        rows.append("")
        rows.extend(f"    {line}" for line in details.description.splitlines())
    if rows:
        rows.append("")
    return rows


def _content_digest(header: list[str], blob: str) -> str:
    digest = hashlib.blake2b(digest_size=16)
    for row in header:
        digest.update(row.encode("utf-8", errors="surrogateescape"))
        digest.update(b"\n")
    digest.update(b"\0")
    digest.update(blob.encode("utf-8", errors="surrogateescape"))
    return digest.hexdigest()


class DiffPanel:
    """Holds the displayed diff and its ``ViewportState``."""

    def __init__(self) -> None:
        self.title = "Diff"
        self.subject = ""
        self.header: list[str] = []
        self.body: list[str] = []
        self.hunks: tuple[Hunk, ...] = ()
        self.state = ViewportState()
        self.height = 1
        self.content_hash: str | None = None

    @property
    def lines(self) -> list[str]:
        return self.header + self.body

    @property
    def header_lines(self) -> int:
        return len(self.header)

    @property
    def geometry(self) -> DiffGeometry:
        return DiffGeometry(
            hunks=self.hunks,
            header_lines=len(self.header),
            total_lines=len(self.header) + len(self.body),
            height=self.height,
        )

    def set_content(
        self,
        blob: str,
        *,
        subject: str = "",
        title: str = "Diff",
        details: DetailsHeader | None = None,
    ) -> bool:
        """Show ``blob``; return ``False`` when nothing visible changed.

        A new ``subject`` starts at the top. Refreshing the same subject keeps
        the scroll position (clamped) and resynchronizes the current hunk.
        """
        header = format_details(details) if details is not None else []
        digest = _content_digest(header, blob)
        same_subject = subject == self.subject
        self.title = title
        if digest == self.content_hash and same_subject:
            return False

        self.content_hash = digest
        self.subject = subject
        self.header = header
        self.body = split_lines(blob)
        self.hunks = tuple(find_hunks(blob))
        if same_subject:
            self.state = viewport.refit(self.state, self.geometry)
        else:
            self.state = ViewportState()
        return True

    def clear(self) -> None:
        self.set_content("", subject="")

    def set_height(self, height: int) -> None:
        self.height = max(1, height)

    def next_hunk(self) -> None:
        self.state = viewport.next_hunk(self.state, self.geometry)

    def prev_hunk(self) -> None:
        self.state = viewport.prev_hunk(self.state, self.geometry)

    def goto_top(self) -> None:
        self.state = viewport.goto_top(self.state, self.geometry)

    def goto_bottom(self) -> None:
        self.state = viewport.goto_bottom(self.state, self.geometry)

    def scroll(self, delta: int) -> None:
        self.state = viewport.scroll_by(self.state, delta, self.geometry)

    def wheel(self, ticks: int) -> None:
        self.state = viewport.wheel(self.state, ticks, self.geometry)

    def status_label(self) -> str:
        label = self.title
        if self.hunks:
            position = "-" if self.state.current_hunk is None else str(self.state.current_hunk + 1)
            label += f" ({position}/{len(self.hunks)})"
        return label

    def visible_lines(self) -> list[str]:
        lines = self.lines
        start = self.state.scroll_offset
        return lines[start:start + self.height]


__all__ = ["DiffPanel", "format_details"]
