"""Scrollable entity lists: change log, op log, evolution log and files.

Each panel keeps jj's decorated text for display and the parsed entities for
selection. Refreshing swaps both wholesale and re-finds the selected entity
by id.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..jj.parse import parse_changes, parse_evolog, parse_files, parse_operations, split_lines
from ..jj.types import Assembly, Change, File, Operation
from .selection import SelectionState
from .viewport import (
    MOUSE_SCROLL_LINES,
    clamp_list_scroll,
    ensure_line_visible,
    line_to_entity_index,
)

Parser = Callable[[str], Assembly]


@dataclass(frozen=True)
class ListRow:
    """One visible row of a list panel."""

    text: str
    line: int
    selected: bool
    entry_start: bool


class EntityListPanel:
    """List panel over entities parsed from one jj text blob."""

    def __init__(self, title: str, parser: Parser | None = None, *, empty_message: str = "(no entries)") -> None:
        self.title = title
        self.parser = parser
        self.empty_message = empty_message
        self.lines: list[str] = []
        self.start_lines: tuple[int, ...] = ()
        self.selection: SelectionState = SelectionState()
        self.scroll_offset = 0
        self.height = 1

    @property
    def entities(self) -> tuple:
        return self.selection.entities

    @property
    def cursor(self) -> int:
        return self.selection.cursor

    @property
    def selected(self):
        return self.selection.selected

    def __len__(self) -> int:
        return len(self.selection)

    def set_content(self, blob: str) -> None:
        """Replace the list with a fresh parse of ``blob``."""
        if self.parser is None:
            raise TypeError(f"{type(self).__name__} has no parser")
        assembly = self.parser(blob)
        self._apply(split_lines(blob), assembly.entities, assembly.start_lines)

    def clear(self) -> None:
        self._apply([], (), ())

    def _apply(self, lines: list[str], entities: Sequence, start_lines: Sequence[int]) -> None:
        self.lines = lines
        self.start_lines = tuple(start_lines)
        self.selection = self.selection.refreshed(entities)
        self.scroll_offset = clamp_list_scroll(self.scroll_offset, len(self.lines), self.height)
        self.ensure_cursor_visible()

    def set_height(self, height: int) -> None:
        self.height = max(1, height)
        self.scroll_offset = clamp_list_scroll(self.scroll_offset, len(self.lines), self.height)
        self.ensure_cursor_visible()

    def ensure_cursor_visible(self) -> None:
        if not self.start_lines:
            return
        line = self.start_lines[self.selection.cursor]
        self.scroll_offset = ensure_line_visible(self.scroll_offset, line, self.height)

    def _select(self, selection: SelectionState) -> bool:
        changed = selection.cursor != self.selection.cursor
        self.selection = selection
        self.ensure_cursor_visible()
        return changed

    def cursor_up(self) -> bool:
        return self._select(self.selection.up())

    def cursor_down(self) -> bool:
        return self._select(self.selection.down())

    def cursor_top(self) -> bool:
        return self._select(self.selection.top())

    def cursor_bottom(self) -> bool:
        return self._select(self.selection.bottom())

    def wheel(self, ticks: int) -> None:
        """Scroll the viewport only; the cursor stays where it is."""
        self.scroll_offset = clamp_list_scroll(
            self.scroll_offset + ticks * MOUSE_SCROLL_LINES,
            len(self.lines),
            self.height,
        )

    def click(self, row: int) -> bool:
        """Select the entity drawn at visible ``row``; return whether one was hit."""
        index = line_to_entity_index(self.scroll_offset + row, self.start_lines)
        if index is None or self.scroll_offset + row >= len(self.lines):
            return False
        self._select(self.selection.select_index(index))
        return True

    def selected_line_range(self) -> range:
        if not self.start_lines:
            return range(0)
        cursor = self.selection.cursor
        start = self.start_lines[cursor]
        end = self.start_lines[cursor + 1] if cursor + 1 < len(self.start_lines) else len(self.lines)
        return range(start, end)

    def visible_rows(self) -> list[ListRow]:
        selected_range = self.selected_line_range()
        starts = set(self.start_lines)
        rows: list[ListRow] = []
        end = min(len(self.lines), self.scroll_offset + self.height)
        for line in range(self.scroll_offset, end):
            rows.append(
                ListRow(
                    text=self.lines[line],
                    line=line,
                    selected=line in selected_range,
                    entry_start=line in starts,
                )
            )
        return rows


class ChangeLogPanel(EntityListPanel):
    def __init__(self) -> None:
        super().__init__("Log", parse_changes, empty_message="(no changes)")

    @property
    def selected_change(self) -> Change | None:
        entity = self.selected
        return entity if isinstance(entity, Change) else None


class OperationLogPanel(EntityListPanel):
    def __init__(self) -> None:
        super().__init__("Operations", parse_operations, empty_message="(no operations)")

    @property
    def selected_operation(self) -> Operation | None:
        entity = self.selected
        return entity if isinstance(entity, Operation) else None


class EvologPanel(EntityListPanel):
    """Evolution log of one change; rows may be operations or change versions."""

    def __init__(self) -> None:
        super().__init__("Evolog", parse_evolog, empty_message="(no history)")
        self.change_id = ""

    def show_change(self, change_id: str, blob: str) -> None:
        if change_id != self.change_id:
            self.selection = SelectionState()
            self.scroll_offset = 0
        self.change_id = change_id
        self.title = f"Evolog: {change_id}"
        self.set_content(blob)


def format_file_row(file: File) -> str:
    return f"{file.status.value} {file.path}"


class FileListPanel(EntityListPanel):
    """Files touched by one change, selected by path across refreshes."""

    def __init__(self) -> None:
        super().__init__("Files", empty_message="(no files changed)")
        self.change_id = ""

    def set_content(self, blob: str) -> None:
        self.set_files(parse_files(blob))

    def set_files(self, files: Sequence[File]) -> None:
        lines = [format_file_row(file) for file in files]
        self._apply(lines, tuple(files), range(len(files)))

    def show_change(self, change_id: str, diff_blob: str) -> None:
        if change_id != self.change_id:
            self.selection = SelectionState()
            self.scroll_offset = 0
        self.change_id = change_id
        self.title = f"Files: {change_id}"
        self.set_content(diff_blob)

    @property
    def selected_file(self) -> File | None:
        entity = self.selected
        return entity if isinstance(entity, File) else None


__all__ = [
    "ChangeLogPanel",
    "EntityListPanel",
    "EvologPanel",
    "FileListPanel",
    "ListRow",
    "OperationLogPanel",
    "format_file_row",
]
