"""Pure scroll reducers for the diff panel and the entity lists.

Every reducer takes the current ``ViewportState`` plus the panel geometry and
returns a new state. When ``current_hunk`` is set it always names the last
hunk whose start line is at or above the top visible diff line.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass

from ..jj.types import Hunk

MOUSE_SCROLL_LINES = 3
TRAILING_CONTEXT_LINES = 2


@dataclass(frozen=True)
class DiffGeometry:
    """Layout facts the reducers need.

    ``total_lines`` counts every displayed row, including the ``header_lines``
    rows of commit metadata placed above the diff text.
    """

    hunks: tuple[Hunk, ...] = ()
    header_lines: int = 0
    total_lines: int = 0
    height: int = 1

    @property
    def max_scroll(self) -> int:
        return max(0, self.total_lines - max(1, self.height))

    def hunk_offset(self, index: int) -> int:
        return self.hunks[index].start_line + self.header_lines


@dataclass(frozen=True)
class ViewportState:
    scroll_offset: int = 0
    current_hunk: int | None = None


def hunk_at_offset(scroll_offset: int, geometry: DiffGeometry) -> int | None:
    """Index of the last hunk starting at or before ``scroll_offset``."""
    position = scroll_offset - geometry.header_lines
    for index in range(len(geometry.hunks) - 1, -1, -1):
        if geometry.hunks[index].start_line <= position:
            return index
    return None


def sync_current_hunk(state: ViewportState, geometry: DiffGeometry) -> ViewportState:
    return ViewportState(state.scroll_offset, hunk_at_offset(state.scroll_offset, geometry))


def goto_top(state: ViewportState, geometry: DiffGeometry) -> ViewportState:
    return ViewportState(0, None)


def goto_bottom(state: ViewportState, geometry: DiffGeometry) -> ViewportState:
    if not geometry.hunks:
        return ViewportState(geometry.max_scroll, None)
    last = len(geometry.hunks) - 1
    return ViewportState(max(geometry.max_scroll, geometry.hunk_offset(last)), last)


def next_hunk(state: ViewportState, geometry: DiffGeometry) -> ViewportState:
    if not geometry.hunks:
        return state
    if state.current_hunk is None:
        target = 0
    elif state.current_hunk < len(geometry.hunks) - 1:
        target = state.current_hunk + 1
    else:
        return state
    # The header goes to the top even past the ordinary bottom limit.
    return ViewportState(geometry.hunk_offset(target), target)


def prev_hunk(state: ViewportState, geometry: DiffGeometry) -> ViewportState:
    """Step back one section.

    The first press returns to the top of the current hunk; only a press made
    exactly at that start moves to the previous hunk, or to the very top from
    hunk 0.
    """
    current = state.current_hunk
    if current is None or not geometry.hunks:
        return goto_top(state, geometry)
    start = geometry.hunk_offset(current)
    if state.scroll_offset > start:
        return ViewportState(start, current)
    if current == 0:
        return goto_top(state, geometry)
    return ViewportState(geometry.hunk_offset(current - 1), current - 1)


def scroll_by(state: ViewportState, delta: int, geometry: DiffGeometry) -> ViewportState:
    """Scroll by ``delta`` lines and resynchronize the current hunk.

    The lower bound is 0 and the upper bound is ``max_scroll``, except that an
    offset already past ``max_scroll`` (after a hunk jump) is not pulled back
    up by scrolling down.
    """
    upper = max(geometry.max_scroll, state.scroll_offset)
    offset = max(0, min(state.scroll_offset + delta, upper))
    return sync_current_hunk(ViewportState(offset, state.current_hunk), geometry)


def refit(state: ViewportState, geometry: DiffGeometry) -> ViewportState:
    """Pull the offset back inside freshly loaded content.

    The limit is ``max_scroll``, or the start of the current hunk when that
    hunk still exists and sits further down. The current hunk is then
    resynchronized with the clamped offset.
    """
    upper = geometry.max_scroll
    current = state.current_hunk
    if current is not None and current < len(geometry.hunks):
        upper = max(upper, geometry.hunk_offset(current))
    offset = max(0, min(state.scroll_offset, upper))
    return sync_current_hunk(ViewportState(offset, current), geometry)


def wheel(state: ViewportState, ticks: int, geometry: DiffGeometry) -> ViewportState:
    return scroll_by(state, ticks * MOUSE_SCROLL_LINES, geometry)


def ensure_line_visible(scroll_offset: int, line: int, height: int) -> int:
    """Return the smallest scroll change that keeps ``line`` on screen.

    Scrolling down leaves ``TRAILING_CONTEXT_LINES`` rows of room below it.
    """
    height = max(1, height)
    if line < scroll_offset:
        return max(0, line)
    if line >= scroll_offset + height:
        return max(0, min(line, line - height + TRAILING_CONTEXT_LINES))
    return scroll_offset


def clamp_list_scroll(scroll_offset: int, total_lines: int, height: int) -> int:
    return max(0, min(scroll_offset, total_lines - max(1, height)))


def line_to_entity_index(line: int, start_lines: Sequence[int]) -> int | None:
    """Map a content line to the entity whose block contains it."""
    if line < 0:
        return None
    index = bisect_right(start_lines, line) - 1
    if index < 0:
        return None
    return index


__all__ = [
    "DiffGeometry",
    "MOUSE_SCROLL_LINES",
    "TRAILING_CONTEXT_LINES",
    "ViewportState",
    "clamp_list_scroll",
    "ensure_line_visible",
    "goto_bottom",
    "goto_top",
    "hunk_at_offset",
    "line_to_entity_index",
    "next_hunk",
    "prev_hunk",
    "refit",
    "scroll_by",
    "sync_current_hunk",
    "wheel",
]
