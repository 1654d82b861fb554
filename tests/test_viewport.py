from __future__ import annotations

import random
import unittest

from lazyjj.jj.types import Hunk
from lazyjj.panels.viewport import (
    MOUSE_SCROLL_LINES,
    DiffGeometry,
    ViewportState,
    ensure_line_visible,
    goto_bottom,
    goto_top,
    hunk_at_offset,
    line_to_entity_index,
    next_hunk,
    prev_hunk,
    refit,
    scroll_by,
    wheel,
)


def _geometry(starts: list[int], total: int, header: int = 0, height: int = 10) -> DiffGeometry:
    hunks = []
    for index, start in enumerate(starts):
        end = starts[index + 1] - 1 if index + 1 < len(starts) else total - 1
        hunks.append(Hunk(header=f"h{index}", start_line=start, end_line=end))
    return DiffGeometry(hunks=tuple(hunks), header_lines=header, total_lines=total + header, height=height)


def _assert_invariant(test: unittest.TestCase, state: ViewportState, geometry: DiffGeometry) -> None:
    if state.current_hunk is not None:
        test.assertEqual(state.current_hunk, hunk_at_offset(state.scroll_offset, geometry))
    test.assertGreaterEqual(state.scroll_offset, 0)


class HunkNavigationTests(unittest.TestCase):
    def test_next_hunk_from_none_goes_to_first(self) -> None:
        geometry = _geometry([0, 20, 40], 60, header=3)
        state = next_hunk(ViewportState(), geometry)
        self.assertEqual(state, ViewportState(3, 0))

    def test_next_hunk_is_noop_on_last(self) -> None:
        geometry = _geometry([0, 20], 30)
        state = ViewportState(20, 1)
        self.assertEqual(next_hunk(state, geometry), state)

    def test_prev_hunk_snaps_to_current_start_first(self) -> None:
        geometry = _geometry([0, 20, 40], 60)
        state = prev_hunk(ViewportState(25, 1), geometry)
        self.assertEqual(state, ViewportState(20, 1))
        state = prev_hunk(state, geometry)
        self.assertEqual(state, ViewportState(0, 0))
        state = prev_hunk(state, geometry)
        self.assertEqual(state, ViewportState(0, None))

    def test_prev_hunk_from_none_goes_to_top(self) -> None:
        geometry = _geometry([10, 20], 30)
        self.assertEqual(prev_hunk(ViewportState(5, None), geometry), ViewportState(0, None))

    def test_round_trip(self) -> None:
        for starts in ([0], [0, 5, 9], [2, 30, 31, 80], [7, 8, 9, 10, 11]):
            geometry = _geometry(starts, 100, header=4, height=20)
            state = ViewportState()
            for _ in range(len(starts)):
                state = next_hunk(state, geometry)
                _assert_invariant(self, state, geometry)
            self.assertEqual(state.current_hunk, len(starts) - 1)
            self.assertEqual(next_hunk(state, geometry), state)
            for _ in range(len(starts)):
                state = prev_hunk(state, geometry)
                _assert_invariant(self, state, geometry)
            self.assertIsNone(state.current_hunk)
            self.assertEqual(state.scroll_offset, 0)

    def test_no_hunks(self) -> None:
        geometry = _geometry([], 50)
        self.assertEqual(next_hunk(ViewportState(), geometry), ViewportState())
        self.assertEqual(goto_bottom(ViewportState(), geometry), ViewportState(40, None))

    def test_goto_top_and_bottom(self) -> None:
        geometry = _geometry([0, 20, 95], 100, header=2, height=10)
        bottom = goto_bottom(ViewportState(), geometry)
        self.assertEqual(bottom.current_hunk, 2)
        self.assertEqual(bottom.scroll_offset, 97)
        _assert_invariant(self, bottom, geometry)
        self.assertEqual(goto_top(bottom, geometry), ViewportState(0, None))

    def test_wheel_scrolls_fixed_lines_and_resyncs(self) -> None:
        geometry = _geometry([0, 4, 20], 50, height=10)
        state = wheel(ViewportState(), 1, geometry)
        self.assertEqual(state, ViewportState(MOUSE_SCROLL_LINES, 0))
        state = wheel(state, 1, geometry)
        self.assertEqual(state, ViewportState(2 * MOUSE_SCROLL_LINES, 1))
        state = wheel(state, -5, geometry)
        self.assertEqual(state, ViewportState(0, 0))

    def test_scroll_clamps_to_max_scroll(self) -> None:
        geometry = _geometry([0], 15, height=10)
        self.assertEqual(scroll_by(ViewportState(), 100, geometry).scroll_offset, 5)

    def test_scroll_above_first_hunk_is_none(self) -> None:
        geometry = _geometry([10], 50, height=10)
        self.assertIsNone(scroll_by(ViewportState(), 3, geometry).current_hunk)

    def test_refit_pulls_offset_into_smaller_content(self) -> None:
        shrunk = _geometry([0, 5], 12, height=10)
        self.assertEqual(refit(ViewportState(40, None), shrunk), ViewportState(2, 0))

    def test_refit_keeps_offset_at_surviving_hunk(self) -> None:
        geometry = _geometry([0, 30, 45], 50, height=10)
        self.assertEqual(refit(ViewportState(45, 2), geometry), ViewportState(45, 2))
        fewer = _geometry([0, 30], 50, height=10)
        self.assertEqual(refit(ViewportState(45, 2), fewer), ViewportState(40, 1))

    def test_invariant_under_random_operations(self) -> None:
        rng = random.Random(2024)
        for _ in range(300):
            total = rng.randint(0, 120)
            starts = sorted(rng.sample(range(total), rng.randint(0, min(total, 8)))) if total else []
            geometry = _geometry(starts, total, header=rng.randint(0, 6), height=rng.randint(1, 30))
            state = ViewportState()
            for _ in range(60):
                op = rng.choice(("next", "prev", "top", "bottom", "wheel", "line"))
                if op == "next":
                    state = next_hunk(state, geometry)
                elif op == "prev":
                    state = prev_hunk(state, geometry)
                elif op == "top":
                    state = goto_top(state, geometry)
                elif op == "bottom":
                    state = goto_bottom(state, geometry)
                elif op == "wheel":
                    state = wheel(state, rng.choice((-1, 1)), geometry)
                else:
                    state = scroll_by(state, rng.choice((-1, 1)), geometry)
                _assert_invariant(self, state, geometry)


class ListScrollTests(unittest.TestCase):
    def test_scrolls_up_to_line_above_window(self) -> None:
        self.assertEqual(ensure_line_visible(10, 4, 5), 4)

    def test_scrolls_down_leaving_trailing_context(self) -> None:
        self.assertEqual(ensure_line_visible(0, 5, 5), 2)
        self.assertEqual(ensure_line_visible(0, 12, 5), 9)

    def test_visible_line_keeps_offset(self) -> None:
        self.assertEqual(ensure_line_visible(3, 5, 5), 3)

    def test_line_to_entity_index(self) -> None:
        starts = (0, 3, 7)
        self.assertEqual(line_to_entity_index(0, starts), 0)
        self.assertEqual(line_to_entity_index(2, starts), 0)
        self.assertEqual(line_to_entity_index(3, starts), 1)
        self.assertEqual(line_to_entity_index(50, starts), 2)
        self.assertIsNone(line_to_entity_index(1, (2, 5)))
        self.assertIsNone(line_to_entity_index(-1, starts))


if __name__ == "__main__":
    unittest.main()
