"""Tests for series visibility, Y-range and draw order."""

import math

import pytest

from peat import palette
from peat.selection import (
    NO_SELECTION,
    SelectionState,
    chart_height,
    draw_order,
    is_visible,
    legend_entries,
    visible_indices,
    y_range,
)
from tests.harness import make_matrix, make_stream


@pytest.fixture
def matrix():
    return make_matrix(metric_a=[1, 2, 3], metric_b=[10, 20, 15], metric_c=[100, 50, 75])


class TestVisibility:
    def test_no_selection_shows_everything(self, matrix):
        state = SelectionState()
        assert visible_indices(matrix, state) == [0, 1, 2]

    def test_selection_shows_only_selected(self, matrix):
        assert visible_indices(matrix, SelectionState(1)) == [1]

    def test_pinned_series_stay_visible(self, matrix):
        state = SelectionState(1, {2})
        assert visible_indices(matrix, state) == [1, 2]
        assert not is_visible(0, state)

    def test_out_of_range_selection_shows_only_pins(self, matrix):
        assert visible_indices(matrix, SelectionState(7)) == []
        assert visible_indices(matrix, SelectionState(7, {0})) == [0]

    def test_toggle_pin_and_reset(self):
        state = SelectionState(2)
        state.toggle_pin(1)
        assert state.highlighted == {1}
        state.toggle_pin(1)
        assert state.highlighted == set()
        state.toggle_pin(0)
        state.reset()
        assert state.selected_index == NO_SELECTION
        assert state.highlighted == set()


class TestYRange:
    def test_full_range_without_selection(self, matrix):
        assert y_range(matrix, SelectionState()) == (1, 100)

    def test_selected_series_own_range(self, matrix):
        assert y_range(matrix, SelectionState(1)) == (10, 20)

    def test_selection_range_within_full_range(self, matrix):
        full_lo, full_hi = y_range(matrix, SelectionState())
        for i in range(len(matrix)):
            lo, hi = y_range(matrix, SelectionState(i))
            assert full_lo <= lo <= hi <= full_hi

    def test_undefined_when_nothing_visible(self, matrix):
        assert y_range(matrix, SelectionState(9)) is None
        assert y_range([], SelectionState()) is None

    def test_ignores_non_finite_points(self):
        matrix = [make_stream("x", [math.nan, 5, math.inf, 2])]
        assert y_range(matrix, SelectionState()) == (2, 5)


class TestDrawOrder:
    def test_selected_is_drawn_last(self, matrix):
        assert draw_order(matrix, SelectionState(0, {1, 2})) == [1, 2, 0]

    def test_result_order_without_selection(self, matrix):
        assert draw_order(matrix, SelectionState()) == [0, 1, 2]

    def test_only_visible_series_are_drawn(self, matrix):
        assert draw_order(matrix, SelectionState(2)) == [2]


class TestLegend:
    def test_lists_every_series_in_result_order(self, matrix):
        entries = legend_entries(matrix)
        assert [e.series_name for e in entries] == ["metric_a", "metric_b", "metric_c"]
        assert [e.color_index for e in entries] == [0, 1, 2]

    def test_color_identity_independent_of_selection(self, matrix):
        # Legend is built from the result alone, so selection cannot shift colors.
        colors = [palette.series_color(e.color_index) for e in legend_entries(matrix)]
        assert colors == [palette.series_color(i) for i in range(3)]


class TestChartHeight:
    @pytest.mark.parametrize("width, expected", [(10, 8), (64, 8), (80, 10), (200, 25)])
    def test_ratio_with_minimum(self, width, expected):
        assert chart_height(width) == expected
