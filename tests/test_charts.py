"""Tests for bar and line chart rendering."""

import math

from peat import charts, palette
from tests.harness import make_matrix, make_sample


class TestBarchart:
    def test_one_labelled_bar_per_sample(self):
        vector = [make_sample("up", 1, job="a"), make_sample("up", 3, job="b")]
        lines = charts.barchart(vector, 30).plain.split("\n")

        assert lines == [
            'up{job="a"} (1)',
            charts.BAR_CHAR * 10,
            'up{job="b"} (3)',
            charts.BAR_CHAR * 30,
        ]

    def test_label_truncates_value_to_int(self):
        assert charts.bar_label(make_sample("load", 2.75)) == "load (2)"

    def test_non_positive_and_non_finite_values_draw_empty_bars(self):
        vector = [make_sample("a", 0), make_sample("b", -4), make_sample("c", math.nan), make_sample("d", 2)]
        bars = charts.barchart(vector, 20).plain.split("\n")[1::2]
        assert bars == ["", "", "", charts.BAR_CHAR * 20]

    def test_tiny_positive_value_still_draws_one_cell(self):
        vector = [make_sample("small", 1), make_sample("big", 10_000)]
        bars = charts.barchart(vector, 10).plain.split("\n")[1::2]
        assert bars[0] == charts.BAR_CHAR

    def test_bars_use_series_colors(self):
        vector = [make_sample("a", 1), make_sample("b", 1)]
        text = charts.barchart(vector, 5)
        bar_styles = [str(span.style) for span in text.spans if palette.LABEL_COLOR not in str(span.style)]
        assert palette.series_color(0).lower() in bar_styles[0].lower()
        assert palette.series_color(1).lower() in bar_styles[1].lower()

    def test_empty_vector(self):
        assert charts.barchart([], 40).plain == ""


class TestTimeseries:
    def test_returns_unfiltered_legend(self):
        matrix = make_matrix(metric_a=[1, 2], metric_b=[3, 4], metric_c=[5, 6])
        _, legend = charts.timeseries(matrix, 80, selected_index=1)
        assert [e.series_name for e in legend] == ["metric_a", "metric_b", "metric_c"]
        assert [e.color_index for e in legend] == [0, 1, 2]

    def test_height_follows_width(self):
        matrix = make_matrix(x=[1, 2, 3])
        narrow, _ = charts.timeseries(matrix, 80)
        wide, _ = charts.timeseries(matrix, 240)
        assert len(wide.plain.splitlines()) > len(narrow.plain.splitlines())

    def test_rendering_is_deterministic(self):
        matrix = make_matrix(metric_a=[1, 2, 3], metric_b=[10, 20, 15])
        first, _ = charts.timeseries(matrix, 90, selected_index=0, highlighted={1})
        charts.timeseries(matrix, 90)  # a different render in between
        second, _ = charts.timeseries(matrix, 90, selected_index=0, highlighted={1})
        assert first.plain == second.plain

    def test_selection_changes_the_drawing(self):
        matrix = make_matrix(metric_a=[1, 2, 3], metric_b=[100, 200, 150])
        all_series, _ = charts.timeseries(matrix, 90)
        only_a, _ = charts.timeseries(matrix, 90, selected_index=0)
        assert all_series.plain != only_a.plain

    def test_empty_and_flat_inputs_render(self):
        empty, legend = charts.timeseries([], 60)
        assert legend == []
        assert isinstance(empty.plain, str)
        flat, _ = charts.timeseries(make_matrix(x=[5, 5, 5]), 60)
        assert flat.plain.strip()

    def test_does_not_mutate_result(self):
        matrix = make_matrix(a=[1, 2], b=[3, 4])
        snapshot = [(s.metric, s.values) for s in matrix]
        charts.timeseries(matrix, 80, selected_index=1, highlighted={0})
        assert [(s.metric, s.values) for s in matrix] == snapshot
