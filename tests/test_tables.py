"""Tests for table specs and the paging cursor."""

import pytest

from peat import tables
from peat.selection import LegendEntry
from tests.harness import make_sample, render_plain


def names_table(n, cursor=0):
    return tables.label_names_table([f"label_{i}" for i in range(n)], cursor)


class TestNavigation:
    def test_move_is_clamped(self):
        table = names_table(3)
        table.move_up()
        assert table.cursor == 0
        table.move_down()
        table.move_down()
        table.move_down()
        assert table.cursor == 2

    def test_paging(self):
        table = names_table(40)
        table.page_down()
        assert table.cursor == 15
        assert table.page == 1
        assert table.page_count == 3
        table.page_down()
        table.page_down()
        assert table.cursor == 39
        table.page_up()
        assert table.cursor == 24

    def test_home_end(self):
        table = names_table(7)
        table.end()
        assert table.cursor == 6
        table.home()
        assert table.cursor == 0

    @pytest.mark.parametrize("key, expected", [
        ("j", 5), ("down", 5), ("k", 3), ("up", 3),
        ("g", 0), ("home", 0), ("G", 29), ("end", 29),
        ("l", 19), ("pagedown", 19), ("h", 0), ("pageup", 0),
    ])
    def test_navigate_keys(self, key, expected):
        table = names_table(30, cursor=4)
        assert table.navigate(key) is True
        assert table.cursor == expected

    def test_navigate_ignores_other_keys(self):
        table = names_table(3, cursor=1)
        assert table.navigate("x") is False
        assert table.cursor == 1

    def test_empty_table(self):
        table = names_table(0)
        table.move_down()
        table.end()
        assert table.cursor == 0
        assert table.highlighted_row() is None
        assert table.page_count == 1

    def test_initial_cursor_is_clamped(self):
        assert names_table(3, cursor=10).cursor == 2

    def test_visible_rows_follow_cursor_page(self):
        table = names_table(20, cursor=16)
        assert list(table.visible_rows()) == list(range(15, 20))


class TestSeriesTable:
    def test_columns_are_sorted_union_of_label_names(self):
        series = [{"__name__": "up", "job": "a"}, {"__name__": "up", "instance": "h:1"}]
        table = tables.series_table(series)
        assert [c.key for c in table.columns] == ["__name__", "instance", "job"]
        assert table.rows[0] == {"__name__": "up", "instance": "", "job": "a"}
        assert table.page_size == 10

    def test_widths_clamped(self):
        series = [{"a": "x", "b": "y" * 100}]
        widths = {c.key: c.width for c in tables.series_columns(series)}
        assert widths == {"a": tables.SERIES_MIN_WIDTH, "b": tables.SERIES_MAX_WIDTH}

    def test_cursor_is_kept(self):
        series = [{"job": str(i)} for i in range(5)]
        assert tables.series_table(series, cursor=3).cursor == 3


class TestLabelTables:
    def test_names_header_and_page_size(self):
        table = tables.label_names_table(["job", "instance"])
        assert table.columns[0].title == "Label Name"
        assert table.page_size == 15
        assert table.highlighted_row() == {"label": "job"}

    def test_values_header(self):
        table = tables.label_values_table("job", ["node", "prometheus"])
        assert table.columns[0].title == "Values for 'job'"
        assert table.rows[1] == {"value": "prometheus"}

    def test_width_capped(self):
        table = tables.label_names_table(["x" * 200])
        assert table.columns[0].width == tables.LABELS_MAX_WIDTH


class TestLegendTable:
    def test_rows_and_pins(self):
        entries = [LegendEntry("metric_a", 0), LegendEntry("metric_b", 1)]
        table = tables.legend_table(entries, {1}, cursor=1)
        assert [r["metric"] for r in table.rows] == ["metric_a", "metric_b"]
        assert [r["pin"] for r in table.rows] == [" ", tables.PIN_MARKER]
        assert table.cursor == 1
        assert table.page_size == 5
        assert table.cell_styles[1]["color"] == "#EE6677"


class TestRender:
    def test_paged_render_shows_current_page_and_caption(self):
        table = names_table(20, cursor=16)
        out = render_plain(table.render())
        assert "label_16" in out
        assert "label_3" not in out
        assert "2/2" in out

    def test_unpaged_render_shows_all_rows(self):
        out = render_plain(names_table(20).render(paged=False))
        assert "label_0" in out and "label_19" in out

    def test_vector_table(self):
        table = tables.vector_table([make_sample("up", 1, timestamp=0, job="a")])
        out = render_plain(table.render())
        assert 'up{job="a"}' in out
        assert "1970-01-01T00:00:00+00:00" in out
