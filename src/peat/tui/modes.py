"""Query mode strategies.

One Mode per QueryMode, registered in MODES. Each mode knows how to build
its backend task, store and render its result, react to the interactive
toggle and to keys while its table/legend is focused, and what to show in
the status bars.

Modes are stateless; all state lives on the Controller passed in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text
from rich import box

from peat import charts, palette, tables
from peat.durations import format_duration
from peat.selection import NO_SELECTION
from peat.tui.state import Command, FocusedPane, QueryMode, QueryResult, QueryTask, Quit, TUIState

if TYPE_CHECKING:
    from peat.tui.controller import Controller


def _panel(content: RenderableType, focused: bool) -> Panel:
    return Panel(
        content,
        box=box.ROUNDED,
        border_style=palette.FOCUS_COLOR if focused else palette.BORDER_COLOR,
        padding=(0, 1),
        expand=False,
    )


def warnings_block(ctl: Controller) -> Text | None:
    warnings = ctl.session.warnings
    if not warnings:
        return None
    out = Text("Warnings:\n", style=palette.WARNING_COLOR)
    for warning in warnings:
        out.append(f"  - {warning}\n", style=palette.WARNING_COLOR)
    return out


def _content(ctl: Controller, *parts: RenderableType | None) -> Group:
    block = warnings_block(ctl)
    items = [block] if block is not None else []
    items.extend(p for p in parts if p is not None)
    return Group(*items)


def _no_data() -> Text:
    return Text("  No data", style=palette.MUTED_COLOR)


class Mode:
    """Behaviour shared by every query mode; subclasses override the rest."""

    query_mode: QueryMode

    @property
    def name(self) -> str:
        return self.query_mode.value

    def execute_query(self, ctl: Controller) -> QueryTask:
        raise NotImplementedError

    def apply_result(self, ctl: Controller, result: QueryResult) -> None:
        raise NotImplementedError

    def has_navigable_result(self, ctl: Controller) -> bool:
        return False

    def handle_interactive_toggle(self, ctl: Controller) -> Command | None:
        return None

    def handle_legend_key(self, ctl: Controller, key: str) -> Command | None:
        if key == "q":
            return Quit()
        if key in ("i", "escape"):
            ctl.unfocus_legend()
        return None

    def render_status_params(self, ctl: Controller) -> str:
        return ""

    def render_results_content(self, ctl: Controller) -> RenderableType:
        raise NotImplementedError

    def render_results_status_bar(self, ctl: Controller) -> str:
        return ""

    def help_text(self, ctl: Controller) -> str:
        return "  j/k: navigate | h/l: page | i/esc: exit | q: quit"

    def on_switch_to(self, ctl: Controller) -> None:
        if ctl.sessions[self.query_mode].state is TUIState.RESULTS:
            self.render(ctl)

    def render(self, ctl: Controller) -> None:
        """Rebuild render artefacts from the stored result."""


class InstantMode(Mode):
    query_mode = QueryMode.INSTANT

    def execute_query(self, ctl: Controller) -> QueryTask:
        client, expr, timeout = ctl.client, ctl.query_text, ctl.timeout

        def fetch():
            warnings, vector = client.query(expr, timeout)
            return vector, warnings

        return ctl.new_task(fetch)

    def apply_result(self, ctl: Controller, result: QueryResult) -> None:
        ctl.vector = list(result.payload or [])
        ctl.finish_result(result)
        if result.error is None:
            self.render(ctl)

    def render(self, ctl: Controller) -> None:
        ctl.bar_chart = charts.barchart(ctl.vector, ctl.chart_width())

    def render_results_content(self, ctl: Controller) -> RenderableType:
        if not ctl.vector:
            return _content(ctl, _no_data())
        return _content(ctl, _panel(ctl.bar_chart, ctl.focused_pane is FocusedPane.RESULTS))


class RangeMode(Mode):
    query_mode = QueryMode.RANGE

    def execute_query(self, ctl: Controller) -> QueryTask:
        client, expr, timeout = ctl.client, ctl.query_text, ctl.timeout
        step, window = ctl.step, ctl.window_fn()

        def fetch():
            start, end = window()
            return client.query_range(expr, start, end, step, timeout)

        return ctl.new_task(fetch)

    def apply_result(self, ctl: Controller, result: QueryResult) -> None:
        ctl.matrix = list(result.payload or [])
        ctl.selection.reset()
        ctl.legend_table = None
        ctl.legend_entries = []
        ctl.finish_result(result)
        if result.error is None:
            self.render(ctl)

    def render(self, ctl: Controller) -> None:
        cursor = ctl.legend_table.cursor if ctl.legend_table is not None else 0
        ctl.range_chart, ctl.legend_entries = charts.timeseries(
            ctl.matrix,
            ctl.chart_width(),
            ctl.selection.selected_index,
            ctl.selection.highlighted,
        )
        ctl.legend_table = tables.legend_table(ctl.legend_entries, ctl.selection.highlighted, cursor)
        ctl.legend_table.focused = ctl.legend_focused

    def has_navigable_result(self, ctl: Controller) -> bool:
        return bool(ctl.legend_entries)

    def select_from_legend(self, ctl: Controller) -> None:
        if ctl.legend_table is None or not ctl.legend_table.rows:
            ctl.selection.selected_index = NO_SELECTION
        else:
            ctl.selection.selected_index = ctl.legend_table.cursor

    def handle_interactive_toggle(self, ctl: Controller) -> Command | None:
        if not self.has_navigable_result(ctl):
            return None
        if ctl.legend_focused:
            ctl.focused_pane = FocusedPane.QUERY
            ctl.selection.selected_index = NO_SELECTION
        else:
            ctl.focus_legend()
            # Show the row under the cursor right away, no extra keypress.
            self.select_from_legend(ctl)
        self.render(ctl)
        return None

    def handle_legend_key(self, ctl: Controller, key: str) -> Command | None:
        if key == "q":
            return Quit()
        if key in ("i", "escape"):
            ctl.focused_pane = FocusedPane.QUERY
            ctl.selection.selected_index = NO_SELECTION
            self.render(ctl)
            return None
        if ctl.legend_table is None:
            return None
        if key == "space":
            ctl.selection.toggle_pin(ctl.legend_table.cursor)
            self.render(ctl)
            return None
        before = ctl.selection.selected_index
        if ctl.legend_table.navigate(key):
            self.select_from_legend(ctl)
            if ctl.selection.selected_index != before:
                self.render(ctl)
        return None

    def render_status_params(self, ctl: Controller) -> str:
        return f"   Range: {format_duration(ctl.range_value)}   Step: {format_duration(ctl.step)}"

    def render_results_content(self, ctl: Controller) -> RenderableType:
        if not ctl.matrix:
            return _content(ctl, _no_data())
        chart = _panel(ctl.range_chart, ctl.focused_pane is FocusedPane.RESULTS)
        legend = None
        if ctl.legend_table is not None and ctl.legend_entries:
            legend = _panel(ctl.legend_table.render(), ctl.legend_focused)
        return _content(ctl, chart, legend)

    def help_text(self, ctl: Controller) -> str:
        return "  j/k: select | h/l: page | space: pin | i/esc: exit | q: quit"


class SeriesMode(Mode):
    query_mode = QueryMode.SERIES

    def execute_query(self, ctl: Controller) -> QueryTask:
        client, expr, timeout = ctl.client, ctl.query_text, ctl.timeout
        limit, window = ctl.limit, ctl.window_fn()

        def fetch():
            start, end = window()
            return client.series(expr, start, end, limit, timeout)

        return ctl.new_task(fetch)

    def apply_result(self, ctl: Controller, result: QueryResult) -> None:
        ctl.series = list(result.payload or [])
        ctl.series_table = None
        ctl.finish_result(result)
        if result.error is None:
            self.render(ctl)

    def render(self, ctl: Controller) -> None:
        cursor = ctl.series_table.cursor if ctl.series_table is not None else 0
        ctl.series_table = tables.series_table(ctl.series, cursor)
        ctl.series_table.focused = ctl.legend_focused

    def has_navigable_result(self, ctl: Controller) -> bool:
        return bool(ctl.series)

    def handle_interactive_toggle(self, ctl: Controller) -> Command | None:
        if not self.has_navigable_result(ctl):
            return None
        if ctl.legend_focused:
            ctl.focused_pane = FocusedPane.QUERY
        else:
            ctl.focus_legend()
        if ctl.series_table is not None:
            ctl.series_table.focused = ctl.legend_focused
        return None

    def handle_legend_key(self, ctl: Controller, key: str) -> Command | None:
        if key in ("q", "i", "escape"):
            command = super().handle_legend_key(ctl, key)
            if ctl.series_table is not None:
                ctl.series_table.focused = ctl.legend_focused
            return command
        if ctl.series_table is not None:
            ctl.series_table.navigate(key)
        return None

    def render_status_params(self, ctl: Controller) -> str:
        return f"   Range: {format_duration(ctl.range_value)}   Limit: {ctl.limit}"

    def render_results_content(self, ctl: Controller) -> RenderableType:
        if not ctl.series or ctl.series_table is None:
            return _content(ctl, _no_data())
        return _content(ctl, _panel(ctl.series_table.render(), ctl.legend_focused))

    def render_results_status_bar(self, ctl: Controller) -> str:
        return f" | Series: {len(ctl.series)}"


class LabelsMode(Mode):
    query_mode = QueryMode.LABELS

    def execute_query(self, ctl: Controller) -> QueryTask:
        client, timeout, window = ctl.client, ctl.timeout, ctl.window_fn()

        def fetch():
            start, end = window()
            return client.label_names(start, end, timeout)

        return ctl.new_task(fetch)

    def fetch_values(self, ctl: Controller, label_name: str) -> QueryTask:
        client, timeout, window = ctl.client, ctl.timeout, ctl.window_fn()

        def fetch():
            start, end = window()
            return client.label_values(label_name, start, end, timeout)

        return ctl.new_task(fetch, label_name=label_name)

    def apply_result(self, ctl: Controller, result: QueryResult) -> None:
        if result.label_name is not None:
            self._apply_values(ctl, result)
            return
        ctl.labels = list(result.payload or [])
        ctl.viewing_label_values = False
        ctl.label_values = []
        ctl.labels_table = None
        ctl.selected_label_name = ""
        ctl.selected_label_index = 0
        ctl.finish_result(result)
        if result.error is None:
            self.render(ctl)

    def _apply_values(self, ctl: Controller, result: QueryResult) -> None:
        # Table focus is kept on success so the values can be browsed straight away.
        ctl.finish_result(result, keep_focus=result.error is None)
        ctl.selected_label_name = result.label_name or ""
        if result.error is not None:
            ctl.viewing_label_values = False
            ctl.label_values = []
            return
        ctl.label_values = list(result.payload or [])
        ctl.viewing_label_values = True
        self.render(ctl)

    def render(self, ctl: Controller) -> None:
        # Same view keeps its cursor; switching views starts at row 0 (values)
        # or at the chosen label (names).
        current = ctl.labels_table
        shown_key = current.columns[0].key if current is not None and current.columns else None
        if ctl.viewing_label_values:
            cursor = current.cursor if shown_key == "value" else 0
            ctl.labels_table = tables.label_values_table(ctl.selected_label_name, ctl.label_values, cursor)
        else:
            cursor = current.cursor if shown_key == "label" else ctl.selected_label_index
            ctl.labels_table = tables.label_names_table(ctl.labels, cursor)
        ctl.labels_table.focused = ctl.legend_focused

    def has_navigable_result(self, ctl: Controller) -> bool:
        return bool(ctl.label_values if ctl.viewing_label_values else ctl.labels)

    def handle_interactive_toggle(self, ctl: Controller) -> Command | None:
        if not ctl.labels:
            return None
        if ctl.legend_focused:
            ctl.focused_pane = FocusedPane.QUERY
        else:
            ctl.focus_legend()
        if ctl.labels_table is not None:
            ctl.labels_table.focused = ctl.legend_focused
        return None

    def handle_legend_key(self, ctl: Controller, key: str) -> Command | None:
        if key == "q":
            return Quit()
        if key in ("i", "escape"):
            if ctl.viewing_label_values:
                # Back to the names list, no refetch, cursor where it was.
                ctl.viewing_label_values = False
                ctl.label_values = []
                ctl.selected_label_name = ""
                self.render(ctl)
                return None
            ctl.focused_pane = FocusedPane.QUERY
            if ctl.labels_table is not None:
                ctl.labels_table.focused = False
            return None
        if ctl.labels_table is None:
            return None
        if key == "enter":
            if ctl.viewing_label_values:
                return None
            row = ctl.labels_table.highlighted_row()
            if row is None:
                return None
            ctl.selected_label_index = ctl.labels_table.cursor
            ctl.selected_label_name = row["label"]
            return ctl.issue(self.fetch_values(ctl, row["label"]), f"Fetching values for label '{row['label']}'")
        ctl.labels_table.navigate(key)
        return None

    def render_status_params(self, ctl: Controller) -> str:
        return f"   Range: {format_duration(ctl.range_value)}"

    def render_results_content(self, ctl: Controller) -> RenderableType:
        if ctl.viewing_label_values:
            summary = Text(f"  {len(ctl.label_values)} values for label '{ctl.selected_label_name}'")
            empty = not ctl.label_values
        else:
            summary = Text(f"  {len(ctl.labels)} labels found")
            empty = not ctl.labels
        if empty or ctl.labels_table is None:
            return _content(ctl, summary)
        return _content(ctl, _panel(ctl.labels_table.render(), ctl.legend_focused), summary)

    def help_text(self, ctl: Controller) -> str:
        if ctl.viewing_label_values:
            return "  j/k: navigate | h/l: page | esc: back | q: quit"
        return "  j/k: navigate | h/l: page | enter: values | i/esc: exit | q: quit"


# [LAW:one-source-of-truth] Closed registry: exactly one strategy per QueryMode.
MODES: dict[QueryMode, Mode] = {
    QueryMode.INSTANT: InstantMode(),
    QueryMode.RANGE: RangeMode(),
    QueryMode.SERIES: SeriesMode(),
    QueryMode.LABELS: LabelsMode(),
}
