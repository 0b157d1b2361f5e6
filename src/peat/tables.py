"""Table specs and a pure paging cursor.

TableModel holds columns, rows and a highlighted-row cursor. Navigation
(up/down/page/home/end) is plain arithmetic so controllers can drive it
without a widget. render() produces a Rich Table showing only the page
that contains the cursor.

The builders derive column sets for each result kind:
  - series:  sorted union of label names, widths clamped to [10, 40]
  - labels:  one column, header "Label Name" or "Values for '<name>'"
  - legend:  color swatch, pin marker, metric
  - vector:  metric, value, RFC 3339 timestamp (one-shot CLI output)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

from rich import box
from rich.table import Table
from rich.text import Text

from peat import palette
from peat.prometheus import Sample, format_value, metric_string
from peat.selection import LegendEntry

SERIES_PAGE_SIZE = 10
SERIES_MIN_WIDTH = 10
SERIES_MAX_WIDTH = 40

LABELS_PAGE_SIZE = 15
LABELS_MAX_WIDTH = 60
LABEL_NAME_HEADER = "Label Name"

LEGEND_PAGE_SIZE = 5
LEGEND_MIN_METRIC_WIDTH = 20
PIN_MARKER = "*"

VECTOR_PAGE_SIZE = 10


@dataclass(frozen=True)
class Column:
    key: str
    title: str
    width: int


@dataclass
class TableModel:
    columns: list[Column]
    rows: list[dict[str, Any]]
    page_size: int = 10
    cursor: int = 0
    focused: bool = False
    # Optional per-row styles keyed by column, e.g. legend swatch colors.
    cell_styles: list[dict[str, str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.cursor = self._clamp(self.cursor)

    def _clamp(self, index: int) -> int:
        if not self.rows:
            return 0
        return max(0, min(index, len(self.rows) - 1))

    # ─── Navigation ──────────────────────────────────────────────────────

    def move_down(self) -> None:
        self.cursor = self._clamp(self.cursor + 1)

    def move_up(self) -> None:
        self.cursor = self._clamp(self.cursor - 1)

    def page_down(self) -> None:
        self.cursor = self._clamp(self.cursor + self.page_size)

    def page_up(self) -> None:
        self.cursor = self._clamp(self.cursor - self.page_size)

    def home(self) -> None:
        self.cursor = 0

    def end(self) -> None:
        self.cursor = self._clamp(len(self.rows) - 1)

    def navigate(self, key: str) -> bool:
        """Apply a navigation key. Returns False when *key* is not one."""
        action = _NAV_KEYS.get(key)
        if action is None:
            return False
        action(self)
        return True

    def highlighted_row(self) -> dict[str, Any] | None:
        if not self.rows:
            return None
        return self.rows[self.cursor]

    # ─── Paging ──────────────────────────────────────────────────────────

    @property
    def page(self) -> int:
        return self.cursor // self.page_size

    @property
    def page_count(self) -> int:
        return max(1, -(-len(self.rows) // self.page_size))

    def visible_rows(self) -> range:
        start = self.page * self.page_size
        return range(start, min(start + self.page_size, len(self.rows)))

    # ─── Rendering ───────────────────────────────────────────────────────

    def render(self, paged: bool = True) -> Table:
        table = Table(
            box=box.SIMPLE_HEAD,
            show_edge=False,
            pad_edge=False,
            header_style=f"bold {palette.LABEL_COLOR}",
        )
        for column in self.columns:
            table.add_column(column.title, width=column.width, no_wrap=True, overflow="ellipsis")
        indices = self.visible_rows() if paged else range(len(self.rows))
        for index in indices:
            row = self.rows[index]
            styles = self.cell_styles[index] if index < len(self.cell_styles) else {}
            cells = [Text(str(row.get(c.key, "")), style=styles.get(c.key, "")) for c in self.columns]
            row_style = ""
            if index == self.cursor:
                row_style = "reverse" if self.focused else "bold"
            table.add_row(*cells, style=row_style)
        if paged and self.page_count > 1:
            table.caption = f"{self.page + 1}/{self.page_count}"
        return table


_NAV_KEYS = {
    "j": TableModel.move_down,
    "down": TableModel.move_down,
    "k": TableModel.move_up,
    "up": TableModel.move_up,
    "l": TableModel.page_down,
    "pagedown": TableModel.page_down,
    "h": TableModel.page_up,
    "pageup": TableModel.page_up,
    "g": TableModel.home,
    "home": TableModel.home,
    "G": TableModel.end,
    "end": TableModel.end,
}


# ─── Builders ────────────────────────────────────────────────────────────────


def series_columns(series: Sequence[dict[str, str]]) -> list[Column]:
    names = sorted({name for labels in series for name in labels})
    columns = []
    for name in names:
        longest = max([len(name)] + [len(labels.get(name, "")) for labels in series])
        width = max(SERIES_MIN_WIDTH, min(longest, SERIES_MAX_WIDTH))
        columns.append(Column(name, name, width))
    return columns


def series_table(series: Sequence[dict[str, str]], cursor: int = 0) -> TableModel:
    columns = series_columns(series)
    rows = [{c.key: labels.get(c.key, "") for c in columns} for labels in series]
    return TableModel(columns, rows, page_size=SERIES_PAGE_SIZE, cursor=cursor)


def _single_column_table(key: str, header: str, values: Sequence[str], cursor: int) -> TableModel:
    width = min(max([len(header)] + [len(v) for v in values]), LABELS_MAX_WIDTH)
    rows = [{key: v} for v in values]
    return TableModel([Column(key, header, width)], rows, page_size=LABELS_PAGE_SIZE, cursor=cursor)


def label_names_table(names: Sequence[str], cursor: int = 0) -> TableModel:
    return _single_column_table("label", LABEL_NAME_HEADER, names, cursor)


def label_values_table(label_name: str, values: Sequence[str], cursor: int = 0) -> TableModel:
    return _single_column_table("value", f"Values for '{label_name}'", values, cursor)


def legend_table(entries: Sequence[LegendEntry], pinned: set[int], cursor: int = 0) -> TableModel:
    metric_width = max([LEGEND_MIN_METRIC_WIDTH] + [len(e.series_name) for e in entries])
    columns = [
        Column("color", "", 1),
        Column("pin", "", 1),
        Column("metric", "Series", metric_width),
    ]
    rows = []
    styles = []
    for entry in entries:
        rows.append({
            "color": "█",
            "pin": PIN_MARKER if entry.color_index in pinned else " ",
            "metric": entry.series_name,
        })
        styles.append({"color": palette.series_color(entry.color_index)})
    return TableModel(columns, rows, page_size=LEGEND_PAGE_SIZE, cursor=cursor, cell_styles=styles)


def vector_table(vector: Sequence[Sample]) -> TableModel:
    rows = [
        {
            "metric": metric_string(s.metric),
            "value": format_value(s.value),
            "timestamp": datetime.fromtimestamp(s.timestamp, tz=timezone.utc).isoformat(),
        }
        for s in vector
    ]
    metric_width = max([6] + [len(r["metric"]) + 1 for r in rows])
    value_width = max([6] + [len(r["value"]) + 1 for r in rows])
    columns = [
        Column("metric", "Metric", metric_width),
        Column("value", "Value", value_width),
        Column("timestamp", "Timestamp", 26),
    ]
    return TableModel(columns, rows, page_size=VECTOR_PAGE_SIZE)
