"""Series selection for range charts.

Pure functions over a stored range matrix and a SelectionState. The chart
renderer asks this module which series to draw, in which order, and over
which Y range; the legend asks it for one entry per series. Nothing here
mutates the matrix, so re-rendering the same inputs always gives the same
chart.

Visibility: with no selection every series is visible. With a selection,
only the selected series and pinned ("highlighted") series are visible.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

from peat.prometheus import SampleStream, metric_string

NO_SELECTION = -1

CHART_HEIGHT_RATIO = 8
MIN_CHART_HEIGHT = 8


@dataclass(frozen=True)
class LegendEntry:
    series_name: str
    color_index: int


@dataclass
class SelectionState:
    selected_index: int = NO_SELECTION
    highlighted: set[int] = field(default_factory=set)

    def reset(self) -> None:
        self.selected_index = NO_SELECTION
        self.highlighted = set()

    def toggle_pin(self, index: int) -> None:
        if index in self.highlighted:
            self.highlighted.discard(index)
        else:
            self.highlighted.add(index)


def is_visible(index: int, state: SelectionState) -> bool:
    return (
        state.selected_index == NO_SELECTION
        or index == state.selected_index
        or index in state.highlighted
    )


def visible_indices(matrix: Sequence[SampleStream], state: SelectionState) -> list[int]:
    return [i for i in range(len(matrix)) if is_visible(i, state)]


def y_range(matrix: Sequence[SampleStream], state: SelectionState) -> tuple[float, float] | None:
    """Min/max over the points of visible series only.

    None when no visible series has a finite point; the chart is then drawn
    empty. Selecting a small series therefore zooms the Y axis onto it.
    """
    lo = math.inf
    hi = -math.inf
    for i in visible_indices(matrix, state):
        for point in matrix[i].values:
            if not math.isfinite(point.value):
                continue
            lo = min(lo, point.value)
            hi = max(hi, point.value)
    if lo > hi:
        return None
    return lo, hi


def draw_order(matrix: Sequence[SampleStream], state: SelectionState) -> list[int]:
    """Visible non-selected series in result order, then the selected one on top."""
    order = [i for i in visible_indices(matrix, state) if i != state.selected_index]
    if 0 <= state.selected_index < len(matrix):
        order.append(state.selected_index)
    return order


def legend_entries(matrix: Sequence[SampleStream]) -> list[LegendEntry]:
    # Unfiltered: the legend always lists every series with its own color.
    return [LegendEntry(metric_string(stream.metric), i) for i, stream in enumerate(matrix)]


def chart_height(width: int) -> int:
    return max(width // CHART_HEIGHT_RATIO, MIN_CHART_HEIGHT)
