"""Chart renderers.

barchart() draws an instant vector as horizontal bars with Rich text.
timeseries() draws a range matrix as a braille line chart with plotext,
honouring the current series selection, and returns the legend alongside.

Both are deterministic for identical inputs. plotext keeps a module-level
figure, so call these from the UI thread only.
"""

from __future__ import annotations

import math
import time
from typing import AbstractSet, Sequence

import plotext as plt
from rich.text import Text

from peat import palette
from peat.prometheus import Sample, SampleStream, metric_string
from peat.selection import (
    NO_SELECTION,
    LegendEntry,
    SelectionState,
    chart_height,
    draw_order,
    legend_entries,
    y_range,
)

BAR_CHAR = "█"
X_TICKS = 5


def bar_label(sample: Sample) -> str:
    value = int(sample.value) if math.isfinite(sample.value) else sample.value
    return f"{metric_string(sample.metric)} ({value})"


def barchart(vector: Sequence[Sample], width: int) -> Text:
    """One labelled bar per sample, length proportional to value.

    Bars are scaled so the largest positive value spans *width* cells;
    zero, negative and non-finite values draw an empty bar.
    """
    width = max(width, 1)
    finite = [s.value for s in vector if math.isfinite(s.value)]
    peak = max(finite, default=0.0)
    out = Text()
    for i, sample in enumerate(vector):
        if i:
            out.append("\n")
        out.append(bar_label(sample), style=palette.LABEL_COLOR)
        out.append("\n")
        length = 0
        if peak > 0 and math.isfinite(sample.value) and sample.value > 0:
            length = max(1, round(sample.value / peak * width))
        out.append(BAR_CHAR * length, style=palette.series_style(i))
    return out


def _time_span(matrix: Sequence[SampleStream]) -> tuple[float, float] | None:
    stamps = [p.timestamp for stream in matrix for p in stream.values]
    if not stamps:
        return None
    return min(stamps), max(stamps)


def timeseries(
    matrix: Sequence[SampleStream],
    width: int,
    selected_index: int = NO_SELECTION,
    highlighted: AbstractSet[int] = frozenset(),
) -> tuple[Text, list[LegendEntry]]:
    """Render the visible series of *matrix* as a braille line chart.

    The X axis always spans the full result so it does not jump when the
    selection changes; the Y axis spans only what is visible.
    """
    width = max(width, 10)
    height = chart_height(width)
    state = SelectionState(selected_index, set(highlighted))

    plt.clear_figure()
    plt.theme("clear")
    plt.plotsize(width, height)
    plt.ticks_color(palette.hex_to_rgb(palette.AXIS_COLOR))

    bounds = y_range(matrix, state)
    span = _time_span(matrix)
    if bounds is not None and span is not None:
        for i in draw_order(matrix, state):
            points = [p for p in matrix[i].values if math.isfinite(p.value)]
            if not points:
                continue
            plt.plot(
                [p.timestamp for p in points],
                [p.value for p in points],
                marker="braille",
                color=palette.series_rgb(i),
            )
        lo, hi = bounds
        if lo == hi:
            lo, hi = lo - 1, hi + 1
        plt.ylim(lo, hi)
        start, end = span
        if end > start:
            plt.xlim(start, end)
            step = (end - start) / (X_TICKS - 1)
            ticks = [start + step * k for k in range(X_TICKS)]
            plt.xticks(ticks, [time.strftime("%H:%M", time.localtime(t)) for t in ticks])

    return Text.from_ansi(plt.build()), legend_entries(matrix)
