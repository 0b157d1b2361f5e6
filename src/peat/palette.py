"""Series palette for charts and legends.

Paul Tol's qualitative scheme plus a few extras, chosen to stay readable on
dark terminal backgrounds. Series i always gets palette[i % len(palette)],
so a series keeps its color however the chart is filtered.

// [LAW:one-source-of-truth] Every chart and legend color comes from here.
"""

from rich.style import Style

SERIES_PALETTE: tuple[str, ...] = (
    "#4477AA",  # blue
    "#EE6677",  # red
    "#228833",  # green
    "#CCBB44",  # yellow
    "#66CCEE",  # cyan
    "#AA3377",  # purple
    "#BBBBBB",  # grey
    "#EE8866",  # orange
    "#44BB99",  # teal
    "#FFAABB",  # pink
)

AXIS_COLOR = "#CCBB44"
LABEL_COLOR = "#66CCEE"

# Terminal chrome (xterm-256 equivalents)
BORDER_COLOR = "#5F5FFF"
FOCUS_COLOR = "#FF5FAF"
MUTED_COLOR = "#8A8A8A"
WARNING_COLOR = "#FFAF00"
ERROR_COLOR = "#FF0000"
BAR_FOREGROUND = "#D0D0D0"
MODE_INACTIVE = "#808080"
MODE_ACTIVE_FOREGROUND = "#FFFFFF"

# Assumed terminal background when checking series legibility.
BACKGROUND = "#000000"
MIN_CONTRAST = 3.0


def series_color(index: int) -> str:
    """Return the #RRGGBB color for the series at *index* (cycles)."""
    return SERIES_PALETTE[index % len(SERIES_PALETTE)]


def series_rgb(index: int) -> tuple[int, int, int]:
    return hex_to_rgb(series_color(index))


def series_style(index: int) -> Style:
    return Style(color=series_color(index))


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Parse #RRGGBB to (r, g, b) ints."""
    h = hex_color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def _wcag_relative_luminance(hex_color: str) -> float:
    """Compute WCAG 2.1 relative luminance from #RRGGBB hex."""
    r, g, b = hex_to_rgb(hex_color)
    rs, gs, bs = r / 255.0, g / 255.0, b / 255.0

    def linearize(c: float) -> float:
        return c / 12.92 if c <= 0.04045 else ((c + 0.055) / 1.055) ** 2.4

    return 0.2126 * linearize(rs) + 0.7152 * linearize(gs) + 0.0722 * linearize(bs)


def contrast_ratio(hex1: str, hex2: str) -> float:
    """WCAG 2.1 contrast ratio between two hex colors."""
    l1 = _wcag_relative_luminance(hex1)
    l2 = _wcag_relative_luminance(hex2)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def legible_on_background(hex_color: str, background: str = BACKGROUND) -> bool:
    return contrast_ratio(hex_color, background) >= MIN_CONTRAST
