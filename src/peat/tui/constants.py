"""Layout and timing constants for the interactive UI."""

# Fallback terminal width when the size cannot be determined.
DEFAULT_TERMINAL_WIDTH = 80

# Horizontal chrome (borders + padding) subtracted from the terminal width for charts.
CHART_WIDTH_PADDING = 6

SPINNER_FRAMES = ("⣾", "⣽", "⣻", "⢿", "⡿", "⣟", "⣯", "⣷")
SPINNER_INTERVAL = 0.1  # seconds

QUERY_PLACEHOLDER = "Enter a PromQL query (/ to edit)"
