"""Duration parsing and formatting.

Range/step/timeout flags use Prometheus-style duration strings ("90s",
"1h30m", "2d"). Latency is shown the way the status bar wants it: µs below
a millisecond, ms below a second, one decimal of seconds above.
"""

from __future__ import annotations

import argparse
import re
from datetime import timedelta

_UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
    "w": 7 * 86400.0,
    "y": 365 * 86400.0,
}

# Largest unit first so "1h30m" prints that way and not "90m".
_FORMAT_UNITS: tuple[tuple[str, int], ...] = (
    ("w", 7 * 86400),
    ("d", 86400),
    ("h", 3600),
    ("m", 60),
    ("s", 1),
)

_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|[smhdwy])")


def parse_duration(text: str) -> timedelta:
    """Parse "1h30m" style strings. Raises ValueError on anything else."""
    raw = str(text).strip()
    if not raw:
        raise ValueError("empty duration")
    pos = 0
    total = 0.0
    for match in _PART_RE.finditer(raw):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(raw):
        raise ValueError(f"invalid duration {text!r}")
    return timedelta(seconds=total)


def format_duration(value: timedelta) -> str:
    """Compact Prometheus-style rendering: 1h, 1h30m, 90s -> 1m30s, 250ms."""
    total_ms = round(value.total_seconds() * 1000)
    if total_ms == 0:
        return "0s"
    sign = "-" if total_ms < 0 else ""
    total_ms = abs(total_ms)
    seconds, millis = divmod(total_ms, 1000)
    parts: list[str] = []
    for unit, size in _FORMAT_UNITS:
        count, seconds = divmod(seconds, size)
        if count:
            parts.append(f"{count}{unit}")
    if millis:
        parts.append(f"{millis}ms")
    return sign + "".join(parts)


def format_latency(seconds: float) -> str:
    micros = round(seconds * 1_000_000)
    if micros < 1000:
        return f"{micros}µs"
    if micros < 1_000_000:
        return f"{micros // 1000}ms"
    return f"{seconds:.1f}s"


def duration_arg(text: str) -> timedelta:
    """argparse ``type=`` adapter with the error argparse expects."""
    try:
        return parse_duration(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
