"""Settings file I/O for peat.

Reads a JSON settings file at XDG_CONFIG_HOME/peat/settings.json. Known
top-level keys:

    prometheus_url  backend base URL
    timeout         per-request timeout ("60s")
    range           range window for range/series/label queries ("1h")
    step            range query step ("1m")
    limit           series query limit (int)

Values resolve flag > environment > settings file > built-in default.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

from peat.durations import parse_duration

logger = logging.getLogger(__name__)

URL_ENV = "PEAT_PROMETHEUS_URL"

DEFAULT_TIMEOUT = timedelta(seconds=60)
DEFAULT_RANGE = timedelta(hours=1)
DEFAULT_STEP = timedelta(minutes=1)
DEFAULT_LIMIT = 100


def get_config_path() -> Path:
    """Return path to settings file.

    Uses XDG_CONFIG_HOME (default ~/.config) / peat / settings.json.
    """
    config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "peat" / "settings.json"


def load_settings() -> dict:
    """Load settings from JSON file. Returns empty dict on missing/corrupt file."""
    path = get_config_path()
    # [LAW:dataflow-not-control-flow] Always attempt read; empty dict is the "no data" value.
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("ignoring unreadable settings file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring settings file %s: top level is not an object", path)
        return {}
    return data


@dataclass(frozen=True)
class ResolvedSettings:
    prometheus_url: str
    timeout: timedelta
    range: timedelta
    step: timedelta
    limit: int


def _duration_setting(data: dict, key: str, default: timedelta) -> timedelta:
    raw = data.get(key)
    if raw is None:
        return default
    try:
        return parse_duration(str(raw))
    except ValueError:
        logger.warning("settings: invalid %s %r, using %s", key, raw, default)
        return default


def resolve(
    *,
    prometheus_url: str | None = None,
    timeout: timedelta | None = None,
    range_value: timedelta | None = None,
    step: timedelta | None = None,
    limit: int | None = None,
    data: dict[str, Any] | None = None,
) -> ResolvedSettings:
    """Merge explicit flag values with the environment and settings file."""
    data = load_settings() if data is None else data
    url = prometheus_url or os.environ.get(URL_ENV) or str(data.get("prometheus_url") or "")
    raw_limit = data.get("limit", DEFAULT_LIMIT)
    try:
        file_limit = int(raw_limit)
    except (TypeError, ValueError):
        logger.warning("settings: invalid limit %r, using %d", raw_limit, DEFAULT_LIMIT)
        file_limit = DEFAULT_LIMIT
    return ResolvedSettings(
        prometheus_url=url,
        timeout=timeout if timeout is not None else _duration_setting(data, "timeout", DEFAULT_TIMEOUT),
        range=range_value if range_value is not None else _duration_setting(data, "range", DEFAULT_RANGE),
        step=step if step is not None else _duration_setting(data, "step", DEFAULT_STEP),
        limit=limit if limit is not None else file_limit,
    )
