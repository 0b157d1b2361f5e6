"""Centralized logging bootstrap for peat.

// [LAW:single-enforcer] Logger handler wiring is enforced in this module only.
// [LAW:one-source-of-truth] Runtime log path/level are derived here and returned to callers.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path


@dataclass(frozen=True)
class LoggingRuntime:
    """Resolved runtime logging configuration."""

    level_name: str
    level: int
    file_path: str


_RUNTIME: LoggingRuntime | None = None
_STREAM_HANDLER: logging.Handler | None = None


def _parse_level(raw: str) -> tuple[str, int]:
    normalized = str(raw or "WARNING").strip().upper()
    level = getattr(logging, normalized, logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING
    return str(logging.getLevelName(level)), int(level)


def _default_log_path(command: str) -> str:
    log_dir = Path(
        os.environ.get("PEAT_LOG_DIR", os.path.expanduser("~/.local/share/peat/logs"))
    )
    log_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return str(log_dir / f"{command}-{ts}-{os.getpid()}.log")


def _make_stream_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[%(name)s] %(levelname)s %(message)s"))
    return handler


def _make_file_handler(level: int, file_path: str) -> logging.Handler:
    handler = RotatingFileHandler(
        file_path,
        maxBytes=20 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler


def configure(command: str = "peat", level: str | None = None) -> LoggingRuntime:
    """Configure the peat logger hierarchy with stderr + rotating file handlers.

    *level* overrides PEAT_LOG_LEVEL. Idempotent: repeated calls return the
    originally configured runtime.
    """
    global _RUNTIME, _STREAM_HANDLER
    if _RUNTIME is not None:
        return _RUNTIME

    level_name, level_value = _parse_level(level or os.environ.get("PEAT_LOG_LEVEL", "WARNING"))
    file_path = os.environ.get("PEAT_LOG_FILE") or _default_log_path(command)
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    # [LAW:single-enforcer] All peat module loggers propagate to this one logger.
    logger = logging.getLogger("peat")
    logger.setLevel(level_value)
    logger.propagate = False
    logger.handlers.clear()
    _STREAM_HANDLER = _make_stream_handler(level_value)
    logger.addHandler(_STREAM_HANDLER)
    logger.addHandler(_make_file_handler(level_value, file_path))

    # Keep third-party logging quiet unless it is warning+.
    root = logging.getLogger()
    if root.level > logging.WARNING:
        root.setLevel(logging.WARNING)

    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(level_name=level_name, level=level_value, file_path=file_path)
    return _RUNTIME


def detach_stream_handler() -> None:
    """Stop writing to stderr while a full-screen UI owns the terminal."""
    if _STREAM_HANDLER is not None:
        logging.getLogger("peat").removeHandler(_STREAM_HANDLER)


def attach_stream_handler() -> None:
    if _STREAM_HANDLER is not None:
        peat_logger = logging.getLogger("peat")
        if _STREAM_HANDLER not in peat_logger.handlers:
            peat_logger.addHandler(_STREAM_HANDLER)


def get_runtime() -> LoggingRuntime | None:
    """Return configured logging runtime, if configure() has run."""
    return _RUNTIME
