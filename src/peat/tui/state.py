"""Controller state types, result events and commands.

// [LAW:one-source-of-truth] Enum discriminators for modes, states and panes.

Commands are what a key or result handler asks the shell to do next:
run a QueryTask on a worker, quit, or scroll the results pane. QueryTask
owns the blocking backend call and converts every failure into the
QueryResult it returns, so nothing raised by the backend reaches the
event loop.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Union

logger = logging.getLogger(__name__)


class QueryMode(Enum):
    """Query kinds, in tab-cycling order."""

    INSTANT = "/query"
    RANGE = "/query_range"
    SERIES = "/series"
    LABELS = "/labels"

    @property
    def number(self) -> int:
        return list(QueryMode).index(self) + 1

    def next(self) -> QueryMode:
        members = list(QueryMode)
        return members[(members.index(self) + 1) % len(members)]


class TUIState(Enum):
    INPUT = auto()
    LOADING = auto()
    RESULTS = auto()
    ERROR = auto()


class FocusedPane(Enum):
    QUERY = auto()
    RESULTS = auto()
    LEGEND = auto()


@dataclass
class ModeSession:
    """Per-mode state that survives mode switches."""

    query_text: str = ""
    state: TUIState = TUIState.INPUT
    warnings: tuple[str, ...] = ()
    error: str | None = None
    duration: float = 0.0  # seconds
    issued_seq: int = 0


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one QueryTask, tagged with the mode and issue sequence."""

    mode: QueryMode
    seq: int
    payload: Any = None
    warnings: tuple[str, ...] = ()
    error: str | None = None
    duration: float = 0.0
    # Set only for label-values fetches.
    label_name: str | None = None


# (payload, warnings)
Fetch = Callable[[], tuple[Any, list[str]]]


@dataclass(frozen=True)
class QueryTask:
    mode: QueryMode
    seq: int
    fetch: Fetch
    label_name: str | None = None

    def run(self) -> QueryResult:
        """Call the backend and time it. Blocking; run off the event loop."""
        started = time.monotonic()
        try:
            payload, warnings = self.fetch()
        except Exception as exc:
            # Task boundary: every backend failure becomes the result's error.
            logger.warning("%s query failed: %s", self.mode.value, exc)
            return QueryResult(
                mode=self.mode,
                seq=self.seq,
                error=str(exc) or type(exc).__name__,
                duration=time.monotonic() - started,
                label_name=self.label_name,
            )
        duration = time.monotonic() - started
        logger.info("%s query finished in %.3fs", self.mode.value, duration)
        return QueryResult(
            mode=self.mode,
            seq=self.seq,
            payload=payload,
            warnings=tuple(warnings or ()),
            duration=duration,
            label_name=self.label_name,
        )


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Scroll:
    direction: int  # +1 down, -1 up (half a page)


Command = Union[QueryTask, Quit, Scroll]
