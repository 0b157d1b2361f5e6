"""Interactive query controller.

Single owner of UI state. The app feeds it key presses, resizes, spinner
ticks and query results; each handler mutates state synchronously and
may return a Command for the app to carry out (run a QueryTask off the
event loop, quit, scroll).

// [LAW:single-enforcer] Every key goes through handle_key. Textual bindings
// never see keys while the query view is up, so typing a query can't
// trigger a shortcut.
// [LAW:one-source-of-truth] Per-mode lifecycle lives in ModeSession; the
// input mode is derived from insert_mode and focused_pane, never stored.

Each mode keeps its own session. Results for a mode other than the one on
screen update that mode's session without touching the display; results
whose issue sequence is older than the mode's latest are dropped.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from rich.text import Text

from peat.promql import format_query
from peat.selection import NO_SELECTION, LegendEntry, SelectionState
from peat.tables import TableModel
from peat.tui.constants import CHART_WIDTH_PADDING, DEFAULT_TERMINAL_WIDTH, SPINNER_FRAMES
from peat.tui.editor import LineEditor
from peat.tui.input_modes import HELP_TEXT, MODE_KEYMAP, InputMode, key_name
from peat.tui.modes import MODES, Mode
from peat.tui.state import (
    Command,
    FocusedPane,
    Fetch,
    ModeSession,
    QueryMode,
    QueryResult,
    QueryTask,
    Quit,
    Scroll,
    TUIState,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Window = Callable[[], tuple[datetime, datetime]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _terminal_width() -> int:
    try:
        return os.get_terminal_size().columns
    except OSError:
        return DEFAULT_TERMINAL_WIDTH


class Controller:
    def __init__(
        self,
        client: Any,
        *,
        range_value: timedelta,
        step: timedelta,
        limit: int,
        timeout: timedelta,
        clock: Clock | None = None,
        width: int = 0,
        height: int = 0,
    ):
        self.client = client
        self.range_value = range_value
        self.step = step
        self.limit = limit
        self.timeout = timeout
        self.clock: Clock = clock or _utc_now
        self.width = width
        self.height = height

        self.mode = QueryMode.INSTANT
        self.sessions: dict[QueryMode, ModeSession] = {m: ModeSession() for m in QueryMode}
        self.editor = LineEditor()
        self.insert_mode = True
        self.focused_pane = FocusedPane.QUERY
        self.show_shortcuts = False
        self.selection = SelectionState()

        # Results, one slot per mode kind
        self.vector: list = []
        self.matrix: list = []
        self.series: list[dict[str, str]] = []
        self.labels: list[str] = []
        self.label_values: list[str] = []
        self.selected_label_name = ""
        self.selected_label_index = 0
        self.viewing_label_values = False

        # Render artefacts rebuilt from the results above
        self.bar_chart = Text()
        self.range_chart = Text()
        self.legend_entries: list[LegendEntry] = []
        self.legend_table: TableModel | None = None
        self.series_table: TableModel | None = None
        self.labels_table: TableModel | None = None

        self.spinner_frame = 0
        self.loading_message = ""

    # ─── Derived state ───────────────────────────────────────────────────

    @property
    def mode_impl(self) -> Mode:
        return MODES[self.mode]

    @property
    def session(self) -> ModeSession:
        return self.sessions[self.mode]

    @property
    def state(self) -> TUIState:
        return self.session.state

    @property
    def legend_focused(self) -> bool:
        return self.focused_pane is FocusedPane.LEGEND

    @property
    def input_mode(self) -> InputMode:
        if self.legend_focused:
            return InputMode.LEGEND
        if self.insert_mode:
            return InputMode.INSERT
        return InputMode.NORMAL

    @property
    def query_text(self) -> str:
        return self.editor.text

    @property
    def spinner(self) -> str:
        return SPINNER_FRAMES[self.spinner_frame % len(SPINNER_FRAMES)]

    def chart_width(self) -> int:
        width = self.width or _terminal_width()
        return max(width - CHART_WIDTH_PADDING, 1)

    def help_text(self) -> str:
        if self.input_mode is InputMode.LEGEND:
            return self.mode_impl.help_text(self)
        return HELP_TEXT[self.input_mode]

    # ─── Key dispatch ────────────────────────────────────────────────────

    def handle_key(self, key: str, character: str | None = None) -> Command | None:
        """Route one key press. Returns a Command for the app, or None."""
        if key == "ctrl+c":
            return Quit()

        if self.show_shortcuts:
            if key_name(key, character) == "q":
                return Quit()
            self.show_shortcuts = False
            return None

        # Only quit is honoured while this mode's query is in flight.
        if self.state is TUIState.LOADING:
            return None

        name = key_name(key, character)
        mode = self.input_mode

        if mode is InputMode.LEGEND:
            return self.mode_impl.handle_legend_key(self, name)

        action = MODE_KEYMAP[mode].get(name)
        if mode is InputMode.INSERT and action is None:
            self.editor.handle_key(key, character)
            return None
        if action is None:
            return None
        return self._dispatch(action)

    def _dispatch(self, action: str) -> Command | None:
        verb, _, arg = action.partition(":")
        handler = getattr(self, f"_action_{verb}")
        return handler(arg) if arg else handler()

    # ─── Actions ─────────────────────────────────────────────────────────

    def _action_quit(self) -> Command:
        return Quit()

    def _action_cycle_mode(self) -> None:
        self.switch_to_mode(self.mode.next())

    def _action_switch_mode(self, name: str) -> None:
        self.switch_to_mode(QueryMode[name])

    def _action_run_query(self) -> Command | None:
        return self.execute_query()

    def _action_submit(self) -> Command | None:
        self.insert_mode = False
        return self.execute_query()

    def _action_enter_insert(self) -> None:
        self.insert_mode = True
        self.focused_pane = FocusedPane.QUERY

    def _action_leave_insert(self) -> None:
        self.insert_mode = False

    def _action_toggle_interactive(self) -> Command | None:
        if self.state is not TUIState.RESULTS:
            return None
        return self.mode_impl.handle_interactive_toggle(self)

    def _action_format_query(self) -> None:
        if not self.editor.text:
            return
        self.editor.set_text(format_query(self.editor.text))

    def _action_escape(self) -> None:
        self.escape()

    def _action_show_shortcuts(self) -> None:
        self.show_shortcuts = True

    def _action_scroll(self, direction: str) -> Command | None:
        if self.state is not TUIState.RESULTS:
            return None
        return Scroll(int(direction))

    # ─── Operations ──────────────────────────────────────────────────────

    def switch_to_mode(self, new_mode: QueryMode) -> None:
        if new_mode is self.mode:
            return
        self.session.query_text = self.editor.text
        logger.debug("switching mode %s -> %s", self.mode.value, new_mode.value)
        self.mode = new_mode
        self.editor.set_text(self.session.query_text)
        self.selection.reset()
        self.focused_pane = FocusedPane.QUERY
        self.mode_impl.on_switch_to(self)

    def escape(self) -> None:
        """Leave table/legend focus; Range also drops the selected series."""
        self.focused_pane = FocusedPane.QUERY
        if self.mode is QueryMode.RANGE and self.legend_entries:
            self.selection.selected_index = NO_SELECTION
            self.mode_impl.render(self)

    def focus_legend(self) -> None:
        self.focused_pane = FocusedPane.LEGEND
        self.insert_mode = False

    def unfocus_legend(self) -> None:
        self.focused_pane = FocusedPane.QUERY

    def execute_query(self) -> QueryTask | None:
        """Run the current query text; a no-op when the text is empty."""
        text = self.editor.text
        if not text.strip():
            return None
        self.session.query_text = text
        return self.issue(self.mode_impl.execute_query(self), f"Executing query: {text}")

    def issue(self, task: QueryTask, message: str) -> QueryTask:
        """Put the task's mode into Loading and hand the task back for the app to run."""
        session = self.sessions[task.mode]
        session.state = TUIState.LOADING
        session.error = None
        session.warnings = ()
        self.loading_message = message
        self.spinner_frame = 0
        logger.info("%s: %s", task.mode.value, message)
        return task

    def new_task(self, fetch: Fetch, label_name: str | None = None) -> QueryTask:
        """Wrap *fetch* in a task tagged with a fresh sequence for the current mode."""
        session = self.session
        session.issued_seq += 1
        return QueryTask(self.mode, session.issued_seq, fetch, label_name)

    def window_fn(self) -> Window:
        """Query window ending when the task runs, not when it was issued."""
        clock, span = self.clock, self.range_value

        def window() -> tuple[datetime, datetime]:
            end = clock()
            return end - span, end

        return window

    def handle_result(self, result: QueryResult) -> None:
        session = self.sessions[result.mode]
        if result.seq != session.issued_seq:
            logger.debug(
                "dropping stale %s result (seq %d, latest %d)",
                result.mode.value, result.seq, session.issued_seq,
            )
            return
        MODES[result.mode].apply_result(self, result)

    def finish_result(self, result: QueryResult, keep_focus: bool = False) -> None:
        """Record *result* in its mode's session and leave Loading."""
        session = self.sessions[result.mode]
        session.warnings = result.warnings
        session.error = result.error
        session.duration = result.duration
        session.state = TUIState.ERROR if result.error is not None else TUIState.RESULTS
        if result.mode is self.mode and not keep_focus:
            self.insert_mode = False
            self.focused_pane = FocusedPane.QUERY

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        if self.state is TUIState.RESULTS:
            self.mode_impl.render(self)

    def tick(self) -> bool:
        """Advance the spinner. Returns True when a redraw is needed."""
        if self.state is not TUIState.LOADING:
            return False
        self.spinner_frame = (self.spinner_frame + 1) % len(SPINNER_FRAMES)
        return True

