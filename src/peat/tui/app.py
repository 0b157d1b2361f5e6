"""Main TUI application using Textual.

// [LAW:locality-or-seam] Thin shell around Controller: forwards keys,
//   resizes, ticks and results; carries out the returned Commands; pushes
//   the view renderables into Static widgets.
// [LAW:single-enforcer] on_key is the sole key dispatcher.

Queries run on thread workers. A worker calls the blocking client, then
posts QueryFinished back into the message pump, so the controller is only
ever touched from the event loop.
"""

from __future__ import annotations

import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.css.query import NoMatches
from textual.message import Message
from textual.widgets import Static

from peat.tui import view
from peat.tui.constants import SPINNER_INTERVAL
from peat.tui.controller import Controller
from peat.tui.shortcuts_panel import ShortcutsPanel, create_shortcuts_panel
from peat.tui.state import Command, QueryResult, QueryTask, Quit, Scroll

logger = logging.getLogger(__name__)


class QueryFinished(Message):
    """Thread-safe bridge: query worker → app message pump."""

    def __init__(self, result: QueryResult) -> None:
        self.result = result
        super().__init__()


class ResultsView(VerticalScroll, can_focus=False):
    """Scrollable results region; scrolled by ctrl+d / ctrl+u only."""


class PeatApp(App):
    """Interactive Prometheus query client."""

    CSS = """
    Screen {
        layers: base overlay;
    }
    #status-bar, #help-bar {
        height: 1;
        background: #303030;
        color: #D0D0D0;
        padding: 0 1;
    }
    #query-input {
        height: auto;
    }
    ResultsView {
        height: 1fr;
    }
    #results-body {
        height: auto;
    }
    #results-status {
        height: auto;
        margin-top: 1;
    }
    """

    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(self, controller: Controller, **kwargs):
        super().__init__(**kwargs)
        self.controller = controller

    # ─── Widget accessors ──────────────────────────────────────────────

    def _query_safe(self, selector):
        try:
            return self.query_one(selector)
        except NoMatches:
            return None

    def _get_results_view(self) -> ResultsView | None:
        return self._query_safe(ResultsView)

    def _get_shortcuts(self) -> ShortcutsPanel | None:
        return self._query_safe(ShortcutsPanel)

    # ─── Lifecycle ─────────────────────────────────────────────────────

    def compose(self) -> ComposeResult:
        yield Static(id="status-bar")
        yield Static(id="query-input")
        with ResultsView(id="results"):
            yield Static(id="results-body")
        yield Static(id="results-status")
        yield Static(id="help-bar")
        yield create_shortcuts_panel()

    def on_mount(self) -> None:
        self.controller.resize(self.size.width, self.size.height)
        self.set_interval(SPINNER_INTERVAL, self._tick)
        self._refresh_view()

    def on_resize(self, event) -> None:
        self.controller.resize(event.size.width, event.size.height)
        self._refresh_view()

    def _tick(self) -> None:
        if self.controller.tick():
            self._refresh_results()

    # ─── Input ─────────────────────────────────────────────────────────

    async def on_key(self, event) -> None:
        """Forward every key to the controller, then act on its command."""
        event.prevent_default()
        event.stop()
        command = self.controller.handle_key(event.key, event.character)
        self._perform(command)
        self._refresh_view()

    def _perform(self, command: Command | None) -> None:
        if command is None:
            return
        if isinstance(command, Quit):
            self.exit()
        elif isinstance(command, Scroll):
            results = self._get_results_view()
            if results is not None:
                step = max(1, results.size.height // 2)
                results.scroll_relative(y=command.direction * step, animate=False)
        elif isinstance(command, QueryTask):
            self._start_query(command)

    def _start_query(self, task: QueryTask) -> None:
        def _do_query():
            result = task.run()
            self.post_message(QueryFinished(result))

        self.run_worker(_do_query, thread=True, exclusive=False, name=f"query-{task.mode.name}-{task.seq}")

    def on_query_finished(self, message: QueryFinished) -> None:
        self.controller.handle_result(message.result)
        self._refresh_view()

    # ─── Rendering ─────────────────────────────────────────────────────

    def _update(self, selector: str, renderable) -> None:
        widget = self._query_safe(selector)
        if widget is not None:
            widget.update(renderable)

    def _refresh_results(self) -> None:
        self._update("#results-body", view.results(self.controller))

    def _refresh_view(self) -> None:
        ctl = self.controller
        self._update("#status-bar", view.status_bar(ctl))
        self._update("#query-input", view.query_input(ctl))
        self._refresh_results()
        self._update("#results-status", view.results_status_bar(ctl))
        self._update("#help-bar", view.help_bar(ctl))
        panel = self._get_shortcuts()
        if panel is not None:
            panel.show(ctl.show_shortcuts)


def run(controller: Controller) -> None:
    """Run the interactive app until the user quits."""
    logger.info("starting interactive session against %r", controller.client)
    PeatApp(controller).run()
