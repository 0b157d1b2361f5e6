"""In-process tests for the Textual app shell."""

import pytest

from peat.selection import NO_SELECTION
from peat.tui.input_modes import InputMode
from peat.tui.state import QueryMode, TUIState
from tests.harness import (
    FakeClient,
    MessageCapture,
    make_matrix,
    make_sample,
    press_and_settle,
    run_app,
    type_text,
    wait_for_queries,
)

pytestmark = pytest.mark.textual


def record_exits(app):
    """Replace app.exit so quitting can be asserted while the pilot keeps running."""
    exits = []
    app.exit = lambda *args, **kwargs: exits.append(args)
    return exits


class TestStartup:
    async def test_starts_in_insert_mode(self):
        async with run_app() as (pilot, app):
            assert app.controller.input_mode is InputMode.INSERT
            assert app.controller.mode is QueryMode.INSTANT

    async def test_controller_gets_terminal_size(self):
        async with run_app(size=(100, 30)) as (pilot, app):
            assert app.controller.width == 100
            assert app.controller.height == 30


class TestQueryFlow:
    async def test_instant_query_runs_on_worker(self):
        client = FakeClient(query=lambda e: ([], [make_sample("up", 1, job="a")]))
        capture = MessageCapture()
        async with run_app(client, message_hook=capture) as (pilot, app):
            await type_text(pilot, "up")
            await press_and_settle(pilot, "enter")
            await wait_for_queries(pilot)

            assert client.calls_to("query")[0][1] == "up"
            assert [r.error for r in capture.query_results()] == [None]
            assert app.controller.state is TUIState.RESULTS
            assert app.controller.input_mode is InputMode.NORMAL

    async def test_range_selection_walkthrough(self):
        matrix = make_matrix(metric_a=[1, 2, 3], metric_b=[10, 20, 15], metric_c=[100, 50, 75])
        client = FakeClient(query_range=lambda e: (matrix, []))
        async with run_app(client) as (pilot, app):
            await press_and_settle(pilot, "escape", "2", "/")
            await type_text(pilot, "foo")
            await press_and_settle(pilot, "enter")
            await wait_for_queries(pilot)

            ctl = app.controller
            assert ctl.state is TUIState.RESULTS
            assert ctl.selection.selected_index == NO_SELECTION

            await press_and_settle(pilot, "i", "j")
            assert ctl.input_mode is InputMode.LEGEND
            assert ctl.selection.selected_index == 1

            await press_and_settle(pilot, "escape")
            assert ctl.input_mode is InputMode.NORMAL
            assert ctl.selection.selected_index == NO_SELECTION

    async def test_error_is_shown(self):
        def fail(expr):
            raise ConnectionError("connection refused")

        async with run_app(FakeClient(query=fail)) as (pilot, app):
            await type_text(pilot, "up")
            await press_and_settle(pilot, "enter")
            await wait_for_queries(pilot)
            assert app.controller.state is TUIState.ERROR
            assert app.controller.session.error == "connection refused"

    async def test_typing_q_in_insert_mode_does_not_quit(self):
        async with run_app() as (pilot, app):
            await type_text(pilot, "quantile")
            assert app.controller.query_text == "quantile"
            assert app.is_running


class TestKeys:
    async def test_tab_cycles_mode(self):
        async with run_app() as (pilot, app):
            await press_and_settle(pilot, "tab", "tab")
            assert app.controller.mode is QueryMode.SERIES

    async def test_shortcuts_overlay_toggles(self):
        async with run_app() as (pilot, app):
            panel = app.query_one("#shortcuts")
            assert not panel.has_class("visible")
            await press_and_settle(pilot, "escape", "?")
            assert panel.has_class("visible")
            await press_and_settle(pilot, "x")
            assert not panel.has_class("visible")

    async def test_q_quits_in_normal_mode(self):
        async with run_app() as (pilot, app):
            exits = record_exits(app)
            await press_and_settle(pilot, "escape", "q")
            assert exits

    async def test_ctrl_c_quits_from_insert_mode(self):
        async with run_app() as (pilot, app):
            exits = record_exits(app)
            await press_and_settle(pilot, "ctrl+c")
            assert exits


class TestResize:
    async def test_resize_updates_chart_width(self):
        async with run_app(size=(120, 40)) as (pilot, app):
            await pilot.resize_terminal(90, 30)
            await pilot.pause()
            assert app.controller.chart_width() == 84
