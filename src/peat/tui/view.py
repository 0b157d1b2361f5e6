"""Rich renderables for each region of the query screen.

Pure functions of controller state: the app calls these after every event
and pushes the results into its Static widgets. Nothing here mutates the
controller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich import box
from rich.console import Group, RenderableType
from rich.padding import Padding
from rich.panel import Panel
from rich.text import Text

from peat import palette
from peat.durations import format_latency
from peat.tui.constants import QUERY_PLACEHOLDER
from peat.tui.input_modes import KEY_GROUPS
from peat.tui.state import QueryMode, TUIState

if TYPE_CHECKING:
    from peat.tui.controller import Controller


def status_bar(ctl: Controller) -> Text:
    """Mode tabs plus the active mode's parameters (range, step, limit)."""
    inactive = f"bold {palette.MODE_INACTIVE}"
    active = f"bold {palette.MODE_ACTIVE_FOREGROUND} on {palette.BORDER_COLOR}"

    text = Text("  Mode: ")
    for i, mode in enumerate(QueryMode):
        if i:
            text.append(" | ")
        text.append(f" {mode.number} {mode.value} ", style=active if mode is ctl.mode else inactive)
    text.append(ctl.mode_impl.render_status_params(ctl))
    return text


def query_input(ctl: Controller) -> Panel:
    return Panel(
        ctl.editor.render(ctl.insert_mode, QUERY_PLACEHOLDER),
        box=box.ROUNDED,
        border_style=palette.FOCUS_COLOR if ctl.insert_mode else palette.BORDER_COLOR,
        padding=(0, 1),
    )


def results(ctl: Controller) -> RenderableType:
    state = ctl.state
    if state is TUIState.LOADING:
        return Padding(Text(f"{ctl.spinner} {ctl.loading_message}"), (2, 4))
    if state is TUIState.ERROR:
        line = Text("Error: ", style=f"bold {palette.ERROR_COLOR}")
        line.append(ctl.session.error or "unknown error")
        return Padding(line, (1, 2))
    if state is TUIState.RESULTS:
        return ctl.mode_impl.render_results_content(ctl)
    return Text(" ")


def results_status_bar(ctl: Controller) -> Panel:
    content = ""
    duration = ctl.session.duration
    if duration:
        content = f" Latency: {format_latency(duration)}"
    if ctl.state is TUIState.RESULTS:
        content += ctl.mode_impl.render_results_status_bar(ctl)
    return Panel(
        Text(content),
        box=box.ROUNDED,
        border_style=palette.BORDER_COLOR,
        padding=(0, 1),
    )


def help_bar(ctl: Controller) -> Text:
    return Text(ctl.help_text())


def shortcuts_overlay() -> Panel:
    """Keyboard shortcut reference, grouped.

    // [LAW:one-source-of-truth] KEY_GROUPS from input_modes is the sole data source.
    """
    accent = palette.FOCUS_COLOR
    body = Text()
    body.append("Keyboard Shortcuts", style=f"bold {accent}")
    body.append("\n")
    for group_title, keys in KEY_GROUPS:
        body.append("\n")
        body.append(group_title, style=f"bold {accent}")
        body.append("\n")
        for key_display, description in keys:
            body.append("  ")
            body.append(f"{key_display:<8}", style=f"bold {palette.BAR_FOREGROUND}")
            body.append("  ")
            body.append(description, style=palette.MUTED_COLOR)
            body.append("\n")
    body.append("\n")
    body.append("Press any key to close", style=palette.MUTED_COLOR)
    return Panel(body, box=box.ROUNDED, border_style=accent, padding=(1, 2), expand=False)


def screen(ctl: Controller) -> Group:
    """Whole screen as one renderable (snapshot/debug output)."""
    if ctl.show_shortcuts:
        return Group(shortcuts_overlay())
    return Group(
        status_bar(ctl),
        query_input(ctl),
        results(ctl),
        results_status_bar(ctl),
        help_bar(ctl),
    )
