"""Pure mode system for key dispatch.

All keyboard input routes through Controller.handle_key based on the
current input mode. The mode is derived from controller state, never
stored separately:

  INSERT  keys edit the query; only escape/enter/tab are intercepted
  NORMAL  single-key shortcuts
  LEGEND  keys go to the active query mode's table/legend handler
"""

from enum import Enum, auto


class InputMode(Enum):
    INSERT = auto()
    NORMAL = auto()
    LEGEND = auto()


def key_name(key: str, character: str | None = None) -> str:
    """Normalize a terminal key event to one lookup name.

    Printable characters are looked up by the character itself ("?", "/",
    "G") so shifted keys need no aliases; everything else by key name
    ("escape", "ctrl+d", "space").
    """
    if character and len(character) == 1 and character.isprintable() and character != " ":
        return character
    return key


# [LAW:one-source-of-truth] Key→action mapping per mode.
# LEGEND is absent: each query mode owns its own legend keys.
MODE_KEYMAP: dict[InputMode, dict[str, str]] = {
    InputMode.NORMAL: {
        "q": "quit",
        "tab": "cycle_mode",
        "enter": "run_query",
        "/": "enter_insert",
        "i": "toggle_interactive",
        "f": "format_query",
        "escape": "escape",
        "1": "switch_mode:INSTANT",
        "2": "switch_mode:RANGE",
        "3": "switch_mode:SERIES",
        "4": "switch_mode:LABELS",
        "?": "show_shortcuts",
        "ctrl+d": "scroll:1",
        "ctrl+u": "scroll:-1",
    },
    InputMode.INSERT: {
        "escape": "leave_insert",
        "enter": "submit",
        "tab": "cycle_mode",
    },
}


# [LAW:one-source-of-truth] Help bar text per mode (LEGEND text comes from the query mode).
HELP_TEXT: dict[InputMode, str] = {
    InputMode.INSERT: "esc: normal | enter: run | tab: mode | ctrl+c: quit",
    InputMode.NORMAL: "/: edit | ?: shortcuts | q: quit",
}


# Display data for the shortcuts overlay.
# Format: list of (group_title, [(key_display, description), ...]) tuples.
KEY_GROUPS: list[tuple[str, list[tuple[str, str]]]] = [
    ("Global", [
        ("Tab", "Cycle through modes"),
        ("1-4", "Switch to mode directly"),
        ("Enter", "Execute query"),
        ("^D/^U", "Scroll results"),
        ("q", "Quit"),
        ("Ctrl+C", "Force quit"),
    ]),
    ("Query Editing", [
        ("/", "Enter insert mode"),
        ("Esc", "Exit insert mode"),
        ("f", "Format PromQL query"),
        ("^A/^E", "Line start / end"),
        ("^W", "Delete word"),
    ]),
    ("Interactive Mode", [
        ("i", "Toggle interactive mode"),
        ("j/k", "Navigate up/down"),
        ("h/l", "Page up/down"),
        ("g/G", "First / last row"),
        ("Space", "Pin series (range)"),
        ("Enter", "Label values (labels)"),
        ("Esc", "Exit interactive mode"),
    ]),
]
