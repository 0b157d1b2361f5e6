"""Keyboard shortcuts overlay - static content, centered over the screen."""

from textual.widgets import Static

from peat.tui import view


class ShortcutsPanel(Static):
    """Overlay listing keyboard shortcuts. Any key closes it."""

    DEFAULT_CSS = """
    ShortcutsPanel {
        layer: overlay;
        dock: top;
        width: 100%;
        height: 100%;
        align: center middle;
        content-align: center middle;
        background: $background 80%;
        display: none;
    }
    ShortcutsPanel.visible {
        display: block;
    }
    """

    def __init__(self, **kwargs):
        super().__init__("", **kwargs)
        self._refresh_display()

    def _refresh_display(self):
        self.update(view.shortcuts_overlay())

    def show(self, visible: bool) -> None:
        self.set_class(visible, "visible")


def create_shortcuts_panel() -> ShortcutsPanel:
    """Create a new ShortcutsPanel instance."""
    return ShortcutsPanel(id="shortcuts")
