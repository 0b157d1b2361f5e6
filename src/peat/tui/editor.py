"""Query line editor.

Text plus cursor, edited one key at a time. Owned by the controller so
insert-mode typing goes through the same single key dispatcher as every
shortcut.
"""

from dataclasses import dataclass

from rich.text import Text


@dataclass
class LineEditor:
    text: str = ""
    cursor: int = 0

    def set_text(self, text: str) -> None:
        self.text = text
        self.cursor = len(text)

    def _insert(self, chars: str) -> None:
        self.text = self.text[: self.cursor] + chars + self.text[self.cursor :]
        self.cursor += len(chars)

    def handle_key(self, key: str, character: str | None = None) -> bool:
        """Apply one editing key. Returns True if the text or cursor changed."""
        if key == "backspace":
            if self.cursor == 0:
                return False
            self.text = self.text[: self.cursor - 1] + self.text[self.cursor :]
            self.cursor -= 1
            return True

        if key == "delete":
            if self.cursor >= len(self.text):
                return False
            self.text = self.text[: self.cursor] + self.text[self.cursor + 1 :]
            return True

        if key == "left":
            if self.cursor == 0:
                return False
            self.cursor -= 1
            return True

        if key == "right":
            if self.cursor >= len(self.text):
                return False
            self.cursor += 1
            return True

        if key in ("home", "ctrl+a"):
            self.cursor = 0
            return True

        if key in ("end", "ctrl+e"):
            self.cursor = len(self.text)
            return True

        if key == "ctrl+w":
            # Delete back to the previous whitespace boundary.
            start = self.cursor
            while start > 0 and self.text[start - 1].isspace():
                start -= 1
            while start > 0 and not self.text[start - 1].isspace():
                start -= 1
            if start == self.cursor:
                return False
            self.text = self.text[:start] + self.text[self.cursor :]
            self.cursor = start
            return True

        if key == "ctrl+u":
            if self.cursor == 0:
                return False
            self.text = self.text[self.cursor :]
            self.cursor = 0
            return True

        if key == "ctrl+k":
            if self.cursor >= len(self.text):
                return False
            self.text = self.text[: self.cursor]
            return True

        if character and len(character) == 1 and character.isprintable():
            self._insert(character)
            return True

        return False

    def render(self, active: bool, placeholder: str = "") -> Text:
        line = Text()
        if not self.text and not active:
            line.append(placeholder, style="dim")
            return line
        if not active:
            line.append(self.text)
            return line
        if self.cursor < len(self.text) and self.text[self.cursor] != "\n":
            line.append(self.text[: self.cursor])
            line.append(self.text[self.cursor], style="reverse")  # Inverted cursor
            line.append(self.text[self.cursor + 1 :])
        else:
            line.append(self.text[: self.cursor])
            line.append(" ", style="reverse")  # Block cursor at end
            line.append(self.text[self.cursor :])
        return line
