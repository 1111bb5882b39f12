"""
Reqterm - UI Widgets

The workspace that captures raw key input and one absolutely positioned
view per layout pane.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import logging

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from .constants import STATUSLINE_VIEW
from .editors import KeyEvent
from .layout import Pane

logger = logging.getLogger('Widgets')

# Textual key names for characters that arrive with a modifier
_KEY_CHARACTERS = {
    "left_square_bracket": "[",
    "right_square_bracket": "]",
    "space": " ",
}


def key_event_from_textual(event: events.Key) -> KeyEvent:
    """Translate a Textual key press into the session's KeyEvent."""
    key = event.key
    if key.startswith("meta+"):
        key = "alt+" + key[len("meta+"):]

    if key.startswith("alt+"):
        rest = key[len("alt+"):]
        rest = _KEY_CHARACTERS.get(rest, rest)
        if len(rest) == 1:
            return KeyEvent(ch=rest, alt=True)
        return KeyEvent(key=rest, alt=True)

    if event.is_printable and event.character and not key.startswith("ctrl+"):
        return KeyEvent(ch=event.character)
    return KeyEvent(key=key)


# ============================================================================
# WORKSPACE
# ============================================================================

class Workspace(Widget):
    """Full-screen focus target; every key press is handed to the session."""

    can_focus = True

    DEFAULT_CSS = """
    Workspace {
        layers: base popup overlay;
        width: 1fr;
        height: 1fr;
    }
    """

    class KeyPressed(Message):
        """Emitted for every key press captured by the workspace."""

        def __init__(self, key_event: KeyEvent) -> None:
            super().__init__()
            self.key_event = key_event

    class Pasted(Message):
        """Emitted for bracketed paste input."""

        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        key_event = key_event_from_textual(event)
        logger.trace("Workspace:key %r -> %r", event.key, key_event)
        self.post_message(self.KeyPressed(key_event))

    def on_paste(self, event: events.Paste) -> None:
        event.stop()
        self.post_message(self.Pasted(event.text))


# ============================================================================
# PANE VIEW
# ============================================================================

class PaneView(Widget):
    """Renders one Pane: frame and title from CSS, text, cursor and highlight row."""

    DEFAULT_CSS = """
    PaneView {
        position: absolute;
        overflow: hidden hidden;
        background: $surface;
    }
    PaneView.-framed {
        border: round $panel-lighten-2;
        border-title-color: $text;
    }
    PaneView.-framed.-focused {
        border: round $accent;
    }
    PaneView.-status {
        background: $primary-darken-2;
        color: $text;
    }
    PaneView.-overlay {
        background: $boost;
        color: $warning;
    }
    """

    def __init__(self, pane: Pane) -> None:
        super().__init__(id=f"pane-{pane.name}")
        self.pane = pane
        self.focused_pane = False
        self.cursor_visible = False
        self.set_class(pane.name == STATUSLINE_VIEW, "-status")

    def sync(self, pane: Pane, focused: bool, cursor_visible: bool) -> None:
        self.pane = pane
        self.focused_pane = focused
        self.cursor_visible = cursor_visible
        x0, y0, x1, y1 = pane.rect
        self.styles.layer = pane.layer
        self.styles.offset = (x0, y0)
        self.styles.width = max(0, x1 - x0)
        self.styles.height = max(0, y1 - y0)
        self.set_class(pane.frame, "-framed")
        self.set_class(focused, "-focused")
        self.set_class(pane.layer == "overlay", "-overlay")
        self.border_title = pane.title if pane.frame else None
        self.refresh()

    def render(self) -> Text:
        pane = self.pane
        width, height = pane.inner_size()
        if width <= 0 or height <= 0:
            return Text("")

        lines = pane.visual_lines()
        visible: list[Text] = []
        for row in range(pane.origin, min(len(lines), pane.origin + height)):
            line = lines[row]
            if not pane.wrap:
                line = line[pane.origin_x:pane.origin_x + width]
            line = line.copy()
            if pane.highlight == row:
                line.stylize("bold yellow")
            visible.append(line)

        if self.focused_pane and self.cursor_visible and pane.editable:
            self._draw_cursor(visible, width)

        return Text("\n").join(visible)

    def _draw_cursor(self, visible: list[Text], width: int) -> None:
        pane = self.pane
        line, column = pane.buffer.line_and_column()
        row = line - pane.origin
        column -= pane.origin_x
        if not (0 <= row < len(visible)) or not (0 <= column < width):
            return
        text = visible[row]
        if column >= len(text):
            text.append(" " * (column - len(text) + 1))
        text.stylize("reverse", column, column + 1)


__all__ = ['Workspace', 'PaneView', 'key_event_from_textual']
