"""
Reqterm - Editor Capability Chain

Text buffers and the composable input units that turn key events into
buffer edits for each pane.

Units wrap one another: each one either fully handles an event or forwards
it to the unit it wraps. handle() returns True when the event was consumed.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .constants import AUTOCOMPLETE_MAX_HEIGHT, AUTOCOMPLETE_VIEW
from . import utils  # noqa: F401  (registers Logger.trace)


logger = logging.getLogger('Editors')


# ============================================================================
# KEY EVENTS AND BUFFERS
# ============================================================================

@dataclass(frozen=True)
class KeyEvent:
    """A single key press: a named key, or a printable character in ch."""

    key: str = ""
    ch: str = ""
    alt: bool = False

    @property
    def printable(self) -> bool:
        return bool(self.ch) and not self.key and not self.alt

    @property
    def spec(self) -> str:
        """Normalized binding name, e.g. "ctrl+r", "alt+h", "enter"."""
        name = self.key or self.ch
        return f"alt+{name}" if self.alt else name


class TextBuffer:
    """Editable text with a single cursor stored as a character offset."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.cursor = len(text)

    def __repr__(self) -> str:
        return f"TextBuffer({self.text!r}, cursor={self.cursor})"

    def set_text(self, text: str) -> None:
        self.text = text
        self.cursor = len(text)

    def lines(self) -> list[str]:
        return self.text.split("\n")

    def insert(self, chars: str) -> None:
        self.text = self.text[:self.cursor] + chars + self.text[self.cursor:]
        self.cursor += len(chars)

    def delete(self, back: bool = True) -> bool:
        if back:
            if self.cursor == 0:
                return False
            self.text = self.text[:self.cursor - 1] + self.text[self.cursor:]
            self.cursor -= 1
            return True
        if self.cursor >= len(self.text):
            return False
        self.text = self.text[:self.cursor] + self.text[self.cursor + 1:]
        return True

    def move(self, dx: int) -> None:
        self.cursor = max(0, min(len(self.text), self.cursor + dx))

    def line_and_column(self) -> tuple[int, int]:
        before = self.text[:self.cursor]
        line = before.count("\n")
        column = len(before) - (before.rfind("\n") + 1)
        return line, column

    def offset_of(self, line: int, column: int) -> int:
        lines = self.lines()
        line = max(0, min(len(lines) - 1, line))
        column = max(0, min(len(lines[line]), column))
        return sum(len(text) + 1 for text in lines[:line]) + column

    def move_to_line(self, line: int, column: int = 0) -> None:
        self.cursor = self.offset_of(line, column)

    def move_vertical(self, dy: int) -> bool:
        """Move dy lines keeping the column; False when there is no such line."""
        line, column = self.line_and_column()
        target = line + dy
        if target < 0 or target >= len(self.lines()):
            return False
        self.move_to_line(target, column)
        return True

    def line_home(self) -> None:
        line, _ = self.line_and_column()
        self.move_to_line(line, 0)

    def line_end(self) -> None:
        line, _ = self.line_and_column()
        self.move_to_line(line, len(self.lines()[line]))

    def move_to_start(self) -> None:
        self.cursor = 0

    def move_to_end(self) -> None:
        self.cursor = len(self.text)

    def current_line_prefix(self) -> str:
        """Text between the start of the cursor's line and the cursor."""
        before = self.text[:self.cursor]
        return before[before.rfind("\n") + 1:]


# ============================================================================
# EDITOR UNITS
# ============================================================================

class Editor:
    """Base unit. Subclasses override handle()."""

    def __init__(self, inner: "Editor | None" = None) -> None:
        self.inner = inner

    def forward(self, pane, event: KeyEvent) -> bool:
        if self.inner is None:
            return False
        return self.inner.handle(pane, event)

    def handle(self, pane, event: KeyEvent) -> bool:
        return self.forward(pane, event)


class DefaultEditor(Editor):
    """Plain multi-line text editing."""

    def handle(self, pane, event: KeyEvent) -> bool:
        buffer = pane.buffer
        if event.printable:
            buffer.insert(event.ch)
            return True

        key = event.key
        if event.alt:
            return False
        if key == "enter":
            buffer.insert("\n")
        elif key == "backspace":
            buffer.delete(back=True)
        elif key == "delete":
            buffer.delete(back=False)
        elif key == "left":
            buffer.move(-1)
        elif key == "right":
            buffer.move(1)
        elif key == "up":
            buffer.move_vertical(-1)
        elif key == "down":
            # Below the last line is a no-op, no infinite scroll
            buffer.move_vertical(1)
        elif key == "home":
            buffer.line_home()
        elif key == "end":
            buffer.line_end()
        elif key == "tab":
            pass
        else:
            return False
        return True


class ReadOnlyEditor(Editor):
    """Swallows every key so response panes are never edited."""

    def handle(self, pane, event: KeyEvent) -> bool:
        return True


class HomeEndEditor(Editor):
    """Home/End jump to the start/end of the whole buffer."""

    def handle(self, pane, event: KeyEvent) -> bool:
        if event.key == "home" and not event.alt:
            pane.buffer.move_to_start()
            return True
        if event.key == "end" and not event.alt:
            pane.buffer.move_to_end()
            return True
        return self.forward(pane, event)


class SingleLineEditor(Editor):
    """Keeps the buffer on one line."""

    def handle(self, pane, event: KeyEvent) -> bool:
        buffer = pane.buffer
        if event.printable:
            chars = event.ch.replace("\r", "").replace("\n", "")
            if not chars:
                return True
            return self.forward(pane, KeyEvent(ch=chars))

        key = event.key
        if event.alt:
            return self.forward(pane, event)
        if key == "enter":
            return True
        if key in ("up", "home"):
            buffer.move_to_start()
            return True
        if key in ("down", "end"):
            buffer.move_to_end()
            return True
        if key == "right" and buffer.cursor >= len(buffer.text):
            return True
        return self.forward(pane, event)


class BackTabState(Enum):
    IDLE = "idle"
    AWAITING_BRACKET = "awaiting_bracket"


class BackTabEditor(Editor):
    """Detects the shift-tab escape sequence arriving as Alt+[ then Z."""

    def __init__(self, inner: Editor | None, go_back: Callable[[], None]) -> None:
        super().__init__(inner)
        self.go_back = go_back
        self.state = BackTabState.IDLE

    def handle(self, pane, event: KeyEvent) -> bool:
        if self.state is BackTabState.AWAITING_BRACKET:
            self.state = BackTabState.IDLE
            if event.ch == "Z" and not event.key:
                logger.trace("BackTabEditor: back-tab sequence on %s", pane.name)
                self.go_back()
                return True
            self.forward(pane, KeyEvent(ch="[", alt=True))

        if event.alt and event.ch == "[" and not event.key:
            self.state = BackTabState.AWAITING_BRACKET
            return True
        return self.forward(pane, event)


_SYMBOL_PATTERN = re.compile(r"[a-zA-Z0-9-]+$")


def last_symbol(text: str) -> str:
    match = _SYMBOL_PATTERN.search(text)
    return match.group(0) if match else ""


def complete_from(prefix: str, candidates) -> list[str]:
    """Candidates starting with prefix, excluding an exact match."""
    if not prefix or prefix.rstrip(" \n") != prefix:
        return []
    return [candidate for candidate in candidates if candidate.startswith(prefix) and candidate != prefix]


class CompletionOverlay:
    """Shows completion candidates next to the cursor through the layout engine."""

    def __init__(self, layout, name: str = AUTOCOMPLETE_VIEW) -> None:
        self.layout = layout
        self.name = name

    def show(self, pane, prefix: str, candidates: list[str]) -> None:
        left, top = pane.cursor_screen_position()
        inner_width, _ = pane.inner_size()
        _, column = pane.buffer.line_and_column()
        max_width = max(1, inner_width - (column - pane.origin_x))

        if len(candidates) == 1:
            lines = [candidates[0][len(prefix):]]
        else:
            lines = list(candidates)
            top += 1
            left -= len(prefix)
            max_width += len(prefix)

        width = min(max(len(line) for line in lines), max_width)
        height = min(len(lines), AUTOCOMPLETE_MAX_HEIGHT)
        self.layout.show_overlay(self.name, left, top, width, height, "\n".join(lines))

    def close(self) -> None:
        self.layout.delete(self.name)


class AutocompleteEditor(Editor):
    """Suggests completions for the symbol left of the cursor."""

    def __init__(self, inner: Editor | None, completions: Callable[[str], list[str]], overlay) -> None:
        super().__init__(inner)
        self.completions = completions
        self.overlay = overlay
        self.current: list[str] = []
        self.prefix = ""

    def handle(self, pane, event: KeyEvent) -> bool:
        is_enter = event.key == "enter" and not event.alt

        if is_enter and len(self.current) == 1:
            candidate = self.current[0]
            for _ in self.prefix:
                pane.buffer.delete(back=True)
            pane.buffer.insert(candidate)
            logger.trace("AutocompleteEditor: completed %r -> %r", self.prefix, candidate)
            self.close()
            return True

        handled = self.forward(pane, event)
        self.close()

        self.prefix = last_symbol(pane.buffer.current_line_prefix())
        self.current = self.completions(self.prefix)
        if self.current:
            self.overlay.show(pane, self.prefix, self.current)
        return handled

    def close(self) -> None:
        self.overlay.close()
        self.current = []


class SearchEditor(Editor):
    """Forwards the key, then asks for a re-render of the response body."""

    def __init__(self, inner: Editor | None, on_change: Callable[[], None]) -> None:
        super().__init__(inner)
        self.on_change = on_change

    def handle(self, pane, event: KeyEvent) -> bool:
        handled = self.forward(pane, event)
        self.on_change()
        return handled


def build_chain(*units: Editor) -> Editor:
    """Link units outermost first: build_chain(a, b, c) gives a -> b -> c."""
    if not units:
        raise ValueError("build_chain needs at least one unit")
    for outer, inner in zip(units, units[1:]):
        outer.inner = inner
    return units[0]


__all__ = [
    'KeyEvent',
    'TextBuffer',
    'Editor',
    'DefaultEditor',
    'ReadOnlyEditor',
    'HomeEndEditor',
    'SingleLineEditor',
    'BackTabState',
    'BackTabEditor',
    'AutocompleteEditor',
    'SearchEditor',
    'CompletionOverlay',
    'last_symbol',
    'complete_from',
    'build_chain',
]
