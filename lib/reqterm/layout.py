"""
Reqterm - Layout Engine

Resolves named panes from fraction+offset coordinate specs against the
current terminal size, creates panes lazily, and gates everything behind a
minimum terminal size.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from rich.text import Text

from .constants import (
    ERROR_POSITION,
    ERROR_VIEW,
    MIN_HEIGHT,
    MIN_WIDTH,
    MSG_TERMINAL_TOO_SMALL,
    POPUP_VIEW,
    VIEW_POSITIONS,
    VIEW_PROPERTIES,
    VIEW_TITLES,
)
from .editors import Editor, TextBuffer
from .utils import clamp


# ============================================================================
# COORDINATES
# ============================================================================

@dataclass(frozen=True)
class Position:
    fraction: float
    absolute: int

    def resolve(self, dimension: int) -> int:
        return round(self.fraction * dimension) + self.absolute


@dataclass(frozen=True)
class ViewPosition:
    x0: Position
    y0: Position
    x1: Position
    y1: Position

    @classmethod
    def from_spec(cls, spec) -> "ViewPosition":
        return cls(*(Position(*coordinate) for coordinate in spec))

    def resolve(self, width: int, height: int) -> tuple[int, int, int, int]:
        return (
            self.x0.resolve(width),
            self.y0.resolve(height),
            self.x1.resolve(width),
            self.y1.resolve(height),
        )


Rect = tuple[int, int, int, int]


# ============================================================================
# PANES
# ============================================================================

@dataclass
class Pane:
    """A named rectangular region with its own text buffer."""

    name: str
    rect: Rect
    buffer: TextBuffer = field(default_factory=TextBuffer)
    title: str = ""
    editable: bool = False
    frame: bool = True
    wrap: bool = False
    editor: Editor | None = None
    styled: Text | None = None
    origin: int = 0
    origin_x: int = 0
    highlight: int | None = None
    layer: str = "base"

    @property
    def text(self) -> str:
        return self.buffer.text

    def set_text(self, text: str, styled: Text | None = None) -> None:
        self.buffer.set_text(text)
        self.styled = styled

    def inner_rect(self) -> Rect:
        x0, y0, x1, y1 = self.rect
        if self.frame:
            return x0 + 1, y0 + 1, x1 - 1, y1 - 1
        return self.rect

    def inner_size(self) -> tuple[int, int]:
        x0, y0, x1, y1 = self.inner_rect()
        return max(0, x1 - x0), max(0, y1 - y0)

    def visual_lines(self) -> list[Text]:
        """Lines as displayed, split on newlines and wrapped to the inner width."""
        source = self.styled if self.styled is not None else Text(self.buffer.text)
        lines = list(source.split("\n", allow_blank=True)) or [Text("")]
        width, _ = self.inner_size()
        if not self.wrap or width <= 0:
            return lines
        wrapped = []
        for line in lines:
            if len(line) <= width:
                wrapped.append(line)
                continue
            for start in range(0, len(line), width):
                wrapped.append(line[start:start + width])
        return wrapped

    def cursor_screen_position(self) -> tuple[int, int]:
        left, top, _, _ = self.inner_rect()
        line, column = self.buffer.line_and_column()
        return left + column - self.origin_x, top + line - self.origin

    def scroll(self, dy: int) -> None:
        last = max(0, len(self.visual_lines()) - 1)
        self.origin = clamp(self.origin + dy, 0, last)

    def follow_cursor(self) -> None:
        """Move the origin so the cursor (or highlighted row) stays visible."""
        width, height = self.inner_size()
        if height <= 0:
            return
        if self.highlight is not None:
            row = self.highlight
        else:
            row, column = self.buffer.line_and_column()
            if not self.wrap and width > 0:
                if column < self.origin_x:
                    self.origin_x = column
                elif column >= self.origin_x + width:
                    self.origin_x = column - width + 1
        if row < self.origin:
            self.origin = row
        elif row >= self.origin + height:
            self.origin = row - height + 1


# ============================================================================
# LAYOUT ENGINE
# ============================================================================

class LayoutEngine:
    """Owns every pane; re-resolves rectangles on each layout pass."""

    def __init__(
        self,
        positions=VIEW_POSITIONS,
        properties=VIEW_PROPERTIES,
        *,
        editors: dict[str, Editor] | None = None,
        min_width: int = MIN_WIDTH,
        min_height: int = MIN_HEIGHT,
        on_too_small: Callable[[], None] | None = None,
        on_recover: Callable[[], None] | None = None,
    ) -> None:
        self.logger = logging.getLogger('Layout')
        self.positions = {name: ViewPosition.from_spec(spec) for name, spec in positions.items()}
        self.properties = properties
        self.editors = editors if editors is not None else {}
        self.min_width = min_width
        self.min_height = min_height
        self.on_too_small = on_too_small
        self.on_recover = on_recover

        self.panes: dict[str, Pane] = {}
        # Popups and overlays: name -> rect resolver for the current size
        self.floating: dict[str, Callable[[int, int], Rect]] = {}
        self.width = 0
        self.height = 0
        self.too_small = False
        self.cursor_visible = True
        self._stash: dict[str, Pane] = {}
        self._seed: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Layout pass
    # ------------------------------------------------------------------

    def layout(self, width: int, height: int) -> None:
        self.width, self.height = width, height

        if width < self.min_width or height < self.min_height:
            if not self.too_small:
                self._enter_too_small()
            error = self.panes.get(ERROR_VIEW)
            if error is None:
                error = Pane(
                    ERROR_VIEW,
                    (0, 0, width, height),
                    TextBuffer(MSG_TERMINAL_TOO_SMALL),
                    title=VIEW_TITLES[ERROR_VIEW],
                )
                self.panes[ERROR_VIEW] = error
            error.rect = ViewPosition.from_spec(ERROR_POSITION).resolve(width, height)
            return

        recovering = self.too_small
        if recovering:
            self.panes.pop(ERROR_VIEW, None)
            self.too_small = False

        for name, position in self.positions.items():
            pane = self.panes.get(name)
            if pane is None:
                pane = self._stash.pop(name, None) or self._create(name)
                self.panes[name] = pane
            pane.rect = position.resolve(width, height)

        for name, resolver in self.floating.items():
            pane = self.panes.pop(name)
            pane.rect = resolver(width, height)
            # Re-insert so floating panes stay on top of the main panes
            self.panes[name] = pane

        if recovering:
            self.logger.debug(f"Terminal size recovered: {width}x{height}")
            self.cursor_visible = True
            if self.on_recover is not None:
                self.on_recover()

    def _enter_too_small(self) -> None:
        self.logger.debug(f"Terminal too small: {self.width}x{self.height}")
        self.too_small = True
        for name in list(self.panes):
            pane = self.panes.pop(name)
            if name in self.positions:
                self._stash[name] = pane
        self.floating.clear()
        self.cursor_visible = False
        if self.on_too_small is not None:
            self.on_too_small()

    def _create(self, name: str) -> Pane:
        properties = self.properties.get(name, {})
        text = self._seed.pop(name, properties.get("text", ""))
        self.logger.trace("Layout: creating pane %s", name)
        return Pane(
            name,
            (0, 0, 0, 0),
            TextBuffer(text),
            title=properties.get("title", ""),
            editable=properties.get("editable", False),
            frame=properties.get("frame", True),
            wrap=properties.get("wrap", False),
            editor=self.editors.get(name),
        )

    # ------------------------------------------------------------------
    # Pane access
    # ------------------------------------------------------------------

    def pane(self, name: str) -> Pane | None:
        return self.panes.get(name) or self._stash.get(name)

    def text(self, name: str) -> str:
        pane = self.pane(name)
        if pane is not None:
            return pane.text
        return self._seed.get(name, self.properties.get(name, {}).get("text", ""))

    def set_text(self, name: str, text: str, styled: Text | None = None) -> None:
        """Replace a pane's text; seeds it when the pane does not exist yet."""
        pane = self.pane(name)
        if pane is None:
            self._seed[name] = text
            return
        pane.set_text(text, styled)

    def exists(self, name: str) -> bool:
        return name in self.panes

    # ------------------------------------------------------------------
    # Popups and overlays
    # ------------------------------------------------------------------

    def popup_rect(self, width: int, height: int) -> Rect:
        """Rectangle of a framed popup centered on screen, clamped to screen - 4."""
        width = max(1, min(width, self.width - 4))
        height = max(1, min(height, self.height - 4))
        position = ViewPosition(
            Position(0.5, -(width // 2) - 1),
            Position(0.5, -(height // 2) - 1),
            Position(0.5, width - width // 2 + 1),
            Position(0.5, height - height // 2 + 1),
        )
        return position.resolve(self.width, self.height)

    def create_popup(
        self,
        name: str,
        width: int,
        height: int,
        title: str = "",
        text: str = "",
        *,
        editable: bool = False,
        editor: Editor | None = None,
    ) -> Pane | None:
        if self.too_small:
            return None
        self.delete(name)

        def resolver(screen_width: int, screen_height: int) -> Rect:
            return self.popup_rect(width, height)

        pane = Pane(
            name,
            resolver(self.width, self.height),
            TextBuffer(text),
            title=title or VIEW_TITLES.get(name, ""),
            editable=editable,
            editor=editor,
            layer="popup",
        )
        self.panes[name] = pane
        self.floating[name] = resolver
        return pane

    def show_info(self, message: str) -> Pane | None:
        """The transient info popup, sized from the message length."""
        return self.create_popup(POPUP_VIEW, len(message), 1, VIEW_TITLES[POPUP_VIEW], message)

    def show_overlay(self, name: str, left: int, top: int, width: int, height: int, text: str) -> Pane | None:
        if self.too_small:
            return None
        self.delete(name)
        rect = (left, top, left + width, top + height)
        pane = Pane(name, rect, TextBuffer(text), frame=False, layer="overlay")
        self.panes[name] = pane
        self.floating[name] = lambda screen_width, screen_height: rect
        return pane

    def delete(self, name: str) -> bool:
        self.floating.pop(name, None)
        return self.panes.pop(name, None) is not None


__all__ = ['Position', 'ViewPosition', 'Rect', 'Pane', 'LayoutEngine']
