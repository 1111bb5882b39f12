"""
Reqterm - Popup Slot and Focus Ring

At most one popup is open at a time; opening another closes the first.
Focus returns to the main pane that was active before the popup opened.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import logging

from .constants import LIST_POPUPS, VIEWS
from .editors import Editor
from .layout import LayoutEngine, Pane


class FocusRing:
    """Index into the ordered list of focusable main panes."""

    def __init__(self, views=VIEWS) -> None:
        self.views = list(views)
        self.index = 0

    @property
    def current(self) -> str:
        return self.views[self.index]

    def next(self) -> str:
        self.index = (self.index + 1) % len(self.views)
        return self.current

    def prev(self) -> str:
        self.index = (self.index - 1) % len(self.views)
        return self.current

    def set_by_name(self, name: str) -> bool:
        if name not in self.views:
            return False
        self.index = self.views.index(name)
        return True


class PopupSlot:
    """Single optional popup slot on top of the layout engine."""

    def __init__(self, layout: LayoutEngine, ring: FocusRing) -> None:
        self.logger = logging.getLogger('PopupSlot')
        self.layout = layout
        self.ring = ring
        self.current: str | None = None
        self.return_index: int | None = None

    @property
    def focused(self) -> str | None:
        """The open popup, if any; it owns keyboard focus."""
        if self.current is not None and self.layout.exists(self.current):
            return self.current
        return None

    def open(
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
        if self.current is not None:
            self.close()
        pane = self.layout.create_popup(name, width, height, title, text, editable=editable, editor=editor)
        if pane is None:
            return None
        self.current = name
        self.return_index = self.ring.index
        self.layout.cursor_visible = name not in LIST_POPUPS
        self.logger.debug(f"Popup opened: {name}")
        return pane

    def close(self, name: str | None = None) -> bool:
        if self.current is None or (name is not None and name != self.current):
            return False
        self.layout.delete(self.current)
        self.logger.debug(f"Popup closed: {self.current}")
        self.current = None
        if self.return_index is not None:
            self.ring.index = self.return_index
            self.return_index = None
        if not self.layout.too_small:
            self.layout.cursor_visible = True
        return True

    def toggle(self, name: str, *args, **kwargs) -> Pane | None:
        if self.current == name:
            self.close()
            return None
        return self.open(name, *args, **kwargs)

    def forget(self) -> None:
        """Drop the slot without touching panes (they are already gone)."""
        self.current = None
        self.return_index = None


__all__ = ['FocusRing', 'PopupSlot']
