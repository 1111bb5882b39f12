"""
Reqterm - Textual Application

Hosts the Session on Textual's event loop: resize and key events go in,
pane views are re-synced after every change, and worker completions are
drained through loop.call_soon_threadsafe.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import asyncio
import logging
import subprocess

from textual import events
from textual.app import App, ComposeResult, SuspendNotSupported

from .config import Config
from .constants import ERROR_EDITOR_OPEN
from .errors import ReqtermError
from .session import Session
from .widgets import PaneView, Workspace
from . import utils  # noqa: F401  (registers Logger.trace)


class ReqtermApp(App, inherit_bindings=False):
    """Interactive HTTP request composer."""

    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen {
        background: $background;
    }
    """

    def __init__(self, config: Config | None = None, seed: dict[str, str] | None = None) -> None:
        super().__init__()
        self.logger = logging.getLogger('ReqtermApp')
        self.config_data = config or Config()
        self.session = Session(self.config_data, run_external=self._run_external, on_quit=self.exit)
        if seed:
            self.session.apply_seed(seed)
        self._views: dict[str, PaneView] = {}
        self.workspace: Workspace | None = None

    def compose(self) -> ComposeResult:
        self.logger.trace("ReqtermApp:compose")
        self.workspace = Workspace(id="workspace")
        yield self.workspace

    def on_mount(self) -> None:
        loop = asyncio.get_running_loop()
        self.session.updates.waker = lambda: loop.call_soon_threadsafe(self._drain)
        self.workspace.focus()
        self._relayout(self.size.width, self.size.height)
        self.logger.info(f"UI mounted at {self.size.width}x{self.size.height}")

    def on_unmount(self) -> None:
        self.session.close()

    def on_resize(self, event: events.Resize) -> None:
        self._relayout(event.size.width, event.size.height)

    def _relayout(self, width: int, height: int) -> None:
        self.session.resize(width, height)
        self._sync_views()

    def _drain(self) -> None:
        self.session.drain()
        self._sync_views()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def on_workspace_key_pressed(self, message: Workspace.KeyPressed) -> None:
        self.session.handle_key(message.key_event)
        self.session.refresh_status()
        self._sync_views()

    def on_workspace_pasted(self, message: Workspace.Pasted) -> None:
        self.session.paste(message.text)
        self._sync_views()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _sync_views(self) -> None:
        """Mount, update and remove PaneViews to mirror the layout's panes."""
        if self.workspace is None or not self.workspace.is_mounted:
            return
        layout = self.session.layout
        focused = self.session.focused

        for name in list(self._views):
            if name not in layout.panes:
                self._views.pop(name).remove()

        for name, pane in layout.panes.items():
            view = self._views.get(name)
            if view is None:
                view = PaneView(pane)
                self._views[name] = view
                self.workspace.mount(view)
            view.sync(pane, name == focused, layout.cursor_visible)

    def _run_external(self, command: list[str]) -> int:
        """Run a program with the terminal handed over to it."""
        self.logger.info(f"Running external command: {command[0]}")
        try:
            with self.suspend():
                return subprocess.call(command)
        except SuspendNotSupported as exc:
            raise ReqtermError(ERROR_EDITOR_OPEN.format(error=exc)) from exc

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def _handle_exception(self, error: Exception) -> None:
        """Log synchronous exceptions before Textual shuts the app down."""
        self.logger.exception("Unhandled exception in ReqtermApp", exc_info=error)
        super()._handle_exception(error)


__all__ = ['ReqtermApp']
