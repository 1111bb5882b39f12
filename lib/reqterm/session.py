"""
Reqterm - Session Core

The event-loop-owned state of one interactive session: panes, focus,
popups, history and the request lifecycle. Key events are routed here by the
Textual app; background completions come back through the update queue.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import logging
import os
from concurrent.futures import Future
from typing import Callable

from rich.text import Text

from .commands import build_bindings, help_text, open_editor, parse_key
from .config import Config
from .constants import (
    ALL_VIEWS,
    DIALOG_POPUP_WIDTH,
    ERROR_DECODE_BODY,
    ERROR_EDITOR_OPEN,
    ERROR_SAVE_REQUEST,
    ERROR_SAVE_RESPONSE,
    ERROR_SEARCH,
    ERROR_VIEW,
    HELP_POPUP_SIZE,
    HELP_VIEW,
    HISTORY_POPUP_WIDTH,
    HISTORY_VIEW,
    LOAD_REQUEST_TITLE,
    METHOD_LIST_VIEW,
    METHOD_POPUP_WIDTH,
    METHODS,
    MSG_NO_HISTORY,
    MSG_NO_RESPONSE,
    MSG_NO_RESULTS,
    MSG_REQUEST_SAVED,
    MSG_RESPONSE_SAVED,
    MSG_SENDING,
    MSG_TRACE_EMPTY,
    POPUP_VIEW,
    REQUEST_DATA_VIEW,
    REQUEST_HEADERS,
    REQUEST_HEADERS_VIEW,
    REQUEST_METHOD_VIEW,
    REQUEST_VIEWS,
    RESPONSE_BODY_VIEW,
    RESPONSE_HEADERS_VIEW,
    SAVE_DIALOG_VIEW,
    SAVE_REQUEST_TITLE,
    SAVE_RESPONSE_TITLE,
    SAVE_RESULT_VIEW,
    SEARCH_VIEW,
    STATUSLINE_VIEW,
    TITLE_NO_RESULTS,
    TITLE_PREVIOUS_RESULT,
    TITLE_RESULTS,
    TRACE_POPUP_SIZE,
    TRACE_VIEW,
    URL_PARAMS_VIEW,
    URL_VIEW,
    VIEW_PROPERTIES,
    VIEW_TITLES,
    VIEWS,
)
from .editors import (
    AutocompleteEditor,
    BackTabEditor,
    CompletionOverlay,
    DefaultEditor,
    Editor,
    HomeEndEditor,
    KeyEvent,
    ReadOnlyEditor,
    SearchEditor,
    SingleLineEditor,
    build_chain,
    complete_from,
)
from .errors import DecodeError, ReqtermError
from .formatters import FormatterRegistry
from .history import History
from .layout import LayoutEngine, Pane
from .lifecycle import (
    Outcome,
    RequestDraft,
    RequestLifecycle,
    UpdateQueue,
    highlight_response_headers,
    render_response_headers,
)
from .persistence import load_request, save_request, save_response
from .popups import FocusRing, PopupSlot
from .status_line import StatusLine
from .trace import ClientTrace

Handler = Callable[[Pane | None], None]


class Session:
    """Everything the UI shows, driven by key events and posted updates."""

    def __init__(
        self,
        config: Config,
        *,
        waker: Callable[[], None] | None = None,
        run_external: Callable[[list[str]], int] | None = None,
        on_quit: Callable[[], None] | None = None,
        max_workers: int = 4,
    ) -> None:
        self.logger = logging.getLogger('Session')
        self.config = config
        self.options = config.general
        self.run_external = run_external
        self.on_quit = on_quit

        self.history = History()
        self.updates = UpdateQueue(waker)
        self.trace = ClientTrace()
        self.registry = FormatterRegistry(self.options.format_json)
        # Raises ConfigError for unknown placeholders, before the loop starts
        self.status = StatusLine(self.options.status_line)
        self.ring = FocusRing(VIEWS)

        self.layout = LayoutEngine(on_too_small=self._on_too_small, on_recover=self._on_recover)
        self._autocomplete = AutocompleteEditor(
            None,
            lambda prefix: complete_from(prefix, REQUEST_HEADERS),
            CompletionOverlay(self.layout),
        )
        self.layout.editors.update(self._build_editors())
        self._list_editor = ReadOnlyEditor()
        self._dialog_editor = build_chain(SingleLineEditor(), DefaultEditor())
        self._dialog_action: Callable[[str], None] | None = None

        self.popups = PopupSlot(self.layout, self.ring)
        self.lifecycle = RequestLifecycle(
            self.options, self.updates, self.trace, self.registry, max_workers=max_workers
        )

        self.bindings = build_bindings(config.keys, self)
        self.builtins = self._build_builtins()
        self.quit_keys = {
            parse_key(spec)
            for spec, command in config.keys.get(ALL_VIEWS, {}).items()
            if command.strip() == "quit"
        }
        self.pending = 0
        self.logger.debug(f"Session ready: {len(self.quit_keys)} quit key(s), workers={max_workers}")

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def _build_editors(self) -> dict[str, Editor]:
        def back(*units: Editor) -> Editor:
            return build_chain(BackTabEditor(None, self.prev_view), *units)

        return {
            URL_VIEW: back(SingleLineEditor(), DefaultEditor()),
            REQUEST_METHOD_VIEW: back(SingleLineEditor(), DefaultEditor()),
            URL_PARAMS_VIEW: back(HomeEndEditor(), DefaultEditor()),
            REQUEST_DATA_VIEW: back(HomeEndEditor(), DefaultEditor()),
            REQUEST_HEADERS_VIEW: back(self._autocomplete, HomeEndEditor(), DefaultEditor()),
            SEARCH_VIEW: back(
                SingleLineEditor(),
                SearchEditor(None, lambda: self.updates.post(self.print_body)),
                DefaultEditor(),
            ),
            RESPONSE_HEADERS_VIEW: back(ReadOnlyEditor()),
            RESPONSE_BODY_VIEW: back(ReadOnlyEditor()),
        }

    def _build_builtins(self) -> dict[str, dict[str, Handler]]:
        return {
            REQUEST_METHOD_VIEW: {
                "enter": lambda pane: self.toggle_method_list(),
                "up": lambda pane: self.cycle_method(-1),
                "down": lambda pane: self.cycle_method(1),
            },
            HISTORY_VIEW: {
                "up": lambda pane: self._move_highlight(pane, -1),
                "down": lambda pane: self._move_highlight(pane, 1),
                "enter": self._choose_history,
            },
            METHOD_LIST_VIEW: {
                "up": lambda pane: self._move_highlight(pane, -1),
                "down": lambda pane: self._move_highlight(pane, 1),
                "enter": self._choose_method,
            },
            SAVE_DIALOG_VIEW: {
                "enter": lambda pane: self._submit_dialog(),
                "ctrl+q": lambda pane: self.popups.close(SAVE_DIALOG_VIEW),
            },
            SAVE_RESULT_VIEW: {
                "enter": lambda pane: self.popups.close(SAVE_RESULT_VIEW),
            },
            HELP_VIEW: {
                "up": lambda pane: pane.scroll(-1),
                "down": lambda pane: pane.scroll(1),
                "enter": lambda pane: self.popups.close(HELP_VIEW),
            },
            TRACE_VIEW: {
                "up": lambda pane: pane.scroll(-1),
                "down": lambda pane: pane.scroll(1),
                "enter": lambda pane: self.popups.close(TRACE_VIEW),
            },
            ALL_VIEWS: {
                "escape": lambda pane: self.close_popup(),
            },
        }

    # ------------------------------------------------------------------
    # Event entry points
    # ------------------------------------------------------------------

    @property
    def focused(self) -> str:
        if self.layout.too_small:
            return ERROR_VIEW
        return self.popups.focused or self.ring.current

    def focused_pane(self) -> Pane | None:
        return self.layout.pane(self.focused)

    def handle_key(self, event: KeyEvent) -> bool:
        """Route one key press; True when something consumed it."""
        spec = event.spec
        if self.layout.too_small:
            if spec in self.quit_keys:
                self.request_quit()
                return True
            return False

        name = self.focused
        pane = self.layout.pane(name)
        handler = self._lookup(name, spec)
        self.logger.trace("Session:key %r on %s (bound=%s)", spec, name, handler is not None)

        try:
            if handler is not None:
                handler(pane)
                handled = True
            elif pane is not None and pane.editor is not None:
                handled = pane.editor.handle(pane, event)
            else:
                handled = False
        except ReqtermError as exc:
            self.show_error(exc)
            handled = True

        if pane is not None and self.layout.exists(pane.name) and (pane.editable or pane.highlight is not None):
            pane.follow_cursor()
        return handled

    def _lookup(self, name: str, spec: str) -> Handler | None:
        for table in (
            self.builtins.get(name, {}),
            self.bindings.get(name, {}),
            self.bindings.get(ALL_VIEWS, {}),
            self.builtins[ALL_VIEWS],
        ):
            handler = table.get(spec)
            if handler is not None:
                return handler
        return None

    def paste(self, text: str) -> bool:
        pane = self.focused_pane()
        if self.layout.too_small or pane is None or not pane.editable or pane.editor is None:
            return False
        handled = pane.editor.handle(pane, KeyEvent(ch=text))
        pane.follow_cursor()
        return handled

    def resize(self, width: int, height: int) -> None:
        self.layout.layout(width, height)
        self.refresh_status()

    def drain(self) -> int:
        """Run posted updates on the event loop, then refresh the status line."""
        count = self.updates.drain()
        self.refresh_status()
        return count

    def refresh_status(self) -> None:
        self.layout.set_text(
            STATUSLINE_VIEW, self.status.render(self.history, self.options.context_specific_search)
        )

    def apply_seed(self, texts: dict[str, str]) -> None:
        for name, text in texts.items():
            self.layout.set_text(name, text)

    # ------------------------------------------------------------------
    # Request lifecycle
    # ------------------------------------------------------------------

    def submit(self) -> Future:
        texts = {name: self.layout.text(name) for name in REQUEST_VIEWS}
        draft = RequestDraft.from_texts(texts)
        self._clear_response()
        self.pending += 1
        self.layout.show_info(MSG_SENDING)
        self.logger.info(f"Submitting {draft.method or 'GET'} {draft.url}")
        return self.lifecycle.submit(draft, self._on_complete)

    def _on_complete(self, outcome: Outcome | None, error: ReqtermError | None) -> None:
        self.pending = max(0, self.pending - 1)
        if self.pending == 0:
            self.layout.delete(POPUP_VIEW)

        if error is not None:
            self.show_error(error)
            return

        request = outcome.request
        text = render_response_headers(request.status_code, outcome.reason, outcome.header_items)
        request.response_headers = text
        self.history.append(request)
        self._show_response_headers(text, request.status_code)
        self.print_body()
        self.logger.info(f"Response {request.status_code} in {request.duration_text} ({len(request.raw_body or b'')} bytes)")

    def _show_response_headers(self, text: str, status_code: int) -> None:
        pane = self.layout.pane(RESPONSE_HEADERS_VIEW)
        if pane is None:
            self.layout.set_text(RESPONSE_HEADERS_VIEW, text)
            return
        pane.set_text(text, highlight_response_headers(text, status_code) if text else None)
        pane.origin = 0

    def _clear_response(self) -> None:
        self._show_response_headers("", 0)
        self._show_body("", title=VIEW_PROPERTIES[RESPONSE_BODY_VIEW]["title"])

    def _show_body(self, text: str, styled: Text | None = None, *, title: str | None = None, keep_origin: bool = False) -> None:
        pane = self.layout.pane(RESPONSE_BODY_VIEW)
        if pane is None:
            self.layout.set_text(RESPONSE_BODY_VIEW, text)
            return
        pane.set_text(text, styled)
        if title is not None:
            pane.title = title
        if not keep_origin or pane.origin >= len(pane.visual_lines()):
            pane.origin = 0

    def show_error(self, error: ReqtermError) -> None:
        """Render a runtime error inline in the response body pane."""
        self.logger.warning(f"{type(error).__name__}: {error}")
        self._show_body(str(error), title=VIEW_PROPERTIES[RESPONSE_BODY_VIEW]["title"])

    def print_body(self) -> None:
        """Render the current request's body, or search results when a query is set."""
        current = self.history.current
        if current is None or current.raw_body is None:
            return

        formatter = current.formatter or self.registry.plain
        title = f"{VIEW_PROPERTIES[RESPONSE_BODY_VIEW]['title']} {formatter.title()}"
        query = self.layout.text(SEARCH_VIEW).strip()

        if not query or not formatter.searchable():
            try:
                styled = formatter.format(current.raw_body)
            except DecodeError as exc:
                self._show_body(ERROR_DECODE_BODY.format(error=exc), title=title)
                return
            self._show_body(styled.plain, styled, title=title, keep_origin=self.options.preserve_scroll_position)
            return

        if not self.options.context_specific_search:
            formatter = self.registry.plain

        try:
            results = formatter.search(query, current.raw_body, owner=current)
        except ReqtermError as exc:
            self.logger.debug(f"Search {query!r} failed: {exc}")
            if exc.keep_previous:
                pane = self.layout.pane(RESPONSE_BODY_VIEW)
                if pane is not None:
                    pane.title = TITLE_PREVIOUS_RESULT
                return
            self._show_body(ERROR_SEARCH.format(error=exc), title=title)
            return

        if not results:
            self._show_body(MSG_NO_RESULTS, title=TITLE_NO_RESULTS)
            return

        styled = Text()
        for result in results:
            styled.append("-----\n")
            styled.append(formatter.highlight(result))
            styled.append("\n")
        self._show_body(styled.plain, styled, title=TITLE_RESULTS.format(count=len(results)))

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def toggle_history(self) -> None:
        if len(self.history) == 0:
            self.popups.toggle(HISTORY_VIEW, HISTORY_POPUP_WIDTH, 1, text=MSG_NO_HISTORY, editor=self._list_editor)
            return
        lines = [request.describe(index) for index, request in enumerate(self.history)]
        pane = self.popups.toggle(
            HISTORY_VIEW, HISTORY_POPUP_WIDTH, len(lines), text="\n".join(lines), editor=self._list_editor
        )
        if pane is not None:
            pane.highlight = self.history.index
            pane.follow_cursor()

    def _choose_history(self, pane: Pane | None) -> None:
        if pane is None or pane.highlight is None:
            self.popups.close(HISTORY_VIEW)
            return
        self.restore_request(pane.highlight)

    def restore_request(self, index: int) -> bool:
        request = self.history.restore(index)
        if request is None:
            return False
        self.popups.close(HISTORY_VIEW)
        for name, text in request.pane_texts().items():
            self.layout.set_text(name, text)
        self._show_response_headers(request.response_headers, request.status_code)
        self.print_body()
        self.refresh_status()
        return True

    def clear_history(self) -> None:
        self.popups.close(HISTORY_VIEW)
        self.history.clear()
        self._clear_response()
        self.refresh_status()

    # ------------------------------------------------------------------
    # Method list
    # ------------------------------------------------------------------

    def toggle_method_list(self) -> None:
        pane = self.popups.toggle(
            METHOD_LIST_VIEW, METHOD_POPUP_WIDTH, len(METHODS), text="\n".join(METHODS), editor=self._list_editor
        )
        if pane is not None:
            current = self.layout.text(REQUEST_METHOD_VIEW).strip().upper()
            pane.highlight = METHODS.index(current) if current in METHODS else 0

    def _choose_method(self, pane: Pane | None) -> None:
        if pane is not None and pane.highlight is not None:
            self.layout.set_text(REQUEST_METHOD_VIEW, METHODS[pane.highlight])
        self.popups.close(METHOD_LIST_VIEW)

    def cycle_method(self, step: int) -> None:
        """Step through the method list, stopping at either end."""
        current = self.layout.text(REQUEST_METHOD_VIEW).strip().upper()
        if current not in METHODS:
            self.layout.set_text(REQUEST_METHOD_VIEW, METHODS[0])
            return
        index = max(0, min(len(METHODS) - 1, METHODS.index(current) + step))
        self.layout.set_text(REQUEST_METHOD_VIEW, METHODS[index])

    @staticmethod
    def _move_highlight(pane: Pane | None, step: int) -> None:
        if pane is None or pane.highlight is None:
            return
        last = len(pane.text.split("\n")) - 1
        pane.highlight = max(0, min(last, pane.highlight + step))

    # ------------------------------------------------------------------
    # Save / load dialogs
    # ------------------------------------------------------------------

    def _open_dialog(self, title: str, action: Callable[[str], None]) -> None:
        pane = self.popups.open(
            SAVE_DIALOG_VIEW,
            DIALOG_POPUP_WIDTH,
            1,
            title,
            os.getcwd() + os.sep,
            editable=True,
            editor=self._dialog_editor,
        )
        if pane is not None:
            pane.follow_cursor()
            self._dialog_action = action

    def _submit_dialog(self) -> None:
        pane = self.layout.pane(SAVE_DIALOG_VIEW)
        action, self._dialog_action = self._dialog_action, None
        if pane is None or action is None:
            self.popups.close(SAVE_DIALOG_VIEW)
            return
        path = pane.text.strip()
        self.popups.close(SAVE_DIALOG_VIEW)
        action(path)

    def open_save_response_dialog(self) -> None:
        self._open_dialog(SAVE_RESPONSE_TITLE, self._save_response)

    def open_save_request_dialog(self) -> None:
        self._open_dialog(SAVE_REQUEST_TITLE, self._save_request)

    def open_load_request_dialog(self) -> None:
        self._open_dialog(LOAD_REQUEST_TITLE, self._load_request)

    def _save_response(self, path: str) -> None:
        current = self.history.current
        if current is None or current.raw_body is None:
            self.open_save_result(MSG_NO_RESPONSE)
            return
        try:
            save_response(path, current.raw_body)
        except OSError as exc:
            self.logger.warning(f"Saving response to {path} failed: {exc}")
            self.open_save_result(ERROR_SAVE_RESPONSE.format(error=exc))
            return
        self.open_save_result(MSG_RESPONSE_SAVED)

    def _save_request(self, path: str) -> None:
        texts = {name: self.layout.text(name) for name in REQUEST_VIEWS}
        try:
            save_request(path, texts)
        except OSError as exc:
            self.logger.warning(f"Saving request to {path} failed: {exc}")
            self.open_save_result(ERROR_SAVE_REQUEST.format(error=exc))
            return
        self.open_save_result(MSG_REQUEST_SAVED)

    def _load_request(self, path: str) -> None:
        # InputError / DecodeError propagate to handle_key and land in the body pane
        self.apply_seed(load_request(path))

    def open_save_result(self, message: str) -> None:
        title = VIEW_TITLES[SAVE_RESULT_VIEW]
        width = max(len(message) + 1, len(title) + 2)
        height = 1
        if self.layout.width and width > self.layout.width:
            height = width // self.layout.width + 1
            width = self.layout.width
        pane = self.popups.open(SAVE_RESULT_VIEW, width, height, title, message, editor=self._list_editor)
        if pane is not None:
            pane.wrap = True

    # ------------------------------------------------------------------
    # Help and trace
    # ------------------------------------------------------------------

    def toggle_help(self) -> None:
        text = help_text(self.config.keys)
        width, height = HELP_POPUP_SIZE
        height = min(height, len(text.split("\n")))
        self.popups.toggle(HELP_VIEW, width, height, text=text, editor=self._list_editor)

    def toggle_trace(self) -> None:
        text = self.trace.dump().rstrip("\n") or MSG_TRACE_EMPTY
        width, height = TRACE_POPUP_SIZE
        height = min(height, len(text.split("\n")))
        self.popups.toggle(TRACE_VIEW, width, height, text=text, editor=self._list_editor)

    def close_popup(self) -> None:
        self._autocomplete.close()
        self.popups.close()

    # ------------------------------------------------------------------
    # Focus
    # ------------------------------------------------------------------

    def _leave_pane(self) -> None:
        self._autocomplete.close()
        self.popups.close()

    def next_view(self) -> None:
        self._leave_pane()
        self.ring.next()

    def prev_view(self) -> None:
        self._leave_pane()
        self.ring.prev()

    def focus_view(self, name: str) -> None:
        self._leave_pane()
        if not self.ring.set_by_name(name):
            self.logger.warning(f"focus: unknown pane {name!r}")

    # ------------------------------------------------------------------
    # Misc commands
    # ------------------------------------------------------------------

    def toggle_context_search(self) -> None:
        self.options.context_specific_search = not self.options.context_specific_search
        self.logger.debug(f"Context specific search: {self.options.context_specific_search}")
        self.print_body()
        self.refresh_status()

    def open_editor(self, pane: Pane | None) -> None:
        if pane is None or not pane.editable:
            return
        if self.run_external is None:
            raise ReqtermError(ERROR_EDITOR_OPEN.format(error="no terminal to hand over"))
        if open_editor(pane, self.options.editor, self.run_external):
            pane.follow_cursor()
            if pane.name == SEARCH_VIEW:
                self.updates.post(self.print_body)

    def request_quit(self) -> None:
        self.logger.info("Quit requested")
        if self.on_quit is not None:
            self.on_quit()

    def close(self) -> None:
        self.lifecycle.shutdown()

    # ------------------------------------------------------------------
    # Terminal size transitions
    # ------------------------------------------------------------------

    def _on_too_small(self) -> None:
        self.popups.forget()
        self._autocomplete.current = []
        self._dialog_action = None

    def _on_recover(self) -> None:
        if self.pending:
            self.layout.show_info(MSG_SENDING)


__all__ = ['Session']
