"""
Session behaviour driven through key events, with requests served locally.
"""

import json
import os

import pytest

from reqterm.constants import (
    AUTOCOMPLETE_VIEW,
    ERROR_VIEW,
    HELP_VIEW,
    HISTORY_VIEW,
    METHOD_LIST_VIEW,
    MSG_NO_HISTORY,
    MSG_NO_RESPONSE,
    MSG_REQUEST_SAVED,
    MSG_RESPONSE_SAVED,
    MSG_TRACE_EMPTY,
    POPUP_VIEW,
    REQUEST_DATA_VIEW,
    REQUEST_HEADERS_VIEW,
    REQUEST_METHOD_VIEW,
    RESPONSE_BODY_VIEW,
    RESPONSE_HEADERS_VIEW,
    SAVE_DIALOG_VIEW,
    SAVE_RESULT_VIEW,
    SEARCH_VIEW,
    STATUSLINE_VIEW,
    TRACE_VIEW,
    URL_PARAMS_VIEW,
    URL_VIEW,
)
from reqterm.editors import KeyEvent
from reqterm.session import Session


def press(session, *keys):
    for key in keys:
        session.handle_key(KeyEvent(key=key))


def type_text(session, text):
    for char in text:
        session.handle_key(KeyEvent(ch=char))


def body(session):
    return session.layout.pane(RESPONSE_BODY_VIEW)


@pytest.fixture
def submitted(session):
    """Capture the futures of submissions triggered through key bindings."""
    futures = []
    original = session.submit

    def submit():
        future = original()
        futures.append(future)
        return future

    session.submit = submit
    return futures


@pytest.fixture
def fetch(session, finish, http_server):
    def _fetch(path, **texts):
        session.layout.set_text(URL_VIEW, f"{http_server}{path}")
        for name, text in texts.items():
            session.layout.set_text(name, text)
        finish(session.submit())

    return _fetch


# ============================================================================
# FOCUS AND EDITING
# ============================================================================

def test_focus_moves_with_tab_and_function_keys(session):
    assert session.focused == URL_VIEW
    press(session, "tab")
    assert session.focused == URL_PARAMS_VIEW
    press(session, "shift+tab", "shift+tab")
    assert session.focused == RESPONSE_BODY_VIEW
    press(session, "f6")
    assert session.focused == REQUEST_HEADERS_VIEW
    press(session, "f2")
    assert session.focused == URL_VIEW


def test_back_tab_escape_sequence(session):
    press(session, "f3")
    session.handle_key(KeyEvent(ch="[", alt=True))
    session.handle_key(KeyEvent(ch="Z"))
    assert session.focused == URL_VIEW
    assert session.layout.text(URL_PARAMS_VIEW) == ""


def test_typing_edits_focused_pane(session):
    type_text(session, "example.com")
    press(session, "backspace")
    assert session.layout.text(URL_VIEW) == "example.co"
    press(session, "f5")
    type_text(session, "a=1")
    press(session, "enter")
    type_text(session, "b=2")
    assert session.layout.text(REQUEST_DATA_VIEW) == "a=1\nb=2"


def test_response_panes_are_read_only(session):
    press(session, "f9")
    type_text(session, "xyz")
    assert body(session).text == ""


def test_paste(session):
    session.paste("example.com\n/path")
    assert session.layout.text(URL_VIEW) == "example.com/path"
    press(session, "f5")
    session.paste("a=1\nb=2")
    assert session.layout.text(REQUEST_DATA_VIEW) == "a=1\nb=2"


def test_delete_word_and_line_bindings(session):
    session.layout.set_text(URL_VIEW, "http://foo.bar")
    session.handle_key(KeyEvent(key="ctrl+w"))
    assert session.layout.text(URL_VIEW) == "http://foo."

    press(session, "f5")
    session.layout.set_text(REQUEST_DATA_VIEW, "a=1\nb=2")
    session.handle_key(KeyEvent(key="ctrl+d"))
    assert session.layout.text(REQUEST_DATA_VIEW) == "a=1"


def test_header_autocomplete(session):
    press(session, "f6")
    type_text(session, "Acc")
    overlay = session.layout.pane(AUTOCOMPLETE_VIEW)
    assert overlay is not None
    assert "Accept-Encoding" in overlay.text.split("\n")

    type_text(session, "ept-E")
    assert session.layout.text(AUTOCOMPLETE_VIEW) == "ncoding"
    press(session, "enter")
    assert session.layout.text(REQUEST_HEADERS_VIEW) == "Accept-Encoding"
    assert not session.layout.exists(AUTOCOMPLETE_VIEW)


# ============================================================================
# REQUESTS
# ============================================================================

def test_submit_from_url_pane(session, submitted, finish, http_server):
    session.layout.set_text(URL_VIEW, f"{http_server}/json")
    press(session, "enter")
    assert session.pending == 1
    assert session.layout.exists(POPUP_VIEW)

    finish(submitted[0])
    assert session.pending == 0
    assert not session.layout.exists(POPUP_VIEW)
    assert len(session.history) == 1
    assert session.layout.text(RESPONSE_HEADERS_VIEW).startswith("HTTP/1.1 200 OK\n")
    assert body(session).title == "Response body [json]"
    assert body(session).text == json.dumps(json.loads(session.history.current.raw_body), indent=2)

    status = session.layout.text(STATUSLINE_VIEW)
    assert "[Request no.: 1/1]" in status
    assert "[Response time: " in status


def test_submit_binding_from_any_pane(session, submitted, finish, http_server):
    session.layout.set_text(URL_VIEW, f"{http_server}/bin")
    press(session, "f5", "ctrl+r")
    finish(submitted[0])
    assert body(session).title == "Response body [binary]"
    assert body(session).text.startswith("00000000  00 01 02 03")
    assert "[Search type: none]" in session.layout.text(STATUSLINE_VIEW)


def test_request_error_is_shown_in_body(session, fetch):
    fetch("", **{URL_VIEW: "ftp://example.com/"})
    assert body(session).text.startswith("URL parse error")
    assert body(session).title == "Response body"
    assert len(session.history) == 0
    assert not session.layout.exists(POPUP_VIEW)


def test_sending_popup_stays_until_last_completion(session, http_server):
    session.layout.set_text(URL_VIEW, f"{http_server}/json")
    first = session.submit()
    second = session.submit()
    first.result(timeout=10)
    second.result(timeout=10)
    assert session.pending == 2
    assert session.layout.exists(POPUP_VIEW)

    assert session.drain() == 2
    assert session.pending == 0
    assert not session.layout.exists(POPUP_VIEW)
    assert len(session.history) == 2


def test_new_submit_clears_previous_response(session, fetch):
    fetch("/json")
    session.layout.set_text(URL_VIEW, "http://127.0.0.1:1/")
    session.submit()
    assert body(session).text == ""
    assert session.layout.text(RESPONSE_HEADERS_VIEW) == ""


# ============================================================================
# SEARCH
# ============================================================================

def test_json_query(session, fetch):
    fetch("/json")
    session.layout.set_text(SEARCH_VIEW, "name")
    session.print_body()
    assert body(session).text == "-----\nreqterm\n"
    assert body(session).title == "1 results"


def test_failed_query_keeps_previous_result(session, fetch):
    fetch("/json")
    session.layout.set_text(SEARCH_VIEW, "nested")
    session.print_body()
    previous = body(session).text

    session.layout.set_text(SEARCH_VIEW, "nested.missing")
    session.print_body()
    assert body(session).title == "Showing previous result"
    assert body(session).text == previous


def test_typing_in_search_pane_re_renders(session, fetch):
    fetch("/json")
    press(session, "f7")
    type_text(session, "items[0]")
    assert session.drain() == len("items[0]")
    assert body(session).text == "-----\n1\n"


def test_context_search_toggle_falls_back_to_regex(session, fetch):
    fetch("/json")
    session.layout.set_text(SEARCH_VIEW, r"req\w+")
    session.handle_key(KeyEvent(key="ctrl+t"))
    assert session.options.context_specific_search is False
    assert body(session).text == "-----\nreqterm\n"
    assert "[Search type: regex]" in session.layout.text(STATUSLINE_VIEW)


def test_text_search_without_results(session, fetch):
    fetch("/gzip")
    session.layout.set_text(SEARCH_VIEW, "absent")
    session.print_body()
    assert body(session).text == "Error: no results"
    assert body(session).title == "No results"


def test_html_selector(session, fetch):
    fetch("/html")
    session.layout.set_text(SEARCH_VIEW, "p.x")
    session.print_body()
    assert body(session).text == '-----\n<p class="x">hi</p>\n'


# ============================================================================
# HISTORY AND METHOD LIST
# ============================================================================

def test_empty_history_popup(session):
    session.handle_key(KeyEvent(ch="h", alt=True))
    assert session.focused == HISTORY_VIEW
    assert session.layout.text(HISTORY_VIEW) == MSG_NO_HISTORY
    session.handle_key(KeyEvent(ch="h", alt=True))
    assert session.focused == URL_VIEW


def test_history_restore(session, fetch, http_server):
    fetch("/json")
    fetch("/gzip")
    session.handle_key(KeyEvent(ch="h", alt=True))
    popup = session.layout.pane(HISTORY_VIEW)
    assert popup.highlight == 1
    assert popup.text.split("\n")[0] == f"[00] GET {http_server}/json"

    press(session, "up", "up")
    assert popup.highlight == 0
    press(session, "enter")
    assert not session.layout.exists(HISTORY_VIEW)
    assert session.focused == URL_VIEW
    assert session.layout.text(URL_VIEW) == f"{http_server}/json"
    assert session.history.index == 0
    assert body(session).title == "Response body [json]"
    assert "[Request no.: 1/2]" in session.layout.text(STATUSLINE_VIEW)


def test_clear_history(session, fetch):
    fetch("/json")
    session.handle_key(KeyEvent(key="ctrl+x"))
    assert len(session.history) == 0
    assert body(session).text == ""
    assert body(session).title == "Response body"
    assert "[Request no.: 0/0]" in session.layout.text(STATUSLINE_VIEW)


def test_method_cycling_stops_at_ends(session):
    press(session, "f4", "up")
    assert session.layout.text(REQUEST_METHOD_VIEW) == "GET"
    press(session, "down", "down")
    assert session.layout.text(REQUEST_METHOD_VIEW) == "PUT"
    session.layout.set_text(REQUEST_METHOD_VIEW, "brew")
    press(session, "down")
    assert session.layout.text(REQUEST_METHOD_VIEW) == "GET"


def test_method_list_popup(session):
    press(session, "f4")
    session.layout.set_text(REQUEST_METHOD_VIEW, "DELETE")
    press(session, "enter")
    popup = session.layout.pane(METHOD_LIST_VIEW)
    assert session.focused == METHOD_LIST_VIEW
    assert popup.highlight == 3
    assert not session.layout.cursor_visible

    press(session, "down", "enter")
    assert session.layout.text(REQUEST_METHOD_VIEW) == "PATCH"
    assert session.focused == REQUEST_METHOD_VIEW
    assert session.layout.cursor_visible


# ============================================================================
# DIALOGS
# ============================================================================

def submit_dialog(session, path):
    assert session.focused == SAVE_DIALOG_VIEW
    session.layout.pane(SAVE_DIALOG_VIEW).set_text(str(path))
    press(session, "enter")


def test_save_dialog_is_prefilled_with_cwd(session):
    session.handle_key(KeyEvent(key="ctrl+s"))
    assert session.layout.text(SAVE_DIALOG_VIEW) == os.getcwd() + os.sep
    assert session.layout.cursor_visible
    session.handle_key(KeyEvent(key="ctrl+q"))
    assert not session.layout.exists(SAVE_DIALOG_VIEW)
    assert session.focused == URL_VIEW


def test_save_response(session, fetch, tmp_path):
    fetch("/bin")
    target = tmp_path / "body.bin"
    session.handle_key(KeyEvent(key="ctrl+s"))
    submit_dialog(session, target)
    assert target.read_bytes() == bytes(range(32))
    assert session.focused == SAVE_RESULT_VIEW
    assert session.layout.text(SAVE_RESULT_VIEW) == MSG_RESPONSE_SAVED
    press(session, "enter")
    assert session.focused == URL_VIEW


def test_save_response_without_response(session, tmp_path):
    session.handle_key(KeyEvent(key="ctrl+s"))
    submit_dialog(session, tmp_path / "body.bin")
    assert session.layout.text(SAVE_RESULT_VIEW) == MSG_NO_RESPONSE
    assert not (tmp_path / "body.bin").exists()


def test_save_and_load_request(session, tmp_path):
    target = tmp_path / "request.json"
    session.layout.set_text(URL_VIEW, "http://saved.example/")
    session.layout.set_text(URL_PARAMS_VIEW, "a=1")
    session.handle_key(KeyEvent(key="ctrl+e"))
    submit_dialog(session, target)
    assert session.layout.text(SAVE_RESULT_VIEW) == MSG_REQUEST_SAVED
    press(session, "escape")

    session.layout.set_text(URL_VIEW, "http://other.example/")
    session.layout.set_text(URL_PARAMS_VIEW, "")
    session.handle_key(KeyEvent(key="ctrl+f"))
    submit_dialog(session, target)
    assert session.layout.text(URL_VIEW) == "http://saved.example/"
    assert session.layout.text(URL_PARAMS_VIEW) == "a=1"
    assert session.layout.text(REQUEST_METHOD_VIEW) == "GET"


def test_load_missing_request_shows_error(session, tmp_path):
    session.handle_key(KeyEvent(key="ctrl+f"))
    submit_dialog(session, tmp_path / "missing.json")
    assert body(session).text.startswith("File reading error")


# ============================================================================
# POPUPS
# ============================================================================

def test_help_popup(session):
    press(session, "f1")
    assert session.focused == HELP_VIEW
    assert session.layout.text(HELP_VIEW).startswith("Keybindings:")
    press(session, "escape")
    assert session.focused == URL_VIEW
    press(session, "f1", "f1")
    assert not session.layout.exists(HELP_VIEW)


def test_trace_popup(session, fetch):
    session.handle_key(KeyEvent(key="ctrl+b"))
    assert session.layout.text(TRACE_VIEW) == MSG_TRACE_EMPTY
    press(session, "enter")
    assert not session.layout.exists(TRACE_VIEW)

    fetch("/json")
    session.handle_key(KeyEvent(key="ctrl+b"))
    assert "GotFirstResponseByte(200" in session.layout.text(TRACE_VIEW)


def test_second_popup_replaces_first(session):
    press(session, "f1")
    session.handle_key(KeyEvent(key="ctrl+b"))
    assert not session.layout.exists(HELP_VIEW)
    assert session.focused == TRACE_VIEW
    press(session, "escape")
    assert session.focused == URL_VIEW


# ============================================================================
# TERMINAL SIZE AND QUIT
# ============================================================================

def test_too_small_terminal_only_accepts_quit(session):
    session.layout.set_text(URL_VIEW, "kept")
    press(session, "f1")
    session.resize(40, 10)
    assert session.focused == ERROR_VIEW
    assert session.handle_key(KeyEvent(ch="x")) is False
    assert session.handle_key(KeyEvent(key="f2")) is False

    session.resize(120, 40)
    assert session.focused == URL_VIEW
    assert not session.layout.exists(HELP_VIEW)
    assert session.layout.text(URL_VIEW) == "kept"

    session.resize(40, 10)
    assert session.handle_key(KeyEvent(key="ctrl+c")) is True
    assert session.quits == [True]


def test_sending_popup_returns_after_recovery(session):
    session.pending = 1
    session.resize(40, 10)
    assert not session.layout.exists(POPUP_VIEW)
    session.resize(120, 40)
    assert session.layout.exists(POPUP_VIEW)
    session.pending = 0


def test_quit_binding(session):
    session.handle_key(KeyEvent(key="ctrl+c"))
    assert session.quits == [True]


# ============================================================================
# EXTERNAL EDITOR
# ============================================================================

def test_open_editor_without_terminal(session):
    session.handle_key(KeyEvent(key="ctrl+o"))
    assert body(session).text.startswith("Editor open error")


def test_open_editor_updates_pane(config):
    def run_external(command):
        path = command[-1]
        before = os.stat(path).st_mtime_ns
        with open(path, "w", encoding="utf-8") as handle:
            handle.write("edited.example\n")
        os.utime(path, ns=(before + 10**9, before + 10**9))
        return 0

    session = Session(config, run_external=run_external)
    try:
        session.resize(120, 40)
        session.handle_key(KeyEvent(key="ctrl+o"))
        assert session.layout.text(URL_VIEW) == "edited.example"
    finally:
        session.close()
