"""
Layout engine: coordinate resolution, lazy panes, the too-small gate and popups.
"""

from reqterm.constants import (
    ERROR_VIEW,
    MSG_TERMINAL_TOO_SMALL,
    POPUP_VIEW,
    REQUEST_METHOD_VIEW,
    RESPONSE_BODY_VIEW,
    URL_PARAMS_VIEW,
    URL_VIEW,
    VIEW_POSITIONS,
)
from reqterm.editors import TextBuffer
from reqterm.layout import LayoutEngine, Pane, Position, ViewPosition


def test_position_rounds_half_to_even():
    assert Position(0.5, -1).resolve(101) == 49
    assert Position(0.5, -1).resolve(103) == 51
    assert Position(0.3, 0).resolve(120) == 36
    assert Position(1.0, -2).resolve(40) == 38


def test_view_position_resolves_against_terminal_size():
    position = ViewPosition.from_spec(VIEW_POSITIONS[URL_PARAMS_VIEW])
    assert position.resolve(120, 40) == (0, 3, 36, 10)
    assert position.resolve(200, 60) == (0, 3, 60, 15)


def test_layout_creates_panes_with_initial_text():
    layout = LayoutEngine()
    layout.layout(120, 40)
    assert set(VIEW_POSITIONS) <= set(layout.panes)
    assert layout.text(REQUEST_METHOD_VIEW) == "GET"
    assert layout.pane(URL_VIEW).rect == (0, 0, 120, 3)
    assert layout.pane(URL_VIEW).editable
    assert not layout.pane(RESPONSE_BODY_VIEW).editable


def test_resize_keeps_content_and_moves_rectangles():
    layout = LayoutEngine()
    layout.layout(120, 40)
    layout.set_text(URL_VIEW, "example.com")
    layout.layout(200, 60)
    assert layout.text(URL_VIEW) == "example.com"
    assert layout.pane(URL_VIEW).rect == (0, 0, 200, 3)


def test_set_text_before_first_layout_seeds_pane():
    layout = LayoutEngine()
    layout.set_text(URL_VIEW, "http://seeded/")
    assert layout.text(URL_VIEW) == "http://seeded/"
    layout.layout(120, 40)
    assert layout.pane(URL_VIEW).text == "http://seeded/"


def test_too_small_shows_only_error_and_recovers():
    events = []
    layout = LayoutEngine(on_too_small=lambda: events.append("small"), on_recover=lambda: events.append("ok"))
    layout.layout(120, 40)
    layout.set_text(URL_VIEW, "kept")
    layout.show_info("Sending request..")

    layout.layout(50, 10)
    assert layout.too_small
    assert list(layout.panes) == [ERROR_VIEW]
    assert layout.pane(ERROR_VIEW).text == MSG_TERMINAL_TOO_SMALL
    assert layout.cursor_visible is False
    assert not layout.exists(POPUP_VIEW)

    layout.layout(120, 40)
    assert not layout.too_small
    assert not layout.exists(ERROR_VIEW)
    assert layout.text(URL_VIEW) == "kept"
    assert layout.cursor_visible is True
    assert events == ["small", "ok"]


def test_popup_rect_is_centered_and_clamped():
    layout = LayoutEngine()
    layout.layout(120, 40)
    pane = layout.create_popup("history", 100, 60)
    x0, y0, x1, y1 = pane.rect
    assert y1 - y0 <= 40
    assert x0 >= 0 and x1 <= 120
    width, height = pane.inner_size()
    assert width == 100
    assert height == 36


def test_popups_are_kept_on_top_after_relayout():
    layout = LayoutEngine()
    layout.layout(120, 40)
    layout.create_popup("help", 20, 5, text="hello")
    layout.layout(130, 45)
    assert list(layout.panes)[-1] == "help"
    assert layout.delete("help")
    assert not layout.delete("help")


def test_show_info_sizes_from_message():
    layout = LayoutEngine()
    layout.layout(120, 40)
    pane = layout.show_info("Sending request..")
    assert pane.inner_size() == (len("Sending request.."), 1)
    assert pane.layer == "popup"


def test_pane_scroll_and_follow_cursor():
    pane = Pane("data", (0, 0, 20, 7), TextBuffer("\n".join(str(n) for n in range(30))), editable=True)
    pane.buffer.move_to_line(20)
    pane.follow_cursor()
    assert pane.origin == 16
    pane.scroll(100)
    assert pane.origin == 29
    pane.scroll(-100)
    assert pane.origin == 0


def test_wrapped_visual_lines():
    pane = Pane("response-body", (0, 0, 7, 5), TextBuffer("abcdefghijkl"), wrap=True)
    assert [line.plain for line in pane.visual_lines()] == ["abcde", "fghij", "kl"]
