"""
Single popup slot and focus ring.
"""

from reqterm.constants import HISTORY_VIEW, METHOD_LIST_VIEW, SAVE_DIALOG_VIEW, VIEWS
from reqterm.layout import LayoutEngine
from reqterm.popups import FocusRing, PopupSlot


def make_slot():
    layout = LayoutEngine()
    layout.layout(120, 40)
    ring = FocusRing(VIEWS)
    return layout, ring, PopupSlot(layout, ring)


def test_focus_ring_wraps():
    ring = FocusRing(["a", "b", "c"])
    assert ring.prev() == "c"
    assert ring.next() == "a"
    assert ring.set_by_name("b")
    assert ring.current == "b"
    assert not ring.set_by_name("zzz")
    assert ring.current == "b"


def test_open_focuses_popup_and_close_restores_focus():
    layout, ring, slot = make_slot()
    ring.index = 2
    slot.open(HISTORY_VIEW, 100, 5, text="[00] GET http://x/")
    assert slot.focused == HISTORY_VIEW
    assert layout.cursor_visible is False

    ring.next()
    assert slot.close()
    assert slot.focused is None
    assert ring.index == 2
    assert layout.cursor_visible is True
    assert not layout.exists(HISTORY_VIEW)


def test_text_dialog_keeps_cursor_visible():
    layout, ring, slot = make_slot()
    slot.open(SAVE_DIALOG_VIEW, 60, 1, editable=True)
    assert layout.cursor_visible is True


def test_opening_second_popup_closes_first():
    layout, ring, slot = make_slot()
    slot.open(HISTORY_VIEW, 100, 5)
    slot.open(METHOD_LIST_VIEW, 50, 9)
    assert not layout.exists(HISTORY_VIEW)
    assert layout.exists(METHOD_LIST_VIEW)
    assert slot.current == METHOD_LIST_VIEW


def test_toggle_and_named_close():
    layout, ring, slot = make_slot()
    assert slot.toggle(HISTORY_VIEW, 100, 5) is not None
    assert not slot.close(METHOD_LIST_VIEW)
    assert slot.toggle(HISTORY_VIEW, 100, 5) is None
    assert slot.current is None


def test_no_popup_while_too_small():
    layout, ring, slot = make_slot()
    layout.layout(30, 10)
    assert slot.open(HISTORY_VIEW, 100, 5) is None
    assert slot.current is None
