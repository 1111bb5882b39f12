"""
History list, cursor and one-line descriptions.
"""

from reqterm.history import History, Request


def make_request(url="http://h/", **kwargs):
    return Request(url=url, method=kwargs.pop("method", "GET"), **kwargs)


def test_append_moves_cursor_to_last():
    history = History()
    assert history.current is None
    assert history.append(make_request("http://a/")) == 0
    assert history.append(make_request("http://b/")) == 1
    assert history.index == 1
    assert history.current.url == "http://b/"
    assert len(history) == 2


def test_restore_out_of_range_is_noop():
    history = History()
    history.append(make_request("http://a/"))
    history.append(make_request("http://b/"))
    assert history.restore(5) is None
    assert history.restore(-1) is None
    assert history.index == 1
    assert history.restore(0).url == "http://a/"
    assert history.index == 0
    assert len(history) == 2


def test_clear_resets():
    history = History()
    history.append(make_request())
    history.clear()
    assert len(history) == 0
    assert history.index == 0
    assert history.current is None


def test_describe_line():
    request = make_request(
        "http://x/",
        params="a=1\nb=2",
        data="k=v\nz=w",
        headers="H: v\nK: w",
    )
    assert request.describe(3) == "[03] GET http://x/?a=1&b=2 k=v&z=w H: v;K: w"
    assert make_request("http://y/", method="DELETE").describe(12) == "[12] DELETE http://y/"


def test_pane_texts_and_duration():
    request = make_request("http://x/", params="a=1", duration=0.0425)
    assert request.pane_texts()["get"] == "a=1"
    assert request.pane_texts()["method"] == "GET"
    assert request.duration_text == "42.5ms"
    assert make_request(duration=1.5).duration_text == "1.500s"
