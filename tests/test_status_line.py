"""
Status line template rendering.
"""

import pytest

from reqterm import __version__
from reqterm.errors import ConfigError
from reqterm.formatters import FormatterRegistry
from reqterm.history import History, Request
from reqterm.status_line import StatusLine


def test_unknown_placeholder_is_config_error():
    with pytest.raises(ConfigError):
        StatusLine("{bogus}")
    with pytest.raises(ConfigError):
        StatusLine("{unclosed")


def test_default_template_with_empty_history():
    text = StatusLine().render(History(), True)
    assert f"[reqterm {__version__}]" in text
    assert "[Request no.: 0/0]" in text
    assert "[Search type: response specific]" in text
    assert "Response time" not in text


def test_search_type_follows_formatter_and_toggle():
    registry = FormatterRegistry()
    history = History()
    history.append(Request(url="http://h/", method="GET", duration=0.25, formatter=registry.plain))
    line = StatusLine("{request_number}/{history_size} {search_type} {duration}")
    assert line.render(history, False) == "1/1 regex 250.0ms"

    history.append(Request(url="http://h/", method="GET", formatter=registry.binary))
    assert line.render(history, True).split(" ")[1] == "none"
