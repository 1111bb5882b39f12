"""
Reqterm - Status Line

A str.format template rendered from History and search state.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import string

from . import __version__
from .constants import DEFAULT_STATUS_LINE, ERROR_STATUS_LINE
from .errors import ConfigError

STATUS_FIELDS = frozenset({
    "version",
    "duration",
    "response_time",
    "request_number",
    "history_size",
    "search_type",
})


class StatusLine:
    """Template with {version}, {duration}, {response_time}, {request_number},
    {history_size} and {search_type} placeholders."""

    def __init__(self, template: str = DEFAULT_STATUS_LINE) -> None:
        try:
            parsed = list(string.Formatter().parse(template))
        except ValueError as exc:
            raise ConfigError(f"Invalid status line template: {exc}") from exc
        for _, field_name, _, _ in parsed:
            if field_name is None:
                continue
            if field_name not in STATUS_FIELDS:
                raise ConfigError(f"Unknown status line field: {{{field_name}}}")
        self.template = template

    def fields(self, history, context_specific_search: bool) -> dict[str, str]:
        current = history.current
        duration = current.duration_text if current is not None else ""
        if current is not None and current.formatter is not None and not current.formatter.searchable():
            search_type = "none"
        elif context_specific_search:
            search_type = "response specific"
        else:
            search_type = "regex"
        return {
            "version": __version__,
            "duration": duration,
            "response_time": f" [Response time: {duration}]" if duration else "",
            "request_number": str(history.index + 1 if len(history) else 0),
            "history_size": str(len(history)),
            "search_type": search_type,
        }

    def render(self, history, context_specific_search: bool) -> str:
        try:
            return self.template.format(**self.fields(history, context_specific_search))
        except (ValueError, KeyError, IndexError) as exc:
            return ERROR_STATUS_LINE.format(error=exc)


__all__ = ['StatusLine', 'STATUS_FIELDS']
