"""
Reqterm - Error Types

Every error the core reports inline derives from ReqtermError. Only
ConfigError is fatal, and only before the event loop starts.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""


class ReqtermError(Exception):
    """Base class for errors rendered inline in the response body pane."""

    # When True the pane keeps whatever it displayed before the failure
    keep_previous = False

    def __init__(self, message: str, *, keep_previous: bool | None = None) -> None:
        super().__init__(message)
        if keep_previous is not None:
            self.keep_previous = keep_previous


class InputError(ReqtermError):
    """Malformed URL, header, query parameter, form field or request file."""


class NetworkError(ReqtermError):
    """Connect failure, timeout or TLS negotiation failure."""


class DecodeError(ReqtermError):
    """Failed decompression or failed parse of a response body."""


class SearchError(ReqtermError):
    """Invalid pattern, unsearchable content, or unresolved structured path."""


class ConfigError(ReqtermError):
    """Bad configuration or startup arguments."""


__all__ = [
    'ReqtermError',
    'InputError',
    'NetworkError',
    'DecodeError',
    'SearchError',
    'ConfigError',
]
