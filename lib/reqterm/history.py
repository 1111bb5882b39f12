"""
Reqterm - Request History

Completed requests in submission order plus the "current" cursor.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .constants import (
    REQUEST_DATA_VIEW,
    REQUEST_HEADERS_VIEW,
    REQUEST_METHOD_VIEW,
    URL_PARAMS_VIEW,
    URL_VIEW,
)
from .formatters import ResponseFormatter

_UNSET = object()


@dataclass
class Request:
    """One completed exchange; read-only once appended, except the parse cache."""

    url: str
    method: str
    params: str = ""
    data: str = ""
    headers: str = ""
    response_headers: str = ""
    raw_body: bytes | None = None
    content_type: str = ""
    duration: float = 0.0
    status_code: int = 0
    formatter: ResponseFormatter | None = None
    _parsed: Any = field(default=_UNSET, repr=False, compare=False)

    def parsed_body(self, loader: Callable[[bytes], Any]) -> Any:
        """Parse the body once with loader and cache the result."""
        if self._parsed is _UNSET:
            self._parsed = loader(self.raw_body or b"")
        return self._parsed

    def pane_texts(self) -> dict[str, str]:
        return {
            URL_VIEW: self.url,
            REQUEST_METHOD_VIEW: self.method,
            URL_PARAMS_VIEW: self.params,
            REQUEST_DATA_VIEW: self.data,
            REQUEST_HEADERS_VIEW: self.headers,
        }

    def describe(self, index: int) -> str:
        """One history line: [NN] METHOD URL?params data headers"""
        line = f"[{index:02d}] {self.method} {self.url}"
        if self.params:
            line += "?" + self.params.replace("\n", "&")
        if self.data:
            line += " " + self.data.replace("\n", "&")
        if self.headers:
            line += " " + self.headers.replace("\n", ";")
        return line

    @property
    def duration_text(self) -> str:
        if self.duration >= 1:
            return f"{self.duration:.3f}s"
        return f"{self.duration * 1000:.1f}ms"


class History:
    """Append-only list of requests with an index to the displayed one."""

    def __init__(self) -> None:
        self.logger = logging.getLogger('History')
        self._entries: list[Request] = []
        self.index = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __getitem__(self, index: int) -> Request:
        return self._entries[index]

    @property
    def current(self) -> Request | None:
        if not self._entries:
            return None
        return self._entries[self.index]

    def append(self, request: Request) -> int:
        self._entries.append(request)
        self.index = len(self._entries) - 1
        self.logger.debug(f"History append #{self.index}: {request.method} {request.url}")
        return self.index

    def restore(self, index: int) -> Request | None:
        """Move the cursor to index; out-of-range indices change nothing."""
        if index < 0 or index >= len(self._entries):
            return None
        self.index = index
        return self._entries[index]

    def clear(self) -> None:
        self.logger.debug(f"History cleared ({len(self._entries)} entries)")
        self._entries = []
        self.index = 0


__all__ = ['Request', 'History']
