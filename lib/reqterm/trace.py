"""
Reqterm - Client Trace

A small ring buffer of request lifecycle events shown in the trace popup.
Workers write to it; the event loop reads it.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import logging
import threading
from collections import deque
from datetime import datetime

from .constants import TRACE_BUFFER_LENGTH, TRACE_LINE_WIDTH, TRACE_TIMESTAMP_FORMAT
from . import utils  # noqa: F401  (registers Logger.trace)

# "[HH:MM:SS.ffffff] "
_PREFIX_WIDTH = len(datetime.now().strftime(TRACE_TIMESTAMP_FORMAT)) + 3


class ClientTrace:
    """Thread-safe ring buffer of formatted trace lines."""

    def __init__(self, length: int = TRACE_BUFFER_LENGTH, line_width: int = TRACE_LINE_WIDTH) -> None:
        self.logger = logging.getLogger('ClientTrace')
        self._lock = threading.Lock()
        self._events: deque[str] = deque(maxlen=length)
        self._line_width = line_width

    def write(self, fmt: str, *args) -> str:
        message = fmt % args if args else fmt
        width = max(1, self._line_width - _PREFIX_WIDTH)
        if len(message) > width:
            chunks = [message[start:start + width] for start in range(0, len(message), width)]
            message = ("\n" + " " * _PREFIX_WIDTH).join(chunks)
        line = f"[{datetime.now().strftime(TRACE_TIMESTAMP_FORMAT)}] {message}"
        with self._lock:
            self._events.append(line)
        self.logger.trace("%s", line)
        return line

    def dump(self) -> str:
        with self._lock:
            return "".join(f"{line}\n" for line in self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def response_hook(self, response, *args, **kwargs):
        """requests response hook; fires for every response, redirects included."""
        self.write("GotResponse(%s)", response.url)
        self.write("GotFirstResponseByte(%s %s)", response.status_code, response.reason)
        if response.is_redirect:
            self.write("Redirect(%s)", response.headers.get("Location", ""))
        return response


__all__ = ['ClientTrace']
