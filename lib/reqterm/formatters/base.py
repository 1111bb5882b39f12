"""
Reqterm - Response formatter base class.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.text import Text

if TYPE_CHECKING:
    from ..history import Request


class ResponseFormatter:
    """Renders and searches a response body for one family of content types."""

    tag: str = ""

    def __init__(self) -> None:
        identifier = self.tag or self.__class__.__name__
        self.logger = logging.getLogger(f"Formatter.{identifier}")

    def title(self) -> str:
        return f"[{self.tag}]"

    def searchable(self) -> bool:
        return True

    def format(self, body: bytes) -> Text:
        raise NotImplementedError

    def highlight(self, fragment: str) -> Text:
        """Style one search result fragment."""
        return Text(fragment)

    def search(self, query: str, body: bytes, owner: Request | None = None) -> list[str]:
        raise NotImplementedError


def decode_text(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")
