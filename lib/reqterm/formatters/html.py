"""
Reqterm - HTML formatter with CSS selector queries.
"""

from __future__ import annotations

from bs4 import BeautifulSoup
from rich.syntax import Syntax
from rich.text import Text
from soupsieve import SelectorSyntaxError

from ..errors import SearchError
from .base import ResponseFormatter, decode_text


class HTMLFormatter(ResponseFormatter):
    tag = "html"

    def __init__(self) -> None:
        super().__init__()
        self._syntax = Syntax("", "html", theme="monokai")

    def highlight(self, fragment: str) -> Text:
        text = self._syntax.highlight(fragment)
        text.rstrip()
        return text

    def format(self, body: bytes) -> Text:
        return self.highlight(decode_text(body))

    def _parse(self, body: bytes) -> BeautifulSoup:
        return BeautifulSoup(decode_text(body), "html.parser")

    def search(self, query, body, owner=None):
        if not query:
            return [self.format(body).plain]
        soup = owner.parsed_body(self._parse) if owner is not None else self._parse(body)
        try:
            matches = soup.select(query)
        except SelectorSyntaxError as exc:
            raise SearchError(f"invalid selector: {exc}") from exc
        return [str(tag) for tag in matches]
