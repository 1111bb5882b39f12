"""
Reqterm - JSON formatter with JMESPath queries.
"""

from __future__ import annotations

import json

import jmespath
from jmespath.exceptions import JMESPathError
from rich.highlighter import JSONHighlighter
from rich.text import Text

from ..errors import DecodeError, SearchError
from .base import ResponseFormatter, decode_text


def _pretty(document) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


class JSONFormatter(ResponseFormatter):
    tag = "json"

    def __init__(self) -> None:
        super().__init__()
        self._highlighter = JSONHighlighter()

    def highlight(self, fragment: str) -> Text:
        return self._highlighter(Text(fragment))

    def format(self, body: bytes) -> Text:
        try:
            document = json.loads(decode_text(body))
        except ValueError as exc:
            raise DecodeError(f"json formatter error: {exc}") from exc
        return self.highlight(_pretty(document))

    def _parse(self, body: bytes):
        try:
            return json.loads(decode_text(body))
        except ValueError as exc:
            raise DecodeError(f"json parse error: {exc}", keep_previous=True) from exc

    def search(self, query, body, owner=None):
        if owner is not None:
            document = owner.parsed_body(self._parse)
        else:
            document = self._parse(body)

        if not query:
            return [_pretty(document)]

        try:
            result = jmespath.search(query, document)
        except JMESPathError as exc:
            raise SearchError(f"invalid query: {exc}", keep_previous=True) from exc

        if result is None:
            raise SearchError("invalid query or no results found", keep_previous=True)
        if isinstance(result, (dict, list)):
            return [_pretty(result)]
        if isinstance(result, str):
            return [result]
        return [json.dumps(result)]
