"""
Reqterm - Plain text formatter with regular expression search.
"""

from __future__ import annotations

import re
from itertools import islice

from rich.text import Text

from ..errors import SearchError
from .base import ResponseFormatter, decode_text

MAX_SEARCH_RESULTS = 1000


class TextFormatter(ResponseFormatter):
    tag = "text"

    def format(self, body: bytes) -> Text:
        return Text(decode_text(body))

    def search(self, query, body, owner=None):
        if not query:
            return [self.format(body).plain]
        try:
            pattern = re.compile(query)
        except re.error as exc:
            raise SearchError(f"invalid search regexp: {exc}") from exc
        matches = islice(pattern.finditer(decode_text(body)), MAX_SEARCH_RESULTS)
        return [match.group(0) for match in matches]
