"""
Reqterm - Formatter Registry

Maps a response content type to exactly one formatter.
"""

from __future__ import annotations

from .base import ResponseFormatter
from .binary import BinaryFormatter, hex_dump
from .html import HTMLFormatter
from .json import JSONFormatter
from .text import TextFormatter

JSON_MEDIA_TYPE = "application/json"


def media_type(content_type: str) -> str:
    """Lower-cased media type with parameters stripped."""
    return content_type.split(";", 1)[0].strip().lower()


class FormatterRegistry:
    """One shared instance of each formatter; dispatch by content type."""

    def __init__(self, format_json: bool = True) -> None:
        self.format_json = format_json
        self.plain = TextFormatter()
        self.json = JSONFormatter()
        self.html = HTMLFormatter()
        self.binary = BinaryFormatter()

    def for_content_type(self, content_type: str | None) -> ResponseFormatter:
        content_type = (content_type or "").lower()
        ctype = media_type(content_type)
        if self.format_json and (ctype == JSON_MEDIA_TYPE or ctype.endswith("+json")):
            return self.json
        if "text/html" in content_type:
            return self.html
        if "text" not in content_type and "application" not in content_type:
            return self.binary
        return self.plain


__all__ = [
    "ResponseFormatter",
    "FormatterRegistry",
    "TextFormatter",
    "JSONFormatter",
    "HTMLFormatter",
    "BinaryFormatter",
    "hex_dump",
    "media_type",
]
