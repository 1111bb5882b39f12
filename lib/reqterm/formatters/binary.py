"""
Reqterm - Hex dump formatter for binary bodies.
"""

from __future__ import annotations

from rich.text import Text

from ..errors import SearchError
from .base import ResponseFormatter

BYTES_PER_ROW = 16


def hex_dump(data: bytes) -> str:
    """Offset, 16 hex cells split in two groups of 8, then the printable ASCII column."""
    rows = []
    for offset in range(0, len(data), BYTES_PER_ROW):
        chunk = data[offset:offset + BYTES_PER_ROW]
        cells = []
        for index in range(BYTES_PER_ROW):
            cell = f"{chunk[index]:02x} " if index < len(chunk) else "   "
            if index == 7:
                cell += " "
            cells.append(cell)
        ascii_column = "".join(chr(byte) if 32 <= byte <= 126 else "." for byte in chunk)
        rows.append(f"{offset:08x}  {''.join(cells)} |{ascii_column}|\n")
    return "".join(rows)


class BinaryFormatter(ResponseFormatter):
    tag = "binary"

    def searchable(self) -> bool:
        return False

    def format(self, body: bytes) -> Text:
        return Text(hex_dump(body))

    def search(self, query, body, owner=None):
        raise SearchError("cannot search binary content")
