"""
Reqterm - Request and Response Files

A saved request is a JSON object mapping pane name to raw pane text.
A saved response is the exact raw body bytes.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import json
import logging
from pathlib import Path

from .constants import REQUEST_VIEWS
from .errors import DecodeError, InputError

logger = logging.getLogger('Persistence')


def save_request(path, texts: dict[str, str]) -> None:
    """Write the request panes; raises OSError on failure."""
    payload = {name: texts.get(name, "") for name in REQUEST_VIEWS}
    path = Path(path).expanduser()
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Request saved to {path}")


def load_request(path) -> dict[str, str]:
    """Read a request file; only known pane names present in the file are returned."""
    path = Path(path).expanduser()
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"File reading error: {exc}") from exc
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise DecodeError(f"JSON decoding error: {exc}") from exc
    if not isinstance(data, dict):
        raise DecodeError("JSON decoding error: expected an object of pane name to text")

    texts = {}
    for name in REQUEST_VIEWS:
        if name not in data:
            continue
        value = data[name]
        if not isinstance(value, str):
            raise DecodeError(f"JSON decoding error: value of {name!r} must be a string")
        texts[name] = value
    logger.info(f"Request loaded from {path}")
    return texts


def save_response(path, body: bytes) -> None:
    path = Path(path).expanduser()
    path.write_bytes(body)
    logger.info(f"Response saved to {path} ({len(body)} bytes)")


__all__ = ['save_request', 'load_request', 'save_response']
