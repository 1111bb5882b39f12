"""
Reqterm - Configuration

General options, the default key table and TOML config loading.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import os
import re
import logging
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path

from .constants import (
    ALL_VIEWS,
    DEFAULT_STATUS_LINE,
    DEFAULT_TIMEOUT,
    RESPONSE_BODY_VIEW,
    RESPONSE_HEADERS_VIEW,
    TLS_VERSIONS,
    URL_VIEW,
)
from .errors import ConfigError


logger = logging.getLogger('Config')


# ============================================================================
# OPTIONS
# ============================================================================

@dataclass
class GeneralOptions:
    """The [general] table of the config file."""

    timeout: float = DEFAULT_TIMEOUT  # seconds
    format_json: bool = True
    insecure: bool = False
    preserve_scroll_position: bool = True
    default_url_scheme: str = "https"
    follow_redirects: bool = True
    context_specific_search: bool = True
    editor: str = ""
    status_line: str = DEFAULT_STATUS_LINE
    tls_version_min: str = "TLS1.2"
    tls_version_max: str = "TLS1.3"
    proxy: str = ""


# pane name -> key spec -> command string ("submit", "focus url", ...)
KeyTable = dict[str, dict[str, str]]


def default_keys() -> KeyTable:
    return {
        ALL_VIEWS: {
            "CtrlR": "submit",
            "CtrlC": "quit",
            "CtrlS": "saveResponse",
            "CtrlF": "loadRequest",
            "CtrlE": "saveRequest",
            "CtrlD": "deleteLine",
            "CtrlW": "deleteWord",
            "CtrlO": "openEditor",
            "CtrlT": "toggleContextSpecificSearch",
            "CtrlX": "clearHistory",
            "CtrlB": "trace",
            "Tab": "nextView",
            "CtrlJ": "nextView",
            "CtrlK": "prevView",
            "BackTab": "prevView",
            "AltH": "history",
            "F1": "help",
            "F2": "focus url",
            "F3": "focus get",
            "F4": "focus method",
            "F5": "focus data",
            "F6": "focus headers",
            "F7": "focus search",
            "F8": "focus response-headers",
            "F9": "focus response-body",
        },
        URL_VIEW: {
            "Enter": "submit",
        },
        RESPONSE_HEADERS_VIEW: {
            "ArrowUp": "scrollUp",
            "ArrowDown": "scrollDown",
            "PageUp": "pageUp",
            "PageDown": "pageDown",
        },
        RESPONSE_BODY_VIEW: {
            "ArrowUp": "scrollUp",
            "ArrowDown": "scrollDown",
            "PageUp": "pageUp",
            "PageDown": "pageDown",
        },
    }


@dataclass
class Config:
    general: GeneralOptions = field(default_factory=GeneralOptions)
    keys: KeyTable = field(default_factory=default_keys)


# ============================================================================
# PARSING HELPERS
# ============================================================================

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value) -> float:
    """Convert "1m30s", "500ms" or a bare number of seconds into seconds."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
        if not text or pos != len(text):
            raise ConfigError(f"Invalid duration: {value!r}")
    if seconds <= 0:
        raise ConfigError(f"Duration must be positive: {value!r}")
    return seconds


def check_tls_version(value: str) -> str:
    if value not in TLS_VERSIONS:
        raise ConfigError(f"Unknown TLS version: {value}")
    return value


def default_config_path() -> Path:
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "reqterm" / "config.toml"
    return Path.home() / ".config" / "reqterm" / "config.toml"


# ============================================================================
# LOADING
# ============================================================================

def _apply_general(general: GeneralOptions, data: dict) -> None:
    known = {f.name: f for f in fields(GeneralOptions)}
    for key, value in data.items():
        option = known.get(key)
        if option is None:
            raise ConfigError(f"Unknown option in [general]: {key}")
        if key == "timeout":
            value = parse_duration(value)
        elif key in ("tls_version_min", "tls_version_max"):
            value = check_tls_version(value)
        elif option.type in (bool, "bool") and not isinstance(value, bool):
            raise ConfigError(f"Option {key} must be a boolean")
        elif option.type in (str, "str") and not isinstance(value, str):
            raise ConfigError(f"Option {key} must be a string")
        setattr(general, key, value)


def load_config(path: Path | None = None, *, required: bool = False) -> Config:
    """Load the TOML config file, falling back to defaults when it is missing.

    Key tables from the file are merged over the default key table pane by
    pane, so a file only needs to list the bindings it changes.
    """
    path = Path(path) if path is not None else default_config_path()
    config = Config()

    if not path.exists():
        if required:
            raise ConfigError(f"Config file does not exist: {path}")
        logger.debug(f"No config file at {path}, using defaults")
        return config

    try:
        with path.open('rb') as config_file:
            data = tomllib.load(config_file)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    _apply_general(config.general, data.get("general", {}))

    keys = data.get("keys", {})
    if not isinstance(keys, dict):
        raise ConfigError("[keys] must be a table of per-pane tables")
    for pane, bindings in keys.items():
        if not isinstance(bindings, dict):
            raise ConfigError(f"[keys.{pane}] must be a table")
        merged = config.keys.setdefault(pane, {})
        for key_spec, command in bindings.items():
            if not isinstance(command, str):
                raise ConfigError(f"Binding {pane}.{key_spec} must be a string")
            merged[key_spec] = command

    logger.info(f"Loaded config from {path}")
    return config


__all__ = [
    'GeneralOptions',
    'Config',
    'KeyTable',
    'default_keys',
    'parse_duration',
    'check_tls_version',
    'default_config_path',
    'load_config',
]
