"""
Reqterm - Utilities

Logging setup and small text helpers.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

import os
import sys
import logging
from pathlib import Path
from datetime import datetime

from rich.console import Console


# ============================================================================
# LOGGING SETUP
# ============================================================================

LOG_LEVELS = {
    'TRACE': 5,       # Request lifecycle, key routing, queue traffic
    'DEBUG': 10,      # Program state, important moments
    'INFO': 20,       # Rare informational messages
    'WARNING': 30,    # Warnings
    'ERROR': 40,      # Errors
    'CRITICAL': 50,   # Critical failures only
}

_STDERR_TRACE_FLAG = os.environ.get("REQTERM_STDERR_TRACE", "").strip().lower()
STDERR_TRACE_ENABLED = _STDERR_TRACE_FLAG not in {"", "0", "false", "no", "off"}

# Add TRACE level to logging
logging.addLevelName(5, 'TRACE')


def _trace(self, message, *args, **kwargs):
    if self.isEnabledFor(5):
        self._log(5, message, args, **kwargs)


# Registered at import so module-level loggers can trace before setup_logging runs
if not hasattr(logging.Logger, "trace"):
    logging.Logger.trace = _trace  # type: ignore[attr-defined]


def log_directory() -> Path:
    override = os.environ.get("REQTERM_LOG_DIR")
    if override:
        return Path(override)
    return Path.home() / ".reqterm" / "logs"


def setup_logging(log_dir: Path | None = None):
    """Setup logging based on LOGLEVEL environment variable"""
    log_level_name = os.environ.get('LOGLEVEL', 'INFO').upper()
    log_level = LOG_LEVELS.get(log_level_name, 20)

    log_dir = log_dir or log_directory()
    log_dir.mkdir(parents=True, exist_ok=True)

    # Log file with timestamp (one file per app run)
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_file = log_dir / f"reqterm_{timestamp}.log"

    formatter = logging.Formatter(
        '%(asctime)s.%(msecs)03d [%(levelname)-5s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Remove previously managed handlers to avoid duplicates
    for handler in list(logger.handlers):
        if getattr(handler, "_reqterm_managed", False):
            logger.removeHandler(handler)
            try:
                handler.close()
            except Exception:
                logger.debug("Failed to close previous log handler cleanly", exc_info=True)

    file_handler._reqterm_managed = True
    logger.addHandler(file_handler)

    # Optional stream handler for stderr (the TUI owns stdout)
    stderr_level_name = os.environ.get('REQTERM_STDERR_LEVEL', 'OFF').strip().upper()
    if stderr_level_name not in {'OFF', 'NONE', 'DISABLE'}:
        stderr_level = LOG_LEVELS.get(stderr_level_name)
        if stderr_level is None:
            stderr_level = getattr(logging, stderr_level_name, logging.CRITICAL)

        stream_handler = logging.StreamHandler(stream=sys.stderr)
        stream_handler.setLevel(stderr_level)
        stream_handler.setFormatter(formatter)
        stream_handler._reqterm_managed = True
        logger.addHandler(stream_handler)

    # Silence overly verbose third-party loggers
    quiet_loggers = [
        "urllib3",
        "urllib3.connectionpool",
        "charset_normalizer",
        "markdown_it",
    ]
    for quiet_logger in quiet_loggers:
        noisy = logging.getLogger(quiet_logger)
        noisy.setLevel(logging.WARNING)
        noisy.propagate = False

    def excepthook(exc_type, exc_value, exc_traceback):
        """Ensure uncaught exceptions always reach the log."""
        if logger.isEnabledFor(logging.ERROR):
            logger.error(
                "Uncaught exception",
                exc_info=(exc_type, exc_value, exc_traceback),
            )
        if STDERR_TRACE_ENABLED:
            console = Console(stderr=True)
            console.print_exception(exc_type, exc_value, exc_traceback)

    sys.excepthook = excepthook

    return logger, log_file


# ============================================================================
# TEXT HELPERS
# ============================================================================

def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


__all__ = ['setup_logging', 'log_directory', 'LOG_LEVELS', 'clamp']
