#!/usr/bin/env python3
"""
Reqterm - Main Entry Point

Follows the bin/lib structure; every argument is passed through to the
reqterm command line.
Example:
    ./reqterm-main.py --log-level debug https://httpbin.org/get?a=1
    LOGLEVEL=TRACE ./reqterm-main.py -X PUT -d a=b example.com/items

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

from __future__ import annotations

import io
import logging
import os
import sys
from pathlib import Path
from typing import Iterable

launcher_logger = logging.getLogger("ReqtermLauncher")


def _ensure_reqterm_on_path() -> None:
    """Ensure the local reqterm package is importable even from scripts outside repo."""
    script_path = Path(__file__).resolve()
    bin_dir = script_path.parent
    candidates: list[Path] = []

    env_hint = os.environ.get("REQTERM_APP_PATH")
    if env_hint:
        candidates.append(Path(env_hint))
    candidates.extend(
        [
            bin_dir.parent / "lib",
            Path.cwd() / "lib",
        ]
    )

    for candidate in candidates:
        try:
            candidate = candidate.resolve()
        except OSError:
            continue
        marker = candidate / "reqterm" / "__init__.py"
        if marker.exists():
            path_str = str(candidate)
            if path_str not in sys.path:
                sys.path.insert(0, path_str)
                launcher_logger.debug("Reqterm library path added: %s", path_str)
            return


def _reattach_tty() -> None:
    """Point stdio back at the terminal when reqterm is started from a pipe."""
    if os.name != "posix":
        launcher_logger.debug("Skipping TTY reattach on non-posix platform")
        return
    try:
        fd_in = os.open("/dev/tty", os.O_RDONLY | os.O_CLOEXEC)
        fd_out = os.open("/dev/tty", os.O_WRONLY | os.O_CLOEXEC)
    except OSError as exc:
        launcher_logger.debug("TTY reattach unavailable: %s", exc)
        return

    try:
        os.dup2(fd_in, 0)
        os.dup2(fd_out, 1)
    except OSError as exc:
        launcher_logger.warning("Failed to dup TTY descriptors: %s", exc, exc_info=True)
        return
    finally:
        for fd in (fd_in, fd_out):
            try:
                os.close(fd)
            except OSError:
                pass

    stdin_buffer = os.fdopen(0, "rb", closefd=False)
    stdout_buffer = os.fdopen(1, "wb", closefd=False)
    sys.stdin = sys.__stdin__ = io.TextIOWrapper(stdin_buffer, encoding="utf-8", line_buffering=True)
    sys.stdout = sys.__stdout__ = io.TextIOWrapper(stdout_buffer, encoding="utf-8", line_buffering=True)
    launcher_logger.debug("TTY reattached: stdin=%s stdout=%s", sys.stdin.isatty(), sys.stdout.isatty())


def main(argv: Iterable[str] | None = None) -> int:
    """Main entry point."""
    _ensure_reqterm_on_path()

    from reqterm.cli import main as cli_main  # type: ignore  # noqa: E402

    args = list(sys.argv[1:] if argv is None else argv)
    informational = any(arg in ("-h", "--help", "-v", "--version") for arg in args)
    if not informational and (not sys.stdin.isatty() or not sys.stdout.isatty()):
        _reattach_tty()
    return cli_main(args)


if __name__ == "__main__":
    sys.exit(main())
