"""
Reqterm - Commands

The command table bound through the key configuration, key-spec parsing,
and the text commands that act directly on a pane.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

from __future__ import annotations

import os
import shlex
import tempfile
import unicodedata
from typing import TYPE_CHECKING, Callable

from .constants import ALL_VIEWS, ERROR_EDITOR_OPEN, MSG_HELP_HEADER
from .errors import ConfigError, ReqtermError

if TYPE_CHECKING:
    from .layout import Pane
    from .session import Session


Handler = Callable[["Pane | None"], None]


# ============================================================================
# KEY SPECS
# ============================================================================

_NAMED_KEYS = {
    "arrowup": "up",
    "arrowdown": "down",
    "arrowleft": "left",
    "arrowright": "right",
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
    "pgup": "pageup",
    "pageup": "pageup",
    "pgdn": "pagedown",
    "pagedown": "pagedown",
    "home": "home",
    "end": "end",
    "insert": "insert",
    "delete": "delete",
    "backspace": "backspace",
    "backspace2": "backspace",
    "tab": "tab",
    "backtab": "shift+tab",
    "enter": "enter",
    "esc": "escape",
    "escape": "escape",
    "space": "space",
    "ctrlspace": "ctrl+space",
}

_MODIFIERS = ("ctrl", "alt", "shift")


def parse_key(spec: str) -> str:
    """Normalize a key spec ("CtrlR", "AltH", "ArrowUp", "F5", "ctrl+r") to a binding name."""
    text = spec.strip()
    if not text:
        raise ConfigError("Empty key string")

    if "+" in text and len(text) > 1:
        *modifiers, key = text.lower().split("+")
        for modifier in modifiers:
            if modifier not in _MODIFIERS:
                raise ConfigError(f"Unknown key modifier in {spec!r}: {modifier}")
        if not key:
            raise ConfigError(f"Unknown key: {spec}")
        return "+".join([*modifiers, _NAMED_KEYS.get(key, key)])

    alt = False
    if text.startswith("Alt") and len(text) > 3:
        alt = True
        text = text[3:]

    if len(text) == 1:
        key = text.lower() if alt else text
    else:
        lowered = text.lower()
        if lowered in _NAMED_KEYS:
            key = _NAMED_KEYS[lowered]
        elif lowered.startswith("ctrl") and len(lowered) == 5 and lowered[4].isalnum():
            key = f"ctrl+{lowered[4]}"
        elif lowered[0] == "f" and lowered[1:].isdigit() and 1 <= int(lowered[1:]) <= 24:
            key = lowered
        else:
            raise ConfigError(f"Unknown key: {spec}")
    return f"alt+{key}" if alt else key


# ============================================================================
# TEXT COMMANDS
# ============================================================================

def scroll_view(pane: Pane | None, dy: int) -> None:
    if pane is not None:
        pane.scroll(dy)


def page_up(pane: Pane | None) -> None:
    if pane is not None:
        _, height = pane.inner_size()
        pane.scroll(-(height * 2 // 3))


def page_down(pane: Pane | None) -> None:
    if pane is not None:
        _, height = pane.inner_size()
        pane.scroll(height * 2 // 3)


def delete_line(pane: Pane | None) -> None:
    """Remove the cursor's line; the cursor lands at the start of the next one."""
    if pane is None or not pane.editable:
        return
    buffer = pane.buffer
    line, _ = buffer.line_and_column()
    lines = buffer.text.strip().split("\n")
    if line >= len(lines):
        return
    del lines[line]
    buffer.set_text("\n".join(lines))
    buffer.move_to_line(line, 0)


def char_category(char: str) -> int:
    if char.isdigit():
        return 0
    if char.isalpha():
        return 1
    if char.isspace():
        return 2
    if unicodedata.category(char).startswith("P"):
        return 3
    return ord(char)


def delete_word(pane: Pane | None) -> None:
    """Delete backwards over the run of characters sharing one category."""
    if pane is None or not pane.editable:
        return
    prefix = pane.buffer.current_line_prefix()
    if not prefix:
        return
    category = char_category(prefix[-1])
    count = 1
    while count < len(prefix) and char_category(prefix[-count - 1]) == category:
        count += 1
    for _ in range(count):
        pane.buffer.delete(back=True)


def editor_command(editor: str) -> list[str]:
    command = editor or os.environ.get("EDITOR") or "vim"
    return shlex.split(command)


def open_editor(pane: Pane, editor: str, run_external: Callable[[list[str]], int]) -> bool:
    """Edit the pane text in an external editor; True when the text changed.

    run_external runs the command with the terminal handed over to it.
    """
    handle, path = tempfile.mkstemp(prefix="reqterm-")
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as temp_file:
            temp_file.write(pane.text.strip())
        before = os.stat(path).st_mtime_ns
        try:
            run_external([*editor_command(editor), path])
        except OSError as exc:
            raise ReqtermError(ERROR_EDITOR_OPEN.format(error=exc)) from exc
        if os.stat(path).st_mtime_ns == before:
            return False
        with open(path, encoding="utf-8") as temp_file:
            pane.set_text(temp_file.read().strip())
        return True
    finally:
        os.unlink(path)


# ============================================================================
# COMMAND TABLE
# ============================================================================

CommandFactory = Callable[[str, "Session"], Handler]

COMMANDS: dict[str, CommandFactory] = {
    "submit": lambda _, session: lambda pane: session.submit(),
    "saveResponse": lambda _, session: lambda pane: session.open_save_response_dialog(),
    "loadRequest": lambda _, session: lambda pane: session.open_load_request_dialog(),
    "saveRequest": lambda _, session: lambda pane: session.open_save_request_dialog(),
    "history": lambda _, session: lambda pane: session.toggle_history(),
    "quit": lambda _, session: lambda pane: session.request_quit(),
    "focus": lambda args, session: lambda pane: session.focus_view(args),
    "nextView": lambda _, session: lambda pane: session.next_view(),
    "prevView": lambda _, session: lambda pane: session.prev_view(),
    "scrollUp": lambda _, session: lambda pane: scroll_view(pane, -1),
    "scrollDown": lambda _, session: lambda pane: scroll_view(pane, 1),
    "pageUp": lambda _, session: page_up,
    "pageDown": lambda _, session: page_down,
    "deleteLine": lambda _, session: delete_line,
    "deleteWord": lambda _, session: delete_word,
    "openEditor": lambda _, session: lambda pane: session.open_editor(pane),
    "toggleContextSpecificSearch": lambda _, session: lambda pane: session.toggle_context_search(),
    "clearHistory": lambda _, session: lambda pane: session.clear_history(),
    "trace": lambda _, session: lambda pane: session.toggle_trace(),
    "help": lambda _, session: lambda pane: session.toggle_help(),
}


def build_handler(command: str, session: Session) -> Handler:
    name, _, args = command.strip().partition(" ")
    factory = COMMANDS.get(name)
    if factory is None:
        raise ConfigError(f"Unknown command: {command}")
    return factory(args.strip(), session)


def build_bindings(keys: dict[str, dict[str, str]], session: Session) -> dict[str, dict[str, Handler]]:
    """Compile the pane -> key spec -> command table into handlers."""
    bindings: dict[str, dict[str, Handler]] = {}
    for pane, table in keys.items():
        compiled = bindings.setdefault(pane, {})
        for key_spec, command in table.items():
            if not command:
                continue
            compiled[parse_key(key_spec)] = build_handler(command, session)
    return bindings


def help_text(keys: dict[str, dict[str, str]]) -> str:
    lines = [MSG_HELP_HEADER, ""]
    panes = [ALL_VIEWS] + sorted(name for name in keys if name != ALL_VIEWS)
    for pane in panes:
        table = keys.get(pane)
        if not table:
            continue
        lines.append(f"{pane}:")
        for key_spec, command in table.items():
            if command:
                lines.append(f"  {key_spec:<12} {command}")
        lines.append("")
    return "\n".join(lines).rstrip("\n")


__all__ = [
    'COMMANDS',
    'parse_key',
    'scroll_view',
    'page_up',
    'page_down',
    'delete_line',
    'delete_word',
    'char_category',
    'editor_command',
    'open_editor',
    'build_handler',
    'build_bindings',
    'help_text',
]
