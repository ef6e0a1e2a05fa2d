"""
Raw-mode terminal session.

Puts a prompt_toolkit input into raw mode for the lifetime of the session and
translates pending key presses into the small set of key events the
full-screen console understands. Reading never blocks: ``poll`` returns the
keys that are ready or sleeps for the poll interval, so callers stay
responsive inside an asyncio loop.
"""

from __future__ import annotations

import asyncio
from contextlib import ExitStack
from dataclasses import dataclass
from typing import List, Optional

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

from ..core.errors import Terminated
from ..core.session_log import log_debug

KEY_CHAR = "char"
KEY_ENTER = "enter"
KEY_BACKSPACE = "backspace"
KEY_INTERRUPT = "interrupt"
KEY_OTHER = "other"

_ENTER_KEYS = {Keys.ControlM, Keys.ControlJ}
_INTERRUPT_KEYS = {Keys.ControlC, Keys.ControlD}


@dataclass(frozen=True)
class KeyEvent:
    kind: str
    text: str = ""


def decode_key(press: KeyPress) -> KeyEvent:
    key = press.key
    if isinstance(key, Keys):
        if key in _ENTER_KEYS:
            return KeyEvent(KEY_ENTER)
        if key == Keys.Backspace:
            return KeyEvent(KEY_BACKSPACE)
        if key in _INTERRUPT_KEYS:
            return KeyEvent(KEY_INTERRUPT)
        if key == Keys.BracketedPaste:
            pasted = " ".join(press.data.splitlines())
            return KeyEvent(KEY_CHAR, pasted) if pasted else KeyEvent(KEY_OTHER)
        return KeyEvent(KEY_OTHER)
    if key.isprintable():
        return KeyEvent(KEY_CHAR, key)
    return KeyEvent(KEY_OTHER)


class TerminalSession:
    """Scoped raw-mode access to the terminal keyboard."""

    def __init__(self, terminal_input: Optional[Input] = None) -> None:
        self.input = terminal_input or create_input(always_prefer_tty=True)
        self._stack = ExitStack()

    def __enter__(self) -> "TerminalSession":
        try:
            self._stack.enter_context(self.input.raw_mode())
        except OSError as exc:
            self._stack.close()
            raise Terminated(f"Unable to enter raw mode: {exc}") from exc
        log_debug("terminal", "terminal.raw_mode", {"state": "entered"})
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._stack.close()
        log_debug("terminal", "terminal.raw_mode", {"state": "restored"})

    @property
    def closed(self) -> bool:
        return self.input.closed

    def read_keys(self) -> List[KeyEvent]:
        try:
            presses = self.input.read_keys()
            if not presses:
                # a lone escape stays buffered in the parser until flushed
                presses = self.input.flush_keys()
        except OSError as exc:
            raise Terminated(f"Terminal input failed: {exc}") from exc
        return [decode_key(press) for press in presses]

    async def poll(self, interval: float) -> List[KeyEvent]:
        """Return ready key events, or wait ``interval`` seconds and return none."""
        events = self.read_keys()
        if events:
            return events
        if self.closed:
            raise Terminated("Terminal input closed")
        await asyncio.sleep(interval)
        return []
