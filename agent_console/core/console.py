"""Abstract console contract shared by every backend.

A console alternates between two states. While *prompting* it waits for the
next user line; while *responding* it streams agent output and may ask the
user follow-up questions. Backends implement the I/O hooks; the state checks
and the observability flags live here so every backend enforces the same
protocol.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from .commands import ConsoleInput, Prompt
from .errors import InvalidState, UnknownCommand
from .observability import Observability
from .session_log import SessionLogger

YES_ANSWERS = {"y", "yes"}
NO_ANSWERS = {"n", "no"}


@dataclass(frozen=True)
class Prompting:
    name = "prompting"


@dataclass(frozen=True)
class Responding:
    started_at: Optional[float] = None
    name = "responding"


ConsoleState = Union[Prompting, Responding]


def match_yes_no(answer: str, default: bool) -> Optional[bool]:
    """Return the answer as a bool, ``default`` when empty, ``None`` to re-ask."""
    cleaned = answer.strip().lower()
    if not cleaned:
        return default
    if cleaned in YES_ANSWERS:
        return True
    if cleaned in NO_ANSWERS:
        return False
    return None


def format_elapsed(seconds: float) -> str:
    return f"Response time: {seconds:.3f}s"


class Console(ABC):
    """Turn-based console used by an agent loop."""

    source = "console"

    def __init__(self, *, session_logger: SessionLogger | None = None) -> None:
        self._state: ConsoleState = Prompting()
        self._observability = Observability()
        self.session_logger = session_logger

    @property
    def state(self) -> str:
        return self._state.name

    def observability(self, new_settings: Observability | None = None) -> Observability:
        """Return the current flags, replacing them when ``new_settings`` is given.

        The value returned is always the one in effect *before* the call.
        """
        previous = self._observability
        if new_settings is not None:
            self._observability = new_settings
        return previous

    async def prompt_input(self) -> ConsoleInput:
        """Wait for one line of user input and parse it.

        Raises ``UnknownCommand`` for unrecognized slash commands and
        ``Terminated`` when the input source is gone.
        """
        self._require(Prompting, "prompt_input")
        try:
            result = await self._read_input()
        except UnknownCommand as exc:
            if self.session_logger:
                self.session_logger.log_level(
                    self.source, "warn", "console.unknown_command", exc.command
                )
            raise
        if self.session_logger:
            if isinstance(result, Prompt):
                self.session_logger.log_user_prompt(self.source, result.text)
            else:
                self.session_logger.log_command(self.source, result)
        return result

    async def start_responding(self) -> None:
        self._require(Prompting, "start_responding")
        started_at = time.monotonic() if self._observability.statistics else None
        self._state = Responding(started_at=started_at)
        if self.session_logger:
            self.session_logger.start_turn(self.source)

    async def stop_responding(self) -> None:
        state = self._require(Responding, "stop_responding")
        self._state = Prompting()
        elapsed = None
        if self._observability.statistics and state.started_at is not None:
            elapsed = time.monotonic() - state.started_at
            await self._show_statistics(elapsed)
        if self.session_logger:
            self.session_logger.end_turn(self.source, elapsed=elapsed)

    async def add_response_text(self, text: str) -> None:
        self._require(Responding, "add_response_text")
        await self._show_response(text)
        if self.session_logger:
            self.session_logger.log_response_text(self.source, text)

    async def add_thinking_text(self, text: str) -> None:
        self._require(Responding, "add_thinking_text")
        if not self._observability.thinking:
            return
        await self._show_thinking(text)
        if self.session_logger:
            self.session_logger.log_thinking_text(self.source, text)

    async def if_accept(self, text: str) -> bool:
        """Ask a yes/no question where an empty answer means yes."""
        self._require(Responding, "if_accept")
        return await self._confirm(text, default=True)

    async def if_yes(self, text: str) -> bool:
        """Ask a yes/no question where an empty answer means no."""
        self._require(Responding, "if_yes")
        return await self._confirm(text, default=False)

    async def ask_user(self, text: str) -> str:
        self._require(Responding, "ask_user")
        answer = (await self._read_answer(text)).strip()
        if self.session_logger:
            self.session_logger.log_question(self.source, text, answer)
        return answer

    def close(self) -> None:
        """Release backend resources. Safe to call more than once."""

    def __enter__(self) -> "Console":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def _confirm(self, text: str, *, default: bool) -> bool:
        result = await self._read_yes_no(text, default)
        if self.session_logger:
            self.session_logger.log_question(self.source, text, result)
        return result

    def _require(self, expected: type, operation: str):
        if not isinstance(self._state, expected):
            raise InvalidState(operation, self._state.name)
        return self._state

    @staticmethod
    def _yes_no_hint(default: bool) -> str:
        return "[Y/n]" if default else "[y/N]"

    @abstractmethod
    async def _read_input(self) -> ConsoleInput:
        ...

    @abstractmethod
    async def _show_response(self, text: str) -> None:
        ...

    @abstractmethod
    async def _show_thinking(self, text: str) -> None:
        ...

    @abstractmethod
    async def _show_statistics(self, elapsed: float) -> None:
        ...

    @abstractmethod
    async def _read_yes_no(self, text: str, default: bool) -> bool:
        ...

    @abstractmethod
    async def _read_answer(self, text: str) -> str:
        ...
