from __future__ import annotations


class ConsoleError(Exception):
    """Base class for every error a console operation may raise."""


class Terminated(ConsoleError):
    """The input stream or terminal session ended; the console is unusable."""

    def __init__(self, reason: str = "Console terminated") -> None:
        super().__init__(reason)


class InvalidState(ConsoleError):
    """An operation was called while the console state forbids it."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(f"Invalid state for operation: {operation} while {state}")
        self.operation = operation
        self.state = state


class UnknownCommand(ConsoleError):
    """A slash command was not recognized."""

    def __init__(self, command: str) -> None:
        super().__init__(f"Unknown command: {command}")
        self.command = command
