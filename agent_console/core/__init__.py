"""Console contract, command parsing and session logging."""

from .commands import (
    CommandRegistry,
    ConsoleInput,
    Exit,
    Prompt,
    StatisticsToggle,
    ThinkingToggle,
    parse_line,
)
from .console import Console, match_yes_no
from .errors import ConsoleError, InvalidState, Terminated, UnknownCommand
from .observability import Observability
from .session_log import SessionLogger

__all__ = [
    "CommandRegistry",
    "Console",
    "ConsoleError",
    "ConsoleInput",
    "Exit",
    "InvalidState",
    "Observability",
    "Prompt",
    "SessionLogger",
    "StatisticsToggle",
    "Terminated",
    "ThinkingToggle",
    "UnknownCommand",
    "match_yes_no",
    "parse_line",
]
