from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

from .errors import UnknownCommand

COMMAND_PREFIX = "/"
SWITCH_VALUES = {"on": True, "off": False}


@dataclass(frozen=True)
class Prompt:
    text: str


@dataclass(frozen=True)
class Exit:
    pass


@dataclass(frozen=True)
class ThinkingToggle:
    enabled: bool


@dataclass(frozen=True)
class StatisticsToggle:
    enabled: bool


ConsoleInput = Union[Prompt, Exit, ThinkingToggle, StatisticsToggle]

CommandBuilder = Callable[[Tuple[str, ...]], Optional[ConsoleInput]]


@dataclass
class Command:
    name: str
    arity: int
    builder: CommandBuilder
    description: str
    usage: str = ""


class CommandRegistry:
    """Registry for console slash commands."""

    def __init__(self) -> None:
        self._commands: Dict[str, Command] = {}

    def register(
        self,
        name: str,
        builder: CommandBuilder,
        description: str,
        *,
        arity: int = 0,
        usage: str = "",
    ) -> None:
        if not name.startswith(COMMAND_PREFIX):
            name = f"{COMMAND_PREFIX}{name}"
        self._commands[name] = Command(
            name=name,
            arity=arity,
            builder=builder,
            description=description,
            usage=usage,
        )

    def get(self, name: str) -> Optional[Command]:
        if not name.startswith(COMMAND_PREFIX):
            name = f"{COMMAND_PREFIX}{name}"
        return self._commands.get(name)

    def names(self) -> List[str]:
        return list(self._commands.keys())

    def descriptions(self) -> List[str]:
        lines = []
        for cmd in self._commands.values():
            label = f"{cmd.name} {cmd.usage}".rstrip()
            lines.append(f"{label} - {cmd.description}")
        return lines

    def resolve(self, tokens: List[str]) -> ConsoleInput:
        """Map shell-split tokens to an input; the first token must be a command."""
        head = tokens[0]
        command = self._commands.get(head)
        if command is None or len(tokens) - 1 != command.arity:
            raise UnknownCommand(head)
        result = command.builder(tuple(tokens[1:]))
        if result is None:
            raise UnknownCommand(head)
        return result


def _switch(factory: Callable[[bool], ConsoleInput]) -> CommandBuilder:
    def build(args: Tuple[str, ...]) -> Optional[ConsoleInput]:
        value = SWITCH_VALUES.get(args[0])
        if value is None:
            return None
        return factory(value)

    return build


def default_registry() -> CommandRegistry:
    registry = CommandRegistry()
    registry.register("exit", lambda _args: Exit(), "leave the console")
    registry.register(
        "thinking",
        _switch(ThinkingToggle),
        "show or hide the agent's thinking trace",
        arity=1,
        usage="on|off",
    )
    registry.register(
        "statistics",
        _switch(StatisticsToggle),
        "report response time after each answer",
        arity=1,
        usage="on|off",
    )
    return registry


DEFAULT_COMMANDS = default_registry()


def parse_line(line: str, registry: CommandRegistry | None = None) -> ConsoleInput:
    """Classify one raw line as free text or a slash command.

    Free text is returned trimmed and is never rejected. A slash line is split
    with shell rules; commands are matched on the first token and the exact
    number of arguments, so a known name with a bad argument raises
    ``UnknownCommand`` just like an unknown name. A line that cannot be lexed
    (for example an unterminated quote) is treated as free text.
    """
    registry = registry or DEFAULT_COMMANDS
    text = line.strip()
    if not text.startswith(COMMAND_PREFIX):
        return Prompt(text=text)
    try:
        tokens = shlex.split(text)
    except ValueError:
        return Prompt(text=text)
    return registry.resolve(tokens)
