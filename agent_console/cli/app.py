from __future__ import annotations

import argparse
import asyncio
import errno
import sys
from pathlib import Path
from typing import Optional

from ..config import ConfigManager, ConsolePaths, ConsoleSettings
from ..config.manager import BACKEND_FULLSCREEN, BACKENDS
from ..core.commands import (
    DEFAULT_COMMANDS,
    Exit,
    Prompt,
    StatisticsToggle,
    ThinkingToggle,
)
from ..core.console import Console
from ..core.errors import Terminated, UnknownCommand
from ..core.observability import Observability
from ..core.session_log import (
    SessionLogger,
    log_exception,
    log_info,
    log_warn,
    set_active_logger,
)
from .fullscreen import FullScreenConsole
from .line import LineConsole


def create_console(
    settings: ConsoleSettings, session_logger: SessionLogger | None = None
) -> Console:
    """Build the configured backend with the configured observability flags."""
    if settings.backend == BACKEND_FULLSCREEN:
        console: Console = FullScreenConsole(
            poll_interval=settings.poll_interval,
            session_logger=session_logger,
        )
    else:
        console = LineConsole(session_logger=session_logger)
    console.observability(
        Observability(statistics=settings.statistics, thinking=settings.thinking)
    )
    return console


async def run_echo_session(console: Console) -> None:
    """Drive ``console`` with an agent that answers by echoing the prompt.

    The loop ends on ``/exit`` or when the console is terminated; the console
    is closed on every path.
    """
    try:
        while True:
            try:
                if not await _handle_turn(console):
                    return
            except Terminated:
                log_info("session", "session.terminated")
                return
    finally:
        console.close()


async def _handle_turn(console: Console) -> bool:
    try:
        user_input = await console.prompt_input()
    except UnknownCommand as exc:
        log_warn("session", "session.unknown_command", exc.command)
        await _respond(
            console,
            [f"{exc}. Available commands:", *DEFAULT_COMMANDS.descriptions()],
        )
        return True
    if isinstance(user_input, Exit):
        return False
    if isinstance(user_input, ThinkingToggle):
        console.observability(console.observability().with_thinking(user_input.enabled))
        await _respond(console, [_switch_text("Thinking", user_input.enabled)])
    elif isinstance(user_input, StatisticsToggle):
        console.observability(
            console.observability().with_statistics(user_input.enabled)
        )
        await _respond(console, [_switch_text("Statistics", user_input.enabled)])
    elif isinstance(user_input, Prompt):
        await _echo(console, user_input.text)
    return True


async def _echo(console: Console, text: str) -> None:
    await console.start_responding()
    try:
        await console.add_thinking_text(f"Echoing {len(text)} characters.")
        await console.add_response_text(text or "(empty prompt)")
    finally:
        await console.stop_responding()


async def _respond(console: Console, lines: list[str]) -> None:
    await console.start_responding()
    try:
        for line in lines:
            await console.add_response_text(line)
    finally:
        await console.stop_responding()


def _switch_text(label: str, enabled: bool) -> str:
    return f"{label} {'on' if enabled else 'off'}."


def _settings_from_args(args: argparse.Namespace, root: Path) -> ConsoleSettings:
    settings = ConfigManager(ConsolePaths(root)).load_settings()
    if args.backend:
        settings.backend = args.backend
    if args.statistics:
        settings.statistics = True
    if args.thinking:
        settings.thinking = True
    if args.debug is not None:
        settings.debug = args.debug
    return settings


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Agent console - turn-based console with an echo agent"
    )
    parser.add_argument("-v", "--version", action="store_true", help="Show version and exit")
    parser.add_argument("--backend", choices=BACKENDS, help="Console backend to use")
    parser.add_argument(
        "--statistics", action="store_true", help="Report response time after each answer"
    )
    parser.add_argument(
        "--thinking", action="store_true", help="Show the agent's thinking trace"
    )
    parser.add_argument(
        "--debug",
        nargs="?",
        const="all",
        help="Write a session log (all, session, error, warn, info, debug)",
    )
    args = parser.parse_args(argv)
    if args.version:
        from agent_console import __version__

        print(f"agent-console {__version__}")
        return
    root = Path.cwd()
    settings = _settings_from_args(args, root)
    session_logger = SessionLogger(ConsolePaths(root).logs_dir, settings.debug)
    set_active_logger(session_logger)
    try:
        console = create_console(settings, session_logger)
        asyncio.run(run_echo_session(console))
    except Terminated as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1)
    except BrokenPipeError:
        return
    except KeyboardInterrupt:
        return
    except OSError as exc:
        if exc.errno == errno.EPIPE:
            return
        log_exception("cli", exc)
        raise
    finally:
        session_logger.close()
        set_active_logger(None)


if __name__ == "__main__":
    main()
