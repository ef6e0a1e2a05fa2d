"""Console backends and the command-line entry point."""

from .app import create_console, main, run_echo_session
from .fullscreen import FullScreenConsole
from .line import LineConsole

__all__ = [
    "FullScreenConsole",
    "LineConsole",
    "create_console",
    "main",
    "run_echo_session",
]
