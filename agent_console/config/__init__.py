"""Configuration package."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .manager import ConfigManager, ConsoleSettings
    from .paths import ConsolePaths

__all__ = ["ConfigManager", "ConsoleSettings", "ConsolePaths"]


def __getattr__(name: str) -> Any:
    if name in {"ConfigManager", "ConsoleSettings"}:
        from .manager import ConfigManager, ConsoleSettings

        return {"ConfigManager": ConfigManager, "ConsoleSettings": ConsoleSettings}[name]
    if name == "ConsolePaths":
        from .paths import ConsolePaths

        return ConsolePaths
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
