from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape

from .paths import ConsolePaths

BACKEND_LINE = "line"
BACKEND_FULLSCREEN = "fullscreen"
BACKENDS = (BACKEND_LINE, BACKEND_FULLSCREEN)
BACKEND_ENV = "AGENT_CONSOLE_BACKEND"

DEFAULT_CONFIG: Dict[str, Any] = {
    "backend": BACKEND_LINE,
    "statistics": False,
    "thinking": False,
    "poll_interval_ms": 100,
    "debug": None,
}


@dataclass
class ConsoleSettings:
    backend: str
    statistics: bool
    thinking: bool
    poll_interval_ms: int
    debug: Any

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000.0


class ConfigManager:
    """Loads console settings from the global and workspace JSON files."""

    def __init__(self, paths: ConsolePaths, console: Optional[Console] = None) -> None:
        self.paths = paths
        self.console = console or Console()

    def load_settings(self) -> ConsoleSettings:
        merged = dict(DEFAULT_CONFIG)
        merged.update(self._read_json(self.paths.global_config_file))
        merged.update(self._read_json(self.paths.config_file))
        env_backend = os.getenv(BACKEND_ENV)
        if env_backend:
            merged["backend"] = env_backend
        return self._normalize(merged)

    def create_config_template(self) -> None:
        """Create or update console.json without overwriting existing user settings."""
        self.paths.config_dir.mkdir(parents=True, exist_ok=True)
        current = self._read_json(self.paths.config_file)
        merged = dict(DEFAULT_CONFIG)
        merged.update(current)
        self.paths.config_file.write_text(
            json.dumps(merged, indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )

    def _normalize(self, data: Dict[str, Any]) -> ConsoleSettings:
        backend = str(data.get("backend") or BACKEND_LINE).strip().lower()
        if backend not in BACKENDS:
            self.console.print(
                f"[yellow]Unknown console backend '{escape(backend)}', using '{BACKEND_LINE}'.[/yellow]"
            )
            backend = BACKEND_LINE
        poll = data.get("poll_interval_ms")
        if isinstance(poll, bool) or not isinstance(poll, (int, float)) or poll <= 0:
            poll = DEFAULT_CONFIG["poll_interval_ms"]
        return ConsoleSettings(
            backend=backend,
            statistics=bool(data.get("statistics")),
            thinking=bool(data.get("thinking")),
            poll_interval_ms=int(poll),
            debug=data.get("debug"),
        )

    def _read_json(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            self.console.print(f"[yellow]Ignoring unreadable config file {escape(str(path))}.[/yellow]")
            return {}
        if not isinstance(data, dict):
            return {}
        return data
