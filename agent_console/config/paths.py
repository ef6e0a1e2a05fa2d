from dataclasses import dataclass
from pathlib import Path


@dataclass
class ConsolePaths:
    """Centralizes filesystem paths for an agent console workspace."""

    root: Path

    @property
    def config_dir(self) -> Path:
        return self.root / ".agent_console"

    @property
    def config_file(self) -> Path:
        return self.config_dir / "console.json"

    @property
    def logs_dir(self) -> Path:
        return self.config_dir / "logs"

    @property
    def global_dir(self) -> Path:
        return Path.home() / ".agent_console"

    @property
    def global_config_file(self) -> Path:
        return self.global_dir / "console.json"
