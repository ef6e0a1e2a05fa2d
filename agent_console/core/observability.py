from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Observability:
    """User-toggled switches for timing statistics and thinking traces."""

    statistics: bool = False
    thinking: bool = False

    def with_statistics(self, enabled: bool) -> "Observability":
        return replace(self, statistics=bool(enabled))

    def with_thinking(self, enabled: bool) -> "Observability":
        return replace(self, thinking=bool(enabled))
