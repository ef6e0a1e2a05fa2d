from __future__ import annotations

import json
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

LOG_LEVELS = ("error", "warn", "info", "debug")
LOG_LEVEL_PRIORITY = {level: idx for idx, level in enumerate(LOG_LEVELS)}
LOG_TYPE_SESSION = "session"
_OFF_TOKENS = {"", "none", "null", "off", "false", "0", "no", "n"}
_ON_TOKENS = {"true", "1", "yes", "y", "on", "all"}


@dataclass(frozen=True)
class LogSelection:
    enabled_types: frozenset[str]
    enabled_levels: frozenset[str]


def resolve_debug_config(raw: Any) -> LogSelection:
    enabled_types: set[str] = set()
    enabled_levels: set[str] = set()

    def enable_all() -> None:
        enabled_types.add(LOG_TYPE_SESSION)
        enabled_levels.update(LOG_LEVELS)

    def handle_token(token: str) -> None:
        if token in _ON_TOKENS:
            enable_all()
        elif token == LOG_TYPE_SESSION:
            enabled_types.add(LOG_TYPE_SESSION)
        elif token in LOG_LEVEL_PRIORITY:
            # levels are cumulative: "info" also enables "warn" and "error"
            enabled_levels.update(LOG_LEVELS[: LOG_LEVEL_PRIORITY[token] + 1])

    if raw is True:
        enable_all()
    elif isinstance(raw, str):
        for token in raw.replace(",", " ").split():
            cleaned = token.strip().lower()
            if cleaned not in _OFF_TOKENS:
                handle_token(cleaned)
    elif isinstance(raw, (list, tuple, set)):
        for item in raw:
            if not isinstance(item, str):
                continue
            cleaned = item.strip().lower()
            if cleaned not in _OFF_TOKENS:
                handle_token(cleaned)
    return LogSelection(frozenset(enabled_types), frozenset(enabled_levels))


class SessionLogger:
    """Write Markdown logs of console activity when debug logging is enabled."""

    def __init__(self, logs_dir: Path, debug_config: Any) -> None:
        self.logs_dir = logs_dir
        self._session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._started_at = datetime.now(timezone.utc)
        self._path: Path | None = None
        self._header = ""
        self._turn_counter = 0
        self._active_turn_id: int | None = None
        self.enabled = False
        self._enabled_types: set[str] = set()
        self._enabled_levels: set[str] = set()
        self.configure(debug_config)

    def configure(self, debug_config: Any) -> None:
        selection = resolve_debug_config(debug_config)
        self._enabled_types = set(selection.enabled_types)
        self._enabled_levels = set(selection.enabled_levels)
        self.enabled = bool(self._enabled_types or self._enabled_levels)

    def close(self) -> None:
        self.enabled = False

    def start_turn(self, source: str) -> None:
        self._turn_counter += 1
        self._active_turn_id = self._turn_counter
        self.log_level(source, "info", "console.state", {"state": "responding"})

    def end_turn(self, source: str, *, elapsed: float | None = None) -> None:
        self.log_level(
            source,
            "info",
            "console.state",
            {"state": "prompting", "elapsed_s": elapsed},
        )
        self._active_turn_id = None

    def log_user_prompt(self, source: str, prompt: str) -> None:
        self._session_event("user", source, "prompt.user", prompt)

    def log_command(self, source: str, command: Any) -> None:
        self._session_event("user", source, "console.command", command)

    def log_response_text(self, source: str, text: str) -> None:
        self._session_event("assistant", source, "response.text", text)

    def log_thinking_text(self, source: str, text: str) -> None:
        self._session_event("assistant", source, "response.thinking", text)

    def log_question(self, source: str, question: str, answer: Any) -> None:
        self._session_event("assistant", source, "question.ask", question)
        self._session_event("user", source, "question.answer", answer)

    def log_level(self, source: str, level: str, event: str, content: Any | None = None) -> None:
        if not self._level_enabled(level):
            return
        self._write(
            {
                "role": "system",
                "source": source,
                "event": event,
                "level": level,
                "content": content,
            }
        )

    def log_exception(self, source: str, exc: BaseException) -> None:
        if not self._level_enabled("error"):
            return
        location = None
        tb = exc.__traceback__
        if tb is not None:
            frames = traceback.extract_tb(tb)
            if frames:
                last = frames[-1]
                location = f"{last.filename}:{last.lineno} in {last.name}"
        trace_text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self.log_level(
            source,
            "error",
            "exception",
            {
                "type": type(exc).__name__,
                "message": str(exc),
                "location": location,
                "traceback": trace_text,
            },
        )

    def _session_event(self, role: str, source: str, event: str, content: Any) -> None:
        if not self._session_enabled() or content in (None, ""):
            return
        self._write(
            {
                "role": role,
                "source": source,
                "event": event,
                "type": LOG_TYPE_SESSION,
                "content": content,
            }
        )

    def _session_enabled(self) -> bool:
        return self.enabled and LOG_TYPE_SESSION in self._enabled_types

    def _level_enabled(self, level: str) -> bool:
        return self.enabled and level in self._enabled_levels

    def _ensure_path(self) -> None:
        if self._path is not None or not self.enabled:
            return
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self._path = self.logs_dir / f"console_session_{self._session_id}.md"
        self._header = self._header_text()
        if not self._path.exists():
            self._path.write_text(self._header, encoding="utf-8")

    def _header_text(self) -> str:
        return (
            "# Agent Console Session Log\n\n"
            f"- Session: {self._session_id}\n"
            f"- Started: {self._started_at.isoformat()}\n\n"
            "---\n\n"
        )

    def _write(self, payload: dict[str, Any]) -> None:
        if not self.enabled:
            return
        try:
            self._ensure_path()
            if self._path is None:
                return
            timestamp = datetime.now(timezone.utc).isoformat()
            log_type = str(payload.get("type") or payload.get("level") or LOG_TYPE_SESSION)
            header = (
                f"## {timestamp} · {log_type}/{payload.get('source', '')}"
                f" · {payload.get('event', '')}"
            )
            if self._active_turn_id is not None:
                header = f"{header} · turn {self._active_turn_id}"
            entry = f"{header}\n{self._format_content_block(payload.get('content'))}\n\n"
            self._prepend_entry(entry)
        except OSError:
            # a log file that cannot be written disables logging for the session
            self.close()

    def _prepend_entry(self, entry: str) -> None:
        if self._path is None:
            return
        existing = self._path.read_text(encoding="utf-8")
        header = self._header or ""
        if header and existing.startswith(header):
            content = f"{header}{entry}{existing[len(header):]}"
        else:
            content = f"{header}{entry}{existing}"
        self._path.write_text(content, encoding="utf-8")

    def _format_content_block(self, content: Any) -> str:
        if isinstance(content, (dict, list)):
            body = json.dumps(content, indent=2, ensure_ascii=False, default=str)
            language = "json"
        else:
            body = "" if content is None else str(content)
            language = "markdown"
        body = body.rstrip()
        return f"```{language}\n{body}\n```"


_ACTIVE_LOGGER: SessionLogger | None = None


def set_active_logger(logger: SessionLogger | None) -> None:
    global _ACTIVE_LOGGER
    _ACTIVE_LOGGER = logger


def get_active_logger() -> SessionLogger | None:
    return _ACTIVE_LOGGER


def log_exception(source: str, exc: BaseException) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_exception(source, exc)


def log_warn(source: str, event: str, content: Any | None = None) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_level(source, "warn", event, content)


def log_info(source: str, event: str, content: Any | None = None) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_level(source, "info", event, content)


def log_debug(source: str, event: str, content: Any | None = None) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_level(source, "debug", event, content)
