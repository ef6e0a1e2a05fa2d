from __future__ import annotations

import asyncio
import sys
from typing import Any, BinaryIO, Optional

from rich.console import Console as RichConsole

from ..core.commands import ConsoleInput, parse_line
from ..core.console import Console, format_elapsed, match_yes_no
from ..core.errors import Terminated
from ..core.session_log import SessionLogger


class ByteSinkWriter:
    """Text-file facade over a binary stream so rich can render into it."""

    def __init__(self, sink: BinaryIO, encoding: str = "utf-8") -> None:
        self._sink = sink
        self.encoding = encoding

    def write(self, text: str) -> int:
        # rich turns BrokenPipeError into SystemExit, so transport errors are mapped here
        try:
            self._sink.write(text.encode(self.encoding, errors="replace"))
        except (OSError, ValueError) as exc:
            raise Terminated(f"Output stream failed: {exc}") from exc
        return len(text)

    def flush(self) -> None:
        flush = getattr(self._sink, "flush", None)
        if not callable(flush):
            return
        try:
            flush()
        except (OSError, ValueError) as exc:
            raise Terminated(f"Output stream failed: {exc}") from exc

    def isatty(self) -> bool:
        isatty = getattr(self._sink, "isatty", None)
        return bool(callable(isatty) and isatty())


class LineConsole(Console):
    """Console over a readable byte source and a writable byte sink.

    Every operation blocks on at most one line read (run in the default
    executor) or writes its output and returns. With no arguments it uses the
    process standard streams; tests pass ``io.BytesIO`` buffers.
    """

    source = "line"

    def __init__(
        self,
        source: Optional[BinaryIO] = None,
        sink: Optional[BinaryIO] = None,
        *,
        console: Optional[RichConsole] = None,
        session_logger: SessionLogger | None = None,
    ) -> None:
        super().__init__(session_logger=session_logger)
        self._source = source if source is not None else sys.stdin.buffer
        if console is not None:
            self.console = console
        elif sink is not None:
            self.console = RichConsole(
                file=ByteSinkWriter(sink),
                force_terminal=False,
                color_system=None,
                soft_wrap=True,
            )
        else:
            # terminal and colour detection go through ByteSinkWriter.isatty
            self.console = RichConsole(
                file=ByteSinkWriter(sys.stdout.buffer),
                soft_wrap=True,
            )

    async def _read_input(self) -> ConsoleInput:
        return parse_line(await self._readline())

    async def _show_response(self, text: str) -> None:
        self._write(f"{text}\n")

    async def _show_thinking(self, text: str) -> None:
        self._write(f"{text}\n")

    async def _show_statistics(self, elapsed: float) -> None:
        self._print(format_elapsed(elapsed), style="cyan")
        self._write("\n")

    async def _read_yes_no(self, text: str, default: bool) -> bool:
        prompt = f"{text} {self._yes_no_hint(default)}"
        while True:
            self._write(f"{prompt}\n")
            result = match_yes_no(await self._readline(), default)
            if result is not None:
                return result

    async def _read_answer(self, text: str) -> str:
        self._write(f"{text} ")
        return await self._readline()

    async def _readline(self) -> str:
        loop = asyncio.get_running_loop()
        try:
            raw: Any = await loop.run_in_executor(None, self._source.readline)
        except (OSError, ValueError) as exc:
            raise Terminated(f"Input stream failed: {exc}") from exc
        if not raw:
            raise Terminated("Input stream closed")
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return raw

    def _print(self, text: str, *, style: str | None = None) -> None:
        try:
            self.console.print(
                text,
                style=style,
                markup=False,
                highlight=False,
                emoji=False,
                soft_wrap=True,
            )
        except (OSError, ValueError) as exc:
            raise Terminated(f"Output stream failed: {exc}") from exc

    def _write(self, text: str) -> None:
        """Write agent and user text as given, bypassing rich rendering."""
        stream = self.console.file
        try:
            stream.write(text)
            stream.flush()
        except (OSError, ValueError) as exc:
            raise Terminated(f"Output stream failed: {exc}") from exc
