from __future__ import annotations

import weakref
from collections import deque
from contextlib import ExitStack
from typing import Callable, Deque, List, Optional

from prompt_toolkit.input import Input
from rich.console import Console as RichConsole
from rich.console import RenderableType
from rich.errors import LiveError
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ..core.commands import ConsoleInput, parse_line
from ..core.console import Console, format_elapsed
from ..core.errors import Terminated
from ..core.session_log import SessionLogger
from .terminal import (
    KEY_BACKSPACE,
    KEY_CHAR,
    KEY_ENTER,
    KEY_INTERRUPT,
    KeyEvent,
    TerminalSession,
)

INPUT_TITLE = "Input"
MESSAGES_TITLE = "Messages"
INPUT_BOX_HEIGHT = 3
DEFAULT_POLL_INTERVAL = 0.1


class FullScreenConsole(Console):
    """Full-screen console with a scrollback transcript and an input box.

    The terminal is switched to raw mode and the alternate screen when the
    console is created and restored by ``close()``, which also runs on
    ``__exit__`` and when an unclosed console is garbage collected. Input is collected by polling key events and the screen is
    redrawn after every change.
    """

    source = "fullscreen"

    def __init__(
        self,
        *,
        console: Optional[RichConsole] = None,
        terminal_input: Optional[Input] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        session_logger: SessionLogger | None = None,
    ) -> None:
        super().__init__(session_logger=session_logger)
        self.console = console or RichConsole()
        self.poll_interval = poll_interval
        self.transcript: List[str] = []
        self.input_text = ""
        self._input_title = INPUT_TITLE
        self._pending: Deque[KeyEvent] = deque()
        self._closed = False
        self._stack = ExitStack()
        try:
            self.terminal = self._stack.enter_context(TerminalSession(terminal_input))
            self._live = self._stack.enter_context(
                Live(
                    console=self.console,
                    screen=True,
                    auto_refresh=False,
                    redirect_stdout=False,
                    redirect_stderr=False,
                    get_renderable=_weak_renderer(self),
                )
            )
        except (OSError, LiveError) as exc:
            self._stack.close()
            raise Terminated(f"Unable to start terminal session: {exc}") from exc
        self._finalizer = weakref.finalize(self, self._stack.close)
        self._redraw()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._finalizer()

    async def _read_input(self) -> ConsoleInput:
        line = await self._edit_line(INPUT_TITLE)
        self._append(f"> {line}")
        return parse_line(line)

    async def _show_response(self, text: str) -> None:
        self._append(text)

    async def _show_thinking(self, text: str) -> None:
        self._append(text, prefix="[thinking] ")

    async def _show_statistics(self, elapsed: float) -> None:
        self._append(format_elapsed(elapsed))

    async def _read_yes_no(self, text: str, default: bool) -> bool:
        # Enter accepts for both operations
        self._append(f"{text} [Y/n]")
        while True:
            event = await self._next_key()
            if event.kind == KEY_INTERRUPT:
                raise Terminated("Interrupted by user")
            if event.kind == KEY_ENTER or (event.kind == KEY_CHAR and event.text in ("y", "Y")):
                result = True
            elif event.kind == KEY_CHAR and event.text in ("n", "N"):
                result = False
            else:
                continue
            self._append(f"> {'yes' if result else 'no'}")
            return result

    async def _read_answer(self, text: str) -> str:
        self._append(text)
        line = (await self._edit_line(text)).strip()
        self._append(f"> {line}")
        return line

    async def _edit_line(self, title: str) -> str:
        self._input_title = title
        self.input_text = ""
        self._redraw()
        while True:
            event = await self._next_key()
            if event.kind == KEY_INTERRUPT:
                raise Terminated("Interrupted by user")
            if event.kind == KEY_ENTER:
                line = self.input_text
                self.input_text = ""
                self._input_title = INPUT_TITLE
                return line
            if event.kind == KEY_CHAR:
                self.input_text += event.text
            elif event.kind == KEY_BACKSPACE:
                self.input_text = self.input_text[:-1]
            else:
                continue
            self._redraw()

    async def _next_key(self) -> KeyEvent:
        if self._closed:
            raise Terminated("Console closed")
        while not self._pending:
            self._pending.extend(await self.terminal.poll(self.poll_interval))
        return self._pending.popleft()

    def _append(self, text: str, *, prefix: str = "") -> None:
        lines = text.splitlines() or [""]
        self.transcript.extend(f"{prefix}{line}" for line in lines)
        self._redraw()

    def _redraw(self) -> None:
        if self._closed:
            return
        try:
            self._live.refresh()
        except OSError as exc:
            raise Terminated(f"Terminal output failed: {exc}") from exc

    def _render(self) -> Layout:
        visible = max(self.console.size.height - INPUT_BOX_HEIGHT - 2, 1)
        messages = Text(
            "\n".join(self.transcript[-visible:]),
            no_wrap=True,
            overflow="ellipsis",
        )
        layout = Layout()
        layout.split_column(
            Layout(Panel(messages, title=MESSAGES_TITLE), name="messages"),
            Layout(
                Panel(Text(self.input_text, no_wrap=True), title=Text(self._input_title)),
                name="input",
                size=INPUT_BOX_HEIGHT,
            ),
        )
        return layout


def _weak_renderer(owner: FullScreenConsole) -> Callable[[], RenderableType]:
    # the live display holds only a weak reference to its console
    ref = weakref.ref(owner)

    def render() -> RenderableType:
        target = ref()
        return target._render() if target is not None else Text("")

    return render
