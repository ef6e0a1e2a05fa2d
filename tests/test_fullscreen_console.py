import gc
import io
import unittest
from contextlib import contextmanager
from unittest import mock

from prompt_toolkit.input import create_pipe_input
from rich.console import Console
from rich.errors import LiveError
from rich.live import Live

from agent_console.cli.fullscreen import FullScreenConsole
from agent_console.core import (
    InvalidState,
    Observability,
    Prompt,
    Terminated,
    ThinkingToggle,
    UnknownCommand,
)


def recording_console() -> Console:
    return Console(
        file=io.StringIO(),
        force_terminal=False,
        color_system=None,
        width=80,
        height=24,
    )


class FullScreenTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        pipe_context = create_pipe_input()
        self.pipe = pipe_context.__enter__()
        self.addCleanup(pipe_context.__exit__, None, None, None)
        self.console = FullScreenConsole(
            console=recording_console(),
            terminal_input=self.pipe,
            poll_interval=0.01,
        )
        self.addCleanup(self.console.close)


class FullScreenPromptTests(FullScreenTestCase):
    async def test_prompt_input_echoes_line_into_transcript(self) -> None:
        self.pipe.send_text("hello world\r")
        self.assertEqual(await self.console.prompt_input(), Prompt("hello world"))
        self.assertEqual(self.console.transcript, ["> hello world"])
        self.assertEqual(self.console.input_text, "")

    async def test_backspace_edits_input_line(self) -> None:
        self.pipe.send_text("helx\x7flo\r")
        self.assertEqual(await self.console.prompt_input(), Prompt("hello"))

    async def test_keys_after_submit_are_kept_for_next_prompt(self) -> None:
        self.pipe.send_text("first\rsecond\r")
        self.assertEqual(await self.console.prompt_input(), Prompt("first"))
        self.assertEqual(await self.console.prompt_input(), Prompt("second"))

    async def test_submit_parses_commands(self) -> None:
        self.pipe.send_text("/thinking on\r/foo bar\r")
        self.assertEqual(await self.console.prompt_input(), ThinkingToggle(True))
        with self.assertRaises(UnknownCommand) as ctx:
            await self.console.prompt_input()
        self.assertEqual(ctx.exception.command, "/foo")
        self.assertIn("> /foo bar", self.console.transcript)

    async def test_ctrl_c_terminates(self) -> None:
        self.pipe.send_text("abc\x03")
        with self.assertRaises(Terminated):
            await self.console.prompt_input()

    async def test_closed_input_terminates(self) -> None:
        self.pipe.close()
        with self.assertRaises(Terminated):
            await self.console.prompt_input()


class FullScreenResponseTests(FullScreenTestCase):
    async def test_state_machine_is_enforced(self) -> None:
        with self.assertRaises(InvalidState):
            await self.console.add_response_text("nope")
        await self.console.start_responding()
        with self.assertRaises(InvalidState):
            await self.console.prompt_input()
        await self.console.stop_responding()
        await self.console.start_responding()
        self.assertEqual(self.console.state, "responding")

    async def test_response_text_is_split_into_transcript_lines(self) -> None:
        await self.console.start_responding()
        await self.console.add_response_text("line one\nline two")
        self.assertEqual(self.console.transcript, ["line one", "line two"])

    async def test_thinking_text_respects_flag(self) -> None:
        await self.console.start_responding()
        await self.console.add_thinking_text("hidden")
        self.assertEqual(self.console.transcript, [])
        self.console.observability(Observability(thinking=True))
        await self.console.add_thinking_text("shown")
        self.assertEqual(self.console.transcript, ["[thinking] shown"])

    async def test_statistics_are_added_to_transcript(self) -> None:
        self.console.observability(Observability(statistics=True))
        await self.console.start_responding()
        await self.console.stop_responding()
        self.assertEqual(len(self.console.transcript), 1)
        self.assertTrue(self.console.transcript[0].startswith("Response time:"))

    async def test_if_yes_enter_means_yes(self) -> None:
        await self.console.start_responding()
        self.pipe.send_text("\r")
        self.assertTrue(await self.console.if_yes("Delete?"))
        self.assertEqual(self.console.transcript, ["Delete? [Y/n]", "> yes"])

    async def test_if_accept_enter_means_yes(self) -> None:
        await self.console.start_responding()
        self.pipe.send_text("\r")
        self.assertTrue(await self.console.if_accept("Apply?"))
        self.assertEqual(self.console.transcript, ["Apply? [Y/n]", "> yes"])

    async def test_yes_no_keys_ignore_other_input(self) -> None:
        await self.console.start_responding()
        self.pipe.send_text("xq Y")
        self.assertTrue(await self.console.if_yes("Continue?"))
        self.pipe.send_text("zN")
        self.assertFalse(await self.console.if_accept("Continue?"))

    async def test_yes_no_closed_input_terminates(self) -> None:
        await self.console.start_responding()
        self.pipe.close()
        with self.assertRaises(Terminated):
            await self.console.if_accept("Continue?")

    async def test_ask_user_uses_input_line(self) -> None:
        await self.console.start_responding()
        self.pipe.send_text("  blue  \r")
        self.assertEqual(await self.console.ask_user("Favourite colour?"), "blue")
        self.assertEqual(
            self.console.transcript, ["Favourite colour?", "> blue"]
        )


class FullScreenLifecycleTests(unittest.IsolatedAsyncioTestCase):
    def _tracking_input(self, events: list[str]):
        pipe_context = create_pipe_input()
        pipe = pipe_context.__enter__()
        self.addCleanup(pipe_context.__exit__, None, None, None)

        @contextmanager
        def raw_mode():
            events.append("enter")
            try:
                yield
            finally:
                events.append("exit")

        pipe.raw_mode = raw_mode  # type: ignore[method-assign]
        return pipe

    async def test_close_restores_terminal_once(self) -> None:
        events: list[str] = []
        console = FullScreenConsole(
            console=recording_console(), terminal_input=self._tracking_input(events)
        )
        self.assertEqual(events, ["enter"])
        console.close()
        console.close()
        self.assertEqual(events, ["enter", "exit"])
        self.assertTrue(console.closed)

    async def test_context_manager_restores_terminal_on_error(self) -> None:
        events: list[str] = []
        with self.assertRaises(RuntimeError):
            with FullScreenConsole(
                console=recording_console(), terminal_input=self._tracking_input(events)
            ):
                raise RuntimeError("boom")
        self.assertEqual(events, ["enter", "exit"])

    async def test_failed_start_restores_terminal(self) -> None:
        events: list[str] = []
        with mock.patch.object(Live, "__enter__", side_effect=LiveError("busy")):
            with self.assertRaises(Terminated):
                FullScreenConsole(
                    console=recording_console(),
                    terminal_input=self._tracking_input(events),
                )
        self.assertEqual(events, ["enter", "exit"])

    async def test_unclosed_console_restores_terminal_when_collected(self) -> None:
        events: list[str] = []
        console = FullScreenConsole(
            console=recording_console(), terminal_input=self._tracking_input(events)
        )
        self.assertEqual(events, ["enter"])
        del console
        gc.collect()
        self.assertEqual(events, ["enter", "exit"])

    async def test_operations_after_close_terminate(self) -> None:
        events: list[str] = []
        console = FullScreenConsole(
            console=recording_console(), terminal_input=self._tracking_input(events)
        )
        console.close()
        with self.assertRaises(Terminated):
            await console.prompt_input()


if __name__ == "__main__":
    unittest.main()
