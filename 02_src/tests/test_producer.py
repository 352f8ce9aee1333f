"""Tests for ChatResponder and CommandExecutor."""

import random
import sys

import pytest

from chatstream.models import (
    ChatChar,
    ChatComplete,
    SystemInfo,
    ToolEnd,
    ToolOutput,
    ToolStart,
)
from chatstream.producer import CANNED_OPENERS, ChatResponder, CommandExecutor, parse_command


class FakeExecutor:
    """Executor recording calls instead of spawning processes."""

    def __init__(self, output="out\n", allowed=("date",)):
        self.output = output
        self._allowed = set(allowed)
        self.calls = []

    def is_allowed(self, name):
        return name in self._allowed

    async def execute(self, name, args):
        self.calls.append((name, args))
        return self.output


async def collect(responder, message):
    return [event async for event in responder.generate(message)]


def text_of(events):
    return "".join(e.payload.text for e in events if isinstance(e.payload, ChatChar))


class TestParseCommand:
    """Tests for parse_command."""

    @pytest.mark.parametrize(
        "message, argv",
        [
            ("/run date", ["date"]),
            ("/run echo 'a b'", ["echo", "a b"]),
            ("!uname -a", ["uname", "-a"]),
            ("hello there", None),
            ("/run   ", None),
            ("/running late", None),
        ],
    )
    def test_parse(self, message, argv):
        """Test recognising command requests."""
        assert parse_command(message) == argv

    def test_unbalanced_quotes(self):
        """Test that bad quoting raises ValueError."""
        with pytest.raises(ValueError):
            parse_command("/run echo 'oops")


class TestChatResponder:
    """Tests for ChatResponder.generate()."""

    @pytest.mark.asyncio
    async def test_canned_reply_streams_chars(self):
        """Test that plain chat streams a canned reply and completes."""
        responder = ChatResponder(FakeExecutor(), char_delay=0, rng=random.Random(1))

        events = await collect(responder, "hello")

        assert isinstance(events[-1].payload, ChatComplete)
        chars = events[:-1]
        assert all(isinstance(e.payload, ChatChar) for e in chars)
        assert all(len(e.payload.text) == 1 for e in chars)
        reply = text_of(events)
        assert any(reply.startswith(opener) for opener in CANNED_OPENERS)
        assert 'You said: "hello"' in reply

    @pytest.mark.asyncio
    async def test_command_turn(self):
        """Test that a command request emits tool events around the output."""
        executor = FakeExecutor(output="Mon Jan 1\n")
        responder = ChatResponder(executor, char_delay=0)

        events = await collect(responder, "/run date")

        payloads = [e.payload for e in events]
        assert payloads[:4] == [
            SystemInfo("running date"),
            ToolStart("date"),
            ToolOutput("Mon Jan 1\n"),
            ToolEnd(),
        ]
        assert isinstance(payloads[-1], ChatComplete)
        assert text_of(events) == "Finished running date."
        assert executor.calls == [("date", [])]

    @pytest.mark.asyncio
    async def test_refused_command_still_reported(self):
        """Test that a non-whitelisted command reports the refusal."""
        executor = FakeExecutor(output="Command not allowed: rm")
        responder = ChatResponder(executor, char_delay=0)

        events = await collect(responder, "!rm -rf /")

        assert ToolStart("rm -rf /") in [e.payload for e in events]
        assert ToolOutput("Command not allowed: rm") in [e.payload for e in events]
        assert "not on the command whitelist" in text_of(events)

    @pytest.mark.asyncio
    async def test_unparseable_command(self):
        """Test that bad quoting is answered as text, not raised."""
        responder = ChatResponder(FakeExecutor(), char_delay=0)

        events = await collect(responder, "/run echo 'oops")

        assert text_of(events).startswith("Could not parse command")
        assert isinstance(events[-1].payload, ChatComplete)


class TestCommandExecutor:
    """Tests for CommandExecutor.execute()."""

    @pytest.mark.asyncio
    async def test_refuses_unlisted(self):
        """Test that commands outside the whitelist are not run."""
        executor = CommandExecutor(allowed=["date"])
        output = await executor.execute("rm", ["-rf", "/"])
        assert output.startswith("Command not allowed: rm")
        assert "date" in output

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="needs echo binary")
    async def test_runs_whitelisted(self):
        """Test that a whitelisted command returns its stdout."""
        executor = CommandExecutor(allowed=["echo"])
        output = await executor.execute("echo", ["hello", "world"])
        assert output == "hello world\n"

    @pytest.mark.asyncio
    async def test_missing_binary(self):
        """Test that a missing program returns an error text."""
        executor = CommandExecutor(allowed=["definitely-not-a-real-binary"])
        output = await executor.execute("definitely-not-a-real-binary", [])
        assert output.startswith("Command not found")

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="needs ls binary")
    async def test_non_zero_exit(self):
        """Test that a failing command reports its exit code."""
        executor = CommandExecutor(allowed=["ls"])
        output = await executor.execute("ls", ["/definitely/not/here"])
        assert output.startswith("Exit code ")

    def test_allowed_sorted(self):
        """Test that the whitelist is exposed sorted."""
        executor = CommandExecutor(allowed=["uptime", "date"])
        assert executor.allowed == ["date", "uptime"]
        assert executor.is_allowed("date")
        assert not executor.is_allowed("bash")
