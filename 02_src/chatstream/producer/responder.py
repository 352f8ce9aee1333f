"""ChatResponder: decides how to answer a user message and emits the events."""

import asyncio
import random
import shlex
from typing import AsyncIterator, Protocol

from ..logging_config import get_logger
from ..models import (
    Event,
    chat_char,
    chat_complete,
    system_info,
    tool_end,
    tool_output,
    tool_start,
)
from .commands import ICommandExecutor

logger = get_logger(__name__)

CANNED_OPENERS = (
    "That's an interesting question! Let me think about that...",
    "I understand what you're asking. Here's my perspective:",
    "Based on what you've told me, I would suggest:",
    "That's a great point! To expand on that idea:",
    "Let me help you with that problem step by step:",
)

COMMAND_PREFIXES = ("/run ", "!")


class IResponder(Protocol):
    """Producer logic for one turn."""

    def generate(self, message: str) -> AsyncIterator[Event]:
        """Yield the events answering message, ending with chat.complete."""
        ...


def parse_command(message: str) -> list[str] | None:
    """Split a command request into argv, or None if message is plain chat.

    Raises:
        ValueError: If the command line has unbalanced quotes.
    """
    for prefix in COMMAND_PREFIXES:
        if message.startswith(prefix):
            argv = shlex.split(message[len(prefix):])
            return argv or None
    return None


class ChatResponder:
    """Answers with canned text, or runs a whitelisted command.

    Messages starting with ``/run `` or ``!`` are command requests, e.g.
    ``/run uname -a``. Everything else gets a canned reply streamed one
    character at a time.
    """

    def __init__(
        self,
        executor: ICommandExecutor,
        char_delay: float = 0.05,
        rng: random.Random | None = None,
    ):
        self._executor = executor
        self._char_delay = char_delay
        self._rng = rng or random.Random()

    def compose_reply(self, message: str) -> str:
        opener = self._rng.choice(CANNED_OPENERS)
        return (
            f'{opener} You said: "{message}". This is a streaming response that '
            f"demonstrates real-time character-by-character delivery."
        )

    async def generate(self, message: str) -> AsyncIterator[Event]:
        try:
            argv = parse_command(message)
        except ValueError as e:
            async for event in self._stream_text(f"Could not parse command: {e}"):
                yield event
            yield chat_complete()
            return

        if argv is None:
            async for event in self._stream_text(self.compose_reply(message)):
                yield event
        else:
            async for event in self._run_command(argv[0], argv[1:]):
                yield event

        yield chat_complete()

    async def _run_command(self, name: str, args: list[str]) -> AsyncIterator[Event]:
        command_line = shlex.join([name, *args])
        logger.info("Command turn: %s", command_line)

        yield system_info(f"running {command_line}")
        yield tool_start(command_line)
        output = await self._executor.execute(name, args)
        yield tool_output(output)
        yield tool_end()

        if self._executor.is_allowed(name):
            summary = f"Finished running {name}."
        else:
            summary = f"{name} is not on the command whitelist."
        async for event in self._stream_text(summary):
            yield event

    async def _stream_text(self, text: str) -> AsyncIterator[Event]:
        for char in text:
            yield chat_char(char)
            await asyncio.sleep(self._char_delay)
