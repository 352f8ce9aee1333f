"""Console chat client built on rich."""

import asyncio

from rich import box
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ..config import Settings
from ..logging_config import get_logger
from ..models import Role, TranscriptRecord, TranscriptState
from .chat_client import ChatClient

logger = get_logger(__name__)

QUIT_COMMANDS = {"/quit", "/exit"}
CURSOR = "▎"

_RECORD_STYLES = {
    Role.USER: ("You", "green"),
    Role.ASSISTANT: ("Bot", "red"),
    Role.ERROR: ("Error", "bold red"),
}


def render_record(record: TranscriptRecord) -> Panel:
    title, colour = _RECORD_STYLES[record.role]
    return Panel(Text(record.text), title=title, title_align="left", border_style=colour)


def render_streaming(buffer: str) -> Panel:
    return Panel(
        Text(buffer + CURSOR),
        title="Bot",
        title_align="left",
        border_style="yellow",
        box=box.DOUBLE,
    )


class TranscriptView:
    """Draws the current turn in a live region.

    Records committed before the turn started are already on screen, so only
    the records from the latest user message onwards are redrawn.
    """

    def __init__(self, console: Console | None = None):
        self._console = console or Console()
        self._live: Live | None = None
        self._turn_start = 0

    def build(self, state: TranscriptState) -> Group:
        parts = [render_record(r) for r in state.records[self._turn_start:]]
        if state.streaming:
            parts.append(render_streaming(state.buffer))
        return Group(*parts)

    def render(self, state: TranscriptState) -> None:
        if state.streaming and self._live is None:
            self._turn_start = len(state.records) - 1
            self._live = Live(
                self.build(state),
                console=self._console,
                refresh_per_second=20,
                transient=False,
            )
            self._live.start()
            return

        if self._live is None:
            # Out-of-turn update (e.g. a late error): print it once
            if state.records[self._turn_start:]:
                self._console.print(self.build(state))
                self._turn_start = len(state.records)
            return

        self._live.update(self.build(state))
        if not state.streaming:
            self._live.stop()
            self._live = None
            self._turn_start = len(state.records)


async def run_console(settings: Settings, console: Console | None = None) -> None:
    """Prompt for messages until /quit or EOF."""
    console = console or Console()
    view = TranscriptView(console)
    client = ChatClient.from_settings(settings, render=view.render)

    console.print(
        Panel(
            Text("Chat Stream", style="bold"),
            subtitle=f"{settings.server_url}  |  /run <command>  |  /quit",
            style="on #7D56F4",
        )
    )

    await client.start()
    try:
        while True:
            try:
                text = await asyncio.to_thread(
                    console.input, "[bold magenta]>[/] "
                )
            except EOFError:
                break

            if text.strip() in QUIT_COMMANDS:
                break
            if not client.submit(text):
                continue
            await client.wait_idle()
    finally:
        await client.stop()
        logger.info("Console client stopped")
