"""Producer-side collaborators: response generation and command execution."""

from .commands import CommandExecutor, ICommandExecutor
from .responder import CANNED_OPENERS, ChatResponder, IResponder, parse_command

__all__ = [
    "CANNED_OPENERS",
    "ChatResponder",
    "CommandExecutor",
    "ICommandExecutor",
    "IResponder",
    "parse_command",
]
