"""Console client module."""

from .chat_client import ChatClient
from .console import TranscriptView, run_console

__all__ = ["ChatClient", "TranscriptView", "run_console"]
