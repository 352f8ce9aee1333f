"""Transcript data models."""

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    """Who a committed transcript record belongs to."""

    USER = "user"
    ASSISTANT = "assistant"
    ERROR = "error"


class ReducerState(str, Enum):
    """Transcript reducer states."""

    IDLE = "idle"
    STREAMING = "streaming"


@dataclass(frozen=True)
class TranscriptRecord:
    """A committed message in the transcript."""

    role: Role
    text: str


@dataclass
class TranscriptState:
    """Visible conversation state, mutated only by TranscriptReducer."""

    records: list[TranscriptRecord] = field(default_factory=list)
    buffer: str = ""
    status: ReducerState = ReducerState.IDLE

    @property
    def streaming(self) -> bool:
        return self.status is ReducerState.STREAMING
