"""Transcript module."""

from .reducer import ITranscriptReducer, TranscriptReducer

__all__ = ["ITranscriptReducer", "TranscriptReducer"]
