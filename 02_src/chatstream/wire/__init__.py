"""Wire protocol: NDJSON codec, stream encoder and stream decoder."""

from .codec import DecodeError, decode_line, encode_event, event_to_record, record_to_event
from .decoder import StreamDecoder
from .encoder import TERMINAL_TYPES, StreamEncoder

__all__ = [
    "DecodeError",
    "decode_line",
    "encode_event",
    "event_to_record",
    "record_to_event",
    "StreamDecoder",
    "StreamEncoder",
    "TERMINAL_TYPES",
]
