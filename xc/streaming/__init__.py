"""Incremental decoding of streamed explanation responses.

Pipeline: ChunkReader -> FrameAssembler -> envelope extraction ->
partial field extraction, composed by StreamDecoder.
"""

from xc.streaming.decoder import StreamDecoder, StreamState, decode_stream, parse_final
from xc.streaming.envelope import MalformedFrameError, extract_delta, parse_envelope
from xc.streaming.fields import extract_fields, unescape
from xc.streaming.frames import FrameAssembler
from xc.streaming.reader import ChunkReader

__all__ = [
    "ChunkReader",
    "FrameAssembler",
    "MalformedFrameError",
    "StreamDecoder",
    "StreamState",
    "decode_stream",
    "extract_delta",
    "extract_fields",
    "parse_envelope",
    "parse_final",
    "unescape",
]
