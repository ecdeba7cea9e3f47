"""Wire serialization for the streaming and invocation channels.

All JSON on the wire goes through orjson. Streaming events are framed as
Server-Sent Events: one ``data:`` line holding a compact JSON object,
terminated by a blank line.

Usage:
    >>> sse_frame({"type": "server_ready"})
    'data: {"type":"server_ready"}\\n\\n'
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import orjson

if TYPE_CHECKING:
    from ..foundation.errors import JsonValue

_OPTIONS = orjson.OPT_SERIALIZE_NUMPY | orjson.OPT_UTC_Z

# SSE comment line, ignored by EventSource clients
KEEPALIVE_FRAME = ": keepalive\n\n"


def encode(data: JsonValue) -> bytes:
    """Encode to JSON bytes."""
    return orjson.dumps(data, option=_OPTIONS)


def decode(data: bytes | str) -> JsonValue:
    """Decode from JSON bytes/str."""
    return orjson.loads(data)


def encode_str(data: JsonValue) -> str:
    """Encode to JSON string."""
    return orjson.dumps(data, option=_OPTIONS).decode()


def pretty(data: JsonValue) -> str:
    """Indented JSON text, used for content blocks read by agents."""
    return orjson.dumps(data, option=_OPTIONS | orjson.OPT_INDENT_2).decode()


def sse_frame(event: JsonValue) -> str:
    """Frame one event for a text/event-stream response."""
    return f"data: {encode_str(event)}\n\n"
