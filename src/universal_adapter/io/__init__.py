"""Wire codecs."""

from .codec import KEEPALIVE_FRAME, decode, encode, encode_str, pretty, sse_frame

__all__ = ["encode", "decode", "encode_str", "pretty", "sse_frame", "KEEPALIVE_FRAME"]
