"""Unified error handling for the bridge.

- ErrorCode: Standard error codes for invocation failures
- AdapterBridgeError and subclasses: Raised by registry, validator, backends, front door
- ToolError: Structured error payload pushed with failed outcomes
"""

from .errors import (
    AdapterBridgeError,
    AdapterError,
    DuplicateToolError,
    ErrorCode,
    InvalidRequestError,
    NoActiveChannelError,
    ToolError,
    UnknownToolError,
    ValidationError,
    classify_exception,
)
from .types import JsonDict, JsonPrimitive, JsonValue

__all__ = [
    "ErrorCode", "ToolError", "classify_exception",
    "AdapterBridgeError", "DuplicateToolError", "UnknownToolError", "ValidationError",
    "AdapterError", "NoActiveChannelError", "InvalidRequestError",
    "JsonDict", "JsonPrimitive", "JsonValue",
]
