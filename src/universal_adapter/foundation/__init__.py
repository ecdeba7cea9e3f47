"""Foundation layer: errors, configuration, schemas, and the tool registry."""

from .config import AdapterSettings, get_settings
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
)
from .registry import ToolDescriptor, ToolRegistry
from .schema import input_schema, parse, validate

__all__ = [
    "AdapterSettings", "get_settings",
    "ErrorCode", "ToolError", "AdapterBridgeError", "AdapterError", "DuplicateToolError",
    "InvalidRequestError", "NoActiveChannelError", "UnknownToolError", "ValidationError",
    "ToolDescriptor", "ToolRegistry",
    "validate", "parse", "input_schema",
]
