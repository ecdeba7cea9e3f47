"""Built-in tool definitions."""

from .builtin import (
    BUILTIN_TOOL_NAMES,
    NotionPageParams,
    PineconeQueryParams,
    PineconeUpsertParams,
    UpsertVector,
    register_builtin_tools,
)

__all__ = [
    "register_builtin_tools", "BUILTIN_TOOL_NAMES",
    "PineconeQueryParams", "PineconeUpsertParams", "UpsertVector", "NotionPageParams",
]
