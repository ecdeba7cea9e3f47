"""Standardized error handling for the protocol bridge.

Provides error codes, the bridge exception hierarchy, and the structured
error payload carried by failed invocation outcomes.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ErrorCode(StrEnum):
    """Standard error codes for invocation failures.

    Used for programmatic error handling and retry decisions.
    """
    API_KEY_MISSING = "API_KEY_MISSING"
    API_KEY_INVALID = "API_KEY_INVALID"
    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    INVALID_PARAMS = "INVALID_PARAMS"
    PARSE_ERROR = "PARSE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    NO_ACTIVE_CHANNEL = "NO_ACTIVE_CHANNEL"
    UNKNOWN = "UNKNOWN"


# Pattern -> code, checked in insertion order
_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "timed out": ErrorCode.TIMEOUT,
    "connect": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "rate": ErrorCode.RATE_LIMITED,
    "not configured": ErrorCode.API_KEY_MISSING,
    "not set": ErrorCode.API_KEY_MISSING,
    "auth": ErrorCode.API_KEY_INVALID,
    "permission": ErrorCode.PERMISSION_DENIED,
    "forbidden": ErrorCode.PERMISSION_DENIED,
    "json": ErrorCode.PARSE_ERROR,
    "decode": ErrorCode.PARSE_ERROR,
    "validation": ErrorCode.INVALID_PARAMS,
    "notfound": ErrorCode.NOT_FOUND,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES)


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.EXTERNAL_SERVICE_ERROR


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code, preferring an explicit ``code`` attribute."""
    if isinstance(code := getattr(exc, "code", None), ErrorCode):
        return code
    return _classify_cached(f"{type(exc).__name__} {exc}")


# ═══════════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════════


class AdapterBridgeError(Exception):
    """Base for every error raised by the bridge."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DuplicateToolError(AdapterBridgeError):
    """A tool with the same name is already registered."""

    code = ErrorCode.INVALID_PARAMS

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"tool already registered: {name}")


class UnknownToolError(AdapterBridgeError):
    """The requested tool is not in the registry."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown tool: {name}")


class ValidationError(AdapterBridgeError):
    """Arguments do not satisfy a tool's input schema.

    ``message`` describes the first violation; ``violations`` keeps every
    violation found, in schema order.
    """

    code = ErrorCode.INVALID_PARAMS

    def __init__(self, message: str, *, field: str | None = None, violations: tuple[str, ...] = ()) -> None:
        self.field = field
        self.violations = violations or (message,)
        super().__init__(message)


class AdapterError(AdapterBridgeError):
    """A backend capability failed (misconfigured, unreachable, rejected)."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
        *,
        status_code: int | None = None,
    ) -> None:
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class NoActiveChannelError(AdapterBridgeError):
    """No streaming connection is open to receive an invocation's outcome."""

    code = ErrorCode.NO_ACTIVE_CHANNEL

    def __init__(self, message: str = "No active streaming connection") -> None:
        super().__init__(message)


class InvalidRequestError(AdapterBridgeError):
    """The invocation request itself is malformed."""

    code = ErrorCode.INVALID_PARAMS


# ═══════════════════════════════════════════════════════════════════════════════
# Structured Error Payload
# ═══════════════════════════════════════════════════════════════════════════════


class ToolError(BaseModel):
    """Structured error payload for a failed invocation.

    Attributes:
        tool_name: Name of the tool that was invoked
        message: Human-readable error message
        code: Machine-readable error code for programmatic handling
        recoverable: Whether the error might succeed on retry
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, validate_default=True)

    tool_name: str
    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = True

    @computed_field
    @property
    def is_retryable(self) -> bool:
        """Whether this error is typically retryable (rate limits, timeouts, network)."""
        return self.code in _RETRYABLE_CODES

    @classmethod
    def from_exception(cls, tool_name: str, exc: BaseException) -> Self:
        """Create from exception with auto-classification."""
        message = str(getattr(exc, "message", None) or exc).strip() or type(exc).__name__
        code = classify_exception(exc)
        return cls(
            tool_name=tool_name,
            message=message,
            code=code,
            recoverable=code not in _PERMANENT_CODES,
        )


_RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.RATE_LIMITED,
    ErrorCode.TIMEOUT,
    ErrorCode.NETWORK_ERROR,
})

_PERMANENT_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.NOT_FOUND,
    ErrorCode.INVALID_PARAMS,
    ErrorCode.API_KEY_MISSING,
})
