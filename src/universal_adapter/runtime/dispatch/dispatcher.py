"""Invocation dispatch: resolve, validate, execute, normalize.

dispatch() is the single place where arbitrary backend failures become
protocol-safe outcomes. It never raises for a failed invocation; every call
ends in exactly one InvocationOutcome.
"""

from __future__ import annotations

import asyncio
import time

import orjson
from pydantic import BaseModel

from ...foundation.errors import AdapterError, ErrorCode, JsonValue, ToolError
from ...foundation.registry import ToolDescriptor, ToolRegistry
from ...foundation.schema import parse
from ...io import decode, encode
from ..observability import get_logger
from .outcome import InvocationOutcome

log = get_logger("universal_adapter.dispatch")


class Dispatcher:
    """Turns (tool name, arguments) into an InvocationOutcome.

    Registry and schemas are only read here, so concurrent dispatches do
    not interfere with each other.

    Args:
        registry: Source of tool descriptors
        timeout: Seconds allowed for a backend call; None waits indefinitely

    Example:
        >>> dispatcher = Dispatcher(registry, timeout=10.0)
        >>> outcome = await dispatcher.dispatch("notion_get_page", {"pageId": "abc123"})
        >>> outcome.status
        <OutcomeStatus.SUCCESS: 'success'>
    """

    __slots__ = ("_registry", "_timeout")

    def __init__(self, registry: ToolRegistry, *, timeout: float | None = 30.0) -> None:
        self._registry = registry
        self._timeout = timeout

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def dispatch(self, tool_name: str, arguments: object) -> InvocationOutcome:
        tlog = log.bind(tool=tool_name)
        start = time.perf_counter()
        try:
            descriptor = self._registry.resolve(tool_name)
            params = parse(descriptor.params_schema, arguments)
            outcome = InvocationOutcome.success(tool_name, _normalize(await self._invoke(descriptor, params)))
        except Exception as e:
            outcome = InvocationOutcome.failure(tool_name, ToolError.from_exception(tool_name, e))

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        if outcome.error is None:
            tlog.info("dispatch completed", status=outcome.status.value, duration_ms=duration_ms)
        else:
            tlog.warning("dispatch failed", status=outcome.status.value, duration_ms=duration_ms,
                         code=outcome.error.code.value, error=outcome.error.message)
        return outcome

    async def _invoke(self, descriptor: ToolDescriptor[BaseModel], params: BaseModel) -> object:
        try:
            return await asyncio.wait_for(descriptor.handler(params), timeout=self._timeout)
        except TimeoutError:
            raise AdapterError(
                f"{descriptor.name} timed out after {self._timeout}s", ErrorCode.TIMEOUT,
            ) from None


def _normalize(result: object) -> JsonValue:
    """Plain JSON data for a handler result, or a parse error.

    Values orjson knows how to write (datetimes, UUIDs, dataclasses, numpy)
    come back as their JSON form.
    """
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json", by_alias=True)
    try:
        return decode(encode(result))  # type: ignore[arg-type]
    except orjson.JSONEncodeError as e:
        raise AdapterError(f"result is not JSON-serializable: {e}", ErrorCode.PARSE_ERROR) from None
