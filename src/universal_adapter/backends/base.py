"""Backend capability contract and the shared HTTP plumbing.

Every capability is a coroutine with a fixed input/output contract. Any
failure (missing credentials, unreachable upstream, rejected request)
surfaces as AdapterError carrying an ErrorCode.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

import httpx
import orjson

from ..foundation.errors import AdapterError, ErrorCode, JsonDict, JsonValue
from ..io import decode
from ..runtime.observability import get_logger

log = get_logger("universal_adapter.backends")

DEFAULT_TOP_K = 5

_STATUS_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.INVALID_PARAMS,
    401: ErrorCode.API_KEY_INVALID,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    408: ErrorCode.TIMEOUT,
    422: ErrorCode.INVALID_PARAMS,
    429: ErrorCode.RATE_LIMITED,
}


def code_for_status(status: int) -> ErrorCode:
    """Map an upstream HTTP status to an error code."""
    return _STATUS_CODES.get(status, ErrorCode.EXTERNAL_SERVICE_ERROR)


@runtime_checkable
class Backend(Protocol):
    """Capabilities the bridge exposes as tools."""

    async def vector_query(
        self,
        vector: Sequence[float],
        top_k: int = DEFAULT_TOP_K,
        index_name: str | None = None,
        filter: JsonDict | None = None,  # noqa: A002 - upstream field name
    ) -> JsonDict: ...

    async def vector_upsert(
        self,
        vectors: Sequence[Mapping[str, object]],
        index_name: str | None = None,
    ) -> JsonDict: ...

    async def fetch_document(self, document_id: str) -> JsonDict: ...

    async def aclose(self) -> None: ...


class HttpBackend:
    """Base for backends that talk JSON over HTTP.

    Owns its httpx client unless one is injected (tests, shared pools).
    """

    __slots__ = ("_client", "_owns_client")

    def __init__(self, *, client: httpx.AsyncClient | None = None, timeout: float = 30.0) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        service: str,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        json: JsonValue = None,
    ) -> JsonValue:
        try:
            response = await self._client.request(method, url, headers=headers, json=json)
        except httpx.TimeoutException:
            raise AdapterError(f"{service} request timed out", ErrorCode.TIMEOUT) from None
        except httpx.HTTPError as e:
            log.warning("upstream unreachable", service=service, url=url, error=str(e))
            raise AdapterError(f"{service} unreachable: {e}", ErrorCode.NETWORK_ERROR) from e

        if response.is_error:
            status = response.status_code
            log.warning("upstream rejected request", service=service, url=url, status=status)
            raise AdapterError(
                f"{service} returned {status}: {_detail(response)}",
                code_for_status(status),
                status_code=status,
            )
        if not response.content:
            return {}
        try:
            return decode(response.content)
        except orjson.JSONDecodeError:
            raise AdapterError(f"{service} returned invalid JSON", ErrorCode.PARSE_ERROR) from None


def _detail(response: httpx.Response) -> str:
    """Best-effort error message from an upstream error body."""
    try:
        body = decode(response.content)
    except orjson.JSONDecodeError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if isinstance(value := body.get(key), str) and value:
                return value
    return response.reason_phrase
