"""Tests for the HTTP backends against mocked upstreams."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from universal_adapter.backends import DirectBackend, RemoteBackend, code_for_status, create_backend
from universal_adapter.foundation.config import AdapterSettings, NotionSettings, PineconeSettings
from universal_adapter.foundation.errors import AdapterError, ErrorCode
from universal_adapter.io import decode

INDEX_HOST = "docs-abc123.svc.pinecone.io"


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _pinecone(**overrides: object) -> PineconeSettings:
    return PineconeSettings(**{"api_key": "pc-test", "index_name": "docs", **overrides})


class Upstream:
    """Records requests and answers Pinecone control and data plane calls."""

    def __init__(self, query_body: object = None, upsert_body: object = None) -> None:
        self.requests: list[httpx.Request] = []
        self.query_body = query_body if query_body is not None else {"matches": [{"id": "a", "score": 0.9}]}
        self.upsert_body = upsert_body if upsert_body is not None else {"upsertedCount": 2}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        match (request.method, request.url.host, request.url.path):
            case ("GET", "api.pinecone.io", "/indexes/docs"):
                return httpx.Response(200, json={"name": "docs", "host": INDEX_HOST})
            case ("POST", host, "/query") if host == INDEX_HOST:
                return httpx.Response(200, json=self.query_body)
            case ("POST", host, "/vectors/upsert") if host == INDEX_HOST:
                return httpx.Response(200, json=self.upsert_body)
            case _:
                return httpx.Response(404, json={"message": f"no route {request.url.path}"})


# ═════════════════════════════════════════════════════════════════════════════
# Direct Backend - Pinecone
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_direct_query(clean_env: pytest.MonkeyPatch) -> None:
    upstream = Upstream()
    async with _client(upstream) as client:
        backend = DirectBackend(_pinecone(), NotionSettings(), client=client)
        result = await backend.vector_query([0.1, 0.2], top_k=3, filter={"tag": "a"})

    assert result == {"ok": True, "matches": [{"id": "a", "score": 0.9}]}
    query = upstream.requests[-1]
    assert query.headers["Api-Key"] == "pc-test"
    assert decode(query.content) == {
        "vector": [0.1, 0.2], "topK": 3, "includeValues": False, "includeMetadata": True, "filter": {"tag": "a"},
    }


@pytest.mark.asyncio
async def test_index_host_lookup_cached(clean_env: pytest.MonkeyPatch) -> None:
    upstream = Upstream()
    async with _client(upstream) as client:
        backend = DirectBackend(_pinecone(), NotionSettings(), client=client)
        await backend.vector_query([0.1])
        await backend.vector_query([0.2])

    lookups = [r for r in upstream.requests if r.method == "GET"]
    assert len(lookups) == 1


@pytest.mark.asyncio
async def test_direct_query_without_matches(clean_env: pytest.MonkeyPatch) -> None:
    async with _client(Upstream(query_body={"namespace": ""})) as client:
        backend = DirectBackend(_pinecone(), NotionSettings(), client=client)
        assert await backend.vector_query([0.1]) == {"ok": True, "matches": []}


@pytest.mark.asyncio
async def test_direct_upsert(clean_env: pytest.MonkeyPatch) -> None:
    upstream = Upstream()
    async with _client(upstream) as client:
        backend = DirectBackend(_pinecone(), NotionSettings(), client=client)
        result = await backend.vector_upsert([{"id": "a", "values": [0.1]}, {"id": "b", "values": [0.2], "metadata": {"k": 1}}])

    assert result == {"ok": True, "count": 2}
    assert decode(upstream.requests[-1].content) == {"vectors": [
        {"id": "a", "values": [0.1], "metadata": {}},
        {"id": "b", "values": [0.2], "metadata": {"k": 1}},
    ]}


@pytest.mark.asyncio
async def test_missing_pinecone_key(clean_env: pytest.MonkeyPatch) -> None:
    upstream = Upstream()
    async with _client(upstream) as client:
        backend = DirectBackend(PineconeSettings(index_name="docs"), NotionSettings(), client=client)
        with pytest.raises(AdapterError) as exc_info:
            await backend.vector_query([0.1])

    assert exc_info.value.code is ErrorCode.API_KEY_MISSING
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_missing_index_name(clean_env: pytest.MonkeyPatch) -> None:
    async with _client(Upstream()) as client:
        backend = DirectBackend(PineconeSettings(api_key="pc-test"), NotionSettings(), client=client)
        with pytest.raises(AdapterError, match="No index name provided and PINECONE_INDEX_NAME not set"):
            await backend.vector_upsert([{"id": "a", "values": [0.1]}])


@pytest.mark.asyncio
async def test_unknown_index(clean_env: pytest.MonkeyPatch) -> None:
    async with _client(Upstream()) as client:
        backend = DirectBackend(_pinecone(), NotionSettings(), client=client)
        with pytest.raises(AdapterError) as exc_info:
            await backend.vector_query([0.1], index_name="missing")

    assert exc_info.value.code is ErrorCode.NOT_FOUND
    assert exc_info.value.status_code == 404
    assert str(exc_info.value) == "pinecone returned 404: no route /indexes/missing"


# ═════════════════════════════════════════════════════════════════════════════
# Direct Backend - Notion
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_notion_page(clean_env: pytest.MonkeyPatch) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"object": "page", "id": "abc123"})

    async with _client(handler) as client:
        backend = DirectBackend(_pinecone(), NotionSettings(api_key="secret_n"), client=client)
        page = await backend.fetch_document("abc123")

    assert page == {"object": "page", "id": "abc123"}
    assert str(seen[0].url) == "https://api.notion.com/v1/pages/abc123"
    assert seen[0].headers["Authorization"] == "Bearer secret_n"
    assert seen[0].headers["Notion-Version"] == "2022-06-28"


@pytest.mark.asyncio
async def test_notion_not_configured(clean_env: pytest.MonkeyPatch) -> None:
    async with _client(lambda r: httpx.Response(200, json={})) as client:
        backend = DirectBackend(_pinecone(), NotionSettings(), client=client)
        with pytest.raises(AdapterError, match="NOTION_API_KEY not configured"):
            await backend.fetch_document("abc123")


# ═════════════════════════════════════════════════════════════════════════════
# Transport Failures
# ═════════════════════════════════════════════════════════════════════════════


def _raise(exc: Exception) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc
    return handler


@pytest.mark.asyncio
@pytest.mark.parametrize(("exc", "code"), [
    (httpx.ConnectError("connection refused"), ErrorCode.NETWORK_ERROR),
    (httpx.ReadTimeout("read timed out"), ErrorCode.TIMEOUT),
])
async def test_transport_errors(clean_env: pytest.MonkeyPatch, exc: Exception, code: ErrorCode) -> None:
    async with _client(_raise(exc)) as client:
        backend = DirectBackend(_pinecone(), NotionSettings(api_key="secret_n"), client=client)
        with pytest.raises(AdapterError) as exc_info:
            await backend.fetch_document("abc123")

    assert exc_info.value.code is code


@pytest.mark.asyncio
async def test_invalid_json_body(clean_env: pytest.MonkeyPatch) -> None:
    async with _client(lambda r: httpx.Response(200, content=b"<html>")) as client:
        backend = DirectBackend(_pinecone(), NotionSettings(api_key="secret_n"), client=client)
        with pytest.raises(AdapterError) as exc_info:
            await backend.fetch_document("abc123")

    assert exc_info.value.code is ErrorCode.PARSE_ERROR


@pytest.mark.parametrize(("status", "code"), [
    (400, ErrorCode.INVALID_PARAMS),
    (401, ErrorCode.API_KEY_INVALID),
    (403, ErrorCode.PERMISSION_DENIED),
    (404, ErrorCode.NOT_FOUND),
    (429, ErrorCode.RATE_LIMITED),
    (502, ErrorCode.EXTERNAL_SERVICE_ERROR),
])
def test_status_mapping(status: int, code: ErrorCode) -> None:
    assert code_for_status(status) is code


# ═════════════════════════════════════════════════════════════════════════════
# Remote Backend
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_remote_forwards_to_rest_api() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "matches": []})

    async with _client(handler) as client:
        backend = RemoteBackend("https://adapter.example.com/", client=client)
        result = await backend.vector_query([0.1], top_k=2, index_name="docs")
        await backend.fetch_document("abc123")

    assert result == {"ok": True, "matches": []}
    assert str(seen[0].url) == "https://adapter.example.com/api/pinecone/search"
    assert decode(seen[0].content) == {"vector": [0.1], "topK": 2, "indexName": "docs", "filter": None}
    assert str(seen[1].url) == "https://adapter.example.com/api/notion/page"
    assert decode(seen[1].content) == {"pageId": "abc123"}


@pytest.mark.asyncio
async def test_remote_relays_upstream_error() -> None:
    handler = lambda r: httpx.Response(500, json={"ok": False, "error": "NOTION_API_KEY not configured"})  # noqa: E731
    async with _client(handler) as client:
        backend = RemoteBackend("https://adapter.example.com", client=client)
        with pytest.raises(AdapterError) as exc_info:
            await backend.fetch_document("abc123")

    assert exc_info.value.message == "universal-adapter returned 500: NOTION_API_KEY not configured"
    assert exc_info.value.code is ErrorCode.EXTERNAL_SERVICE_ERROR


@pytest.mark.asyncio
async def test_remote_without_url() -> None:
    backend = RemoteBackend(None)
    try:
        with pytest.raises(AdapterError, match="UNI_ADAPTER_WEB_URL is not set"):
            await backend.vector_upsert([{"id": "a", "values": [0.1]}])
    finally:
        await backend.aclose()


# ═════════════════════════════════════════════════════════════════════════════
# Factory
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_backend_selects_mode(clean_env: pytest.MonkeyPatch) -> None:
    direct = create_backend(AdapterSettings())
    remote = create_backend(AdapterSettings(web_url="https://adapter.example.com"))

    assert isinstance(direct, DirectBackend)
    assert isinstance(remote, RemoteBackend)

    await direct.aclose()
    await remote.aclose()
