"""Remote backend: forwards capabilities to a deployed universal-adapter REST API."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import httpx

from ..foundation.errors import AdapterError, ErrorCode, JsonDict
from .base import DEFAULT_TOP_K, HttpBackend


class RemoteBackend(HttpBackend):
    """Proxies each capability to ``{web_url}/api/...`` and returns the upstream JSON."""

    __slots__ = ("_web_url",)

    def __init__(self, web_url: str | None, *, client: httpx.AsyncClient | None = None, timeout: float = 30.0) -> None:
        super().__init__(client=client, timeout=timeout)
        self._web_url = web_url.rstrip("/") if web_url else None

    def _url(self, path: str) -> str:
        if not self._web_url:
            raise AdapterError("UNI_ADAPTER_WEB_URL is not set", ErrorCode.API_KEY_MISSING)
        return f"{self._web_url}{path}"

    async def _post(self, path: str, payload: JsonDict) -> JsonDict:
        body = await self._request("universal-adapter", "POST", self._url(path), json=payload)
        return body if isinstance(body, dict) else {"result": body}

    async def vector_query(
        self,
        vector: Sequence[float],
        top_k: int = DEFAULT_TOP_K,
        index_name: str | None = None,
        filter: JsonDict | None = None,  # noqa: A002
    ) -> JsonDict:
        return await self._post("/api/pinecone/search", {
            "vector": list(vector), "topK": top_k, "indexName": index_name, "filter": filter,
        })

    async def vector_upsert(
        self,
        vectors: Sequence[Mapping[str, object]],
        index_name: str | None = None,
    ) -> JsonDict:
        return await self._post("/api/pinecone/upsert", {
            "vectors": [dict(v) for v in vectors], "indexName": index_name,
        })

    async def fetch_document(self, document_id: str) -> JsonDict:
        return await self._post("/api/notion/page", {"pageId": document_id})
