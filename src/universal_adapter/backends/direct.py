"""Direct backend: Pinecone data plane and Notion pages over their REST APIs."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from urllib.parse import quote

import httpx

from ..foundation.config import NotionSettings, PineconeSettings
from ..foundation.errors import AdapterError, ErrorCode, JsonDict
from .base import DEFAULT_TOP_K, HttpBackend


class DirectBackend(HttpBackend):
    """Calls Pinecone and Notion directly with credentials from settings.

    Index hosts are looked up once per index name through the Pinecone
    control plane and cached for the life of the backend.

    Example:
        >>> backend = DirectBackend(PineconeSettings(api_key="pc-..."), NotionSettings())
        >>> await backend.vector_query([0.1, 0.2], top_k=3, index_name="docs")
        {'ok': True, 'matches': [...]}
    """

    __slots__ = ("_pinecone", "_notion", "_hosts")

    def __init__(
        self,
        pinecone: PineconeSettings,
        notion: NotionSettings,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self._pinecone = pinecone
        self._notion = notion
        self._hosts: dict[str, str] = {}

    # ─────────────────────────────────────────────────────────────────
    # Pinecone
    # ─────────────────────────────────────────────────────────────────

    def _pinecone_headers(self) -> dict[str, str]:
        if self._pinecone.api_key is None:
            raise AdapterError("PINECONE_API_KEY is not set", ErrorCode.API_KEY_MISSING)
        return {
            "Api-Key": self._pinecone.api_key.get_secret_value(),
            "X-Pinecone-API-Version": self._pinecone.api_version,
        }

    def _index_name(self, index_name: str | None) -> str:
        if name := index_name or self._pinecone.index_name:
            return name
        raise AdapterError("No index name provided and PINECONE_INDEX_NAME not set", ErrorCode.INVALID_PARAMS)

    async def _index_host(self, name: str, headers: Mapping[str, str]) -> str:
        if (host := self._hosts.get(name)) is None:
            url = f"{self._pinecone.controller_url}/indexes/{quote(name, safe='')}"
            body = await self._request("pinecone", "GET", url, headers=headers)
            if not isinstance(body, dict) or not isinstance(body.get("host"), str):
                raise AdapterError(f"pinecone index '{name}' has no host", ErrorCode.EXTERNAL_SERVICE_ERROR)
            host = body["host"] if body["host"].startswith("http") else f"https://{body['host']}"
            self._hosts[name] = host.rstrip("/")
        return host.rstrip("/")

    async def vector_query(
        self,
        vector: Sequence[float],
        top_k: int = DEFAULT_TOP_K,
        index_name: str | None = None,
        filter: JsonDict | None = None,  # noqa: A002
    ) -> JsonDict:
        headers = self._pinecone_headers()
        host = await self._index_host(self._index_name(index_name), headers)
        payload: JsonDict = {
            "vector": list(vector),
            "topK": top_k,
            "includeValues": False,
            "includeMetadata": True,
        }
        if filter is not None:
            payload["filter"] = filter
        body = await self._request("pinecone", "POST", f"{host}/query", headers=headers, json=payload)
        matches = body.get("matches") if isinstance(body, dict) else None
        return {"ok": True, "matches": matches or []}

    async def vector_upsert(
        self,
        vectors: Sequence[Mapping[str, object]],
        index_name: str | None = None,
    ) -> JsonDict:
        headers = self._pinecone_headers()
        host = await self._index_host(self._index_name(index_name), headers)
        records = [
            {"id": v["id"], "values": list(v["values"]), "metadata": v.get("metadata") or {}}  # type: ignore[call-overload]
            for v in vectors
        ]
        body = await self._request("pinecone", "POST", f"{host}/vectors/upsert", headers=headers,
                                   json={"vectors": records})
        count = body.get("upsertedCount") if isinstance(body, dict) else None
        return {"ok": True, "count": count if isinstance(count, int) else len(records)}

    # ─────────────────────────────────────────────────────────────────
    # Notion
    # ─────────────────────────────────────────────────────────────────

    async def fetch_document(self, document_id: str) -> JsonDict:
        if self._notion.api_key is None:
            raise AdapterError("NOTION_API_KEY not configured", ErrorCode.API_KEY_MISSING)
        headers = {
            "Authorization": f"Bearer {self._notion.api_key.get_secret_value()}",
            "Notion-Version": self._notion.version,
        }
        url = f"{self._notion.base_url}/pages/{quote(document_id, safe='')}"
        body = await self._request("notion", "GET", url, headers=headers)
        return body if isinstance(body, dict) else {"page": body}
