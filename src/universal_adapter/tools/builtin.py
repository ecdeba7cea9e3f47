"""Built-in tools: vector query, vector upsert, and Notion page retrieval.

Each tool pairs a strict input schema with a thin handler that forwards the
validated arguments to a Backend capability. Field aliases keep the wire
names (``topK``, ``indexName``, ``pageId``) while Python code uses
snake_case.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr

from ..backends import Backend
from ..foundation.errors import JsonDict
from ..foundation.registry import ToolRegistry

_PARAMS_CONFIG = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class PineconeQueryParams(BaseModel):
    """Arguments for pinecone_query."""

    model_config = _PARAMS_CONFIG

    vector: list[StrictFloat] = Field(..., description="Query embedding")
    top_k: StrictInt = Field(..., alias="topK", ge=1, description="Number of matches to return")
    index_name: StrictStr | None = Field(default=None, alias="indexName", description="Index to query (defaults to PINECONE_INDEX_NAME)")
    filter: dict[str, Any] | None = Field(default=None, description="Metadata filter expression")


class UpsertVector(BaseModel):
    """One vector record to upsert."""

    model_config = _PARAMS_CONFIG

    id: StrictStr = Field(..., min_length=1)
    values: list[StrictFloat]
    metadata: dict[str, Any] | None = None


class PineconeUpsertParams(BaseModel):
    """Arguments for pinecone_upsert."""

    model_config = _PARAMS_CONFIG

    vectors: list[UpsertVector] = Field(..., description="Vectors to write")
    index_name: StrictStr | None = Field(default=None, alias="indexName", description="Target index (defaults to PINECONE_INDEX_NAME)")


class NotionPageParams(BaseModel):
    """Arguments for notion_get_page."""

    model_config = _PARAMS_CONFIG

    page_id: StrictStr = Field(..., alias="pageId", min_length=1, description="Notion page id")


BUILTIN_TOOL_NAMES = ("pinecone_query", "pinecone_upsert", "notion_get_page")


def register_builtin_tools(registry: ToolRegistry, backend: Backend) -> ToolRegistry:
    """Register the three backend-facing tools on ``registry``."""

    @registry.tool("pinecone_query", "Query a Pinecone index for the nearest vectors", PineconeQueryParams)
    async def pinecone_query(params: PineconeQueryParams) -> JsonDict:
        return await backend.vector_query(params.vector, params.top_k, params.index_name, params.filter)

    @registry.tool("pinecone_upsert", "Upsert vectors into a Pinecone index", PineconeUpsertParams)
    async def pinecone_upsert(params: PineconeUpsertParams) -> JsonDict:
        vectors = [v.model_dump(exclude_none=True) for v in params.vectors]
        return await backend.vector_upsert(vectors, params.index_name)

    @registry.tool("notion_get_page", "Get a Notion page by id", NotionPageParams)
    async def notion_get_page(params: NotionPageParams) -> JsonDict:
        return await backend.fetch_document(params.page_id)

    return registry
