"""Shared fixtures: quiet logging, an in-memory backend, and recording transports."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path

import pytest

from universal_adapter.backends import DEFAULT_TOP_K
from universal_adapter.foundation.config import AdapterSettings, clear_settings_cache
from universal_adapter.foundation.errors import AdapterError, ErrorCode, JsonDict
from universal_adapter.foundation.registry import ToolRegistry
from universal_adapter.io import decode
from universal_adapter.runtime import configure_logging
from universal_adapter.runtime.sessions import TransportClosedError
from universal_adapter.tools import register_builtin_tools

_ENV_VARS = (
    "PORT", "MCP_SERVER_PORT", "UNI_ADAPTER_WEB_URL", "WEB_URL", "UNI_ADAPTER_DISPATCH_TIMEOUT",
    "PINECONE_API_KEY", "PINECONE_INDEX_NAME", "PINECONE_ENVIRONMENT",
    "NOTION_API_KEY", "UNI_ADAPTER_LOG_LEVEL", "UNI_ADAPTER_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def _quiet_logging() -> None:
    configure_logging(format="none")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[pytest.MonkeyPatch]:
    """Environment without any adapter variables, run from a directory with no .env."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield monkeypatch
    clear_settings_cache()


# ─────────────────────────────────────────────────────────────────────────────
# Doubles
# ─────────────────────────────────────────────────────────────────────────────


class FakeBackend:
    """In-memory Backend recording every call."""

    def __init__(self, pages: Mapping[str, JsonDict] | None = None, *, fail_with: Exception | None = None) -> None:
        self.pages = dict(pages or {})
        self.fail_with = fail_with
        self.calls: list[tuple[str, tuple[object, ...]]] = []
        self.closed = False

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def vector_query(
        self,
        vector: Sequence[float],
        top_k: int = DEFAULT_TOP_K,
        index_name: str | None = None,
        filter: JsonDict | None = None,  # noqa: A002
    ) -> JsonDict:
        self.calls.append(("vector_query", (list(vector), top_k, index_name, filter)))
        self._check()
        return {"ok": True, "matches": [{"id": f"m{i}", "score": 1.0 - i / 10} for i in range(top_k)]}

    async def vector_upsert(self, vectors: Sequence[Mapping[str, object]], index_name: str | None = None) -> JsonDict:
        self.calls.append(("vector_upsert", ([dict(v) for v in vectors], index_name)))
        self._check()
        return {"ok": True, "count": len(vectors)}

    async def fetch_document(self, document_id: str) -> JsonDict:
        self.calls.append(("fetch_document", (document_id,)))
        self._check()
        if document_id not in self.pages:
            raise AdapterError(f"notion returned 404: page {document_id} not found", ErrorCode.NOT_FOUND, status_code=404)
        return self.pages[document_id]

    async def aclose(self) -> None:
        self.closed = True


class RecordingTransport:
    """Transport keeping every frame it was handed."""

    def __init__(self) -> None:
        self.frames: list[str] = []
        self.closed = False

    async def send(self, frame: str) -> None:
        if self.closed:
            raise TransportClosedError("transport closed")
        self.frames.append(frame)

    def close(self) -> None:
        self.closed = True

    @property
    def events(self) -> list[JsonDict]:
        """Decoded ``data:`` payloads, in delivery order."""
        return [decode(f.removeprefix("data: ").strip()) for f in self.frames if f.startswith("data: ")]  # type: ignore[misc]


class BrokenTransport(RecordingTransport):
    """Transport whose peer has vanished: every write fails."""

    async def send(self, frame: str) -> None:
        raise TransportClosedError("peer gone")


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend({"abc123": {"title": "Doc"}})


@pytest.fixture
def registry(backend: FakeBackend) -> ToolRegistry:
    return register_builtin_tools(ToolRegistry(), backend)


@pytest.fixture
def settings(clean_env: pytest.MonkeyPatch) -> AdapterSettings:
    return AdapterSettings()
