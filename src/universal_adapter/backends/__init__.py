"""Backend adapters: the capabilities behind the built-in tools."""

from __future__ import annotations

import httpx

from ..foundation.config import AdapterSettings
from .base import DEFAULT_TOP_K, Backend, HttpBackend, code_for_status
from .direct import DirectBackend
from .remote import RemoteBackend


def create_backend(settings: AdapterSettings, *, client: httpx.AsyncClient | None = None) -> Backend:
    """Remote mode when UNI_ADAPTER_WEB_URL is set, otherwise direct Pinecone/Notion calls."""
    timeout = settings.dispatch.timeout
    if settings.web_url:
        return RemoteBackend(settings.web_url, client=client, timeout=timeout)
    return DirectBackend(settings.pinecone, settings.notion, client=client, timeout=timeout)


__all__ = [
    "Backend", "HttpBackend", "DirectBackend", "RemoteBackend",
    "create_backend", "code_for_status", "DEFAULT_TOP_K",
]
