"""End-to-end streaming test: a real uvicorn server on an ephemeral port."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable

import httpx
import pytest
import uvicorn
from starlette.applications import Starlette

from conftest import FakeBackend
from universal_adapter.ext.http import create_app
from universal_adapter.foundation.config import AdapterSettings, ServerSettings
from universal_adapter.foundation.errors import JsonDict
from universal_adapter.io import decode
from universal_adapter.runtime import ProtocolServer


async def _start(app: Starlette) -> tuple[uvicorn.Server, asyncio.Task[None], int]:
    server = uvicorn.Server(uvicorn.Config(app, host="127.0.0.1", port=0, log_level="warning", lifespan="on"))
    task = asyncio.create_task(server.serve())
    while not server.started:
        if task.done():
            task.result()
        await asyncio.sleep(0.01)
    port = server.servers[0].sockets[0].getsockname()[1]
    return server, task, port


async def _next_event(lines: AsyncIterator[str]) -> JsonDict:
    """Next ``data:`` payload, skipping keep-alive comments and blank separators."""
    async for line in lines:
        if line.startswith("data: "):
            return decode(line.removeprefix("data: "))  # type: ignore[return-value]
    raise AssertionError("stream ended")


async def _wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.02)


@pytest.mark.asyncio
async def test_stream_ready_push_and_disconnect(clean_env: pytest.MonkeyPatch, backend: FakeBackend) -> None:
    settings = AdapterSettings(server=ServerSettings(keepalive_seconds=0.1))
    app = create_app(settings, backend=backend)
    bridge: ProtocolServer = app.state.server
    server, task, port = await _start(app)

    try:
        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{port}", timeout=5.0) as client:
            async with client.stream("GET", "/sse") as stream:
                assert stream.status_code == 200
                assert stream.headers["content-type"].startswith("text/event-stream")
                lines = stream.aiter_lines()

                ready = await asyncio.wait_for(_next_event(lines), 5.0)
                assert ready["type"] == "server_ready"
                assert ready["sessionId"] in bridge.sessions
                assert len(bridge.sessions) == 1

                ack = await client.post("/messages", json={"id": "7", "name": "foo_bar", "arguments": {}})
                assert ack.status_code == 202
                assert ack.json() == {"ok": True, "id": "7"}

                pushed = await asyncio.wait_for(_next_event(lines), 5.0)
                assert pushed["id"] == "7"
                assert pushed["status"] == "error"
                assert pushed["error"] == "unknown tool: foo_bar"

            await _wait_for(lambda: len(bridge.sessions) == 0)
    finally:
        server.should_exit = True
        await asyncio.wait_for(task, 10.0)

    assert len(bridge.sessions) == 0
    assert backend.closed
