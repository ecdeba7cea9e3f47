"""HTTP surface for the bridge (Starlette + uvicorn).

Endpoints:
    GET  /                     → Health check
    GET  /sse                  → Open a streaming connection (text/event-stream)
    POST /messages             → Invocation channel, acknowledged immediately
    GET  /tools                → Capability discovery
    POST /tools/call           → Synchronous invocation (also /mcp/tools/call)
    POST /api/pinecone/search  → Direct vector query
    POST /api/pinecone/upsert  → Direct vector upsert
    POST /api/notion/page      → Direct page retrieval

Example:
    >>> from universal_adapter.ext.http import create_app
    >>> app = create_app()  # settings from the environment
    >>> # uvicorn universal_adapter.ext.http:create_app --factory
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable

import orjson
import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse
from starlette.routing import Route

from ...backends import DEFAULT_TOP_K, Backend, create_backend
from ...foundation.config import AdapterSettings, get_settings
from ...foundation.errors import ErrorCode, InvalidRequestError, NoActiveChannelError, ValidationError
from ...foundation.registry import ToolRegistry
from ...foundation.schema import validate
from ...io import decode, encode
from ...runtime import ProtocolServer, QueueTransport, configure_logging, get_logger
from ...runtime.dispatch import InvocationOutcome
from ...tools import register_builtin_tools

log = get_logger("universal_adapter.http")

_ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_PARAMS: 400,
}


class OrjsonResponse(JSONResponse):
    """JSONResponse rendered with orjson."""

    def render(self, content: object) -> bytes:
        return encode(content)  # type: ignore[arg-type]


class BridgeHTTPServer:
    """Starlette application exposing one ProtocolServer.

    Example:
        >>> http = BridgeHTTPServer(get_settings())
        >>> http.run()  # blocking
    """

    __slots__ = ("_settings", "_backend", "_server", "_app")

    def __init__(
        self,
        settings: AdapterSettings,
        *,
        backend: Backend | None = None,
        registry: ToolRegistry | None = None,
    ) -> None:
        self._settings = settings
        self._backend = backend or create_backend(settings)
        if registry is None:
            registry = register_builtin_tools(ToolRegistry(), self._backend)
        self._server = ProtocolServer(
            registry,
            timeout=settings.dispatch.timeout,
            name=settings.server.name,
            version=settings.server.version,
        )
        self._app = self._create_app()
        self._app.state.server = self._server

    @property
    def app(self) -> Starlette:
        """ASGI app for embedding or serving."""
        return self._app

    @property
    def server(self) -> ProtocolServer:
        return self._server

    def _create_app(self) -> Starlette:
        server = self._server

        async def health(request: Request) -> Response:
            return OrjsonResponse({
                "ok": True,
                "message": f"{server.name} is running",
                "version": server.version,
                "connections": len(server.sessions),
            })

        async def open_stream(request: Request) -> Response:
            transport = QueueTransport(maxsize=self._settings.server.queue_size)
            conn_id = await server.on_connection_open(transport)

            async def frames() -> AsyncIterator[str]:
                try:
                    async for frame in transport.frames(keepalive=self._settings.server.keepalive_seconds):
                        yield frame
                finally:
                    server.on_connection_close(conn_id)

            return StreamingResponse(
                frames(),
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
            )

        async def messages(request: Request) -> Response:
            body = await _json_body(request)
            if body is None:
                return OrjsonResponse({"error": "Request body must be valid JSON"}, status_code=400)
            if (session_id := request.query_params.get("sessionId")) and isinstance(body, dict):
                body = {**body, "sessionId": session_id}
            try:
                ack = await server.on_invocation(body)
            except InvalidRequestError as e:
                return OrjsonResponse({"error": e.message}, status_code=400)
            except NoActiveChannelError as e:
                return OrjsonResponse({"error": e.message}, status_code=503)
            return OrjsonResponse(ack, status_code=202)

        async def list_tools(request: Request) -> Response:
            return OrjsonResponse({"server": server.name, **server.on_list_tools()})

        async def call_tool(request: Request) -> Response:
            body = await _json_body(request)
            if not isinstance(body, dict) or not body.get("name"):
                return OrjsonResponse({"error": 'Missing "name" in request body'}, status_code=400)
            outcome = await server.call(str(body["name"]), body.get("arguments"))
            if outcome.ok:
                return OrjsonResponse({"content": outcome.content(), "result": outcome.result})
            return _error_response(outcome)

        routes = [
            Route("/", health, methods=["GET"]),
            Route("/sse", open_stream, methods=["GET"]),
            Route("/messages", messages, methods=["POST"]),
            Route("/tools", list_tools, methods=["GET"]),
            Route("/tools/call", call_tool, methods=["POST"]),
            Route("/mcp/tools/call", call_tool, methods=["POST"]),
            Route("/api/pinecone/search", self._rest_route("pinecone_query", {"topK": DEFAULT_TOP_K}), methods=["POST"]),
            Route("/api/pinecone/upsert", self._rest_route("pinecone_upsert"), methods=["POST"]),
            Route("/api/notion/page", self._rest_route("notion_get_page"), methods=["POST"]),
        ]

        @contextlib.asynccontextmanager
        async def lifespan(app: Starlette) -> AsyncIterator[None]:
            log.info("server starting", name=server.name, tools=len(server.registry), backend=self._settings.backend_mode)
            yield
            await self.aclose()

        return Starlette(
            routes=routes,
            middleware=[Middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])],
            lifespan=lifespan,
        )

    def _rest_route(self, tool_name: str, defaults: dict[str, object] | None = None) -> Callable[[Request], Awaitable[Response]]:
        """Plain REST endpoint for one tool: raw result on success, {ok: false, error} on failure."""
        server = self._server

        async def endpoint(request: Request) -> Response:
            body = await _json_body(request)
            if not isinstance(body, dict):
                return OrjsonResponse({"ok": False, "error": "Request body must be a JSON object"}, status_code=400)
            body = {**(defaults or {}), **{k: v for k, v in body.items() if v is not None}}
            try:
                validate(server.registry.resolve(tool_name).params_schema, body)
            except ValidationError as e:
                return OrjsonResponse({"ok": False, "error": e.message}, status_code=400)
            outcome = await server.call(tool_name, body)
            if outcome.ok:
                return OrjsonResponse(outcome.result)
            log.error("rest call failed", path=request.url.path, error=outcome.error.message if outcome.error else None)
            return OrjsonResponse({"ok": False, "error": outcome.error.message if outcome.error else "unknown error"},
                                  status_code=500)

        return endpoint

    async def aclose(self) -> None:
        await self._server.aclose()
        await self._backend.aclose()

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start HTTP server (blocking)."""
        uvicorn.run(
            self._app,
            host=host or self._settings.server.host,
            port=port or self._settings.server.port,
            log_level=self._settings.logging.level.lower(),
        )


async def _json_body(request: Request) -> object | None:
    """Decoded JSON body, {} for an empty body, None when it is not JSON."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return decode(raw)
    except orjson.JSONDecodeError:
        return None


def _error_response(outcome: InvocationOutcome) -> Response:
    assert outcome.error is not None
    status = _ERROR_STATUS.get(outcome.error.code, 500)
    return OrjsonResponse({"error": outcome.error.message, "code": outcome.error.code.value}, status_code=status)


# ═══════════════════════════════════════════════════════════════════════════════
# Factory Functions
# ═══════════════════════════════════════════════════════════════════════════════


def create_app(
    settings: AdapterSettings | None = None,
    *,
    backend: Backend | None = None,
    registry: ToolRegistry | None = None,
) -> Starlette:
    """Create the ASGI app without running it.

    The ProtocolServer is reachable as ``app.state.server``.
    """
    http = BridgeHTTPServer(settings or get_settings(), backend=backend, registry=registry)
    return http.app


def serve(settings: AdapterSettings | None = None) -> None:
    """Configure logging from settings and serve until interrupted."""
    settings = settings or get_settings()
    configure_logging(format=settings.logging.format, level=settings.logging.level)
    log.info("listening", host=settings.server.host, port=settings.server.port,
             sse=f"http://localhost:{settings.server.port}/sse",
             messages=f"http://localhost:{settings.server.port}/messages")
    BridgeHTTPServer(settings).run()
