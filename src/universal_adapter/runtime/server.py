"""Protocol front door: ties the registry, dispatcher, and sessions together.

Invocation is two-phase. on_invocation() acknowledges right away and the
outcome arrives later as a pushed event carrying the same correlation id.
The acknowledgment never reflects whether the tool succeeded.

Example:
    >>> server = ProtocolServer(registry, timeout=30.0)
    >>> conn_id = await server.on_connection_open(QueueTransport())
    >>> await server.on_invocation({"id": "42", "name": "notion_get_page", "arguments": {"pageId": "abc"}})
    {'ok': True, 'id': '42'}
    >>> # ... later, on the stream:
    >>> # data: {"id":"42","name":"notion_get_page","status":"success","result":{...}}
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping

from ..foundation.errors import InvalidRequestError, JsonDict, NoActiveChannelError, ToolError, ValidationError
from ..foundation.registry import ToolRegistry
from ..foundation.schema import parse
from .dispatch import Dispatcher, InvocationOutcome, InvocationRequest
from .observability import get_logger, log_context
from .sessions import SessionManager, Transport

log = get_logger("universal_adapter.server")


class ProtocolServer:
    """Owns one dispatcher and one session manager for a tool registry.

    Construct at process start; call aclose() at shutdown to let in-flight
    invocations finish and close every streaming connection.
    """

    __slots__ = ("name", "version", "registry", "dispatcher", "sessions", "_tasks")

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        sessions: SessionManager | None = None,
        timeout: float | None = 30.0,
        name: str = "universal-adapter-mcp",
        version: str = "1.0.0",
    ) -> None:
        self.name = name
        self.version = version
        self.registry = registry
        self.dispatcher = Dispatcher(registry, timeout=timeout)
        self.sessions = sessions or SessionManager()
        self._tasks: set[asyncio.Task[InvocationOutcome]] = set()

    # ─────────────────────────────────────────────────────────────────
    # Streaming channel
    # ─────────────────────────────────────────────────────────────────

    async def on_connection_open(self, transport: Transport) -> str:
        return await self.sessions.open(transport)

    def on_connection_close(self, conn_id: str) -> bool:
        return self.sessions.close(conn_id)

    # ─────────────────────────────────────────────────────────────────
    # Invocation channel
    # ─────────────────────────────────────────────────────────────────

    async def on_invocation(self, body: InvocationRequest | Mapping[str, object] | object) -> JsonDict:
        """Accept an invocation and schedule it. Returns the acknowledgment.

        Raises:
            InvalidRequestError: body is not an object or has no tool name
            NoActiveChannelError: nothing is listening for the outcome
        """
        request = parse_request(body)
        self._require_channel(request)

        task = asyncio.create_task(self._run(request), name=f"invocation:{request.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        log.info("invocation accepted", id=request.id, tool=request.name, session_id=request.session_id)
        return {"ok": True, "id": request.id}

    def _require_channel(self, request: InvocationRequest) -> None:
        if request.session_id is not None:
            if request.session_id not in self.sessions:
                log.warning("invocation rejected", id=request.id, reason="unknown session", session_id=request.session_id)
                raise NoActiveChannelError(f"No active streaming connection with sessionId {request.session_id}")
        elif not self.sessions.has_connections:
            log.warning("invocation rejected", id=request.id, reason="no streaming connection")
            raise NoActiveChannelError()

    async def _run(self, request: InvocationRequest) -> InvocationOutcome:
        with log_context(correlation_id=request.id):
            try:
                outcome = await self.dispatcher.dispatch(request.name, request.arguments)
            except Exception as e:
                log.error("dispatch raised", tool=request.name, error=str(e) or type(e).__name__)
                outcome = InvocationOutcome.failure(request.name, ToolError.from_exception(request.name, e))
            outcome = outcome.correlate(request.id)
            event = outcome.to_event()
            if request.session_id is not None:
                delivered = int(await self.sessions.send(request.session_id, event))
            else:
                delivered = await self.sessions.broadcast(event)
            log.debug("outcome pushed", tool=request.name, delivered=delivered)
        return outcome

    async def call(self, name: str, arguments: object = None) -> InvocationOutcome:
        """Dispatch and wait for the outcome, without touching the streaming channel."""
        return await self.dispatcher.dispatch(name, {} if arguments is None else arguments)

    # ─────────────────────────────────────────────────────────────────
    # Discovery & lifecycle
    # ─────────────────────────────────────────────────────────────────

    def on_list_tools(self) -> JsonDict:
        return {"tools": self.registry.advertise()}

    @property
    def pending(self) -> int:
        """Invocations accepted but not yet pushed."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every accepted invocation to push its outcome."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    async def aclose(self) -> None:
        await self.drain()
        await self.sessions.aclose()
        log.info("server closed", name=self.name)


def parse_request(body: InvocationRequest | Mapping[str, object] | object) -> InvocationRequest:
    """Validate an invocation-channel body."""
    if isinstance(body, InvocationRequest):
        return body
    if not isinstance(body, Mapping):
        raise InvalidRequestError("Request body must be a JSON object")
    if not body.get("name"):
        raise InvalidRequestError('Missing "name" in request body')
    try:
        return parse(InvocationRequest, body)
    except ValidationError as e:
        raise InvalidRequestError(e.message) from None
