"""Streaming session management.

Tracks live push connections and fans events out to them. Each connection
moves Open -> Closed exactly once; there is no resume, and a reconnecting
client gets a fresh id with no replay.

The live set is mutated only by open() and close(); delivery works on a
snapshot and skips anything closed mid-flight. Everything runs on one
event loop, so no lock is taken.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field

from ...foundation.errors import JsonDict
from ...io import sse_frame
from ..observability import get_logger
from .transport import Transport

log = get_logger("universal_adapter.sessions")

READY_EVENT_TYPE = "server_ready"


@dataclass(slots=True, eq=False)
class StreamingConnection:
    """One live push connection."""

    id: str
    transport: Transport = field(repr=False)
    opened_at: float = field(default_factory=time.time)


class SessionManager:
    """Owns the set of live streaming connections.

    Example:
        >>> sessions = SessionManager()
        >>> conn_id = await sessions.open(QueueTransport())
        >>> await sessions.broadcast({"id": "1", "name": "ping", "status": "success", "result": "pong"})
        1
        >>> sessions.close(conn_id)
    """

    __slots__ = ("_connections",)

    def __init__(self) -> None:
        self._connections: dict[str, StreamingConnection] = {}

    async def open(self, transport: Transport) -> str:
        """Register a connection and write its ready event. Returns the connection id."""
        conn = StreamingConnection(id=uuid.uuid4().hex, transport=transport)
        self._connections[conn.id] = conn
        log.info("connection opened", connection_id=conn.id, live=len(self._connections))
        await self._deliver(conn, sse_frame({"type": READY_EVENT_TYPE, "sessionId": conn.id}))
        return conn.id

    def close(self, conn_id: str) -> bool:
        """Remove a connection. Idempotent: returns False if it was already gone."""
        if (conn := self._connections.pop(conn_id, None)) is None:
            return False
        conn.transport.close()
        log.info("connection closed", connection_id=conn_id, live=len(self._connections),
                 duration_ms=round((time.time() - conn.opened_at) * 1000, 1))
        return True

    async def broadcast(self, event: JsonDict) -> int:
        """Write ``event`` to every open connection. Returns how many writes succeeded.

        A failing write never aborts delivery to the others and is not raised;
        the failed connection is cleaned up by its own close path.
        """
        if not self._connections:
            return 0
        frame = sse_frame(event)
        delivered = await asyncio.gather(*(self._deliver(c, frame) for c in list(self._connections.values())))
        return sum(delivered)

    async def send(self, conn_id: str, event: JsonDict) -> bool:
        """Write ``event`` to a single connection, with broadcast's isolation rules."""
        if (conn := self._connections.get(conn_id)) is None:
            return False
        return await self._deliver(conn, sse_frame(event))

    async def _deliver(self, conn: StreamingConnection, frame: str) -> bool:
        if self._connections.get(conn.id) is not conn:
            return False
        try:
            await conn.transport.send(frame)
        except Exception as e:
            log.warning("event write failed", connection_id=conn.id, error=str(e) or type(e).__name__)
            return False
        return True

    async def aclose(self) -> None:
        """Close every live connection (shutdown)."""
        for conn_id in list(self._connections):
            self.close(conn_id)

    @property
    def has_connections(self) -> bool:
        return bool(self._connections)

    def ids(self) -> list[str]:
        return list(self._connections)

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[StreamingConnection]:
        return iter(list(self._connections.values()))
