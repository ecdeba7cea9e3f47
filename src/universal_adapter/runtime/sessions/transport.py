"""Transport handles for streaming connections.

A transport accepts already-serialized frames. The session manager owns
the decision of what to write; the transport only ships text to one peer.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Final, Protocol, runtime_checkable

from ...io import KEEPALIVE_FRAME


class TransportClosedError(ConnectionError):
    """Write attempted on a transport whose peer has gone away."""


@runtime_checkable
class Transport(Protocol):
    """Anything that can carry frames to a single streaming peer."""

    async def send(self, frame: str) -> None: ...
    def close(self) -> None: ...


_CLOSE: Final = object()


class QueueTransport:
    """Bounded in-memory buffer between the session manager and an SSE response.

    The response body drains ``frames()``; the manager feeds ``send()``.
    A full buffer means the peer stopped reading, so the write fails rather
    than growing without bound.

    Example:
        >>> transport = QueueTransport(maxsize=64)
        >>> conn_id = await sessions.open(transport)
        >>> return StreamingResponse(transport.frames(), media_type="text/event-stream")
    """

    __slots__ = ("_queue", "_closed")

    def __init__(self, maxsize: int = 256) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, frame: str) -> None:
        if self._closed:
            raise TransportClosedError("transport closed")
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            raise TransportClosedError(f"outbound buffer full ({self._queue.maxsize} frames)") from None

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            pass  # consumer sees the flag once the buffer drains

    async def frames(self, keepalive: float | None = None) -> AsyncIterator[str]:
        """Yield queued frames until closed, with comment frames while idle."""
        while not (self._closed and self._queue.empty()):
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout=keepalive)
            except TimeoutError:
                yield KEEPALIVE_FRAME
                continue
            if item is _CLOSE:
                return
            yield item  # type: ignore[misc]
