"""Streaming connections: transports and the session manager."""

from .manager import READY_EVENT_TYPE, SessionManager, StreamingConnection
from .transport import QueueTransport, Transport, TransportClosedError

__all__ = [
    "SessionManager", "StreamingConnection", "READY_EVENT_TYPE",
    "Transport", "QueueTransport", "TransportClosedError",
]
