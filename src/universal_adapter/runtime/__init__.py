"""Runtime layer: dispatch, streaming sessions, logging, and the protocol front door."""

from .dispatch import Dispatcher, InvocationOutcome, InvocationRequest, OutcomeStatus
from .observability import configure_logging, get_logger
from .server import ProtocolServer, parse_request
from .sessions import QueueTransport, SessionManager, StreamingConnection, Transport, TransportClosedError

__all__ = [
    "Dispatcher", "InvocationOutcome", "InvocationRequest", "OutcomeStatus",
    "SessionManager", "StreamingConnection", "Transport", "QueueTransport", "TransportClosedError",
    "ProtocolServer", "parse_request",
    "configure_logging", "get_logger",
]
