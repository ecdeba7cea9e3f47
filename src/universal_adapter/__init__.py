"""Universal Adapter - protocol bridge exposing vector search and Notion as agent tools.

Clients open a streaming connection, post invocations that are acknowledged
immediately, and receive each outcome as a pushed event carrying the
request's correlation id. The same tools are reachable synchronously and as
plain REST endpoints.

Quick Start:
    >>> from universal_adapter import create_app
    >>> app = create_app()  # settings from the environment
    >>> # uvicorn universal_adapter:create_app --factory --port 9000

Embedding the protocol core without HTTP:
    >>> from universal_adapter import ProtocolServer, QueueTransport, ToolRegistry
    >>> registry = ToolRegistry()
    >>> server = ProtocolServer(registry)
    >>> conn_id = await server.on_connection_open(QueueTransport())
    >>> await server.on_invocation({"name": "notion_get_page", "arguments": {"pageId": "abc"}})
    {'ok': True, 'id': '...'}
"""

from .backends import Backend, DirectBackend, RemoteBackend, create_backend
from .ext.http import BridgeHTTPServer, create_app, serve
from .foundation import (
    AdapterBridgeError,
    AdapterError,
    AdapterSettings,
    DuplicateToolError,
    ErrorCode,
    InvalidRequestError,
    NoActiveChannelError,
    ToolDescriptor,
    ToolError,
    ToolRegistry,
    UnknownToolError,
    ValidationError,
    get_settings,
    validate,
)
from .runtime import (
    Dispatcher,
    InvocationOutcome,
    InvocationRequest,
    OutcomeStatus,
    ProtocolServer,
    QueueTransport,
    SessionManager,
    Transport,
    configure_logging,
    get_logger,
)
from .tools import register_builtin_tools

__version__ = "1.0.0"

__all__ = [
    # Config
    "AdapterSettings", "get_settings",
    # Errors
    "ErrorCode", "ToolError", "AdapterBridgeError", "AdapterError", "DuplicateToolError",
    "InvalidRequestError", "NoActiveChannelError", "UnknownToolError", "ValidationError",
    # Registry & schema
    "ToolDescriptor", "ToolRegistry", "validate",
    # Runtime
    "Dispatcher", "InvocationOutcome", "InvocationRequest", "OutcomeStatus",
    "SessionManager", "Transport", "QueueTransport", "ProtocolServer",
    "configure_logging", "get_logger",
    # Backends & tools
    "Backend", "DirectBackend", "RemoteBackend", "create_backend", "register_builtin_tools",
    # HTTP
    "BridgeHTTPServer", "create_app", "serve",
    "__version__",
]
