"""HTTP surface: Starlette app and uvicorn entry point."""

from .app import BridgeHTTPServer, OrjsonResponse, create_app, serve

__all__ = ["BridgeHTTPServer", "OrjsonResponse", "create_app", "serve"]
