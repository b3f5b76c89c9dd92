"""
HTTP layer for the MCP demo server.

- config: ServerSettings read from the environment
- transport: per-request RequestTransport and ResponseStream
- handler: MCPRequestHandler, the ASGI entry point for the MCP endpoint
- app: create_app(), the composite ASGI application
"""

from mcp_http.app import create_app
from mcp_http.config import ServerSettings
from mcp_http.handler import MCPRequestHandler
from mcp_http.transport import RequestTransport, ResponseStream

__all__ = [
    "create_app",
    "ServerSettings",
    "MCPRequestHandler",
    "RequestTransport",
    "ResponseStream",
]
