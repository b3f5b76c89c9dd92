"""
MCP HTTP Application Factory

Creates the ASGI application served by the serverless function.

Architecture:
- A low-level MCP Server built once over the frozen tool registry
- MCPRequestHandler adapts each POST to the MCP streamable HTTP transport
  (stateless, single JSON response per request)
- A FastAPI app provides the /health endpoint
- A composite ASGI app routes /api/mcp and /mcp to the handler, /health to
  FastAPI, and answers everything else with a JSON 404
"""

import logging
from typing import Optional

from fastapi import FastAPI
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from error_handling import ErrorHandlingConfig, not_found_response, resolve_request_id, setup_app
from mcp_tools import ToolRegistry, create_mcp_server, get_registry, initialize_server

from .config import ServerSettings
from .handler import MCPRequestHandler

logger = logging.getLogger("mcp_http")

MCP_PATHS = ("/api/mcp", "/mcp")
HEALTH_PATH = "/health"


def create_app(
    settings: Optional[ServerSettings] = None,
    registry: Optional[ToolRegistry] = None,
) -> ASGIApp:
    """
    Creates the composite ASGI application.

    Args:
        settings: Server settings (read from the environment when omitted)
        registry: Tool registry to serve. When omitted the process-wide
            registry and server from initialize_server() are used.

    Returns:
        ASGI application that implements:
        - POST /api/mcp, /mcp -> MCP Streamable HTTP protocol (JSON responses)
        - GET /health -> {"status": "ok", "service": ..., "version": ..., "tools": [...]}
    """
    settings = settings or ServerSettings.from_env()

    if registry is None:
        server = initialize_server(settings.server_name, settings.server_version)
        registry = get_registry()
    else:
        server = create_mcp_server(registry, settings.server_name, settings.server_version)

    mcp_handler = MCPRequestHandler(server, json_response=settings.json_response)

    health_app = FastAPI(title=settings.server_name, version=settings.server_version)
    setup_app(
        health_app,
        ErrorHandlingConfig(
            service_name=settings.server_name,
            service_version=settings.server_version,
            environment=settings.environment,
            otlp_endpoint=settings.otlp_endpoint,
            enable_tracing=settings.enable_tracing,
            log_level=settings.log_level,
        ),
    )

    @health_app.get(HEALTH_PATH)
    async def health_check():
        """Health check endpoint for monitoring."""
        return {
            "status": "ok",
            "service": settings.server_name,
            "version": settings.server_version,
            "tools": registry.names(),
        }

    async def composite_asgi_app(scope: Scope, receive: Receive, send: Send) -> None:
        """
        Routes:
        - /api/mcp, /mcp -> MCPRequestHandler
        - /health -> FastAPI health check
        - /* -> 404 Not Found
        """
        if scope["type"] == "http":
            path = scope["path"].rstrip("/") or "/"

            if path in MCP_PATHS:
                await mcp_handler(scope, receive, send)
            elif path == HEALTH_PATH:
                await health_app(scope, receive, send)
            else:
                request_id = resolve_request_id(Headers(scope=scope))
                response = not_found_response(scope["path"], request_id=request_id)
                await response(scope, receive, send)
        elif scope["type"] == "lifespan":
            await health_app(scope, receive, send)
        else:
            # No websocket routes
            await send({"type": "websocket.close", "code": 1000})

    logger.info(
        f"Created MCP HTTP app for {settings.server_name} with {len(registry)} tools"
    )

    return composite_asgi_app
