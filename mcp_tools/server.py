"""
MCP Server bridge

Exposes a ToolRegistry through the MCP SDK's low-level Server: tools/list is
answered from the registry's descriptors and tools/call is routed to
ToolRegistry.call, whose ToolResult becomes the CallToolResult.

The server is created once per process and shared read-only by every request.
"""

import logging
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server.lowlevel import Server

from .base import ToolDescriptor, ToolRegistry, ToolResult
from .demo_tools import build_registry

logger = logging.getLogger("mcp_tools.server")

DEFAULT_SERVER_NAME = "vercel-mcp-demo"
DEFAULT_SERVER_VERSION = "1.0.0"


def to_tool_definition(descriptor: ToolDescriptor) -> types.Tool:
    return types.Tool(
        name=descriptor.name,
        title=descriptor.title,
        description=descriptor.description,
        inputSchema=descriptor.input_schema,
        outputSchema=descriptor.output_schema,
    )


def to_call_tool_result(result: ToolResult) -> types.CallToolResult:
    content = [
        types.TextContent(type="text", text=block["text"])
        for block in result.content
        if block.get("type") == "text"
    ]
    if not result.success:
        return types.CallToolResult(content=content, isError=True)
    return types.CallToolResult(
        content=content,
        structuredContent=result.structured_content,
        isError=False,
    )


def create_mcp_server(
    registry: ToolRegistry,
    name: str = DEFAULT_SERVER_NAME,
    version: str = DEFAULT_SERVER_VERSION,
) -> Server:
    """
    Build an MCP Server whose tools come from ``registry``.

    Input validation is left to the registry (pydantic) so that every invalid
    call surfaces with the same error shape.
    """
    server = Server(name, version=version)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [to_tool_definition(descriptor) for descriptor in registry.list_tools()]

    @server.call_tool(validate_input=False)
    async def call_tool(tool_name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        result = await registry.call(tool_name, arguments)
        return to_call_tool_result(result)

    logger.info(f"Created MCP server {name} {version} with {len(registry)} tools")
    return server


# Process-wide instances (initialized once at startup)
_registry: Optional[ToolRegistry] = None
_server: Optional[Server] = None


def initialize_server(
    name: str = DEFAULT_SERVER_NAME,
    version: str = DEFAULT_SERVER_VERSION,
) -> Server:
    """
    Initialize the global registry and MCP server.

    Populates the registry with the demo tools, freezes it, and wraps it in a
    Server. Later calls return the existing server unchanged.
    """
    global _registry, _server
    if _server is None:
        _registry = build_registry()
        _server = create_mcp_server(_registry, name, version)
    return _server


def get_server() -> Server:
    """
    Get the global MCP server.

    Raises:
        RuntimeError: If initialize_server() has not been called yet
    """
    if _server is None:
        raise RuntimeError("MCP server not initialized. Call initialize_server() first.")
    return _server


def get_registry() -> ToolRegistry:
    if _registry is None:
        raise RuntimeError("Tool registry not initialized. Call initialize_server() first.")
    return _registry
