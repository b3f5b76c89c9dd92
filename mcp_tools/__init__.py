"""
MCP Tools Module

The tool registry, the demo tools it is populated with, and the MCP server
that exposes them:

- base: ToolResult, ToolDescriptor, ToolRegistry
- demo_tools: echo_success and always_fail
- server: the shared MCP Server built over the registry
"""

from mcp_tools.base import ToolDescriptor, ToolRegistry, ToolResult
from mcp_tools.demo_tools import build_registry, register_demo_tools
from mcp_tools.server import (
    create_mcp_server,
    get_registry,
    get_server,
    initialize_server,
)

__all__ = [
    "ToolDescriptor",
    "ToolRegistry",
    "ToolResult",
    "build_registry",
    "register_demo_tools",
    "create_mcp_server",
    "initialize_server",
    "get_server",
    "get_registry",
]
