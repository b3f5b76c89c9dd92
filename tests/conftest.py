"""
Pytest configuration and fixtures for the MCP HTTP endpoint

Provides fixtures to:
1. Build a fresh, frozen tool registry per test
2. Build the composite ASGI app over that registry
3. Drive the app in-process through an httpx client
"""
import itertools
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from mcp_http import ServerSettings, create_app
from mcp_tools import build_registry


MCP_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json, text/event-stream",
}


def jsonrpc_request(method: str, params: Optional[Dict[str, Any]] = None, request_id: Any = 1) -> Dict[str, Any]:
    message: Dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


def http_scope(method: str = "POST", path: str = "/api/mcp", headers: Optional[List] = None) -> Dict[str, Any]:
    """Minimal ASGI HTTP scope for driving handlers directly."""
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": headers if headers is not None else [
            (b"host", b"testserver"),
            (b"content-type", b"application/json"),
            (b"accept", b"application/json, text/event-stream"),
        ],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }


@pytest.fixture
def settings():
    """Settings with tracing off, independent of the local environment."""
    return ServerSettings(enable_tracing=False, log_level="DEBUG")


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def app(settings, registry):
    return create_app(settings, registry=registry)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
def call_tool(client):
    """Returns a coroutine function that POSTs a tools/call and returns the JSON-RPC response."""
    ids = itertools.count(1)

    async def _call(name: str, arguments: Optional[Dict[str, Any]] = None, request_id: Any = None) -> Dict[str, Any]:
        payload = jsonrpc_request(
            "tools/call",
            {"name": name, "arguments": arguments or {}},
            request_id=request_id if request_id is not None else next(ids),
        )
        response = await client.post("/api/mcp", json=payload, headers=MCP_HEADERS)
        assert response.status_code == 200, response.text
        return response.json()

    return _call


@pytest.fixture
def mcp_headers():
    return dict(MCP_HEADERS)


@pytest.fixture
def make_scope():
    return http_scope


@pytest.fixture
def make_request():
    return jsonrpc_request
