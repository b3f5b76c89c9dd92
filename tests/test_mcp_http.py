"""
End-to-end tests for the MCP HTTP endpoint.

Requests go through the composite ASGI app in-process via httpx.ASGITransport,
so the full stack (routing, handler, per-request transport, MCP SDK server,
tool registry) is exercised without binding a port.
"""
import asyncio

import pytest

from error_handling import ErrorResponse
from mcp_http import MCPRequestHandler, RequestTransport, create_app
from mcp_tools import create_mcp_server


class TestToolCalls:
    """tools/call over HTTP."""

    @pytest.mark.asyncio
    async def test_echo_success(self, call_tool):
        response = await call_tool("echo_success", {"message": "hi"}, request_id=7)

        assert response["jsonrpc"] == "2.0"
        assert response["id"] == 7
        result = response["result"]
        assert result["isError"] is False
        assert result["structuredContent"] == {"echoed": "hi"}
        assert result["content"][0]["type"] == "text"
        assert result["content"][0]["text"] == "Echoed message: hi"

    @pytest.mark.asyncio
    async def test_always_fail_with_reason(self, call_tool):
        response = await call_tool("always_fail", {"reason": "test"})

        result = response["result"]
        assert result["isError"] is True
        assert result["content"][0]["text"] == "Intentional failure from always_fail tool (reason: test)"
        assert "structuredContent" not in result

    @pytest.mark.asyncio
    async def test_always_fail_without_reason(self, call_tool):
        response = await call_tool("always_fail")

        result = response["result"]
        assert result["isError"] is True
        assert result["content"][0]["text"] == "Intentional failure from always_fail tool"

    @pytest.mark.asyncio
    async def test_unknown_tool_is_error_result(self, call_tool):
        response = await call_tool("does_not_exist", {})

        result = response["result"]
        assert result["isError"] is True
        assert result["content"][0]["text"] == "Unknown tool: does_not_exist"

    @pytest.mark.asyncio
    async def test_invalid_input_is_error_result(self, call_tool):
        response = await call_tool("echo_success", {"message": 123})

        result = response["result"]
        assert result["isError"] is True
        assert result["content"][0]["text"].startswith("Invalid input for tool echo_success")

    @pytest.mark.asyncio
    async def test_concurrent_requests_do_not_cross_talk(self, call_tool):
        """Every request reuses JSON-RPC id 1; each still gets its own answer."""
        messages = [f"message-{i}" for i in range(8)]

        responses = await asyncio.gather(
            *(call_tool("echo_success", {"message": m}, request_id=1) for m in messages)
        )

        for message, response in zip(messages, responses):
            assert response["id"] == 1
            assert response["result"]["structuredContent"] == {"echoed": message}
            assert response["result"]["content"][0]["text"] == f"Echoed message: {message}"

    @pytest.mark.asyncio
    async def test_mcp_alias_path(self, client, mcp_headers, make_request):
        payload = make_request("tools/call", {"name": "echo_success", "arguments": {"message": "alias"}})
        response = await client.post("/mcp", json=payload, headers=mcp_headers)

        assert response.status_code == 200
        assert response.json()["result"]["structuredContent"] == {"echoed": "alias"}


class TestToolListing:

    @pytest.mark.asyncio
    async def test_tools_list(self, client, mcp_headers, make_request):
        response = await client.post("/api/mcp", json=make_request("tools/list"), headers=mcp_headers)

        assert response.status_code == 200
        tools = {tool["name"]: tool for tool in response.json()["result"]["tools"]}
        assert set(tools) == {"echo_success", "always_fail"}

        echo = tools["echo_success"]
        assert echo["title"] == "Successful Echo"
        assert echo["description"] == "Echoes the provided message back to the caller."
        assert echo["inputSchema"]["required"] == ["message"]
        assert echo["outputSchema"]["properties"]["echoed"]["type"] == "string"

        always_fail = tools["always_fail"]
        assert always_fail["title"] == "Always Fails"
        assert always_fail["outputSchema"]["properties"]["ok"]["type"] == "boolean"


class TestMethodNotAllowed:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
    async def test_non_post_rejected(self, client, method):
        response = await client.request(method, "/api/mcp")

        assert response.status_code == 405
        assert response.headers["allow"] == "POST"
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Method Not Allowed"

    @pytest.mark.asyncio
    async def test_get_builds_no_transport(self, registry, make_scope):
        created = []

        def factory(**kwargs):
            transport = RequestTransport(**kwargs)
            created.append(transport)
            return transport

        handler = MCPRequestHandler(create_mcp_server(registry), transport_factory=factory)
        sent = []

        async def receive():
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message):
            sent.append(message)

        await handler(make_scope(method="GET"), receive, send)

        assert created == []
        assert sent[0]["status"] == 405
        assert (b"allow", b"POST") in sent[0]["headers"]


class TestRequestIds:

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client, mcp_headers, make_request):
        headers = {**mcp_headers, "X-Request-ID": "req-abc"}
        payload = make_request("tools/call", {"name": "echo_success", "arguments": {"message": "hi"}})
        response = await client.post("/api/mcp", json=payload, headers=headers)

        assert response.headers["x-request-id"] == "req-abc"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/api/mcp")
        assert response.headers["x-request-id"]


class TestAuxiliaryRoutes:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "vercel-mcp-demo"
        assert data["version"] == "1.0.0"
        assert data["tools"] == ["echo_success", "always_fail"]
        assert "x-request-id" in response.headers

    @pytest.mark.asyncio
    async def test_unknown_path(self, client):
        response = await client.get("/nowhere")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "not_found"
        assert error["details"] == {"path": "/nowhere"}
        assert ErrorResponse.model_validate(response.json()).error["code"] == "not_found"

    def test_error_response_schema_example(self):
        assert "json_schema_extra" in ErrorResponse.model_config
        example = ErrorResponse.model_json_schema()["example"]
        assert example["error"]["code"] == "not_found"


class TestProcessWideServer:

    @pytest.mark.asyncio
    async def test_app_without_registry_serves_initialized_server(self, monkeypatch, settings, mcp_headers, make_request):
        import httpx

        from mcp_tools import server as server_module

        monkeypatch.setattr(server_module, "_server", None)
        monkeypatch.setattr(server_module, "_registry", None)

        app = create_app(settings)
        assert server_module.get_registry().frozen

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
            health = await c.get("/health")
            payload = make_request("tools/call", {"name": "echo_success", "arguments": {"message": "shared"}})
            response = await c.post("/api/mcp", json=payload, headers=mcp_headers)

        assert health.json()["tools"] == server_module.get_registry().names()
        assert response.json()["result"]["structuredContent"] == {"echoed": "shared"}


class TestServerlessEntryPoint:

    @pytest.mark.asyncio
    async def test_module_exposes_app(self, monkeypatch):
        import httpx

        monkeypatch.setenv("ENABLE_TRACING", "false")
        from api.mcp import app

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
            response = await c.get("/api/mcp")

        assert response.status_code == 405
        assert response.headers["allow"] == "POST"
