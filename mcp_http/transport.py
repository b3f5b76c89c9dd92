"""
Per-request MCP transport.

Each incoming HTTP request gets its own RequestTransport wrapping the SDK's
StreamableHTTPServerTransport in stateless JSON-response mode. A transport is
never shared between requests: concurrent requests commonly reuse the same
JSON-RPC ids, and a shared transport would mix up their responses.
"""

import logging
from typing import Awaitable, Callable, List, Optional

import anyio
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.lowlevel import Server
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.types import Message, Receive, Scope, Send

logger = logging.getLogger("mcp_http.transport")

CloseCallback = Callable[[], Awaitable[None]]


class ResponseStream:
    """
    ASGI receive/send pair for one request, with close notification.

    Callbacks registered through on_close() run once, when close() is first
    called. A client disconnect is only recorded here; whoever owns the stream
    waits on wait_for_disconnect() and closes it outside the SDK's own receive
    call.
    """

    def __init__(self, receive: Receive, send: Send, request_id: str = ""):
        self._receive = receive
        self._send = send
        self.request_id = request_id
        self._close_callbacks: List[CloseCallback] = []
        self._closed = False
        self._body_read = anyio.Event()
        self._disconnected = anyio.Event()
        self._response_complete = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def body_read(self) -> bool:
        return self._body_read.is_set()

    @property
    def disconnected(self) -> bool:
        return self._disconnected.is_set()

    def on_close(self, callback: CloseCallback) -> None:
        self._close_callbacks.append(callback)

    async def receive(self) -> Message:
        message = await self._receive()
        if message["type"] == "http.request" and not message.get("more_body", False):
            self._body_read.set()
        elif message["type"] == "http.disconnect" and not self._response_complete:
            # Servers report the disconnect after a finished response too; that is not an abort
            if not self._disconnected.is_set():
                logger.info("Client disconnected", extra={"request_id": self.request_id})
            self._disconnected.set()
        return message

    async def send(self, message: Message) -> None:
        if message["type"] == "http.response.start" and self.request_id:
            headers = list(message.get("headers", []))
            headers.append((b"x-request-id", self.request_id.encode("latin-1")))
            message = {**message, "headers": headers}
        elif message["type"] == "http.response.body" and not message.get("more_body", False):
            self._response_complete = True
        await self._send(message)

    async def wait_for_disconnect(self) -> None:
        await self._disconnected.wait()

    async def listen_for_disconnect(self) -> None:
        """
        Keep reading the request channel once the body has been consumed.

        In JSON response mode nothing else reads from ``receive`` after the
        body, so without this a disconnect during a tool call goes unseen.
        """
        await self._body_read.wait()
        while True:
            message = await self.receive()
            if message["type"] == "http.disconnect":
                break

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for callback in self._close_callbacks:
            try:
                await callback()
            except Exception:
                logger.exception("Close callback failed", extra={"request_id": self.request_id})


class RequestTransport:
    """
    Bridges one HTTP request/response pair to one MCP exchange.

    Lifecycle: connect() -> handle_request() -> close(). close() is idempotent
    and safe to call at any point, including before connect().
    """

    def __init__(
        self,
        session_id_generator: Optional[Callable[[], str]] = None,
        enable_json_response: bool = True,
    ):
        if session_id_generator is not None:
            raise ValueError("Session ids are not supported: every request is an independent exchange")
        self._transport = StreamableHTTPServerTransport(
            mcp_session_id=None,
            is_json_response_enabled=enable_json_response,
            event_store=None,
        )
        self._cancel_scope: Optional[anyio.CancelScope] = None
        self._connected = False
        self._closed = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self, server: Server, task_group: TaskGroup) -> None:
        """Start ``server`` on this transport's streams inside ``task_group``."""
        if self._closed:
            raise RuntimeError("Transport is closed")
        if self._connected:
            raise RuntimeError("Transport is already connected")
        await task_group.start(self._run_server, server)
        self._connected = True

    async def _run_server(
        self,
        server: Server,
        *,
        task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        with anyio.CancelScope() as scope:
            self._cancel_scope = scope
            async with self._transport.connect() as (read_stream, write_stream):
                task_status.started()
                try:
                    await server.run(
                        read_stream,
                        write_stream,
                        server.create_initialization_options(),
                        stateless=True,
                    )
                except Exception:
                    logger.exception("MCP server crashed while handling request")

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        if not self._connected:
            raise RuntimeError("Transport is not connected")
        await self._transport.handle_request(scope, receive, send)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._transport.terminate()
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()
