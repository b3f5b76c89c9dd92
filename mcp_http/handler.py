"""
MCP request handler.

The ASGI entry point for the MCP endpoint. Only POST is accepted; every POST
gets a fresh RequestTransport that is closed when the response stream closes,
whether the request completed or the client went away mid-call. A watcher task
keeps listening for http.disconnect after the body has been read and aborts
the request task group when the client leaves.
"""

import logging
from typing import Callable

import anyio
from mcp.server.lowlevel import Server
from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse
from starlette.types import Receive, Scope, Send

from error_handling import MethodNotAllowedError, log_error, resolve_request_id

from .transport import RequestTransport, ResponseStream

logger = logging.getLogger("mcp_http.handler")

TransportFactory = Callable[..., RequestTransport]


class MCPRequestHandler:
    """ASGI app serving one MCP exchange per HTTP POST."""

    allowed_method = "POST"

    def __init__(
        self,
        server: Server,
        *,
        json_response: bool = True,
        transport_factory: TransportFactory = RequestTransport,
    ):
        self._server = server
        self._json_response = json_response
        self._transport_factory = transport_factory

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request_id = resolve_request_id(Headers(scope=scope))
        method = scope.get("method", "")

        if method != self.allowed_method:
            await self._reject(method, request_id, scope, receive, send)
            return

        stream = ResponseStream(receive, send, request_id=request_id)
        transport = self._transport_factory(
            session_id_generator=None,
            enable_json_response=self._json_response,
        )
        # Registered before handling so a disconnect mid-call still cleans up
        stream.on_close(transport.close)

        logger.debug("Handling MCP request", extra={"request_id": request_id})
        try:
            async with anyio.create_task_group() as task_group:
                await transport.connect(self._server, task_group)
                task_group.start_soon(self._abort_on_disconnect, stream, task_group.cancel_scope)
                if self._json_response:
                    task_group.start_soon(stream.listen_for_disconnect)
                try:
                    await transport.handle_request(scope, stream.receive, stream.send)
                except anyio.ClosedResourceError:
                    if not stream.disconnected:
                        raise
                    logger.info(
                        "Transport closed while handling an abandoned request",
                        extra={"request_id": request_id},
                    )
                # Stops the server task and the disconnect watchers so the task group can exit
                await stream.close()
                task_group.cancel_scope.cancel()
        finally:
            with anyio.CancelScope(shield=True):
                await stream.close()

    async def _abort_on_disconnect(self, stream: ResponseStream, cancel_scope: anyio.CancelScope) -> None:
        await stream.wait_for_disconnect()
        if not stream.body_read:
            # The SDK answers a truncated body itself and handle_request returns
            return
        logger.info("Aborting MCP request after client disconnect", extra={"request_id": stream.request_id})
        with anyio.CancelScope(shield=True):
            await stream.close()
        cancel_scope.cancel()

    async def _reject(
        self,
        method: str,
        request_id: str,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        error = MethodNotAllowedError(method, allowed=self.allowed_method)
        log_error(
            error,
            logger,
            request_id=request_id,
            level=logging.WARNING,
            extra={"path": scope.get("path", "")},
        )
        response = PlainTextResponse(
            error.message,
            status_code=error.status_code,
            headers={"Allow": error.allowed, "X-Request-ID": request_id},
        )
        await response(scope, receive, send)
