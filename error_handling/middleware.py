"""
Error handling middleware for FastAPI applications.

This module provides middleware to catch and process exceptions in a consistent way.
"""
import logging
from typing import Callable
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest

logger = logging.getLogger("vercel-mcp-demo.error_handling")

class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware for handling exceptions and formatting error responses."""

    def __init__(self, app, service_name: str = "vercel-mcp-demo"):
        super().__init__(app)
        self.service_name = service_name

    async def dispatch(self, request: StarletteRequest, call_next: Callable):
        """Process the request and handle any exceptions."""
        from .utils import resolve_request_id

        request_id = resolve_request_id(request.headers)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            return await self._handle_exception(exc, request_id, request)

    async def _handle_exception(
        self,
        exc: Exception,
        request_id: str,
        request: StarletteRequest
    ) -> JSONResponse:
        """Handle an exception and return an appropriate response."""
        # Import here to avoid circular dependency
        from error_handling import MCPDemoError, ErrorResponse, log_error

        if not isinstance(exc, MCPDemoError):
            exc = MCPDemoError.from_exception(exc)

        log_error(
            exc,
            logger,
            request_id=request_id,
            level=logging.ERROR if exc.status_code >= 500 else logging.WARNING,
            extra={
                "path": request.url.path,
                "method": request.method,
                "service": self.service_name,
            }
        )

        error_response = ErrorResponse(error=exc.to_dict(request_id=request_id))

        return JSONResponse(
            content=error_response.model_dump(),
            status_code=exc.status_code,
            headers={
                "X-Request-ID": request_id,
                "Cache-Control": "no-store"
            }
        )

def setup_error_handling(app, service_name: str = "vercel-mcp-demo") -> None:
    """Set up error handling middleware for a FastAPI application."""
    from error_handling import MCPDemoError, ErrorResponse, log_error

    app.add_middleware(ErrorHandlingMiddleware, service_name=service_name)

    @app.exception_handler(MCPDemoError)
    async def demo_error_handler(request: Request, exc: MCPDemoError) -> JSONResponse:
        """Handle MCPDemoError exceptions."""
        request_id = getattr(request.state, "request_id", "") or request.headers.get("x-request-id", "")

        log_error(
            exc,
            logger,
            request_id=request_id,
            level=logging.WARNING if exc.status_code < 500 else logging.ERROR,
            extra={
                "path": request.url.path,
                "method": request.method,
            }
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.to_dict(request_id=request_id)).model_dump(),
            headers={
                "X-Request-ID": request_id,
                "Cache-Control": "no-store"
            }
        )


def not_found_response(path: str, request_id: str = "") -> JSONResponse:
    """JSON 404 used by the composite app for paths outside its routes."""
    from error_handling import ErrorCode, ErrorResponse, MCPDemoError

    error = MCPDemoError(
        code=ErrorCode.NOT_FOUND,
        message="Not Found. Use /api/mcp or /health endpoints",
        status_code=status.HTTP_404_NOT_FOUND,
        details={"path": path},
    )
    headers = {"Cache-Control": "no-store"}
    if request_id:
        headers["X-Request-ID"] = request_id
    return JSONResponse(
        status_code=error.status_code,
        content=ErrorResponse(error=error.to_dict(request_id=request_id)).model_dump(),
        headers=headers,
    )


__all__ = [
    'ErrorHandlingMiddleware',
    'setup_error_handling',
    'not_found_response',
]
