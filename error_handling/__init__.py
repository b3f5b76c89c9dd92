"""
Error handling module for the serverless MCP demo.

This module provides a structured way to handle and report errors across the application.
"""
from enum import Enum
from typing import Optional, Dict, Any, Union
import logging
from fastapi import status
from pydantic import BaseModel, ConfigDict

# Import all from submodules to make them available at the package level
from .tracing import *
from .middleware import *
from .utils import *

# Re-export all error-related classes and functions
__all__ = [
    # Error codes and base classes
    'ErrorCode',
    'ErrorResponse',
    'MCPDemoError',

    # Common error types
    'MethodNotAllowedError',
    'UnknownToolError',
    'InvalidInputError',
    'ToolExecutionError',
    'DuplicateToolError',
    'RegistryFrozenError',

    # Utility functions
    'log_error',
    'setup_error_handling',
    'ErrorHandlingMiddleware',
    'not_found_response',

    # Tracing
    'setup_tracing',
    'get_tracer',
    'instrument_fastapi',

    # Utils
    'ErrorHandlingConfig',
    'setup_app',
    'resolve_request_id',
]

class ErrorCode(str, Enum):
    """Standard error codes for the application."""
    # HTTP layer
    METHOD_NOT_ALLOWED = "method_not_allowed"
    NOT_FOUND = "not_found"

    # Tool registry
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_INPUT = "invalid_input"
    TOOL_EXECUTION_ERROR = "tool_execution_error"
    ALREADY_EXISTS = "already_exists"
    INVALID_STATE = "invalid_state"

    UNKNOWN_ERROR = "unknown_error"

class ErrorResponse(BaseModel):
    """Standard error response format for API responses."""
    error: Dict[str, Any]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "code": "not_found",
                    "message": "Use /api/mcp or /health endpoints",
                    "details": {},
                    "request_id": "req_12345",
                }
            }
        }
    )

class MCPDemoError(Exception):
    """Base exception class for all application errors."""

    def __init__(
        self,
        code: Union[ErrorCode, str],
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        self.code = ErrorCode(code) if isinstance(code, str) else code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.cause = cause
        super().__init__(message)

    def to_dict(self, request_id: str = "") -> Dict[str, Any]:
        """Convert the error to a dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "request_id": request_id,
        }

    @classmethod
    def from_exception(cls, exc: Exception) -> 'MCPDemoError':
        """Create an MCPDemoError from a generic exception."""
        if isinstance(exc, MCPDemoError):
            return exc
        return cls(
            code=ErrorCode.UNKNOWN_ERROR,
            message=str(exc) or "An unknown error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"exception_type": exc.__class__.__name__},
            cause=exc
        )

# Common error types for easy reuse
class MethodNotAllowedError(MCPDemoError):
    def __init__(self, method: str, allowed: str = "POST"):
        super().__init__(
            code=ErrorCode.METHOD_NOT_ALLOWED,
            message="Method Not Allowed",
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            details={"method": method, "allowed": allowed}
        )
        self.allowed = allowed

class UnknownToolError(MCPDemoError):
    def __init__(self, tool_name: str):
        super().__init__(
            code=ErrorCode.UNKNOWN_TOOL,
            message=f"Unknown tool: {tool_name}",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"tool": tool_name}
        )

class InvalidInputError(MCPDemoError):
    def __init__(self, tool_name: str, message: str, errors: Optional[list] = None):
        super().__init__(
            code=ErrorCode.INVALID_INPUT,
            message=f"Invalid input for tool {tool_name}: {message}",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"tool": tool_name, "errors": errors or []}
        )

class ToolExecutionError(MCPDemoError):
    """Raised when a tool handler fails; the message is the handler's own."""
    def __init__(self, tool_name: str, cause: Exception):
        super().__init__(
            code=ErrorCode.TOOL_EXECUTION_ERROR,
            message=str(cause) or f"Tool {tool_name} failed",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"tool": tool_name, "exception_type": cause.__class__.__name__},
            cause=cause
        )

class DuplicateToolError(MCPDemoError):
    def __init__(self, tool_name: str):
        super().__init__(
            code=ErrorCode.ALREADY_EXISTS,
            message=f"Tool '{tool_name}' is already registered",
            status_code=status.HTTP_409_CONFLICT,
            details={"tool": tool_name}
        )

class RegistryFrozenError(MCPDemoError):
    def __init__(self, tool_name: str):
        super().__init__(
            code=ErrorCode.INVALID_STATE,
            message=f"Cannot register tool '{tool_name}': registry is frozen",
            status_code=status.HTTP_409_CONFLICT,
            details={"tool": tool_name}
        )

def log_error(
    error: Exception,
    logger: logging.Logger,
    request_id: str = "",
    level: int = logging.ERROR,
    extra: Optional[Dict[str, Any]] = None
) -> None:
    """
    Helper function to log errors with structured context.

    Args:
        error: The exception to log
        logger: Logger instance to use
        request_id: Optional request ID for correlation
        level: Log level (default: ERROR)
        extra: Additional context to include in the log
    """
    extra = extra or {}
    if request_id:
        extra["request_id"] = request_id

    if isinstance(error, MCPDemoError):
        extra.update({
            "error_code": error.code.value,
            "status_code": error.status_code,
            **{f"detail_{key}": value for key, value in error.details.items()}
        })
        if error.cause:
            extra["cause"] = str(error.cause)
    else:
        extra.update({
            "error_type": error.__class__.__name__,
            "error_message": str(error)
        })

    logger.log(level, str(error), extra=extra, exc_info=level >= logging.ERROR)
