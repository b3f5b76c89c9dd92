"""
Utility functions for error handling and tracing integration.
"""
import uuid
import logging
from typing import Mapping, Optional
from starlette.types import ASGIApp

class ErrorHandlingConfig:
    """Configuration for error handling and tracing."""

    def __init__(
        self,
        service_name: str = "vercel-mcp-demo",
        service_version: str = "1.0.0",
        environment: str = "development",
        otlp_endpoint: Optional[str] = None,
        enable_tracing: bool = False,
        enable_error_handling: bool = True,
        log_level: str = "INFO"
    ):
        self.service_name = service_name
        self.service_version = service_version
        self.environment = environment
        self.otlp_endpoint = otlp_endpoint
        self.enable_tracing = enable_tracing
        self.enable_error_handling = enable_error_handling
        self.log_level = log_level

def setup_app(
    app: ASGIApp,
    config: Optional[ErrorHandlingConfig] = None
) -> ASGIApp:
    """
    Set up error handling and tracing for a FastAPI application.

    Args:
        app: The FastAPI application
        config: Configuration for error handling and tracing

    Returns:
        The configured FastAPI application
    """
    config = config or ErrorHandlingConfig()

    logging.basicConfig(level=config.log_level)
    logging.getLogger(config.service_name).setLevel(config.log_level)

    # Import here to avoid circular dependency
    from .tracing import setup_tracing, instrument_fastapi
    from .middleware import setup_error_handling

    if config.enable_tracing:
        setup_tracing(
            service_name=config.service_name,
            environment=config.environment,
            otlp_endpoint=config.otlp_endpoint,
            service_version=config.service_version,
        )
        instrument_fastapi(app)

    if config.enable_error_handling:
        setup_error_handling(app, service_name=config.service_name)

    return app

def resolve_request_id(headers: Mapping[str, str]) -> str:
    """Return the caller's X-Request-ID, or mint a new one."""
    return headers.get("x-request-id") or str(uuid.uuid4())

__all__ = [
    'ErrorHandlingConfig',
    'setup_app',
    'resolve_request_id',
]
