"""
Server configuration.

Settings are read from the environment (and a local ``.env`` file when one
exists) once, at application start.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def get_env_or_default(key: str, default: str) -> str:
    """Get environment variable or return default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool) -> bool:
    """Interpret ``true``/``1``/``yes`` (any case) as True."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class ServerSettings:
    """Process-wide settings for the MCP HTTP endpoint."""

    server_name: str = "vercel-mcp-demo"
    server_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    enable_tracing: bool = False
    otlp_endpoint: Optional[str] = None
    json_response: bool = True
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "ServerSettings":
        load_dotenv()
        return cls(
            server_name=get_env_or_default("MCP_SERVER_NAME", cls.server_name),
            server_version=get_env_or_default("MCP_SERVER_VERSION", cls.server_version),
            environment=get_env_or_default("ENVIRONMENT", cls.environment),
            log_level=get_env_or_default("LOG_LEVEL", cls.log_level).upper(),
            enable_tracing=get_env_bool("ENABLE_TRACING", cls.enable_tracing),
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or None,
            json_response=get_env_bool("MCP_JSON_RESPONSE", cls.json_response),
            host=get_env_or_default("HOST", cls.host),
            port=int(get_env_or_default("PORT", str(cls.port))),
        )
