"""
Serverless entry point.

The hosting platform imports ``app`` from this module and invokes it for
every request to /api/mcp.

Run locally: python -m api.mcp
Server listens on http://127.0.0.1:8000/api/mcp
"""
from mcp_http import ServerSettings, create_app

settings = ServerSettings.from_env()

app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
