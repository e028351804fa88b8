"""
FastAPI/ASGI application entrypoint.

Build the ASGI app from environment settings.
Run with: uvicorn backend_tokenlens.api_server.app:app --host 0.0.0.0 --port 8000
"""

from backend_tokenlens.api_server.server import create_app

app = create_app()

__all__ = ["app"]
