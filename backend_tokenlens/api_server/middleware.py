"""
HTTP middleware: request logging and timing.

One structured log line per request: method, path, status code, duration.
"""

from __future__ import annotations

import time

from fastapi import FastAPI, Request

from backend_tokenlens.tokenlens_logging import get_logger

logger = get_logger(__name__)


def add_request_logging(app: FastAPI) -> None:
    """Register the request logging middleware on ``app``."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "http_request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                error=str(e),
            )
            raise
        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response
