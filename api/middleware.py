"""
Request timing and access logging.

Every response carries ``X-Process-Time``.  The access line names the user
the gate attached to ``request.state`` so a log reader can tell which
account made an authenticated call; server errors are raised to WARNING.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)


def _caller(request: Request) -> str:
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user={user.id}"
    return f"client={request.client.host if request.client else '-'}"


def register_middleware(app: FastAPI) -> None:
    """Attach the timing/access-log middleware to ``app``."""

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"

        level = logging.WARNING if response.status_code >= 500 else logging.DEBUG
        logger.log(
            level,
            "%s %s -> %d (%.3fs) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
            _caller(request),
        )
        return response
