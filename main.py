"""
Auth API: application entry point.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.auth import router as auth_router
from api.errors import register_exception_handlers
from api.middleware import register_middleware
from auth.tokens import TokenService
from config.settings import Settings, config
from database.session import Database

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("aiosqlite", "sqlalchemy.engine", "httpcore", "httpx"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    token_service: Optional[TokenService] = None,
) -> FastAPI:
    settings = settings or config
    database = database or Database(settings.database_url)
    token_service = token_service or TokenService(
        settings.jwt_secret,
        expiry_seconds=settings.jwt_expiry_seconds,
        algorithm=settings.jwt_algorithm,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await database.create_all()
        logger.info("Auth API ready to accept requests.")
        yield
        await database.dispose()
        logger.info("Database connection closed.")

    app = FastAPI(
        title="Auth API",
        version="1.0.0",
        description="Email/password registration and login with JWT-protected routes.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.token_service = token_service

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app, debug=settings.debug)

    # Routes
    app.include_router(auth_router, prefix="/api/auth")

    @app.get("/api/health")
    async def health():
        return {
            "success": True,
            "status": "OK",
            "message": "API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
