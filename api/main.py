#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FastAPI Web Server - reference persistence service for Book Studio.

In-memory implementation of the REST contract the client core consumes:
- Documents (create, read, metadata update)
- Chapters (list, create, update, delete, reorder) with derived page counts
- Reading progress keyed by the caller's bearer identity
- Tag catalog and weekly publish slots
- Publishing with authoritative re-validation

Usage:
    # Start server
    uvicorn api.main:app --host 127.0.0.1 --port 8000

    # Or through the CLI
    bookstudio serve

API Documentation:
    - OpenAPI docs: http://localhost:8000/docs

Configuration:
    Environment variables:
    - RATE_LIMIT: API rate limit (default: "120/minute")
    - ALLOWED_ORIGINS: Comma-separated CORS origins
    - WEEKLY_PUBLISH_LIMIT: Books an author may publish per 7 days (default: 2)
"""

import os
import time
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from config.constants import MAX_WEEKLY_PUBLISHES
from config.logging_config import get_logger
from api.repository import BookRepository
from api.routes import books

logger = get_logger(__name__)

VERSION = "1.0.0"

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",  # Vite dev server
    "http://127.0.0.1:5173",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]


def create_app(
    repository: Optional[BookRepository] = None,
    rate_limit: Optional[str] = None,
    rate_limit_enabled: bool = True,
) -> FastAPI:
    """
    Build the application.

    Args:
        repository: Storage backend (a fresh in-memory one by default)
        rate_limit: slowapi limit string, e.g. "60/minute"
        rate_limit_enabled: Disable to run tests without throttling
    """
    app = FastAPI(
        title="Book Studio Persistence API",
        description="Reference persistence service for documents, chapters, progress and publishing",
        version=VERSION
    )

    if repository is None:
        weekly_limit = int(os.getenv("WEEKLY_PUBLISH_LIMIT", MAX_WEEKLY_PUBLISHES))
        repository = BookRepository(weekly_limit=weekly_limit)
    app.state.repository = repository

    # Rate limiting (configurable via RATE_LIMIT env var)
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[rate_limit or os.getenv("RATE_LIMIT", "120/minute")],
        enabled=rate_limit_enabled,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    origins = os.getenv("ALLOWED_ORIGINS")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins.split(",") if origins else DEFAULT_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(books.router)

    @app.get("/health")
    async def health_check():
        """Basic health check endpoint"""
        return {
            "status": "healthy",
            "version": VERSION,
            "timestamp": time.time()
        }

    logger.info("Book Studio persistence API ready")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    from config.settings import settings

    uvicorn.run(app, host=settings.server_host, port=settings.server_port)
