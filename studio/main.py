"""
Studio FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from studio import db
from studio.config import settings
from studio.routes import catalog as catalog_routes
from studio.routes import composer as composer_routes
from studio.routes import templates as template_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Opens the database pool on startup when DATABASE_URL is set and closes
    it on shutdown.
    """
    if settings.DATABASE_URL:
        await db.init_pool()
        logger.info("Database pool initialized")

    yield

    await db.close_pool()
    logger.info("Database pool closed")


app = FastAPI(
    title="Mailkit Studio",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# Register routes
app.include_router(catalog_routes.router)
app.include_router(template_routes.router)
app.include_router(composer_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
