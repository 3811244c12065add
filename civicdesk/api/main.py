"""
FastAPI Main Application
Entry point for the complaint desk sign-in service
Source: https://fastapi.tiangolo.com/
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from civicdesk.api.config import settings
from civicdesk.api.routes import auth, dashboard, health, oauth, users
from civicdesk.auth.google import GoogleOAuthClient
from civicdesk.auth.session import InMemorySessionStore, RedisSessionStore, SessionStore
from civicdesk.db.connection import close_db_connection, init_models
from civicdesk.utils.logging import get_logger, setup_logging

# Setup logging
setup_logging(
    level=settings.LOG_LEVEL,
    json_logs=settings.is_production,
)

logger = get_logger(__name__)


def build_session_store() -> SessionStore:
    if settings.SESSION_BACKEND == "memory":
        if settings.is_production:
            logger.warning("In-memory sessions in production: sign-ins are lost on restart")
        return InMemorySessionStore()
    return RedisSessionStore(settings.redis_url, ttl_seconds=settings.SESSION_TTL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[no-untyped-def]
    """
    Application lifespan manager.

    Source: https://fastapi.tiangolo.com/advanced/events/
    """
    # Startup
    logger.info(f"Starting application in {settings.ENVIRONMENT} mode")
    logger.info(f"Debug mode: {settings.DEBUG}")

    if settings.DB_CREATE_ALL:
        await init_models()

    app.state.session_store = build_session_store()
    app.state.google_client = GoogleOAuthClient.from_settings(settings)
    logger.info(f"Session backend: {settings.SESSION_BACKEND}")

    yield

    # Shutdown
    logger.info("Shutting down application")
    await app.state.google_client.close()
    await app.state.session_store.close()
    await close_db_connection()
    logger.info("Database connections closed")


app = FastAPI(
    title="CivicDesk Sign-In API",
    description="Session login, registration and Google sign-in for the citizen complaint desk",
    version="1.0.0",
    docs_url="/docs" if not settings.is_production else None,  # Disable docs in production
    redoc_url="/redoc" if not settings.is_production else None,
    openapi_url="/openapi.json" if not settings.is_production else None,
    lifespan=lifespan,
)

# CORS middleware
# Source: https://fastapi.tiangolo.com/tutorial/cors/
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_CREDENTIALS,
    allow_methods=settings.CORS_METHODS,
    allow_headers=settings.CORS_HEADERS,
)

# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(oauth.router)
app.include_router(dashboard.router)
app.include_router(users.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "CivicDesk Sign-In API",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "login": "/login",
        "docs": "/docs" if not settings.is_production else "disabled",
    }
