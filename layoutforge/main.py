"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from layoutforge.api.errors import register_exception_handlers
from layoutforge.api.v1.router import api_router
from layoutforge.config import settings
from layoutforge.core.logging import setup_logging
from layoutforge.core.redis import close_redis
from layoutforge.services.session import SessionRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    setup_logging()

    logger.info(
        "Starting LayoutForge",
        extra={
            "environment": settings.environment,
            "version": settings.app_version,
            "model_standard": settings.get_model("standard"),
            "model_fast": settings.get_model("fast"),
        },
    )

    yield

    logger.info("Shutting down LayoutForge")
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Extract reusable layout templates from article pages and generate "
            "new articles that follow them"
        ),
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.sessions = SessionRegistry()

    # CORS middleware
    app.add_middleware(
        cast(Any, CORSMiddleware),
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get(f"{settings.api_v1_prefix}/health", include_in_schema=False)
    @app.get(
        "/health",
        summary="Health check",
        description="Return service health status and version information.",
    )
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()
