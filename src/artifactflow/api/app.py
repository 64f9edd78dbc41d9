"""FastAPI application factory for artifactflow."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from artifactflow import __version__
from artifactflow.api.deps import init_registry, reset_registry
from artifactflow.api.middleware import RequestBodyLimitMiddleware, RequestTimingMiddleware
from artifactflow.api.routers import parsing, pipeline, projects
from artifactflow.api.schemas import HealthResponse
from artifactflow.parser.response_parser import ResponseParser
from artifactflow.parser.validator import SchemaValidator
from artifactflow.service.workspace_registry import WorkspaceRegistry
from artifactflow.settings import Settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start/stop the WorkspaceRegistry alongside the application."""
    settings: Settings = app.state.settings
    registry = WorkspaceRegistry(
        ttl_seconds=settings.workspace_ttl_seconds,
        cleanup_interval=settings.workspace_cleanup_interval,
        settings=settings,
    )
    registry.start()
    init_registry(registry)
    try:
        yield
    finally:
        registry.stop()
        reset_registry()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="artifactflow",
        description="Turns assistant replies into versioned, approvable pipeline artifacts.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.parser = ResponseParser(
        validator=SchemaValidator(max_response_chars=settings.max_response_chars),
        logger=logging.getLogger("artifactflow.api.parser"),
    )

    # Middleware
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(RequestBodyLimitMiddleware, max_bytes=settings.max_request_body_bytes)

    app.include_router(parsing.router, prefix="/parse", tags=["parsing"])
    app.include_router(pipeline.router, prefix="/pipeline", tags=["pipeline"])
    app.include_router(projects.router, prefix="/projects", tags=["projects"])

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return app


def main() -> None:
    """Run the REST API server using settings from environment / .env file."""
    settings = Settings()

    logging.basicConfig(level=settings.log_level.upper())
    logger = logging.getLogger("artifactflow.api")
    logger.info(
        "artifactflow API Server v%s starting (host=%s, port=%d)",
        __version__, settings.api_server_host, settings.effective_port,
    )

    uvicorn.run(
        "artifactflow.api.app:create_app",
        factory=True,
        host=settings.api_server_host,
        port=settings.effective_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
