"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from paper_tracker.interface import dependencies
from paper_tracker.interface.error_handlers import register_error_handlers
from paper_tracker.interface.routes import router

API_VERSION = "1.0.0"


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    await dependencies.startup()
    try:
        yield
    finally:
        await dependencies.shutdown()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Paper Tracker",
        version=API_VERSION,
        summary="Provider-agnostic access to paper repositories.",
        description=(
            "Reads papers tracked in GitHub, GitLab (cloud or self-hosted) "
            "and Overleaf repositories, and reports which ones changed."
        ),
        lifespan=_lifespan,
    )
    register_error_handlers(app)
    app.include_router(router, tags=["repositories"])

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": API_VERSION}

    return app
