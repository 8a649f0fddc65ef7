"""My List REST API — FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mylist.api.deps import dispose_engine, get_cache_backend, init_session_factory
from mylist.api.errors import register_error_handlers
from mylist.api.middleware.request_id import RequestIDMiddleware
from mylist.api.routers import my_list
from mylist.core.config import get_settings
from mylist.core.logging import setup_logging


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: DB engine + cache connection. Shutdown: close both."""
    init_session_factory()
    backend = get_cache_backend()
    await backend.start()
    yield
    await backend.stop()
    await dispose_engine()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    setup_logging()
    settings = get_settings()

    app = FastAPI(
        title="My List",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=_lifespan,
    )

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", tags=["ops"])
    async def health() -> JSONResponse:
        cache_ok = await get_cache_backend().ping()
        return JSONResponse({"status": "ok", "cache": "ok" if cache_ok else "unavailable"})

    app.include_router(my_list.router, prefix="/my-list", tags=["my-list"])

    return app
