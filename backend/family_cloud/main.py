"""Family Cloud FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from family_cloud import __version__
from family_cloud.config import Settings, get_settings
from family_cloud.database import close_db, init_db, init_engine
from family_cloud.services import init_services, shutdown_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings: Settings = app.state.settings

    # === STARTUP ===
    _setup_logging(settings)

    init_engine(settings)
    await init_db()
    await init_services(settings)
    logger.info(
        "Family Cloud API v%s started (%s) on %s:%s",
        __version__, settings.environment, settings.host, settings.port,
    )

    try:
        yield
    finally:
        # === SHUTDOWN ===
        await shutdown_services()
        await close_db()
        logger.info("Family Cloud API shutting down")


def _setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Noisy third-party loggers to WARNING
    for noisy in ("aiosqlite", "botocore", "aiobotocore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory; ``settings`` defaults to the process-wide settings."""
    from family_cloud.api.routes import api_router

    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
        lifespan=_lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Authorization", "Content-Type", "X-CSRF-Token", "X-Credentials"],
        expose_headers=["Link"],
        max_age=300,
    )

    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()


def run(**kwargs: Any) -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "family_cloud.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        **kwargs,
    )


if __name__ == "__main__":
    run()
