"""
Main FastAPI application entry point.

Usage:
    # Development
    endpoint-proxy

    # Or use uvicorn directly:
    uvicorn endpoint_proxy.main:app --host 0.0.0.0 --port 20128
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from endpoint_proxy.core.config import settings
from endpoint_proxy.gateway.routers import openai_router
from endpoint_proxy.gateway.services.credential_store import CredentialStore
from endpoint_proxy.gateway.translators import get_translator_registry


def configure_logging() -> None:
    """Configure structlog on top of the standard library logger."""
    logging.basicConfig(format="%(message)s", level=settings.log.level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.log.format == "json" else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Builds the translator registry before the first request, seeds the
    credential store and opens the shared upstream HTTP client.
    """
    logger.info("Starting application", version=settings.app.app_version, env=settings.app.app_env)

    registry = get_translator_registry()
    logger.info(
        "Translator registry ready",
        pairs=[f"{source.value}->{target.value}" for source, target in registry.pairs()],
    )

    app.state.credential_store = CredentialStore.from_settings(settings.providers)
    app.state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.gateway.upstream_timeout_seconds)
    )

    try:
        yield
    finally:
        await app.state.http_client.aclose()
        logger.info("Application stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app.app_name,
        version=settings.app.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(openai_router)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "version": settings.app.app_version}

    return app


app = create_app()


def main() -> None:
    """Run the application with uvicorn."""
    uvicorn.run(
        "endpoint_proxy.main:app",
        host=settings.app.api_host,
        port=settings.app.api_port,
        reload=settings.app.app_debug,
        workers=1 if settings.app.app_debug else settings.app.api_workers,
        log_level=settings.log.level.lower(),
        access_log=settings.log.requests,
    )


if __name__ == "__main__":
    main()
