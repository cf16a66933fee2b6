"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from src.api.routers import api_router
from src.config.settings import Settings, get_settings
from src.infrastructure.datasets.store import DatasetStore
from src.infrastructure.logging.logger import setup_logging

settings = get_settings()

setup_logging(
    level=settings.log_level,
    json_output=not settings.debug,
    silence_noisy_loggers=True,
)

logger = logging.getLogger(__name__)


def _validate_startup_config(settings: Settings) -> None:
    """Validate required configuration at startup."""
    if not settings.anthropic_api_key:
        logger.warning("No AI API key configured (anthropic_api_key); chat endpoints will fail")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup and shutdown lifecycle."""
    logger.info("Starting %s", settings.app_name)
    _validate_startup_config(settings)

    app.state.dataset_store = DatasetStore(
        type_sample_size=settings.dataset_type_sample_size,
        max_rows=settings.dataset_max_rows,
    )
    app.state.model_provider = None
    # SQL catalog tools are registered here by deployments that provide them
    app.state.external_tools = []

    yield
    logger.info("Shutting down %s", settings.app_name)
    if app.state.model_provider is not None:
        try:
            await app.state.model_provider.close()
            logger.info("Model provider closed")
        except Exception as e:
            logger.error("Error closing model provider: %s", e, exc_info=True)
    app.state.dataset_store.close()


app = FastAPI(
    title=settings.app_name,
    description="Conversational exploratory data analysis over uploaded datasets",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials="*" not in settings.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

app.include_router(api_router, prefix="/api")
