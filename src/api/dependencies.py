"""FastAPI dependencies."""

import logging
from functools import lru_cache

from fastapi import Depends, HTTPException, Request

from src.config.settings import Settings, get_settings
from src.infrastructure.datasets.store import DatasetStore
from src.infrastructure.llm.factory import create_model_provider
from src.infrastructure.llm.provider import ModelProvider
from src.orchestrator.runner import AgentRunner
from src.orchestrator.tools import ToolRegistry, create_default_registry
from src.services.eda import StatisticsEngine

logger = logging.getLogger(__name__)


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings as a FastAPI dependency."""
    return get_settings()


def get_dataset_store(request: Request) -> DatasetStore:
    """The store created by the application lifespan."""
    return request.app.state.dataset_store


def get_statistics_engine(store: DatasetStore = Depends(get_dataset_store)) -> StatisticsEngine:
    return StatisticsEngine(store)


def get_tool_registry(
    request: Request,
    engine: StatisticsEngine = Depends(get_statistics_engine),
) -> ToolRegistry:
    """Statistics and control tools plus any tools registered on the app."""
    registry = create_default_registry(engine)
    for tool in getattr(request.app.state, "external_tools", []):
        registry.register(tool)
    return registry


def get_model_provider(
    request: Request,
    settings: Settings = Depends(get_settings_dependency),
) -> ModelProvider:
    """Shared provider, created on first use and closed by the lifespan."""
    provider = getattr(request.app.state, "model_provider", None)
    if provider is None:
        try:
            provider = create_model_provider(settings)
        except ValueError as e:
            logger.error("Model provider unavailable: %s", e)
            raise HTTPException(status_code=503, detail="Model provider is not configured") from e
        request.app.state.model_provider = provider
    return provider


def get_agent_runner(
    settings: Settings = Depends(get_settings_dependency),
    provider: ModelProvider = Depends(get_model_provider),
    registry: ToolRegistry = Depends(get_tool_registry),
) -> AgentRunner:
    return AgentRunner.from_settings(settings, provider, registry)
