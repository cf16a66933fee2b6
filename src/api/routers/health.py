"""Health endpoint."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_dataset_store, get_settings_dependency
from src.api.models import HealthResponse
from src.config.settings import Settings
from src.infrastructure.datasets.store import DatasetStore

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    settings: Settings = Depends(get_settings_dependency),
    store: DatasetStore = Depends(get_dataset_store),
) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=settings.app_version, datasets=len(store))
