"""Dataset upload and lookup endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_dataset_store
from src.api.models import DatasetUploadRequest
from src.infrastructure.datasets.store import DatasetStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("")
async def upload_dataset(
    request: DatasetUploadRequest,
    store: DatasetStore = Depends(get_dataset_store),
) -> dict[str, Any]:
    """Store decoded rows and return the dataset summary."""
    summary = store.add_dataset(request.name, request.rows)
    return {"ok": True, "dataset": summary.to_dict()}


@router.get("")
async def list_datasets(store: DatasetStore = Depends(get_dataset_store)) -> dict[str, Any]:
    return {"datasets": [s.to_dict() for s in store.list_datasets()]}


@router.get("/{dataset_id}")
async def get_dataset(
    dataset_id: str,
    store: DatasetStore = Depends(get_dataset_store),
) -> dict[str, Any]:
    dataset = store.get_dataset(dataset_id)
    if dataset is None:
        raise HTTPException(status_code=404, detail=f"Dataset '{dataset_id}' not found")
    return dataset.summary().to_dict()
