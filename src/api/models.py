"""Request/Response models for API endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One prior or current message of the conversation."""

    role: Literal["user", "assistant"] = Field(..., description="Message author")
    content: str = Field(..., description="Message text")


class ChatRequest(BaseModel):
    """Request model for chat endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(
        ..., min_length=1, description="Conversation so far, ending with the user's question"
    )
    dataset_id: str | None = Field(
        None, alias="datasetId", description="Id of the dataset the conversation is about"
    )


class DatasetUploadRequest(BaseModel):
    """Already-decoded table rows to store as a dataset."""

    name: str = Field(..., min_length=1, description="Display name, usually the file name")
    rows: list[dict[str, Any]] = Field(..., description="Rows as column -> value objects")


class HealthResponse(BaseModel):
    """Response model for health endpoint."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    datasets: int = Field(..., description="Number of datasets held in memory")
