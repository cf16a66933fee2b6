"""Chat endpoints: one agent run per request."""

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from src.api.dependencies import get_agent_runner
from src.api.models import ChatRequest
from src.orchestrator.runner import AgentRunner

logger = logging.getLogger(__name__)

router = APIRouter()


def _sse(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False, default=str)}\n\n"


def _transcript(request: ChatRequest) -> list[dict[str, Any]]:
    return [m.model_dump() for m in request.messages]


@router.post("/chat")
async def chat(
    request: ChatRequest,
    runner: AgentRunner = Depends(get_agent_runner),
) -> dict[str, Any]:
    """Run the agent to completion and return its answer, steps and charts."""
    try:
        result = await runner.run(_transcript(request), dataset_id=request.dataset_id)
    except Exception as e:
        logger.error("Error in chat: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e
    return result.to_dict()


@router.post("/chat/stream", response_class=StreamingResponse)
async def chat_stream(
    request: ChatRequest,
    http_request: Request,
    runner: AgentRunner = Depends(get_agent_runner),
) -> StreamingResponse:
    """Stream the run as Server-Sent Events.

    Each completed step is emitted as ``{"step": {...}}``, then
    ``{"done": true}``. A provider failure ends the stream with
    ``{"error": "..."}``.
    """

    async def generate() -> AsyncIterator[str]:
        t_start = time.time()
        step_count = 0
        cancel = asyncio.Event()
        try:
            async for step in runner.run_stream(
                _transcript(request), dataset_id=request.dataset_id, cancel_event=cancel
            ):
                step_count += 1
                yield _sse({"step": step.to_dict()})
                if not cancel.is_set() and await http_request.is_disconnected():
                    logger.info(
                        "[STREAM] Client disconnected after %d steps, cancelling run", step_count
                    )
                    cancel.set()
            if cancel.is_set():
                return
            logger.info(
                "[TIMING] Stream complete: %.2fs total, %d steps",
                time.time() - t_start, step_count,
            )
            yield _sse({"done": True})
        except Exception as e:
            logger.error("Error in chat stream: %s", e, exc_info=True)
            yield _sse({"error": "An error occurred"})

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
