"""Anthropic Messages API provider with tool use."""

import json
import logging
from typing import Any, Optional

from anthropic import AsyncAnthropic

from src.infrastructure.llm.provider import ModelTurn
from src.orchestrator.state import ToolCall, ToolResult
from src.orchestrator.tools import ToolDefinition
from src.utils.retry import run_with_retry

logger = logging.getLogger(__name__)


def to_anthropic_tools(tools: list[ToolDefinition]) -> list[dict[str, Any]]:
    return [
        {"name": t.name, "description": t.description, "input_schema": t.input_schema()}
        for t in tools
    ]


def _tool_result_block(result: ToolResult) -> dict[str, Any]:
    return {
        "type": "tool_result",
        "tool_use_id": result.call_id,
        "content": json.dumps(result.output, ensure_ascii=False, default=str),
        "is_error": result.is_error,
    }


def _content_blocks(message: dict[str, Any]) -> list[dict[str, Any]]:
    role = message["role"]
    if role == "tool":
        return [_tool_result_block(r) for r in message.get("results", [])]

    blocks: list[dict[str, Any]] = []
    text = message.get("content") or ""
    if text:
        blocks.append({"type": "text", "text": text})
    if role == "assistant":
        for call in message.get("tool_calls") or []:
            blocks.append(
                {"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments}
            )
    return blocks


def to_anthropic_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Convert the neutral transcript to Messages API turns.

    Tool results travel as user-role content. Consecutive messages that end up
    with the same role are merged, since the API requires alternating roles.
    Messages with no content are dropped.
    """
    converted: list[dict[str, Any]] = []
    for message in messages:
        role = "user" if message["role"] in ("user", "tool") else "assistant"
        blocks = _content_blocks(message)
        if not blocks:
            continue
        if converted and converted[-1]["role"] == role:
            converted[-1]["content"].extend(blocks)
        else:
            converted.append({"role": role, "content": blocks})
    return converted


def parse_response(response: Any) -> ModelTurn:
    texts: list[str] = []
    calls: list[ToolCall] = []
    for block in response.content:
        if block.type == "text":
            texts.append(block.text)
        elif block.type == "tool_use":
            calls.append(ToolCall(id=block.id, name=block.name, arguments=dict(block.input or {})))
    return ModelTurn(text="".join(texts), tool_calls=calls, stop_reason=response.stop_reason)


class AnthropicProvider:
    """Generates model turns through ``AsyncAnthropic.messages.create``."""

    def __init__(
        self,
        client: AsyncAnthropic,
        model: str,
        max_tokens: int = 4096,
        temperature: float = 0.0,
        parallel_tool_calls: bool = True,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        backoff_factor: float = 2.0,
    ):
        self._client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.parallel_tool_calls = parallel_tool_calls
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.backoff_factor = backoff_factor

    async def generate(
        self,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[ToolDefinition],
    ) -> ModelTurn:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": system,
            "messages": to_anthropic_messages(messages),
        }
        if tools:
            kwargs["tools"] = to_anthropic_tools(tools)
            if not self.parallel_tool_calls:
                kwargs["tool_choice"] = {"type": "auto", "disable_parallel_tool_use": True}

        async def _create():
            return await self._client.messages.create(**kwargs)

        response = await run_with_retry(
            _create,
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            backoff_factor=self.backoff_factor,
        )
        turn = parse_response(response)
        usage: Optional[Any] = getattr(response, "usage", None)
        logger.debug(
            "[ANTHROPIC] stop=%s tool_calls=%d input_tokens=%s output_tokens=%s",
            turn.stop_reason,
            len(turn.tool_calls),
            getattr(usage, "input_tokens", None),
            getattr(usage, "output_tokens", None),
        )
        return turn

    async def close(self) -> None:
        await self._client.close()
