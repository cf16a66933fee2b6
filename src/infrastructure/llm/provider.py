"""
Model provider interface.

Transcript messages are plain dicts in a provider-neutral shape:

- ``{"role": "user", "content": str}``
- ``{"role": "assistant", "content": str, "tool_calls": [ToolCall, ...]}``
  (``tool_calls`` optional)
- ``{"role": "tool", "results": [ToolResult, ...]}``

Each provider converts them to its own wire format.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from src.orchestrator.state import ToolCall
from src.orchestrator.tools import ToolDefinition


@dataclass
class ModelTurn:
    """One model response: free text and the tool calls it requested."""

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    stop_reason: Optional[str] = None


class ModelProvider(Protocol):
    async def generate(
        self,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[ToolDefinition],
    ) -> ModelTurn: ...

    async def close(self) -> None: ...
