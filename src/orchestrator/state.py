"""Run state model."""

from dataclasses import dataclass, field
from typing import Any, Optional

from src.config.constants import Phase, StopReason


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Outcome of one tool call, as fed back to the model."""

    call_id: str
    name: str
    output: dict[str, Any]
    rejected: bool = False  # blocked by the phase guard, never executed

    @property
    def is_error(self) -> bool:
        return "error" in self.output

    @property
    def completed(self) -> bool:
        """Whether the tool ran to completion.

        Rejected calls, invalid input and handler failures do not count. A
        tool that ran and reported an error (such as an unknown column) does.
        """
        return not (
            self.rejected or self.output.get("invalidInput") or self.output.get("failed")
        )


@dataclass
class StepRecord:
    """One model turn plus the tool results it produced."""

    index: int
    phase: Phase
    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    results: list[ToolResult] = field(default_factory=list)
    next_phase: Optional[Phase] = None
    duration_ms: float = 0.0

    @property
    def completed_tool_names(self) -> list[str]:
        """Names of tools that ran to completion in this step."""
        return [r.name for r in self.results if r.completed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "phase": self.phase.value,
            "nextPhase": self.next_phase.value if self.next_phase else None,
            "text": self.text,
            "toolCalls": [
                {"id": c.id, "name": c.name, "arguments": c.arguments} for c in self.tool_calls
            ],
            "results": [
                {"callId": r.call_id, "name": r.name, "output": r.output, "rejected": r.rejected}
                for r in self.results
            ],
            "durationMs": round(self.duration_ms, 1),
        }


@dataclass
class RunState:
    """Mutable state of a single agent run."""

    phase: Phase = Phase.PLANNING
    messages: list[dict[str, Any]] = field(default_factory=list)
    steps: list[StepRecord] = field(default_factory=list)
    stop_reason: Optional[StopReason] = None


@dataclass
class RunResult:
    """Final outcome returned by a completed run."""

    steps: list[StepRecord]
    final_text: str
    phase: Phase
    stop_reason: StopReason
    charts: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "finalText": self.final_text,
            "phase": self.phase.value,
            "stopReason": self.stop_reason.value,
            "steps": [s.to_dict() for s in self.steps],
            "charts": self.charts,
        }
