"""
Phase-driven agent loop.

Each step: build the phase's instructions and active tools, ask the model for
a turn, run the requested tools (all of them, before anything else happens),
then advance the phase and evaluate the stop predicate.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from typing import Any, Optional

from src.config.constants import Phase, StopReason, ToolName
from src.config.settings import Settings
from src.infrastructure.llm.provider import ModelProvider
from src.infrastructure.logging.logger import StructuredLogger
from src.orchestrator.instructions import RunContext, prepare_step
from src.orchestrator.phases import TERMINAL_TOOLS, next_phase, should_stop
from src.orchestrator.state import RunResult, RunState, StepRecord, ToolCall, ToolResult
from src.orchestrator.tools import ToolRegistry

logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)

_TERMINAL_NAMES = frozenset(tool.value for tool in TERMINAL_TOOLS)
# Fields of terminal tool payloads that carry the user-facing answer
_ANSWER_FIELDS = {
    ToolName.FINALIZE_REPORT.value: "summary",
    ToolName.FINALIZE_NO_DATA.value: "message",
    ToolName.CLARIFY_INTENT.value: "question",
}


def _rejection(call: ToolCall, phase: Phase) -> ToolResult:
    return ToolResult(
        call_id=call.id,
        name=call.name,
        output={
            "error": f"Tool '{call.name}' is not available in the {phase.value} phase.",
            "rejected": True,
        },
        rejected=True,
    )


def _final_text(steps: list[StepRecord]) -> str:
    """The run's answer: the last terminal payload or model text."""
    for step in reversed(steps):
        for result in step.results:
            field_name = _ANSWER_FIELDS.get(result.name)
            if field_name and not result.rejected and not result.is_error:
                answer = result.output.get(field_name)
                if answer:
                    return str(answer)
        if step.text:
            return step.text
    return ""


def _collect_charts(steps: list[StepRecord]) -> list[dict[str, Any]]:
    charts: list[dict[str, Any]] = []
    for step in steps:
        for result in step.results:
            if not result.rejected:
                charts.extend(result.output.get("charts") or [])
    return charts


class AgentRunner:
    """Runs one conversation turn through the planning → reporting phases."""

    def __init__(
        self,
        provider: ModelProvider,
        registry: ToolRegistry,
        max_steps: int = 100,
        parallel_tool_calls: bool = True,
        sql_dialect: str = "SQLite",
    ):
        self.provider = provider
        self.registry = registry
        self.max_steps = max_steps
        self.parallel_tool_calls = parallel_tool_calls
        self.sql_dialect = sql_dialect

    @classmethod
    def from_settings(
        cls, settings: Settings, provider: ModelProvider, registry: ToolRegistry
    ) -> "AgentRunner":
        return cls(
            provider=provider,
            registry=registry,
            max_steps=settings.agent_max_steps,
            parallel_tool_calls=settings.parallel_tool_calls,
            sql_dialect=settings.sql_dialect,
        )

    async def _execute_call(self, call: ToolCall, active: set[str], phase: Phase) -> ToolResult:
        if call.name not in active:
            logger.warning("[AGENT] Rejected out-of-phase tool %s in %s", call.name, phase.value)
            return _rejection(call, phase)
        tool = self.registry.get(call.name)
        output = await asyncio.to_thread(tool.execute, call.arguments)
        return ToolResult(call_id=call.id, name=call.name, output=output)

    async def _execute_calls(
        self, calls: list[ToolCall], active: set[str], phase: Phase
    ) -> list[ToolResult]:
        if self.parallel_tool_calls:
            return list(
                await asyncio.gather(*(self._execute_call(c, active, phase) for c in calls))
            )
        return [await self._execute_call(c, active, phase) for c in calls]

    async def _run_step(self, state: RunState, context: RunContext) -> StepRecord:
        step = StepRecord(index=len(state.steps), phase=state.phase)
        setup = prepare_step(state.phase, context, self.registry)
        start = time.perf_counter()

        try:
            turn = await self.provider.generate(
                setup.system_instructions, state.messages, setup.active_tools
            )
        except Exception as e:
            structured_logger.log_error(
                "agent_step", e, {"index": step.index, "phase": state.phase.value}
            )
            raise

        step.text = turn.text
        step.tool_calls = list(turn.tool_calls)
        state.messages.append(
            {"role": "assistant", "content": turn.text, "tool_calls": step.tool_calls}
        )

        if step.tool_calls:
            active = set(setup.active_tool_names)
            step.results = await self._execute_calls(step.tool_calls, active, state.phase)
            state.messages.append({"role": "tool", "results": step.results})

        new_phase = next_phase(state.phase, step.completed_tool_names)
        if new_phase != state.phase:
            logger.info("[AGENT] Phase %s -> %s", state.phase.value, new_phase.value)
        step.next_phase = new_phase
        state.phase = new_phase
        step.duration_ms = (time.perf_counter() - start) * 1000

        structured_logger.log_step(
            "agent_step",
            {
                "index": step.index,
                "phase": step.phase.value,
                "next_phase": new_phase.value,
                "active_tools": len(setup.active_tools),
                "tool_calls": [c.name for c in step.tool_calls],
                "rejected": [r.name for r in step.results if r.rejected],
                "errors": [r.name for r in step.results if r.is_error and not r.rejected],
            },
            step.duration_ms,
        )
        return step

    def _stop_reason(self, state: RunState, step: StepRecord) -> Optional[StopReason]:
        if not should_stop(state.steps, self.max_steps):
            if not step.tool_calls:
                return StopReason.NO_TOOL_CALLS
            return None
        if any(name in _TERMINAL_NAMES for name in step.completed_tool_names):
            return StopReason.TERMINAL_TOOL
        return StopReason.STEP_LIMIT

    async def _iterate(
        self,
        state: RunState,
        context: RunContext,
        cancel_event: Optional[asyncio.Event],
    ) -> AsyncIterator[StepRecord]:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("[AGENT] Run cancelled after %d steps", len(state.steps))
                state.stop_reason = StopReason.CANCELLED
                return

            step = await self._run_step(state, context)
            state.steps.append(step)
            yield step

            reason = self._stop_reason(state, step)
            if reason is not None:
                logger.info(
                    "[AGENT] Run stopped (%s) after %d steps in %s",
                    reason.value, len(state.steps), state.phase.value,
                )
                state.stop_reason = reason
                return

    def _new_run(
        self,
        messages: list[dict[str, Any]],
        dataset_id: Optional[str],
        possible_entities: Optional[list[Any]],
        verified_queries: Optional[list[Any]],
    ) -> tuple[RunState, RunContext]:
        state = RunState(messages=list(messages))
        context = RunContext(
            dataset_id=dataset_id,
            sql_dialect=self.sql_dialect,
            possible_entities=possible_entities,
            verified_queries=verified_queries,
        )
        return state, context

    async def run_stream(
        self,
        messages: list[dict[str, Any]],
        dataset_id: Optional[str] = None,
        possible_entities: Optional[list[Any]] = None,
        verified_queries: Optional[list[Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[StepRecord]:
        """Yield each step as soon as it completes."""
        state, context = self._new_run(messages, dataset_id, possible_entities, verified_queries)
        async for step in self._iterate(state, context, cancel_event):
            yield step

    async def run(
        self,
        messages: list[dict[str, Any]],
        dataset_id: Optional[str] = None,
        possible_entities: Optional[list[Any]] = None,
        verified_queries: Optional[list[Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RunResult:
        """Run to completion.

        Raises:
            Exception: Provider failures, after the provider's own retries.
        """
        state, context = self._new_run(messages, dataset_id, possible_entities, verified_queries)
        async for _ in self._iterate(state, context, cancel_event):
            pass

        return RunResult(
            steps=state.steps,
            final_text=_final_text(state.steps),
            phase=state.phase,
            stop_reason=state.stop_reason,
            charts=_collect_charts(state.steps),
        )
