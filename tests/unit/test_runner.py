"""Tests for the phase-driven agent runner, using a scripted model provider."""

import asyncio
import threading
import time

import pytest

from src.config.constants import Phase, StopReason
from src.infrastructure.llm.provider import ModelTurn
from src.orchestrator.runner import AgentRunner
from src.orchestrator.state import ToolCall
from src.orchestrator.tools import ToolDefinition, create_default_registry


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class ScriptedProvider:
    """Returns pre-scripted turns and records what each step advertised."""

    def __init__(self, turns):
        self.turns = list(turns)
        self.calls = []

    async def generate(self, system, messages, tools):
        self.calls.append(
            {"system": system, "tools": [t.name for t in tools], "messages": list(messages)}
        )
        if not self.turns:
            return ModelTurn(text="done")
        turn = self.turns.pop(0)
        if isinstance(turn, Exception):
            raise turn
        return turn

    async def close(self):
        pass


def _call(name, call_id="c1", **arguments):
    return ToolCall(id=call_id, name=name, arguments=arguments)


def _turn(*calls, text=""):
    return ModelTurn(text=text, tool_calls=list(calls))


_PLAN = {"intent": {"metrics": ["revenue"]}, "selectedEntities": ["orders"]}


@pytest.fixture
def registry(engine):
    registry = create_default_registry(engine)
    for name in ("ExecuteSQLWithRepair", "SanityCheck"):
        registry.register(
            ToolDefinition(name=name, description="", handler=lambda p, n=name: {"ok": n})
        )
    return registry


def _runner(provider, registry, **kwargs):
    return AgentRunner(provider=provider, registry=registry, **kwargs)


# ---------------------------------------------------------------------------
# Stop conditions
# ---------------------------------------------------------------------------


class TestStopConditions:
    @pytest.mark.asyncio
    async def test_dataset_question_ends_with_terminal_tool(self, registry, sales_id):
        provider = ScriptedProvider(
            [
                _turn(_call("DescribeDataset", datasetId=sales_id)),
                _turn(_call("FinalizeNoData", message="The dataset has 6 rows.")),
            ]
        )
        result = await _runner(provider, registry).run(
            [{"role": "user", "content": "Summarize the dataset"}], dataset_id=sales_id
        )
        assert result.stop_reason == StopReason.TERMINAL_TOOL
        assert len(result.steps) == 2
        assert result.phase == Phase.PLANNING
        assert result.final_text == "The dataset has 6 rows."
        assert result.steps[0].results[0].output["rowCount"] == 6
        assert f"ACTIVE_DATASET_ID: {sales_id}" in provider.calls[0]["system"]

    @pytest.mark.asyncio
    async def test_clarify_intent_stops(self, registry):
        provider = ScriptedProvider([_turn(_call("ClarifyIntent", question="Which metric?"))])
        result = await _runner(provider, registry).run([{"role": "user", "content": "growth?"}])
        assert result.stop_reason == StopReason.TERMINAL_TOOL
        assert result.final_text == "Which metric?"

    @pytest.mark.asyncio
    async def test_step_limit(self, registry, sales_id):
        provider = ScriptedProvider(
            [_turn(_call("DescribeDataset", datasetId=sales_id)) for _ in range(10)]
        )
        result = await _runner(provider, registry, max_steps=3).run(
            [{"role": "user", "content": "loop"}]
        )
        assert result.stop_reason == StopReason.STEP_LIMIT
        assert len(result.steps) == 3

    @pytest.mark.asyncio
    async def test_plain_answer_ends_run(self, registry):
        provider = ScriptedProvider([_turn(text="Hello!")])
        result = await _runner(provider, registry).run([{"role": "user", "content": "hi"}])
        assert result.stop_reason == StopReason.NO_TOOL_CALLS
        assert result.final_text == "Hello!"

    @pytest.mark.asyncio
    async def test_cancellation_between_steps(self, registry, sales_id):
        cancel = asyncio.Event()
        provider = ScriptedProvider(
            [_turn(_call("DescribeDataset", datasetId=sales_id)) for _ in range(5)]
        )
        runner = _runner(provider, registry)
        steps = []
        async for step in runner.run_stream(
            [{"role": "user", "content": "go"}], cancel_event=cancel
        ):
            steps.append(step)
            cancel.set()
        assert len(steps) == 1

    @pytest.mark.asyncio
    async def test_cancelled_run_reports_reason(self, registry):
        cancel = asyncio.Event()
        cancel.set()
        provider = ScriptedProvider([_turn(text="never")])
        result = await _runner(provider, registry).run(
            [{"role": "user", "content": "go"}], cancel_event=cancel
        )
        assert result.stop_reason == StopReason.CANCELLED
        assert result.steps == []
        assert provider.calls == []


# ---------------------------------------------------------------------------
# Phases and the execution guard
# ---------------------------------------------------------------------------


class TestPhases:
    @pytest.mark.asyncio
    async def test_full_phase_progression(self, registry):
        provider = ScriptedProvider(
            [
                _turn(_call("FinalizePlan", **_PLAN)),
                _turn(_call("FinalizeBuild", sql="SELECT 1")),
                _turn(_call("ExecuteSQLWithRepair", sql="SELECT 1")),
                _turn(_call("SanityCheck")),
                _turn(_call("FinalizeReport", summary="All good.")),
            ]
        )
        result = await _runner(provider, registry).run([{"role": "user", "content": "q"}])
        assert [s.phase for s in result.steps] == [
            Phase.PLANNING,
            Phase.BUILDING,
            Phase.EXECUTION,
            Phase.REPORTING,
            Phase.REPORTING,
        ]
        assert result.phase == Phase.REPORTING
        assert result.stop_reason == StopReason.TERMINAL_TOOL
        assert result.final_text == "All good."

    @pytest.mark.asyncio
    async def test_active_tools_follow_phase(self, registry):
        provider = ScriptedProvider([_turn(_call("FinalizePlan", **_PLAN))])
        await _runner(provider, registry).run([{"role": "user", "content": "q"}])
        planning_tools, building_tools = provider.calls[0]["tools"], provider.calls[1]["tools"]
        assert "DescribeDataset" in planning_tools
        assert building_tools == ["FinalizeBuild"]

    @pytest.mark.asyncio
    async def test_out_of_phase_call_is_rejected(self, registry):
        provider = ScriptedProvider(
            [
                _turn(_call("FinalizeReport", summary="too early")),
                _turn(text="ok"),
            ]
        )
        result = await _runner(provider, registry).run([{"role": "user", "content": "q"}])
        rejected = result.steps[0].results[0]
        assert rejected.rejected
        assert rejected.output["rejected"] is True
        assert "not available in the planning phase" in rejected.output["error"]
        # A rejected terminal tool neither stops the run nor counts as completed
        assert len(result.steps) == 2
        assert result.stop_reason == StopReason.NO_TOOL_CALLS

    @pytest.mark.asyncio
    async def test_invalid_finalize_plan_does_not_advance(self, registry):
        provider = ScriptedProvider([_turn(_call("FinalizePlan", intent="nope")), _turn(text="x")])
        result = await _runner(provider, registry).run([{"role": "user", "content": "q"}])
        assert result.steps[0].next_phase == Phase.PLANNING
        assert result.phase == Phase.PLANNING

    @pytest.mark.asyncio
    async def test_tool_errors_are_not_fatal(self, registry, sales_id):
        provider = ScriptedProvider(
            [
                _turn(_call("ValueCounts", datasetId=sales_id, column="missing")),
                _turn(_call("FinalizeNoData", message="No such column.")),
            ]
        )
        result = await _runner(provider, registry).run([{"role": "user", "content": "q"}])
        assert "not found" in result.steps[0].results[0].output["error"]
        assert result.stop_reason == StopReason.TERMINAL_TOOL


# ---------------------------------------------------------------------------
# Tool execution within a step
# ---------------------------------------------------------------------------


class TestStepExecution:
    @pytest.mark.asyncio
    async def test_results_fed_back_in_call_order(self, registry, sales_id):
        provider = ScriptedProvider(
            [
                _turn(
                    _call("DescribeDataset", "a", datasetId=sales_id),
                    _call("ValueCounts", "b", datasetId=sales_id, column="region"),
                ),
            ]
        )
        result = await _runner(provider, registry).run([{"role": "user", "content": "q"}])
        assert [r.call_id for r in result.steps[0].results] == ["a", "b"]
        transcript = provider.calls[1]["messages"]
        assert transcript[1]["role"] == "assistant"
        assert transcript[2]["role"] == "tool"
        assert [r.call_id for r in transcript[2]["results"]] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_parallel_calls_run_concurrently(self, engine):
        barrier = threading.Barrier(2, timeout=5)

        def wait_for_peer(params):
            barrier.wait()
            return {"ok": True}

        registry = create_default_registry(engine)
        registry.register(
            ToolDefinition(name="SearchCatalog", description="", handler=wait_for_peer)
        )
        provider = ScriptedProvider(
            [_turn(_call("SearchCatalog", "a"), _call("SearchCatalog", "b"))]
        )
        result = await _runner(provider, registry).run([{"role": "user", "content": "q"}])
        assert all(r.output == {"ok": True} for r in result.steps[0].results)

    @pytest.mark.asyncio
    async def test_sequential_mode(self, engine):
        order = []

        def record(params):
            order.append(params.model_dump()["n"])
            time.sleep(0.01)
            return {}

        registry = create_default_registry(engine)
        registry.register(ToolDefinition(name="SearchCatalog", description="", handler=record))
        provider = ScriptedProvider(
            [_turn(_call("SearchCatalog", "a", n=1), _call("SearchCatalog", "b", n=2))]
        )
        await _runner(provider, registry, parallel_tool_calls=False).run(
            [{"role": "user", "content": "q"}]
        )
        assert order == [1, 2]

    @pytest.mark.asyncio
    async def test_charts_collected(self, registry, sales_id):
        provider = ScriptedProvider(
            [_turn(_call("ValueCounts", datasetId=sales_id, column="region"))]
        )
        result = await _runner(provider, registry).run([{"role": "user", "content": "q"}])
        assert result.charts[0]["spec"]["id"] == f"value-counts-{sales_id}-region"


# ---------------------------------------------------------------------------
# Provider failures
# ---------------------------------------------------------------------------


class TestProviderFailures:
    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, registry):
        provider = ScriptedProvider([RuntimeError("provider down")])
        with pytest.raises(RuntimeError, match="provider down"):
            await _runner(provider, registry).run([{"role": "user", "content": "q"}])

    @pytest.mark.asyncio
    async def test_stream_yields_steps_before_failure(self, registry, sales_id):
        provider = ScriptedProvider(
            [_turn(_call("DescribeDataset", datasetId=sales_id)), RuntimeError("boom")]
        )
        steps = []
        with pytest.raises(RuntimeError):
            async for step in _runner(provider, registry).run_stream(
                [{"role": "user", "content": "q"}]
            ):
                steps.append(step)
        assert len(steps) == 1


def test_from_settings(settings, registry):
    runner = AgentRunner.from_settings(settings, ScriptedProvider([]), registry)
    assert runner.max_steps == settings.agent_max_steps
    assert runner.sql_dialect == settings.sql_dialect
