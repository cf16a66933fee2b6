"""Phase catalog, transition function and stop predicate."""

from collections.abc import Iterable, Sequence

from src.config.constants import PHASE_ORDER, Phase, ToolName
from src.orchestrator.state import StepRecord

EDA_TOOLS: tuple[ToolName, ...] = (
    ToolName.DESCRIBE_DATASET,
    ToolName.SUMMARIZE_COLUMNS,
    ToolName.VALUE_COUNTS,
    ToolName.TIME_SERIES_SLICE,
    ToolName.CORRELATION_MATRIX,
    ToolName.TARGET_ANALYSIS,
    ToolName.GROUPED_SUMMARY,
    ToolName.TOP_SEGMENTS,
    ToolName.RELATIONSHIP_DRILLDOWN,
    ToolName.MISSING_VALUES_SUMMARY,
    ToolName.GENERATE_EDA_REPORT,
)

PHASE_TOOLS: dict[Phase, tuple[ToolName, ...]] = {
    Phase.PLANNING: (
        ToolName.READ_ENTITY_YAML_RAW,
        ToolName.LOAD_ENTITIES_BULK,
        ToolName.SCAN_ENTITY_PROPERTIES,
        ToolName.ASSESS_ENTITY_COVERAGE,
        ToolName.CLARIFY_INTENT,
        ToolName.SEARCH_CATALOG,
        ToolName.SEARCH_SCHEMA,
        *EDA_TOOLS,
        ToolName.FINALIZE_PLAN,
        ToolName.FINALIZE_BUILD,
        ToolName.FINALIZE_NO_DATA,
    ),
    Phase.BUILDING: (
        ToolName.BUILD_SQL,
        ToolName.VALIDATE_SQL,
        ToolName.FINALIZE_BUILD,
    ),
    Phase.EXECUTION: (
        ToolName.ESTIMATE_COST,
        ToolName.EXECUTE_SQL_WITH_REPAIR,
    ),
    Phase.REPORTING: (
        ToolName.SANITY_CHECK,
        ToolName.FORMAT_RESULTS,
        ToolName.EXPLAIN_RESULTS,
        ToolName.FINALIZE_REPORT,
    ),
}

# Completing one of these tools moves the run to the mapped phase.
TRANSITIONS: dict[ToolName, Phase] = {
    ToolName.FINALIZE_PLAN: Phase.BUILDING,
    ToolName.FINALIZE_BUILD: Phase.EXECUTION,
    ToolName.EXECUTE_SQL_WITH_REPAIR: Phase.REPORTING,
}

TERMINAL_TOOLS: frozenset[ToolName] = frozenset(
    {ToolName.FINALIZE_REPORT, ToolName.FINALIZE_NO_DATA, ToolName.CLARIFY_INTENT}
)


def phase_rank(phase: Phase) -> int:
    return PHASE_ORDER.index(phase)


def catalog_for(phase: Phase) -> tuple[str, ...]:
    """Tool names the model may call while in ``phase``."""
    return tuple(tool.value for tool in PHASE_TOOLS[phase])


def next_phase(phase: Phase, completed_tool_names: Iterable[str]) -> Phase:
    """
    Phase after a step that completed ``completed_tool_names``.

    The furthest phase triggered by any completed tool wins. The result is
    never earlier than ``phase``, so a late FinalizePlan cannot pull an
    execution-phase run back to building.
    """
    result = phase
    for name in completed_tool_names:
        try:
            target = TRANSITIONS.get(ToolName(name))
        except ValueError:
            continue
        if target is not None and phase_rank(target) > phase_rank(result):
            result = target
    return result


def should_stop(steps: Sequence[StepRecord], max_steps: int) -> bool:
    """True once a terminal tool has completed or the step budget is spent."""
    if len(steps) >= max_steps:
        return True
    terminal = {tool.value for tool in TERMINAL_TOOLS}
    return any(name in terminal for step in steps for name in step.completed_tool_names)
