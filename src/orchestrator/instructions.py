"""Per-step setup: system instructions and the active tool set."""

from dataclasses import dataclass
from typing import Any, Optional

from src.config.constants import Phase
from src.config.prompts import (
    REPORTING_SYSTEM_PROMPT,
    build_building_instructions,
    build_execution_instructions,
    build_planning_instructions,
)
from src.orchestrator.phases import catalog_for
from src.orchestrator.tools import ToolDefinition, ToolRegistry


@dataclass
class RunContext:
    """Inputs that stay fixed for a whole run."""

    dataset_id: Optional[str] = None
    sql_dialect: str = "SQLite"
    possible_entities: Optional[list[Any]] = None
    verified_queries: Optional[list[Any]] = None


@dataclass
class StepSetup:
    system_instructions: str
    active_tools: list[ToolDefinition]

    @property
    def active_tool_names(self) -> list[str]:
        return [tool.name for tool in self.active_tools]


def build_phase_instructions(phase: Phase, context: RunContext) -> str:
    if phase == Phase.PLANNING:
        return build_planning_instructions(
            context.dataset_id, context.possible_entities, context.verified_queries
        )
    if phase == Phase.BUILDING:
        return build_building_instructions(context.sql_dialect)
    if phase == Phase.EXECUTION:
        return build_execution_instructions(context.sql_dialect)
    return REPORTING_SYSTEM_PROMPT


def prepare_step(phase: Phase, context: RunContext, registry: ToolRegistry) -> StepSetup:
    """Instructions for ``phase`` and the phase's tools that are actually registered."""
    return StepSetup(
        system_instructions=build_phase_instructions(phase, context),
        active_tools=registry.active(catalog_for(phase)),
    )
