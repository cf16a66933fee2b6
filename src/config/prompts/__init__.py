"""System prompts for the agent phases."""

from src.config.prompts.building import (
    build_building_instructions,
    build_execution_instructions,
)
from src.config.prompts.planning import build_planning_instructions
from src.config.prompts.reporting import REPORTING_SYSTEM_PROMPT

__all__ = [
    "REPORTING_SYSTEM_PROMPT",
    "build_building_instructions",
    "build_execution_instructions",
    "build_planning_instructions",
]
