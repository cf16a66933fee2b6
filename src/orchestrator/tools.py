"""Tool definitions, the tool registry, and the built-in tool factories.

A tool is a name, a description, a pydantic input model and a synchronous
handler. ``ToolDefinition.execute`` never raises: invalid input and handler
failures come back as ``{"error": ...}`` so the run can continue.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from src.config.constants import ToolName
from src.orchestrator import models
from src.services.eda import StatisticsEngine

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], Any]


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors(include_url=False):
        location = ".".join(str(part) for part in err["loc"]) or "input"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


@dataclass
class ToolDefinition:
    """A named tool the model can call."""

    name: str
    description: str
    handler: ToolHandler
    input_model: type[BaseModel] = field(default=models.FreeformInput)

    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the input, using wire (camelCase) names."""
        return self.input_model.model_json_schema(by_alias=True)

    def execute(self, arguments: dict[str, Any] | None) -> dict[str, Any]:
        try:
            params = self.input_model.model_validate(arguments or {})
        except ValidationError as exc:
            logger.info("[TOOLS] Invalid input for %s: %s", self.name, exc.error_count())
            return {
                "error": f"Invalid input for {self.name}: {_format_validation_error(exc)}",
                "invalidInput": True,
            }

        try:
            result = self.handler(params)
        except Exception as exc:
            logger.error("[TOOLS] %s failed: %s", self.name, exc, exc_info=True)
            return {"error": f"{self.name} failed: {exc}", "failed": True}

        if isinstance(result, dict):
            return result
        return {"result": result}


class ToolRegistry:
    """Tools available to a run, keyed by name."""

    def __init__(self, tools: Iterable[ToolDefinition] = ()):
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def active(self, catalog: Iterable[str]) -> list[ToolDefinition]:
        """Registered tools from ``catalog``, in catalog order."""
        return [self._tools[name] for name in catalog if name in self._tools]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def create_eda_tools(engine: StatisticsEngine) -> list[ToolDefinition]:
    """Dataset statistics tools bound to ``engine``."""
    return [
        ToolDefinition(
            name=ToolName.DESCRIBE_DATASET.value,
            description="Return the name, row count and typed columns of an uploaded dataset.",
            input_model=models.DescribeDatasetInput,
            handler=lambda p: engine.describe_dataset(p.dataset_id),
        ),
        ToolDefinition(
            name=ToolName.SUMMARIZE_COLUMNS.value,
            description=(
                "Per-column statistics: null and distinct counts, cardinality, sample values, "
                "and for numeric columns quantiles, moments, outliers and a histogram."
            ),
            input_model=models.SummarizeColumnsInput,
            handler=lambda p: engine.summarize_columns(p.dataset_id),
        ),
        ToolDefinition(
            name=ToolName.VALUE_COUNTS.value,
            description="Most frequent values of a column with counts and fractions.",
            input_model=models.ValueCountsInput,
            handler=lambda p: engine.value_counts(p.dataset_id, p.column, p.limit),
        ),
        ToolDefinition(
            name=ToolName.TIME_SERIES_SLICE.value,
            description=(
                "Average a numeric column per raw/day/week/month bucket of a date column, "
                "optionally with a trailing moving average."
            ),
            input_model=models.TimeSeriesSliceInput,
            handler=lambda p: engine.time_series_slice(
                p.dataset_id,
                p.date_column,
                p.value_column,
                p.granularity,
                p.moving_average_window,
            ),
        ),
        ToolDefinition(
            name=ToolName.CORRELATION_MATRIX.value,
            description="Pearson correlation matrix between all numeric columns.",
            input_model=models.CorrelationMatrixInput,
            handler=lambda p: engine.correlation_matrix(p.dataset_id),
        ),
        ToolDefinition(
            name=ToolName.TARGET_ANALYSIS.value,
            description=(
                "Distribution of a target column and the numeric features most correlated "
                "with it (regression), or its class balance (classification)."
            ),
            input_model=models.TargetAnalysisInput,
            handler=lambda p: engine.target_analysis(
                p.dataset_id, p.target_column, p.problem_type, p.max_features
            ),
        ),
        ToolDefinition(
            name=ToolName.GROUPED_SUMMARY.value,
            description="Count, sum, mean and median of numeric metrics per group.",
            input_model=models.GroupedSummaryInput,
            handler=lambda p: engine.grouped_summary(p.dataset_id, p.group_by, p.metrics),
        ),
        ToolDefinition(
            name=ToolName.TOP_SEGMENTS.value,
            description="Segments of a column ranked by the mean of a numeric metric.",
            input_model=models.TopSegmentsInput,
            handler=lambda p: engine.top_segments(
                p.dataset_id, p.group_by_column, p.metric_column, p.direction, p.limit
            ),
        ),
        ToolDefinition(
            name=ToolName.RELATIONSHIP_DRILLDOWN.value,
            description="Paired (x, y) points between two columns, deterministically sampled.",
            input_model=models.RelationshipDrilldownInput,
            handler=lambda p: engine.relationship_drilldown(
                p.dataset_id, p.x_column, p.y_column, p.max_points
            ),
        ),
        ToolDefinition(
            name=ToolName.MISSING_VALUES_SUMMARY.value,
            description="Missing values per column and per row, with threshold breakdowns.",
            input_model=models.MissingValuesSummaryInput,
            handler=lambda p: engine.missing_values_summary(p.dataset_id),
        ),
        ToolDefinition(
            name=ToolName.GENERATE_EDA_REPORT.value,
            description=(
                "Structured EDA report outline to fill in with the results of the other tools."
            ),
            input_model=models.GenerateEdaReportInput,
            handler=lambda p: engine.generate_eda_report(p.dataset_id),
        ),
    ]


def _echo(status: str) -> ToolHandler:
    def handler(params: BaseModel) -> dict[str, Any]:
        return {"status": status, **params.model_dump(by_alias=True, mode="json")}

    return handler


def create_control_tools() -> list[ToolDefinition]:
    """Tools that only mark run milestones; they echo their validated input."""
    return [
        ToolDefinition(
            name=ToolName.CLARIFY_INTENT.value,
            description=(
                "Ask the user ONE concise clarifying question. Ends the turn; "
                "wait for the user's answer."
            ),
            input_model=models.ClarifyIntentInput,
            handler=_echo("awaiting_user"),
        ),
        ToolDefinition(
            name=ToolName.FINALIZE_PLAN.value,
            description="Submit the final query plan. Ends planning; SQL building starts next.",
            input_model=models.FinalizePlanInput,
            handler=_echo("plan_finalized"),
        ),
        ToolDefinition(
            name=ToolName.FINALIZE_BUILD.value,
            description="Submit the final SQL query. Ends building; execution starts next.",
            input_model=models.FinalizeBuildInput,
            handler=_echo("build_finalized"),
        ),
        ToolDefinition(
            name=ToolName.FINALIZE_NO_DATA.value,
            description=(
                "Answer without running a query: schema inquiries, out-of-scope questions, "
                "or dataset answers already complete. Ends the run."
            ),
            input_model=models.FinalizeNoDataInput,
            handler=_echo("no_data"),
        ),
        ToolDefinition(
            name=ToolName.FINALIZE_REPORT.value,
            description="Submit the final report for the user. Ends the run.",
            input_model=models.FinalizeReportInput,
            handler=_echo("report_finalized"),
        ),
    ]


def create_default_registry(engine: StatisticsEngine) -> ToolRegistry:
    """Registry with the statistics and control tools."""
    return ToolRegistry([*create_eda_tools(engine), *create_control_tools()])
