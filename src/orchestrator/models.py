"""Tool input models.

Field names are snake_case in Python and camelCase on the wire; the JSON
schema of each model is the input shape advertised to the model.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.config.constants import Granularity, ProblemType, SortDirection


class ToolInput(BaseModel):
    """Base for tool inputs: camelCase aliases, snake_case also accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DatasetInput(ToolInput):
    dataset_id: str = Field(..., min_length=1, description="Id of the uploaded dataset")


# --- Dataset statistics ---


class DescribeDatasetInput(DatasetInput):
    pass


class SummarizeColumnsInput(DatasetInput):
    pass


class ValueCountsInput(DatasetInput):
    column: str = Field(..., min_length=1, description="Column to count values of")
    limit: int = Field(default=10, ge=1, le=50, description="Maximum number of values returned")


class TimeSeriesSliceInput(DatasetInput):
    date_column: str = Field(..., min_length=1, description="Column holding dates or timestamps")
    value_column: str = Field(..., min_length=1, description="Numeric column to average per bucket")
    granularity: Granularity = Field(
        default=Granularity.RAW, description="Bucket size: raw, day, week or month"
    )
    moving_average_window: int | None = Field(
        default=None, ge=2, le=60, description="Trailing moving average window, in points"
    )


class GroupedSummaryInput(DatasetInput):
    group_by: list[str] = Field(..., min_length=1, description="Columns to group by")
    metrics: list[str] = Field(..., min_length=1, description="Numeric columns to aggregate")


class TopSegmentsInput(DatasetInput):
    group_by_column: str = Field(..., min_length=1, description="Column defining the segments")
    metric_column: str = Field(..., min_length=1, description="Numeric column to rank by mean")
    direction: SortDirection = Field(default=SortDirection.DESC, description="asc or desc")
    limit: int = Field(default=10, ge=1, le=50, description="Maximum number of segments returned")


class RelationshipDrilldownInput(DatasetInput):
    x_column: str = Field(..., min_length=1, description="Column for the X axis")
    y_column: str = Field(..., min_length=1, description="Column for the Y axis")
    max_points: int = Field(
        default=1000, ge=10, le=5000, description="Maximum number of points returned"
    )


class CorrelationMatrixInput(DatasetInput):
    pass


class TargetAnalysisInput(DatasetInput):
    target_column: str = Field(..., min_length=1, description="Column to analyze as the target")
    problem_type: ProblemType = Field(
        default=ProblemType.AUTO, description="auto, regression or classification"
    )
    max_features: int = Field(
        default=10, ge=1, le=50, description="Maximum number of related features returned"
    )


class MissingValuesSummaryInput(DatasetInput):
    pass


class GenerateEdaReportInput(DatasetInput):
    pass


# --- Control tools ---


class ClarifyIntentInput(ToolInput):
    question: str = Field(..., min_length=1, description="One concise clarifying question")
    options: list[str] = Field(default_factory=list, description="Suggested answers, if any")


class FinalizePlanInput(ToolInput):
    intent: dict[str, Any] = Field(
        ..., description="metrics, dimensions, structuredFilters, grain and optional timeRange"
    )
    selected_entities: list[str] = Field(..., min_length=1, description="Entities to use")
    required_fields: list[str] = Field(default_factory=list, description="Fields to reference")
    join_graph: list[dict[str, Any]] = Field(
        default_factory=list, description="Join edges: from, to, on, relationship"
    )
    assumptions: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    catalog_restarts: int = Field(default=0, ge=0)


class FinalizeBuildInput(ToolInput):
    sql: str = Field(..., min_length=1, description="Final SQL query")
    rationale: str | None = Field(default=None, description="Why this query answers the question")

    @field_validator("sql")
    @classmethod
    def strip_sql(cls, v: str) -> str:
        return v.strip()


class FinalizeNoDataInput(ToolInput):
    message: str = Field(..., min_length=1, description="Explanation shown to the user")
    reason: str | None = Field(default=None, description="schema_inquiry, out_of_scope, ...")


class FinalizeReportInput(ToolInput):
    summary: str = Field(..., min_length=1, description="Final answer for the user")
    key_findings: list[str] = Field(default_factory=list)
    caveats: list[str] = Field(default_factory=list)


class FreeformInput(ToolInput):
    """Input for tools that declare no fixed shape; unknown keys are kept."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")
