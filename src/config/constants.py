"""
Constants, enums, and static values.
"""

from enum import Enum


class Phase(str, Enum):
    """Ordered stages of an agent run."""

    PLANNING = "planning"
    BUILDING = "building"
    EXECUTION = "execution"
    REPORTING = "reporting"


PHASE_ORDER: tuple[Phase, ...] = (
    Phase.PLANNING,
    Phase.BUILDING,
    Phase.EXECUTION,
    Phase.REPORTING,
)


class ToolName(str, Enum):
    """Tool names as advertised to the model."""

    # Semantic catalog exploration (external)
    READ_ENTITY_YAML_RAW = "ReadEntityYamlRaw"
    LOAD_ENTITIES_BULK = "LoadEntitiesBulk"
    SCAN_ENTITY_PROPERTIES = "ScanEntityProperties"
    ASSESS_ENTITY_COVERAGE = "AssessEntityCoverage"
    SEARCH_CATALOG = "SearchCatalog"
    SEARCH_SCHEMA = "SearchSchema"

    # Dataset statistics
    DESCRIBE_DATASET = "DescribeDataset"
    SUMMARIZE_COLUMNS = "SummarizeColumns"
    VALUE_COUNTS = "ValueCounts"
    TIME_SERIES_SLICE = "TimeSeriesSlice"
    CORRELATION_MATRIX = "CorrelationMatrix"
    TARGET_ANALYSIS = "TargetAnalysis"
    GROUPED_SUMMARY = "GroupedSummary"
    TOP_SEGMENTS = "TopSegments"
    RELATIONSHIP_DRILLDOWN = "RelationshipDrilldown"
    MISSING_VALUES_SUMMARY = "MissingValuesSummary"
    GENERATE_EDA_REPORT = "GenerateEdaReport"

    # Control
    CLARIFY_INTENT = "ClarifyIntent"
    FINALIZE_PLAN = "FinalizePlan"
    FINALIZE_NO_DATA = "FinalizeNoData"
    FINALIZE_BUILD = "FinalizeBuild"
    FINALIZE_REPORT = "FinalizeReport"

    # SQL building / execution (external)
    BUILD_SQL = "BuildSQL"
    VALIDATE_SQL = "ValidateSQL"
    ESTIMATE_COST = "EstimateCost"
    EXECUTE_SQL_WITH_REPAIR = "ExecuteSQLWithRepair"

    # Reporting (external)
    SANITY_CHECK = "SanityCheck"
    FORMAT_RESULTS = "FormatResults"
    EXPLAIN_RESULTS = "ExplainResults"


class ColumnType(str, Enum):
    """Inferred dataset column types."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    UNKNOWN = "unknown"


class CardinalityBucket(str, Enum):
    """Coarse distinct-value classes."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class ChartType(str, Enum):
    """Chart types for visualization."""

    BAR = "bar"
    LINE = "line"


class Granularity(str, Enum):
    """Time bucketing for time series slices."""

    RAW = "raw"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class ProblemType(str, Enum):
    """Target analysis problem types."""

    AUTO = "auto"
    REGRESSION = "regression"
    CLASSIFICATION = "classification"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class StopReason(str, Enum):
    """Why an agent run ended."""

    TERMINAL_TOOL = "terminal_tool"
    STEP_LIMIT = "step_limit"
    NO_TOOL_CALLS = "no_tool_calls"
    CANCELLED = "cancelled"
