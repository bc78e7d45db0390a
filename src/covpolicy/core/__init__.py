from covpolicy.core.aggregate import (
    AggregationInput,
    CoverageAggregator,
    aggregate_by_domain,
    build_domain_excludes,
    normalize_coverage_map,
    total_stat,
)
from covpolicy.core.analytics import (
    CompareResult,
    DebtItem,
    DebtResult,
    FileDelta,
    Suggestion,
    compare_coverage,
    coverage_debt,
    suggest_thresholds,
)
from covpolicy.core.classify import (
    Classification,
    FileClassification,
    PathClassifier,
    PathNormalizer,
    resolve_domain_dirs,
)
from covpolicy.core.config import LOG_FORMAT, Config, get_schema
from covpolicy.core.events import (
    CoverageEvaluatedEvent,
    CoverageEvent,
    CoverageImprovedEvent,
    CoverageRegressedEvent,
    EventCollector,
    ThresholdViolatedEvent,
)
from covpolicy.core.history import DomainEntry, History, HistoryEntry, Trend, calculate_trend
from covpolicy.core.model import (
    Annotation,
    CoverageStat,
    Domain,
    DomainResult,
    FileResult,
    FileRule,
    Policy,
    Result,
)
from covpolicy.core.pipeline import CheckOutcome, CoverageContext, check, classify, snapshot
from covpolicy.core.policy import PolicyEvaluator, evaluate, evaluate_file_rules
from covpolicy.core.trends import (
    DomainTrend,
    Forecast,
    HistoryAnalysis,
    TrendAnalysis,
    TrendAnalysisService,
)
from covpolicy.core.types import Status, SuggestStrategy, TrendDirection
from covpolicy.core.values import DomainName, FilePath, Percentage, Threshold, round1

__all__ = [
    "LOG_FORMAT",
    "AggregationInput",
    "Annotation",
    "CheckOutcome",
    "Classification",
    "CompareResult",
    "Config",
    "CoverageAggregator",
    "CoverageContext",
    "CoverageEvaluatedEvent",
    "CoverageEvent",
    "CoverageImprovedEvent",
    "CoverageRegressedEvent",
    "CoverageStat",
    "DebtItem",
    "DebtResult",
    "Domain",
    "DomainEntry",
    "DomainName",
    "DomainResult",
    "DomainTrend",
    "EventCollector",
    "FileClassification",
    "FileDelta",
    "FilePath",
    "FileResult",
    "FileRule",
    "Forecast",
    "History",
    "HistoryAnalysis",
    "HistoryEntry",
    "PathClassifier",
    "PathNormalizer",
    "Percentage",
    "Policy",
    "PolicyEvaluator",
    "Result",
    "Status",
    "SuggestStrategy",
    "Suggestion",
    "Threshold",
    "ThresholdViolatedEvent",
    "Trend",
    "TrendAnalysis",
    "TrendAnalysisService",
    "TrendDirection",
    "aggregate_by_domain",
    "build_domain_excludes",
    "calculate_trend",
    "check",
    "classify",
    "compare_coverage",
    "coverage_debt",
    "evaluate",
    "evaluate_file_rules",
    "get_schema",
    "normalize_coverage_map",
    "resolve_domain_dirs",
    "round1",
    "snapshot",
    "suggest_thresholds",
    "total_stat",
]
