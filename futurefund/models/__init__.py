"""
Data Models Package

All Pydantic models used by the FutureFund engine.
Data flowing between pipeline nodes must conform to these schemas.
"""

from futurefund.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from futurefund.models.execution import (
    ActiveRun,
    DateRange,
    ExecutionMetadata,
    NodeError,
    PhaseRecord,
    PipelineInput,
    PipelineResult,
    ProgressEvent,
    ResultMetadata,
    RunStatus,
    SimulationParameters,
)
from futurefund.models.ranking import (
    ComparisonEntry,
    OutcomeAnalysis,
    OutcomeScore,
    RankedOption,
    RankingConstraints,
    SimulationOutcome,
    Tier,
    UserPreferences,
)
from futurefund.models.recommendation import (
    ActionItem,
    AdvancedInsights,
    Alternative,
    AnalysisReport,
    CreativeSolution,
    DependencyGraph,
    DependencyNode,
    LLMInsights,
    OptimalPathway,
    OptimizationInsights,
    Opportunity,
    PerformanceGains,
    Recommendation,
    RiskAssessment,
    RiskProfile,
    ScenarioTemplate,
    StrategicRecommendation,
    TimelineRecommendation,
    TimelineRisk,
)
from futurefund.models.scenario import (
    Account,
    AdvisoryItem,
    BalancePoint,
    CashFlowChanges,
    CombinedEffects,
    Conflict,
    ConflictAnalysis,
    FeasibilityAssessment,
    FinancialContext,
    FinancialEffects,
    MonteCarloResult,
    MonteCarloStatistics,
    MonteCarloTrial,
    Percentiles,
    RiskBand,
    RiskTolerance,
    Scenario,
    ScenarioImpact,
    ScenarioType,
    Severity,
    Synergy,
    ValidationIssue,
    ValidationResult,
    ViabilityFactors,
)

__all__ = [
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Execution models
    "ActiveRun",
    "DateRange",
    "ExecutionMetadata",
    "NodeError",
    "PhaseRecord",
    "PipelineInput",
    "PipelineResult",
    "ProgressEvent",
    "ResultMetadata",
    "RunStatus",
    "SimulationParameters",
    # Ranking models
    "ComparisonEntry",
    "OutcomeAnalysis",
    "OutcomeScore",
    "RankedOption",
    "RankingConstraints",
    "SimulationOutcome",
    "Tier",
    "UserPreferences",
    # Recommendation models
    "ActionItem",
    "AdvancedInsights",
    "Alternative",
    "AnalysisReport",
    "CreativeSolution",
    "DependencyGraph",
    "DependencyNode",
    "LLMInsights",
    "OptimalPathway",
    "OptimizationInsights",
    "Opportunity",
    "PerformanceGains",
    "Recommendation",
    "RiskAssessment",
    "RiskProfile",
    "ScenarioTemplate",
    "StrategicRecommendation",
    "TimelineRecommendation",
    "TimelineRisk",
    # Scenario models
    "Account",
    "AdvisoryItem",
    "BalancePoint",
    "CashFlowChanges",
    "CombinedEffects",
    "Conflict",
    "ConflictAnalysis",
    "FeasibilityAssessment",
    "FinancialContext",
    "FinancialEffects",
    "MonteCarloResult",
    "MonteCarloStatistics",
    "MonteCarloTrial",
    "Percentiles",
    "RiskBand",
    "RiskTolerance",
    "Scenario",
    "ScenarioImpact",
    "ScenarioType",
    "Severity",
    "Synergy",
    "ValidationIssue",
    "ValidationResult",
    "ViabilityFactors",
]
