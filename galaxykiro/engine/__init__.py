"""Assessment engine: models, scoring, insights, visualization, sessions."""

from .assessment_engine import AssessmentEngine, ResultsSink
from .models import (
    AssessmentConfig,
    AssessmentResult,
    AssessmentState,
    CategoryScore,
    CategoryScoring,
    CustomScoring,
    Insight,
    MatrixRow,
    ProgressSummary,
    Question,
    QuestionOption,
    ResponseRecord,
    ResultTier,
    ScoreResult,
    ScoringCategory,
    SimpleScoring,
    VisualizationSpec,
    WeightedScoring,
)

__all__ = [
    "AssessmentConfig",
    "AssessmentEngine",
    "AssessmentResult",
    "AssessmentState",
    "CategoryScore",
    "CategoryScoring",
    "CustomScoring",
    "Insight",
    "MatrixRow",
    "ProgressSummary",
    "Question",
    "QuestionOption",
    "ResponseRecord",
    "ResultTier",
    "ResultsSink",
    "ScoreResult",
    "ScoringCategory",
    "SimpleScoring",
    "VisualizationSpec",
    "WeightedScoring",
]
