"""Adaptive question system: engagement metrics and pacing advice."""

from .adaptive_system import (
    AdaptiveRecommendation,
    AdaptiveSettings,
    EngagementMetrics,
    QuestionHistoryEntry,
    adjust_question_complexity,
    analyze_engagement,
    estimate_energy,
    generate_encouragement,
    generate_personalized_tips,
    interaction_quality,
    predict_optimal_duration,
    should_trigger_energy_break,
    suggest_optimal_interaction_type,
)
from .tracker import EngagementTracker

__all__ = [
    "AdaptiveRecommendation",
    "AdaptiveSettings",
    "EngagementMetrics",
    "EngagementTracker",
    "QuestionHistoryEntry",
    "adjust_question_complexity",
    "analyze_engagement",
    "estimate_energy",
    "generate_encouragement",
    "generate_personalized_tips",
    "interaction_quality",
    "predict_optimal_duration",
    "should_trigger_energy_break",
    "suggest_optimal_interaction_type",
]
