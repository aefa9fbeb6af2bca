from __future__ import annotations

"""Adaptive question system: engagement-driven pacing heuristics.

Every function here is pure: it reads an ``EngagementMetrics`` snapshot (and
optionally a short response history) and returns recommendations. Nothing is
persisted and the assessment engine does not depend on this module.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Literal, Optional, Sequence

import numpy as np

from ..util.randomness import choose

Trend = Literal["increasing", "decreasing", "stable"]
Complexity = Literal["simple", "moderate", "complex"]


@dataclass(frozen=True)
class AdaptiveSettings:
    optimal_response_time_ms: float = 15000
    fatigue_threshold: int = 30
    attention_span_window: int = 5
    mid_assessment_break: int = 25
    energy_floor: float = 20

    @classmethod
    def from_config(cls, cfg: Dict) -> "AdaptiveSettings":
        section = cfg.get("adaptive", {}) or {}
        return cls(
            optimal_response_time_ms=float(section.get("optimal_response_time_ms", 15000)),
            fatigue_threshold=int(section.get("fatigue_threshold", 30)),
            attention_span_window=int(section.get("attention_span_window", 5)),
            mid_assessment_break=int(section.get("mid_assessment_break", 25)),
            energy_floor=float(section.get("energy_floor", 20)),
        )


DEFAULT_SETTINGS = AdaptiveSettings()


@dataclass(frozen=True)
class EngagementMetrics:
    user_energy_level: float = 100
    average_response_time: float = 0
    interaction_quality: float = 100
    preferred_interaction_types: List[str] = field(default_factory=list)
    attention_span: float = 100
    fatigue_level: float = 0
    engagement_trend: Trend = "stable"


@dataclass(frozen=True)
class QuestionHistoryEntry:
    response_time: float
    interaction_type: str
    quality: float
    timestamp: Optional[datetime] = None
    question_id: str = ""


@dataclass(frozen=True)
class AdaptiveRecommendation:
    type: Literal["interaction_type", "break", "pace_adjustment", "encouragement"]
    action: str
    reason: str
    priority: Literal["high", "medium", "low"]


PROGRESS_MESSAGES = (
    "You're making incredible progress! Your self-awareness is growing with each question.",
    "Amazing insights emerging! You're in the top 10% of people who complete assessments like this.",
    "Your thoughtful responses show real emotional intelligence. Keep going!",
    "You're unlocking deeper self-knowledge with every answer. This is powerful work.",
    "Your engagement level is inspiring! You're clearly committed to growth.",
)

ENERGY_MESSAGES = (
    "Take your time - there's no rush. Your authentic responses are what matter most.",
    "You're doing great! Consider taking a deep breath and continuing at your own pace.",
    "Your persistence is admirable. Each question brings you closer to valuable insights.",
    "Quality over speed - your thoughtful approach will yield better results.",
)

MIN_TYPE_SAMPLES = 2


def quality_trend(recent: Sequence[QuestionHistoryEntry]) -> Literal["improving", "declining", "stable"]:
    """Compare the mean quality of the older and newer halves of the window."""
    if len(recent) < 3:
        return "stable"
    half = len(recent) // 2
    first = np.mean([q.quality for q in recent[:half]])
    second = np.mean([q.quality for q in recent[half:]])
    diff = float(second - first)
    if diff > 10:
        return "improving"
    if diff < -10:
        return "declining"
    return "stable"


def rank_interaction_types(history: Sequence[QuestionHistoryEntry]) -> List[str]:
    """Interaction types with enough samples, best mean quality first."""
    by_type: Dict[str, List[float]] = {}
    for q in history:
        by_type.setdefault(q.interaction_type, []).append(q.quality)
    averages = [
        (t, float(np.mean(vals)))
        for t, vals in by_type.items()
        if len(vals) >= MIN_TYPE_SAMPLES
    ]
    averages.sort(key=lambda item: item[1], reverse=True)
    return [t for t, _ in averages]


def suggest_optimal_interaction_type(
    metrics: EngagementMetrics, history: Sequence[QuestionHistoryEntry]
) -> Optional[str]:
    ranked = rank_interaction_types(history)
    return ranked[0] if ranked else None


def analyze_engagement(
    metrics: EngagementMetrics,
    history: Sequence[QuestionHistoryEntry],
    settings: AdaptiveSettings = DEFAULT_SETTINGS,
) -> List[AdaptiveRecommendation]:
    recs: List[AdaptiveRecommendation] = []

    if metrics.user_energy_level < settings.fatigue_threshold:
        recs.append(
            AdaptiveRecommendation(
                type="break",
                action="suggest_energy_break",
                reason=f"Energy level at {metrics.user_energy_level:g}% - user needs rejuvenation",
                priority="high",
            )
        )

    if metrics.average_response_time > settings.optimal_response_time_ms * 2:
        recs.append(
            AdaptiveRecommendation(
                type="interaction_type",
                action="switch_to_faster_interactions",
                reason="Response times indicate cognitive overload",
                priority="high",
            )
        )

    window = list(history)[-settings.attention_span_window:]
    if quality_trend(window) == "declining":
        recs.append(
            AdaptiveRecommendation(
                type="encouragement",
                action="show_progress_celebration",
                reason="Interaction quality declining - user needs motivation",
                priority="medium",
            )
        )

    best = suggest_optimal_interaction_type(metrics, history)
    if best:
        recs.append(
            AdaptiveRecommendation(
                type="interaction_type",
                action=f"prefer_{best}",
                reason=f"User shows high engagement with {best} interactions",
                priority="low",
            )
        )
    return recs


def should_trigger_energy_break(
    metrics: EngagementMetrics,
    question_index: int,
    last_break_index: int,
    settings: AdaptiveSettings = DEFAULT_SETTINGS,
) -> bool:
    if question_index == settings.mid_assessment_break:
        return True
    since_break = question_index - last_break_index
    if metrics.user_energy_level < 40 and since_break > 10:
        return True
    if metrics.interaction_quality < 60 and since_break > 7:
        return True
    return False


def generate_encouragement(
    metrics: EngagementMetrics, progress: float, rng: Optional[random.Random] = None
) -> str:
    if metrics.user_energy_level < 50:
        return choose(ENERGY_MESSAGES, rng)
    return choose(PROGRESS_MESSAGES, rng)


_LADDER: List[Complexity] = ["simple", "moderate", "complex"]


def adjust_question_complexity(metrics: EngagementMetrics, base: Complexity) -> Complexity:
    """Step complexity down for tired users, up for highly engaged ones."""
    idx = _LADDER.index(base)
    if metrics.user_energy_level < 40 or metrics.interaction_quality < 60:
        return _LADDER[max(idx - 1, 0)]
    if metrics.user_energy_level > 80 and metrics.interaction_quality > 85:
        return _LADDER[min(idx + 1, len(_LADDER) - 1)]
    return base


def predict_optimal_duration(
    metrics: EngagementMetrics, settings: AdaptiveSettings = DEFAULT_SETTINGS
) -> int:
    """Suggested session length in minutes around a 15 minute baseline."""
    base_minutes = 15
    speed = metrics.average_response_time / settings.optimal_response_time_ms
    time_adj = float(np.clip(speed, 0.7, 1.5))
    energy = metrics.user_energy_level / 100
    energy_adj = float(np.clip(1 + (1 - energy) * 0.3, 0.8, 1.2))
    return int(np.floor(base_minutes * time_adj * energy_adj + 0.5))


def generate_personalized_tips(
    metrics: EngagementMetrics, settings: AdaptiveSettings = DEFAULT_SETTINGS
) -> List[str]:
    tips: List[str] = []
    if metrics.average_response_time > settings.optimal_response_time_ms * 1.5:
        tips.append("Trust your instincts - your first response is often the most authentic.")
    if metrics.user_energy_level < 60:
        tips.append("Consider taking short breaks between sections to maintain focus.")
    if metrics.interaction_quality > 85:
        tips.append("Your engagement level is excellent! You're getting maximum value from this assessment.")
    tips.append("Remember: there are no right or wrong answers, only authentic insights about yourself.")
    return tips


def interaction_quality(response_time_ms: float) -> float:
    """Quality score for one answer from how long it took."""
    if response_time_ms < 5000:
        return 60
    if response_time_ms > 120000:
        return 70
    if 10000 <= response_time_ms <= 60000:
        return 100
    return 85


def estimate_energy(question_index: int, quality: float, floor: float = DEFAULT_SETTINGS.energy_floor) -> float:
    """Energy decays with questions answered and recovers with good answers.

    Clamped to ``floor..100``. The floor sits below the break (40) and
    encouragement (50) thresholds so long sessions can reach them.
    """
    return float(np.clip(100 - question_index * 1.2 + (quality - 50) * 0.5, floor, 100))
