from __future__ import annotations

"""Engagement tracking: turns per-question observations into metrics."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np

from ..engine.models import utcnow
from .adaptive_system import (
    DEFAULT_SETTINGS,
    AdaptiveSettings,
    EngagementMetrics,
    QuestionHistoryEntry,
    Trend,
    analyze_engagement,
    rank_interaction_types,
)

QUALITY_HISTORY_SIZE = 10
ENERGY_HISTORY_SIZE = 20
TREND_THRESHOLD = 5


class EngagementTracker:
    """Rolling question history with bounded quality and energy windows."""

    def __init__(self, settings: AdaptiveSettings = DEFAULT_SETTINGS) -> None:
        self.settings = settings
        self.history: List[QuestionHistoryEntry] = []
        self.quality_history: List[float] = []
        self.energy_history: List[float] = []

    def record_response(
        self,
        question_id: str,
        response_time: float,
        interaction_type: str,
        quality: float,
        timestamp: Optional[datetime] = None,
    ) -> None:
        self.history.append(
            QuestionHistoryEntry(
                response_time=response_time,
                interaction_type=interaction_type,
                quality=quality,
                timestamp=timestamp or utcnow(),
                question_id=question_id,
            )
        )
        self.quality_history.append(quality)
        if len(self.quality_history) > QUALITY_HISTORY_SIZE:
            self.quality_history.pop(0)

    def update_energy_level(self, level: float) -> None:
        self.energy_history.append(float(level))
        if len(self.energy_history) > ENERGY_HISTORY_SIZE:
            self.energy_history.pop(0)

    def _trend(self) -> Trend:
        if len(self.quality_history) < 4:
            return "stable"
        half = len(self.quality_history) // 2
        diff = float(np.mean(self.quality_history[half:]) - np.mean(self.quality_history[:half]))
        if diff > TREND_THRESHOLD:
            return "increasing"
        if diff < -TREND_THRESHOLD:
            return "decreasing"
        return "stable"

    def _attention_span(self) -> float:
        window = self.settings.attention_span_window
        if len(self.history) < window:
            return 100.0
        recent = [q.quality for q in self.history[-window:]]
        # Steady quality reads as sustained attention
        return max(50.0, 100.0 - float(np.var(recent)) * 2)

    def current_metrics(self) -> EngagementMetrics:
        avg_rt = float(np.mean([q.response_time for q in self.history])) if self.history else 0.0
        quality = float(np.mean(self.quality_history)) if self.quality_history else 100.0
        energy = self.energy_history[-1] if self.energy_history else 100.0
        return EngagementMetrics(
            user_energy_level=energy,
            average_response_time=avg_rt,
            interaction_quality=quality,
            preferred_interaction_types=rank_interaction_types(self.history)[:3],
            attention_span=self._attention_span(),
            fatigue_level=100.0 - energy,
            engagement_trend=self._trend(),
        )

    def interaction_type_breakdown(self) -> Dict[str, Dict[str, float]]:
        """Per interaction type: count and mean quality / response time."""
        out: Dict[str, Dict[str, float]] = {}
        types = sorted({q.interaction_type for q in self.history})
        for t in types:
            entries = [q for q in self.history if q.interaction_type == t]
            out[t] = {
                "count": len(entries),
                "average_quality": float(np.mean([q.quality for q in entries])),
                "average_response_time": float(np.mean([q.response_time for q in entries])),
            }
        return out

    def analytics(self) -> Dict[str, Any]:
        metrics = self.current_metrics()
        return {
            "total_questions": len(self.history),
            "average_response_time": metrics.average_response_time,
            "interaction_type_breakdown": self.interaction_type_breakdown(),
            "quality_trend": list(self.quality_history),
            "energy_trend": list(self.energy_history),
            "recommendations": analyze_engagement(metrics, self.history, self.settings),
        }
