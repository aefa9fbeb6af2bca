from __future__ import annotations

"""Results Manager: in-memory sink for completed assessments.

Implements the engine's ``record(result)`` sink interface. The Parquet
sink in ``storage.store`` exposes the same call for durable history.
"""

from typing import Any, Dict, List, Optional

from ..engine.models import AssessmentResult


class ResultManager:
    def __init__(self) -> None:
        self._results: Dict[str, AssessmentResult] = {}

    def record(self, result: AssessmentResult) -> None:
        self._results[result.id] = result

    def get(self, result_id: str) -> Optional[AssessmentResult]:
        return self._results.get(result_id)

    def results_for(self, user_id: str, assessment_id: Optional[str] = None) -> List[AssessmentResult]:
        out = [
            r
            for r in self._results.values()
            if r.user_id == user_id and (assessment_id is None or r.assessment_id == assessment_id)
        ]
        out.sort(key=lambda r: r.completed_at)
        return out

    def latest(self, user_id: str, assessment_id: str) -> Optional[AssessmentResult]:
        results = self.results_for(user_id, assessment_id)
        return results[-1] if results else None

    def summarize(self, assessment_id: str) -> Dict[str, Any]:
        # Attempts, distinct users, mean percentage and tier counts
        results = [r for r in self._results.values() if r.assessment_id == assessment_id]
        tiers: Dict[str, int] = {}
        for r in results:
            label = r.scores.tier.label if r.scores.tier is not None else "untiered"
            tiers[label] = tiers.get(label, 0) + 1
        mean = sum(r.scores.percentage for r in results) / len(results) if results else 0.0
        return {
            "assessment_id": assessment_id,
            "attempts": len(results),
            "users": len({r.user_id for r in results}),
            "mean_percentage": mean,
            "tiers": tiers,
        }
