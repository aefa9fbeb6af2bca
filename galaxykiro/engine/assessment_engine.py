from __future__ import annotations

"""Assessment Engine: owns one assessment-taking session end to end.

Lifecycle: uninitialized -> active -> completed. The engine is the only
mutator of its ``AssessmentState``; callers receive copies. Persistence goes
through a key/value ``ProgressStore`` and is always caller-triggered.
"""

import copy
import json
import logging
from dataclasses import replace
from typing import Any, List, Optional, Protocol

from ..app.explain import trace as xtrace
from ..errors import (
    AssessmentCompletedError,
    NotCompleteError,
    NotInitializedError,
    UnknownQuestionError,
)
from ..storage.progress_store import MemoryProgressStore, ProgressStore, progress_key
from . import insights as insight_gen
from . import scoring
from .models import (
    AssessmentConfig,
    AssessmentResult,
    AssessmentState,
    Insight,
    ProgressSummary,
    Question,
    ResponseRecord,
    ScoreResult,
    VisualizationSpec,
    utcnow,
)
from .visualization import build_visualization

logger = logging.getLogger(__name__)


class ResultsSink(Protocol):
    def record(self, result: AssessmentResult) -> None: ...


class AssessmentEngine:
    def __init__(
        self,
        config: AssessmentConfig,
        store: Optional[ProgressStore] = None,
        results_sink: Optional[ResultsSink] = None,
    ) -> None:
        self.config = config
        self.store = store if store is not None else MemoryProgressStore()
        self.results_sink = results_sink
        self._state: Optional[AssessmentState] = None

    # --- state access ---

    @property
    def is_initialized(self) -> bool:
        return self._state is not None

    def snapshot(self) -> Optional[AssessmentState]:
        """Deep copy of the session state, or None before initialization."""
        return copy.deepcopy(self._state)

    def _require_state(self) -> AssessmentState:
        if self._state is None:
            raise NotInitializedError()
        return self._state

    def _key(self, user_id: str) -> str:
        return progress_key(self.config.id, user_id)

    # --- lifecycle ---

    async def initialize_assessment(self, user_id: str) -> AssessmentState:
        """Start a fresh session; any in-memory session is replaced."""
        now = utcnow()
        self._state = AssessmentState(
            assessment_id=self.config.id,
            user_id=user_id,
            started_at=now,
            last_updated_at=now,
        )
        xtrace("assessment_initialized", {"assessment": self.config.id, "user": user_id})
        return self.snapshot()

    # --- navigation ---

    def get_current_question(self) -> Optional[Question]:
        if self._state is None:
            return None
        idx = self._state.current_question_index
        if 0 <= idx < len(self.config.questions):
            return self.config.questions[idx]
        return None

    def get_question_by_id(self, question_id: str) -> Optional[Question]:
        for q in self.config.questions:
            if q.id == question_id:
                return q
        return None

    def next_question(self) -> Optional[Question]:
        if self._state is None:
            return None
        if self._state.current_question_index + 1 < len(self.config.questions):
            self._state.current_question_index += 1
            return self.get_current_question()
        return None

    def previous_question(self) -> Optional[Question]:
        if self._state is None or not self.config.allow_back_navigation:
            return None
        if self._state.current_question_index > 0:
            self._state.current_question_index -= 1
            return self.get_current_question()
        return None

    # --- responses & progress ---

    async def submit_response(self, question_id: str, answer: Any, time_spent: float = 0) -> None:
        """Record an answer; resubmitting replaces it and adds the time spent."""
        state = self._require_state()
        if state.is_completed:
            raise AssessmentCompletedError()
        question = self.get_question_by_id(question_id)
        if question is None:
            raise UnknownQuestionError(question_id)
        if time_spent < 0:
            raise ValueError("time_spent must be >= 0")
        scoring.check_answer(question, answer)

        record = ResponseRecord(question_id=question_id, answer=answer, time_spent=time_spent)
        for i, existing in enumerate(state.responses):
            if existing.question_id == question_id:
                state.responses[i] = record
                break
        else:
            state.responses.append(record)

        state.time_spent += time_spent
        state.last_updated_at = record.timestamp
        state.completion_rate = self.calculate_completion_rate()

    def _answered_ids(self) -> set[str]:
        state = self._require_state()
        known = {q.id for q in self.config.questions}
        return {r.question_id for r in state.responses} & known

    def calculate_completion_rate(self) -> float:
        total = len(self.config.questions)
        if total == 0:
            return 0.0
        return len(self._answered_ids()) / total

    def is_complete(self) -> bool:
        answered = self._answered_ids()
        return all(q.id in answered for q in self.config.questions if q.required)

    def get_progress_summary(self) -> ProgressSummary:
        state = self._require_state()
        idx = state.current_question_index
        return ProgressSummary(
            current_question=idx + 1,
            total_questions=len(self.config.questions),
            completion_rate=self.calculate_completion_rate(),
            time_spent=state.time_spent,
            can_go_back=self.config.allow_back_navigation and idx > 0,
            can_go_forward=idx + 1 < len(self.config.questions),
        )

    # --- results ---

    def calculate_scores(self) -> ScoreResult:
        state = self._require_state()
        scores = scoring.calculate_scores(self.config, state.responses)
        if scores.tier is None:
            tier = insight_gen.select_tier(self.config.result_tiers, scores.percentage)
            if tier is not None:
                scores = replace(scores, tier=tier)
        return scores

    def generate_insights(self, scores: ScoreResult) -> List[Insight]:
        return insight_gen.generate_insights(scores, self.config)

    def generate_visualization_data(self, scores: ScoreResult) -> VisualizationSpec:
        return build_visualization(scores, self.config)

    async def complete_assessment(self) -> AssessmentResult:
        state = self._require_state()
        if state.is_completed:
            raise AssessmentCompletedError()
        if not self.is_complete():
            raise NotCompleteError()

        scores = self.calculate_scores()
        insights = self.generate_insights(scores)
        visualization = self.generate_visualization_data(scores)
        completed_at = utcnow()
        result = AssessmentResult(
            id=f"result_{self.config.id}_{state.user_id}_{int(completed_at.timestamp() * 1000)}",
            assessment_id=self.config.id,
            user_id=state.user_id,
            responses=tuple(copy.deepcopy(state.responses)),
            scores=scores,
            insights=tuple(insights),
            visualization_data=visualization,
            completed_at=completed_at,
            time_spent=state.time_spent,
        )

        # The session stays active when the sink raises
        if self.results_sink is not None:
            self.results_sink.record(result)

        state.is_completed = True
        state.last_updated_at = completed_at
        state.completion_rate = self.calculate_completion_rate()

        xtrace(
            "assessment_completed",
            {"assessment": self.config.id, "user": state.user_id, "percentage": scores.percentage},
        )
        return result

    # --- persistence ---

    async def save_progress(self) -> bool:
        """Write the session to the store; False when progress saving is off."""
        state = self._require_state()
        if not self.config.progress_saving:
            return False
        state.last_updated_at = utcnow()
        state.completion_rate = self.calculate_completion_rate()
        self.store.set_item(self._key(state.user_id), json.dumps(state.to_json()))
        xtrace("progress_saved", {"key": self._key(state.user_id)})
        return True

    async def load_assessment_state(self, user_id: str) -> Optional[AssessmentState]:
        """Adopt a saved session; None when absent, malformed, or foreign."""
        key = self._key(user_id)
        raw = self.store.get_item(key)
        if raw is None:
            return None
        try:
            state = AssessmentState.from_json(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding malformed progress under %s: %s", key, exc)
            return None
        if state.assessment_id != self.config.id or state.user_id != user_id:
            logger.warning("Progress under %s belongs to %s/%s", key, state.assessment_id, state.user_id)
            return None
        try:
            for r in state.responses:
                question = self.get_question_by_id(r.question_id)
                if question is not None:
                    scoring.check_answer(question, r.answer)
        except ValueError as exc:
            logger.warning("Discarding progress under %s with an invalid answer: %s", key, exc)
            return None

        last = max(len(self.config.questions) - 1, 0)
        state.current_question_index = min(max(state.current_question_index, 0), last)
        self._state = state
        state.completion_rate = self.calculate_completion_rate()
        xtrace("progress_loaded", {"key": key, "index": state.current_question_index})
        return self.snapshot()

    async def clear_progress(self, user_id: Optional[str] = None) -> None:
        """Delete the saved slot and drop the matching in-memory session."""
        if user_id is None:
            user_id = self._require_state().user_id
        self.store.remove_item(self._key(user_id))
        if self._state is not None and self._state.user_id == user_id:
            self._state = None
