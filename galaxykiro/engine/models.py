from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, model_validator

QUESTION_TYPES = ("multiple-choice", "scale", "slider", "text", "ranking", "matrix")
SCORED_TYPES = ("multiple-choice", "scale", "slider", "matrix")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: Any) -> datetime:
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class QuestionOption:
    id: str
    text: str
    value: Any
    score: Optional[float] = None

    def to_json(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "value": self.value, "score": self.score}

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "QuestionOption":
        return cls(
            id=str(data["id"]),
            text=str(data.get("text", "")),
            value=data.get("value"),
            score=data.get("score"),
        )


@dataclass(frozen=True)
class MatrixRow:
    id: str
    text: str


@dataclass(frozen=True)
class Question:
    id: str
    type: str
    text: str
    required: bool = True
    description: Optional[str] = None
    category: Optional[str] = None
    weight: Optional[float] = None
    options: Tuple[QuestionOption, ...] = ()
    allow_multiple: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    labels: Dict[str, str] = field(default_factory=dict)
    rows: Tuple[MatrixRow, ...] = ()
    columns: Tuple[QuestionOption, ...] = ()
    items: Tuple[QuestionOption, ...] = ()
    placeholder: Optional[str] = None
    max_length: Optional[int] = None

    @property
    def is_scored(self) -> bool:
        return self.type in SCORED_TYPES

    def option_for(self, answer: Any) -> Optional[QuestionOption]:
        """Match an answer against option values first, then option ids."""
        for opt in self.options:
            if opt.value == answer:
                return opt
        for opt in self.options:
            if opt.id == answer:
                return opt
        return None


@dataclass(frozen=True)
class ScoringCategory:
    id: str
    name: str
    weight: float = 1.0
    questions: Tuple[str, ...] = ()

    def contains(self, question: Question) -> bool:
        return question.category == self.id or question.id in self.questions


@dataclass(frozen=True)
class SimpleScoring:
    type: str = "simple"


@dataclass(frozen=True)
class WeightedScoring:
    type: str = "weighted"


@dataclass(frozen=True)
class CategoryScoring:
    categories: Tuple[ScoringCategory, ...] = ()
    type: str = "category-based"


@dataclass(frozen=True)
class CustomScoring:
    scorer: Callable[[List["ResponseRecord"], Tuple[Question, ...]], "ScoreResult"]
    type: str = "custom"


ScoringConfig = Union[SimpleScoring, WeightedScoring, CategoryScoring, CustomScoring]


@dataclass(frozen=True)
class ResultTier:
    min: float
    max: float
    label: str
    description: str
    insights: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def contains(self, percentage: float) -> bool:
        return self.min <= percentage <= self.max

    def to_json(self) -> Dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "label": self.label,
            "description": self.description,
            "insights": list(self.insights),
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class AssessmentConfig:
    id: str
    title: str
    description: str
    questions: Tuple[Question, ...]
    scoring: ScoringConfig = field(default_factory=SimpleScoring)
    result_tiers: Tuple[ResultTier, ...] = ()
    allow_back_navigation: bool = False
    progress_saving: bool = False
    time_limit: Optional[int] = None

    @property
    def categories(self) -> Tuple[ScoringCategory, ...]:
        if isinstance(self.scoring, CategoryScoring):
            return self.scoring.categories
        return ()


class SavedResponse(BaseModel):
    """Wire shape of one persisted response; wrong types fail validation."""

    model_config = ConfigDict(populate_by_name=True)

    question_id: StrictStr = Field(alias="questionId")
    answer: Any = None
    time_spent: float = Field(default=0, alias="timeSpent", ge=0)
    timestamp: Optional[datetime] = None


class SavedState(BaseModel):
    """Wire shape of a persisted session, checked before it is adopted."""

    model_config = ConfigDict(populate_by_name=True)

    assessment_id: StrictStr = Field(alias="assessmentId")
    user_id: StrictStr = Field(alias="userId")
    current_question_index: StrictInt = Field(default=0, alias="currentQuestionIndex")
    responses: List[SavedResponse] = Field(default_factory=list)
    started_at: datetime = Field(alias="startedAt")
    last_updated_at: Optional[datetime] = Field(default=None, alias="lastUpdatedAt")
    completion_rate: float = Field(default=0.0, alias="completionRate", ge=0, le=1)
    time_spent: float = Field(default=0, alias="timeSpent", ge=0)
    is_completed: StrictBool = Field(default=False, alias="isCompleted")

    @model_validator(mode="after")
    def _one_response_per_question(self) -> "SavedState":
        ids = [r.question_id for r in self.responses]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"several responses for {', '.join(dupes)}")
        return self


@dataclass
class ResponseRecord:
    question_id: str
    answer: Any
    time_spent: float = 0
    timestamp: datetime = field(default_factory=utcnow)

    def to_json(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "answer": self.answer,
            "timeSpent": self.time_spent,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_saved(cls, saved: SavedResponse) -> "ResponseRecord":
        return cls(
            question_id=saved.question_id,
            answer=saved.answer,
            time_spent=saved.time_spent,
            timestamp=_parse_ts(saved.timestamp) if saved.timestamp else utcnow(),
        )

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ResponseRecord":
        return cls.from_saved(SavedResponse.model_validate(data))


@dataclass
class AssessmentState:
    assessment_id: str
    user_id: str
    current_question_index: int = 0
    responses: List[ResponseRecord] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    last_updated_at: datetime = field(default_factory=utcnow)
    completion_rate: float = 0.0
    time_spent: float = 0
    is_completed: bool = False

    def response_for(self, question_id: str) -> Optional[ResponseRecord]:
        for r in self.responses:
            if r.question_id == question_id:
                return r
        return None

    def to_json(self) -> Dict[str, Any]:
        return {
            "assessmentId": self.assessment_id,
            "userId": self.user_id,
            "currentQuestionIndex": self.current_question_index,
            "responses": [r.to_json() for r in self.responses],
            "startedAt": self.started_at.isoformat(),
            "lastUpdatedAt": self.last_updated_at.isoformat(),
            "completionRate": self.completion_rate,
            "timeSpent": self.time_spent,
            "isCompleted": self.is_completed,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AssessmentState":
        """Rebuild a saved session.

        Raises:
            pydantic.ValidationError: (a ``ValueError``) for missing keys, wrong
                field types, negative times or repeated question ids.
        """
        saved = SavedState.model_validate(data)
        return cls(
            assessment_id=saved.assessment_id,
            user_id=saved.user_id,
            current_question_index=saved.current_question_index,
            responses=[ResponseRecord.from_saved(r) for r in saved.responses],
            started_at=_parse_ts(saved.started_at),
            last_updated_at=_parse_ts(saved.last_updated_at or saved.started_at),
            completion_rate=saved.completion_rate,
            time_spent=saved.time_spent,
            is_completed=saved.is_completed,
        )


@dataclass(frozen=True)
class CategoryScore:
    score: float
    weight: float
    percentage: int = 0
    max_possible: float = 0

    def to_json(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "weight": self.weight,
            "percentage": self.percentage,
            "maxPossible": self.max_possible,
        }


@dataclass(frozen=True)
class ScoreResult:
    total: float
    percentage: int
    breakdown: Dict[str, float] = field(default_factory=dict)
    category_scores: Optional[Dict[str, CategoryScore]] = None
    max_possible: float = 0
    tier: Optional[ResultTier] = None

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "total": self.total,
            "percentage": self.percentage,
            "breakdown": dict(self.breakdown),
            "maxPossible": self.max_possible,
        }
        if self.category_scores is not None:
            data["categoryScores"] = {k: v.to_json() for k, v in self.category_scores.items()}
        if self.tier is not None:
            data["tier"] = self.tier.to_json()
        return data


@dataclass(frozen=True)
class Insight:
    category: str
    type: str
    title: str
    message: str
    priority: str = "medium"
    action_items: Tuple[str, ...] = ()

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "category": self.category,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "priority": self.priority,
        }
        if self.action_items:
            data["actionItems"] = list(self.action_items)
        return data


@dataclass(frozen=True)
class ChartDataset:
    label: str
    data: Tuple[float, ...]
    background_color: Tuple[str, ...] = ()
    border_color: Tuple[str, ...] = ()

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"label": self.label, "data": list(self.data)}
        if self.background_color:
            payload["backgroundColor"] = list(self.background_color)
        if self.border_color:
            payload["borderColor"] = list(self.border_color)
        return payload


@dataclass(frozen=True)
class ChartData:
    labels: Tuple[str, ...]
    datasets: Tuple[ChartDataset, ...]


@dataclass(frozen=True)
class VisualizationSpec:
    chart_type: str
    data: ChartData
    options: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return {
            "chartType": self.chart_type,
            "data": {
                "labels": list(self.data.labels),
                "datasets": [d.to_json() for d in self.data.datasets],
            },
            "options": dict(self.options),
        }


@dataclass(frozen=True)
class ProgressSummary:
    current_question: int
    total_questions: int
    completion_rate: float
    time_spent: float
    can_go_back: bool
    can_go_forward: bool


@dataclass(frozen=True)
class AssessmentResult:
    id: str
    assessment_id: str
    user_id: str
    responses: Tuple[ResponseRecord, ...]
    scores: ScoreResult
    insights: Tuple[Insight, ...]
    visualization_data: VisualizationSpec
    completed_at: datetime
    time_spent: float

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "assessmentId": self.assessment_id,
            "userId": self.user_id,
            "responses": [r.to_json() for r in self.responses],
            "scores": self.scores.to_json(),
            "insights": [i.to_json() for i in self.insights],
            "visualizationData": self.visualization_data.to_json(),
            "completedAt": self.completed_at.isoformat(),
            "timeSpent": self.time_spent,
        }
