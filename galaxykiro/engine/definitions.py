from __future__ import annotations

"""Assessment definition files (YAML or JSON) validated with Pydantic.

Authors may use snake_case or the camelCase keys of the web client
(``scoringConfig``, ``resultTiers``, ``allowBackNavigation`` ...).

Validation beyond field types:
- question ids are unique; type-specific fields are present
  (options, min < max, matrix rows/columns, ranking items);
- category-based scoring names at least one category, every referenced
  question exists and no question sits in two categories;
- result tiers cover 0..100 without gaps or overlaps, so every rounded
  percentage maps to exactly one tier.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..errors import DefinitionError
from .models import (
    AssessmentConfig,
    CategoryScoring,
    MatrixRow,
    Question,
    QuestionOption,
    ResultTier,
    ScoringCategory,
    SimpleScoring,
    WeightedScoring,
)

QuestionType = Literal["multiple-choice", "scale", "slider", "text", "ranking", "matrix"]


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class OptionDefinition(_Model):
    id: str
    text: str = ""
    value: Union[int, float, str, None] = None
    score: Optional[float] = None

    def to_option(self) -> QuestionOption:
        value = self.value if self.value is not None else self.id
        return QuestionOption(id=self.id, text=self.text, value=value, score=self.score)


class RowDefinition(_Model):
    id: str
    text: str = ""


class QuestionDefinition(_Model):
    id: str
    type: QuestionType
    text: str
    required: bool = True
    description: Optional[str] = None
    category: Optional[str] = None
    weight: Optional[float] = Field(default=None, gt=0)
    options: List[OptionDefinition] = Field(default_factory=list)
    allow_multiple: bool = Field(default=False, alias="allowMultiple")
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = Field(default=None, gt=0)
    labels: Dict[str, str] = Field(default_factory=dict)
    rows: List[RowDefinition] = Field(default_factory=list)
    columns: List[OptionDefinition] = Field(default_factory=list)
    items: List[OptionDefinition] = Field(default_factory=list)
    placeholder: Optional[str] = None
    max_length: Optional[int] = Field(default=None, alias="maxLength", gt=0)

    @model_validator(mode="after")
    def _type_fields(self) -> "QuestionDefinition":
        if self.type == "multiple-choice" and not self.options:
            raise ValueError(f"question {self.id}: multiple-choice needs options")
        if self.type in ("scale", "slider"):
            if self.min is None or self.max is None:
                raise ValueError(f"question {self.id}: {self.type} needs min and max")
            if self.min >= self.max:
                raise ValueError(f"question {self.id}: min must be < max")
        if self.type == "matrix" and (not self.rows or not self.columns):
            raise ValueError(f"question {self.id}: matrix needs rows and columns")
        if self.type == "ranking" and not self.items:
            raise ValueError(f"question {self.id}: ranking needs items")
        return self

    def to_question(self) -> Question:
        return Question(
            id=self.id,
            type=self.type,
            text=self.text,
            required=self.required,
            description=self.description,
            category=self.category,
            weight=self.weight,
            options=tuple(o.to_option() for o in self.options),
            allow_multiple=self.allow_multiple,
            min=self.min,
            max=self.max,
            step=self.step,
            labels=dict(self.labels),
            rows=tuple(MatrixRow(id=r.id, text=r.text) for r in self.rows),
            columns=tuple(c.to_option() for c in self.columns),
            items=tuple(i.to_option() for i in self.items),
            placeholder=self.placeholder,
            max_length=self.max_length,
        )


class CategoryDefinition(_Model):
    id: str
    name: str
    weight: float = Field(default=1.0, gt=0)
    questions: List[str] = Field(default_factory=list)


class ScoringDefinition(_Model):
    type: Literal["simple", "weighted", "category-based"] = "simple"
    categories: List[CategoryDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _categories_present(self) -> "ScoringDefinition":
        if self.type == "category-based" and not self.categories:
            raise ValueError("category-based scoring needs at least one category")
        return self


class TierDefinition(_Model):
    min: float = Field(ge=0, le=100)
    max: float = Field(ge=0, le=100)
    label: str
    description: str = ""
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _ordered(self) -> "TierDefinition":
        if self.min > self.max:
            raise ValueError(f"tier {self.label}: min must be <= max")
        return self


class AssessmentDefinition(_Model):
    id: str
    title: str
    description: str = ""
    questions: List[QuestionDefinition] = Field(min_length=1)
    scoring: ScoringDefinition = Field(default_factory=ScoringDefinition, alias="scoringConfig")
    result_tiers: List[TierDefinition] = Field(default_factory=list, alias="resultTiers")
    allow_back_navigation: bool = Field(default=False, alias="allowBackNavigation")
    progress_saving: bool = Field(default=False, alias="progressSaving")
    time_limit: Optional[int] = Field(default=None, alias="timeLimit", gt=0)

    @model_validator(mode="after")
    def _cross_references(self) -> "AssessmentDefinition":
        ids = [q.id for q in self.questions]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"duplicate question ids: {', '.join(dupes)}")

        if self.scoring.type == "category-based":
            cat_ids = {c.id for c in self.scoring.categories}
            known = set(ids)
            for cat in self.scoring.categories:
                missing = [qid for qid in cat.questions if qid not in known]
                if missing:
                    raise ValueError(f"category {cat.id} references unknown questions: {', '.join(missing)}")
            for q in self.questions:
                if q.category is not None and q.category not in cat_ids:
                    raise ValueError(f"question {q.id} references unknown category {q.category}")
                owners = {c.id for c in self.scoring.categories if q.id in c.questions}
                if q.category is not None:
                    owners.add(q.category)
                if len(owners) > 1:
                    raise ValueError(f"question {q.id} belongs to several categories: {', '.join(sorted(owners))}")

        _check_tier_coverage(self.result_tiers)
        return self

    def to_config(self) -> AssessmentConfig:
        if self.scoring.type == "weighted":
            scoring: Any = WeightedScoring()
        elif self.scoring.type == "category-based":
            scoring = CategoryScoring(
                categories=tuple(
                    ScoringCategory(id=c.id, name=c.name, weight=c.weight, questions=tuple(c.questions))
                    for c in self.scoring.categories
                )
            )
        else:
            scoring = SimpleScoring()
        return AssessmentConfig(
            id=self.id,
            title=self.title,
            description=self.description,
            questions=tuple(q.to_question() for q in self.questions),
            scoring=scoring,
            result_tiers=tuple(
                ResultTier(
                    min=t.min,
                    max=t.max,
                    label=t.label,
                    description=t.description,
                    insights=tuple(t.insights),
                    recommendations=tuple(t.recommendations),
                )
                for t in self.result_tiers
            ),
            allow_back_navigation=self.allow_back_navigation,
            progress_saving=self.progress_saving,
            time_limit=self.time_limit,
        )


def _check_tier_coverage(tiers: List[TierDefinition]) -> None:
    """Every whole percentage 0..100 must fall in exactly one tier."""
    if not tiers:
        return
    for pct in range(101):
        owners = [t.label for t in tiers if t.min <= pct <= t.max]
        if len(owners) > 1:
            raise ValueError(f"result tiers {owners[0]} and {owners[1]} overlap at {pct}")
        if owners:
            continue
        below = any(t.max < pct for t in tiers)
        above = any(t.min > pct for t in tiers)
        if below and above:
            raise ValueError(f"result tiers leave a gap at {pct}")
        end = pct
        while end < 100 and not any(t.min <= end + 1 <= t.max for t in tiers):
            end += 1
        raise ValueError(f"result tiers leave {pct}..{end} uncovered")


def parse_definition(data: Dict[str, Any]) -> AssessmentDefinition:
    try:
        return AssessmentDefinition.model_validate(data)
    except ValidationError as exc:
        raise DefinitionError(str(exc)) from exc


def load_definition(path: str | Path) -> AssessmentDefinition:
    """Load and validate an assessment definition from a YAML or JSON file."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise DefinitionError(f"Definition file not found: {p}") from exc
    try:
        data = json.loads(text) if p.suffix.lower() == ".json" else yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise DefinitionError(f"Could not parse {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise DefinitionError(f"{p} does not contain an assessment mapping")
    return parse_definition(data)
