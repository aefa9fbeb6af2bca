from __future__ import annotations

"""Scoring strategies: one pure function per scoring variant.

Unscored question types (text, ranking) contribute to neither the total nor
the maximum. Maximums are taken over every scored question of the assessment,
so a partially answered session scores against the full assessment.
"""

import math
from typing import Any, Dict, Iterable, List, Sequence

from .models import (
    AssessmentConfig,
    CategoryScore,
    CategoryScoring,
    CustomScoring,
    Question,
    ResponseRecord,
    ScoreResult,
    ScoringCategory,
    SimpleScoring,
    WeightedScoring,
)


def round_percentage(value: float) -> int:
    """Round half up, so 72.5 -> 73 rather than banker's rounding."""
    return int(math.floor(value + 0.5))


def percentage_of(total: float, max_possible: float) -> int:
    if max_possible <= 0:
        return 0
    return round_percentage(total / max_possible * 100)


def _number(answer: Any) -> float:
    if isinstance(answer, (int, float)):
        return answer
    try:
        return float(answer)
    except (TypeError, ValueError):
        return 0


def _column_score(question: Question, value: Any) -> float:
    for col in question.columns:
        if col.value == value or col.id == value:
            return col.score or 0
    return 0


def question_max(question: Question) -> float:
    """Maximum attainable raw score for a single question."""
    if question.type == "multiple-choice":
        scores = [opt.score or 0 for opt in question.options]
        if not scores:
            return 0
        if question.allow_multiple:
            return sum(s for s in scores if s > 0)
        return max(scores)
    if question.type in ("scale", "slider"):
        return question.max or 0
    if question.type == "matrix":
        cols = [col.score or 0 for col in question.columns]
        return len(question.rows) * max(cols) if cols else 0
    return 0


def question_score(question: Question, answer: Any) -> float:
    """Raw score of one answer; 0 for unscored types or unmatched answers."""
    if question.type == "multiple-choice":
        if isinstance(answer, (list, tuple)):
            total = 0
            for a in answer:
                opt = question.option_for(a)
                if opt is not None:
                    total += opt.score or 0
            return total
        opt = question.option_for(answer)
        return (opt.score or 0) if opt is not None else 0
    if question.type in ("scale", "slider"):
        return _number(answer)
    if question.type == "matrix":
        if not isinstance(answer, dict):
            return 0
        return sum(_column_score(question, answer.get(row.id)) for row in question.rows)
    return 0


def check_answer(question: Question, answer: Any) -> None:
    """Reject answers no option, row or range of the question can hold.

    Raises:
        ValueError: for out-of-range scale/slider values, choices that match
            no option, or matrix cells outside the declared rows and columns.
    """
    if question.type in ("scale", "slider"):
        if isinstance(answer, bool):
            raise ValueError(f"question {question.id}: expected a number, got {answer!r}")
        try:
            value = float(answer)
        except (TypeError, ValueError):
            raise ValueError(f"question {question.id}: expected a number, got {answer!r}") from None
        lo = question.min if question.min is not None else -math.inf
        hi = question.max if question.max is not None else math.inf
        if not (lo <= value <= hi):
            raise ValueError(f"question {question.id}: {value:g} is outside {lo:g}..{hi:g}")
    elif question.type == "multiple-choice":
        picked = list(answer) if isinstance(answer, (list, tuple)) else [answer]
        if len(picked) > 1 and not question.allow_multiple:
            raise ValueError(f"question {question.id}: only one choice is allowed")
        unknown = [a for a in picked if question.option_for(a) is None]
        if unknown:
            raise ValueError(f"question {question.id}: no option matches {unknown[0]!r}")
    elif question.type == "matrix" and isinstance(answer, dict):
        rows = {r.id for r in question.rows}
        for row_id, value in answer.items():
            if row_id not in rows:
                raise ValueError(f"question {question.id}: unknown row {row_id!r}")
            if not any(c.value == value or c.id == value for c in question.columns):
                raise ValueError(f"question {question.id}: no column matches {value!r}")


def _weight(question: Question) -> float:
    return question.weight if question.weight is not None else 1


def _by_question(responses: Iterable[ResponseRecord]) -> Dict[str, ResponseRecord]:
    return {r.question_id: r for r in responses}


def score_simple(questions: Sequence[Question], responses: Iterable[ResponseRecord]) -> ScoreResult:
    answered = _by_question(responses)
    total: float = 0
    max_possible: float = 0
    breakdown: Dict[str, float] = {}
    for q in questions:
        if not q.is_scored:
            continue
        max_possible += question_max(q)
        resp = answered.get(q.id)
        if resp is None:
            continue
        score = question_score(q, resp.answer)
        total += score
        breakdown[q.id] = score
    return ScoreResult(
        total=total,
        percentage=percentage_of(total, max_possible),
        breakdown=breakdown,
        max_possible=max_possible,
    )


def score_weighted(questions: Sequence[Question], responses: Iterable[ResponseRecord]) -> ScoreResult:
    answered = _by_question(responses)
    total: float = 0
    max_possible: float = 0
    breakdown: Dict[str, float] = {}
    for q in questions:
        if not q.is_scored:
            continue
        w = _weight(q)
        max_possible += question_max(q) * w
        resp = answered.get(q.id)
        if resp is None:
            continue
        score = question_score(q, resp.answer) * w
        total += score
        breakdown[q.id] = score
    return ScoreResult(
        total=total,
        percentage=percentage_of(total, max_possible),
        breakdown=breakdown,
        max_possible=max_possible,
    )


def score_by_category(
    questions: Sequence[Question],
    responses: Iterable[ResponseRecord],
    categories: Sequence[ScoringCategory],
) -> ScoreResult:
    answered = _by_question(responses)
    total: float = 0
    max_possible: float = 0
    breakdown: Dict[str, float] = {}
    category_scores: Dict[str, CategoryScore] = {}
    for cat in categories:
        cat_total: float = 0
        cat_max: float = 0
        for q in questions:
            if not q.is_scored or not cat.contains(q):
                continue
            cat_max += question_max(q)
            resp = answered.get(q.id)
            if resp is None:
                continue
            score = question_score(q, resp.answer)
            cat_total += score
            breakdown[q.id] = score
        category_scores[cat.id] = CategoryScore(
            score=cat_total,
            weight=cat.weight,
            percentage=percentage_of(cat_total, cat_max),
            max_possible=cat_max,
        )
        total += cat_total * cat.weight
        max_possible += cat_max * cat.weight
    return ScoreResult(
        total=total,
        percentage=percentage_of(total, max_possible),
        breakdown=breakdown,
        category_scores=category_scores,
        max_possible=max_possible,
    )


def calculate_scores(config: AssessmentConfig, responses: List[ResponseRecord]) -> ScoreResult:
    scoring = config.scoring
    if isinstance(scoring, SimpleScoring):
        return score_simple(config.questions, responses)
    if isinstance(scoring, WeightedScoring):
        return score_weighted(config.questions, responses)
    if isinstance(scoring, CategoryScoring):
        return score_by_category(config.questions, responses, scoring.categories)
    if isinstance(scoring, CustomScoring):
        return scoring.scorer(list(responses), config.questions)
    raise TypeError(f"Unsupported scoring configuration: {scoring!r}")
