from __future__ import annotations

"""Result tier selection and personalized insight generation."""

import logging
from typing import List, Optional, Sequence

from .models import AssessmentConfig, Insight, ResultTier, ScoreResult

logger = logging.getLogger(__name__)

STRENGTH_THRESHOLD = 80
GROWTH_THRESHOLD = 40


def select_tier(tiers: Sequence[ResultTier], percentage: float) -> Optional[ResultTier]:
    for tier in tiers:
        if tier.contains(percentage):
            return tier
    return None


def tier_insights(tier: ResultTier) -> List[Insight]:
    insights = [
        Insight(
            category="overall",
            type="recommendation",
            title=f"You're a {tier.label}",
            message=tier.description,
            priority="high",
            action_items=tuple(tier.recommendations),
        )
    ]
    for text in tier.insights:
        insights.append(
            Insight(category="overall", type="strength", title="Key Insight", message=text, priority="medium")
        )
    return insights


def category_insights(scores: ScoreResult, config: AssessmentConfig) -> List[Insight]:
    if not scores.category_scores:
        return []
    names = {c.id: c.name for c in config.categories}
    insights: List[Insight] = []
    for cat_id, cat_score in scores.category_scores.items():
        name = names.get(cat_id)
        if name is None:
            continue
        pct = cat_score.percentage
        if pct >= STRENGTH_THRESHOLD:
            insights.append(
                Insight(
                    category=cat_id,
                    type="strength",
                    title=f"Strong {name}",
                    message=f"You scored {pct}% in {name}, indicating strong capabilities in this area.",
                    priority="medium",
                )
            )
        elif pct <= GROWTH_THRESHOLD:
            insights.append(
                Insight(
                    category=cat_id,
                    type="opportunity",
                    title=f"Growth Opportunity in {name}",
                    message=f"Your {name} score of {pct}% suggests significant room for improvement.",
                    priority="high",
                    action_items=(f"Focus on developing your {name.lower()} skills",),
                )
            )
    return insights


def generate_insights(scores: ScoreResult, config: AssessmentConfig) -> List[Insight]:
    """Tier insights first, then per-category strengths and opportunities.

    A percentage no tier covers yields no tier insights; definitions loaded
    through ``load_definition`` cannot reach that branch.
    """
    insights: List[Insight] = []
    tier = scores.tier or select_tier(config.result_tiers, scores.percentage)
    if tier is not None:
        insights.extend(tier_insights(tier))
    elif config.result_tiers:
        logger.warning(
            "No result tier of assessment %s covers %s%%", config.id, scores.percentage
        )
    insights.extend(category_insights(scores, config))
    return insights
