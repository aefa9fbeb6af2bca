from __future__ import annotations

"""Result formatting and JSON export."""

import json
from pathlib import Path

from ..engine.models import AssessmentResult


def write_result(result: AssessmentResult, path: str) -> None:
    """Write a result as JSON to path."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(result.to_json(), f, indent=2, default=str)


def format_summary(result: AssessmentResult) -> str:
    """Return a human-readable summary of a result."""
    scores = result.scores
    lines = [f"Score: {scores.total:g}/{scores.max_possible:g} ({scores.percentage}%)"]
    if scores.tier is not None:
        lines.append(f"Tier: {scores.tier.label}")
    for cat_id, cat in (scores.category_scores or {}).items():
        lines.append(f"  {cat_id}: {cat.percentage}% (weight {cat.weight:g})")
    for insight in result.insights:
        lines.append(f"- [{insight.priority}] {insight.title}: {insight.message}")
        for item in insight.action_items:
            lines.append(f"    * {item}")
    minutes, seconds = divmod(int(result.time_spent), 60)
    lines.append(f"Time spent: {minutes}m {seconds:02d}s")
    return "\n".join(lines)
