from __future__ import annotations

"""Chart-agnostic visualization payloads for completed scores."""

from .models import AssessmentConfig, ChartData, ChartDataset, ScoreResult, VisualizationSpec

GAUGE_COLOR = "rgba(34, 197, 94, 0.8)"
RADAR_FILL = "rgba(59, 130, 246, 0.2)"
RADAR_BORDER = "rgba(59, 130, 246, 1)"


def gauge(scores: ScoreResult) -> VisualizationSpec:
    return VisualizationSpec(
        chart_type="gauge",
        data=ChartData(
            labels=("Score",),
            datasets=(
                ChartDataset(
                    label="Overall Score",
                    data=(scores.percentage,),
                    background_color=(GAUGE_COLOR,),
                ),
            ),
        ),
    )


def radar(scores: ScoreResult, config: AssessmentConfig) -> VisualizationSpec:
    cats = config.categories
    per_cat = scores.category_scores or {}
    data = tuple(per_cat[c.id].percentage if c.id in per_cat else 0 for c in cats)
    return VisualizationSpec(
        chart_type="radar",
        data=ChartData(
            labels=tuple(c.name for c in cats),
            datasets=(
                ChartDataset(
                    label="Your Scores",
                    data=data,
                    background_color=(RADAR_FILL,),
                    border_color=(RADAR_BORDER,),
                ),
            ),
        ),
        options={"scale": {"min": 0, "max": 100}},
    )


def build_visualization(scores: ScoreResult, config: AssessmentConfig) -> VisualizationSpec:
    """Radar over category percentages when categories were scored, else a gauge."""
    if scores.category_scores and config.categories:
        return radar(scores, config)
    return gauge(scores)
