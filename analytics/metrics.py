from __future__ import annotations

"""Metric computations for per-row and per-assessment analytics."""

import numpy as np
import pandas as pd
from .config import AnalyticsConfig

BANDS = ["growth", "steady", "strength"]


def compute_metrics(df: pd.DataFrame, cfg: AnalyticsConfig) -> pd.DataFrame:
    """Compute ratio, time per response, speed factor, and percentage band.

    Returns a copy with added columns:
    - ratio, time_per_response_s, speed_factor, band
    """
    out = df.copy()
    mx = out["max_possible"].astype("float64").where(out["max_possible"] > 0)
    out["ratio"] = (out["score"].astype("float64") / mx).fillna(0.0).astype("float32")
    n = out["n_responses"].astype("float32").where(out["n_responses"] > 0, other=1.0)
    out["time_per_response_s"] = (out["time_spent_s"].astype("float32") / n).astype("float32")

    # Speed factor: exp(-alpha * t/T_ref), 1.0 for instant answers
    out["speed_factor"] = np.exp(-float(cfg.alpha) * (out["time_per_response_s"] / float(cfg.T_ref_s))).astype("float32")

    pct = out["percentage"].astype("float64")
    band = np.where(pct >= cfg.strength_from, "strength", np.where(pct < cfg.growth_below, "growth", "steady"))
    out["band"] = pd.Categorical(band, categories=BANDS)
    return out


def summarize_assessments(df: pd.DataFrame) -> pd.DataFrame:
    """Aggregate overall rows per assessment.

    Columns: attempts, users, mean_percentage, median_percentage, mean_time_s
    and one ``tier:<label>`` count column per tier seen.
    """
    overall = df[df["scope"].astype("string") == "overall"]
    if overall.empty:
        return pd.DataFrame(
            columns=["attempts", "users", "mean_percentage", "median_percentage", "mean_time_s"]
        ).rename_axis("assessment_id")
    pct = overall["percentage"].astype("float64")
    summary = (
        overall.assign(pct=pct, t=overall["time_spent_s"].astype("float64"))
        .groupby("assessment_id", observed=True)
        .agg(
            attempts=("result_id", "nunique"),
            users=("user_id", "nunique"),
            mean_percentage=("pct", "mean"),
            median_percentage=("pct", "median"),
            mean_time_s=("t", "mean"),
        )
    )
    tiers = pd.crosstab(overall["assessment_id"], overall["tier"].fillna("untiered"))
    tiers.columns = [f"tier:{c}" for c in tiers.columns]
    return summary.join(tiers).fillna(0)
