from __future__ import annotations

"""Smoothing utilities (EWMA by user)."""

import pandas as pd


def ewma_by_user(
    df: pd.DataFrame,
    value_col: str,
    span: int,
    group_cols: list[str] | None = None,
) -> pd.DataFrame:
    """Apply EWMA smoothing per user over attempt order.

    Groups default to (user_id, assessment_id, scope). Returns a copy of df
    with a new column f"{value_col}_smooth" and rows sorted by attempt_idx.
    """
    group_cols = group_cols or ["user_id", "assessment_id", "scope"]
    g = df.sort_values("attempt_idx", kind="stable").copy()
    smooth = g.groupby(group_cols, observed=True)[value_col].transform(
        lambda s: s.astype("float64").ewm(span=span).mean()
    )
    g[f"{value_col}_smooth"] = smooth.astype("float32")
    return g
