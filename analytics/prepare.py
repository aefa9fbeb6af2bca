from __future__ import annotations

"""Load Parquet results and compute derived metrics."""

from pathlib import Path
import pandas as pd
from .config import AnalyticsConfig
from .metrics import compute_metrics


def load_and_prepare(parquet_path: Path, cfg: AnalyticsConfig) -> pd.DataFrame:
    """Read results Parquet and compute metrics with consistent dtypes.

    - Sorts by (completed_at, result_id).
    - Computes metrics and adds a stable attempt index 'attempt_idx'
      plus a per-user, per-assessment attempt counter 'user_attempt'.
    """
    df = pd.read_parquet(parquet_path)
    df = df.sort_values(["completed_at", "result_id"], kind="stable").reset_index(drop=True)
    df = compute_metrics(df, cfg)
    df["attempt_idx"] = pd.factorize(df["result_id"])[0]
    first = df.groupby(["user_id", "assessment_id"], observed=True)["attempt_idx"].transform("min")
    df["user_attempt"] = (
        df.groupby(["user_id", "assessment_id"], observed=True)["attempt_idx"].rank(method="dense").astype(int)
    )
    df["is_first_attempt"] = df["attempt_idx"] == first
    return df
