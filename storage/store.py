from __future__ import annotations

"""Parquet-backed store for assessment results using pandas + pyarrow.

Unit of data: (result x scope) rows, where scope is ``overall`` or a category.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from galaxykiro.engine.models import AssessmentResult

from .schema import DTYPES, OVERALL_SCOPE, ResultRow

logger = logging.getLogger(__name__)

DATA_FILE = "assessment_results.parquet"


def _empty_df() -> pd.DataFrame:
    return pd.DataFrame({k: pd.Series(dtype=v) for k, v in DTYPES.items()})


def init_store(data_dir: Path) -> None:
    """Ensure data directory and an empty Parquet file with correct schema exist."""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    path = data_dir / DATA_FILE
    if not path.exists():
        _empty_df().to_parquet(path, engine="pyarrow", compression="zstd", index=False)


def rows_from_result(result: AssessmentResult) -> list[ResultRow]:
    """Flatten a result into its overall row plus one row per category."""
    scores = result.scores
    common: dict[str, Any] = {
        "result_id": result.id,
        "assessment_id": result.assessment_id,
        "user_id": result.user_id,
        "completed_at": result.completed_at,
        "n_responses": len(result.responses),
        "time_spent_s": int(round(result.time_spent)),
    }
    rows = [
        ResultRow(
            **common,
            scope=OVERALL_SCOPE,
            score=scores.total,
            max_possible=scores.max_possible,
            percentage=scores.percentage,
            tier=scores.tier.label if scores.tier is not None else None,
        )
    ]
    for cat_id, cat in (scores.category_scores or {}).items():
        rows.append(
            ResultRow(
                **common,
                scope=cat_id,
                score=cat.score,
                max_possible=cat.max_possible,
                percentage=cat.percentage,
                weight=cat.weight,
            )
        )
    return rows


def validate_records(records: list[ResultRow]) -> pd.DataFrame:
    """Validate a list of ResultRow and return a DataFrame with proper dtypes.

    - Accepts models or plain dicts; dicts go through ``ResultRow`` validation.
    - Returns a pandas DataFrame with string and unsigned integer dtypes.
    """
    if not isinstance(records, list):
        raise TypeError("records must be a list[ResultRow]")
    rows = [r if isinstance(r, ResultRow) else ResultRow.model_validate(r) for r in records]
    if not rows:
        return _empty_df()
    df = pd.DataFrame([r.model_dump() for r in rows])
    return _fix_dtypes(df)


def _fix_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    for col, dt in DTYPES.items():
        if col not in df.columns:
            df[col] = pd.Series(pd.NA, index=df.index)
        df[col] = df[col].astype(dt)
    return df[list(DTYPES.keys())]


def append_results(df_new: pd.DataFrame, data_path: Path) -> None:
    """Append rows to the results table.

    - Reads existing, concatenates, fixes dtypes, drops rows already stored
      under the same (result_id, scope), and writes back.
    - Uses pyarrow with zstd compression.
    """
    data_path = Path(data_path)
    f = data_path / DATA_FILE
    df_old = pd.read_parquet(f, engine="pyarrow") if f.exists() else _empty_df()
    combined = pd.concat([_fix_dtypes(df_old), _fix_dtypes(df_new.copy())], ignore_index=True)
    combined = combined.drop_duplicates(subset=["result_id", "scope"], keep="last")
    combined.to_parquet(f, engine="pyarrow", compression="zstd", index=False)


def load_all(data_path: Path) -> pd.DataFrame:
    """Load the full results table, ensuring dtypes, and compute convenience columns.

    Adds:
    - ratio: float32 = score / max_possible (0 when nothing was scorable)
    - time_per_response_s: float32 = time_spent_s / n_responses
    """
    f = Path(data_path) / DATA_FILE
    if not f.exists():
        return _empty_df().assign(
            ratio=pd.Series(dtype="float32"), time_per_response_s=pd.Series(dtype="float32")
        )
    df = _fix_dtypes(pd.read_parquet(f, engine="pyarrow"))
    mx = df["max_possible"].where(df["max_possible"] > 0)
    df["ratio"] = (df["score"] / mx).fillna(0.0).astype("float32")
    n = df["n_responses"].astype("float32").where(df["n_responses"] > 0, other=1.0)
    df["time_per_response_s"] = (df["time_spent_s"].astype("float32") / n).astype("float32")
    return df


def query_assessment(
    df: pd.DataFrame,
    *,
    assessment_id: str,
    user_id: Optional[str] = None,
    scope: str = OVERALL_SCOPE,
) -> pd.DataFrame:
    """Filter rows for an assessment (and optionally a user) and sort by completed_at."""
    mask = (df["assessment_id"].astype("string") == assessment_id) & (df["scope"].astype("string") == scope)
    if user_id is not None:
        mask &= df["user_id"].astype("string") == user_id
    return df[mask.fillna(False)].sort_values("completed_at").reset_index(drop=True)


def export_ndjson(df: pd.DataFrame, out_path: Path) -> None:
    """Export a DataFrame to line-delimited JSON (NDJSON) for quick inspection."""
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_json(out_path, orient="records", lines=True, date_format="iso")


class ParquetResultSink:
    """Results sink that appends every completed assessment to the Parquet table."""

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)
        init_store(self.data_dir)

    def record(self, result: AssessmentResult) -> None:
        df = validate_records(rows_from_result(result))
        append_results(df, self.data_dir)
        logger.info("Stored result %s (%d rows) in %s", result.id, len(df), self.data_dir)
