from __future__ import annotations

"""Schema constants and Pydantic models for Parquet-backed assessment results."""

from datetime import datetime, timezone
from typing import Optional

import pandas as pd
from pydantic import BaseModel, Field, field_validator, model_validator

# --- Constants ---

OVERALL_SCOPE = "overall"


DTYPES = {
    "result_id": "string",
    "assessment_id": "string",
    "user_id": "string",
    # timezone-aware UTC timestamps
    "completed_at": pd.DatetimeTZDtype(tz="UTC"),
    "scope": "string",
    "score": "float64",
    "max_possible": "float64",
    "percentage": "Int32",
    "weight": "float32",
    "tier": "string",
    "n_responses": "UInt16",
    "time_spent_s": "UInt32",
}


# --- Pydantic models ---

class ResultRow(BaseModel):
    """One scored scope of a completed assessment.

    ``scope`` is ``overall`` for the session total, otherwise a category id.
    """

    result_id: str
    assessment_id: str
    user_id: str
    completed_at: datetime
    scope: str = OVERALL_SCOPE
    score: float
    max_possible: float
    # Negative option scores can push a percentage below zero
    percentage: int = Field(ge=-(2**31), le=2**31 - 1)
    weight: float = Field(default=1.0, gt=0)
    tier: Optional[str] = None
    n_responses: int = Field(default=0, ge=0, le=65535)
    time_spent_s: int = Field(default=0, ge=0, le=4294967295)

    @field_validator("completed_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _tier_only_overall(self) -> "ResultRow":
        if self.tier is not None and self.scope != OVERALL_SCOPE:
            raise ValueError("tier is only recorded on the overall row")
        return self
