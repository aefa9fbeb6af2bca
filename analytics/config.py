from __future__ import annotations

"""Analytics configuration (hyperparameters) using Pydantic."""

from pydantic import BaseModel, Field, model_validator


class AnalyticsConfig(BaseModel):
    """Hyperparameters for analytics computations and smoothing.

    - alpha: speed penalty scale (>0)
    - T_ref_s: reference seconds per response (>0)
    - growth_below / strength_from: percentage band edges
    - smoothing_span: EWMA span in attempts (>1)
    """

    alpha: float = Field(0.5, gt=0)
    T_ref_s: float = Field(15.0, gt=0)
    growth_below: int = Field(40, ge=0, le=100)
    strength_from: int = Field(80, ge=0, le=100)
    smoothing_span: int = Field(5, gt=1)

    @model_validator(mode="after")
    def _bands_ordered(self) -> "AnalyticsConfig":
        if self.growth_below > self.strength_from:
            raise ValueError("growth_below must be <= strength_from")
        return self
