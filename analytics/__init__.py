from .config import AnalyticsConfig
from .metrics import compute_metrics, summarize_assessments
from .prepare import load_and_prepare
from .smoothing import ewma_by_user

__all__ = [
    "AnalyticsConfig",
    "compute_metrics",
    "summarize_assessments",
    "load_and_prepare",
    "ewma_by_user",
]
