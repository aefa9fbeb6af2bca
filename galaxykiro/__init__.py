"""galaxykiro package initialization.

Assessment scoring engine with an adaptive question layer. The engine,
definitions loader and errors are re-exported for convenience.
"""

from __future__ import annotations

from .engine.assessment_engine import AssessmentEngine
from .engine.definitions import load_definition, parse_definition
from .errors import (
    AssessmentCompletedError,
    AssessmentError,
    ConfigError,
    DefinitionError,
    NotCompleteError,
    NotInitializedError,
    UnknownQuestionError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "AssessmentEngine",
    "load_definition",
    "parse_definition",
    "AssessmentError",
    "AssessmentCompletedError",
    "ConfigError",
    "DefinitionError",
    "NotCompleteError",
    "NotInitializedError",
    "UnknownQuestionError",
]
