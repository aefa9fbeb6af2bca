from __future__ import annotations

"""Exception types raised by the assessment engine and its loaders."""


class AssessmentError(Exception):
    """Base class for assessment engine failures."""


class NotInitializedError(AssessmentError):
    def __init__(self, message: str = "Assessment not initialized") -> None:
        super().__init__(message)


class NotCompleteError(AssessmentError):
    def __init__(self, message: str = "Assessment not complete") -> None:
        super().__init__(message)


class AssessmentCompletedError(AssessmentError):
    def __init__(self, message: str = "Assessment already completed") -> None:
        super().__init__(message)


class UnknownQuestionError(AssessmentError, KeyError):
    def __init__(self, question_id: str) -> None:
        super().__init__(f"Unknown question id: {question_id}")
        self.question_id = question_id

    def __str__(self) -> str:
        return str(self.args[0])


class DefinitionError(AssessmentError, ValueError):
    """An assessment definition file is missing or invalid."""


class ConfigError(AssessmentError):
    """Application configuration could not be loaded."""
