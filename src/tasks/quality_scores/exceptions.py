# src/tasks/quality_scores/exceptions.py
"""
Exceptions raised while validating and aggregating quality-assessment scores.
Every error is fatal for the scope being computed; the pipeline catches them per scope.
"""

from typing import Any, Optional


class QualityScoreError(Exception):
    """Base class for all quality score errors."""


class InvalidScoreValue(QualityScoreError):
    """A score cell holds a value outside {0, 0.5, 1, missing}."""

    def __init__(self, study: str, item: str, value: Any):
        self.study = study
        self.item = item
        self.value = value
        super().__init__(
            f"Invalid score {value!r} for study '{study}', item '{item}' "
            f"(allowed: 0, 0.5, 1 or missing)"
        )


class MissingWeight(QualityScoreError):
    """An item has no importance weight."""

    def __init__(self, item: str):
        self.item = item
        super().__init__(f"No importance weight for item '{item}'")


class InvalidWeight(QualityScoreError):
    """An importance weight is negative or not numeric."""

    def __init__(self, item: str, value: Any):
        self.item = item
        self.value = value
        super().__init__(f"Invalid importance weight {value!r} for item '{item}'")


class EmptyStudySet(QualityScoreError):
    """The score table contains no studies."""

    def __init__(self, message: str = "Score table contains no studies"):
        super().__init__(message)


class EmptyItemSet(QualityScoreError):
    """
    Nothing left to normalise against: the scope has no items, its weights sum
    to zero, or every item is missing for a study.
    """

    def __init__(self, message: str, study: Optional[str] = None):
        self.study = study
        super().__init__(message)


class WorkbookFormatError(QualityScoreError):
    """The input spreadsheet does not follow the expected layout."""
