# src/tasks/quality_scores/__init__.py
"""
Quality Scores Package

Weighted quality-assessment scoring for the Methods, Reporting and Total item scopes,
with report export and chart generation.
"""

from .exceptions import (
    QualityScoreError,
    InvalidScoreValue,
    MissingWeight,
    InvalidWeight,
    EmptyStudySet,
    EmptyItemSet,
    WorkbookFormatError
)
from .score_table import Item, ItemCategory, Scope, ScoreTable, ImportanceWeights
from .weight_validator import WeightValidator, WeightValidationResult
from .score_calculator import (
    MissingPolicy,
    StudyScoreSummary,
    WeightedScoreCalculator,
    compute_summaries
)
from .report_utils import summaries_to_dataframe
from .config import load_config
from .score_pipeline import QualityScorePipeline, PipelineResult

__all__ = [
    # Data model
    'Item',
    'ItemCategory',
    'Scope',
    'ScoreTable',
    'ImportanceWeights',

    # Scoring
    'MissingPolicy',
    'StudyScoreSummary',
    'WeightedScoreCalculator',
    'WeightValidator',
    'WeightValidationResult',
    'compute_summaries',
    'summaries_to_dataframe',

    # Pipeline
    'QualityScorePipeline',
    'PipelineResult',
    'load_config',

    # Errors
    'QualityScoreError',
    'InvalidScoreValue',
    'MissingWeight',
    'InvalidWeight',
    'EmptyStudySet',
    'EmptyItemSet',
    'WorkbookFormatError'
]

__version__ = "1.0.0"
