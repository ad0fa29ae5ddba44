# src/tasks/quality_scores/score_calculator.py
"""
Weighted quality score calculator.
Computes per-study weighted scores for one scope under the two missing-value
policies and derives the missing-excluded figures from them.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

from .exceptions import EmptyItemSet, EmptyStudySet, InvalidScoreValue
from .score_table import ImportanceWeights, Scope, ScoreTable
from .weight_validator import WeightValidator

logger = logging.getLogger(__name__)

ALLOWED_SCORES = (0.0, 0.5, 1.0)
PERCENT_DECIMALS = 2


class MissingPolicy(Enum):
    """How a missing (N/A) score is filled before weighting."""
    TREAT_AS_FULL = 1.0
    TREAT_AS_ZERO = 0.0

    @property
    def fill_value(self) -> float:
        return self.value


@dataclass
class StudyScoreSummary:
    """Weighted scores for one study within one scope."""
    study: str
    scope: Scope
    score_missing_as_present: float
    score_missing_as_absent: float
    max_score: float
    max_score_excluding_missing: float
    percent_missing_as_present: float
    percent_missing_as_absent: float
    # Zero-filled numerator over the missing-adjusted maximum. Kept as published;
    # a score that truly excludes missing items would also drop them from the numerator.
    percent_missing_excluded: float
    missing_items: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def has_missing(self) -> bool:
        return bool(self.missing_items)


class WeightedScoreCalculator:
    """
    Aggregates item scores into weighted study scores.
    """

    def __init__(self, weight_validator: WeightValidator = None):
        self.weight_validator = weight_validator or WeightValidator()

    def compute_summaries(self, score_table: ScoreTable, weights: ImportanceWeights,
                          scope: Scope = Scope.TOTAL) -> List[StudyScoreSummary]:
        """
        Compute one summary per study, in table order, for a single scope.

        Args:
            score_table: Scores keyed by (study, item)
            weights: Importance weight per item
            scope: Item scope to aggregate over

        Returns:
            List of StudyScoreSummary

        Raises:
            EmptyStudySet, EmptyItemSet, InvalidScoreValue, MissingWeight, InvalidWeight
        """
        if not score_table.studies:
            raise EmptyStudySet()

        items = score_table.items_for(scope)
        if not items:
            raise EmptyItemSet(f"No {scope.value} items in score table")

        validation = self.weight_validator.validate(
            items, weights, known_item_ids=[item.item_id for item in score_table.items]
        )
        for warning in validation.validation_warnings:
            logger.warning(f"[{scope.value}] {warning}")

        scores = self._validated_scores(score_table.scores_for(scope))
        weight_vector = weights.as_series(list(validation.weights))

        max_score = float(weight_vector.sum())
        if max_score == 0:
            raise EmptyItemSet(f"{scope.value} item weights sum to zero")

        present, present_warnings = self._weighted_totals(scores, weight_vector, MissingPolicy.TREAT_AS_FULL)
        absent, absent_warnings = self._weighted_totals(scores, weight_vector, MissingPolicy.TREAT_AS_ZERO)

        summaries = []
        for study in score_table.studies:
            score_present = float(present[study])
            score_absent = float(absent[study])
            max_excluding = max_score - (score_present - score_absent)

            if np.isclose(max_excluding, 0.0):
                raise EmptyItemSet(
                    f"All weighted {scope.value} items are missing for study '{study}'; "
                    f"cannot compute the missing-excluded percentage",
                    study=study
                )

            warnings = present_warnings.get(study, []) + absent_warnings.get(study, [])
            missing_items = [item_id for item_id in scores.index if pd.isna(scores.at[item_id, study])]

            summaries.append(StudyScoreSummary(
                study=study,
                scope=scope,
                score_missing_as_present=score_present,
                score_missing_as_absent=score_absent,
                max_score=max_score,
                max_score_excluding_missing=max_excluding,
                percent_missing_as_present=_percent(score_present, max_score),
                percent_missing_as_absent=_percent(score_absent, max_score),
                percent_missing_excluded=_percent(score_absent, max_excluding),
                missing_items=missing_items,
                warnings=warnings
            ))

        logger.debug(f"Computed {len(summaries)} {scope.value} summaries (max score {max_score:.2f})")
        return summaries

    def _validated_scores(self, scores: pd.DataFrame) -> pd.DataFrame:
        """Check every cell is in the score domain and return a float frame with NaN for missing."""
        numeric = pd.DataFrame(np.nan, index=scores.index, columns=scores.columns, dtype=float)

        for study in scores.columns:
            for item_id in scores.index:
                value = scores.at[item_id, study]
                if _is_missing(value):
                    continue
                if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
                    raise InvalidScoreValue(study, item_id, value)
                if float(value) not in ALLOWED_SCORES:
                    raise InvalidScoreValue(study, item_id, value)
                numeric.at[item_id, study] = float(value)

        return numeric

    def _weighted_totals(self, scores: pd.DataFrame, weight_vector: pd.Series,
                         policy: MissingPolicy) -> Tuple[pd.Series, Dict[str, List[str]]]:
        """
        Fill missing scores per policy, weight them and sum per study.

        A product that is still NaN after filling contributes zero and is reported
        as a warning for that study.
        """
        products = scores.fillna(policy.fill_value).mul(weight_vector, axis=0)

        warnings = {}
        nan_products = products.isna()
        for study in products.columns[nan_products.any(axis=0).values]:
            bad_items = list(products.index[nan_products[study].values])
            message = f"{policy.name}: non-numeric weighted score for items {bad_items} counted as 0"
            logger.warning(f"Study '{study}': {message}")
            warnings[study] = [message]

        return products.sum(axis=0, skipna=True), warnings


def compute_summaries(score_table: ScoreTable, weights: ImportanceWeights,
                      scope: Scope = Scope.TOTAL) -> List[StudyScoreSummary]:
    """Module-level shortcut for WeightedScoreCalculator().compute_summaries."""
    return WeightedScoreCalculator().compute_summaries(score_table, weights, scope)


def _percent(numerator: float, denominator: float) -> float:
    return round(numerator / denominator * 100, PERCENT_DECIMALS)


def _is_missing(value) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
