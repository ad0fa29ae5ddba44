# src/tasks/quality_scores/weight_validator.py
"""
Weight validator for quality-assessment items.
Checks that every item in a scope has exactly one usable importance weight.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .exceptions import InvalidWeight, MissingWeight
from .score_table import ImportanceWeights, Item

logger = logging.getLogger(__name__)


@dataclass
class WeightValidationResult:
    """Container for weight validation results."""
    weights: Dict[str, float]  # item -> weight, in item order
    total_weight: float
    zero_weight_items: List[str]
    unused_weight_items: List[str]
    validation_warnings: List[str]


class WeightValidator:
    """
    Validates importance weights against the items of a scope.

    Weights are fixed by the instrument, so nothing is normalised or replaced:
    a missing or unusable weight is an input error.
    """

    def validate(self, items: Sequence[Item], weights: ImportanceWeights,
                 known_item_ids: Optional[Sequence[str]] = None) -> WeightValidationResult:
        """
        Validate weights for the given items.

        Args:
            items: Items of the scope being scored
            weights: Importance weights keyed by item id
            known_item_ids: Every item id of the instrument; weights matching none
                of them are reported as warnings. Defaults to the scope's items.

        Returns:
            WeightValidationResult with the aligned weights and any warnings

        Raises:
            MissingWeight: an item has no weight entry
            InvalidWeight: a weight is negative, NaN or not numeric
        """
        warnings = []
        validated = {}

        for item in items:
            if item.item_id not in weights:
                raise MissingWeight(item.item_id)
            validated[item.item_id] = self.validate_single_weight(item.item_id, weights[item.item_id])

        zero_weight_items = [item_id for item_id, weight in validated.items() if weight == 0]
        if zero_weight_items:
            warnings.append(f"Items with zero weight do not contribute to scores: {zero_weight_items}")

        item_ids = {item.item_id for item in items}
        unused = [item_id for item_id in weights if item_id not in item_ids]
        if unused:
            # Expected when validating a single scope against the full weight map
            logger.debug(f"{len(unused)} weights not referenced by this scope")

        known = set(known_item_ids) if known_item_ids is not None else item_ids
        unreferenced = [item_id for item_id in unused if item_id not in known]
        if unreferenced:
            warnings.append(f"Weights not referenced by any item: {unreferenced}")

        total_weight = sum(validated.values())
        logger.debug(f"Validated {len(validated)} weights with sum: {total_weight:.3f}")

        return WeightValidationResult(
            weights=validated,
            total_weight=total_weight,
            zero_weight_items=zero_weight_items,
            unused_weight_items=unused,
            validation_warnings=warnings
        )

    def validate_single_weight(self, item_id: str, weight) -> float:
        """Return the weight as float or raise InvalidWeight."""
        if isinstance(weight, bool) or not isinstance(weight, numbers.Real):
            raise InvalidWeight(item_id, weight)
        weight = float(weight)
        if math.isnan(weight) or math.isinf(weight) or weight < 0:
            raise InvalidWeight(item_id, weight)
        return weight
