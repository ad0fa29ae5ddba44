# src/tasks/quality_scores/score_table.py
"""
Schema objects for quality-assessment score data.
A ScoreTable holds one score per (study, item); items carry an explicit category tag
so scopes are selected by category rather than by column position.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

ITEM_ID_PATTERN = re.compile(r"^([MR])(\d+)$")


class ItemCategory(Enum):
    """Category an assessment item belongs to."""
    METHODS = "Methods"
    REPORTING = "Reporting"

    @classmethod
    def from_item_id(cls, item_id: str) -> Optional["ItemCategory"]:
        """
        Infer the category from the workbook naming convention (M<n> / R<n>).

        Returns None when the identifier does not follow the convention.
        """
        match = ITEM_ID_PATTERN.match(str(item_id).strip())
        if not match:
            return None
        return cls.METHODS if match.group(1) == "M" else cls.REPORTING


class Scope(Enum):
    """Independent slice of items over which summaries are computed."""
    METHODS = "Methods"
    REPORTING = "Reporting"
    TOTAL = "Total"

    @property
    def categories(self) -> Tuple[ItemCategory, ...]:
        if self is Scope.METHODS:
            return (ItemCategory.METHODS,)
        if self is Scope.REPORTING:
            return (ItemCategory.REPORTING,)
        return (ItemCategory.METHODS, ItemCategory.REPORTING)

    @property
    def slug(self) -> str:
        return self.value.lower()


@dataclass(frozen=True)
class Item:
    """A single scored criterion of the assessment instrument."""
    item_id: str
    category: ItemCategory
    section: Optional[str] = None
    domain: Optional[str] = None


class ImportanceWeights(Mapping):
    """Read-only mapping of item id -> importance weight."""

    def __init__(self, weights: Dict[str, float]):
        self._weights = dict(weights)

    def __getitem__(self, item_id: str) -> float:
        return self._weights[item_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._weights)

    def __len__(self) -> int:
        return len(self._weights)

    def __repr__(self) -> str:
        return f"ImportanceWeights({self._weights!r})"

    def as_series(self, item_ids: Sequence[str]) -> pd.Series:
        """Weights aligned to the given item order. Callers validate coverage first."""
        return pd.Series([float(self._weights[i]) for i in item_ids], index=list(item_ids), dtype=float)


class ScoreTable:
    """
    Immutable table of scores keyed by (study, item).

    Scores are stored items x studies. Missing entries are NaN. Cell values are
    not checked here: a malformed cell should only fail the scopes containing it,
    so the aggregator validates values per scope.
    """

    def __init__(self, items: Sequence[Item], studies: Sequence[str], scores: pd.DataFrame):
        item_ids = [item.item_id for item in items]
        studies = [str(s) for s in studies]

        duplicated_items = _duplicates(item_ids)
        if duplicated_items:
            raise ValueError(f"Duplicate item identifiers: {duplicated_items}")
        duplicated_studies = _duplicates(studies)
        if duplicated_studies:
            raise ValueError(f"Duplicate study identifiers: {duplicated_studies}")

        if list(scores.index) != item_ids or [str(c) for c in scores.columns] != studies:
            raise ValueError("Score frame must be indexed by items (rows) and studies (columns) in order")

        self._items: Tuple[Item, ...] = tuple(items)
        self._studies: Tuple[str, ...] = tuple(studies)
        self._scores = scores.copy()
        self._scores.columns = list(studies)

    @classmethod
    def from_records(cls, items: Sequence[Item], records: Dict[str, Dict[str, object]]) -> "ScoreTable":
        """
        Build a table from {study: {item_id: score}}. Absent or None scores are missing.
        """
        item_ids = [item.item_id for item in items]
        studies = list(records.keys())
        data = {
            study: [_none_to_nan(records[study].get(item_id)) for item_id in item_ids]
            for study in studies
        }
        frame = pd.DataFrame(data, index=item_ids, columns=studies, dtype=object)
        return cls(items, studies, frame)

    @property
    def items(self) -> Tuple[Item, ...]:
        return self._items

    @property
    def studies(self) -> Tuple[str, ...]:
        return self._studies

    def items_for(self, scope: Scope) -> List[Item]:
        categories = scope.categories
        return [item for item in self._items if item.category in categories]

    def scores_for(self, scope: Scope) -> pd.DataFrame:
        """Copy of the score frame (items x studies) restricted to the scope."""
        item_ids = [item.item_id for item in self.items_for(scope)]
        return self._scores.loc[item_ids].copy()

    def score(self, study: str, item_id: str):
        return self._scores.at[item_id, study]

    def __repr__(self) -> str:
        return f"ScoreTable(items={len(self._items)}, studies={len(self._studies)})"


def _duplicates(values: Sequence[str]) -> List[str]:
    seen = set()
    dupes = []
    for value in values:
        if value in seen and value not in dupes:
            dupes.append(value)
        seen.add(value)
    return dupes


def _none_to_nan(value):
    return np.nan if value is None else value
