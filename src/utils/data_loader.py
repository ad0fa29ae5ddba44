# src/utils/data_loader.py
"""
Data loading utilities for quality-assessment workbooks.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from src.tasks.quality_scores.exceptions import InvalidWeight, WorkbookFormatError
from src.tasks.quality_scores.score_table import ImportanceWeights, Item, ItemCategory, ScoreTable

logger = logging.getLogger(__name__)

DEFAULT_MISSING_VALUES = ("", "NA", "N/A", "n/a", "na", "NaN", "nan")


def load_quality_workbook(path,
                          sheet_name=0,
                          study_column: Optional[str] = "Study",
                          section_label: str = "Section",
                          domain_label: str = "Domain",
                          weight_label: str = "Importance",
                          missing_values: Iterable[str] = DEFAULT_MISSING_VALUES) -> Tuple[ScoreTable, ImportanceWeights]:
    """
    Load a quality-assessment workbook into a ScoreTable and its importance weights.

    The sheet has one row per study and one column per item (M<n> / R<n>). Three
    metadata rows, identified by their label in the study column, hold the item
    section, domain and importance weight. Other columns are ignored.

    Args:
        path: .xlsx, .xls or .csv file
        sheet_name: Sheet to read for Excel files
        study_column: Header of the study identifier column (first column if None or absent)
        section_label, domain_label, weight_label: Labels of the metadata rows
        missing_values: Cell values treated as missing (case-insensitive)

    Returns:
        Tuple of (ScoreTable, ImportanceWeights)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Workbook not found: {path}")

    raw = _read_sheet(path, sheet_name)
    return parse_quality_frame(
        raw,
        study_column=study_column,
        section_label=section_label,
        domain_label=domain_label,
        weight_label=weight_label,
        missing_values=missing_values,
        source=str(path)
    )


def parse_quality_frame(raw: pd.DataFrame,
                        study_column: Optional[str] = "Study",
                        section_label: str = "Section",
                        domain_label: str = "Domain",
                        weight_label: str = "Importance",
                        missing_values: Iterable[str] = DEFAULT_MISSING_VALUES,
                        source: str = "<frame>") -> Tuple[ScoreTable, ImportanceWeights]:
    """Parse an already-read sheet. See load_quality_workbook for the layout."""
    if raw.empty:
        raise WorkbookFormatError(f"{source}: sheet is empty")

    raw = raw.copy()
    raw.columns = [str(c).strip() for c in raw.columns]

    if study_column is None or study_column not in raw.columns:
        if study_column is not None:
            logger.warning(f"{source}: column '{study_column}' not found, using '{raw.columns[0]}' as study column")
        study_column = raw.columns[0]

    item_columns = [c for c in raw.columns if ItemCategory.from_item_id(c) is not None]
    if not item_columns:
        raise WorkbookFormatError(f"{source}: no item columns matching M<n> or R<n>")

    missing_tokens = {str(v).strip().lower() for v in missing_values}
    labels = raw[study_column].map(lambda v: "" if _is_blank(v) else str(v).strip())

    metadata = {}
    for label in (section_label, domain_label, weight_label):
        rows = raw[labels == label]
        if rows.empty:
            raise WorkbookFormatError(f"{source}: metadata row '{label}' not found in column '{study_column}'")
        if len(rows) > 1:
            raise WorkbookFormatError(f"{source}: metadata row '{label}' appears {len(rows)} times")
        metadata[label] = rows.iloc[0]

    items = [
        Item(
            item_id=column,
            category=ItemCategory.from_item_id(column),
            section=_text_or_none(metadata[section_label][column]),
            domain=_text_or_none(metadata[domain_label][column])
        )
        for column in item_columns
    ]

    weights = {}
    for column in item_columns:
        value = _convert_cell(metadata[weight_label][column], missing_tokens)
        if _is_blank(value):
            continue  # reported as MissingWeight by the scope that needs it
        if isinstance(value, str):
            raise InvalidWeight(column, value)
        weights[column] = value

    study_mask = ~labels.isin([section_label, domain_label, weight_label]) & (labels != "")
    study_rows = raw[study_mask]
    studies = list(labels[study_mask])

    duplicated = sorted({s for s in studies if studies.count(s) > 1})
    if duplicated:
        raise WorkbookFormatError(f"{source}: duplicate study identifiers {duplicated}")

    data: Dict[str, List] = {}
    for study, (_, row) in zip(studies, study_rows.iterrows()):
        data[study] = [_convert_cell(row[column], missing_tokens) for column in item_columns]

    scores = pd.DataFrame(data, index=item_columns, columns=studies, dtype=object)
    table = ScoreTable(items, studies, scores)

    methods = sum(1 for item in items if item.category is ItemCategory.METHODS)
    logger.info(f"Loaded {len(studies)} studies and {len(items)} items "
                f"({methods} Methods, {len(items) - methods} Reporting) from {source}")

    return table, ImportanceWeights(weights)


def _read_sheet(path: Path, sheet_name) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xlsm", ".xls"):
        return pd.read_excel(path, sheet_name=sheet_name, dtype=object, keep_default_na=False)
    if suffix == ".csv":
        return pd.read_csv(path, dtype=object, keep_default_na=False)
    raise WorkbookFormatError(f"Unsupported workbook format: {path.suffix}")


def _convert_cell(value, missing_tokens):
    """Missing tokens -> NaN, numbers and numeric text -> float, anything else unchanged."""
    if _is_blank(value):
        return np.nan
    if isinstance(value, str):
        text = value.strip()
        if text.lower() in missing_tokens:
            return np.nan
        try:
            return float(text.replace(",", "."))
        except ValueError:
            return text
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, np.number)):
        return float(value)
    return value


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _text_or_none(value) -> Optional[str]:
    return None if _is_blank(value) else str(value).strip()
