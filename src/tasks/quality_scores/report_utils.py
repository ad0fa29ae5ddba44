# src/tasks/quality_scores/report_utils.py
"""
Utility functions for quality score reports.
Table shaping, results directory layout and run metadata.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime

import pandas as pd

from .score_calculator import StudyScoreSummary

REPORT_COLUMNS = {
    'study': 'Study',
    'score_missing_as_present': 'Score (NA=1)',
    'max_score': 'Max score',
    'percent_missing_as_present': '% (NA=1)',
    'score_missing_as_absent': 'Score (NA=0)',
    'max_score_excluding_missing': 'Max score (NA excluded)',
    'percent_missing_excluded': '% (NA excluded)',
}


def summaries_to_dataframe(summaries: Sequence[StudyScoreSummary], include_all: bool = False) -> pd.DataFrame:
    """
    Convert summaries into the per-scope report table.

    Args:
        summaries: Summaries for one scope, in study order
        include_all: Also include the NA=0 percentage and missing item count

    Returns:
        DataFrame with one row per study
    """
    records = []
    for summary in summaries:
        record = {label: getattr(summary, attr) for attr, label in REPORT_COLUMNS.items()}
        if include_all:
            record['% (NA=0)'] = summary.percent_missing_as_absent
            record['Missing items'] = len(summary.missing_items)
        records.append(record)

    columns = list(REPORT_COLUMNS.values())
    if include_all:
        columns += ['% (NA=0)', 'Missing items']
    return pd.DataFrame(records, columns=columns)


def generate_timestamp() -> str:
    """Generate filesystem-safe timestamp."""
    return datetime.now().strftime("%Y-%m-%d_%H-%M-%S")


def create_results_directory(timestamp: Optional[str] = None, base_save_dir: Optional[str] = None) -> Path:
    """
    Create the results directory for a run.

    Args:
        timestamp: Subdirectory name; no subdirectory if None
        base_save_dir: Optional base directory override

    Returns:
        Path to results directory
    """
    base_dir = Path(base_save_dir) if base_save_dir else Path("results")
    if timestamp:
        base_dir = base_dir / timestamp

    base_dir.mkdir(parents=True, exist_ok=True)
    (base_dir / "figures").mkdir(exist_ok=True)
    return base_dir


def save_scope_report(summaries: Sequence[StudyScoreSummary], results_dir: Path, scope_slug: str) -> Path:
    """Write one scope's report table as CSV."""
    report_path = results_dir / f"{scope_slug}_scores.csv"
    summaries_to_dataframe(summaries).to_csv(report_path, index=False)
    return report_path


def save_run_metadata(results_dir: Path, timestamp: str, input_path: str, studies: List[str],
                      scope_status: Dict[str, Any], generated_files: List[str]):
    """Save metadata for a scoring run."""
    metadata = {
        "timestamp": timestamp,
        "input_path": input_path,
        "study_count": len(studies),
        "studies": studies,
        "scopes": scope_status,
        "generated_files": generated_files
    }

    with open(results_dir / "run_metadata.json", 'w') as f:
        json.dump(metadata, f, indent=2, default=str)
