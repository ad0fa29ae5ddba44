# src/tasks/quality_scores/visualization.py
"""
Visualization functions for quality score analysis.
Traffic-light grid, stacked-percentage summary, correlation scatterplots and table images.
"""

import logging
import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import numpy as np
from matplotlib.colors import ListedColormap
from matplotlib.patches import Patch
from pathlib import Path
from scipy import stats
from typing import Dict, List, Optional, Sequence
import warnings
warnings.filterwarnings('ignore')

from .score_calculator import StudyScoreSummary
from .score_table import Scope, ScoreTable

logger = logging.getLogger(__name__)

plt.style.use('default')

# Traffic-light colours, keyed by score label
SCORE_COLORS = {
    'Yes (1)': '#2ca02c',
    'Partial (0.5)': '#ffbf00',
    'No (0)': '#d62728',
    'N/A': '#bfbfbf',
}
SCORE_LABELS = list(SCORE_COLORS.keys())

PRIMARY_BLUE = '#1f77b4'
VIBRANT_RED = '#d62728'


def _score_codes(scores: pd.DataFrame) -> pd.DataFrame:
    """Map scores to colour codes: 0 = N/A, 1 = No, 2 = Partial, 3 = Yes."""
    numeric = scores.apply(pd.to_numeric, errors='coerce')
    codes = pd.DataFrame(0, index=numeric.index, columns=numeric.columns)
    codes[numeric == 0] = 1
    codes[numeric == 0.5] = 2
    codes[numeric == 1] = 3
    return codes


def create_traffic_light_grid(score_table: ScoreTable, scope: Scope, save_path: Path,
                              colors: Optional[Dict[str, str]] = None, dpi: int = 300) -> Path:
    """
    Create a study x item grid coloured by score.

    Args:
        score_table: Loaded score table
        scope: Items to show
        save_path: Output PNG path
        colors: Optional override of SCORE_COLORS
        dpi: Output resolution

    Returns:
        Path of the saved figure
    """
    colors = {**SCORE_COLORS, **(colors or {})}
    codes = _score_codes(score_table.scores_for(scope)).T  # studies as rows

    cmap = ListedColormap([colors['N/A'], colors['No (0)'], colors['Partial (0.5)'], colors['Yes (1)']])

    width = max(8, 0.3 * codes.shape[1] + 3)
    height = max(4, 0.35 * codes.shape[0] + 2)
    fig, ax = plt.subplots(figsize=(width, height))

    sns.heatmap(codes, cmap=cmap, vmin=-0.5, vmax=3.5, cbar=False, linewidths=0.5,
                linecolor='white', square=False, ax=ax)
    ax.set_xlabel('Item', fontweight='bold')
    ax.set_ylabel('Study', fontweight='bold')
    ax.set_title(f'Quality Assessment - {scope.value} Items', fontweight='bold')
    ax.tick_params(axis='x', labelrotation=90)
    ax.tick_params(axis='y', labelrotation=0)

    handles = [Patch(facecolor=colors[label], edgecolor='black', label=label) for label in SCORE_LABELS]
    ax.legend(handles=handles, loc='upper left', bbox_to_anchor=(1.01, 1), frameon=True, title='Score')

    plt.tight_layout()
    plt.savefig(save_path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    return save_path


def score_distribution(score_table: ScoreTable, scope: Scope) -> pd.DataFrame:
    """Percentage of studies per score label, one row per item."""
    codes = _score_codes(score_table.scores_for(scope))
    n_studies = codes.shape[1]

    distribution = pd.DataFrame(index=codes.index)
    for code, label in zip([3, 2, 1, 0], ['Yes (1)', 'Partial (0.5)', 'No (0)', 'N/A']):
        distribution[label] = (codes == code).sum(axis=1) / n_studies * 100 if n_studies else 0.0
    return distribution


def create_stacked_percentage_summary(score_table: ScoreTable, scope: Scope, save_path: Path,
                                      colors: Optional[Dict[str, str]] = None, dpi: int = 300) -> Path:
    """Create a horizontal stacked bar per item showing the share of each score."""
    colors = {**SCORE_COLORS, **(colors or {})}
    distribution = score_distribution(score_table, scope)

    height = max(4, 0.3 * len(distribution) + 2)
    fig, ax = plt.subplots(figsize=(10, height))

    # Reverse so the first item is drawn at the top
    distribution.iloc[::-1].plot(
        kind='barh', stacked=True, ax=ax, width=0.8, edgecolor='black', linewidth=0.5,
        color=[colors[label] for label in distribution.columns]
    )
    ax.set_xlim(0, 100)
    ax.set_xlabel('Studies (%)', fontweight='bold')
    ax.set_ylabel('Item', fontweight='bold')
    ax.set_title(f'Score Distribution - {scope.value} Items', fontweight='bold')
    ax.legend(loc='upper left', bbox_to_anchor=(1.01, 1), frameon=True, title='Score')
    ax.grid(True, axis='x', alpha=0.3)

    plt.tight_layout()
    plt.savefig(save_path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    return save_path


def _spearman(x: Sequence[float], y: Sequence[float]) -> Dict[str, Optional[float]]:
    if len(x) < 3 or np.ptp(x) == 0 or np.ptp(y) == 0:
        return {'rho': None, 'p_value': None, 'n': len(x)}
    rho, p_value = stats.spearmanr(x, y)
    return {'rho': float(rho), 'p_value': float(p_value), 'n': len(x)}


def _scatter(ax, x: List[float], y: List[float], labels: List[str], xlabel: str, ylabel: str,
             title: str) -> Dict[str, Optional[float]]:
    correlation = _spearman(x, y)

    ax.scatter(x, y, s=60, color=PRIMARY_BLUE, edgecolor='black', linewidth=0.8, alpha=0.85)
    for xi, yi, label in zip(x, y, labels):
        ax.annotate(label, (xi, yi), textcoords='offset points', xytext=(4, 4), fontsize=7)
    ax.plot([0, 100], [0, 100], color=VIBRANT_RED, linestyle='--', linewidth=1, alpha=0.6)
    ax.set_xlim(0, 105)
    ax.set_ylim(0, 105)
    ax.set_xlabel(xlabel, fontweight='bold')
    ax.set_ylabel(ylabel, fontweight='bold')
    ax.set_title(title, fontweight='bold')
    ax.grid(True, alpha=0.3)

    if correlation['rho'] is not None:
        text = f"Spearman ρ = {correlation['rho']:.2f} (p = {correlation['p_value']:.3g}, n = {correlation['n']})"
    else:
        text = f"Spearman ρ undefined (n = {correlation['n']})"
    ax.text(3, 97, text, va='top', fontsize=9,
            bbox=dict(boxstyle="round,pad=0.3", facecolor='white', alpha=0.9, edgecolor='black'))
    return correlation


def create_correlation_scatterplots(summaries_by_scope: Dict[Scope, List[StudyScoreSummary]],
                                    save_dir: Path, dpi: int = 300) -> Dict[str, Dict[str, Optional[float]]]:
    """
    Scatterplots of study percentages with Spearman correlations.

    Methods vs Reporting needs both scopes; NA=1 vs NA excluded uses Total.
    Plots whose scopes are unavailable are skipped.

    Returns:
        Dictionary of correlation results keyed by plot name
    """
    correlations = {}

    methods = summaries_by_scope.get(Scope.METHODS)
    reporting = summaries_by_scope.get(Scope.REPORTING)
    if methods and reporting:
        reporting_by_study = {s.study: s for s in reporting}
        pairs = [(m, reporting_by_study[m.study]) for m in methods if m.study in reporting_by_study]

        fig, ax = plt.subplots(figsize=(7, 7))
        correlations['methods_vs_reporting'] = _scatter(
            ax,
            [m.percent_missing_excluded for m, _ in pairs],
            [r.percent_missing_excluded for _, r in pairs],
            [m.study for m, _ in pairs],
            'Methods score (%, NA excluded)', 'Reporting score (%, NA excluded)',
            'Methods vs Reporting Quality'
        )
        plt.tight_layout()
        plt.savefig(save_dir / "correlation_methods_vs_reporting.png", dpi=dpi, bbox_inches='tight')
        plt.close(fig)
    else:
        logger.warning("Skipping Methods vs Reporting scatterplot: scope summaries unavailable")

    total = summaries_by_scope.get(Scope.TOTAL)
    if total:
        fig, ax = plt.subplots(figsize=(7, 7))
        correlations['total_na_present_vs_excluded'] = _scatter(
            ax,
            [s.percent_missing_as_present for s in total],
            [s.percent_missing_excluded for s in total],
            [s.study for s in total],
            'Total score (%, NA=1)', 'Total score (%, NA excluded)',
            'Effect of Missing-Value Treatment'
        )
        plt.tight_layout()
        plt.savefig(save_dir / "correlation_total_na_treatment.png", dpi=dpi, bbox_inches='tight')
        plt.close(fig)
    else:
        logger.warning("Skipping missing-value treatment scatterplot: Total summaries unavailable")

    return correlations


def create_summary_table_image(report_df: pd.DataFrame, save_path: Path, title: str, dpi: int = 300) -> Path:
    """Render a report table as an image."""
    height = max(2, 0.35 * (len(report_df) + 2))
    fig, ax = plt.subplots(figsize=(12, height))
    ax.axis('off')

    cell_text = [[_format_cell(v) for v in row] for row in report_df.itertuples(index=False)]
    table = ax.table(cellText=cell_text, colLabels=list(report_df.columns), loc='center', cellLoc='center')
    table.auto_set_font_size(False)
    table.set_fontsize(8)
    table.scale(1, 1.3)
    for (row, _), cell in table.get_celld().items():
        if row == 0:
            cell.set_text_props(fontweight='bold')
            cell.set_facecolor('#e6e6e6')

    ax.set_title(title, fontweight='bold')
    plt.savefig(save_path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    return save_path


def _format_cell(value) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)
