"""
Tests for chart generation.
"""

import pytest

from src.tasks.quality_scores import Scope, compute_summaries
from src.tasks.quality_scores.visualization import (
    create_correlation_scatterplots,
    create_stacked_percentage_summary,
    create_traffic_light_grid,
    score_distribution
)


class TestScoreDistribution:

    def test_percentages_per_item(self, mixed_table):
        table, _ = mixed_table
        distribution = score_distribution(table, Scope.TOTAL)

        assert list(distribution.index) == ["M1", "M2", "R1", "R2"]
        assert distribution.loc["M1", "Yes (1)"] == pytest.approx(200 / 3)
        assert distribution.loc["M1", "No (0)"] == pytest.approx(100 / 3)
        assert distribution.loc["M2", "N/A"] == pytest.approx(100 / 3)
        assert distribution.loc["R2", "Partial (0.5)"] == pytest.approx(100 / 3)
        assert distribution.sum(axis=1).tolist() == pytest.approx([100.0] * 4)


class TestCharts:

    def test_traffic_light_and_distribution(self, mixed_table, tmp_path):
        table, _ = mixed_table
        grid = create_traffic_light_grid(table, Scope.METHODS, tmp_path / "grid.png", dpi=40)
        stacked = create_stacked_percentage_summary(table, Scope.REPORTING, tmp_path / "stacked.png", dpi=40)

        assert grid.exists() and grid.stat().st_size > 0
        assert stacked.exists()

    def test_scatterplots_skip_missing_scopes(self, mixed_table, tmp_path):
        table, weights = mixed_table
        summaries = {Scope.TOTAL: compute_summaries(table, weights, Scope.TOTAL)}

        correlations = create_correlation_scatterplots(summaries, tmp_path, dpi=40)

        assert set(correlations) == {"total_na_present_vs_excluded"}
        assert correlations["total_na_present_vs_excluded"]["n"] == 3
        assert not (tmp_path / "correlation_methods_vs_reporting.png").exists()
        assert (tmp_path / "correlation_total_na_treatment.png").exists()
