# src/tasks/quality_scores/score_pipeline.py
"""
Main pipeline for quality score reporting.
Loads the workbook, scores each scope independently, and exports tables and charts.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from omegaconf import DictConfig, OmegaConf

from src.utils import data_loader

from .config import DEFAULTS
from .exceptions import QualityScoreError
from .report_utils import (
    create_results_directory,
    generate_timestamp,
    save_run_metadata,
    save_scope_report,
    summaries_to_dataframe
)
from .score_calculator import StudyScoreSummary, WeightedScoreCalculator
from .score_table import ImportanceWeights, Scope, ScoreTable
from .visualization import (
    create_correlation_scatterplots,
    create_stacked_percentage_summary,
    create_summary_table_image,
    create_traffic_light_grid
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of a pipeline run."""
    results_dir: Path
    summaries: Dict[Scope, List[StudyScoreSummary]] = field(default_factory=dict)
    errors: Dict[Scope, str] = field(default_factory=dict)
    generated_files: List[Path] = field(default_factory=list)
    correlations: Dict[str, Dict] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        """True if at least one scope produced summaries."""
        return bool(self.summaries)


class QualityScorePipeline:
    """
    Runs the Methods, Reporting and Total scopes over one workbook.

    A failure in one scope is logged and recorded; the remaining scopes still run.
    """

    def __init__(self, config: Optional[DictConfig] = None):
        """
        Args:
            config: Configuration (OmegaConf format), see config.DEFAULTS
        """
        if config is None:
            config = OmegaConf.create(DEFAULTS)
        self.config = config
        self.calculator = WeightedScoreCalculator()

    def run(self, input_path: Optional[str] = None, output_dir: Optional[str] = None,
            make_plots: Optional[bool] = None) -> PipelineResult:
        """
        Run the complete pipeline.

        Args:
            input_path: Workbook path (overrides config.data.input_path)
            output_dir: Base output directory (overrides config.output.base_dir)
            make_plots: Render charts (overrides config.plots.enabled)

        Returns:
            PipelineResult
        """
        input_path = input_path or self.config.data.input_path
        output_dir = output_dir or self.config.output.base_dir
        make_plots = self.config.plots.enabled if make_plots is None else make_plots

        logger.info("Starting quality score pipeline")

        # Step 1: Load workbook
        logger.info(f"Step 1: Loading workbook {input_path}")
        score_table, weights = self.load(input_path)

        timestamp = generate_timestamp()
        results_dir = create_results_directory(
            timestamp if self.config.output.timestamped else None, output_dir
        )
        logger.info(f"Results will be saved to: {results_dir}")
        result = PipelineResult(results_dir=results_dir)

        # Step 2: Score each scope independently
        logger.info("Step 2: Computing weighted scores per scope")
        for scope in Scope:
            try:
                result.summaries[scope] = self.score_scope(score_table, weights, scope)
            except QualityScoreError as e:
                logger.error(f"{scope.value} scope failed: {e}")
                result.errors[scope] = str(e)

        # Step 3: Export reports
        logger.info("Step 3: Exporting score tables")
        for scope, summaries in result.summaries.items():
            result.generated_files.append(save_scope_report(summaries, results_dir, scope.slug))

        # Step 4: Charts
        if make_plots:
            logger.info("Step 4: Rendering charts")
            self._render_charts(score_table, result)

        scope_status = {
            scope.value: {"status": "error", "error": result.errors[scope]} if scope in result.errors
            else {"status": "ok", "studies": len(result.summaries[scope])}
            for scope in Scope
        }
        save_run_metadata(
            results_dir, timestamp, str(input_path), list(score_table.studies), scope_status,
            [str(p.relative_to(results_dir)) for p in result.generated_files]
        )

        if result.errors:
            logger.warning(f"Pipeline finished with {len(result.errors)} failed scope(s)")
        else:
            logger.info("Quality score pipeline completed successfully")
        return result

    def load(self, input_path) -> tuple:
        data_config = self.config.data
        return data_loader.load_quality_workbook(
            input_path,
            sheet_name=data_config.sheet_name,
            study_column=data_config.study_column,
            section_label=data_config.section_label,
            domain_label=data_config.domain_label,
            weight_label=data_config.weight_label,
            missing_values=list(data_config.missing_values)
        )

    def score_scope(self, score_table: ScoreTable, weights: ImportanceWeights,
                    scope: Scope) -> List[StudyScoreSummary]:
        summaries = self.calculator.compute_summaries(score_table, weights, scope)

        flagged = [s.study for s in summaries if s.warnings]
        if flagged:
            logger.warning(f"{scope.value}: aggregation warnings for studies {flagged}")

        logger.info(f"{scope.value}: scored {len(summaries)} studies "
                    f"(max score {summaries[0].max_score:.2f})")
        return summaries

    def _render_charts(self, score_table: ScoreTable, result: PipelineResult):
        figures_dir = result.results_dir / "figures"
        dpi = self.config.plots.dpi
        colors = OmegaConf.to_container(self.config.plots.colors) if self.config.plots.colors else None

        for scope, summaries in result.summaries.items():
            result.generated_files.append(create_traffic_light_grid(
                score_table, scope, figures_dir / f"{scope.slug}_traffic_light.png", colors=colors, dpi=dpi
            ))
            result.generated_files.append(create_stacked_percentage_summary(
                score_table, scope, figures_dir / f"{scope.slug}_score_distribution.png", colors=colors, dpi=dpi
            ))
            result.generated_files.append(create_summary_table_image(
                summaries_to_dataframe(summaries), figures_dir / f"{scope.slug}_scores_table.png",
                title=f"{scope.value} Quality Scores", dpi=dpi
            ))

        result.correlations = create_correlation_scatterplots(result.summaries, figures_dir, dpi=dpi)
        for name in ("correlation_methods_vs_reporting.png", "correlation_total_na_treatment.png"):
            if (figures_dir / name).exists():
                result.generated_files.append(figures_dir / name)
