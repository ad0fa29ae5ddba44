"""
Tests for the quality score pipeline and configuration loading.
"""

import json
import runpy
import sys
from pathlib import Path

import pandas as pd
import pytest
from omegaconf import OmegaConf

from src.tasks.quality_scores import QualityScorePipeline, Scope, WorkbookFormatError, load_config
from src.tasks.quality_scores.config import DEFAULTS
from src.tasks.quality_scores.report_utils import summaries_to_dataframe


SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "run_quality_scores.py"

NO_STUDY_SHEET = """Study,Year,M1,R1
Section,,Methods,Reporting
Domain,,Design,Results
Importance,,1,1
"""


def _config(**overrides):
    config = OmegaConf.create(DEFAULTS)
    config.output.timestamped = False
    return OmegaConf.merge(config, OmegaConf.create(overrides))


class TestPipeline:

    def test_exports_all_scopes(self, example_csv, tmp_path):
        output_dir = tmp_path / "out"
        result = QualityScorePipeline(_config()).run(
            input_path=str(example_csv), output_dir=str(output_dir), make_plots=False
        )

        assert result.succeeded
        assert result.errors == {}
        assert set(result.summaries) == set(Scope)
        for scope in Scope:
            assert (output_dir / f"{scope.slug}_scores.csv").exists()

        report = pd.read_csv(output_dir / "methods_scores.csv")
        assert list(report.columns) == [
            "Study", "Score (NA=1)", "Max score", "% (NA=1)",
            "Score (NA=0)", "Max score (NA excluded)", "% (NA excluded)",
        ]
        assert report.loc[0, "Study"] == "Adams 2019"
        assert report.loc[0, "% (NA excluded)"] == pytest.approx(81.82)

    def test_metadata(self, example_csv, tmp_path):
        result = QualityScorePipeline(_config()).run(
            input_path=str(example_csv), output_dir=str(tmp_path), make_plots=False
        )

        with open(result.results_dir / "run_metadata.json") as f:
            metadata = json.load(f)

        assert metadata["study_count"] == 5
        assert metadata["scopes"]["Total"] == {"status": "ok", "studies": 5}
        assert "methods_scores.csv" in metadata["generated_files"]

    def test_failed_scope_does_not_block_others(self, example_csv_text, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text(example_csv_text.replace("Chen 2020,2020,0.5,0", "Chen 2020,2020,0.5,2"))
        output_dir = tmp_path / "out"

        result = QualityScorePipeline(_config()).run(
            input_path=str(path), output_dir=str(output_dir), make_plots=False
        )

        assert set(result.errors) == {Scope.METHODS, Scope.TOTAL}
        assert "Chen 2020" in result.errors[Scope.METHODS]
        assert set(result.summaries) == {Scope.REPORTING}
        assert (output_dir / "reporting_scores.csv").exists()
        assert not (output_dir / "methods_scores.csv").exists()
        assert not (output_dir / "total_scores.csv").exists()

        with open(output_dir / "run_metadata.json") as f:
            metadata = json.load(f)
        assert metadata["scopes"]["Methods"]["status"] == "error"

    def test_timestamped_output(self, example_csv, tmp_path):
        config = OmegaConf.create(DEFAULTS)
        result = QualityScorePipeline(config).run(
            input_path=str(example_csv), output_dir=str(tmp_path), make_plots=False
        )
        assert result.results_dir.parent == tmp_path

    def test_charts(self, example_csv, tmp_path):
        result = QualityScorePipeline(_config(plots={"dpi": 40})).run(
            input_path=str(example_csv), output_dir=str(tmp_path)
        )
        figures = tmp_path / "figures"

        for scope in Scope:
            assert (figures / f"{scope.slug}_traffic_light.png").exists()
            assert (figures / f"{scope.slug}_score_distribution.png").exists()
            assert (figures / f"{scope.slug}_scores_table.png").exists()
        assert (figures / "correlation_methods_vs_reporting.png").exists()
        assert (figures / "correlation_total_na_treatment.png").exists()
        assert set(result.correlations) == {"methods_vs_reporting", "total_na_present_vs_excluded"}

    def test_all_scopes_failed(self, tmp_path):
        path = tmp_path / "no_studies.csv"
        path.write_text(NO_STUDY_SHEET)
        output_dir = tmp_path / "out"

        result = QualityScorePipeline(_config()).run(
            input_path=str(path), output_dir=str(output_dir), make_plots=False
        )

        assert result.succeeded is False
        assert set(result.errors) == set(Scope)
        assert result.summaries == {}
        assert list(output_dir.glob("*_scores.csv")) == []

        with open(output_dir / "run_metadata.json") as f:
            metadata = json.load(f)
        assert {s["status"] for s in metadata["scopes"].values()} == {"error"}

    def test_unreadable_input_raises(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("Study,Year\nAdams 2019,2019\n")
        with pytest.raises(WorkbookFormatError):
            QualityScorePipeline(_config()).run(input_path=str(path), output_dir=str(tmp_path))


class TestReportTable:

    def test_include_all(self, mixed_table):
        from src.tasks.quality_scores import compute_summaries

        table, weights = mixed_table
        frame = summaries_to_dataframe(compute_summaries(table, weights), include_all=True)

        assert list(frame["Study"]) == ["S1", "S2", "S3"]
        assert list(frame["Missing items"]) == [1, 1, 0]
        assert frame.loc[0, "% (NA=0)"] == pytest.approx(78.57)


class TestConfig:

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config.data.weight_label == "Importance"
        assert config.plots.enabled is True

    def test_yaml_overrides(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("data:\n  weight_label: Weight\nplots:\n  dpi: 72\n")

        config = load_config(str(path))
        assert config.data.weight_label == "Weight"
        assert config.data.study_column == "Study"
        assert config.plots.dpi == 72

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_default_input_is_shipped(self):
        root = Path(__file__).resolve().parents[1]
        config = OmegaConf.create(DEFAULTS)
        shipped = OmegaConf.load(root / "configs" / "quality_scores.yaml")

        assert (root / config.data.input_path).exists()
        assert shipped.data.input_path == config.data.input_path

    def test_unknown_section_dropped(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("bogus:\n  value: 1\nplots:\n  dpi: 72\n")

        config = load_config(str(path))

        assert "bogus" not in config
        assert config.plots.dpi == 72
        assert "Unknown config section ignored: bogus" in caplog.text


class TestScript:

    def _run(self, monkeypatch, *args):
        monkeypatch.setattr(sys, "argv", ["run_quality_scores.py", *args])
        runpy.run_path(str(SCRIPT_PATH), run_name="__main__")

    def test_success_exits_cleanly(self, example_csv, tmp_path, monkeypatch):
        self._run(monkeypatch, "--input", str(example_csv), "--output-dir", str(tmp_path), "--no-plots")
        assert list(tmp_path.glob("*/total_scores.csv"))

    def test_all_scopes_failed_exits_1(self, tmp_path, monkeypatch):
        path = tmp_path / "no_studies.csv"
        path.write_text(NO_STUDY_SHEET)

        with pytest.raises(SystemExit) as excinfo:
            self._run(monkeypatch, "--input", str(path), "--output-dir", str(tmp_path / "out"), "--no-plots")
        assert excinfo.value.code == 1

    def test_unreadable_input_exits_1(self, tmp_path, monkeypatch):
        with pytest.raises(SystemExit) as excinfo:
            self._run(monkeypatch, "--input", str(tmp_path / "missing.csv"), "--output-dir", str(tmp_path))
        assert excinfo.value.code == 1
