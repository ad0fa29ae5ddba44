import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

# Add project root to path
root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(root))

from src.tasks.quality_scores import ImportanceWeights, Item, ItemCategory, ScoreTable

EXAMPLE_CSV = """Study,Year,M1,M2,M3,M4,M5,M6,R1,R2,R3,R4
Section,,Methods,Methods,Methods,Methods,Methods,Methods,Reporting,Reporting,Reporting,Reporting
Domain,,Design,Design,Sampling,Sampling,Analysis,Analysis,Results,Results,Discussion,Discussion
Importance,,3,2,2,1,3,1,2,1,1,1
Adams 2019,2019,1,1,0.5,NA,1,0,1,1,0.5,1
Baker 2020,2020,1,0.5,0.5,1,0.5,NA,1,0.5,NA,0
Chen 2020,2020,0.5,0,1,1,1,1,0.5,0.5,1,1
Diaz 2021,2021,1,1,1,1,1,1,1,1,1,1
Evans 2022,2022,0,NA,0.5,0,0.5,NA,0.5,NA,0,0.5
"""


@pytest.fixture
def worked_example():
    """Two items with weights A=2, B=3; study X scores A=1, B missing."""
    items = [Item("A", ItemCategory.METHODS), Item("B", ItemCategory.METHODS)]
    table = ScoreTable.from_records(items, {"X": {"A": 1, "B": None}})
    return table, ImportanceWeights({"A": 2, "B": 3})


@pytest.fixture
def mixed_table():
    """Two Methods and two Reporting items over three studies."""
    items = [
        Item("M1", ItemCategory.METHODS, section="Methods", domain="Design"),
        Item("M2", ItemCategory.METHODS, section="Methods", domain="Analysis"),
        Item("R1", ItemCategory.REPORTING, section="Reporting", domain="Results"),
        Item("R2", ItemCategory.REPORTING, section="Reporting", domain="Discussion"),
    ]
    records = {
        "S1": {"M1": 1, "M2": 0.5, "R1": np.nan, "R2": 1},
        "S2": {"M1": 0, "M2": None, "R1": 1, "R2": 0.5},
        "S3": {"M1": 1, "M2": 1, "R1": 1, "R2": 1},
    }
    weights = ImportanceWeights({"M1": 2, "M2": 1, "R1": 1, "R2": 3})
    return ScoreTable.from_records(items, records), weights


@pytest.fixture
def example_csv(tmp_path):
    path = tmp_path / "assessment.csv"
    path.write_text(EXAMPLE_CSV)
    return path


@pytest.fixture
def example_csv_text():
    return EXAMPLE_CSV
