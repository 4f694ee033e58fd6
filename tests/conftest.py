"""
Pytest fixtures for the injury explorer tests.

Builds a tiny NEISS-shaped dataset (injuries, products, population) as TSV
files in a temporary directory so loaders, the API and the session run against
real files without the full dataset.
"""

import sys
from pathlib import Path

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core import data as data_module  # noqa: E402


# ── Sample rows ───────────────────────────────────────────────────────────────

TOILETS = 649
STAIRS = 1842
TRAMPOLINES = 1233
NO_RECORDS = 9999

_INJURY_ROWS = [
    # trmt_date, age, sex, race, body_part, diag, location, prod_code, weight, narrative
    ("2017-01-01", 71, "male", "white", "Head", "Contusion Or Abrasion", "Home", TOILETS, 15.0, "71YOM FELL OFF TOILET HIT HEAD"),
    ("2017-01-02", 16, "male", "black", "Ankle", "Strain, Sprain", "Sports Or Recreation Place", STAIRS, 20.0, "16YOM TWISTED ANKLE ON STAIRS"),
    ("2017-01-03", 85, "female", "white", "Hip", "Fracture", "Home", TOILETS, 30.5, "85YOF SLIPPED GETTING OFF TOILET"),
    ("2017-01-04", 5, "female", None, "Face", "Laceration", "Home", TOILETS, 10.0, "5YOF HIT FACE ON TOILET SEAT"),
    ("2017-01-05", 71, "male", "white", "Head", "Concussions", "Home", TOILETS, 5.0, "71YOM SYNCOPE ON TOILET"),
    ("2017-01-06", 40, "female", "white", "Lower Trunk", "Contusion Or Abrasion", "Public", TOILETS, 2.0, "40YOF FELL IN PUBLIC RESTROOM"),
    ("2017-01-07", 8, "male", "white", "Lower Leg", "Fracture", "Home", TRAMPOLINES, 50.0, "8YOM FELL OFF TRAMPOLINE"),
]

_PRODUCT_ROWS = [
    (TOILETS, "toilets"),
    (STAIRS, "stairs or steps"),
    (TRAMPOLINES, "trampolines"),
    (NO_RECORDS, "zz empty product"),
]

_POPULATION_ROWS = [
    # 5/female intentionally absent: missing population row
    (71, "male", 1_000_000),
    (85, "female", 500_000),
    (16, "male", 2_000_000),
    (40, "female", 2_000_000),
    (8, "male", 2_000_000),
]


def injuries_frame() -> pd.DataFrame:
    return pd.DataFrame(_INJURY_ROWS, columns=data_module.INJURY_COLUMNS)


def population_frame() -> pd.DataFrame:
    return pd.DataFrame(_POPULATION_ROWS, columns=["age", "sex", "population"])


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture()
def data_dir(tmp_path):
    """Directory holding injuries.tsv.gz, products.tsv and population.tsv."""
    injuries_frame().to_csv(tmp_path / data_module.INJURIES_FILE, sep="\t", index=False, compression="gzip")
    pd.DataFrame(_PRODUCT_ROWS, columns=["prod_code", "title"]).to_csv(
        tmp_path / data_module.PRODUCTS_FILE, sep="\t", index=False
    )
    population_frame().to_csv(tmp_path / data_module.POPULATION_FILE, sep="\t", index=False)
    return tmp_path


@pytest.fixture()
def data_ctx(data_dir, monkeypatch):
    """Loaded dashboard context with DATA_DIR pointing at the sample files."""
    data_module._load_dashboard_data_cached.cache_clear()
    monkeypatch.setattr(data_module, "DATA_DIR", data_dir)
    yield data_module.load_dashboard_data()
    data_module._load_dashboard_data_cached.cache_clear()


@pytest.fixture()
def injuries():
    return injuries_frame()


@pytest.fixture()
def population():
    return population_frame()
