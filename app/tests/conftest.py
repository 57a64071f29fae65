"""Test configuration for app tests."""

import os
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add parent directory (app/) to Python path so we can import modules directly
# This allows tests to use imports like "from process.loader import ..."
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from case_data import case_csv, make_zip

DATA_DIR = Path(__file__).parent.parent / "utils" / "data"


@pytest.fixture
def data_dir():
    """Directory holding the bundled example tables."""
    return DATA_DIR


@pytest.fixture
def metadata_df():
    """Ten genomes in a single ISO week: 4 x B.1, 3 x B.1.1.7, 3 x Other."""
    lineages = ["B.1"] * 4 + ["B.1.1.7"] * 3 + ["Other"] * 3
    dates = pd.to_datetime([f"2021-03-{day:02d}" for day in (1, 2, 3, 4, 1, 2, 3, 5, 6, 7)])
    return pd.DataFrame({
        "genome_id": [f"G{i}" for i in range(10)],
        "sample_date": dates,
        "country": "Denmark",
        "species": "Human",
        "pangolin_lineage": lineages,
    })


@pytest.fixture
def mutations_df():
    """Mutation records for the genomes of `metadata_df`; G9 has none."""
    records = []
    for i in range(9):
        records.append((f"G{i}", 23403, "S", "D614G", "N"))
    for i in (4, 5, 6):
        records.append((f"G{i}", 23063, "S", "N501Y", "N"))
    records.append(("G0", 3037, "ORF1ab", "F924F", "S"))
    records.append(("G1", 3037, "ORF1ab", "F924F", "S"))
    return pd.DataFrame(records, columns=["genome_id", "position", "gene", "aa_change", "mutation_type"])


@pytest.fixture
def case_csv_text():
    return case_csv()


@pytest.fixture
def archive_bytes():
    return make_zip({"Test_pos_over_time.csv": case_csv(), "Municipality_cases.csv": "a;b\n1;2\n"})
