import sys
from pathlib import Path

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from taxochord.preprocessing import (  # noqa: E402
    clean_text,
    coerce_abundances,
    discover_taxon_columns,
    filter_to_selection,
    select_datasets,
)


def _records(names):
    return pd.DataFrame(
        {
            "dataset_name": names,
            "sampleID": [f"s{i}" for i in range(len(names))],
            "k__A": ["1"] * len(names),
        }
    )


def test_select_keeps_first_appearance_order() -> None:
    records = _records(["B", "A", "B", "C", "A", "D"])

    assert select_datasets(records, limit=10) == ["B", "A", "C", "D"]


def test_select_is_bounded_by_limit() -> None:
    records = _records(["B", "A", "B", "C", "A", "D"])

    assert select_datasets(records, limit=3) == ["B", "A", "C"]
    assert select_datasets(records, limit=1) == ["B"]


def test_select_with_fewer_datasets_than_limit_returns_all() -> None:
    records = _records(["X", "X", "Y"])

    assert select_datasets(records, limit=10) == ["X", "Y"]


@pytest.mark.parametrize("limit", [0, -3])
def test_select_with_non_positive_limit_is_empty(limit: int) -> None:
    assert select_datasets(_records(["A", "B"]), limit=limit) == []


def test_select_on_empty_records_is_empty() -> None:
    records = pd.DataFrame(columns=["dataset_name", "k__A"])

    assert select_datasets(records, limit=10) == []


def test_select_groups_missing_names_together() -> None:
    records = _records(["A", None, "", "B"])

    assert select_datasets(records, limit=10) == ["A", "", "B"]


def test_select_requires_dataset_column() -> None:
    records = pd.DataFrame({"name": ["A"]})

    with pytest.raises(ValueError):
        select_datasets(records, limit=10)


def test_select_uses_configured_column() -> None:
    records = pd.DataFrame({"study": ["Q", "R", "Q"]})

    assert select_datasets(records, limit=5, dataset_column="study") == ["Q", "R"]


def test_clean_text_maps_missing_values_to_empty() -> None:
    assert clean_text(None) == ""
    assert clean_text(float("nan")) == ""
    assert clean_text(pd.NA) == ""
    assert clean_text(45) == "45"
    assert clean_text("usa") == "usa"


def test_filter_to_selection_keeps_input_order() -> None:
    records = _records(["A", "B", "C", "A"])

    filtered = filter_to_selection(records, ["A", "C"], "dataset_name")

    assert list(filtered["sampleID"]) == ["s0", "s2", "s3"]


def test_discover_taxon_columns_follows_table_order() -> None:
    records = pd.DataFrame(
        {
            "dataset_name": ["A"],
            "k__Bacteria|p__Firmicutes": ["1"],
            "country": ["usa"],
            "k__Archaea": ["2"],
        }
    )

    assert discover_taxon_columns(records, "k__") == [
        "k__Bacteria|p__Firmicutes",
        "k__Archaea",
    ]


def test_discover_taxon_columns_on_empty_set_is_empty() -> None:
    records = pd.DataFrame(columns=["dataset_name", "k__A", "k__B"])

    assert discover_taxon_columns(records, "k__") == []


def test_discover_taxon_columns_without_matches_is_empty() -> None:
    records = pd.DataFrame({"dataset_name": ["A"], "age": ["3"]})

    assert discover_taxon_columns(records, "k__") == []


def test_coerce_abundances_zeroes_invalid_cells_and_keeps_negatives() -> None:
    records = pd.DataFrame(
        {
            "dataset_name": ["A"] * 6,
            "k__X": ["2.5", "", "abc", "-1", "inf", None],
        }
    )

    numeric = coerce_abundances(records, ["k__X"])

    assert list(numeric["k__X"]) == [2.5, 0.0, 0.0, -1.0, 0.0, 0.0]
    assert list(numeric.columns) == ["k__X"]


def test_coerce_abundances_without_columns_keeps_index() -> None:
    records = _records(["A", "B"])

    numeric = coerce_abundances(records, [])

    assert numeric.shape == (2, 0)
    assert list(numeric.index) == list(records.index)
