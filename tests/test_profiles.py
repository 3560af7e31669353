import sys
from pathlib import Path

import pandas as pd

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from taxochord.config import ChordConfig  # noqa: E402
from taxochord.profiles import (  # noqa: E402
    RepresentativeRecord,
    aggregate_profiles,
    build_label,
    label_of,
    representative_record,
)

COLUMNS = ["dataset_name", "sampleID", "country", "bodysite", "disease", "age", "gender"]


def _row(dataset, sample="", country="", bodysite="", disease="", age="", gender="", **taxa):
    row = dict(zip(COLUMNS, [dataset, sample, country, bodysite, disease, age, gender]))
    row.update(taxa)
    return row


def _example_records() -> pd.DataFrame:
    return pd.DataFrame(
        [
            _row("A", "a1", "usa", "stool", "n", "40", "male", k__X="2"),
            _row("B", "b1", "china", "skin", "ibd", "31", "female", k__X="1"),
            _row("A", "a2", "usa", "oral", "n", "41", "male", k__X="3"),
            _row("C", "c1", "italy", "stool", "cancer", "60", "male", k__X="0"),
            _row("C", "c2", "italy", "stool", "cancer", "61", "female", k__X="5"),
        ]
    )


def test_example_profiles_sum_rows_per_dataset() -> None:
    profiles = aggregate_profiles(_example_records(), ["A", "B", "C"], ChordConfig())

    assert [p.dataset_name for p in profiles] == ["A", "B", "C"]
    assert [p.profile for p in profiles] == [{"k__X": 5.0}, {"k__X": 1.0}, {"k__X": 5.0}]


def test_profiles_follow_selection_order() -> None:
    profiles = aggregate_profiles(_example_records(), ["C", "A"], ChordConfig())

    assert [p.dataset_name for p in profiles] == ["C", "A"]
    assert profiles[0].profile["k__X"] == 5.0


def test_aggregation_ignores_unselected_rows_and_coerces_bad_values() -> None:
    records = pd.DataFrame(
        [
            _row("A", k__X="1.5", k__Y="abc"),
            _row("B", k__X="100", k__Y="100"),
            _row("A", k__X="", k__Y="2"),
            _row("A", k__X="0.25", k__Y="n/a"),
        ]
    )

    (prof,) = aggregate_profiles(records, ["A"], ChordConfig())

    assert prof.profile == {"k__X": 1.75, "k__Y": 2.0}
    assert prof.total == 3.75


def test_every_profile_has_every_taxon_column() -> None:
    records = pd.DataFrame(
        [
            _row("A", **{"k__X": "4", "k__Y": ""}),
            _row("B", **{"k__X": "", "k__Y": "7"}),
        ]
    )

    profiles = aggregate_profiles(records, ["A", "B"], ChordConfig())

    assert profiles[0].profile == {"k__X": 4.0, "k__Y": 0.0}
    assert profiles[1].profile == {"k__X": 0.0, "k__Y": 7.0}


def test_non_taxon_columns_are_not_aggregated() -> None:
    (prof,) = aggregate_profiles(_example_records(), ["A"], ChordConfig())

    assert list(prof.profile) == ["k__X"]


def test_representative_record_is_first_row_of_dataset() -> None:
    profiles = aggregate_profiles(_example_records(), ["A", "C"], ChordConfig())

    assert profiles[0].representative == RepresentativeRecord(
        dataset_name="A",
        sample_id="a1",
        country="usa",
        bodysite="stool",
        disease="n",
        age="40",
        gender="male",
    )
    assert profiles[1].representative.sample_id == "c1"
    assert profiles[0].label == "A | a1 | usa"


def test_label_falls_back_per_segment() -> None:
    assert build_label(RepresentativeRecord("A", None, "usa")) == "A | Unknown Sample | usa"
    assert build_label(RepresentativeRecord("A", "s1", None)) == "A | s1 | Unknown Country"
    assert build_label(RepresentativeRecord(None, "s1", "usa")) == "Unknown Dataset | s1 | usa"
    assert (
        build_label(RepresentativeRecord())
        == "Unknown Dataset | Unknown Sample | Unknown Country"
    )


def test_empty_country_gives_unknown_country_segment() -> None:
    records = pd.DataFrame([_row("A", "s1", "", k__X="1")])

    label = label_of(records, "A", ChordConfig())

    assert label.split(" | ")[2] == "Unknown Country"


def test_empty_sample_ids_give_unknown_sample_for_each_dataset() -> None:
    records = pd.DataFrame(
        [
            _row("doyle_bw", "", "usa", k__X="1"),
            _row("hmp", "", "usa", k__X="2"),
            _row("doyle_bw", "", "usa", k__X="3"),
        ]
    )

    profiles = aggregate_profiles(records, ["doyle_bw", "hmp"], ChordConfig())

    assert [p.label.split(" | ")[1] for p in profiles] == ["Unknown Sample", "Unknown Sample"]


def test_missing_metadata_columns_are_absent_not_errors() -> None:
    records = pd.DataFrame({"dataset_name": ["A"], "k__X": ["1"]})

    (prof,) = aggregate_profiles(records, ["A"], ChordConfig())

    assert prof.label == "A | Unknown Sample | Unknown Country"
    assert prof.representative.bodysite is None


def test_nan_metadata_from_in_memory_frames_counts_as_absent() -> None:
    records = pd.DataFrame(
        {"dataset_name": ["A"], "sampleID": [float("nan")], "country": [None], "k__X": [1.0]}
    )

    assert label_of(records, "A", ChordConfig()) == "A | Unknown Sample | Unknown Country"


def test_label_of_unknown_dataset_uses_placeholders() -> None:
    records = _example_records()

    assert label_of(records, "Z", ChordConfig()) == "Z | Unknown Sample | Unknown Country"
    assert representative_record(records, "Z", ChordConfig()) is None


def test_selected_dataset_without_rows_gets_zero_profile() -> None:
    (prof,) = aggregate_profiles(_example_records(), ["Z"], ChordConfig())

    assert prof.label == "Z | Unknown Sample | Unknown Country"
    assert prof.profile == {}


def test_empty_selection_gives_no_profiles() -> None:
    assert aggregate_profiles(_example_records(), [], ChordConfig()) == []


def test_negative_cells_are_summed_before_clamping() -> None:
    records = pd.DataFrame(
        [
            _row("A", k__X="5", k__Y="1"),
            _row("A", k__X="-2", k__Y="-4"),
        ]
    )

    (prof,) = aggregate_profiles(records, ["A"], ChordConfig())

    assert prof.profile == {"k__X": 3.0, "k__Y": 0.0}
