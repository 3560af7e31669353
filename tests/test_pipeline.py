import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from taxochord.config import ChordConfig  # noqa: E402
from taxochord.data_io import RecordLoadError, load_records  # noqa: E402
from taxochord.interaction import Highlighted  # noqa: E402
from taxochord.pipeline import ChordSession, load_and_run, run_pipeline  # noqa: E402

HEADER = "dataset_name,sampleID,country,bodysite,disease,age,gender,k__X,k__Y\n"


def _write_csv(path: Path, rows) -> Path:
    path.write_text(HEADER + "".join(row + "\n" for row in rows), encoding="utf-8")
    return path


def _example_rows():
    return [
        "A,a1,usa,stool,n,40,male,2,1",
        "B,,china,skin,ibd,31,female,1,0",
        "A,a2,usa,oral,n,41,male,3,x",
        "C,c1,,stool,cancer,60,male,0,4",
        "C,c2,italy,stool,cancer,61,female,5,",
    ]


def test_load_records_keeps_cells_as_strings(tmp_path: Path) -> None:
    path = _write_csv(tmp_path / "abundance.csv", _example_rows())

    records = load_records(path, ChordConfig())

    assert len(records) == 5
    assert records.loc[1, "sampleID"] == ""
    assert records.loc[2, "k__Y"] == "x"


def test_load_records_reads_tab_separated_files(tmp_path: Path) -> None:
    path = tmp_path / "abundance.tsv"
    path.write_text("dataset_name\tk__X\nA\t1\nB\t2\n", encoding="utf-8")

    records = load_records(path, ChordConfig())

    assert list(records["dataset_name"]) == ["A", "B"]


def test_load_records_defaults_to_configured_path(tmp_path: Path) -> None:
    path = _write_csv(tmp_path / "abundance.csv", _example_rows())

    records = load_records(None, ChordConfig(data_path=path))

    assert len(records) == 5


@pytest.mark.parametrize(
    "name, content",
    [
        ("missing.csv", None),
        ("table.json", "{}"),
        ("empty.csv", ""),
        ("no_dataset.csv", "sampleID,k__X\ns1,1\n"),
    ],
)
def test_load_failures_raise_record_load_error(tmp_path: Path, name, content) -> None:
    path = tmp_path / name
    if content is not None:
        path.write_text(content, encoding="utf-8")

    with pytest.raises(RecordLoadError):
        load_records(path, ChordConfig())


def test_run_pipeline_on_example(tmp_path: Path) -> None:
    records = load_records(_write_csv(tmp_path / "a.csv", _example_rows()), ChordConfig())

    result = run_pipeline(records, ChordConfig())

    assert result.selection == ["A", "B", "C"]
    assert result.taxon_columns == ["k__X", "k__Y"]
    assert result.labels == ["A | a1 | usa", "B | Unknown Sample | china", "C | c1 | Unknown Country"]
    np.testing.assert_array_equal(
        result.matrix,
        np.array(
            [
                [6.0, 1.0, 6.0],
                [1.0, 1.0, 1.0],
                [6.0, 1.0, 9.0],
            ]
        ),
    )
    assert len(result.layout.groups) == 3


def test_run_pipeline_respects_max_datasets(tmp_path: Path) -> None:
    records = load_records(_write_csv(tmp_path / "a.csv", _example_rows()), ChordConfig())

    result = run_pipeline(records, ChordConfig(max_datasets=2))

    assert result.selection == ["A", "B"]
    assert result.matrix.shape == (2, 2)


def test_run_pipeline_on_empty_records() -> None:
    records = pd.DataFrame(columns=["dataset_name", "k__X"])

    result = run_pipeline(records, ChordConfig())

    assert result.selection == []
    assert result.profiles == []
    assert result.matrix.shape == (0, 0)
    assert result.layout.groups == []
    assert result.layout.ribbons == []


def test_result_matrix_is_read_only(tmp_path: Path) -> None:
    result = load_and_run(ChordConfig(data_path=_write_csv(tmp_path / "a.csv", _example_rows())))

    with pytest.raises(ValueError):
        result.matrix[0, 0] = 99.0


def test_matrix_frame_is_labelled_by_dataset(tmp_path: Path) -> None:
    result = load_and_run(ChordConfig(data_path=_write_csv(tmp_path / "a.csv", _example_rows())))

    frame = result.matrix_frame()

    assert frame.loc["C", "C"] == 9.0
    assert frame.loc["A", "B"] == frame.loc["B", "A"]


def test_session_reload_builds_result_and_controller(tmp_path: Path) -> None:
    session = ChordSession(ChordConfig(data_path=_write_csv(tmp_path / "a.csv", _example_rows())))

    assert session.reload()
    assert session.is_loaded
    assert session.controller is not None
    session.controller.pointer_enter(1, 0.0, 0.0)
    assert session.controller.state == Highlighted(1)


def test_session_load_failure_leaves_session_empty(tmp_path: Path) -> None:
    session = ChordSession(ChordConfig(data_path=tmp_path / "missing.csv"))

    assert not session.reload()
    assert session.result is None
    assert session.controller is None
    assert isinstance(session.last_error, RecordLoadError)


def test_session_reload_discards_previous_state(tmp_path: Path) -> None:
    good = _write_csv(tmp_path / "a.csv", _example_rows())
    session = ChordSession(ChordConfig(data_path=good))
    session.reload()
    old_controller = session.controller
    old_controller.pointer_enter(0, 0.0, 0.0)

    assert session.reload(good)
    assert session.controller is not old_controller
    assert not isinstance(session.controller.state, Highlighted)

    assert not session.reload(tmp_path / "missing.csv")
    assert session.result is None
    assert session.controller is None


def _raise_missing_engine(*args, **kwargs):
    raise ImportError("Missing optional dependency 'xlrd'")


def test_missing_excel_engine_raises_record_load_error(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "abundance.xls"
    path.write_bytes(b"\xd0\xcf\x11\xe0")
    monkeypatch.setattr(pd, "read_excel", _raise_missing_engine)

    with pytest.raises(RecordLoadError) as excinfo:
        load_records(path, ChordConfig())

    assert isinstance(excinfo.value.__cause__, ImportError)


def test_session_survives_missing_excel_engine(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "abundance.xls"
    path.write_bytes(b"\xd0\xcf\x11\xe0")
    monkeypatch.setattr(pd, "read_excel", _raise_missing_engine)
    session = ChordSession(ChordConfig(data_path=path))

    assert not session.reload()
    assert session.result is None
    assert isinstance(session.last_error, RecordLoadError)
