import importlib.util
from pathlib import Path

import pandas as pd

ROOT = Path(__file__).resolve().parents[1]
SCRIPT = ROOT / "scripts" / "build_chord.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("build_chord", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _write_csv(path: Path) -> Path:
    path.write_text(
        "dataset_name,sampleID,country,k__X,k__Y\n"
        "A,a1,usa,2,1\n"
        "B,b1,china,1,0\n"
        "A,a2,usa,3,0\n",
        encoding="utf-8",
    )
    return path


def test_parse_defaults() -> None:
    cli = _load_script()

    args = cli.parse_command_line_arguments([])

    assert args.data_path is None
    assert args.max_datasets == 10
    assert args.profile_charts is True
    assert args.dry_run is False


def test_main_writes_html_and_matrix(tmp_path: Path) -> None:
    cli = _load_script()
    data = _write_csv(tmp_path / "abundance.csv")
    output = tmp_path / "out" / "chord.html"
    matrix = tmp_path / "matrix.csv"

    code = cli.main(
        [
            "--data", str(data),
            "--output", str(output),
            "--export-matrix", str(matrix),
            "--no-profile-charts",
        ]
    )

    assert code == 0
    html = output.read_text(encoding="utf-8")
    assert 'id="chord-plot"' in html
    frame = pd.read_csv(matrix, index_col=0)
    assert list(frame.columns) == ["A", "B"]
    assert frame.loc["A", "A"] == 6.0
    assert frame.loc["A", "B"] == 1.0


def test_main_dry_run_prints_html(tmp_path: Path, capsys) -> None:
    cli = _load_script()
    data = _write_csv(tmp_path / "abundance.csv")
    output = tmp_path / "chord.html"

    code = cli.main(
        ["--data", str(data), "--output", str(output), "--dry-run", "--no-profile-charts"]
    )

    assert code == 0
    assert not output.exists()
    assert "<!DOCTYPE html>" in capsys.readouterr().out


def test_main_with_missing_data_writes_nothing(tmp_path: Path) -> None:
    cli = _load_script()
    output = tmp_path / "chord.html"

    code = cli.main(["--data", str(tmp_path / "missing.csv"), "--output", str(output)])

    assert code == 1
    assert not output.exists()
