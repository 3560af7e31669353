from __future__ import annotations

"""
Data loading utilities for the taxochord project.

This module is responsible for reading the microbial abundance table from disk
and returning a single pandas DataFrame that the rest of the pipeline can
consume. One row of the frame is one record.

Responsibilities:
- Load a delimited text or Excel table with every cell kept as a raw string
- Check that the dataset column the pipeline groups on is present
- Turn every kind of read failure into a single RecordLoadError

Call `load_records(path, cfg)` as the main entry point.
"""

from pathlib import Path
from typing import Optional

import logging
import pandas as pd

from .config import ChordConfig

logger = logging.getLogger(__name__)


class RecordLoadError(RuntimeError):
    """Raised when the abundance table cannot be read. Fatal for a session."""


# ---------------------------------------------------------------------------
# Low level loaders
# ---------------------------------------------------------------------------


def _read_table_any(path: Path) -> pd.DataFrame:
    """
    Load a table from a CSV, TSV or Excel file based on its extension.

    Supported formats:
      - .csv via pandas.read_csv
      - .tsv / .txt via pandas.read_csv with a tab separator
      - .xlsx / .xls via pandas.read_excel

    Cells are read as strings and empty cells stay empty strings, so numeric
    coercion happens later in one place.

    Raises FileNotFoundError if the file does not exist, and ValueError for
    unsupported suffixes.
    """
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    suffix = path.suffix.lower()

    if suffix == ".csv":
        logger.info("Loading CSV table from %s", path)
        return pd.read_csv(path, dtype=str, keep_default_na=False)
    if suffix in {".tsv", ".txt"}:
        logger.info("Loading tab separated table from %s", path)
        return pd.read_csv(path, sep="\t", dtype=str, keep_default_na=False)
    if suffix in {".xlsx", ".xls"}:
        logger.info("Loading Excel table from %s", path)
        return pd.read_excel(path, dtype=str, keep_default_na=False)

    raise ValueError(f"Unsupported data file extension '{suffix}' for {path}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_records(path: Optional[Path], cfg: ChordConfig) -> pd.DataFrame:
    """
    Load the abundance records table.

    Parameters
    ----------
    path
        File to read. If None, cfg.data_path is used.
    cfg
        ChordConfig naming the dataset column.

    Returns
    -------
    pandas.DataFrame
        One row per record, all cells as raw strings.

    Raises
    ------
    RecordLoadError
        If the file is missing, cannot be parsed, or lacks the dataset column.
    """
    path = Path(path) if path is not None else Path(cfg.data_path)

    try:
        df = _read_table_any(path)
    except pd.errors.EmptyDataError as exc:
        raise RecordLoadError(f"Data file {path} is empty") from exc
    except (
        FileNotFoundError,
        ValueError,
        OSError,
        ImportError,
        pd.errors.ParserError,
    ) as exc:
        # ValueError also covers UnicodeDecodeError and bad Excel files;
        # ImportError means no Excel engine for the suffix (xlrd for .xls)
        raise RecordLoadError(f"Could not load records from {path}: {exc}") from exc

    if cfg.dataset_column not in df.columns:
        raise RecordLoadError(
            f"Data file {path} has no '{cfg.dataset_column}' column"
        )

    logger.info(
        "Loaded %d records with %d columns from %s",
        len(df),
        df.shape[1],
        path,
    )

    return df
