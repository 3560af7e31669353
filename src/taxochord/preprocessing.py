from __future__ import annotations

"""
Preprocessing utilities for the taxochord project.

This module is responsible for:

- Normalizing the dataset name column so missing names group together
- Selecting the bounded, order-stable subset of datasets to visualize
- Identifying which columns hold taxonomic abundances
- Converting raw abundance cells to non-negative numbers

Everything here is a pure function of its inputs.
"""

from typing import Any, List

import logging
import numpy as np
import pandas as pd

from .config import ChordConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------


def clean_text(value: Any) -> str:
    """
    Return a cell as text, mapping None, NaN and pandas NA to "".

    Frames read from disk hold empty strings for missing cells, while frames
    built in memory may hold None or NaN. Both mean "absent".
    """
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        # list-like cells; not expected in a record table
        pass
    return str(value)


def dataset_names(records: pd.DataFrame, dataset_column: str) -> pd.Series:
    """Return the dataset column as text, with absent names as ""."""
    if dataset_column not in records.columns:
        raise ValueError(f"Records have no '{dataset_column}' column")
    return records[dataset_column].map(clean_text)


# ---------------------------------------------------------------------------
# Dataset selection
# ---------------------------------------------------------------------------


def select_datasets(
    records: pd.DataFrame,
    limit: int = 10,
    dataset_column: str = "dataset_name",
) -> List[str]:
    """
    Pick up to `limit` distinct dataset names in order of first appearance.

    The scan stops as soon as `limit` names have been collected. If there are
    fewer distinct datasets, all of them are returned. No sorting by value or
    frequency is applied, so the result only depends on the input order.
    """
    if limit <= 0:
        return []

    names = dataset_names(records, dataset_column)

    selected: List[str] = []
    seen = set()
    for name in names:
        if name in seen:
            continue
        seen.add(name)
        selected.append(name)
        if len(selected) >= limit:
            break

    logger.info(
        "Selected %d datasets (limit %d): %s",
        len(selected),
        limit,
        ", ".join(repr(n) for n in selected),
    )

    return selected


def filter_to_selection(
    records: pd.DataFrame,
    selection: List[str],
    dataset_column: str,
) -> pd.DataFrame:
    """Return the records that belong to a selected dataset, in input order."""
    mask = dataset_names(records, dataset_column).isin(selection)
    return records.loc[mask]


# ---------------------------------------------------------------------------
# Taxon columns
# ---------------------------------------------------------------------------


def discover_taxon_columns(filtered: pd.DataFrame, prefix: str) -> List[str]:
    """
    Return the ordered list of taxon columns in the filtered record set.

    A column is a taxon column when its name starts with `prefix`. The order
    follows the table. When the filtered set has no rows the result is an
    empty list, so every dataset shares one fixed set of columns (possibly
    none) and the matrix dimensionality stays consistent.
    """
    if filtered.empty:
        logger.info("No records in the filtered set; no taxon columns")
        return []

    columns = [str(c) for c in filtered.columns if str(c).startswith(prefix)]

    if not columns:
        logger.warning("No columns start with the taxon prefix '%s'", prefix)
    else:
        logger.info("Found %d taxon columns with prefix '%s'", len(columns), prefix)

    return columns


def coerce_abundances(
    df: pd.DataFrame,
    taxon_columns: List[str],
) -> pd.DataFrame:
    """
    Convert taxon columns to floats.

    Unparseable, missing and non-finite values become 0. Negative numbers
    are kept so per dataset sums stay exact; `aggregate_profiles` clamps the
    summed profile instead. This is a tolerance policy rather than
    validation, so the number of coerced cells is only reported at DEBUG
    level.

    Returns
    -------
    DataFrame
        A new frame with the same index holding only the taxon columns.
    """
    if not taxon_columns:
        return pd.DataFrame(index=df.index)

    numeric = df[taxon_columns].apply(pd.to_numeric, errors="coerce").astype(float)
    invalid = ~np.isfinite(numeric)

    n_invalid = int(invalid.to_numpy().sum())
    if n_invalid:
        logger.debug("Coerced %d abundance cells to 0", n_invalid)

    return numeric.mask(invalid, 0.0)
