from __future__ import annotations

"""
Per dataset profile aggregation for the taxochord project.

For every selected dataset this module produces:

- a RepresentativeRecord, the first record of that dataset in input order,
  which supplies the display label and the metadata shown on hover
- a display label "dataset | sample | country" with placeholders for
  absent values
- an abundance profile: the sum of each taxon column over the dataset's rows

Main entry points:
- aggregate_profiles(records, selection, cfg)
- label_of(records, dataset_name, cfg)
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import logging
import pandas as pd

from .config import (
    LABEL_DELIMITER,
    UNKNOWN_COUNTRY,
    UNKNOWN_DATASET,
    UNKNOWN_SAMPLE,
    ChordConfig,
)
from .preprocessing import (
    clean_text,
    coerce_abundances,
    dataset_names,
    discover_taxon_columns,
    filter_to_selection,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RepresentativeRecord:
    """Metadata of the first record of a dataset. Empty values are None."""

    dataset_name: Optional[str] = None
    sample_id: Optional[str] = None
    country: Optional[str] = None
    bodysite: Optional[str] = None
    disease: Optional[str] = None
    age: Optional[str] = None
    gender: Optional[str] = None

    @classmethod
    def from_row(cls, row: pd.Series, cfg: ChordConfig) -> "RepresentativeRecord":
        def get(column: str) -> Optional[str]:
            if column not in row.index:
                return None
            return clean_text(row[column]) or None

        return cls(
            dataset_name=get(cfg.dataset_column),
            sample_id=get(cfg.sample_column),
            country=get(cfg.country_column),
            bodysite=get(cfg.bodysite_column),
            disease=get(cfg.disease_column),
            age=get(cfg.age_column),
            gender=get(cfg.gender_column),
        )


@dataclass(frozen=True)
class AggregatedProfile:
    """Summed abundances and display metadata for one dataset."""

    dataset_name: str
    label: str
    profile: Dict[str, float]
    representative: RepresentativeRecord

    @property
    def total(self) -> float:
        return float(sum(self.profile.values()))


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


def build_label(record: RepresentativeRecord) -> str:
    """
    Build "dataset | sample | country" for a representative record.

    Each segment falls back to its own placeholder independently.
    """
    parts = [
        record.dataset_name or UNKNOWN_DATASET,
        record.sample_id or UNKNOWN_SAMPLE,
        record.country or UNKNOWN_COUNTRY,
    ]
    return LABEL_DELIMITER.join(parts)


def _fallback_label(dataset_name: str) -> str:
    return LABEL_DELIMITER.join(
        [dataset_name or UNKNOWN_DATASET, UNKNOWN_SAMPLE, UNKNOWN_COUNTRY]
    )


def representative_record(
    records: pd.DataFrame,
    dataset_name: str,
    cfg: ChordConfig,
) -> Optional[RepresentativeRecord]:
    """Return the first record of `dataset_name`, or None if it has no rows."""
    names = dataset_names(records, cfg.dataset_column)
    rows = records.loc[names == dataset_name]
    if rows.empty:
        return None
    return RepresentativeRecord.from_row(rows.iloc[0], cfg)


def label_of(records: pd.DataFrame, dataset_name: str, cfg: ChordConfig) -> str:
    """Return the display label for one dataset."""
    record = representative_record(records, dataset_name, cfg)
    if record is None:
        return _fallback_label(dataset_name)
    return build_label(record)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def aggregate_profiles(
    records: pd.DataFrame,
    selection: List[str],
    cfg: ChordConfig,
) -> List[AggregatedProfile]:
    """
    Reduce the records of each selected dataset to one AggregatedProfile.

    Steps:
    1. Keep only records whose dataset is in the selection
    2. Discover the shared taxon columns from that filtered set
    3. Coerce abundance cells to numbers (invalid cells count as 0)
    4. Sum each taxon column per dataset, clamping negative sums to 0
    5. Attach the representative record and label of each dataset

    Parameters
    ----------
    records
        Raw record table from data_io.load_records.
    selection
        Ordered dataset names from preprocessing.select_datasets.
    cfg
        ChordConfig with column names and the taxon prefix.

    Returns
    -------
    list of AggregatedProfile
        One entry per selected dataset, in selection order. Each profile has
        an entry for every taxon column, 0 where the dataset contributes
        nothing.
    """
    filtered = filter_to_selection(records, selection, cfg.dataset_column)
    taxon_columns = discover_taxon_columns(filtered, cfg.taxon_prefix)

    names = dataset_names(filtered, cfg.dataset_column)
    numeric = coerce_abundances(filtered, taxon_columns)

    if taxon_columns:
        sums = numeric.groupby(names, sort=False).sum()
        sums = sums.reindex(index=selection, columns=taxon_columns, fill_value=0.0)
        # Negative cells count toward the sum, but a profile entry is never < 0
        n_negative = int((sums < 0).to_numpy().sum())
        if n_negative:
            logger.debug("Clamped %d negative profile sums to 0", n_negative)
        sums = sums.clip(lower=0.0)
    else:
        sums = pd.DataFrame(index=selection)

    profiles: List[AggregatedProfile] = []
    for dataset in selection:
        rows = filtered.loc[names == dataset]
        if rows.empty:
            logger.warning("Dataset %r has no records; using placeholder label", dataset)
            record = RepresentativeRecord(dataset_name=dataset or None)
            label = _fallback_label(dataset)
        else:
            record = RepresentativeRecord.from_row(rows.iloc[0], cfg)
            label = build_label(record)

        profile = {col: float(sums.at[dataset, col]) for col in taxon_columns}
        profiles.append(
            AggregatedProfile(
                dataset_name=dataset,
                label=label,
                profile=profile,
                representative=record,
            )
        )

    logger.info(
        "Aggregated %d dataset profiles over %d taxon columns",
        len(profiles),
        len(taxon_columns),
    )

    return profiles
