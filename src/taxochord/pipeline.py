from __future__ import annotations

"""
Pipeline orchestration for the taxochord project.

The pipeline runs in two stages:

1. A single load of the record table (the only step that can fail)
2. A synchronous, side effect free chain over the loaded records:
   select datasets -> aggregate profiles -> similarity matrix -> chord layout

`ChordSession` holds the result of one load together with the interaction
controller built on top of it. Reloading discards both before rebuilding, so
there is never a mix of old and new state.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import logging
import numpy as np
import pandas as pd

from .chord_layout import ChordLayout, compute_chord_layout
from .config import ChordConfig
from .data_io import RecordLoadError, load_records
from .interaction import InteractionController, TooltipContent, tooltips_for
from .preprocessing import select_datasets
from .profiles import AggregatedProfile, aggregate_profiles
from .similarity import build_similarity_matrix, matrix_to_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChordResult:
    """Everything derived from one load. Read-only once built."""

    selection: List[str]
    taxon_columns: List[str]
    profiles: List[AggregatedProfile]
    matrix: np.ndarray
    layout: ChordLayout

    @property
    def labels(self) -> List[str]:
        return [p.label for p in self.profiles]

    @property
    def tooltips(self) -> List[TooltipContent]:
        return tooltips_for(self.profiles)

    def matrix_frame(self) -> pd.DataFrame:
        return matrix_to_frame(self.matrix, self.profiles)


def run_pipeline(records: pd.DataFrame, cfg: ChordConfig) -> ChordResult:
    """
    Run the synchronous part of the pipeline on already loaded records.

    An empty record table gives an empty selection, a (0, 0) matrix and an
    empty layout; this is not an error.
    """
    selection = select_datasets(records, cfg.max_datasets, cfg.dataset_column)
    profiles = aggregate_profiles(records, selection, cfg)
    taxon_columns = list(profiles[0].profile) if profiles else []

    matrix = build_similarity_matrix(profiles, taxon_columns)
    matrix.setflags(write=False)

    layout = compute_chord_layout(
        matrix,
        pad_angle=cfg.pad_angle,
        sort_subgroups_descending=cfg.sort_subgroups_descending,
    )

    logger.info(
        "Pipeline: %d datasets, %d taxa, %d ribbons",
        len(selection),
        len(taxon_columns),
        len(layout.ribbons),
    )

    return ChordResult(
        selection=selection,
        taxon_columns=taxon_columns,
        profiles=profiles,
        matrix=matrix,
        layout=layout,
    )


def load_and_run(cfg: ChordConfig, path: Optional[Path] = None) -> ChordResult:
    """
    Load records and run the pipeline.

    Raises RecordLoadError if the records cannot be loaded; nothing after the
    load runs in that case.
    """
    records = load_records(path, cfg)
    return run_pipeline(records, cfg)


class ChordSession:
    """
    One visualization session: the current ChordResult and its controller.

    Use `reload` to (re)load data. A failed load leaves the session empty.
    """

    def __init__(self, cfg: ChordConfig) -> None:
        self.cfg = cfg
        self.result: Optional[ChordResult] = None
        self.controller: Optional[InteractionController] = None
        self.last_error: Optional[RecordLoadError] = None

    @property
    def is_loaded(self) -> bool:
        return self.result is not None

    def clear(self) -> None:
        self.result = None
        self.controller = None

    def reload(self, path: Optional[Path] = None) -> bool:
        """
        Discard the current state, then load and rebuild everything.

        Returns True on success. On a load failure the error is logged and
        kept in `last_error`, and the session stays empty.
        """
        self.clear()
        self.last_error = None

        try:
            result = load_and_run(self.cfg, path)
        except RecordLoadError as exc:
            logger.error("Error loading the dataset: %s", exc)
            self.last_error = exc
            return False

        self.result = result
        self.controller = InteractionController(
            result.layout.ribbons,
            result.tooltips,
            self.cfg,
        )
        return True
