from __future__ import annotations

"""
Configuration and shared metadata for the taxochord project.

This module defines:

- Paths to data files relative to the project root
- Column names expected in the abundance table
- Default pipeline, layout, and interaction parameters

Most code in the package should import configuration values from here rather
than hard coding paths or constants.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

# Project root is two levels up from this file.
#   project_root/
#     src/
#       taxochord/
#         config.py
ROOT_DIR: Path = Path(__file__).resolve().parents[2]
DATA_DIR: Path = ROOT_DIR / "data"

DEFAULT_DATA_PATH: Path = DATA_DIR / "abundance.csv"


# ---------------------------------------------------------------------------
# Table layout
# ---------------------------------------------------------------------------

# Columns as they appear in the curated abundance table
DATASET_COLUMN: str = "dataset_name"
SAMPLE_COLUMN: str = "sampleID"
COUNTRY_COLUMN: str = "country"
BODYSITE_COLUMN: str = "bodysite"
DISEASE_COLUMN: str = "disease"
AGE_COLUMN: str = "age"
GENDER_COLUMN: str = "gender"

# Taxonomic abundance columns start with the kingdom marker, for example
# "k__Bacteria|p__Firmicutes|c__Clostridia"
TAXON_PREFIX: str = "k__"

LABEL_DELIMITER: str = " | "

UNKNOWN_DATASET: str = "Unknown Dataset"
UNKNOWN_SAMPLE: str = "Unknown Sample"
UNKNOWN_COUNTRY: str = "Unknown Country"


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------

# d3 schemeCategory10
CATEGORY10: List[str] = [
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
]


# ---------------------------------------------------------------------------
# Pipeline configuration
# ---------------------------------------------------------------------------

@dataclass
class ChordConfig:
    """
    Top level configuration object for the taxochord pipeline.

    Pass this into the pipeline functions so that tests and scripts reuse the
    same settings.
    """

    data_path: Path = DEFAULT_DATA_PATH

    # Column names
    dataset_column: str = DATASET_COLUMN
    sample_column: str = SAMPLE_COLUMN
    country_column: str = COUNTRY_COLUMN
    bodysite_column: str = BODYSITE_COLUMN
    disease_column: str = DISEASE_COLUMN
    age_column: str = AGE_COLUMN
    gender_column: str = GENDER_COLUMN
    taxon_prefix: str = TAXON_PREFIX

    # Selection
    max_datasets: int = 10

    # Chord layout
    pad_angle: float = 0.05
    sort_subgroups_descending: bool = True

    # Interaction
    full_opacity: float = 1.0
    dimmed_opacity: float = 0.1
    tooltip_offset: Tuple[float, float] = (10.0, 10.0)

    # Canvas and geometry
    width: int = 900
    height: int = 900
    padding: int = 50
    outer_radius_fraction: float = 0.4
    arc_thickness: float = 30.0
    ribbon_fill_opacity: float = 0.7

    # Labels
    label_offset: float = 10.0
    label_line_height: float = 1.1
    label_font_size: int = 12

    # Plot and HTML options
    palette: List[str] = field(default_factory=lambda: CATEGORY10.copy())
    plot_title: str = "Taxonomic overlap between datasets"
    include_profile_charts: bool = True
    profile_chart_top_n: int = 8

    @property
    def outer_radius(self) -> float:
        return min(self.width, self.height) * self.outer_radius_fraction

    @property
    def inner_radius(self) -> float:
        return self.outer_radius - self.arc_thickness

    def metadata_columns(self) -> List[str]:
        """Return the non-taxon columns read into a RepresentativeRecord."""
        return [
            self.dataset_column,
            self.sample_column,
            self.country_column,
            self.bodysite_column,
            self.disease_column,
            self.age_column,
            self.gender_column,
        ]

    def color_for(self, index: int) -> str:
        """Ordinal color for a dataset index, cycling through the palette."""
        return self.palette[index % len(self.palette)]

