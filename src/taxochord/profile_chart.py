from __future__ import annotations

"""
Radial profile chart generation for the taxochord project.

This module turns one dataset's aggregated abundance profile into a radial
(polar) bar chart image that the HTML page shows next to the chord diagram
while that dataset is highlighted.

Responsibilities:
- Pick the most abundant taxa of a profile
- Shorten long taxonomic paths to their most specific rank
- Build a Matplotlib polar bar chart in the dataset's chord color
- Encode the figure as a base64 PNG string for use in HTML

Main entry point:
- create_profile_chart_image(prof, color, cfg) -> str | None
"""

import base64
import io
import logging
from typing import List, Optional, Tuple

import numpy as np
import matplotlib

matplotlib.use("Agg")  # must be set before pyplot import

import matplotlib.pyplot as plt  # noqa: E402

from .config import UNKNOWN_DATASET, ChordConfig
from .profiles import AggregatedProfile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def short_taxon_name(column: str) -> str:
    """
    Return the most specific rank of a taxon column.

    "k__Bacteria|p__Firmicutes|g__Blautia" becomes "g__Blautia".
    """
    return column.rsplit("|", 1)[-1]


def top_taxa(
    prof: AggregatedProfile,
    top_n: int,
) -> List[Tuple[str, float]]:
    """
    Return up to top_n (column, value) pairs with positive value, largest first.

    Ties keep column order.
    """
    positive = [(col, val) for col, val in prof.profile.items() if val > 0]
    positive.sort(key=lambda item: -item[1])
    return positive[: max(top_n, 0)]


def _build_angles(n: int) -> np.ndarray:
    """
    Build equally spaced angles around the circle for n bars.

    The last point is not repeated so the bars tile the full 360 degrees
    without overlap.
    """
    if n <= 0:
        raise ValueError("Number of bars for profile chart must be positive")

    return np.linspace(0.0, 2.0 * np.pi, num=n, endpoint=False)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def create_profile_chart_image(
    prof: AggregatedProfile,
    color: str,
    cfg: ChordConfig,
    dpi: int = 100,
) -> Optional[str]:
    """
    Create a radial bar chart of a dataset's top taxa and return it as base64.

    Parameters
    ----------
    prof
        Aggregated profile of one dataset.
    color
        Bar color, normally the dataset's chord color.
    cfg
        ChordConfig providing profile_chart_top_n.
    dpi
        Dots per inch for the generated PNG.

    Returns
    -------
    str or None
        A base64 encoded PNG, or None if the dataset has no positive
        abundance to plot.
    """
    taxa = top_taxa(prof, cfg.profile_chart_top_n)
    if not taxa:
        logger.info("Dataset %r has no positive abundance; no profile chart", prof.dataset_name)
        return None

    names = [short_taxon_name(col) for col, _ in taxa]
    values = np.array([val for _, val in taxa], dtype=float)
    # Relative shape is what matters, so scale to the largest bar
    values = values / values.max()

    n_bars = len(names)
    angles = _build_angles(n_bars)

    fig, ax = plt.subplots(
        subplot_kw={"projection": "polar"},
        figsize=(4, 4),
        dpi=dpi,
    )

    width = 2.0 * np.pi / n_bars
    ax.bar(
        angles,
        values,
        width=width * 0.9,
        bottom=0.0,
        align="center",
        color=color,
        edgecolor="white",
        linewidth=1.0,
    )

    for angle, value, name in zip(angles, values, names):
        ax.text(
            angle,
            value + 0.15,
            name,
            ha="center",
            va="center",
            fontsize=7,
        )

    # Start at the top, run clockwise like the chord diagram
    ax.set_theta_offset(np.pi / 2.0)
    ax.set_theta_direction(-1)

    ax.set_yticklabels([])
    ax.set_yticks([])
    ax.set_xticks([])
    ax.set_title(prof.dataset_name or UNKNOWN_DATASET, fontsize=10)

    plt.tight_layout()

    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", bbox_inches="tight", transparent=True)
    plt.close(fig)
    buffer.seek(0)

    base64_str = base64.b64encode(buffer.read()).decode("ascii")

    logger.debug("Generated profile chart for dataset %r", prof.dataset_name)

    return base64_str
