from __future__ import annotations

"""
Similarity utilities for the taxochord project.

This module is responsible for constructing the pairwise similarity matrix
that drives ribbon widths in the chord diagram.

Responsibilities:
- Stack aggregated profiles into a numeric matrix (rows = datasets,
  cols = taxon columns)
- Compute the shared abundance of every pair of datasets using
  scikit-learn's pairwise machinery with a custom kernel
- Wrap the result in a labelled DataFrame for export

The score of a pair is the sum, over taxa present in both datasets, of the
smaller of the two abundances. It is not normalized, so ribbon widths stay
proportional to raw shared abundance mass.

Main entry point:
- build_similarity_matrix(profiles, taxon_columns=None)
"""

from typing import List, Optional, Sequence

import logging
import numpy as np
import pandas as pd
from sklearn.metrics.pairwise import pairwise_kernels

from .profiles import AggregatedProfile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Kernel
# ---------------------------------------------------------------------------


def shared_abundance(x: np.ndarray, y: np.ndarray) -> float:
    """
    Sum of min(x[c], y[c]) over the taxa where both values are positive.

    min is commutative, so the kernel is symmetric. With x == y the result is
    the total abundance of x over its non-zero taxa.
    """
    both = (x > 0) & (y > 0)
    return float(np.minimum(x[both], y[both]).sum())


# ---------------------------------------------------------------------------
# Matrix construction
# ---------------------------------------------------------------------------


def profiles_to_array(
    profiles: Sequence[AggregatedProfile],
    taxon_columns: List[str],
) -> np.ndarray:
    """
    Stack profiles into an array of shape (n_datasets, n_taxa).

    Taxa missing from a profile count as 0.
    """
    values = np.zeros((len(profiles), len(taxon_columns)), dtype=float)
    for i, prof in enumerate(profiles):
        for j, col in enumerate(taxon_columns):
            values[i, j] = prof.profile.get(col, 0.0)
    return values


def build_similarity_matrix(
    profiles: Sequence[AggregatedProfile],
    taxon_columns: Optional[List[str]] = None,
) -> np.ndarray:
    """
    Build the symmetric N x N shared abundance matrix.

    Parameters
    ----------
    profiles
        Aggregated profiles in selection order.
    taxon_columns
        Ordered taxon columns defining the feature space. If None, the keys
        of the first profile are used.

    Returns
    -------
    np.ndarray
        A 2D float array of shape (n_datasets, n_datasets) where entry (i, j)
        is the shared abundance of datasets i and j. All entries are
        non-negative and matrix[i, j] == matrix[j, i].
    """
    n = len(profiles)
    if taxon_columns is None:
        taxon_columns = list(profiles[0].profile) if profiles else []

    if n == 0:
        logger.info("No profiles; returning an empty similarity matrix")
        return np.zeros((0, 0), dtype=float)

    if not taxon_columns:
        logger.warning("No taxon columns; similarity matrix is all zeros")
        return np.zeros((n, n), dtype=float)

    X = profiles_to_array(profiles, taxon_columns)

    logger.info(
        "Building similarity matrix for %d datasets with %d taxa",
        n,
        len(taxon_columns),
    )

    matrix = pairwise_kernels(X, metric=shared_abundance)

    logger.info("Similarity matrix computed: shape (%d, %d)", *matrix.shape)
    logger.debug("Similarity matrix:\n%s", matrix)

    return matrix


def matrix_to_frame(
    matrix: np.ndarray,
    profiles: Sequence[AggregatedProfile],
) -> pd.DataFrame:
    """Return the matrix as a DataFrame indexed and labelled by dataset name."""
    if matrix.shape != (len(profiles), len(profiles)):
        raise ValueError(
            f"Matrix shape {matrix.shape} does not match {len(profiles)} profiles"
        )
    names = [p.dataset_name for p in profiles]
    return pd.DataFrame(matrix, index=names, columns=names)
