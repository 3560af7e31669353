from __future__ import annotations

"""
Chord layout for the taxochord project.

This module turns a square similarity matrix into the angular geometry of a
chord diagram:

- one group per row, spanning an angle proportional to the row total
- one ribbon per unordered pair (i, j) with a non-zero cell, joining a
  sub-span of group i to a sub-span of group j

Angles are in radians, measured clockwise from twelve o'clock, in [0, 2*pi].
Groups are laid out in index order with `pad_angle` between neighbours.
Within a group, sub-spans are sorted by value, descending by default.

Main entry point:
- compute_chord_layout(matrix, pad_angle, sort_subgroups_descending)
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import logging
import math
import numpy as np

logger = logging.getLogger(__name__)

TAU = 2.0 * math.pi


@dataclass(frozen=True)
class ChordGroup:
    index: int
    start_angle: float
    end_angle: float
    value: float

    @property
    def mid_angle(self) -> float:
        return (self.start_angle + self.end_angle) / 2.0


@dataclass(frozen=True)
class ChordEnd:
    index: int
    start_angle: float
    end_angle: float
    value: float


@dataclass(frozen=True)
class Ribbon:
    source: ChordEnd
    target: ChordEnd

    def touches(self, index: int) -> bool:
        """True if either end of the ribbon belongs to group `index`."""
        return self.source.index == index or self.target.index == index


@dataclass(frozen=True)
class ChordLayout:
    groups: List[ChordGroup] = field(default_factory=list)
    ribbons: List[Ribbon] = field(default_factory=list)


def compute_chord_layout(
    matrix: np.ndarray,
    pad_angle: float = 0.05,
    sort_subgroups_descending: bool = True,
) -> ChordLayout:
    """
    Compute chord groups and ribbons for a square, non-negative matrix.

    Parameters
    ----------
    matrix
        2D array of shape (n, n). Row i gives the flow from group i.
    pad_angle
        Gap in radians between adjacent groups.
    sort_subgroups_descending
        If True, the sub-spans inside each group are ordered from largest to
        smallest value. Otherwise they follow column order.

    Returns
    -------
    ChordLayout
        Groups in index order and ribbons ordered by (i, j) with i <= j. The
        source end of each ribbon is the end with the larger value.
    """
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError("matrix must be a square 2D array")

    n = matrix.shape[0]
    if n == 0:
        return ChordLayout()

    group_sums = matrix.sum(axis=1)
    total = float(group_sums.sum())

    # Radians per unit of value. An all-zero matrix still spaces the
    # zero-width groups evenly around the circle.
    if total > 0:
        scale = max(0.0, TAU - pad_angle * n) / total
    else:
        scale = 0.0
    step = pad_angle if scale else TAU / n

    pending: Dict[Tuple[int, int], Dict[str, Optional[ChordEnd]]] = {}
    groups: List[ChordGroup] = []

    x = 0.0
    for i in range(n):
        x0 = x
        subgroups = [j for j in range(n) if matrix[i, j] or matrix[j, i]]
        if sort_subgroups_descending:
            subgroups.sort(key=lambda j: -matrix[i, j])

        for j in subgroups:
            value = float(matrix[i, j])
            end = ChordEnd(index=i, start_angle=x, end_angle=x + value * scale, value=value)
            x = end.end_angle

            key = (min(i, j), max(i, j))
            chord = pending.setdefault(key, {"source": None, "target": None})
            if i < j:
                chord["source"] = end
            else:
                chord["target"] = end
                if i == j:
                    chord["source"] = end

        groups.append(
            ChordGroup(index=i, start_angle=x0, end_angle=x, value=float(group_sums[i]))
        )
        x += step

    ribbons: List[Ribbon] = []
    for key in sorted(pending):
        chord = pending[key]
        # Both ends exist: a non-zero cell puts j in i's subgroups and i in j's
        source, target = chord["source"], chord["target"]
        if source.value < target.value:
            source, target = target, source
        ribbons.append(Ribbon(source=source, target=target))

    logger.info(
        "Chord layout: %d groups, %d ribbons (pad_angle=%.3f)",
        len(groups),
        len(ribbons),
        pad_angle,
    )

    return ChordLayout(groups=groups, ribbons=ribbons)
