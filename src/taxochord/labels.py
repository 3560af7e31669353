from __future__ import annotations

"""
Label placement around the chord diagram.

Each group gets a multi line label written radially outward from the middle
of its arc. Labels on the left half of the circle are flipped by 180 degrees
and anchored at their end so the text always reads upright.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import math

from .chord_layout import ChordGroup
from .config import LABEL_DELIMITER, ChordConfig


@dataclass(frozen=True)
class LabelLine:
    text: str
    dy_em: float  # vertical offset from the first line, in em


@dataclass(frozen=True)
class LabelPlacement:
    index: int
    angle: float          # radians, clockwise from twelve o'clock
    x: float
    y: float
    rotation: float       # degrees, clockwise, in (-180, 180]
    text_anchor: str      # "start" or "end"
    flipped: bool
    lines: Tuple[LabelLine, ...]


def split_label(label: str, line_height: float) -> Tuple[LabelLine, ...]:
    """Split a label on the delimiter, one line per segment."""
    return tuple(
        LabelLine(text=segment, dy_em=idx * line_height)
        for idx, segment in enumerate(label.split(LABEL_DELIMITER))
    )


def _normalize_degrees(degrees: float) -> float:
    degrees = math.fmod(degrees, 360.0)
    if degrees > 180.0:
        degrees -= 360.0
    elif degrees <= -180.0:
        degrees += 360.0
    return degrees


def polar_to_xy(radius: float, angle: float) -> Tuple[float, float]:
    """Cartesian point for a clockwise-from-top angle, with y pointing up."""
    return radius * math.sin(angle), radius * math.cos(angle)


def place_labels(
    groups: Sequence[ChordGroup],
    labels: Sequence[str],
    cfg: ChordConfig,
) -> List[LabelPlacement]:
    """
    Compute one LabelPlacement per group.

    labels[i] is the label of the dataset with index i.
    """
    if len(labels) < len(groups):
        raise ValueError(
            f"Got {len(labels)} labels for {len(groups)} chord groups"
        )

    radius = cfg.outer_radius + cfg.label_offset
    placements: List[LabelPlacement] = []

    for group in groups:
        angle = group.mid_angle
        flipped = angle > math.pi
        rotation = math.degrees(angle) - 90.0 + (180.0 if flipped else 0.0)
        x, y = polar_to_xy(radius, angle)

        placements.append(
            LabelPlacement(
                index=group.index,
                angle=angle,
                x=x,
                y=y,
                rotation=_normalize_degrees(rotation),
                text_anchor="end" if flipped else "start",
                flipped=flipped,
                lines=split_label(labels[group.index], cfg.label_line_height),
            )
        )

    return placements
