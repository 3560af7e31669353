from __future__ import annotations

"""
Plotly figure construction for the taxochord project.

This module draws the chord diagram as a Plotly figure:

- one filled annular sector per group (dataset), colored by index
- one filled ribbon per chord, colored by its target group
- one rotated, multi line annotation per group label

Group traces come first, in group order, followed by the ribbon traces in
layout order. The HTML page relies on this order to map hover events to
groups and to restyle ribbon opacities.

The main entry point is `build_chord_figure`, which takes a ChordResult and a
ChordConfig and returns a Plotly Figure ready for serialization.
"""

from typing import List, Tuple

import logging
import math
import numpy as np
import plotly.graph_objs as go

from .chord_layout import ChordGroup, Ribbon
from .config import ChordConfig
from .labels import LabelPlacement, place_labels, polar_to_xy
from .pipeline import ChordResult

logger = logging.getLogger(__name__)

# Angular resolution of sampled arcs, in radians
_ARC_STEP = math.pi / 90.0
_BEZIER_POINTS = 24
# Labels within 22.5 degrees of an axis are centred across it
_ANCHOR_BAND = math.sin(math.pi / 8.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def darker(color: str, k: float = 1.0) -> str:
    """
    Darken a hex color by the factor 0.7 ** k, as d3.rgb().darker() does.
    """
    color = color.lstrip("#")
    if len(color) != 6:
        raise ValueError(f"Expected a #rrggbb color, got '#{color}'")
    factor = 0.7 ** k
    r, g, b = (int(color[i : i + 2], 16) for i in (0, 2, 4))
    return "#{:02x}{:02x}{:02x}".format(
        *(int(max(0.0, min(255.0, c * factor) + 0.5)) for c in (r, g, b))
    )


def _rgba(color: str, alpha: float) -> str:
    color = color.lstrip("#")
    r, g, b = (int(color[i : i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r},{g},{b},{alpha})"


def arc_points(radius: float, start: float, end: float) -> Tuple[np.ndarray, np.ndarray]:
    """Sample points along a circular arc from `start` to `end`."""
    n = max(2, int(math.ceil(abs(end - start) / _ARC_STEP)) + 1)
    angles = np.linspace(start, end, n)
    return radius * np.sin(angles), radius * np.cos(angles)


def _quadratic_to_center(
    p0: Tuple[float, float],
    p2: Tuple[float, float],
) -> Tuple[np.ndarray, np.ndarray]:
    """Quadratic Bezier from p0 to p2 with the control point at the origin."""
    t = np.linspace(0.0, 1.0, _BEZIER_POINTS)[1:]
    # The middle term vanishes because the control point is (0, 0)
    x = (1 - t) ** 2 * p0[0] + t ** 2 * p2[0]
    y = (1 - t) ** 2 * p0[1] + t ** 2 * p2[1]
    return x, y


def group_polygon(
    group: ChordGroup,
    inner_radius: float,
    outer_radius: float,
) -> Tuple[List[float], List[float]]:
    """Closed outline of an annular sector for one group."""
    ox, oy = arc_points(outer_radius, group.start_angle, group.end_angle)
    ix, iy = arc_points(inner_radius, group.end_angle, group.start_angle)
    xs = np.concatenate([ox, ix, ox[:1]])
    ys = np.concatenate([oy, iy, oy[:1]])
    return xs.tolist(), ys.tolist()


def ribbon_polygon(ribbon: Ribbon, radius: float) -> Tuple[List[float], List[float]]:
    """
    Closed outline of a ribbon.

    The outline follows the source arc, curves through the center to the
    target arc, follows it, and curves back to the start. A self ribbon
    (same start and end angles at both ends) curves straight back.
    """
    s, t = ribbon.source, ribbon.target
    sx, sy = arc_points(radius, s.start_angle, s.end_angle)
    s_start = polar_to_xy(radius, s.start_angle)
    xs = [sx]
    ys = [sy]

    same = s.start_angle == t.start_angle and s.end_angle == t.end_angle
    if not same:
        t_start = polar_to_xy(radius, t.start_angle)
        cx, cy = _quadratic_to_center((sx[-1], sy[-1]), t_start)
        xs.append(cx)
        ys.append(cy)
        tx, ty = arc_points(radius, t.start_angle, t.end_angle)
        xs.append(tx)
        ys.append(ty)
        cx, cy = _quadratic_to_center((tx[-1], ty[-1]), s_start)
    else:
        cx, cy = _quadratic_to_center((sx[-1], sy[-1]), s_start)
    xs.append(cx)
    ys.append(cy)

    return np.concatenate(xs).tolist(), np.concatenate(ys).tolist()


# ---------------------------------------------------------------------------
# Traces
# ---------------------------------------------------------------------------


def _build_group_traces(result: ChordResult, cfg: ChordConfig) -> List[go.Scatter]:
    traces = []
    for group in result.layout.groups:
        color = cfg.color_for(group.index)
        xs, ys = group_polygon(group, cfg.inner_radius, cfg.outer_radius)
        traces.append(
            go.Scatter(
                x=xs,
                y=ys,
                mode="lines",
                fill="toself",
                fillcolor=color,
                line=dict(color=darker(color), width=1),
                hoveron="fills",
                # "none" still emits hover events for the page script
                hoverinfo="none",
                name=result.profiles[group.index].dataset_name,
                showlegend=False,
            )
        )
    return traces


def _build_ribbon_traces(result: ChordResult, cfg: ChordConfig) -> List[go.Scatter]:
    traces = []
    for ribbon in result.layout.ribbons:
        color = cfg.color_for(ribbon.target.index)
        xs, ys = ribbon_polygon(ribbon, cfg.inner_radius)
        traces.append(
            go.Scatter(
                x=xs,
                y=ys,
                mode="lines",
                fill="toself",
                fillcolor=_rgba(color, cfg.ribbon_fill_opacity),
                line=dict(color=darker(color), width=0.5),
                opacity=cfg.full_opacity,
                hoverinfo="skip",
                name=f"{ribbon.source.index}-{ribbon.target.index}",
                showlegend=False,
            )
        )
    return traces


def _box_anchors(angle: float) -> Tuple[str, str]:
    """
    Plotly anchors for a label written outward from angle `angle`.

    Plotly places a rotated annotation by its rotated bounding box, so the
    box has to sit on the far side of the anchor point: above it at the top
    of the circle, below it at the bottom, and beside it on either side.
    """
    dx, dy = math.sin(angle), math.cos(angle)
    if dx > _ANCHOR_BAND:
        xanchor = "left"
    elif dx < -_ANCHOR_BAND:
        xanchor = "right"
    else:
        xanchor = "center"
    if dy > _ANCHOR_BAND:
        yanchor = "bottom"
    elif dy < -_ANCHOR_BAND:
        yanchor = "top"
    else:
        yanchor = "middle"
    return xanchor, yanchor


def _label_annotation(placement: LabelPlacement, cfg: ChordConfig) -> dict:
    xanchor, yanchor = _box_anchors(placement.angle)
    return dict(
        x=placement.x,
        y=placement.y,
        xref="x",
        yref="y",
        text="<br>".join(line.text for line in placement.lines),
        showarrow=False,
        textangle=placement.rotation,
        xanchor=xanchor,
        yanchor=yanchor,
        align="right" if placement.text_anchor == "end" else "left",
        font=dict(size=cfg.label_font_size),
    )


def _build_layout(cfg: ChordConfig, annotations: List[dict]) -> go.Layout:
    """
    Build a Plotly Layout with the origin at the center of the canvas.

    The x and y scales are locked so arcs stay circular.
    """
    half_w = cfg.width / 2 + cfg.padding
    half_h = cfg.height / 2 + cfg.padding
    axis = dict(showgrid=False, zeroline=False, showticklabels=False, fixedrange=True)

    return go.Layout(
        title=dict(text=cfg.plot_title, x=0.5),
        showlegend=False,
        hovermode="closest",
        width=cfg.width + 2 * cfg.padding,
        height=cfg.height + 2 * cfg.padding,
        margin=dict(b=0, l=0, r=0, t=40),
        xaxis=dict(range=[-half_w, half_w], **axis),
        yaxis=dict(range=[-half_h, half_h], scaleanchor="x", scaleratio=1.0, **axis),
        annotations=annotations,
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_chord_figure(result: ChordResult, cfg: ChordConfig) -> go.Figure:
    """
    Build the full Plotly figure for the chord diagram.

    Parameters
    ----------
    result
        ChordResult from the pipeline.
    cfg
        ChordConfig with geometry, colors and label settings.

    Returns
    -------
    plotly.graph_objs.Figure
        Figure with len(groups) group traces followed by len(ribbons) ribbon
        traces. With no datasets the figure has no traces.
    """
    groups = result.layout.groups
    placements = place_labels(groups, result.labels, cfg)

    group_traces = _build_group_traces(result, cfg)
    ribbon_traces = _build_ribbon_traces(result, cfg)
    annotations = [_label_annotation(p, cfg) for p in placements]

    fig = go.Figure(
        data=group_traces + ribbon_traces,
        layout=_build_layout(cfg, annotations),
    )

    logger.info(
        "Built chord figure with %d groups and %d ribbons",
        len(group_traces),
        len(ribbon_traces),
    )

    return fig
