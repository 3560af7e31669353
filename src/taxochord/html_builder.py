from __future__ import annotations

"""
HTML builder for the taxochord project.

This module provides the top level entry points that:

1. Load the abundance records
2. Run the pipeline (selection, profiles, similarity matrix, chord layout)
3. Construct a Plotly figure of the chord diagram
4. Export the interaction tables (ribbon opacities per highlighted group,
   tooltip HTML, profile chart images)
5. Wrap the figure and interaction JSON into a standalone HTML document

Main public entry points:
    build_chord_html(cfg: ChordConfig | None = None) -> str
    render_chord_html(result, cfg, controller=None) -> str
"""

import json
import logging
from html import escape
from typing import Any, Dict, List, Optional

from .config import ChordConfig
from .figure import build_chord_figure
from .interaction import IDLE, InteractionController
from .pipeline import ChordResult, load_and_run
from .profile_chart import create_profile_chart_image

logger = logging.getLogger(__name__)

PLOTLY_CDN_URL = "https://cdn.plot.ly/plotly-2.35.2.min.js"


# ---------------------------------------------------------------------------
# HTML template
# ---------------------------------------------------------------------------

_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <script src="{plotly_url}"></script>
  <style>
    html, body {{
      margin: 0;
      padding: 0;
      font-family: system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI",
                   sans-serif;
      background: #ffffff;
      color: #222;
    }}
    #root {{
      display: flex;
      flex-direction: row;
      width: 100%;
      box-sizing: border-box;
    }}
    #chord-plot {{
      flex: 3;
      min-width: 0;
    }}
    #sidebar {{
      flex: 1;
      min-width: 260px;
      max-width: 420px;
      border-left: 1px solid #ddd;
      box-sizing: border-box;
      padding: 14px;
      display: flex;
      flex-direction: column;
      gap: 12px;
    }}
    #sidebar h1 {{
      margin: 0 0 4px 0;
      font-size: 18px;
      font-weight: 600;
    }}
    #sidebar .subtitle {{
      font-size: 13px;
      color: #666;
    }}
    #profile-chart-container img {{
      max-width: 100%;
      height: auto;
      display: block;
    }}
    .tooltip {{
      position: absolute;
      visibility: hidden;
      background: rgba(0, 0, 0, 0.8);
      color: #fff;
      padding: 8px;
      border-radius: 4px;
      font-size: 14px;
      pointer-events: none;
    }}
  </style>
</head>
<body>
  <div id="root">
    <div id="chord-plot"></div>
    <aside id="sidebar">
      <header>
        <h1>{title}</h1>
        <div class="subtitle">
          Hover over a dataset arc to highlight its connections
        </div>
      </header>
      <section id="profile-chart-container">
        <span class="subtitle">Top taxa of the highlighted dataset appear here</span>
      </section>
    </aside>
  </div>
  <div id="chord-tooltip" class="tooltip"></div>

  <!-- Serialized Plotly figure -->
  <script id="plot-data" type="application/json">
{plot_json}
  </script>

  <!-- Highlight tables and tooltip content -->
  <script id="chord-data" type="application/json">
{chord_json}
  </script>

  <script>
    (function () {{
      var figure = JSON.parse(document.getElementById("plot-data").textContent);
      var chord = JSON.parse(document.getElementById("chord-data").textContent);
      var plot = document.getElementById("chord-plot");
      var tooltip = document.getElementById("chord-tooltip");
      var profile = document.getElementById("profile-chart-container");
      var placeholder = profile.innerHTML;
      var state = {{ kind: "idle" }};

      function setRibbonOpacity(values) {{
        if (chord.ribbonTraces.length) {{
          Plotly.restyle(plot, {{ opacity: values }}, chord.ribbonTraces);
        }}
      }}

      function placeTooltip(evt) {{
        if (!evt) return;
        tooltip.style.left = (evt.pageX + chord.tooltipOffset[0]) + "px";
        tooltip.style.top = (evt.pageY + chord.tooltipOffset[1]) + "px";
      }}

      function showProfile(index) {{
        var image = index === null ? null : chord.profileImages[index];
        profile.innerHTML = image
          ? '<img alt="profile" src="data:image/png;base64,' + image + '" />'
          : placeholder;
      }}

      function enter(index, evt) {{
        state = {{ kind: "highlighted", index: index }};
        setRibbonOpacity(chord.highlight[index]);
        tooltip.innerHTML = chord.tooltips[index];
        tooltip.style.visibility = "visible";
        placeTooltip(evt);
        showProfile(index);
      }}

      function leave() {{
        state = {{ kind: "idle" }};
        setRibbonOpacity(chord.idle);
        tooltip.style.visibility = "hidden";
        showProfile(null);
      }}

      Plotly.newPlot(plot, figure.data, figure.layout, {{ displayModeBar: false }})
        .then(function () {{
          plot.on("plotly_hover", function (data) {{
            var index = chord.groupTraces.indexOf(data.points[0].curveNumber);
            if (index < 0) return;
            if (state.kind === "highlighted" && state.index === index) return;
            enter(index, data.event);
          }});
          plot.on("plotly_unhover", function () {{
            if (state.kind === "highlighted") leave();
          }});
        }});

      plot.addEventListener("mousemove", function (evt) {{
        if (state.kind === "highlighted") placeTooltip(evt);
      }});
    }})();
  </script>
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Payload construction
# ---------------------------------------------------------------------------


def _profile_images(result: ChordResult, cfg: ChordConfig) -> List[Optional[str]]:
    """Base64 profile charts per dataset, or None where there is no chart."""
    if not cfg.include_profile_charts:
        return [None] * len(result.profiles)

    images: List[Optional[str]] = []
    for i, prof in enumerate(result.profiles):
        try:
            images.append(create_profile_chart_image(prof, cfg.color_for(i), cfg))
        except (ValueError, RuntimeError):
            logger.exception(
                "Failed to generate profile chart for dataset %r, leaving it out",
                prof.dataset_name,
            )
            images.append(None)
    return images


def build_interaction_payload(
    result: ChordResult,
    cfg: ChordConfig,
    controller: Optional[InteractionController] = None,
) -> Dict[str, Any]:
    """
    Build the JSON-ready tables the page script needs to mirror the controller.

    Trace indices follow figure.build_chord_figure: groups first, then ribbons.
    """
    if controller is None:
        controller = InteractionController(result.layout.ribbons, result.tooltips, cfg)

    n_groups = len(result.layout.groups)
    n_ribbons = len(result.layout.ribbons)

    return {
        "groupTraces": list(range(n_groups)),
        "ribbonTraces": list(range(n_groups, n_groups + n_ribbons)),
        "highlight": controller.highlight_table(),
        "idle": list(controller.ribbon_opacities(IDLE)),
        "tooltips": [t.to_html() for t in result.tooltips],
        "tooltipOffset": list(cfg.tooltip_offset),
        "labels": result.labels,
        "profileImages": _profile_images(result, cfg),
    }


def _to_script_json(payload: str) -> str:
    """Indent JSON for a <script> block and keep "</" from closing it."""
    payload = payload.replace("</", "<\\/")
    return "\n".join("    " + line for line in payload.splitlines())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_chord_html(
    result: ChordResult,
    cfg: ChordConfig,
    controller: Optional[InteractionController] = None,
) -> str:
    """
    Render a pipeline result as a standalone HTML document.

    Works for an empty result too: the page then shows an empty diagram.
    """
    fig = build_chord_figure(result, cfg)
    payload = build_interaction_payload(result, cfg, controller)

    html = _HTML_TEMPLATE.format(
        title=escape(cfg.plot_title),
        plotly_url=PLOTLY_CDN_URL,
        plot_json=_to_script_json(fig.to_json()),
        chord_json=_to_script_json(json.dumps(payload)),
    )

    logger.info("Rendered chord HTML (%d characters)", len(html))

    return html


def build_chord_html(cfg: Optional[ChordConfig] = None) -> str:
    """
    Run the full pipeline and return a standalone HTML document as a string.

    Parameters
    ----------
    cfg
        Optional ChordConfig. If None, a default config is created.

    Raises
    ------
    RecordLoadError
        If the records cannot be loaded. No HTML is produced in that case.
    """
    if cfg is None:
        cfg = ChordConfig()

    logger.info("Starting taxochord pipeline with config: %s", cfg)

    result = load_and_run(cfg)
    html = render_chord_html(result, cfg)

    logger.info("Chord HTML build complete")

    return html
