"""
taxochord package.

This package contains the data pipeline and visualization logic that turns a
table of microbial abundance records into an interactive chord diagram of
taxonomic overlap between datasets. It is organized into small modules for:

- loading the abundance table (data_io)
- dataset selection and abundance coercion (preprocessing)
- per dataset profiles, labels and representative records (profiles)
- the shared abundance similarity matrix (similarity)
- chord group and ribbon geometry (chord_layout)
- label placement around the circle (labels)
- the hover highlight state machine (interaction)
- pipeline orchestration and sessions (pipeline)
- radial top taxa charts (profile_chart)
- Plotly figure construction (figure)
- building a complete HTML document for the visualization (html_builder)

The main public entry point is `build_chord_html`, which runs the full
pipeline and returns an HTML string ready to write to disk.
"""

from .html_builder import build_chord_html

__all__ = ["build_chord_html"]
