from __future__ import annotations

"""
Command line interface to build the taxochord chord diagram HTML file.

This script loads the abundance table, runs the full pipeline (dataset
selection, profile aggregation, similarity matrix, chord layout, Plotly
figure) and writes a standalone HTML file containing the visualization.

Expected project layout:

  project_root/
    scripts/
      build_chord.py
    src/
      taxochord/
        ...
    data/
      abundance.csv

Usage examples (from project_root):

  python scripts/build_chord.py
  python scripts/build_chord.py --data data/abundance.csv --output chord.html
  python scripts/build_chord.py --max-datasets 5 --export-matrix matrix.csv
  python scripts/build_chord.py --log-level DEBUG
  python scripts/build_chord.py --dry-run

In dry run mode, the generated HTML is written to standard output instead
of a file.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# ---------------------------------------------------------------------------
# Path setup so "taxochord" can be imported when running this file directly
# ---------------------------------------------------------------------------

CURRENT_FILE_PATH: Path = Path(__file__).resolve()
PROJECT_ROOT_DIRECTORY: Path = CURRENT_FILE_PATH.parents[1]
SOURCE_DIRECTORY: Path = PROJECT_ROOT_DIRECTORY / "src"

if str(SOURCE_DIRECTORY) not in sys.path:
  sys.path.insert(0, str(SOURCE_DIRECTORY))

from taxochord.config import ChordConfig  # type: ignore  # noqa: E402
from taxochord.html_builder import render_chord_html  # type: ignore  # noqa: E402
from taxochord.pipeline import ChordSession  # type: ignore  # noqa: E402


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def parse_command_line_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
  """
  Parse command line arguments for the build_chord script.

  Returns
  -------
  argparse.Namespace
      An object with attributes:
        - data_path: str or None, abundance table to read
        - output_path: str, where to write the generated HTML file
        - max_datasets: int, how many datasets to include
        - export_matrix: str or None, where to write the matrix as CSV
        - profile_charts: bool, whether to render per dataset profile charts
        - log_level: str, logging level name
        - dry_run: bool, whether to write HTML to stdout instead of a file
  """
  argument_parser = argparse.ArgumentParser(
      description="Build the taxochord chord diagram HTML file."
  )

  default_output_path = PROJECT_ROOT_DIRECTORY / "index.html"

  argument_parser.add_argument(
      "-d",
      "--data",
      dest="data_path",
      default=None,
      help="Abundance table (.csv, .tsv, .txt, .xlsx). Defaults to data/abundance.csv.",
  )

  argument_parser.add_argument(
      "-o",
      "--output",
      dest="output_path",
      default=str(default_output_path),
      help=(
          "Path to write the generated HTML file. "
          f"Defaults to {default_output_path}"
      ),
  )

  argument_parser.add_argument(
      "-k",
      "--max-datasets",
      dest="max_datasets",
      type=int,
      default=10,
      help="Maximum number of datasets to include. Defaults to 10.",
  )

  argument_parser.add_argument(
      "--export-matrix",
      dest="export_matrix",
      default=None,
      help="If provided, also write the similarity matrix as CSV to this path.",
  )

  argument_parser.add_argument(
      "--no-profile-charts",
      dest="profile_charts",
      action="store_false",
      help="Skip the per dataset profile charts in the side panel.",
  )

  argument_parser.add_argument(
      "--log-level",
      dest="log_level",
      default="INFO",
      choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
      help="Logging verbosity. Defaults to INFO.",
  )

  argument_parser.add_argument(
      "--dry-run",
      dest="dry_run",
      action="store_true",
      help="If provided, write the generated HTML to standard output instead of a file.",
  )

  return argument_parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Main build routine
# ---------------------------------------------------------------------------


def configure_logging(log_level_name: str) -> None:
  """
  Configure global logging for the script.

  Parameters
  ----------
  log_level_name
      One of "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL".
  """
  log_level = getattr(logging, log_level_name.upper(), logging.INFO)
  logging.basicConfig(
      level=log_level,
      format="[%(asctime)s] %(levelname)s in %(name)s: %(message)s",
  )


def build_configuration(arguments: argparse.Namespace) -> ChordConfig:
  """Translate command line arguments into a ChordConfig."""
  chord_configuration = ChordConfig(
      max_datasets=arguments.max_datasets,
      include_profile_charts=arguments.profile_charts,
  )
  if arguments.data_path is not None:
    chord_configuration.data_path = Path(arguments.data_path).resolve()
  return chord_configuration


def write_output(html_string: str, output_path_string: str, dry_run: bool) -> None:
  """
  Write the generated HTML to the requested destination.

  Parameters
  ----------
  html_string
      The complete HTML document string.
  output_path_string
      Path where the HTML file should be written if dry_run is False.
  dry_run
      If True, html_string is written to standard output instead of a file.
  """
  logger = logging.getLogger(__name__)

  if dry_run:
    logger.info("Dry run enabled; writing HTML to standard output.")
    sys.stdout.write(html_string)
    if not html_string.endswith("\n"):
      sys.stdout.write("\n")
    return

  output_path = Path(output_path_string).resolve()
  output_path.parent.mkdir(parents=True, exist_ok=True)

  output_path.write_text(html_string, encoding="utf-8")

  logger.info("Wrote chord diagram HTML to %s", output_path)


def main(argv: Optional[List[str]] = None) -> int:
  """
  Entrypoint for the build_chord command line script.

  Returns
  -------
  int
      Process exit code. Zero indicates success; one means the data could
      not be loaded and nothing was written.
  """
  arguments = parse_command_line_arguments(argv)
  configure_logging(arguments.log_level)

  logger = logging.getLogger(__name__)
  logger.debug("Command line arguments: %s", arguments)

  chord_configuration = build_configuration(arguments)
  session = ChordSession(chord_configuration)

  if not session.reload():
    logger.error("No visualization built: %s", session.last_error)
    return 1

  if arguments.export_matrix:
    matrix_path = Path(arguments.export_matrix).resolve()
    matrix_path.parent.mkdir(parents=True, exist_ok=True)
    session.result.matrix_frame().to_csv(matrix_path)
    logger.info("Wrote similarity matrix to %s", matrix_path)

  html_string = render_chord_html(session.result, chord_configuration, session.controller)
  write_output(
      html_string=html_string,
      output_path_string=arguments.output_path,
      dry_run=arguments.dry_run,
  )

  return 0


if __name__ == "__main__":
  sys.exit(main())
