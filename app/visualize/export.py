"""Writing rendered figures to the output directory."""

import logging
from pathlib import Path

import plotly.graph_objects as go

logger = logging.getLogger(__name__)


def save_figure(fig: go.Figure, directory, name: str) -> Path:
    """Write `fig` as a standalone HTML file `<directory>/<name>.html`.

    The directory is created when missing.

    Returns:
        Path: Location of the written file
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.html"
    fig.write_html(str(path), include_plotlyjs="cdn")
    logger.info(f"Wrote {path}")
    return path
