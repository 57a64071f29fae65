"""
Reproduction number charts.

An interactive Plotly version for the report app and a static Matplotlib PNG
for the batch pipeline. Both draw the point estimate as a line, the
confidence interval as a ribbon and a reference line at R = 1.
"""

import logging
from pathlib import Path

import matplotlib
import matplotlib.pyplot as plt
import matplotlib.dates as mdates
import pandas as pd
import plotly.graph_objects as go

from process import fields
from utils.config import PlotTheme

logger = logging.getLogger(__name__)


def reproduction_number_chart(estimate: pd.DataFrame, theme: PlotTheme, title: str = "Reproduction number") -> go.Figure:
    """Line and ribbon chart of R over time.

    Args:
        estimate (pd.DataFrame): Columns ['date', 'R', 'lower', 'upper']
        theme (PlotTheme): Plot styling
        title (str): Figure title

    Returns:
        plotly.graph_objects.Figure: Ribbon (two traces), point estimate and R = 1 reference
    """
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=estimate[fields.DATE],
        y=estimate[fields.UPPER],
        mode="lines",
        line=dict(width=0),
        showlegend=False,
        hoverinfo="skip",
        name="Upper",
    ))
    fig.add_trace(go.Scatter(
        x=estimate[fields.DATE],
        y=estimate[fields.LOWER],
        mode="lines",
        line=dict(width=0),
        fill="tonexty",
        fillcolor=theme.ribbon_color,
        name="Confidence interval",
        hoverinfo="skip",
    ))
    fig.add_trace(go.Scatter(
        x=estimate[fields.DATE],
        y=estimate[fields.R],
        mode="lines",
        line=dict(color=theme.line_color, width=2),
        name="R",
        customdata=estimate[[fields.LOWER, fields.UPPER]].to_numpy(),
        hovertemplate=(
            f"%{{x|{theme.date_format}}}<br>R: %{{y:.2f}}"
            "<br>CI: %{customdata[0]:.2f} - %{customdata[1]:.2f}<extra></extra>"
        ),
    ))
    fig.add_hline(y=1, line_dash="dash", line_color=theme.reference_color)
    fig.update_layout(
        title=title,
        template=theme.template,
        width=theme.width,
        height=theme.height,
        font=dict(family=theme.font_family),
        xaxis=dict(title="Date", tickformat=theme.date_format),
        yaxis=dict(title="R"),
    )
    return fig


def plot_reproduction_number_static(estimate: pd.DataFrame, path, theme: PlotTheme, title: str = "Reproduction number") -> Path:
    """Write a PNG of R over time with its confidence ribbon and return the path."""
    matplotlib.use('agg')  # Set non-interactive backend
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(theme.width / theme.dpi, theme.height / theme.dpi), dpi=theme.dpi)
    try:
        dates = pd.to_datetime(estimate[fields.DATE])
        ax.fill_between(dates, estimate[fields.LOWER], estimate[fields.UPPER],
                        color=theme.line_color, alpha=0.2, linewidth=0, label="Confidence interval")
        ax.plot(dates, estimate[fields.R], color=theme.line_color, linewidth=1.5, label="R")
        ax.axhline(1.0, color=theme.reference_color, linestyle="--", linewidth=1)
        ax.xaxis.set_major_formatter(mdates.DateFormatter(theme.date_format))
        ax.set_xlabel("Date", fontfamily=theme.font_family)
        ax.set_ylabel("R", fontfamily=theme.font_family)
        ax.set_title(title, fontfamily=theme.font_family)
        ax.legend(loc="upper right")
        fig.autofmt_xdate()
        plt.tight_layout(pad=1.5)
        fig.savefig(path)
    finally:
        plt.close(fig)
    logger.info(f"Wrote {path}")
    return path
