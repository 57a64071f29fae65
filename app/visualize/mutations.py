"""
Mutation and lineage visualization functions.

This module contains plotting functions for the mutation surveillance report:
lineage counts per time bucket, mutation frequencies over time (as lines,
small multiples or a heatmap) and the per-genome mutation count distribution.
Every function takes an explicit PlotTheme instead of relying on global state.
"""

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from process import fields
from process.aggregate import to_wide
from process.mutations import sort_mutations_by_position
from utils.config import PlotTheme


def _apply_theme(fig: go.Figure, theme: PlotTheme, title: str, height=None, date_axis=True) -> go.Figure:
    fig.update_layout(
        title=title,
        template=theme.template,
        width=theme.width,
        height=height or theme.height,
        font=dict(family=theme.font_family),
    )
    if date_axis:
        fig.update_xaxes(tickformat=theme.date_format)
    return fig


def lineage_bar_chart(counts: pd.DataFrame, theme: PlotTheme, title: str = "Genomes per lineage") -> go.Figure:
    """Stacked bar chart of genome counts per time bucket and lineage.

    Args:
        counts (pd.DataFrame): Long table with columns ['bucket', 'category', 'count']
        theme (PlotTheme): Plot styling
        title (str): Figure title

    Returns:
        plotly.graph_objects.Figure: One bar trace per lineage
    """
    fig = go.Figure()
    for lineage, group in counts.groupby(fields.CATEGORY, sort=False):
        fig.add_trace(go.Bar(
            x=group[fields.BUCKET],
            y=group[fields.COUNT],
            name=str(lineage),
            hovertemplate=f"Lineage: {lineage}<br>Bucket starting %{{x|{theme.date_format}}}<br>Genomes: %{{y}}<extra></extra>",
        ))
    fig.update_layout(barmode="stack", xaxis_title="Sample date", yaxis_title="Genomes", legend_title="Lineage")
    return _apply_theme(fig, theme, title)


def frequency_line_chart(
    freq: pd.DataFrame,
    theme: PlotTheme,
    series_column: str = fields.MUTATION,
    title: str = "Mutation frequency over time",
) -> go.Figure:
    """Scatter-and-line chart of the proportion of genomes per bucket, one line per series."""
    fig = go.Figure()
    for name, group in freq.groupby(series_column, sort=False):
        fig.add_trace(go.Scatter(
            x=group[fields.BUCKET],
            y=group[fields.PROPORTION],
            mode="lines+markers",
            name=str(name),
            customdata=group[fields.COUNT],
            hovertemplate=f"{name}<br>%{{x|{theme.date_format}}}<br>Proportion: %{{y:.1%}}<br>Genomes: %{{customdata}}<extra></extra>",
        ))
    fig.update_layout(xaxis_title="Sample date", yaxis_title="Proportion of genomes", yaxis_tickformat=".0%")
    return _apply_theme(fig, theme, title)


def faceted_frequency_chart(
    freq: pd.DataFrame,
    theme: PlotTheme,
    facet_column: str = fields.MUTATION,
    title: str = "Mutation frequency over time",
    facet_col_wrap: int = 3,
) -> go.Figure:
    """Small multiples: one panel per category, sharing the time and proportion axes."""
    n_panels = max(1, freq[facet_column].nunique())
    rows = int(np.ceil(n_panels / facet_col_wrap))
    fig = px.line(
        freq,
        x=fields.BUCKET,
        y=fields.PROPORTION,
        facet_col=facet_column,
        facet_col_wrap=facet_col_wrap,
        markers=True,
        color_discrete_sequence=[theme.line_color],
    )
    fig.for_each_annotation(lambda a: a.update(text=a.text.split("=", 1)[-1]))
    fig.update_yaxes(tickformat=".0%", matches="y")
    return _apply_theme(fig, theme, title, height=max(theme.height, rows * 250))


def mutation_frequency_heatmap(freq: pd.DataFrame, theme: PlotTheme, title: str = "Mutations over time") -> go.Figure:
    """Heatmap of mutation proportions with mutations (sorted by position) as rows and buckets as columns."""
    wide = to_wide(freq, category_column=fields.MUTATION, value_column=fields.PROPORTION).T
    counts = to_wide(freq, category_column=fields.MUTATION, value_column=fields.COUNT).T
    sorted_mutations = sort_mutations_by_position(wide.index.tolist())
    wide = wide.reindex(sorted_mutations)
    counts = counts.reindex(sorted_mutations)

    dates = [pd.Timestamp(c).strftime(theme.date_format) for c in wide.columns]
    hover_text = [
        [
            f"Mutation: {mutation}<br>Bucket starting: {date}<br>Proportion: {wide.iloc[i, j] * 100:.1f}%"
            f"<br>Count: {counts.iloc[i, j]:.0f}"
            for j, date in enumerate(dates)
        ]
        for i, mutation in enumerate(wide.index)
    ]

    # Determine dynamic height and left margin from the number and length of labels
    height = max(400, len(wide.index) * 20 + 100)
    max_len_label = max((len(str(m)) for m in wide.index), default=0)
    margin_l = max(80, max_len_label * 7 + 30)

    fig = go.Figure(data=go.Heatmap(
        z=wide.values,
        x=dates,
        y=wide.index,
        colorscale="Blues",
        showscale=False,
        text=hover_text,
        hoverinfo="text",
        zmin=0,
        zmax=1,
    ))
    fig.update_layout(
        xaxis=dict(title="Sample date", side="bottom", tickangle=45),
        yaxis=dict(title="Mutation", autorange="reversed"),
        margin=dict(l=margin_l, r=20, t=80, b=100),
    )
    return _apply_theme(fig, theme, title, height=height, date_axis=False)


def mutations_per_genome_histogram(per_genome: pd.DataFrame, theme: PlotTheme, title: str = "Mutations per genome") -> go.Figure:
    """Bar chart of how many genomes carry 0, 1, 2, ... mutations."""
    distribution = per_genome[fields.MUTATION_COUNT].value_counts().sort_index()
    if not distribution.empty:
        distribution = distribution.reindex(range(0, int(distribution.index.max()) + 1), fill_value=0)
    fig = go.Figure(go.Bar(
        x=distribution.index,
        y=distribution.values,
        marker_color=theme.line_color,
        hovertemplate="Mutations: %{x}<br>Genomes: %{y}<extra></extra>",
    ))
    fig.update_layout(xaxis_title="Mutations per genome", yaxis_title="Genomes", bargap=0.1)
    return _apply_theme(fig, theme, title, date_axis=False)
