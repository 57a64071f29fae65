"""
End-to-end runners for the two surveillance pipelines.

Each step consumes the previous step's table and produces a new one. Errors
are not handled here: every PipelineError propagates to the caller.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from api.archive import download_and_extract
from api.exceptions import DataValidationError
from api.locator import DatasetLink, DatasetLocator, RegexDatasetLocator
from process import fields
from process.aggregate import lineages_over_time, mutation_frequency_over_time, mutation_presence_over_time
from process.cases import clean_and_filter
from process.loader import load_tables
from process.mutations import MutationSummary, mutations_per_genome, summarize, top_mutations
from process.reproduction import ReproductionEstimator, estimate_r
from utils.config import AppConfig, ReproductionSettings, resolve_path
from visualize.export import save_figure
from visualize.mutations import (
    faceted_frequency_chart,
    frequency_line_chart,
    lineage_bar_chart,
    mutation_frequency_heatmap,
    mutations_per_genome_histogram,
)
from visualize.reproduction import plot_reproduction_number_static, reproduction_number_chart

logger = logging.getLogger(__name__)


@dataclass
class MutationReport:
    """Tables and written files of one mutation surveillance run."""
    summary: MutationSummary
    per_genome: pd.DataFrame
    lineages: pd.DataFrame
    top_mutations: pd.DataFrame
    frequencies: pd.DataFrame
    presence: Optional[pd.DataFrame] = None
    figures: Dict[str, Path] = field(default_factory=dict)


@dataclass
class ReproductionReport:
    """Inputs, estimate and written files of one reproduction number run."""
    link: DatasetLink
    series: pd.DataFrame
    estimate: pd.DataFrame
    table_path: Optional[Path] = None
    figures: Dict[str, Path] = field(default_factory=dict)


def build_locator(settings: ReproductionSettings) -> DatasetLocator:
    """Default locator built from the configured page URL and patterns."""
    return RegexDatasetLocator(
        page_url=settings.page_url,
        link_pattern=settings.link_pattern,
        date_pattern=settings.date_pattern,
        date_format=settings.date_format,
        timeout=settings.timeout_seconds,
    )


def run_mutation_report(config: AppConfig, config_path=None, write_figures: bool = True) -> MutationReport:
    """Load, summarize, aggregate and plot the genome and mutation tables."""
    settings = config.mutation_report
    metadata, mutations = load_tables(
        resolve_path(settings.metadata_path, config_path),
        resolve_path(settings.mutations_path, config_path),
    )

    summary = summarize(metadata, mutations)
    logger.info(
        f"{summary.n_genomes} genomes, {summary.n_mutations} mutations at {summary.n_sites} sites "
        f"({summary.n_synonymous_sites} synonymous, {summary.n_nonsynonymous_sites} nonsynonymous)"
    )

    per_genome = mutations_per_genome(metadata, mutations)
    lineages = lineages_over_time(metadata, settings.bucket, top_n=settings.top_lineages)
    top = top_mutations(metadata, mutations, n=settings.top_mutations)
    frequencies = mutation_frequency_over_time(metadata, mutations, top[fields.MUTATION].tolist(), settings.bucket)
    presence = None
    if settings.highlight_mutation:
        presence = mutation_presence_over_time(metadata, mutations, settings.highlight_mutation, settings.bucket)

    report = MutationReport(summary, per_genome, lineages, top, frequencies, presence)
    if not write_figures:
        return report

    theme = config.theme
    output_dir = Path(settings.output_dir)
    figures = {
        "lineages_over_time": lineage_bar_chart(lineages, theme),
        "mutations_per_genome": mutations_per_genome_histogram(per_genome, theme),
    }
    if not frequencies.empty:
        figures["mutation_frequency"] = frequency_line_chart(frequencies, theme)
        figures["mutation_frequency_facets"] = faceted_frequency_chart(frequencies, theme)
        figures["mutation_heatmap"] = mutation_frequency_heatmap(frequencies, theme)
    if presence is not None and not presence.empty:
        figures["mutation_presence"] = frequency_line_chart(
            presence, theme, series_column=fields.CATEGORY,
            title=f"Genomes with and without {settings.highlight_mutation}",
        )
    for name, fig in figures.items():
        report.figures[name] = save_figure(fig, output_dir, name)
    return report


def run_reproduction_estimate(
    config: AppConfig,
    locator: Optional[DatasetLocator] = None,
    estimator: Optional[ReproductionEstimator] = None,
    write_outputs: bool = True,
) -> ReproductionReport:
    """Locate, download, clean and model the latest case series."""
    settings = config.reproduction
    locator = locator or build_locator(settings)

    link = locator.find_latest()
    stream = download_and_extract(
        link,
        member=settings.member,
        timeout=settings.timeout_seconds,
        retries=settings.retries,
        backoff_factor=settings.backoff_factor,
    )
    with stream:
        series = clean_and_filter(stream, link.archive_date, settings)
    if len(series) < 2:
        raise DataValidationError(
            f"Only {len(series)} day(s) left after restricting to {settings.lower_bound.isoformat()} .. "
            f"{link.archive_date.isoformat()} minus {settings.trailing_margin_days} day(s)"
        )
    estimate = estimate_r(series, estimator=estimator, settings=settings)

    report = ReproductionReport(link, series, estimate)
    if not write_outputs:
        return report

    output_dir = Path(settings.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    report.table_path = output_dir / "reproduction_number.csv"
    estimate.to_csv(report.table_path, index=False, date_format="%Y-%m-%d")
    logger.info(f"Wrote {report.table_path}")

    title = f"Reproduction number (data from {link.archive_date.isoformat()})"
    report.figures["reproduction_number"] = save_figure(
        reproduction_number_chart(estimate, config.theme, title=title), output_dir, "reproduction_number"
    )
    report.figures["reproduction_number_png"] = plot_reproduction_number_static(
        estimate, output_dir / "reproduction_number.png", config.theme, title=title
    )
    return report


def latest_estimate(report: ReproductionReport) -> Optional[Dict[str, object]]:
    """Last row of the estimate as a plain dict, for printing."""
    if report.estimate.empty:
        return None
    row = report.estimate.iloc[-1]
    return {
        fields.DATE: pd.Timestamp(row[fields.DATE]).date(),
        fields.R: float(row[fields.R]),
        fields.LOWER: float(row[fields.LOWER]),
        fields.UPPER: float(row[fields.UPPER]),
    }
