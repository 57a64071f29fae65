"""
Time bucketing and grouped counting.

All aggregations return a long table ordered by bucket start (ascending) and
category, with one row for every bucket × category combination. Combinations
without records are filled with a count of zero so the table is rectangular
and can be charted directly.
"""

import logging
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from interface import BucketKind
from process import fields
from process.mutations import genomes_with_mutation, lump_lineages

logger = logging.getLogger(__name__)

BUCKET_WIDTH = pd.Timedelta(days=7)


def assign_time_bucket(dates: pd.Series, kind: BucketKind = BucketKind.WEEK, origin=None) -> pd.Series:
    """Map each date to the start date of its bucket.

    Args:
        dates (pd.Series): Dates to bucket
        kind (BucketKind): WEEK buckets start on Monday; SEVEN_DAY buckets are
            consecutive 7-day intervals starting at `origin`
        origin: Anchor of SEVEN_DAY buckets. Defaults to the earliest date.

    Returns:
        pd.Series: Bucket start dates (normalized to midnight), same index as `dates`
    """
    dates = pd.to_datetime(dates).dt.normalize()
    if kind == BucketKind.WEEK:
        return dates - pd.to_timedelta(dates.dt.weekday, unit="D")
    if kind == BucketKind.SEVEN_DAY:
        if dates.empty:
            return dates
        origin = pd.Timestamp(origin).normalize() if origin is not None else dates.min()
        offsets = np.floor((dates - origin) / BUCKET_WIDTH)
        return origin + pd.to_timedelta(offsets * 7, unit="D")
    raise ValueError(f"Unknown bucket kind: {kind}")


def _bucket_range(buckets: pd.Series) -> pd.DatetimeIndex:
    """All bucket starts between the first and the last observed bucket."""
    return pd.date_range(buckets.min(), buckets.max(), freq="7D")


def aggregate_counts(
    table: pd.DataFrame,
    date_column: str,
    category_column: Optional[str] = None,
    kind: BucketKind = BucketKind.WEEK,
    categories: Optional[Iterable[str]] = None,
    origin=None,
) -> pd.DataFrame:
    """Count rows per time bucket, optionally split by a category column.

    Returns:
        pd.DataFrame: Columns ['bucket', 'category', 'count'] (no 'category'
        column when `category_column` is None)
    """
    columns = [fields.BUCKET] + ([fields.CATEGORY] if category_column else []) + [fields.COUNT]
    if table.empty:
        return pd.DataFrame(columns=columns)

    buckets = assign_time_bucket(table[date_column], kind, origin)
    all_buckets = _bucket_range(buckets)

    if category_column is None:
        counts = buckets.value_counts().reindex(all_buckets, fill_value=0)
        result = pd.DataFrame({fields.BUCKET: all_buckets, fields.COUNT: counts.values})
        return result.astype({fields.COUNT: int})

    if categories is None:
        categories = sorted(table[category_column].astype(str).unique())
    else:
        categories = list(categories)

    grouped = (
        pd.DataFrame({fields.BUCKET: buckets.values, fields.CATEGORY: table[category_column].astype(str).values})
        .groupby([fields.BUCKET, fields.CATEGORY])
        .size()
    )
    full_index = pd.MultiIndex.from_product([all_buckets, categories], names=[fields.BUCKET, fields.CATEGORY])
    result = grouped.reindex(full_index, fill_value=0).rename(fields.COUNT).reset_index()
    result[fields.COUNT] = result[fields.COUNT].astype(int)
    return result


def add_proportions(counts: pd.DataFrame) -> pd.DataFrame:
    """Add a `proportion` column: count divided by its bucket total (0 for empty buckets)."""
    result = counts.copy()
    totals = result.groupby(fields.BUCKET)[fields.COUNT].transform("sum")
    result[fields.PROPORTION] = np.where(totals > 0, result[fields.COUNT] / totals.where(totals > 0, 1), 0.0)
    return result


def aggregate_proportions(
    table: pd.DataFrame,
    date_column: str,
    category_column: str,
    kind: BucketKind = BucketKind.WEEK,
    categories: Optional[Iterable[str]] = None,
    origin=None,
) -> pd.DataFrame:
    """Like aggregate_counts, with each category's share of its bucket."""
    counts = aggregate_counts(table, date_column, category_column, kind, categories, origin)
    if counts.empty:
        return pd.DataFrame(columns=list(counts.columns) + [fields.PROPORTION])
    return add_proportions(counts)


def lineages_over_time(metadata: pd.DataFrame, kind: BucketKind = BucketKind.WEEK, top_n: Optional[int] = None) -> pd.DataFrame:
    """Genome counts and shares per lineage and bucket.

    With `top_n`, lineages outside the most common `top_n` are lumped into "Other",
    which is placed last.
    """
    categories = None
    if top_n is not None:
        metadata = lump_lineages(metadata, top_n)
        named = sorted(c for c in metadata[fields.LINEAGE].unique() if c != "Other")
        categories = named + (["Other"] if (metadata[fields.LINEAGE] == "Other").any() else [])
    return aggregate_proportions(metadata, fields.SAMPLE_DATE, fields.LINEAGE, kind, categories)


def mutation_presence_over_time(
    metadata: pd.DataFrame,
    mutations: pd.DataFrame,
    label: str,
    kind: BucketKind = BucketKind.WEEK,
) -> pd.DataFrame:
    """Genome counts per bucket split by presence or absence of one mutation."""
    carriers = genomes_with_mutation(mutations, label)
    tagged = metadata[[fields.GENOME_ID, fields.SAMPLE_DATE]].copy()
    tagged["presence"] = np.where(tagged[fields.GENOME_ID].isin(carriers), fields.PRESENT, fields.ABSENT)
    logger.info(f"{len(carriers)} of {len(tagged)} genomes carry {label}")
    return aggregate_proportions(tagged, fields.SAMPLE_DATE, "presence", kind, [fields.PRESENT, fields.ABSENT])


def mutation_frequency_over_time(
    metadata: pd.DataFrame,
    mutations: pd.DataFrame,
    labels: List[str],
    kind: BucketKind = BucketKind.WEEK,
) -> pd.DataFrame:
    """Fraction of genomes per bucket carrying each of the given mutations.

    Returns:
        pd.DataFrame: Columns ['bucket', 'mutation', 'count', 'proportion'],
        ordered by bucket and then by the order of `labels`
    """
    columns = [fields.BUCKET, fields.MUTATION, fields.COUNT, fields.PROPORTION]
    if metadata.empty or not labels:
        return pd.DataFrame(columns=columns)

    buckets = assign_time_bucket(metadata[fields.SAMPLE_DATE], kind)
    totals = buckets.value_counts().reindex(_bucket_range(buckets), fill_value=0)

    frames = []
    for label in labels:
        carriers = genomes_with_mutation(mutations, label)
        present = buckets[metadata[fields.GENOME_ID].isin(carriers).values]
        counts = present.value_counts().reindex(totals.index, fill_value=0)
        frames.append(pd.DataFrame({
            fields.BUCKET: totals.index,
            fields.MUTATION: label,
            fields.COUNT: counts.values.astype(int),
            fields.PROPORTION: np.where(totals.values > 0, counts.values / np.maximum(totals.values, 1), 0.0),
        }))

    result = pd.concat(frames, ignore_index=True)
    # frames are in label order, so a stable sort keeps it within each bucket
    result = result.sort_values(fields.BUCKET, kind="stable")
    return result.reset_index(drop=True)[columns]


def to_wide(long_table: pd.DataFrame, category_column: str = fields.CATEGORY, value_column: str = fields.COUNT) -> pd.DataFrame:
    """Pivot a long aggregation table to buckets as rows and categories as columns."""
    wide = long_table.pivot(index=fields.BUCKET, columns=category_column, values=value_column)
    # pivot sorts columns; keep first-seen category order instead
    wide = wide[list(dict.fromkeys(long_table[category_column]))]
    wide.columns.name = None
    return wide


def sort_for_display(table: pd.DataFrame, descending: bool = True) -> pd.DataFrame:
    """Order an aggregation table by bucket for display (newest first by default)."""
    return table.sort_values(fields.BUCKET, ascending=not descending, kind="stable").reset_index(drop=True)
