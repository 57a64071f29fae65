"""
Tabular loaders for genome metadata and per-mutation records.

Both inputs are UTF-8 tab-separated files. Every column is read as a string
first and then converted column by column, so a malformed value is reported
with the file and column it came from.
"""

import logging
from typing import List, Tuple, Union
from pathlib import Path

import pandas as pd

from api.exceptions import SchemaError
from interface import MutationType
from process import fields

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def _source_name(source) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", repr(source))


def _read_tsv(source, required: List[str]) -> pd.DataFrame:
    name = _source_name(source)
    try:
        df = pd.read_csv(source, sep="\t", dtype=str, keep_default_na=False, encoding="utf-8-sig")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise SchemaError(f"Could not parse table: {e}", source=name) from e

    missing = [col for col in required if col not in df.columns]
    if missing:
        raise SchemaError(f"Missing required columns {missing}", source=name, column=missing[0])

    for col in required:
        df[col] = df[col].str.strip()
    return df


def _parse_dates(df: pd.DataFrame, column: str, source: str) -> pd.Series:
    parsed = pd.to_datetime(df[column], format=DATE_FORMAT, errors="coerce")
    bad = df.loc[parsed.isna(), column]
    if not bad.empty:
        raise SchemaError(
            f"Unparsable date '{bad.iloc[0]}' in {len(bad)} row(s)",
            source=source, column=column,
        )
    return parsed


def load_metadata(source: Union[str, Path]) -> pd.DataFrame:
    """Load the per-genome metadata table.

    Args:
        source: Path or file-like object of the metadata TSV

    Returns:
        pd.DataFrame: One row per genome with `sample_date` as datetime64

    Raises:
        SchemaError: On missing columns, bad dates, empty or duplicate identifiers
    """
    name = _source_name(source)
    df = _read_tsv(source, fields.METADATA_COLUMNS)

    if (df[fields.GENOME_ID] == "").any():
        raise SchemaError("Empty genome identifier", source=name, column=fields.GENOME_ID)
    duplicated = df.loc[df[fields.GENOME_ID].duplicated(), fields.GENOME_ID]
    if not duplicated.empty:
        raise SchemaError(
            f"Duplicate genome identifier '{duplicated.iloc[0]}'",
            source=name, column=fields.GENOME_ID,
        )

    df[fields.SAMPLE_DATE] = _parse_dates(df, fields.SAMPLE_DATE, name)
    logger.info(f"Loaded {len(df)} genomes from {name}")
    return df


def load_mutations(source: Union[str, Path]) -> pd.DataFrame:
    """Load the per-mutation records table.

    Raises:
        SchemaError: On missing columns, non-integer positions or unknown mutation types
    """
    name = _source_name(source)
    df = _read_tsv(source, fields.MUTATIONS_COLUMNS)

    positions = pd.to_numeric(df[fields.POSITION], errors="coerce")
    bad = df.loc[positions.isna() | (positions % 1 != 0), fields.POSITION]
    if not bad.empty:
        raise SchemaError(
            f"Non-integer position '{bad.iloc[0]}' in {len(bad)} row(s)",
            source=name, column=fields.POSITION,
        )
    df[fields.POSITION] = positions.astype(int)

    try:
        df[fields.MUTATION_TYPE] = df[fields.MUTATION_TYPE].map(lambda v: MutationType.parse(v).value)
    except ValueError as e:
        raise SchemaError(str(e), source=name, column=fields.MUTATION_TYPE) from e

    logger.info(f"Loaded {len(df)} mutation records from {name}")
    return df


def check_referential_integrity(metadata: pd.DataFrame, mutations: pd.DataFrame) -> None:
    """Ensure every mutation record points at a known genome.

    Raises:
        SchemaError: If any mutation references an unknown genome identifier
    """
    known = set(metadata[fields.GENOME_ID])
    orphans = mutations.loc[~mutations[fields.GENOME_ID].isin(known), fields.GENOME_ID]
    if not orphans.empty:
        raise SchemaError(
            f"{len(orphans)} mutation record(s) reference unknown genome '{orphans.iloc[0]}'",
            column=fields.GENOME_ID,
        )


def load_tables(metadata_source, mutations_source) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Load metadata and mutation tables and check that they belong together."""
    metadata = load_metadata(metadata_source)
    mutations = load_mutations(mutations_source)
    check_referential_integrity(metadata, mutations)
    return metadata, mutations
