"""
Case time series cleaning.

Reads the semicolon-separated test/positive counts from the surveillance
archive, checks that it is a contiguous daily series and restricts it to the
window in which the data is considered reliable.
"""

import logging
from datetime import date, timedelta
from typing import Union

import pandas as pd

from api.exceptions import DataValidationError, SchemaError
from process import fields

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_LOWER_BOUND = date(2020, 4, 1)
DEFAULT_TRAILING_MARGIN_DAYS = 3
DEFAULT_SUMMARY_ROWS = 2


def read_case_series(
    stream,
    summary_rows: int = DEFAULT_SUMMARY_ROWS,
    date_column: str = fields.SOURCE_DATE,
    tests_column: str = fields.SOURCE_TESTS,
    positives_column: str = fields.SOURCE_POSITIVES,
) -> pd.DataFrame:
    """Parse the test/positive CSV into a typed daily series.

    The file uses ';' as delimiter, '.' as thousands separator and ','
    as decimal mark, and ends with `summary_rows` non-data total rows.

    Returns:
        pd.DataFrame: Columns ['date', 'tests', 'positives']

    Raises:
        SchemaError: On missing columns, unparsable dates or non-numeric counts
    """
    try:
        raw = pd.read_csv(stream, sep=";", dtype=str, encoding="utf-8-sig")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise SchemaError(f"Could not parse case series: {e}") from e
    raw.columns = [str(col).strip() for col in raw.columns]

    missing = [col for col in (date_column, tests_column, positives_column) if col not in raw.columns]
    if missing:
        raise SchemaError(f"Missing required columns {missing}", column=missing[0])

    if summary_rows:
        raw = raw.iloc[:-summary_rows]

    dates = pd.to_datetime(raw[date_column].str.strip(), format=DATE_FORMAT, errors="coerce")
    if dates.isna().any():
        bad = raw.loc[dates.isna(), date_column].iloc[0]
        raise SchemaError(f"Unparsable date '{bad}'", column=date_column)

    series = pd.DataFrame({fields.DATE: dates.values})
    for source, target in ((tests_column, fields.TESTS), (positives_column, fields.POSITIVES)):
        # counts use "." as thousands separator
        values = pd.to_numeric(raw[source].str.strip().str.replace(".", "", regex=False), errors="coerce")
        if values.isna().any():
            bad = raw.loc[values.isna().values, source].iloc[0]
            raise SchemaError(f"Non-numeric count '{bad}'", column=source)
        series[target] = values.values.astype(int)

    logger.info(f"Read {len(series)} daily rows from case series")
    return series


def check_contiguous(series: pd.DataFrame) -> None:
    """Ensure dates are strictly increasing with no missing calendar days.

    Raises:
        DataValidationError: On unsorted, duplicated or missing days
    """
    if len(series) < 2:
        return
    steps = series[fields.DATE].diff().iloc[1:]
    if (steps <= pd.Timedelta(0)).any():
        raise DataValidationError("Case series dates are not strictly increasing")
    gaps = steps[steps > pd.Timedelta(days=1)]
    if not gaps.empty:
        first_gap = series[fields.DATE].iloc[gaps.index[0] - 1]
        raise DataValidationError(
            f"Case series has {len(gaps)} gap(s), the first after {first_gap.date().isoformat()}"
        )


def window_end(archive_date: date, trailing_margin_days: int = DEFAULT_TRAILING_MARGIN_DAYS) -> date:
    """Last date considered complete for an archive published on `archive_date`."""
    return archive_date - timedelta(days=trailing_margin_days)


def filter_date_window(
    series: pd.DataFrame,
    lower_bound: date = DEFAULT_LOWER_BOUND,
    archive_date: Union[date, None] = None,
    trailing_margin_days: int = DEFAULT_TRAILING_MARGIN_DAYS,
) -> pd.DataFrame:
    """Keep rows with lower_bound <= date <= archive_date - trailing_margin_days.

    Both bounds are inclusive. When `archive_date` is None, today's date is used.
    """
    archive_date = archive_date or date.today()
    upper = window_end(archive_date, trailing_margin_days)
    dates = series[fields.DATE]
    mask = (dates >= pd.Timestamp(lower_bound)) & (dates <= pd.Timestamp(upper))
    filtered = series.loc[mask].reset_index(drop=True)
    logger.info(
        f"Kept {len(filtered)} of {len(series)} rows between "
        f"{lower_bound.isoformat()} and {upper.isoformat()}"
    )
    return filtered


def clean_and_filter(stream, archive_date: date, settings=None) -> pd.DataFrame:
    """Read, validate and window the case series.

    Args:
        stream: File-like object holding Test_pos_over_time.csv
        archive_date: Date embedded in the archive name
        settings: Optional ReproductionSettings supplying summary_rows,
            lower_bound and trailing_margin_days
    """
    summary_rows = settings.summary_rows if settings else DEFAULT_SUMMARY_ROWS
    lower_bound = settings.lower_bound if settings else DEFAULT_LOWER_BOUND
    margin = settings.trailing_margin_days if settings else DEFAULT_TRAILING_MARGIN_DAYS

    series = read_case_series(stream, summary_rows=summary_rows)
    check_contiguous(series)
    return filter_date_window(series, lower_bound, archive_date, margin)
