# cstore/branch_performance/filters.py
"""
Record Filtering for Branch Performance

Applies the dashboard FilterState to the raw records DataFrame.
All predicates are ANDed; the result is an order-preserving subset
of the input rows (the input frame is never modified).

VERSION: 1.0.0
"""

import logging
from datetime import date, datetime
from typing import Optional, Tuple

import pandas as pd

from .models import FilterState, records_to_frame

logger = logging.getLogger(__name__)


# =============================================================================
# DATE HELPERS
# =============================================================================

def _date_to_text(value) -> Optional[str]:
    """Return the ISO text form of a stored date value, None when unusable."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (datetime, date, pd.Timestamp)):
        if pd.isna(value):
            return None
        return value.isoformat()
    return None


def date_text(series: pd.Series) -> pd.Series:
    """ISO text per row (object dtype, None where the date is missing)."""
    return series.map(_date_to_text)


def parse_dates(series: pd.Series) -> pd.Series:
    """Calendar day of each stored date (YYYY-MM-DD prefix); unparsable → NaT."""
    text = date_text(series).astype(object).str.slice(0, 10)
    return pd.to_datetime(text, errors='coerce', format='%Y-%m-%d')


def sunday_based_weekday(parsed: pd.Series) -> pd.Series:
    """Weekday index with 0 = Sunday .. 6 = Saturday."""
    return (parsed.dt.dayofweek + 1) % 7


def resolve_date_range(filters: FilterState) -> Optional[Tuple[date, date]]:
    """(start, end) of the date filter; a missing end means a single day."""
    if not filters.date_from:
        return None
    return filters.date_from, filters.date_to or filters.date_from


# =============================================================================
# FILTER ENGINE
# =============================================================================

def apply_filters(records, filters: Optional[FilterState] = None) -> pd.DataFrame:
    """
    Filter sales records.

    Args:
        records: records DataFrame (or a sequence of SalesRecord/dicts)
        filters: FilterState; None means "no filtering"

    Returns:
        DataFrame with the matching rows in their original order.
        Rows with a missing or unparsable date are always excluded.
    """
    df = records_to_frame(records)
    if df.empty:
        return df.copy()

    filters = filters or FilterState()
    mask = pd.Series(True, index=df.index)

    # Set membership first (cheap)
    if filters.branches:
        mask &= df['branch_name'].isin(filters.branches)
    if filters.channels:
        mask &= df['channel_name'].isin(filters.channels)

    text = date_text(df['date'])
    parsed = parse_dates(df['date'])
    mask &= parsed.notna()

    if filters.selected_month:
        mask &= text.fillna('').str.startswith(filters.selected_month)

    date_range = resolve_date_range(filters)
    if date_range:
        start, end = (pd.Timestamp(d) for d in date_range)
        mask &= parsed.between(start, end, inclusive='both')

    if filters.days_of_week:
        mask &= sunday_based_weekday(parsed).isin(filters.days_of_week)

    filtered = df[mask.fillna(False).astype(bool)]
    logger.debug(f"apply_filters: {len(filtered):,}/{len(df):,} rows kept ({filters.summary_label()})")
    return filtered.copy()


def available_months(records) -> list:
    """Distinct YYYY-MM values present in the records, newest first."""
    df = records_to_frame(records)
    if df.empty:
        return []
    text = date_text(df['date']).dropna()
    months = text.str.slice(0, 7)
    months = months[months.str.len() == 7]
    return sorted(months.unique().tolist(), reverse=True)


def date_bounds(records) -> Optional[Tuple[date, date]]:
    """Earliest and latest parsable record date."""
    df = records_to_frame(records)
    if df.empty:
        return None
    parsed = parse_dates(df['date']).dropna()
    if parsed.empty:
        return None
    return parsed.min().date(), parsed.max().date()


def validate_filters(filters: FilterState) -> Tuple[bool, Optional[str]]:
    """Validate filter selections before applying them."""
    if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
        return False, "Start date must be before end date"
    if filters.selected_month:
        try:
            datetime.strptime(filters.selected_month, '%Y-%m')
        except ValueError:
            return False, f"Invalid month: {filters.selected_month} (expected YYYY-MM)"
    bad_days = [d for d in filters.days_of_week if d not in range(7)]
    if bad_days:
        return False, f"Invalid day(s) of week: {bad_days}"
    return True, None
