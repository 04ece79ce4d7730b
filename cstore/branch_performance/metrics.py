# cstore/branch_performance/metrics.py
"""
Metrics Calculator for Branch Performance

Folds filtered sales records into the three-level summary
(channel → branch → overall) and derives the monthly report and
period comparison views.

Rules shared by every level:
- achievement % = sales / target * 100, or 0 when target is 0
- AOV = sales / orders, or 0 when orders is 0
- a parent's totals are the sum of its children's totals
- malformed numbers count as 0, nothing here raises on bad input

VERSION: 1.0.0
"""

import logging
from datetime import date, timedelta
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .constants import BRANCHES, CHANNELS
from .filters import apply_filters, date_text, parse_dates
from .models import (
    BranchMetrics,
    ChannelMetrics,
    DashboardSummary,
    FilterState,
    records_to_frame,
)

logger = logging.getLogger(__name__)


# =============================================================================
# NUMERIC HELPERS
# =============================================================================

def to_number(value) -> float:
    """Coerce a stored value to a finite float (0.0 when impossible)."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if np.isfinite(number) else 0.0


def numeric_column(df: pd.DataFrame, col: str) -> pd.Series:
    """Numeric view of a record column; missing column → zeros."""
    if col not in df.columns:
        return pd.Series(0.0, index=df.index)
    return df[col].map(to_number).astype(float)


def achievement_pct(sales: float, target: float) -> float:
    if target > 0:
        value = sales / target * 100
        return value if np.isfinite(value) else 0.0
    return 0.0


def average_order_value(sales: float, orders: float) -> float:
    if orders > 0:
        value = sales / orders
        return value if np.isfinite(value) else 0.0
    return 0.0


def _override_for(target_overrides: Optional[Mapping], branch: str) -> Optional[float]:
    """Explicit target for the branch; None means fall back to channel sums."""
    if not target_overrides or branch not in target_overrides:
        return None
    value = target_overrides[branch]
    if value is None:
        return None
    return to_number(value)


# =============================================================================
# AGGREGATION
# =============================================================================

def _channel_sums(
    df: pd.DataFrame,
    branches: Sequence[str],
    channels: Sequence[str],
) -> Dict[Tuple[str, str], Tuple[float, float, float]]:
    """(branch, channel) → (sales, orders, target) for enumerated pairs only."""
    work = pd.DataFrame({
        'branch_name': df['branch_name'],
        'channel_name': df['channel_name'],
        'sales': numeric_column(df, 'sales_value'),
        'orders': numeric_column(df, 'orders_count'),
        'target': numeric_column(df, 'target_value'),
    })
    work = work[work['branch_name'].isin(branches) & work['channel_name'].isin(channels)]
    if work.empty:
        return {}

    grouped = work.groupby(['branch_name', 'channel_name'], sort=False)[['sales', 'orders', 'target']].sum()
    return {
        key: (float(row['sales']), float(row['orders']), float(row['target']))
        for key, row in grouped.iterrows()
    }


def aggregate(
    records,
    target_overrides: Optional[Mapping[str, float]] = None,
    branches: Sequence[str] = BRANCHES,
    channels: Sequence[str] = CHANNELS,
) -> Optional[DashboardSummary]:
    """
    Build the dashboard summary.

    Args:
        records: filtered records (DataFrame or sequence of SalesRecord/dicts)
        target_overrides: branch_name → explicit target; a missing key
            means the branch target is the sum of its channel targets
        branches / channels: fixed enumeration, defines output order

    Returns:
        DashboardSummary, or None when there are no records at all.
    """
    df = records_to_frame(records)
    if df.empty:
        return None

    sums = _channel_sums(df, branches, channels)

    branch_metrics = []
    for branch in branches:
        channel_metrics = []
        for channel in channels:
            sales, orders, target = sums.get((branch, channel), (0.0, 0.0, 0.0))
            channel_metrics.append(ChannelMetrics(
                channel_name=channel,
                sales=sales,
                orders=orders,
                target=target,
                achievement_percentage=achievement_pct(sales, target),
                aov=average_order_value(sales, orders),
            ))

        total_sales = sum(c.sales for c in channel_metrics)
        total_orders = sum(c.orders for c in channel_metrics)
        override = _override_for(target_overrides, branch)
        total_target = override if override is not None else sum(c.target for c in channel_metrics)

        branch_metrics.append(BranchMetrics(
            branch_name=branch,
            total_sales=total_sales,
            total_orders=total_orders,
            total_target=total_target,
            achievement_percentage=achievement_pct(total_sales, total_target),
            aov=average_order_value(total_sales, total_orders),
            channels=tuple(channel_metrics),
            has_target_override=override is not None,
        ))

    total_sales = sum(b.total_sales for b in branch_metrics)
    total_orders = sum(b.total_orders for b in branch_metrics)
    total_target = sum(b.total_target for b in branch_metrics)

    return DashboardSummary(
        total_sales=total_sales,
        total_orders=total_orders,
        total_target=total_target,
        overall_achievement=achievement_pct(total_sales, total_target),
        overall_aov=average_order_value(total_sales, total_orders),
        branch_metrics=tuple(branch_metrics),
    )


# =============================================================================
# METRICS CLASS
# =============================================================================

class BranchPerformanceMetrics:
    """
    Calculate performance metrics from sales records.

    Usage:
        metrics = BranchPerformanceMetrics(filtered_df)
        summary = metrics.calculate_summary(target_overrides)
    """

    def __init__(self, sales_df: pd.DataFrame,
                 branches: Sequence[str] = BRANCHES,
                 channels: Sequence[str] = CHANNELS):
        self.sales_df = records_to_frame(sales_df)
        self.branches = tuple(branches)
        self.channels = tuple(channels)

    def calculate_summary(self, target_overrides: Optional[Mapping[str, float]] = None) -> Optional[DashboardSummary]:
        return aggregate(self.sales_df, target_overrides, self.branches, self.channels)

    def calculate_monthly_summaries(self) -> pd.DataFrame:
        return calculate_monthly_summaries(self.sales_df)

    def calculate_daily_trend(self) -> pd.DataFrame:
        return calculate_daily_trend(self.sales_df, self.branches)

    def calculate_period_comparison(self, start: date, end: date,
                                    prev_start: date = None,
                                    prev_end: date = None) -> Dict:
        return calculate_period_comparison(
            self.sales_df, start, end, prev_start, prev_end,
            branches=self.branches,
        )


# =============================================================================
# MONTHLY REPORTS
# =============================================================================

def _month_label(month: str) -> str:
    try:
        return pd.Timestamp(f"{month}-01").strftime('%B %Y')
    except ValueError:
        logger.warning(f"Could not format month: {month}")
        return month


def calculate_monthly_summaries(records) -> pd.DataFrame:
    """
    Totals per calendar month (YYYY-MM prefix of the record date).

    Returns:
        DataFrame [month, label, sales, orders, target, achievement, records],
        newest month first. Empty DataFrame when there is nothing to report.
    """
    columns = ['month', 'label', 'sales', 'orders', 'target', 'achievement', 'records']
    df = records_to_frame(records)
    if df.empty:
        return pd.DataFrame(columns=columns)

    months = date_text(df['date']).fillna('').str.slice(0, 7)
    work = pd.DataFrame({
        'month': months,
        'sales': numeric_column(df, 'sales_value'),
        'orders': numeric_column(df, 'orders_count'),
        'target': numeric_column(df, 'target_value'),
    })
    work = work[work['month'].str.len() == 7]
    if work.empty:
        return pd.DataFrame(columns=columns)

    monthly = work.groupby('month').agg(
        sales=('sales', 'sum'),
        orders=('orders', 'sum'),
        target=('target', 'sum'),
        records=('sales', 'size'),
    ).reset_index()

    monthly['achievement'] = [
        achievement_pct(s, t) for s, t in zip(monthly['sales'], monthly['target'])
    ]
    monthly['label'] = monthly['month'].map(_month_label)
    monthly = monthly.sort_values('month', ascending=False).reset_index(drop=True)
    return monthly[columns]


def calculate_daily_trend(records, branches: Sequence[str] = BRANCHES) -> pd.DataFrame:
    """Daily sales/orders per branch for trend charts."""
    columns = ['date', 'branch_name', 'sales', 'orders']
    df = records_to_frame(records)
    if df.empty:
        return pd.DataFrame(columns=columns)

    work = pd.DataFrame({
        'date': parse_dates(df['date']),
        'branch_name': df['branch_name'],
        'sales': numeric_column(df, 'sales_value'),
        'orders': numeric_column(df, 'orders_count'),
    })
    work = work[work['date'].notna() & work['branch_name'].isin(branches)]
    if work.empty:
        return pd.DataFrame(columns=columns)

    daily = work.groupby(['date', 'branch_name'], as_index=False)[['sales', 'orders']].sum()
    return daily.sort_values(['date', 'branch_name']).reset_index(drop=True)[columns]


# =============================================================================
# PERIOD COMPARISON
# =============================================================================

def previous_period(start: date, end: date) -> Tuple[date, date]:
    """Window of the same length immediately before [start, end]."""
    days = (end - start).days + 1
    prev_end = start - timedelta(days=1)
    return prev_end - timedelta(days=days - 1), prev_end


def _delta(curr: float, prev: float) -> Optional[float]:
    if prev == 0:
        return None
    return (curr - prev) / abs(prev) * 100


def _period_totals(df: pd.DataFrame) -> Dict[str, float]:
    sales = float(numeric_column(df, 'sales_value').sum()) if not df.empty else 0.0
    orders = float(numeric_column(df, 'orders_count').sum()) if not df.empty else 0.0
    return {'sales': sales, 'orders': orders, 'aov': average_order_value(sales, orders)}


def calculate_period_comparison(
    records,
    start: date,
    end: date,
    prev_start: date = None,
    prev_end: date = None,
    branches: Sequence[str] = BRANCHES,
) -> Dict:
    """
    Compare two date windows over the raw records (e.g. today vs yesterday).

    When no previous window is given, the equal-length window right
    before the current one is used. Delta percentages are None when the
    previous value is 0.
    """
    if prev_start is None or prev_end is None:
        prev_start, prev_end = previous_period(start, end)

    df = records_to_frame(records)
    current_df = apply_filters(df, FilterState(date_from=start, date_to=end))
    previous_df = apply_filters(df, FilterState(date_from=prev_start, date_to=prev_end))

    curr = _period_totals(current_df)
    prev = _period_totals(previous_df)

    branch_rows = []
    for branch in branches:
        c = _period_totals(current_df[current_df['branch_name'] == branch])
        p = _period_totals(previous_df[previous_df['branch_name'] == branch])
        branch_rows.append({
            'branch_name': branch,
            'current_sales': c['sales'],
            'previous_sales': p['sales'],
            'sales_delta_pct': _delta(c['sales'], p['sales']),
            'current_orders': c['orders'],
            'previous_orders': p['orders'],
            'orders_delta_pct': _delta(c['orders'], p['orders']),
        })

    return {
        'current_period': (start, end),
        'previous_period': (prev_start, prev_end),
        'curr_sales': curr['sales'],
        'prev_sales': prev['sales'],
        'sales_delta_pct': _delta(curr['sales'], prev['sales']),
        'curr_orders': curr['orders'],
        'prev_orders': prev['orders'],
        'orders_delta_pct': _delta(curr['orders'], prev['orders']),
        'curr_aov': curr['aov'],
        'prev_aov': prev['aov'],
        'aov_delta_pct': _delta(curr['aov'], prev['aov']),
        'branch_comparison': pd.DataFrame(branch_rows),
    }
