# cstore/branch_performance/charts.py
"""
Altair charts for Branch Performance.

VERSION: 1.0.0
"""

import logging
from typing import Optional

import altair as alt
import pandas as pd

from .constants import CHART_HEIGHT, CHART_WIDTH, CHANNEL_COLORS, CHANNELS, COLORS
from .models import BranchMetrics, DashboardSummary

logger = logging.getLogger(__name__)


def empty_chart(message: str = "No data available") -> alt.Chart:
    """Return an empty chart with a message."""
    return alt.Chart(pd.DataFrame({'text': [message]})).mark_text(
        fontSize=14, color='#999999'
    ).encode(
        text='text:N'
    ).properties(width=CHART_WIDTH, height=100)


def build_sales_vs_target_chart(summary: Optional[DashboardSummary],
                                title: str = "Sales vs Target by Branch") -> alt.Chart:
    """Grouped bars: sales and target per branch, achievement in tooltip."""
    if summary is None:
        return empty_chart("No sales data")

    df = summary.branch_table()
    long_df = df.melt(
        id_vars=['branch_name', 'achievement_percentage'],
        value_vars=['total_sales', 'total_target'],
        var_name='measure', value_name='value'
    )
    long_df['measure'] = long_df['measure'].map({'total_sales': 'Sales', 'total_target': 'Target'})
    branch_order = df['branch_name'].tolist()

    return alt.Chart(long_df).mark_bar().encode(
        x=alt.X('branch_name:N', sort=branch_order, title='Branch'),
        xOffset=alt.XOffset('measure:N'),
        y=alt.Y('value:Q', title='Amount', axis=alt.Axis(format='~s')),
        color=alt.Color(
            'measure:N',
            scale=alt.Scale(domain=['Sales', 'Target'], range=[COLORS['sales'], COLORS['target']]),
            title=None,
        ),
        tooltip=[
            alt.Tooltip('branch_name:N', title='Branch'),
            alt.Tooltip('measure:N', title='Measure'),
            alt.Tooltip('value:Q', title='Value', format=',.0f'),
            alt.Tooltip('achievement_percentage:Q', title='Achievement %', format='.1f'),
        ]
    ).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)


def build_channel_mix_chart(summary: Optional[DashboardSummary],
                            title: str = "Sales by Channel") -> alt.Chart:
    """Stacked bars: each branch split by channel."""
    if summary is None:
        return empty_chart("No sales data")

    df = summary.channel_table()
    if df.empty or df['sales'].sum() == 0:
        return empty_chart("No channel sales in selection")

    channel_order = [c for c in CHANNELS if c in set(df['channel_name'])] or df['channel_name'].unique().tolist()
    branch_order = [b.branch_name for b in summary.branch_metrics]

    return alt.Chart(df).mark_bar().encode(
        x=alt.X('branch_name:N', sort=branch_order, title='Branch'),
        y=alt.Y('sales:Q', title='Sales', axis=alt.Axis(format='~s')),
        color=alt.Color(
            'channel_name:N',
            sort=channel_order,
            scale=alt.Scale(domain=channel_order, range=CHANNEL_COLORS[:len(channel_order)] or None),
            title='Channel',
        ),
        order=alt.Order('channel_name:N'),
        tooltip=[
            alt.Tooltip('branch_name:N', title='Branch'),
            alt.Tooltip('channel_name:N', title='Channel'),
            alt.Tooltip('sales:Q', title='Sales', format=',.0f'),
            alt.Tooltip('orders:Q', title='Orders', format=',.0f'),
            alt.Tooltip('aov:Q', title='AOV', format=',.2f'),
        ]
    ).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)


def build_branch_channel_chart(branch: BranchMetrics) -> alt.Chart:
    """Sales vs target per channel for a single branch."""
    df = pd.DataFrame([c.to_dict() for c in branch.channels])
    if df.empty:
        return empty_chart()

    bars = alt.Chart(df).mark_bar(color=COLORS['sales'], opacity=0.85).encode(
        x=alt.X('channel_name:N', sort=None, title='Channel'),
        y=alt.Y('sales:Q', title='Sales', axis=alt.Axis(format='~s')),
        tooltip=[
            alt.Tooltip('channel_name:N', title='Channel'),
            alt.Tooltip('sales:Q', title='Sales', format=',.0f'),
            alt.Tooltip('target:Q', title='Target', format=',.0f'),
            alt.Tooltip('achievement_percentage:Q', title='Achievement %', format='.1f'),
        ]
    )
    ticks = alt.Chart(df).mark_tick(color=COLORS['target'], thickness=3, size=40).encode(
        x=alt.X('channel_name:N', sort=None),
        y=alt.Y('target:Q'),
    )
    return alt.layer(bars, ticks).properties(
        width=CHART_WIDTH, height=CHART_HEIGHT, title=f"{branch.branch_name} - Channels"
    )


def build_daily_trend_chart(daily_df: pd.DataFrame,
                            title: str = "Daily Sales Trend") -> alt.Chart:
    """Line per branch over the filtered period."""
    if daily_df is None or daily_df.empty:
        return empty_chart("No daily data")

    return alt.Chart(daily_df).mark_line(point=True).encode(
        x=alt.X('date:T', title='Date'),
        y=alt.Y('sales:Q', title='Sales', axis=alt.Axis(format='~s')),
        color=alt.Color('branch_name:N', title='Branch'),
        tooltip=[
            alt.Tooltip('date:T', title='Date', format='%Y-%m-%d'),
            alt.Tooltip('branch_name:N', title='Branch'),
            alt.Tooltip('sales:Q', title='Sales', format=',.0f'),
            alt.Tooltip('orders:Q', title='Orders', format=',.0f'),
        ]
    ).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)


def build_monthly_trend_chart(monthly_df: pd.DataFrame,
                              title: str = "Monthly Sales vs Target") -> alt.Chart:
    """Monthly sales bars with the target as a line."""
    if monthly_df is None or monthly_df.empty:
        return empty_chart("No monthly data")

    df = monthly_df.sort_values('month')
    bars = alt.Chart(df).mark_bar(color=COLORS['sales'], opacity=0.8).encode(
        x=alt.X('month:O', title='Month'),
        y=alt.Y('sales:Q', title='Amount', axis=alt.Axis(format='~s')),
        tooltip=[
            alt.Tooltip('label:N', title='Month'),
            alt.Tooltip('sales:Q', title='Sales', format=',.0f'),
            alt.Tooltip('target:Q', title='Target', format=',.0f'),
            alt.Tooltip('achievement:Q', title='Achievement %', format='.1f'),
        ]
    )
    line = alt.Chart(df).mark_line(color=COLORS['target'], point=True).encode(
        x=alt.X('month:O'),
        y=alt.Y('target:Q'),
    )
    return alt.layer(bars, line).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)
