# tests/test_charts.py
from datetime import date

import altair as alt
import pandas as pd

from cstore.branch_performance.charts import (
    build_branch_channel_chart,
    build_channel_mix_chart,
    build_daily_trend_chart,
    build_monthly_trend_chart,
    build_sales_vs_target_chart,
)
from cstore.branch_performance.fragments import _month_options, comparison_windows, format_currency, format_delta
from cstore.branch_performance.metrics import aggregate, calculate_daily_trend, calculate_monthly_summaries


def test_charts_build_from_summary(sample_df):
    summary = aggregate(sample_df)

    assert isinstance(build_sales_vs_target_chart(summary), alt.Chart)
    assert isinstance(build_channel_mix_chart(summary), alt.Chart)
    assert isinstance(build_branch_channel_chart(summary.branch_metrics[0]), alt.LayerChart)
    assert isinstance(build_daily_trend_chart(calculate_daily_trend(sample_df)), alt.Chart)
    assert isinstance(build_monthly_trend_chart(calculate_monthly_summaries(sample_df)), alt.LayerChart)


def test_empty_inputs_render_placeholder():
    for chart in (build_sales_vs_target_chart(None), build_daily_trend_chart(pd.DataFrame())):
        assert chart.to_dict()['mark']['type'] == 'text'


def test_comparison_windows():
    anchor = date(2024, 3, 14)
    assert comparison_windows('Day vs previous day', anchor) == ((anchor, anchor), None)
    assert comparison_windows('Last 7 days vs previous 7', anchor) == ((date(2024, 3, 8), anchor), None)
    assert comparison_windows('Month to date vs last month', anchor) == (
        (date(2024, 3, 1), anchor), (date(2024, 2, 1), date(2024, 2, 14)),
    )
    # previous month shorter than the current day
    assert comparison_windows('Month to date vs last month', date(2024, 3, 31))[1] == (
        date(2024, 2, 1), date(2024, 2, 29),
    )


def test_format_helpers():
    assert format_currency(1234567, 'EGP') == 'EGP 1,234,567'
    assert format_currency(12.346, 'EGP', 2) == 'EGP 12.35'
    assert format_delta(None) is None
    assert format_delta(12.34) == '+12.3%'


def test_month_options():
    options = _month_options(4, today=date(2024, 1, 20))
    assert options == ['2024-02', '2024-01', '2023-12', '2023-11']
