# tests/test_metrics.py
from datetime import date

import numpy as np
import pytest

from cstore.branch_performance.constants import BRANCHES, CHANNELS
from cstore.branch_performance.metrics import (
    BranchPerformanceMetrics,
    aggregate,
    calculate_monthly_summaries,
    calculate_period_comparison,
    previous_period,
    to_number,
)

AB = ('A', 'B')
XY = ('X', 'Y')


def test_scenario_branch_and_channel_metrics(scenario_records):
    summary = aggregate(scenario_records, branches=('A',), channels=XY)
    branch = summary.get_branch('A')

    assert branch.total_sales == 150
    assert branch.total_orders == 3
    assert branch.total_target == 50
    assert branch.achievement_percentage == pytest.approx(300.0)
    assert branch.aov == pytest.approx(50.0)
    assert not branch.has_target_override

    x = branch.get_channel('X')
    y = branch.get_channel('Y')
    assert x.achievement_percentage == pytest.approx(200.0)
    assert x.aov == pytest.approx(50.0)
    assert y.achievement_percentage == 0
    assert y.aov == pytest.approx(50.0)


def test_override_replaces_branch_target_only(scenario_records):
    summary = aggregate(scenario_records, {'A': 1000}, branches=('A',), channels=XY)
    branch = summary.get_branch('A')

    assert branch.total_target == 1000
    assert branch.achievement_percentage == pytest.approx(15.0)
    assert branch.has_target_override
    assert branch.get_channel('X').target == 50
    assert branch.get_channel('X').achievement_percentage == pytest.approx(200.0)
    assert branch.get_channel('Y').target == 0
    assert summary.total_target == 1000
    assert summary.overall_achievement == pytest.approx(15.0)


def test_override_for_other_branch_or_none_value_falls_back(scenario_records):
    summary = aggregate(scenario_records, {'B': 500, 'A': None}, branches=AB, channels=XY)
    assert summary.get_branch('A').total_target == 50
    assert summary.get_branch('B').total_target == 500
    assert summary.total_target == 550


def test_zero_override_is_an_explicit_target(scenario_records):
    summary = aggregate(scenario_records, {'A': 0}, branches=('A',), channels=XY)
    branch = summary.get_branch('A')
    assert branch.total_target == 0
    assert branch.achievement_percentage == 0
    assert branch.has_target_override


def test_every_enumerated_branch_and_channel_is_present(scenario_records):
    summary = aggregate(scenario_records, branches=AB, channels=XY)

    assert [b.branch_name for b in summary.branch_metrics] == ['A', 'B']
    empty = summary.get_branch('B')
    assert [c.channel_name for c in empty.channels] == ['X', 'Y']
    assert empty.total_sales == 0
    assert empty.achievement_percentage == 0
    assert empty.aov == 0


def test_records_outside_enumeration_are_ignored(scenario_records):
    records = scenario_records + [
        {'date': '2024-03-01', 'branch_name': 'Z', 'channel_name': 'X',
         'sales_value': 999, 'orders_count': 9, 'target_value': 9},
        {'date': '2024-03-01', 'branch_name': 'A', 'channel_name': 'Q',
         'sales_value': 999, 'orders_count': 9, 'target_value': 9},
    ]
    summary = aggregate(records, branches=('A',), channels=XY)
    assert summary.total_sales == 150
    assert summary.total_orders == 3


def test_empty_records_give_no_summary():
    assert aggregate([]) is None
    assert BranchPerformanceMetrics([]).calculate_summary() is None


def test_parent_totals_are_sums_of_children(sample_df):
    summary = aggregate(sample_df, {'Maadi': 12345})

    for branch in summary.branch_metrics:
        assert branch.total_sales == sum(c.sales for c in branch.channels)
        assert branch.total_orders == sum(c.orders for c in branch.channels)
        if not branch.has_target_override:
            assert branch.total_target == sum(c.target for c in branch.channels)

    assert summary.total_sales == sum(b.total_sales for b in summary.branch_metrics)
    assert summary.total_orders == sum(b.total_orders for b in summary.branch_metrics)
    assert summary.total_target == sum(b.total_target for b in summary.branch_metrics)
    assert summary.total_sales == sample_df['sales_value'].sum()
    assert len(summary.branch_metrics) == len(BRANCHES)
    assert all(len(b.channels) == len(CHANNELS) for b in summary.branch_metrics)


def test_zero_denominators_never_produce_nan_or_inf():
    records = [
        {'date': '2024-03-01', 'branch_name': 'A', 'channel_name': 'X',
         'sales_value': 100, 'orders_count': 0, 'target_value': 0},
    ]
    summary = aggregate(records, branches=AB, channels=XY)
    values = [summary.overall_achievement, summary.overall_aov]
    for b in summary.branch_metrics:
        values += [b.achievement_percentage, b.aov]
        for c in b.channels:
            values += [c.achievement_percentage, c.aov]

    assert all(np.isfinite(v) for v in values)
    assert summary.overall_aov == 0
    assert summary.overall_achievement == 0


def test_malformed_numbers_count_as_zero():
    records = [
        {'date': '2024-03-01', 'branch_name': 'A', 'channel_name': 'X',
         'sales_value': 'abc', 'orders_count': None, 'target_value': np.nan},
        {'date': '2024-03-01', 'branch_name': 'A', 'channel_name': 'X',
         'sales_value': '12.5', 'orders_count': '2', 'target_value': float('inf')},
    ]
    summary = aggregate(records, branches=('A',), channels=('X',))
    assert summary.total_sales == pytest.approx(12.5)
    assert summary.total_orders == 2
    assert summary.total_target == 0


def test_to_number():
    assert to_number('3.5') == 3.5
    assert to_number(None) == 0
    assert to_number(True) == 0
    assert to_number(float('nan')) == 0
    assert to_number('x') == 0


def test_summary_tables(sample_df):
    summary = aggregate(sample_df)
    branch_table = summary.branch_table()
    channel_table = summary.channel_table()

    assert branch_table['branch_name'].tolist() == list(BRANCHES)
    assert len(channel_table) == len(BRANCHES) * len(CHANNELS)
    assert summary.to_dict()['total_sales'] == summary.total_sales


def test_monthly_summaries_newest_first(sample_df):
    monthly = calculate_monthly_summaries(sample_df)

    assert monthly['month'].tolist() == ['2024-03', '2024-02']
    assert monthly['label'].tolist() == ['March 2024', 'February 2024']
    march = monthly.iloc[0]
    expected = sample_df[sample_df['date'].str.startswith('2024-03')]
    assert march['sales'] == pytest.approx(expected['sales_value'].sum())
    assert march['records'] == len(expected)
    assert march['achievement'] == pytest.approx(
        expected['sales_value'].sum() / expected['target_value'].sum() * 100
    )
    assert calculate_monthly_summaries([]).empty


def test_previous_period_same_length():
    assert previous_period(date(2024, 3, 8), date(2024, 3, 14)) == (date(2024, 3, 1), date(2024, 3, 7))
    assert previous_period(date(2024, 3, 1), date(2024, 3, 1)) == (date(2024, 2, 29), date(2024, 2, 29))


def test_period_comparison(scenario_records):
    result = calculate_period_comparison(scenario_records, date(2024, 3, 2), date(2024, 3, 2), branches=('A',))

    assert result['previous_period'] == (date(2024, 3, 1), date(2024, 3, 1))
    assert result['curr_sales'] == 50
    assert result['prev_sales'] == 100
    assert result['sales_delta_pct'] == pytest.approx(-50.0)
    assert result['curr_aov'] == pytest.approx(50.0)
    assert result['aov_delta_pct'] == pytest.approx(0.0)
    assert result['branch_comparison']['branch_name'].tolist() == ['A']


def test_period_comparison_without_previous_data(scenario_records):
    result = calculate_period_comparison(scenario_records, date(2024, 3, 1), date(2024, 3, 2), branches=('A',))
    assert result['prev_sales'] == 0
    assert result['sales_delta_pct'] is None
