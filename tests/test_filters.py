# tests/test_filters.py
from datetime import date

import pandas as pd

from cstore.branch_performance.constants import RECORD_COLUMNS
from cstore.branch_performance.filters import (
    apply_filters,
    available_months,
    date_bounds,
    validate_filters,
)
from cstore.branch_performance.models import FilterState, SalesRecord


def _dates(df):
    return df['date'].tolist()


def test_no_filters_keeps_every_dated_row_in_order(scenario_records):
    result = apply_filters(scenario_records, FilterState())
    assert _dates(result) == ['2024-03-01', '2024-03-02']


def test_none_filters_same_as_empty_state(scenario_records):
    assert _dates(apply_filters(scenario_records)) == ['2024-03-01', '2024-03-02']


def test_day_of_week_is_sunday_based(scenario_records):
    friday = apply_filters(scenario_records, FilterState(days_of_week=(5,)))
    saturday = apply_filters(scenario_records, FilterState(days_of_week=(6,)))
    sunday = apply_filters(scenario_records, FilterState(days_of_week=(0,)))

    assert _dates(friday) == ['2024-03-01']
    assert _dates(saturday) == ['2024-03-02']
    assert sunday.empty


def test_month_matches_date_prefix(sample_df):
    result = apply_filters(sample_df, FilterState(selected_month='2024-02'))
    assert not result.empty
    assert result['date'].str.startswith('2024-02').all()
    assert len(result) == len(sample_df[sample_df['date'].str.startswith('2024-02')])


def test_date_range_is_inclusive(sample_df):
    result = apply_filters(sample_df, FilterState(date_from=date(2024, 2, 28), date_to=date(2024, 3, 1)))
    assert sorted(set(_dates(result))) == ['2024-02-28', '2024-02-29', '2024-03-01']


def test_date_from_without_end_means_single_day(sample_df):
    result = apply_filters(sample_df, FilterState(date_from=date(2024, 3, 1)))
    assert set(_dates(result)) == {'2024-03-01'}


def test_branch_and_channel_subsets_are_anded(sample_df):
    result = apply_filters(sample_df, FilterState(branches=('Maadi',), channels=('Talabat', 'Website')))
    assert set(result['branch_name']) == {'Maadi'}
    assert set(result['channel_name']) == {'Talabat', 'Website'}
    assert len(result) == 10 * 2


def test_filters_compose(sample_df):
    first = FilterState(branches=('Zamalek', 'Maadi'))
    second = FilterState(selected_month='2024-03', days_of_week=(5, 6))
    combined = FilterState(branches=('Zamalek', 'Maadi'), selected_month='2024-03', days_of_week=(5, 6))

    chained = apply_filters(apply_filters(sample_df, first), second)
    direct = apply_filters(sample_df, combined)

    pd.testing.assert_frame_equal(chained, direct)


def test_unparsable_dates_are_always_excluded():
    records = [
        {'date': 'not-a-date', 'branch_name': 'A', 'channel_name': 'X', 'sales_value': 1},
        {'date': None, 'branch_name': 'A', 'channel_name': 'X', 'sales_value': 1},
        {'date': '2024-03-01T10:30:00', 'branch_name': 'A', 'channel_name': 'X', 'sales_value': 1},
    ]
    result = apply_filters(records, FilterState())
    assert _dates(result) == ['2024-03-01T10:30:00']

    by_day = apply_filters(records, FilterState(date_from=date(2024, 3, 1), date_to=date(2024, 3, 1)))
    assert len(by_day) == 1


def test_empty_input_returns_empty_frame():
    result = apply_filters([], FilterState(branches=('A',)))
    assert result.empty
    assert list(result.columns) == RECORD_COLUMNS


def test_input_frame_is_not_modified(sample_df):
    before = sample_df.copy()
    apply_filters(sample_df, FilterState(branches=('Maadi',), selected_month='2024-03'))
    pd.testing.assert_frame_equal(sample_df, before)


def test_accepts_sales_record_objects():
    records = [
        SalesRecord('2024-03-01', 'A', 'X', 100, 2, 50),
        SalesRecord('2024-03-02', 'B', 'X', 10, 1, 0),
    ]
    result = apply_filters(records, FilterState(branches=('B',)))
    assert result['branch_name'].tolist() == ['B']


def test_available_months_newest_first(sample_df):
    assert available_months(sample_df) == ['2024-03', '2024-02']
    assert available_months([]) == []


def test_date_bounds(sample_df):
    assert date_bounds(sample_df) == (date(2024, 2, 26), date(2024, 3, 6))
    assert date_bounds([]) is None


def test_validate_filters():
    assert validate_filters(FilterState()) == (True, None)

    ok, msg = validate_filters(FilterState(date_from=date(2024, 3, 2), date_to=date(2024, 3, 1)))
    assert not ok and 'before' in msg

    ok, msg = validate_filters(FilterState(selected_month='March'))
    assert not ok and 'YYYY-MM' in msg

    ok, _ = validate_filters(FilterState(days_of_week=(7,)))
    assert not ok


def test_filter_state_from_dict_round_trip():
    state = FilterState.from_dict({
        'selected_month': '2024-03',
        'branches': ['Maadi'],
        'days_of_week': ['5'],
    })
    assert state.days_of_week == (5,)
    assert FilterState.from_dict(state.to_dict()) == state
    assert hash(state) == hash(FilterState.from_dict(state.to_dict()))
    assert state.with_month(None).selected_month is None
    assert FilterState().is_empty()
