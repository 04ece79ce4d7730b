# tests/test_queries.py
import pandas as pd
import pytest
from sqlalchemy import create_engine, text

from cstore.branch_performance.exceptions import DataStoreError
from cstore.branch_performance.queries import SalesQueries


def _records(n, branch='Maadi'):
    return pd.DataFrame([
        {'date': f'2024-03-{day:02d}', 'branch_name': branch, 'channel_name': 'Talabat',
         'sales_value': 100.0 * day, 'orders_count': day, 'target_value': 50.0}
        for day in range(1, n + 1)
    ])


def _count(engine, table):
    with engine.connect() as conn:
        return conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()


def test_replace_sales_data_inserts_in_chunks(queries, sqlite_engine):
    inserted = queries.replace_sales_data(_records(5), chunk_size=2)

    assert inserted == 5
    df = queries.load_sales_raw()
    assert df['date'].tolist() == ['2024-03-05', '2024-03-04', '2024-03-03', '2024-03-02', '2024-03-01']
    assert df['sales_value'].sum() == pytest.approx(1500.0)


def test_replace_sales_data_removes_previous_rows(queries, sqlite_engine):
    queries.replace_sales_data(_records(5))
    queries.replace_sales_data(_records(1, branch='Zamalek'))

    df = queries.load_sales_raw()
    assert df['branch_name'].tolist() == ['Zamalek']


def test_failed_upload_keeps_existing_data(queries, sqlite_engine):
    queries.replace_sales_data(_records(3))

    bad = _records(4)
    bad.loc[3, 'branch_name'] = None
    with pytest.raises(DataStoreError):
        queries.replace_sales_data(bad, chunk_size=2)

    assert _count(sqlite_engine, 'sales_data') == 3


def test_chunk_size_must_be_positive(queries):
    with pytest.raises(ValueError):
        queries.replace_sales_data(_records(1), chunk_size=0)


def test_load_errors_are_wrapped():
    broken = SalesQueries(engine=create_engine("sqlite://"))
    with pytest.raises(DataStoreError) as excinfo:
        broken.load_sales_raw()
    assert str(excinfo.value).startswith("Failed to fetch sales data")


def test_upsert_targets_is_idempotent(queries, sqlite_engine):
    queries.upsert_targets([{'branch_name': 'Maadi', 'month': '2024-03', 'target_value': 100.0}])
    queries.upsert_targets([{'branch_name': 'Maadi', 'month': '2024-03', 'target_value': 250.0}])
    queries.upsert_targets([{'branch_name': 'Maadi', 'month': '2024-04', 'target_value': 10.0}])

    assert _count(sqlite_engine, 'branch_targets') == 2
    march = queries.load_targets('2024-03')
    assert march['target_value'].tolist() == [250.0]


def test_upsert_nothing():
    assert SalesQueries(engine=object()).upsert_targets([]) == 0
