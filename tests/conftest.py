# tests/conftest.py
from datetime import date, timedelta

import pandas as pd
import pytest
import streamlit as st
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from cstore.branch_performance.constants import BRANCHES, CHANNELS
from cstore.branch_performance.queries import SalesQueries

SQLITE_SCHEMA = [
    """
    CREATE TABLE sales_data (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        date TEXT NOT NULL,
        branch_name TEXT NOT NULL,
        channel_name TEXT NOT NULL,
        sales_value REAL NOT NULL DEFAULT 0,
        orders_count INTEGER NOT NULL DEFAULT 0,
        target_value REAL NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE branch_targets (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        branch_name TEXT NOT NULL,
        month TEXT NOT NULL,
        target_value REAL NOT NULL DEFAULT 0,
        updated_at TIMESTAMP,
        UNIQUE (branch_name, month)
    )
    """,
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        password_salt TEXT NOT NULL,
        full_name TEXT,
        role TEXT NOT NULL DEFAULT 'viewer',
        is_active INTEGER NOT NULL DEFAULT 1,
        last_login TIMESTAMP
    )
    """,
]


@pytest.fixture
def scenario_records():
    """Two records for branch A on consecutive days (2024-03-01 is a Friday)."""
    return [
        {'date': '2024-03-01', 'branch_name': 'A', 'channel_name': 'X',
         'sales_value': 100, 'orders_count': 2, 'target_value': 50},
        {'date': '2024-03-02', 'branch_name': 'A', 'channel_name': 'Y',
         'sales_value': 50, 'orders_count': 1, 'target_value': 0},
    ]


@pytest.fixture
def sample_df():
    """Every branch × channel for 2024-02-26 .. 2024-03-06 (two months)."""
    rows = []
    start = date(2024, 2, 26)
    for day in range(10):
        current = start + timedelta(days=day)
        for b_idx, branch in enumerate(BRANCHES):
            for c_idx, channel in enumerate(CHANNELS):
                rows.append({
                    'date': current.isoformat(),
                    'branch_name': branch,
                    'channel_name': channel,
                    'sales_value': float(1000 + 100 * b_idx + 10 * c_idx + day),
                    'orders_count': 10 + c_idx,
                    'target_value': 900.0,
                })
    return pd.DataFrame(rows)


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        for ddl in SQLITE_SCHEMA:
            conn.execute(text(ddl))
    yield engine
    engine.dispose()


@pytest.fixture
def queries(sqlite_engine):
    return SalesQueries(engine=sqlite_engine)


@pytest.fixture
def session_state(monkeypatch):
    """Plain dict standing in for st.session_state outside `streamlit run`."""
    state = {}
    monkeypatch.setattr(st, "session_state", state)
    return state
