# cstore/branch_performance/queries.py
"""
SQL Queries for Branch Performance

Tables:
  - sales_data: one row per (date, branch, channel) observation
  - branch_targets: explicit monthly targets, unique (branch_name, month)

VERSION: 1.0.0
- sqlalchemy engine + text()
- Lazy engine loading pattern (engine can be injected for tests)
"""

import logging
import time
from datetime import datetime
from typing import Dict, List

import pandas as pd
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .constants import (
    DEBUG_TIMING,
    DEFAULT_UPLOAD_CHUNK_SIZE,
    RECORD_COLUMNS,
    SALES_TABLE,
    TARGETS_TABLE,
)
from .exceptions import DataStoreError

logger = logging.getLogger(__name__)


class SalesQueries:
    """
    SQL helpers for the record store and the target store.

    Usage:
        queries = SalesQueries()
        sales_df = queries.load_sales_raw()
        targets_df = queries.load_targets('2024-03')
    """

    def __init__(self, engine=None):
        self._engine = engine

    @property
    def engine(self):
        """Lazy load database engine."""
        if self._engine is None:
            from ..db import get_db_engine
            try:
                self._engine = get_db_engine()
            except ValueError as e:
                raise DataStoreError("connect to database", e) from e
        return self._engine

    # =========================================================================
    # SALES DATA
    # =========================================================================

    def load_sales_raw(self) -> pd.DataFrame:
        """Load all sales records, newest first."""
        start_time = time.perf_counter()

        query = f"""
            SELECT id, {', '.join(RECORD_COLUMNS)}
            FROM {SALES_TABLE}
            ORDER BY date DESC
        """

        try:
            df = pd.read_sql(text(query), self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Error loading sales_raw: {e}")
            raise DataStoreError("fetch sales data", e) from e

        if DEBUG_TIMING:
            print(f"   📊 SQL [sales_raw]: {time.perf_counter() - start_time:.3f}s → {len(df):,} rows")
        return df

    def replace_sales_data(self, records_df: pd.DataFrame,
                           chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE) -> int:
        """
        Replace the whole sales table: delete all rows, then insert the
        new records in chunks. Runs in one transaction, so a failed chunk
        leaves the previous data in place.

        Returns:
            Number of inserted rows
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        rows = records_df[RECORD_COLUMNS].to_dict(orient='records')
        insert = text(f"""
            INSERT INTO {SALES_TABLE} ({', '.join(RECORD_COLUMNS)})
            VALUES ({', '.join(':' + c for c in RECORD_COLUMNS)})
        """)

        logger.info(f"Starting upload of {len(rows):,} records...")
        try:
            with self.engine.begin() as conn:
                deleted = conn.execute(text(f"DELETE FROM {SALES_TABLE}")).rowcount
                logger.info(f"Deleted {deleted} existing records")

                for i in range(0, len(rows), chunk_size):
                    chunk = rows[i:i + chunk_size]
                    logger.info(f"Uploading chunk {i // chunk_size + 1} ({len(chunk)} records)...")
                    conn.execute(insert, chunk)
        except SQLAlchemyError as e:
            logger.error(f"Upload failed: {e}")
            raise DataStoreError("upload sales data", e) from e

        logger.info("Upload complete")
        return len(rows)

    # =========================================================================
    # BRANCH TARGETS
    # =========================================================================

    def load_targets(self, month: str) -> pd.DataFrame:
        """Explicit branch targets for one month (YYYY-MM)."""
        query = f"""
            SELECT branch_name, month, target_value
            FROM {TARGETS_TABLE}
            WHERE month = :month
        """

        try:
            return pd.read_sql(text(query), self.engine, params={'month': month})
        except SQLAlchemyError as e:
            logger.error(f"Error fetching targets for {month}: {e}")
            raise DataStoreError(f"fetch targets for {month}", e) from e

    def upsert_targets(self, rows: List[Dict]) -> int:
        """
        Insert or update targets keyed by (branch_name, month).

        Args:
            rows: dicts with branch_name, month, target_value

        Returns:
            Number of rows written
        """
        if not rows:
            return 0

        update = text(f"""
            UPDATE {TARGETS_TABLE}
            SET target_value = :target_value, updated_at = :updated_at
            WHERE branch_name = :branch_name AND month = :month
        """)
        insert = text(f"""
            INSERT INTO {TARGETS_TABLE} (branch_name, month, target_value, updated_at)
            VALUES (:branch_name, :month, :target_value, :updated_at)
        """)

        now = datetime.now()
        try:
            with self.engine.begin() as conn:
                for row in rows:
                    params = {
                        'branch_name': row['branch_name'],
                        'month': row['month'],
                        'target_value': row['target_value'],
                        'updated_at': now,
                    }
                    if conn.execute(update, params).rowcount == 0:
                        conn.execute(insert, params)
        except SQLAlchemyError as e:
            logger.error(f"Error updating targets: {e}")
            raise DataStoreError("update targets", e) from e

        logger.info(f"Upserted {len(rows)} branch target(s)")
        return len(rows)
