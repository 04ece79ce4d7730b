# cstore/branch_performance/targets.py
"""
Branch Targets for Branch Performance

- TargetResolver: month → {branch_name: target_value} read-through
  adapter used by the dashboard. Branches without an explicit row are
  left out so the aggregator falls back to summed channel targets.
- TargetManager: admin-side reads and idempotent upserts.

VERSION: 1.0.0
"""

import logging
import math
from datetime import date
from typing import Dict, Mapping, Sequence

import pandas as pd

from .constants import BRANCHES
from .exceptions import DataStoreError
from .queries import SalesQueries

logger = logging.getLogger(__name__)


def get_current_month(today: date = None) -> str:
    """Current month as YYYY-MM."""
    today = today or date.today()
    return f"{today.year}-{today.month:02d}"


def changed_targets(table: pd.DataFrame, values: Mapping[str, float]) -> Dict[str, float]:
    """Entered values that differ from the stored table; blanks are dropped."""
    stored = dict(zip(table['branch_name'], table['target_value']))
    changed = {}
    for branch, value in values.items():
        if value is None:
            continue
        current = stored.get(branch)
        if current is None or pd.isna(current) or float(current) != float(value):
            changed[branch] = value
    return changed


class TargetResolver:
    """
    Resolve explicit branch targets for a month.

    Usage:
        resolver = TargetResolver()
        overrides = resolver.resolve_targets('2024-03')
    """

    def __init__(self, queries: SalesQueries = None):
        self.queries = queries or SalesQueries()

    def resolve_targets(self, month: str) -> Dict[str, float]:
        """
        Explicit targets for the month.

        A store failure is logged and treated as "no explicit targets",
        so the dashboard still renders with bottom-up targets.
        """
        try:
            targets_df = self.queries.load_targets(month)
        except DataStoreError as e:
            logger.error(f"Error fetching targets: {e}")
            return {}

        overrides = {}
        for row in targets_df.itertuples(index=False):
            if row.target_value is None or pd.isna(row.target_value):
                continue
            overrides[row.branch_name] = float(row.target_value)

        logger.debug(f"Resolved {len(overrides)} explicit target(s) for {month}")
        return overrides


class TargetManager:
    """
    Read and write monthly branch targets (admin only).

    Usage:
        manager = TargetManager()
        manager.update_targets({'Maadi': 250000}, month='2024-03')
    """

    def __init__(self, queries: SalesQueries = None, branches: Sequence[str] = BRANCHES):
        self.queries = queries or SalesQueries()
        self.branches = tuple(branches)

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def _validate(self, branch_name: str, target_value) -> float:
        if branch_name not in self.branches:
            raise ValueError(f"Unknown branch: {branch_name}")
        try:
            value = float(target_value)
        except (TypeError, ValueError):
            raise ValueError(f"Target for {branch_name} must be a number, got {target_value!r}")
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"Target for {branch_name} must be a non-negative number")
        return value

    # =========================================================================
    # READ
    # =========================================================================

    def get_targets(self, month: str = None) -> pd.DataFrame:
        """Stored targets for the month (current month by default)."""
        return self.queries.load_targets(month or get_current_month())

    def get_target_table(self, month: str = None) -> pd.DataFrame:
        """
        One row per enumerated branch; target_value None when not set.

        Raises:
            DataStoreError: targets could not be read
        """
        month = month or get_current_month()
        stored_df = self.queries.load_targets(month)
        stored = {
            row.branch_name: float(row.target_value)
            for row in stored_df.itertuples(index=False)
            if row.target_value is not None and not pd.isna(row.target_value)
        }
        return pd.DataFrame([
            {'branch_name': b, 'month': month, 'target_value': stored.get(b)}
            for b in self.branches
        ])

    # =========================================================================
    # WRITE
    # =========================================================================

    def set_target(self, branch_name: str, target_value, month: str = None) -> bool:
        """Insert or update a single branch target."""
        return self.update_targets({branch_name: target_value}, month)

    def update_targets(self, targets: Mapping[str, float], month: str = None) -> bool:
        """
        Upsert several branch targets for one month.

        Entries whose value is None are skipped, so those branches keep
        falling back to their summed channel targets.

        Raises:
            ValueError: unknown branch or invalid value (nothing written)
            DataStoreError: store rejected the write
        """
        month = month or get_current_month()
        rows = [
            {
                'branch_name': branch,
                'month': month,
                'target_value': self._validate(branch, value),
            }
            for branch, value in targets.items()
            if value is not None
        ]
        if not rows:
            return True
        self.queries.upsert_targets(rows)
        logger.info(f"Targets updated for {month}: {', '.join(r['branch_name'] for r in rows)}")
        return True

    def initialize_default_targets(self, month: str = None) -> bool:
        """
        Make sure every branch has a target row for the month.

        Missing branches get a zero target; existing rows are left alone.
        """
        month = month or get_current_month()
        existing = self.get_targets(month)
        existing_branches = set(existing['branch_name']) if not existing.empty else set()

        missing = [b for b in self.branches if b not in existing_branches]
        if not missing:
            return True

        return self.update_targets({b: 0 for b in missing}, month)
