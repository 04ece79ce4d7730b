# cstore/branch_performance/models.py
"""
Data containers for Branch Performance

Records travel between modules as a pandas DataFrame (RECORD_COLUMNS);
these dataclasses describe a single row, the filter state and the
derived metrics.

VERSION: 1.0.0
"""

from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .constants import RECORD_COLUMNS, WEEKDAY_LABELS


# =============================================================================
# STORED ROWS
# =============================================================================

@dataclass(frozen=True)
class SalesRecord:
    """One day of sales at a branch on a channel."""
    date: str
    branch_name: str
    channel_name: str
    sales_value: float = 0
    orders_count: int = 0
    target_value: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BranchTarget:
    """Explicit monthly target for a branch, unique per (branch_name, month)."""
    branch_name: str
    month: str
    target_value: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def records_to_frame(records: Iterable) -> pd.DataFrame:
    """
    Build a records DataFrame from SalesRecord objects or plain dicts.

    Missing columns are added as None so downstream code can rely on
    RECORD_COLUMNS being present. Extra keys (id, created_at...) are kept.
    """
    if isinstance(records, pd.DataFrame):
        df = records
    else:
        rows = [r.to_dict() if isinstance(r, SalesRecord) else dict(r) for r in records]
        df = pd.DataFrame(rows)

    if df.empty and not len(df.columns):
        return pd.DataFrame(columns=RECORD_COLUMNS)

    missing = [c for c in RECORD_COLUMNS if c not in df.columns]
    if missing:
        df = df.copy()
        for col in missing:
            df[col] = None
    return df


# =============================================================================
# FILTER STATE
# =============================================================================

@dataclass(frozen=True)
class FilterState:
    """
    Dashboard filters. Every field is optional; present fields are ANDed.

    Frozen and built from tuples so it can be used as a memoization key.
    """
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    selected_month: Optional[str] = None
    branches: Tuple[str, ...] = ()
    channels: Tuple[str, ...] = ()
    days_of_week: Tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, values: Optional[Dict]) -> 'FilterState':
        """Build from a sidebar filter dict (lists are frozen to tuples)."""
        values = values or {}
        return cls(
            date_from=values.get('date_from'),
            date_to=values.get('date_to'),
            selected_month=values.get('selected_month') or None,
            branches=tuple(values.get('branches') or ()),
            channels=tuple(values.get('channels') or ()),
            days_of_week=tuple(int(d) for d in (values.get('days_of_week') or ())),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date_from': self.date_from,
            'date_to': self.date_to,
            'selected_month': self.selected_month,
            'branches': list(self.branches),
            'channels': list(self.channels),
            'days_of_week': list(self.days_of_week),
        }

    def with_month(self, month: Optional[str]) -> 'FilterState':
        return FilterState(
            date_from=self.date_from,
            date_to=self.date_to,
            selected_month=month,
            branches=self.branches,
            channels=self.channels,
            days_of_week=self.days_of_week,
        )

    def is_empty(self) -> bool:
        return not any([
            self.date_from, self.selected_month,
            self.branches, self.channels, self.days_of_week,
        ])

    def summary_label(self) -> str:
        """Human-readable filter summary."""
        parts = []
        if self.date_from:
            end = self.date_to or self.date_from
            if end == self.date_from:
                parts.append(self.date_from.strftime('%d %b %Y'))
            else:
                parts.append(f"{self.date_from.strftime('%d %b %Y')} → {end.strftime('%d %b %Y')}")
        if self.selected_month:
            parts.append(self.selected_month)
        parts.append(f"{len(self.branches)} branch(es)" if self.branches else "All branches")
        parts.append(f"{len(self.channels)} channel(s)" if self.channels else "All channels")
        if self.days_of_week:
            parts.append(", ".join(WEEKDAY_LABELS.get(d, str(d))[:3] for d in sorted(self.days_of_week)))
        return " | ".join(parts)


# =============================================================================
# DERIVED METRICS
# =============================================================================

@dataclass(frozen=True)
class ChannelMetrics:
    channel_name: str
    sales: float
    orders: float
    target: float
    achievement_percentage: float
    aov: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BranchMetrics:
    branch_name: str
    total_sales: float
    total_orders: float
    total_target: float
    achievement_percentage: float
    aov: float
    channels: Tuple[ChannelMetrics, ...] = field(default_factory=tuple)
    has_target_override: bool = False

    def get_channel(self, channel_name: str) -> Optional[ChannelMetrics]:
        for channel in self.channels:
            if channel.channel_name == channel_name:
                return channel
        return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DashboardSummary:
    total_sales: float
    total_orders: float
    total_target: float
    overall_achievement: float
    overall_aov: float
    branch_metrics: Tuple[BranchMetrics, ...] = field(default_factory=tuple)

    def get_branch(self, branch_name: str) -> Optional[BranchMetrics]:
        for branch in self.branch_metrics:
            if branch.branch_name == branch_name:
                return branch
        return None

    def branch_table(self) -> pd.DataFrame:
        """One row per branch (enumeration order) for display/export."""
        return pd.DataFrame([
            {
                'branch_name': b.branch_name,
                'total_sales': b.total_sales,
                'total_orders': b.total_orders,
                'total_target': b.total_target,
                'achievement_percentage': b.achievement_percentage,
                'aov': b.aov,
            }
            for b in self.branch_metrics
        ])

    def channel_table(self) -> pd.DataFrame:
        """One row per (branch, channel) pair, enumeration order."""
        rows: List[Dict[str, Any]] = []
        for b in self.branch_metrics:
            for c in b.channels:
                row = c.to_dict()
                row['branch_name'] = b.branch_name
                rows.append(row)
        return pd.DataFrame(rows)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
