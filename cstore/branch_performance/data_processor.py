# cstore/branch_performance/data_processor.py
"""
Data Processor for Branch Performance

VERSION: 1.0.0
- "Filter Many" half of the loader pattern: all pandas, no SQL
  except the month's explicit targets (via TargetResolver)
- process_cached() memoizes per (loaded_at, FilterState) because the
  filter + aggregate pipeline is a pure function of its inputs
"""

import logging
import time
from typing import Dict, Optional, Sequence

import pandas as pd
import streamlit as st

from .constants import BRANCHES, CACHE_KEY_PROCESSED, CHANNELS, DEBUG_TIMING
from .filters import apply_filters
from .metrics import BranchPerformanceMetrics
from .models import FilterState
from .targets import TargetResolver

logger = logging.getLogger(__name__)


class DataProcessor:
    """
    Process cached raw data based on filter values.

    Usage:
        processor = DataProcessor(unified_cache)
        processed = processor.process(filters, TargetResolver())
    """

    def __init__(self, unified_cache: Dict,
                 branches: Sequence[str] = BRANCHES,
                 channels: Sequence[str] = CHANNELS):
        self.sales_raw = unified_cache.get('sales_raw_df')
        if self.sales_raw is None:
            self.sales_raw = pd.DataFrame()
        self.branches = tuple(branches)
        self.channels = tuple(channels)

    def process(self, filters: FilterState,
                target_resolver: Optional[TargetResolver] = None) -> Dict:
        """
        Filter, resolve targets and aggregate.

        Returns:
            Dict containing:
            - sales_df: filtered records
            - target_overrides: explicit targets (empty when no month selected)
            - summary: DashboardSummary, None when there are no records at all
            - has_raw_data: False when the store holds no records
            - monthly_df: month-by-month report over the raw records
        """
        start_time = time.perf_counter()
        filters = filters or FilterState()

        sales_df = apply_filters(self.sales_raw, filters)

        # Explicit targets only apply to a single selected month
        target_overrides = {}
        if filters.selected_month and target_resolver is not None:
            target_overrides = target_resolver.resolve_targets(filters.selected_month)

        metrics = BranchPerformanceMetrics(sales_df, self.branches, self.channels)
        summary = metrics.calculate_summary(target_overrides)

        raw_metrics = BranchPerformanceMetrics(self.sales_raw, self.branches, self.channels)

        result = {
            'sales_df': sales_df,
            'target_overrides': target_overrides,
            'summary': summary,
            'has_raw_data': not self.sales_raw.empty,
            'monthly_df': raw_metrics.calculate_monthly_summaries(),
            'daily_df': metrics.calculate_daily_trend(),
        }

        if DEBUG_TIMING:
            print(f"   📊 [process] {len(sales_df):,}/{len(self.sales_raw):,} rows "
                  f"in {time.perf_counter() - start_time:.3f}s")
        return result


def process_cached(unified_cache: Dict, filters: FilterState,
                   target_resolver: Optional[TargetResolver] = None) -> Dict:
    """Run DataProcessor.process once per (data load, filters) pair."""
    key = (unified_cache.get('_loaded_at'), filters)
    cached = st.session_state.get(CACHE_KEY_PROCESSED)
    if cached and cached.get('key') == key:
        return cached['result']

    result = DataProcessor(unified_cache).process(filters, target_resolver)
    st.session_state[CACHE_KEY_PROCESSED] = {'key': key, 'result': result}
    return result


def clear_processed_cache():
    """Drop memoized results (after target edits or uploads)."""
    if CACHE_KEY_PROCESSED in st.session_state:
        del st.session_state[CACHE_KEY_PROCESSED]
