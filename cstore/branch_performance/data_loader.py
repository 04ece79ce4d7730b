# cstore/branch_performance/data_loader.py
"""
Unified Data Loader for Branch Performance

VERSION: 1.0.0
- "Load Once, Filter Many": one SQL query loads every sales record
- TTL-based cache in session_state
- Cache cleared after uploads so the next render refetches

Filtering and aggregation happen later in DataProcessor (pandas only).
"""

import logging
import time
from datetime import datetime
from typing import Dict, Optional

import pandas as pd
import streamlit as st

from .constants import CACHE_KEY_UNIFIED, CACHE_TTL_SECONDS, DEBUG_TIMING
from .exceptions import DataStoreError
from .filters import available_months, date_bounds
from .queries import SalesQueries

logger = logging.getLogger(__name__)


class UnifiedDataLoader:
    """
    Load and cache the raw sales records.

    Usage:
        loader = UnifiedDataLoader()
        unified_cache = loader.get_unified_data()
        filter_options = loader.extract_filter_options(unified_cache)
    """

    def __init__(self, queries: SalesQueries = None, ttl_seconds: int = CACHE_TTL_SECONDS):
        self.queries = queries or SalesQueries()
        self.ttl_seconds = ttl_seconds

    # =========================================================================
    # MAIN ENTRY POINT
    # =========================================================================

    def get_unified_data(self, force_reload: bool = False) -> Dict:
        """
        Get raw sales data (cached or fresh).

        Returns:
            Dict containing:
            - sales_raw_df: every stored record
            - _loaded_at: load timestamp
            - _error: message when the last fetch failed (cache not stored)
        """
        needs_reload, reload_reason = self._needs_reload()

        if not force_reload and not needs_reload:
            if DEBUG_TIMING:
                print("♻️ Using cached unified data (Branch Performance)")
            return st.session_state[CACHE_KEY_UNIFIED]

        if DEBUG_TIMING and reload_reason:
            print(f"🔄 Reload reason: {reload_reason}")

        return self._load_all_raw_data()

    def _needs_reload(self) -> tuple:
        cache = st.session_state.get(CACHE_KEY_UNIFIED)

        if cache is None:
            return True, "No cached data"

        if cache.get('sales_raw_df') is None:
            return True, "Missing sales_raw_df"

        loaded_at = cache.get('_loaded_at')
        if loaded_at:
            elapsed = (datetime.now() - loaded_at).total_seconds()
            if elapsed > self.ttl_seconds:
                return True, f"TTL expired ({elapsed:.0f}s)"

        return False, None

    def _empty_cache(self, error: str = None) -> Dict:
        return {
            'sales_raw_df': pd.DataFrame(),
            '_loaded_at': None,
            '_error': error,
        }

    # =========================================================================
    # DATA LOADING
    # =========================================================================

    def _load_all_raw_data(self) -> Dict:
        start = time.perf_counter()

        with st.spinner("🔄 Loading dashboard..."):
            try:
                sales_df = self.queries.load_sales_raw()
            except DataStoreError as e:
                return self._empty_cache(error=str(e))

        data = {
            'sales_raw_df': sales_df,
            '_loaded_at': datetime.now(),
            '_error': None,
        }
        st.session_state[CACHE_KEY_UNIFIED] = data

        if DEBUG_TIMING:
            print(f"✅ UNIFIED DATA LOADED (Branch Performance): {time.perf_counter() - start:.3f}s")
        logger.info(f"Unified data loaded: sales={len(sales_df)}")
        return data

    # =========================================================================
    # FILTER OPTIONS EXTRACTION
    # =========================================================================

    def extract_filter_options(self, unified_cache: Dict) -> Dict:
        sales_df = unified_cache.get('sales_raw_df', pd.DataFrame())
        return {
            'months': available_months(sales_df),
            'date_bounds': date_bounds(sales_df),
        }

    # =========================================================================
    # CACHE MANAGEMENT
    # =========================================================================

    def get_loaded_at(self) -> Optional[datetime]:
        cache = st.session_state.get(CACHE_KEY_UNIFIED)
        return cache.get('_loaded_at') if cache else None

    def clear_cache(self):
        """Clear the unified data cache."""
        if CACHE_KEY_UNIFIED in st.session_state:
            del st.session_state[CACHE_KEY_UNIFIED]
        logger.info("Branch performance unified data cache cleared")
