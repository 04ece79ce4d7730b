# cstore/branch_performance/__init__.py
"""
Branch Performance Module
C Store online sales by branch and delivery channel.

VERSION: 1.0.0
- Same loader/processor split, caching and filter conventions as the
  other dashboards: load once, filter in pandas, aggregate per render
"""

# Core classes
from .data_loader import UnifiedDataLoader
from .data_processor import DataProcessor, process_cached, clear_processed_cache
from .access_control import AccessControl
from .queries import SalesQueries
from .targets import TargetResolver, TargetManager, changed_targets, get_current_month
from .validators import UploadValidator
from .export import BranchPerformanceExport, report_filename

# Engines
from .filters import apply_filters, available_months, date_bounds, validate_filters
from .metrics import (
    aggregate,
    BranchPerformanceMetrics,
    calculate_monthly_summaries,
    calculate_daily_trend,
    calculate_period_comparison,
)

# Models
from .models import (
    SalesRecord,
    BranchTarget,
    FilterState,
    ChannelMetrics,
    BranchMetrics,
    DashboardSummary,
    records_to_frame,
)
from .exceptions import DataStoreError, UploadValidationError

# Fragments
from .fragments import (
    BranchPerformanceFilters,
    render_kpi_header,
    branch_cards_fragment,
    branch_detail_fragment,
    monthly_reports_fragment,
    comparison_fragment,
    export_fragment,
    upload_fragment,
    target_settings_fragment,
    render_dashboard_tabs,
)

# Charts
from .charts import (
    empty_chart,
    build_sales_vs_target_chart,
    build_channel_mix_chart,
    build_branch_channel_chart,
    build_daily_trend_chart,
    build_monthly_trend_chart,
)

# Constants
from .constants import (
    BRANCHES,
    CHANNELS,
    RECORD_COLUMNS,
    WEEKDAY_LABELS,
    CACHE_TTL_SECONDS,
    CACHE_KEY_UNIFIED,
    CACHE_KEY_PROCESSED,
    CACHE_KEY_FILTERS,
    CACHE_KEY_TIMING,
    COLORS,
    DEBUG_TIMING,
)

__all__ = [
    # Core classes
    'UnifiedDataLoader',
    'DataProcessor',
    'process_cached',
    'clear_processed_cache',
    'AccessControl',
    'SalesQueries',
    'TargetResolver',
    'TargetManager',
    'get_current_month',
    'changed_targets',
    'UploadValidator',
    'BranchPerformanceExport',
    'report_filename',

    # Engines
    'apply_filters',
    'available_months',
    'date_bounds',
    'validate_filters',
    'aggregate',
    'BranchPerformanceMetrics',
    'calculate_monthly_summaries',
    'calculate_daily_trend',
    'calculate_period_comparison',

    # Models
    'SalesRecord',
    'BranchTarget',
    'FilterState',
    'ChannelMetrics',
    'BranchMetrics',
    'DashboardSummary',
    'records_to_frame',
    'DataStoreError',
    'UploadValidationError',

    # Fragments
    'BranchPerformanceFilters',
    'render_kpi_header',
    'branch_cards_fragment',
    'branch_detail_fragment',
    'monthly_reports_fragment',
    'comparison_fragment',
    'export_fragment',
    'upload_fragment',
    'target_settings_fragment',
    'render_dashboard_tabs',

    # Charts
    'empty_chart',
    'build_sales_vs_target_chart',
    'build_channel_mix_chart',
    'build_branch_channel_chart',
    'build_daily_trend_chart',
    'build_monthly_trend_chart',

    # Constants
    'BRANCHES',
    'CHANNELS',
    'RECORD_COLUMNS',
    'WEEKDAY_LABELS',
    'CACHE_TTL_SECONDS',
    'CACHE_KEY_UNIFIED',
    'CACHE_KEY_PROCESSED',
    'CACHE_KEY_FILTERS',
    'CACHE_KEY_TIMING',
    'COLORS',
    'DEBUG_TIMING',
]

__version__ = '1.0.0'
