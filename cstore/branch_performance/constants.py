# cstore/branch_performance/constants.py
"""
Constants for Branch Performance Module

VERSION: 1.0.0
"""

# =============================================================================
# BRANCH / CHANNEL ENUMERATION
# Output order of every summary follows these tuples, not discovery order.
# =============================================================================
BRANCHES = (
    'Maadi',
    'Zamalek',
    'New Cairo',
    'Sheikh Zayed',
)

CHANNELS = (
    'Talabat',
    'Instashop',
    'Breadfast',
    'Website',
    'Call Center',
)

# =============================================================================
# RECORD SCHEMA (sales_data table → DataFrame columns)
# =============================================================================
RECORD_COLUMNS = [
    'date',
    'branch_name',
    'channel_name',
    'sales_value',
    'orders_count',
    'target_value',
]

NUMERIC_COLUMNS = ['sales_value', 'orders_count', 'target_value']

# Upload / export headers (same order as RECORD_COLUMNS)
UPLOAD_HEADERS = {
    'date': 'Date',
    'branch_name': 'Branch',
    'channel_name': 'Channel',
    'sales_value': 'Sales Value',
    'orders_count': 'Orders Count',
    'target_value': 'Target Value',
}

# =============================================================================
# DAYS OF WEEK (0 = Sunday)
# =============================================================================
WEEKDAY_LABELS = {
    0: 'Sunday',
    1: 'Monday',
    2: 'Tuesday',
    3: 'Wednesday',
    4: 'Thursday',
    5: 'Friday',
    6: 'Saturday',
}

# =============================================================================
# STORE SETTINGS
# =============================================================================
DEFAULT_UPLOAD_CHUNK_SIZE = 500
SALES_TABLE = 'sales_data'
TARGETS_TABLE = 'branch_targets'

# =============================================================================
# CACHE SETTINGS
# =============================================================================
CACHE_TTL_SECONDS = 300

# =============================================================================
# SESSION STATE KEYS (prefixed _bp_)
# =============================================================================
CACHE_KEY_UNIFIED = '_bp_unified_cache'
CACHE_KEY_PROCESSED = '_bp_processed_data'
CACHE_KEY_FILTERS = '_bp_applied_filters'
CACHE_KEY_TIMING = '_bp_timing_data'

# =============================================================================
# COLOR SCHEME
# =============================================================================
COLORS = {
    "primary": "#e31782",
    "secondary": "#a855f7",
    "neutral": "#d3d3d3",
    "sales": "#e31782",
    "target": "#1f1f1f",
    "orders": "#a855f7",
    "achievement_good": "#28a745",
    "achievement_bad": "#dc3545",
    "yoy_positive": "#28a745",
    "yoy_negative": "#dc3545",
    "text_dark": "#333333",
    "text_light": "#666666",
    "grid": "#e0e0e0",
}

CHANNEL_COLORS = ['#e31782', '#a855f7', '#1f77b4', '#ff7f0e', '#2ca02c']

# =============================================================================
# CHART DIMENSIONS
# =============================================================================
CHART_WIDTH = 'container'
CHART_HEIGHT = 350

# =============================================================================
# EXPORT SETTINGS
# =============================================================================
REPORT_TITLE = 'C Store Online Sales Report'
REPORT_FILE_PREFIX = 'CStore_Report'

EXCEL_STYLES = {
    "header_fill_color": "E31782",
    "header_font_color": "FFFFFF",
    "currency_format": '#,##0',
    "decimal_format": '#,##0.00',
    "percent_format": '0.0"%"',
    "date_format": 'YYYY-MM-DD',
}

PDF_STYLES = {
    "banner_color": (30, 30, 30),
    "kpi_header_color": (227, 23, 130),
    "branch_header_color": (168, 85, 247),
}

# =============================================================================
# DEBUG SETTINGS
# Use environment variables to enable: CS_DEBUG_TIMING=true
# =============================================================================
import os as _os
DEBUG_TIMING = _os.getenv('CS_DEBUG_TIMING', 'false').lower() == 'true'

# =============================================================================
# METRIC DISPLAY
# =============================================================================
DEFAULT_CURRENCY = 'EGP'
