# cstore/branch_performance/fragments.py
"""
Streamlit Fragments for Branch Performance.

VERSION: 1.0.0

Contains:
- BranchPerformanceFilters: sidebar filters (fragment, Apply → full rerun)
- render_kpi_header: overall KPI cards
- branch_cards_fragment / branch_detail_fragment: per-branch views
- monthly_reports_fragment: month cards, click selects the month filter
- comparison_fragment: current vs previous window over raw records
- upload_fragment: admin data replacement
- export_fragment: Excel / PDF downloads
- render_dashboard_tabs: Overview / Monthly Reports / Comparisons / Data tabs
- target_settings_fragment: admin monthly targets editor
"""

import logging
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd
import streamlit as st

from .access_control import AccessControl
from .charts import (
    build_branch_channel_chart,
    build_channel_mix_chart,
    build_daily_trend_chart,
    build_monthly_trend_chart,
    build_sales_vs_target_chart,
)
from .constants import (
    BRANCHES,
    CACHE_KEY_FILTERS,
    CHANNELS,
    DEFAULT_CURRENCY,
    DEFAULT_UPLOAD_CHUNK_SIZE,
    UPLOAD_HEADERS,
    WEEKDAY_LABELS,
)
from .exceptions import DataStoreError, UploadValidationError
from .export import BranchPerformanceExport, report_filename
from .filters import validate_filters
from .metrics import calculate_period_comparison
from .models import BranchMetrics, DashboardSummary, FilterState
from .queries import SalesQueries
from .targets import TargetManager, changed_targets, get_current_month
from .validators import UploadValidator

logger = logging.getLogger(__name__)

ALL_MONTHS = 'All months'


# =============================================================================
# FORMAT HELPERS
# =============================================================================

def format_currency(value: float, currency: str = DEFAULT_CURRENCY, decimals: int = 0) -> str:
    return f"{currency} {value:,.{decimals}f}"


def format_number(value: float) -> str:
    return f"{value:,.0f}"


def format_delta(value: Optional[float], suffix: str = "") -> Optional[str]:
    if value is None:
        return None
    return f"{value:+.1f}%{suffix}"


# =============================================================================
# SIDEBAR FILTERS
# =============================================================================

def _select_month(month: Optional[str]):
    """Callback: apply a month from the reports tab to the filters."""
    st.session_state['bp_month'] = month or ALL_MONTHS
    current = st.session_state.get(CACHE_KEY_FILTERS) or FilterState()
    st.session_state[CACHE_KEY_FILTERS] = current.with_month(month)


@st.fragment
def _sidebar_filter_fragment(months: List[str], bounds: Optional[Tuple[date, date]]):
    """
    Sidebar filters.

    Widget changes only rerun this fragment; "Apply Filters" stores the
    FilterState in session state and reruns the whole page.
    """
    st.header("🏪 Branch Performance")

    # =============================================================
    # PERIOD
    # =============================================================
    st.subheader("📅 Period")

    use_range = st.checkbox("Filter by date range", value=False, key='bp_use_range')
    date_from, date_to = None, None
    if use_range:
        latest = bounds[1] if bounds else date.today()
        earliest = bounds[0] if bounds else latest - timedelta(days=30)
        picked = st.date_input(
            "Date range",
            value=(max(earliest, latest - timedelta(days=6)), latest),
            key='bp_date_range',
        )
        if isinstance(picked, (tuple, list)):
            date_from = picked[0] if len(picked) > 0 else None
            date_to = picked[1] if len(picked) > 1 else None
        else:
            date_from = picked

    month = st.selectbox(
        "Month",
        options=[ALL_MONTHS] + list(months),
        format_func=lambda m: m if m == ALL_MONTHS else pd.Timestamp(f"{m}-01").strftime('%B %Y'),
        key='bp_month',
        help="Explicit branch targets apply when a single month is selected",
    )

    # =============================================================
    # BRANCH / CHANNEL / DAY
    # =============================================================
    st.subheader("🏪 Scope")

    branches = st.multiselect("Branches", options=list(BRANCHES), default=[],
                              placeholder="All branches", key='bp_branches')
    channels = st.multiselect("Channels", options=list(CHANNELS), default=[],
                              placeholder="All channels", key='bp_channels')
    days = st.multiselect("Days of week", options=list(WEEKDAY_LABELS), default=[],
                          format_func=WEEKDAY_LABELS.get,
                          placeholder="All days", key='bp_days')

    submitted = st.button("🔄 Apply Filters", type="primary",
                          use_container_width=True, key='bp_apply_btn')

    filters = FilterState(
        date_from=date_from,
        date_to=date_to,
        selected_month=None if month == ALL_MONTHS else month,
        branches=tuple(branches),
        channels=tuple(channels),
        days_of_week=tuple(days),
    )

    # Auto-apply on first load
    if CACHE_KEY_FILTERS not in st.session_state:
        st.session_state[CACHE_KEY_FILTERS] = filters

    if submitted:
        is_valid, error = validate_filters(filters)
        if not is_valid:
            st.error(error)
            return
        st.session_state[CACHE_KEY_FILTERS] = filters
        st.rerun(scope="app")


class BranchPerformanceFilters:
    """Render and manage sidebar filters."""

    def render_sidebar_filters(self, months: List[str],
                               bounds: Optional[Tuple[date, date]]) -> Optional[FilterState]:
        with st.sidebar:
            _sidebar_filter_fragment(months, bounds)
        return st.session_state.get(CACHE_KEY_FILTERS)

    @staticmethod
    def reset_filters():
        for key in ['bp_use_range', 'bp_date_range', 'bp_month', 'bp_branches', 'bp_channels', 'bp_days']:
            st.session_state.pop(key, None)
        st.session_state[CACHE_KEY_FILTERS] = FilterState()


# =============================================================================
# KPI HEADER
# =============================================================================

def render_kpi_header(summary: Optional[DashboardSummary], currency: str = DEFAULT_CURRENCY):
    """Overall KPI cards."""
    if summary is None:
        return

    with st.container(border=True):
        st.markdown("**💰 PERFORMANCE**")
        col1, col2, col3, col4, col5 = st.columns(5)

        with col1:
            st.metric("Total Sales", format_currency(summary.total_sales, currency))
        with col2:
            st.metric("Total Orders", format_number(summary.total_orders))
        with col3:
            st.metric("Total Target", format_currency(summary.total_target, currency),
                      help="Explicit monthly targets when a month is selected, "
                           "otherwise the sum of record targets")
        with col4:
            st.metric("Achievement", f"{summary.overall_achievement:.1f}%",
                      help="Sales / Target × 100 (0 when there is no target)")
        with col5:
            st.metric("AOV", format_currency(summary.overall_aov, currency, 2),
                      help="Average order value = Sales / Orders")


# =============================================================================
# BRANCH CARDS
# =============================================================================

def _channel_display_df(branch: BranchMetrics) -> pd.DataFrame:
    df = pd.DataFrame([c.to_dict() for c in branch.channels])
    return df.rename(columns={
        'channel_name': 'Channel',
        'sales': 'Sales',
        'orders': 'Orders',
        'target': 'Target',
        'achievement_percentage': 'Achievement %',
        'aov': 'AOV',
    })


_CHANNEL_COLUMN_CONFIG = {
    'Sales': st.column_config.NumberColumn(format="%.0f"),
    'Orders': st.column_config.NumberColumn(format="%.0f"),
    'Target': st.column_config.NumberColumn(format="%.0f"),
    'Achievement %': st.column_config.NumberColumn(format="%.1f%%"),
    'AOV': st.column_config.NumberColumn(format="%.2f"),
}


@st.fragment
def branch_cards_fragment(summary: Optional[DashboardSummary], currency: str = DEFAULT_CURRENCY):
    """Two-column grid of branch cards with expandable channel breakdown."""
    if summary is None:
        st.info("No data for the selected filters")
        return

    columns = st.columns(2)
    for idx, branch in enumerate(summary.branch_metrics):
        with columns[idx % 2]:
            with st.container(border=True):
                title = f"**{branch.branch_name}**"
                if branch.has_target_override:
                    title += " 🎯"
                st.markdown(title)

                c1, c2, c3 = st.columns(3)
                c1.metric("Sales", format_currency(branch.total_sales, currency))
                c2.metric("Orders", format_number(branch.total_orders))
                c3.metric("AOV", format_currency(branch.aov, currency, 2))

                st.progress(
                    min(branch.achievement_percentage, 100) / 100,
                    text=f"{branch.achievement_percentage:.1f}% of "
                         f"{format_currency(branch.total_target, currency)}",
                )

                with st.expander("Channels"):
                    st.dataframe(
                        _channel_display_df(branch),
                        hide_index=True,
                        use_container_width=True,
                        column_config=_CHANNEL_COLUMN_CONFIG,
                    )


@st.fragment
def branch_detail_fragment(summary: Optional[DashboardSummary], currency: str = DEFAULT_CURRENCY):
    """Detailed analytics for one branch."""
    if summary is None:
        return

    branch_name = st.selectbox(
        "Branch",
        options=[b.branch_name for b in summary.branch_metrics],
        key='bp_detail_branch',
    )
    branch = summary.get_branch(branch_name)
    if branch is None:
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Sales", format_currency(branch.total_sales, currency), help="Branch total")
    col2.metric("Total Orders", format_number(branch.total_orders), help="All channels")
    col3.metric("Monthly Target", format_currency(branch.total_target, currency),
                help="Explicit target" if branch.has_target_override else "Sum of channel targets")
    col4.metric("Achievement", f"{branch.achievement_percentage:.1f}%")

    st.altair_chart(build_branch_channel_chart(branch), use_container_width=True)
    st.dataframe(
        _channel_display_df(branch),
        hide_index=True,
        use_container_width=True,
        column_config=_CHANNEL_COLUMN_CONFIG,
    )


# =============================================================================
# MONTHLY REPORTS
# =============================================================================

@st.fragment
def monthly_reports_fragment(monthly_df: pd.DataFrame, currency: str = DEFAULT_CURRENCY):
    """Month cards (newest first); "View Details" applies the month filter."""
    if monthly_df is None or monthly_df.empty:
        st.info("📅 No data available to generate reports.")
        return

    columns = st.columns(3)
    for idx, row in enumerate(monthly_df.itertuples(index=False)):
        with columns[idx % 3]:
            with st.container(border=True):
                st.markdown(f"**{row.label}**")
                c1, c2 = st.columns(2)
                c1.metric("Sales", format_currency(row.sales, currency))
                c2.metric("Orders", format_number(row.orders))
                st.progress(min(row.achievement, 100) / 100,
                            text=f"Achievement {row.achievement:.1f}%")
                st.button(
                    "View Details ›",
                    key=f"bp_month_btn_{row.month}",
                    on_click=_select_month,
                    args=(row.month,),
                    use_container_width=True,
                )


# =============================================================================
# COMPARISONS
# =============================================================================

COMPARISON_MODES = ['Day vs previous day', 'Last 7 days vs previous 7', 'Month to date vs last month', 'Custom']


def comparison_windows(mode: str, anchor: date) -> Tuple[Tuple[date, date], Optional[Tuple[date, date]]]:
    """(current window, previous window or None for the default previous period)."""
    if mode == 'Last 7 days vs previous 7':
        return (anchor - timedelta(days=6), anchor), None
    if mode == 'Month to date vs last month':
        first = anchor.replace(day=1)
        prev_last = first - timedelta(days=1)
        prev_first = prev_last.replace(day=1)
        prev_end = min(prev_first + timedelta(days=anchor.day - 1), prev_last)
        return (first, anchor), (prev_first, prev_end)
    return (anchor, anchor), None


@st.fragment
def comparison_fragment(raw_df: pd.DataFrame, bounds: Optional[Tuple[date, date]],
                        currency: str = DEFAULT_CURRENCY):
    """Compare two periods over the unfiltered records."""
    if raw_df is None or raw_df.empty:
        st.info("No data to compare")
        return

    col_mode, col_anchor = st.columns([2, 1])
    with col_mode:
        mode = st.radio("Compare", COMPARISON_MODES, horizontal=True, key='bp_cmp_mode')
    with col_anchor:
        anchor = st.date_input("As of", value=bounds[1] if bounds else date.today(), key='bp_cmp_anchor')

    if mode == 'Custom':
        c1, c2 = st.columns(2)
        with c1:
            current = st.date_input("Current period", value=(anchor - timedelta(days=6), anchor), key='bp_cmp_cur')
        with c2:
            previous = st.date_input("Previous period",
                                     value=(anchor - timedelta(days=13), anchor - timedelta(days=7)),
                                     key='bp_cmp_prev')
        if not (isinstance(current, (tuple, list)) and len(current) == 2
                and isinstance(previous, (tuple, list)) and len(previous) == 2):
            st.info("Select a start and end date for both periods")
            return
        current_window, previous_window = tuple(current), tuple(previous)
    else:
        current_window, previous_window = comparison_windows(mode, anchor)

    prev_start, prev_end = previous_window if previous_window else (None, None)
    comparison = calculate_period_comparison(raw_df, current_window[0], current_window[1], prev_start, prev_end)

    cs, ce = comparison['current_period']
    ps, pe = comparison['previous_period']
    st.caption(f"📅 {cs} → {ce} vs {ps} → {pe}")

    col1, col2, col3 = st.columns(3)
    col1.metric("Sales", format_currency(comparison['curr_sales'], currency),
                delta=format_delta(comparison['sales_delta_pct']))
    col2.metric("Orders", format_number(comparison['curr_orders']),
                delta=format_delta(comparison['orders_delta_pct']))
    col3.metric("AOV", format_currency(comparison['curr_aov'], currency, 2),
                delta=format_delta(comparison['aov_delta_pct']))

    st.dataframe(
        comparison['branch_comparison'].rename(columns={
            'branch_name': 'Branch',
            'current_sales': 'Sales (current)',
            'previous_sales': 'Sales (previous)',
            'sales_delta_pct': 'Sales Δ %',
            'current_orders': 'Orders (current)',
            'previous_orders': 'Orders (previous)',
            'orders_delta_pct': 'Orders Δ %',
        }),
        hide_index=True,
        use_container_width=True,
        column_config={
            'Sales (current)': st.column_config.NumberColumn(format="%.0f"),
            'Sales (previous)': st.column_config.NumberColumn(format="%.0f"),
            'Sales Δ %': st.column_config.NumberColumn(format="%+.1f%%"),
            'Orders Δ %': st.column_config.NumberColumn(format="%+.1f%%"),
        },
    )


# =============================================================================
# EXPORT
# =============================================================================

def export_fragment(summary: Optional[DashboardSummary], sales_df: pd.DataFrame,
                    filters: Optional[FilterState], access: AccessControl,
                    currency: str = DEFAULT_CURRENCY):
    """Excel / PDF download buttons."""
    if summary is None or not access.can_export():
        return

    exporter = BranchPerformanceExport(currency=currency)
    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            "📥 Export Excel",
            data=exporter.create_excel_report(summary, sales_df, filters),
            file_name=report_filename('xlsx'),
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            use_container_width=True,
            key='bp_export_xlsx',
        )
    with col2:
        st.download_button(
            "📄 Export PDF",
            data=exporter.create_pdf_report(summary, filters),
            file_name=report_filename('pdf'),
            mime="application/pdf",
            use_container_width=True,
            key='bp_export_pdf',
        )


# =============================================================================
# DASHBOARD TABS
# =============================================================================

def render_dashboard_tabs(data: Dict, raw_df: pd.DataFrame,
                          bounds: Optional[Tuple[date, date]],
                          access: AccessControl,
                          currency: str = DEFAULT_CURRENCY,
                          on_uploaded: Callable[[], None] = None,
                          chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE):
    """
    Overview | Monthly Reports | Comparisons | Data.

    Only the Overview depends on the filtered summary; the other tabs
    work on every stored record and render even when nothing matches.
    """
    summary = data['summary']
    tab1, tab2, tab3, tab4 = st.tabs([
        "📊 Overview", "📅 Monthly Reports", "📈 Comparisons", "📤 Data",
    ])

    with tab1:
        if summary is None:
            st.warning("No records match the selected filters. Try adjusting your selection.")
            if st.button("Reset filters", key='bp_reset_btn'):
                BranchPerformanceFilters.reset_filters()
                st.rerun()
        else:
            col1, col2 = st.columns(2)
            with col1:
                st.altair_chart(build_sales_vs_target_chart(summary), use_container_width=True)
            with col2:
                st.altair_chart(build_channel_mix_chart(summary), use_container_width=True)
            st.altair_chart(build_daily_trend_chart(data['daily_df']), use_container_width=True)

            st.subheader("🏪 Branches")
            branch_cards_fragment(summary, currency)

            st.subheader("🔍 Branch Detail")
            branch_detail_fragment(summary, currency)

    with tab2:
        st.altair_chart(build_monthly_trend_chart(data['monthly_df']), use_container_width=True)
        monthly_reports_fragment(data['monthly_df'], currency)

    with tab3:
        comparison_fragment(raw_df, bounds, currency)

    with tab4:
        upload_fragment(access, on_uploaded=on_uploaded, chunk_size=chunk_size)


# =============================================================================
# UPLOAD (admin)
# =============================================================================

@st.fragment
def upload_fragment(access: AccessControl, on_uploaded: Callable[[], None] = None,
                    queries: SalesQueries = None,
                    chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE):
    """Replace all sales data with an uploaded CSV/Excel file."""
    if not access.can_upload():
        st.caption("👁️ Viewer access: data management is limited to administrators.")
        return

    st.caption("Columns: " + ", ".join(UPLOAD_HEADERS.values()))
    uploaded = st.file_uploader("Upload sales file", type=['xlsx', 'csv'], key='bp_upload_file')
    if uploaded is None:
        return

    try:
        records_df, issues = UploadValidator().validate_file(uploaded)
    except UploadValidationError as e:
        st.error(f"❌ {e}")
        for issue in e.issues[:10]:
            st.caption(issue)
        return

    st.success(f"✅ {len(records_df):,} valid row(s) ready to upload")
    if issues:
        with st.expander(f"⚠️ {len(issues)} row issue(s) skipped"):
            for issue in issues:
                st.caption(issue)
    st.dataframe(records_df.head(20), hide_index=True, use_container_width=True)

    st.warning("Uploading replaces ALL existing sales data.")
    if st.button("⬆️ Replace Sales Data", type="primary", key='bp_upload_btn'):
        try:
            with st.spinner("Uploading..."):
                count = (queries or SalesQueries()).replace_sales_data(records_df, chunk_size)
        except DataStoreError as e:
            st.error(f"Upload Error: {e}")
            return

        st.success(f"Uploaded {count:,} records successfully")
        if on_uploaded:
            on_uploaded()
        st.rerun(scope="app")


# =============================================================================
# TARGET SETTINGS (admin)
# =============================================================================

def _month_options(count: int = 12, today: date = None) -> List[str]:
    """Current month, the next one and the previous count-2 months."""
    today = today or date.today()
    first = today.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    months = [get_current_month(next_month)]
    cursor = first
    for _ in range(count - 1):
        months.append(get_current_month(cursor))
        cursor = (cursor - timedelta(days=1)).replace(day=1)
    return months


@st.fragment
def target_settings_fragment(access: AccessControl, manager: TargetManager = None,
                             currency: str = DEFAULT_CURRENCY,
                             on_saved: Callable[[], None] = None):
    """Edit explicit monthly branch targets."""
    if not access.can_edit_targets():
        st.error(access.get_denied_message("edit branch targets"))
        return

    manager = manager or TargetManager()
    options = _month_options()
    month = st.selectbox("Month", options=options, index=1, key='bp_target_month',
                         format_func=lambda m: pd.Timestamp(f"{m}-01").strftime('%B %Y'))

    try:
        table = manager.get_target_table(month)
    except DataStoreError as e:
        st.error(str(e))
        return

    st.caption("Leave a branch blank to use the sum of its channel targets.")
    with st.form(f"bp_targets_form_{month}"):
        values: Dict[str, Optional[float]] = {}
        for row in table.itertuples(index=False):
            current = row.target_value
            values[row.branch_name] = st.number_input(
                f"{row.branch_name} ({currency})",
                min_value=0.0,
                value=float(current) if current is not None and not pd.isna(current) else None,
                step=1000.0,
                format="%.0f",
                placeholder="Not set",
                key=f"bp_target_{month}_{row.branch_name}",
            )
        submitted = st.form_submit_button("💾 Save Targets", type="primary")

    changed = changed_targets(table, values) if submitted else {}
    if submitted and not changed:
        st.info("No target changes to save")
    elif changed:
        try:
            manager.update_targets(changed, month)
        except (ValueError, DataStoreError) as e:
            st.error(f"Failed to update targets: {e}")
            return
        st.success(f"Targets updated: {', '.join(changed)}")
        if on_saved:
            on_saved()

    if st.button("Initialize missing targets with 0", key=f'bp_target_init_{month}'):
        try:
            manager.initialize_default_targets(month)
        except DataStoreError as e:
            st.error(str(e))
            return
        if on_saved:
            on_saved()
        st.rerun()
