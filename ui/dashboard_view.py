"""
dashboard_view.py
-------------------
Payout dashboard rendering.

Layout:
    Header + Refresh
    Natural-language search + active filter hint
    KPI row (4 cards)
    Filter row (country / platform / customer type / status)
    Volume by platform | Payout table

Pure presentation: every function receives already-derived values and
reports user input through the callbacks it is given.
"""

import html

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from core.models import ALL, Facets, FilterSpec, DerivedMetrics
from core.session_state import DashboardState, describe_filters


# Color palette, shared by all charts
PLATFORM_COLORS = {
    "NIUM":          "#3b82f6",
    "Plumter":       "#f59e0b",
    "Bank Transfer": "#22c55e",
}

STATUS_COLORS = {
    "Completed":   ("#dcfce7", "#166534"),
    "In Progress": ("#fef9c3", "#854d0e"),
}
FAILED_COLORS = ("#fee2e2", "#991b1b")

SEARCH_PLACEHOLDER = 'Try "Show me NIUM payouts to Hong Kong" or "China aggregator payouts"'


# =============================================================================
# HEADER & ERROR
# =============================================================================

def render_header(on_refresh):
    col_title, col_refresh = st.columns([5, 1])
    with col_title:
        st.markdown("""
            <div class="main-header">
                <h1>Payout Analytics</h1>
                <p>Monitor payouts, margins, and platform performance</p>
            </div>
        """, unsafe_allow_html=True)
    with col_refresh:
        st.button("🔄 Refresh", key="refresh_btn", on_click=on_refresh, use_container_width=True)


def error_panel_html(message: str | None) -> str:
    # Server text is untrusted
    return f"""
        <div class="alert-critical">
            <b>Error Loading Data</b><br>
            {html.escape(message or "Unknown error")}
        </div>
    """


def render_error_panel(message: str | None, on_retry):
    """Shown instead of the dashboard when the last fetch failed."""
    st.markdown(error_panel_html(message), unsafe_allow_html=True)
    st.button("Retry", key="retry_btn", on_click=on_retry)
    st.caption(
        "• Check your internet connection  \n"
        "• Verify SUPABASE_URL / SUPABASE_ANON_KEY in the environment  \n"
        "• Check data_source in config/config.yaml"
    )


# =============================================================================
# SEARCH
# =============================================================================

def active_filters_html(filters: FilterSpec) -> str:
    # Filter values come from the data and may contain markup
    return f'<div class="active-filters">Active filters: {html.escape(describe_filters(filters))}</div>'


def render_search(state: DashboardState, on_change, on_reset):
    col_search, col_reset = st.columns([5, 1])
    with col_search:
        st.text_input(
            "Search",
            placeholder=SEARCH_PLACEHOLDER,
            key="search_input",
            on_change=on_change,
            label_visibility="collapsed",
        )
    with col_reset:
        st.button("Clear filters", key="reset_btn", on_click=on_reset, use_container_width=True)

    if state.search_text:
        st.markdown(active_filters_html(state.filters), unsafe_allow_html=True)


# =============================================================================
# KPIs
# =============================================================================

def render_kpis(metrics: DerivedMetrics):
    """Renders the 4 KPI cards."""
    cols = st.columns(4, gap="small")

    kpis = [
        ("Total Volume", f"${metrics.total_volume:,.2f}", ""),
        ("Avg Margin", f"{metrics.average_margin_percent:.2f}%", "green"),
        ("Total Payouts", f"{metrics.record_count:,}", "purple"),
        ("Low Margin Alerts", f"{metrics.low_margin_count:,}", "red"),
    ]

    for col, (label, value, color_class) in zip(cols, kpis):
        with col:
            st.markdown(f"""
                <div class="kpi-card {color_class}">
                    <div class="kpi-label">{label}</div>
                    <div class="kpi-value">{value}</div>
                </div>
            """, unsafe_allow_html=True)


# =============================================================================
# FILTERS
# =============================================================================

def _options_with_current(options: list[str], current: str) -> list[str]:
    # The interpreter can select a value the loaded batch has no rows for
    return options if current in options else options + [current]


def _format_option(all_label: str):
    def fmt(value: str) -> str:
        if value == ALL:
            return all_label
        return value or "(none)"
    return fmt


def render_filters(facets: Facets, filters: FilterSpec, statuses: list[str], on_change):
    st.markdown('<div class="section-title" style="margin-top:24px;">Filters</div>', unsafe_allow_html=True)

    selectors = [
        ("country", "Country", facets.countries, "All Countries"),
        ("platform", "Platform", facets.platforms, "All Platforms"),
        ("customer_type", "Customer Type", facets.customer_types, "All Types"),
        ("status", "Status", [ALL] + statuses, "All Status"),
    ]

    cols = st.columns(4, gap="small")
    for col, (name, label, options, all_label) in zip(cols, selectors):
        current = getattr(filters, name)
        key = f"filter_{name}"
        # Keep the widget in step with filters set by search or reset
        st.session_state[key] = current
        with col:
            st.selectbox(
                label,
                options=_options_with_current(options, current),
                key=key,
                format_func=_format_option(all_label),
                on_change=on_change,
                args=(name,),
            )


# =============================================================================
# VOLUME BY PLATFORM
# =============================================================================

def render_volume_chart(table: pd.DataFrame):
    """Horizontal bar chart of payout volume by platform."""
    st.markdown('<div class="section-title" style="margin-top:24px;">Volume by Platform</div>', unsafe_allow_html=True)

    if table.empty:
        st.info("No payouts match the current filters.")
        return

    volume = table.groupby("platform")["usd_equivalent"].sum().sort_values()
    platforms = volume.index.tolist()

    fig = go.Figure(go.Bar(
        x=volume.values.tolist(),
        y=[p or "(none)" for p in platforms],
        orientation="h",
        marker_color=[PLATFORM_COLORS.get(p, "#9ca3af") for p in platforms],
        text=[f"${v:,.0f}" for v in volume.values],
        textposition="outside",
        textfont=dict(size=12, color="#111827"),
    ))

    fig.update_layout(
        height=320,
        margin=dict(l=110, r=60, t=10, b=20),
        plot_bgcolor="white",
        paper_bgcolor="#f9fafb",
        xaxis=dict(showgrid=True, gridcolor="#e5e7eb", title_text="", tickfont=dict(size=10)),
        yaxis=dict(showgrid=False, title_text="", tickfont=dict(size=12, color="#111827")),
        showlegend=False,
    )

    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


# =============================================================================
# PAYOUT TABLE
# =============================================================================

def _margin_style(row: pd.Series) -> list[str]:
    color = "#dc2626" if row["low_margin"] else "#16a34a"
    return [f"color: {color}; font-weight: 600" if c == "Margin %" else "" for c in row.index]


def _status_style(status: str) -> str:
    bg, fg = STATUS_COLORS.get(status, FAILED_COLORS)
    return f"background-color: {bg}; color: {fg}"


def render_payout_table(table: pd.DataFrame):
    st.markdown('<div class="section-title" style="margin-top:24px;">Payouts</div>', unsafe_allow_html=True)

    if table.empty:
        st.info("No payouts match the current filters.")
        return

    display = table.rename(columns={
        "date": "Date",
        "customer_name": "Customer",
        "country": "Country",
        "platform": "Platform",
        "usd_equivalent": "Amount (USD)",
        "margin_percent": "Margin %",
        "final_status": "Status",
    })
    visible = ["Date", "Customer", "Country", "Platform", "Amount (USD)", "Margin %", "Status"]

    styled = (
        display[visible + ["low_margin"]]
        .style
        .apply(_margin_style, axis=1)
        .map(_status_style, subset=["Status"])
        .format({"Amount (USD)": "${:,.2f}", "Margin %": "{:.2f}%"})
        .hide(["low_margin"], axis="columns")
        .hide(axis="index")
    )

    st.dataframe(styled, use_container_width=True, height=460)
