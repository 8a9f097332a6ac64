"""
app.py
-------
Streamlit application entry point for the Payout Analytics dashboard.

Run from the project root:
    streamlit run ui/app.py

Architecture:
    - One DashboardState lives in st.session_state["dashboard"]. Widgets never
      mutate it; their callbacks replace it with the result of a transition
      (load_started, load_succeeded, select_filter, edit_search, ...).
    - Filtered rows, metrics and facets are derived from the state on every
      rerun and never cached separately.
    - Rendering lives in ui/dashboard_view.py.
"""

import sys
import os
import logging
import streamlit as st

# Ensure project root is on path regardless of where streamlit is invoked
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from pipeline import PayoutReportPipeline
from config.config_loader import get_status_options
from core.session_state import (
    ERROR, LOADING, derive_view, edit_search, initial_state, load_failed,
    load_started, load_succeeded, reset_filters, select_filter,
)
from sources.payout_source import FetchError
from ui.dashboard_view import (
    render_error_panel, render_filters, render_header, render_kpis,
    render_payout_table, render_search, render_volume_chart,
)

logger = logging.getLogger(__name__)


# =============================================================================
# PAGE CONFIG
# =============================================================================

st.set_page_config(
    page_title="Payout Analytics",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="collapsed",
)


# =============================================================================
# CUSTOM CSS
# =============================================================================

st.markdown("""
<style>
    .stApp {
        font-family: 'Segoe UI', system-ui, sans-serif;
        background-color: #f9fafb;
    }

    .main-header h1 {
        margin: 0;
        font-size: 28px;
        font-weight: 700;
        color: #111827;
    }
    .main-header p {
        margin: 4px 0 0 0;
        color: #4b5563;
        font-size: 14px;
    }

    .kpi-card {
        background: white;
        border-radius: 10px;
        padding: 18px 20px;
        box-shadow: 0 1px 4px rgba(0,0,0,0.08);
        border-left: 4px solid #3b82f6;
    }
    .kpi-card.green  { border-left-color: #22c55e; }
    .kpi-card.purple { border-left-color: #a855f7; }
    .kpi-card.red    { border-left-color: #ef4444; }
    .kpi-value {
        font-size: 26px;
        font-weight: 700;
        color: #111827;
        line-height: 1.2;
    }
    .kpi-label {
        font-size: 12px;
        color: #6b7280;
        text-transform: uppercase;
        letter-spacing: 0.5px;
        margin-bottom: 6px;
    }

    .section-title {
        font-size: 14px;
        font-weight: 600;
        color: #111827;
        text-transform: uppercase;
        letter-spacing: 0.8px;
        padding-bottom: 8px;
        border-bottom: 2px solid #e5e7eb;
        margin-bottom: 12px;
    }

    .active-filters {
        font-size: 13px;
        color: #4b5563;
        margin-top: -6px;
    }

    .alert-critical {
        background: #fdecea;
        border-left: 4px solid #ef4444;
        padding: 16px 20px;
        border-radius: 0 8px 8px 0;
        margin-bottom: 12px;
    }
</style>
""", unsafe_allow_html=True)


# =============================================================================
# STATE & LOADING
# =============================================================================

@st.cache_resource
def get_pipeline() -> PayoutReportPipeline:
    return PayoutReportPipeline()


def _set_state(state):
    st.session_state["dashboard"] = state


def fetch_payouts():
    """Issues one fetch and records the outcome. Used on first load, Refresh and Retry."""
    state = load_started(st.session_state.get("dashboard", initial_state()))
    _set_state(state)
    try:
        with st.spinner("Loading payouts data..."):
            records = get_pipeline().load()
    except FetchError as e:
        logger.error(f"Error fetching payouts: {e}")
        _set_state(load_failed(state, e))
        return
    _set_state(load_succeeded(state, records))


def initialize_data():
    """Fetches once per session. Later reruns reuse the loaded batch."""
    if "dashboard" not in st.session_state or st.session_state["dashboard"].status == LOADING:
        fetch_payouts()


# =============================================================================
# WIDGET CALLBACKS
# =============================================================================

def on_search_change():
    text = st.session_state.get("search_input", "")
    _set_state(edit_search(st.session_state["dashboard"], text, get_pipeline().interpreter))


def on_filter_change(name: str):
    value = st.session_state[f"filter_{name}"]
    _set_state(select_filter(st.session_state["dashboard"], name, value))


def on_reset():
    _set_state(reset_filters(st.session_state["dashboard"]))
    st.session_state["search_input"] = ""


# =============================================================================
# MAIN APP
# =============================================================================

def main():
    initialize_data()
    state = st.session_state["dashboard"]

    render_header(on_refresh=fetch_payouts)

    if state.status == ERROR:
        render_error_panel(state.error, on_retry=fetch_payouts)
        return

    view = derive_view(state, get_pipeline().aggregator)
    table = get_pipeline().build_table(view.filtered)

    render_search(state, on_change=on_search_change, on_reset=on_reset)
    render_kpis(view.metrics)
    render_filters(view.facets, state.filters, get_status_options(), on_change=on_filter_change)

    col_chart, col_table = st.columns([1, 2], gap="medium")
    with col_chart:
        render_volume_chart(table)
    with col_table:
        render_payout_table(table)


if __name__ == "__main__":
    main()
