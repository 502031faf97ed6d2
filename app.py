"""
Program Explorer - Linked Views Dashboard

An interactive visualization tool for simulated conservation programs:
- Scatter plot of two outcome variables (cost, runoff, infiltration, irrigation)
- Simulation table with recruitment rate and outcome totals
- Map of the field parcels enrolled by each program

All three views share one selection: selecting points, rows or parcels in
any view highlights the same programs in the others. Recruitment buckets in
the sidebar offer an alternate selection source.

Built with Streamlit + Plotly + Pydeck.
Run with: streamlit run app.py
"""
import logging
import sys
from pathlib import Path

import streamlit as st

# Add project root to path for imports
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from utils.settings import get_setting, get_granularity, get_demo_simulations, get_log_level
from utils.data_loader import load_catalog
from utils.selection import SelectionStore
from utils.coordinator import Coordinator
from components.scatter_view import ScatterPlotView
from components.table_view import SimulationTableView
from components.map_view import FieldMapView
from components.sidebar_filters import render_sidebar_filters
from components.stats_panel import (
    calculate_selection_stats,
    render_stats_panel,
    render_bucket_breakdown,
    render_outcome_means,
    render_view_failures,
)
from components.export_panel import render_export_panel

# Configure logging
logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

SESSION_KEY = 'linked_views'

# Page configuration
st.set_page_config(
    page_title="Program Explorer",
    page_icon="🌾",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS for a compact, view-first layout
st.markdown("""
<style>
    .block-container {
        padding-top: 0.5rem !important;
        padding-bottom: 0.5rem !important;
        padding-left: 1rem !important;
        padding-right: 1rem !important;
        max-width: 100% !important;
    }

    /* Hide Streamlit branding */
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}

    /* Style horizontal radio as tabs */
    div[data-testid="stRadio"] label {
        padding: 0.4rem 0.9rem !important;
        font-size: 0.85rem;
    }

    /* Dashboard header styling */
    .dashboard-header {
        display: flex;
        justify-content: space-between;
        align-items: center;
        padding: 0.5rem 0;
        border-bottom: 1px solid #eee;
        margin-bottom: 0.5rem;
    }
    .dashboard-header h4 {
        margin: 0 !important;
        padding: 0 !important;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def load_data():
    """
    Load the catalog once per process.

    The catalog is immutable and shared read-only by every session, so it is
    cached as a resource rather than copied per session.
    """
    try:
        return load_catalog(get_setting('data_dir'), demo_simulations=get_demo_simulations())
    except Exception as e:
        logger.exception("Failed to load program data")
        st.error(f"Failed to load data: {e}")
        st.stop()


def get_linked_views(catalog) -> dict:
    """
    Build (once per session) the selection store, coordinator and views.

    Selection state lives for the session only; a new catalog (after a data
    refresh) starts a fresh session state.
    """
    session = st.session_state.get(SESSION_KEY)
    if session is not None and session['catalog'] is catalog:
        return session

    if session is not None:
        session['coordinator'].close()

    store = SelectionStore()
    granularity = get_granularity()
    coordinator = Coordinator(store, catalog, granularity=granularity)
    views = {
        'scatter': ScatterPlotView(catalog),
        'table': SimulationTableView(catalog),
        'map': FieldMapView(catalog, granularity=granularity),
    }
    for view in views.values():
        coordinator.register(view)

    logger.info(f"New session: {len(views)} linked views, granularity={coordinator.granularity}")
    session = {'catalog': catalog, 'store': store, 'coordinator': coordinator, 'views': views}
    st.session_state[SESSION_KEY] = session
    return session


def main():
    """Main application entry point."""

    with st.spinner("Loading program data..."):
        catalog = load_data()

    session = get_linked_views(catalog)
    coordinator = session['coordinator']
    views = session['views']

    # Sidebar controls (bucket radio and clear button act through the coordinator)
    settings = render_sidebar_filters(catalog, coordinator)

    # Subtle data refresh at bottom of sidebar
    with st.sidebar:
        st.divider()
        col1, col2 = st.columns([1, 1])
        with col1:
            st.caption(f"Granularity: {coordinator.granularity}")
        with col2:
            if st.button("↻ Refresh", key="refresh_data", help="Clear cache and reload program data"):
                st.cache_resource.clear()
                st.session_state.pop(SESSION_KEY, None)
                st.rerun()

    # Visual settings only - these never change the selection
    try:
        views['scatter'].set_axes(settings['x'], settings['y'])
    except ValueError as e:
        st.warning(str(e))
    views['table'].set_filter_rows(settings['filter_rows'])

    selection = coordinator.selection
    stats = calculate_selection_stats(catalog, selection)

    # Dashboard header
    st.markdown(
        f'''<div class="dashboard-header">
            <h4 style="margin:0;color:#333;">🌾 Program Explorer</h4>
            <span style="color:#666;font-size:13px;">{selection.describe()} • {len(catalog):,} programs</span>
        </div>''',
        unsafe_allow_html=True
    )

    render_view_failures(coordinator.last_failures)

    TAB_OPTIONS = ["🔗 Linked Views", "📊 Summary", "📥 Export"]
    active_tab = st.radio(
        "Navigation",
        options=TAB_OPTIONS,
        horizontal=True,
        label_visibility="collapsed",
        key="tab_selector"
    )

    if active_tab == "🔗 Linked Views":
        render_stats_panel(stats)

        col1, col2 = st.columns(2)
        with col1:
            st.subheader("Outcomes")
            views['scatter'].draw()
        with col2:
            st.subheader("Fields")
            views['map'].draw()

        st.subheader("Simulations")
        views['table'].draw()

    elif active_tab == "📊 Summary":
        render_stats_panel(stats)

        col1, col2 = st.columns(2)
        with col1:
            st.subheader("Recruitment Buckets")
            render_bucket_breakdown(catalog, selection)
        with col2:
            st.subheader("Mean Outcomes")
            render_outcome_means(stats)

    elif active_tab == "📥 Export":
        render_export_panel(catalog, selection)


if __name__ == "__main__":
    main()
