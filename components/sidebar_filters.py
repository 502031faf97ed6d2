"""
Sidebar controls for the program explorer.

SIDEBAR STRUCTURE:
1. Selection (TOP - always visible): active selection + clear button
2. Recruitment Bucket: radio buttons (All / Low / Medium / High / Perfect)
3. Scatter Axes (expander): outcome variables for x and y
4. Table (expander): show only selected rows

Bucket radio changes go through the Coordinator so the bucket is translated
into simulation membership before it reaches the views.
"""
import streamlit as st
from typing import Dict, List

from utils.buckets import BUCKET_NAMES, RECRUITMENT_BUCKETS, bucket_counts
from utils.catalog import Catalog, get_outcome_label
from utils.color_schemes import get_hex_for_bucket
from utils.coordinator import Coordinator
from utils.data_loader import get_outcome_options

ALL_BUCKETS = 'All'
BUCKET_KEY = 'bucket_choice'


def _on_bucket_change(coordinator: Coordinator) -> None:
    """Radio on_change callback: route the bucket choice to the coordinator."""
    choice = st.session_state.get(BUCKET_KEY, ALL_BUCKETS)
    if choice == ALL_BUCKETS:
        coordinator.clear(origin='bucket_radio')
    else:
        coordinator.select_bucket(choice, origin='bucket_radio')


def _on_clear(coordinator: Coordinator) -> None:
    """Clear button callback (runs before widgets render, so state can be reset)."""
    st.session_state[BUCKET_KEY] = ALL_BUCKETS
    coordinator.clear(origin='clear_button')


def _sync_bucket_radio(coordinator: Coordinator) -> None:
    """Keep the radio in step with selections made in the views."""
    active_bucket = coordinator.selection.bucket
    wanted = active_bucket if active_bucket in BUCKET_NAMES else ALL_BUCKETS
    if st.session_state.get(BUCKET_KEY) != wanted:
        st.session_state[BUCKET_KEY] = wanted


def render_bucket_legend() -> None:
    """Color swatches for the recruitment buckets."""
    swatches = ''.join(
        f'<div style="display:flex;align-items:center;gap:6px;margin-bottom:2px;">'
        f'<span style="width:10px;height:10px;border-radius:50%;background:{get_hex_for_bucket(b.name)};display:inline-block;"></span>'
        f'<span>{b.label}</span></div>'
        for b in RECRUITMENT_BUCKETS
    )
    st.sidebar.markdown(
        f'<div style="font-size:11px;color:#555;">{swatches}</div>',
        unsafe_allow_html=True
    )


def render_bucket_selector(catalog: Catalog, coordinator: Coordinator) -> str:
    """
    Render the recruitment bucket radio.

    Returns:
        Selected option ('All' or a bucket name)
    """
    _sync_bucket_radio(coordinator)

    counts = bucket_counts(catalog.simulations)
    options = [ALL_BUCKETS] + list(BUCKET_NAMES)

    def format_option(option: str) -> str:
        if option == ALL_BUCKETS:
            return f"All ({len(catalog):,})"
        return f"{option} ({int(counts.get(option, 0)):,})"

    st.sidebar.markdown("### 🎯 Recruitment Bucket")
    choice = st.sidebar.radio(
        "Recruitment Bucket",
        options=options,
        format_func=format_option,
        key=BUCKET_KEY,
        on_change=_on_bucket_change,
        args=(coordinator,),
        help="Highlight every program whose recruitment success rate falls in the bucket",
        label_visibility="collapsed"
    )
    render_bucket_legend()
    return choice


def render_axis_controls(outcome_columns: List[str]) -> Dict[str, str]:
    """Outcome selectors for the scatter plot axes."""
    with st.sidebar.expander("📈 Scatter Axes", expanded=False):
        x = st.selectbox(
            "X axis",
            options=outcome_columns,
            index=0,
            format_func=get_outcome_label,
            key="axis_x",
        )
        y_default = 1 if len(outcome_columns) > 1 else 0
        y = st.selectbox(
            "Y axis",
            options=outcome_columns,
            index=y_default,
            format_func=get_outcome_label,
            key="axis_y",
        )
    return {'x': x, 'y': y}


def render_sidebar_filters(catalog: Catalog, coordinator: Coordinator) -> dict:
    """
    Render sidebar controls and return display settings.

    Selection changes (bucket radio, clear button) are applied directly via
    the coordinator; the returned dict only holds visual settings.

    Args:
        catalog: Loaded catalog (for bucket counts and outcome options)
        coordinator: Session coordinator

    Returns:
        Dict with 'x', 'y', 'filter_rows', 'bucket'
    """
    # ════════════════════════════════════════════════════════════════════════════
    # 1. ACTIVE SELECTION (with Clear in header)
    # ════════════════════════════════════════════════════════════════════════════
    header_col1, header_col2 = st.sidebar.columns([3, 1])
    with header_col1:
        st.markdown("### 🔗 Selection")
    with header_col2:
        st.button(
            "✕",
            key="clear_selection",
            help="Clear selection in all views",
            on_click=_on_clear,
            args=(coordinator,),
        )
    st.sidebar.caption(coordinator.selection.describe())

    # ════════════════════════════════════════════════════════════════════════════
    # 2. RECRUITMENT BUCKET
    # ════════════════════════════════════════════════════════════════════════════
    st.sidebar.divider()
    bucket = render_bucket_selector(catalog, coordinator)

    # ════════════════════════════════════════════════════════════════════════════
    # 3. SCATTER AXES
    # ════════════════════════════════════════════════════════════════════════════
    st.sidebar.divider()
    axes = render_axis_controls(get_outcome_options(catalog))

    # ════════════════════════════════════════════════════════════════════════════
    # 4. TABLE
    # ════════════════════════════════════════════════════════════════════════════
    with st.sidebar.expander("📋 Table", expanded=False):
        filter_rows = st.checkbox(
            "Show only selected rows",
            key="table_filter_rows",
            value=False,
            help="Filter the table to the active selection instead of highlighting rows"
        )

    return {
        'x': axes['x'],
        'y': axes['y'],
        'filter_rows': filter_rows,
        'bucket': bucket,
    }
