"""
Statistics panel component for the program explorer.
Displays summary metrics and a bucket breakdown for the active selection.
"""
import streamlit as st
import pandas as pd
import plotly.graph_objects as go
from typing import Dict, Optional

from utils.buckets import BUCKET_NAMES
from utils.catalog import Catalog, get_outcome_label
from utils.color_schemes import BUCKET_COLORS_HEX
from utils.selection import LEVEL_FIELD, LEVEL_SIMULATION, Selection


def calculate_selection_stats(catalog: Catalog, selection: Selection) -> dict:
    """
    Calculate summary statistics for the highlighted programs.

    With an empty selection the statistics describe every simulation.

    Args:
        catalog: Loaded catalog
        selection: Active selection

    Returns:
        Dict with counts, percentages and per-outcome means
    """
    total = len(catalog)
    total_fields = len(catalog.field_ids)

    if selection.is_empty:
        sim_ids = catalog.simulation_ids
        field_ids = catalog.field_ids
    else:
        sim_ids = catalog.project(selection, LEVEL_SIMULATION)
        field_ids = catalog.project(selection, LEVEL_FIELD)

    selected = catalog.selected_simulations(selection)

    stats = {
        'selection_active': not selection.is_empty,
        'total_simulations': total,
        'selected_simulations': len(sim_ids),
        'total_fields': total_fields,
        'selected_fields': len(field_ids),
        'mean_recruitment_rate': selected['recruitment_rate'].mean() if len(selected) > 0 else None,
        'outcome_means': {
            col: selected[col].mean() if len(selected) > 0 else None
            for col in catalog.outcome_columns
        },
    }

    # Percentages (based on the full universe)
    stats['selected_pct'] = round(stats['selected_simulations'] / total * 100, 1) if total > 0 else 0
    stats['selected_fields_pct'] = (
        round(stats['selected_fields'] / total_fields * 100, 1) if total_fields > 0 else 0
    )
    return stats


def _format_value(value: Optional[float]) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    if abs(value) >= 1_000_000:
        return f"{value / 1_000_000:,.2f}M"
    if abs(value) >= 10_000:
        return f"{value / 1_000:,.1f}K"
    return f"{value:,.1f}"


def _render_responsive_metrics(metrics: list):
    """
    Render metrics using a responsive HTML grid instead of st.columns.

    Args:
        metrics: List of dicts with 'label' and 'value' keys
    """
    cards_html = ''.join(
        f'<div class="stat-card"><div class="stat-label">{m["label"]}</div>'
        f'<div class="stat-value">{m["value"]}</div></div>'
        for m in metrics
    )

    html = f'''
    <style>
        .stats-grid {{
            display: grid;
            grid-template-columns: repeat(4, 1fr);
            gap: 0.75rem;
            margin-bottom: 0.5rem;
        }}
        @media (max-width: 1200px) {{
            .stats-grid {{ grid-template-columns: repeat(2, 1fr); }}
        }}
        .stat-card {{
            background: #fafafa;
            border: 1px solid #eee;
            border-radius: 6px;
            padding: 0.4rem 0.6rem;
        }}
        .stat-label {{ font-size: 0.72rem; color: #6b7280; white-space: nowrap; overflow: hidden; text-overflow: ellipsis; }}
        .stat-value {{ font-size: 1.25rem; font-weight: 600; color: #262730; white-space: nowrap; }}
    </style>
    <div class="stats-grid">{cards_html}</div>
    '''
    st.markdown(html, unsafe_allow_html=True)


def render_stats_panel(stats: dict):
    """Render the headline metrics for the active selection."""
    metrics = [
        {"label": "Programs highlighted",
         "value": f"{stats['selected_simulations']:,} ({stats['selected_pct']}%)"},
        {"label": "Fields highlighted",
         "value": f"{stats['selected_fields']:,} ({stats['selected_fields_pct']}%)"},
        {"label": "Mean recruitment",
         "value": f"{stats['mean_recruitment_rate']:.0%}" if stats['mean_recruitment_rate'] is not None else "N/A"},
        {"label": f"Mean {get_outcome_label('cost')}",
         "value": _format_value(stats['outcome_means'].get('cost'))},
    ]
    _render_responsive_metrics(metrics)


def render_outcome_means(stats: dict):
    """Render mean outcomes of the highlighted programs as a compact table."""
    means = stats['outcome_means']
    if not means:
        return

    table = pd.DataFrame({
        'Outcome': [get_outcome_label(c) for c in means],
        'Mean': [_format_value(v) for v in means.values()],
    })
    st.dataframe(table, use_container_width=True, hide_index=True)


def render_bucket_breakdown(catalog: Catalog, selection: Selection):
    """Bar chart of simulations per recruitment bucket, highlighted vs. all."""
    sims = catalog.simulations
    all_counts = sims['bucket'].value_counts().reindex(BUCKET_NAMES, fill_value=0)

    selected = catalog.selected_simulations(selection)
    selected_counts = selected['bucket'].value_counts().reindex(BUCKET_NAMES, fill_value=0)

    colors = [BUCKET_COLORS_HEX.get(b, '#8E99A4') for b in BUCKET_NAMES]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        name='All programs',
        x=list(BUCKET_NAMES),
        y=all_counts.values,
        marker_color='#E5E7EB',
    ))
    fig.add_trace(go.Bar(
        name='Highlighted',
        x=list(BUCKET_NAMES),
        y=selected_counts.values,
        marker_color=colors,
    ))

    fig.update_layout(
        barmode='overlay',
        xaxis_title="Recruitment Bucket",
        yaxis_title="Number of Programs",
        legend=dict(
            orientation="h",
            yanchor="bottom",
            y=1.02,
            xanchor="center",
            x=0.5
        ),
        margin=dict(t=40, b=50, l=50, r=20),
        height=300
    )

    st.plotly_chart(fig, use_container_width=True)


def render_view_failures(failures: Dict[str, Exception]):
    """Surface per-view render failures without stopping the page."""
    for view_name, error in failures.items():
        st.warning(f"⚠️ The {view_name.replace('_', ' ')} view could not update: {error}")
