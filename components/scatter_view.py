"""
Scatter plot view: one point per simulation, two outcome variables on the
axes, colored by recruitment bucket.

Selection gestures (click, box, lasso) emit a simulation-id Selection.
Emphasis is encoded through per-point opacity and outline width.
"""
import streamlit as st
import plotly.graph_objects as go
from typing import Any, FrozenSet

from utils.catalog import Catalog, get_outcome_label
from utils.color_schemes import (
    SELECTED_OUTLINE_HEX,
    emphasis_opacity,
    get_hex_for_bucket,
)
from utils.selection import LEVEL_SIMULATION, Selection

from .view_adapter import ViewAdapter, ViewState, event_selection, event_value

DEFAULT_X = 'cost'
DEFAULT_Y = 'nitrogen_runoff'


class ScatterPlotView(ViewAdapter):
    """Outcome-vs-outcome scatter of all simulations."""

    level = LEVEL_SIMULATION

    def __init__(
        self,
        catalog: Catalog,
        name: str = 'scatter',
        x: str = DEFAULT_X,
        y: str = DEFAULT_Y,
        height: int = 420
    ):
        super().__init__(name, catalog)
        self._data = catalog.simulations
        self.x = x
        self.y = y
        self.height = height

    def set_axes(self, x: str, y: str) -> None:
        """Change the plotted outcomes and re-render the current selection."""
        if (x, y) == (self.x, self.y):
            return
        for col in (x, y):
            if col not in self._data.columns:
                raise ValueError(f"Unknown outcome column: {col}")
        self.x, self.y = x, y
        self.render(self.current_selection)

    # ------------------------------------------------------------------
    # ViewAdapter hooks
    # ------------------------------------------------------------------
    def compute_state(self, selection: Selection, highlighted: FrozenSet[str]) -> ViewState:
        order = tuple(self._data.index)
        active = not selection.is_empty
        emphasis = tuple(emphasis_opacity(sim_id in highlighted, active) for sim_id in order)
        return ViewState(
            highlighted=frozenset(highlighted),
            order=order,
            emphasis=emphasis,
            selection_active=active,
            caption=selection.describe(),
        )

    def selection_from_event(self, payload: Any) -> Selection:
        """
        Plotly selection event -> simulation ids.

        Points carry the simulation id in customdata; point_index is used
        as a fallback against the rendered point order.
        """
        points = event_value(event_selection(payload), 'points') or []

        ids = []
        positions = []
        for point in points:
            custom = event_value(point, 'customdata')
            if isinstance(custom, (list, tuple)):
                custom = custom[0] if custom else None
            if custom is not None:
                ids.append(str(custom))
            else:
                positions.append(event_value(point, 'point_index'))

        ids.extend(self._ids_from_positions(positions))
        return Selection.of_simulations(ids, origin=self.name)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def build_figure(self) -> go.Figure:
        """Plotly figure for the current view state."""
        state = self.view_state
        df = self._data.loc[list(state.order)]
        selected = [sim_id in state.highlighted for sim_id in state.order]

        hover = (
            "<b>%{customdata[0]}</b><br>"
            "Recruitment: %{customdata[1]:.0%} (%{customdata[2]})<br>"
            f"{get_outcome_label(self.x)}: %{{x:,.1f}}<br>"
            f"{get_outcome_label(self.y)}: %{{y:,.1f}}<extra></extra>"
        )

        fig = go.Figure(go.Scatter(
            x=df[self.x],
            y=df[self.y],
            mode='markers',
            customdata=list(zip(state.order, df['recruitment_rate'], df['bucket'])),
            hovertemplate=hover,
            marker=dict(
                size=[10 if s else 7 for s in selected],
                color=[get_hex_for_bucket(b) for b in df['bucket']],
                opacity=list(state.emphasis),
                line=dict(
                    width=[1.5 if s else 0 for s in selected],
                    color=SELECTED_OUTLINE_HEX,
                ),
            ),
        ))

        fig.update_layout(
            xaxis_title=get_outcome_label(self.x),
            yaxis_title=get_outcome_label(self.y),
            dragmode='lasso',
            showlegend=False,
            margin=dict(t=20, b=50, l=60, r=20),
            height=self.height,
            # Keep zoom/pan across reruns
            uirevision=f"{self.x}-{self.y}",
        )
        return fig

    def draw(self) -> None:
        if self.view_state is None:
            st.info("Scatter plot not rendered yet.")
            return

        st.plotly_chart(
            self.build_figure(),
            use_container_width=True,
            key=self.widget_key,
            on_select=self._on_widget_select,
            selection_mode=('points', 'box', 'lasso'),
        )
        st.caption(f"{self.view_state.caption} • Click, box or lasso to select")
