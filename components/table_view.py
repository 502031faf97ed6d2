"""
Simulation table view.

One row per simulation with recruitment rate, bucket and outcome totals.
Selected rows are highlighted; optionally the table shows only the
selected simulations. Row selection in the table emits a simulation-id
Selection.
"""
import streamlit as st
import pandas as pd
from typing import Any, FrozenSet, List, Optional

from utils.catalog import Catalog, get_outcome_label
from utils.color_schemes import TABLE_HIGHLIGHT_CSS
from utils.selection import LEVEL_SIMULATION, Selection

from .view_adapter import ViewAdapter, ViewState, event_selection, event_value


class SimulationTableView(ViewAdapter):
    """Tabular view of simulations with row highlighting."""

    level = LEVEL_SIMULATION

    def __init__(
        self,
        catalog: Catalog,
        name: str = 'sim_table',
        filter_rows: bool = False,
        columns: Optional[List[str]] = None,
        height: int = 420
    ):
        super().__init__(name, catalog)
        self._data = catalog.simulations
        self.filter_rows = filter_rows
        self.columns = columns or (['recruitment_rate', 'bucket'] + catalog.outcome_columns)
        self.height = height

    def set_filter_rows(self, filter_rows: bool) -> None:
        """Toggle 'show only selected rows' and re-render."""
        if filter_rows == self.filter_rows:
            return
        self.filter_rows = filter_rows
        self.render(self.current_selection)

    # ------------------------------------------------------------------
    # ViewAdapter hooks
    # ------------------------------------------------------------------
    def compute_state(self, selection: Selection, highlighted: FrozenSet[str]) -> ViewState:
        active = not selection.is_empty
        ids = list(self._data.index)

        if active and self.filter_rows:
            ids = [sim_id for sim_id in ids if sim_id in highlighted]

        order = tuple(ids)
        emphasis = tuple(active and sim_id in highlighted for sim_id in order)
        return ViewState(
            highlighted=frozenset(highlighted),
            order=order,
            emphasis=emphasis,
            selection_active=active,
            caption=selection.describe(),
        )

    def selection_from_event(self, payload: Any) -> Selection:
        """Dataframe selection event -> simulation ids of the selected rows."""
        rows = event_value(event_selection(payload), 'rows') or []
        ids = self._ids_from_positions(rows)
        return Selection.of_simulations(ids, origin=self.name)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def build_frame(self) -> pd.DataFrame:
        """Display DataFrame in rendered row order (simulation id as a column)."""
        state = self.view_state
        df = self._data.loc[list(state.order), [c for c in self.columns if c in self._data.columns]]
        df = df.reset_index()
        return df

    def build_styler(self):
        """Pandas Styler highlighting selected rows."""
        df = self.build_frame()
        emphasis = list(self.view_state.emphasis)

        def highlight_row(row):
            style = TABLE_HIGHLIGHT_CSS if emphasis[row.name] else ''
            return [style] * len(row)

        return df.style.apply(highlight_row, axis=1)

    def draw(self) -> None:
        if self.view_state is None:
            st.info("Table not rendered yet.")
            return

        if not self.view_state.order:
            st.info("No simulations match the current selection.")
            return

        column_config = {
            'simulation_id': st.column_config.TextColumn('Simulation'),
            'recruitment_rate': st.column_config.NumberColumn('Recruitment', format='%.2f'),
            'bucket': st.column_config.TextColumn('Bucket'),
        }
        for col in self.catalog.outcome_columns:
            column_config[col] = st.column_config.NumberColumn(get_outcome_label(col), format='%.1f')

        st.dataframe(
            self.build_styler(),
            use_container_width=True,
            height=self.height,
            hide_index=True,
            column_config=column_config,
            key=self.widget_key,
            on_select=self._on_widget_select,
            selection_mode='multi-row',
        )
        highlighted_rows = sum(1 for e in self.view_state.emphasis if e)
        st.caption(f"{highlighted_rows:,} of {len(self.view_state.order):,} rows highlighted • Select rows to link")
