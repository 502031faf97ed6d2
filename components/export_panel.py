"""
Export functionality for the program explorer.
Provides CSV download of the highlighted simulations.
"""
import streamlit as st
import pandas as pd
from datetime import datetime
from typing import List

from utils.catalog import Catalog, OUTCOME_COLUMNS
from utils.selection import Selection


def get_export_columns() -> List[str]:
    """Get the list of columns to include in exports."""
    return ['simulation_id', 'recruitment_rate', 'bucket'] + list(OUTCOME_COLUMNS)


def prepare_export_data(df: pd.DataFrame) -> pd.DataFrame:
    """Prepare simulation rows for export with clean column names."""
    df = df.reset_index() if 'simulation_id' not in df.columns else df

    export_cols = get_export_columns()
    available_cols = [col for col in export_cols if col in df.columns]
    export_df = df[available_cols].copy()

    column_renames = {
        'simulation_id': 'Simulation',
        'recruitment_rate': 'Recruitment Rate',
        'bucket': 'Recruitment Bucket',
    }
    column_renames.update(OUTCOME_COLUMNS)

    return export_df.rename(columns={k: v for k, v in column_renames.items() if k in export_df.columns})


def render_export_panel(catalog: Catalog, selection: Selection):
    """
    Render the export panel with download button.

    Exports the highlighted simulations, or every simulation when nothing
    is selected.
    """
    st.subheader("📥 Export Programs")

    export_df = prepare_export_data(catalog.selected_simulations(selection))
    scope = "selection" if not selection.is_empty else "all"

    timestamp = datetime.now().strftime("%Y%m%d_%H%M")
    filename = f"programs_{scope}_{timestamp}.csv"
    csv = export_df.to_csv(index=False)

    st.download_button(
        label=f"⬇️ Download CSV ({len(export_df):,} programs)",
        data=csv,
        file_name=filename,
        mime="text/csv",
        use_container_width=True
    )

    with st.expander("Preview Export Data"):
        st.dataframe(
            export_df.head(20),
            use_container_width=True,
            height=300
        )

        if len(export_df) > 20:
            st.caption(f"Showing first 20 of {len(export_df):,} rows")
