"""
Streamlit components for the program explorer.

Linked views (ViewAdapter implementations):
- scatter_view: outcome-vs-outcome scatter of simulations
- table_view: simulation table with row highlighting
- map_view: field parcel polygons (pydeck)

Panels:
- sidebar_filters: bucket radio, axes, table options
- stats_panel: selection summary and bucket breakdown
- export_panel: CSV download of the selection
"""
