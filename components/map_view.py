"""
Map visualization component using Pydeck (Deck.gl for Python).
Renders the field parcels enrolled across programs as polygons.

Selected fields are filled in amber, the rest fade out. Clicking polygons
emits a field-id Selection; clicking empty map area clears the selection.
"""
import math

import streamlit as st
import pydeck as pdk
import pandas as pd
from typing import Any, FrozenSet, Optional

from utils.catalog import Catalog
from utils.color_schemes import (
    FIELD_FILL_DIMMED,
    FIELD_FILL_NEUTRAL,
    FIELD_FILL_SELECTED,
    FIELD_LINE_COLOR,
    field_fill_color,
)
from utils.selection import LEVEL_FIELD, LEVEL_SIMULATION, Selection

from .view_adapter import ViewAdapter, ViewState, event_selection, event_value


# Fallback center when no field has geometry
DEFAULT_CENTER = {
    'latitude': 36.27,
    'longitude': -119.83,
    'zoom': 10.5
}

# CartoDB Positron - free basemap, no API key required
MAP_STYLE = "https://basemaps.cartocdn.com/gl/positron-gl-style/style.json"

# Layer id used to read picked objects back out of selection events
FIELD_LAYER_ID = 'fields'


def calculate_view_state(fields: pd.DataFrame, padding: float = 0.15) -> dict:
    """
    Calculate view state (center + zoom) that fits every field.

    Args:
        fields: DataFrame with latitude and longitude (centroid) columns
        padding: Extra padding around bounds (0.15 = 15% on each side)

    Returns:
        Dict with 'latitude', 'longitude', 'zoom' keys
    """
    if 'latitude' not in fields.columns or 'longitude' not in fields.columns:
        return DEFAULT_CENTER.copy()

    map_df = fields[fields['latitude'].notna() & fields['longitude'].notna()]
    if len(map_df) == 0:
        return DEFAULT_CENTER.copy()

    min_lat, max_lat = map_df['latitude'].min(), map_df['latitude'].max()
    min_lng, max_lng = map_df['longitude'].min(), map_df['longitude'].max()

    # Span with padding; single parcels get a minimum span
    lat_span = max((max_lat - min_lat) * (1 + padding * 2), 0.02)
    lng_span = max((max_lng - min_lng) * (1 + padding * 2), 0.02)

    # At zoom 0 the world is ~360 degrees wide; each level doubles resolution
    lat_zoom = math.log2(180 / lat_span) - 0.5
    lng_zoom = math.log2(360 / lng_span) - 0.5
    zoom = max(6.0, min(lat_zoom, lng_zoom, 15.5))

    return {
        'latitude': (min_lat + max_lat) / 2,
        'longitude': (min_lng + max_lng) / 2,
        'zoom': zoom
    }


def create_tooltip() -> dict:
    """Create tooltip configuration for field hover."""
    return {
        "html": '<div style="font-family:-apple-system,BlinkMacSystemFont,sans-serif;padding:8px;min-width:180px;">'
                '<div style="font-weight:600;font-size:13px;margin-bottom:4px;">Field {field_id}</div>'
                '<hr style="margin:4px 0;border:none;border-top:1px solid #eee;">'
                '<div style="font-size:12px;">'
                '<div style="display:flex;justify-content:space-between;"><span>Net present cost:</span><strong>{npc_display}</strong></div>'
                '<div style="display:flex;justify-content:space-between;"><span>Acres:</span><strong>{acres_display}</strong></div>'
                '<div style="display:flex;justify-content:space-between;"><span>Programs enrolling:</span><strong>{program_count}</strong></div>'
                '</div></div>',
        "style": {
            "backgroundColor": "white",
            "color": "#333",
            "borderRadius": "8px",
            "boxShadow": "0 2px 8px rgba(0,0,0,0.15)",
            "maxWidth": "260px"
        }
    }


class FieldMapView(ViewAdapter):
    """Polygon map of field parcels."""

    level = LEVEL_FIELD

    def __init__(
        self,
        catalog: Catalog,
        name: str = 'field_map',
        height: int = 520,
        granularity: str = LEVEL_SIMULATION
    ):
        super().__init__(name, catalog)
        self.granularity = granularity
        self._fields = catalog.fields
        self.height = height

        membership = catalog.membership
        counts = membership.groupby('field_id')['simulation_id'].nunique()
        self._program_counts = counts.reindex(self._fields.index, fill_value=0)
        self._view = calculate_view_state(self._fields)

    # ------------------------------------------------------------------
    # ViewAdapter hooks
    # ------------------------------------------------------------------
    def compute_state(self, selection: Selection, highlighted: FrozenSet[str]) -> ViewState:
        order = tuple(self._fields.index)
        active = not selection.is_empty
        emphasis = tuple(
            tuple(field_fill_color(field_id in highlighted, active)) for field_id in order
        )
        return ViewState(
            highlighted=frozenset(highlighted),
            order=order,
            emphasis=emphasis,
            selection_active=active,
            caption=selection.describe(),
        )

    def selection_from_event(self, payload: Any) -> Selection:
        """
        Pydeck selection event -> field ids.

        Picked objects carry their field_id; layer indices are a fallback.
        An event with no picked polygons (empty map click) clears.
        """
        inner = event_selection(payload)
        objects = event_value(event_value(inner, 'objects') or {}, FIELD_LAYER_ID) or []
        ids = [str(event_value(obj, 'field_id')) for obj in objects
               if event_value(obj, 'field_id') is not None]

        if not ids:
            indices = event_value(event_value(inner, 'indices') or {}, FIELD_LAYER_ID) or []
            ids = self._ids_from_positions(indices)

        return Selection.of_fields(ids, origin=self.name)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def build_layer_data(self) -> pd.DataFrame:
        """Per-field records (polygon, fill color, tooltip fields) in render order."""
        state = self.view_state
        df = self._fields.loc[list(state.order)].copy()
        df['fill_color'] = [list(c) for c in state.emphasis]
        df['program_count'] = self._program_counts.loc[list(state.order)].values

        # Format attributes for tooltip display
        if 'net_present_cost' in df.columns:
            df['npc_display'] = df['net_present_cost'].apply(
                lambda x: f"${x:,.0f}" if pd.notna(x) else "N/A"
            )
        else:
            df['npc_display'] = "N/A"

        if 'acres' in df.columns:
            df['acres_display'] = df['acres'].apply(
                lambda x: f"{x:,.1f}" if pd.notna(x) else "N/A"
            )
        else:
            df['acres_display'] = "N/A"

        df = df.reset_index()
        return df[['field_id', 'polygon', 'fill_color', 'program_count', 'npc_display', 'acres_display']]

    def create_field_layer(self) -> Optional[pdk.Layer]:
        """Create the PolygonLayer for field parcels."""
        data = self.build_layer_data()
        if len(data) == 0:
            return None

        return pdk.Layer(
            "PolygonLayer",
            data=data,
            id=FIELD_LAYER_ID,
            get_polygon="polygon",
            get_fill_color="fill_color",
            get_line_color=FIELD_LINE_COLOR,
            line_width_min_pixels=1,
            pickable=True,
            stroked=True,
            filled=True,
            extruded=False,
            auto_highlight=True,
            highlight_color=[255, 255, 0, 128],
        )

    def build_deck(self) -> Optional[pdk.Deck]:
        layer = self.create_field_layer()
        if layer is None:
            return None

        view_state = pdk.ViewState(
            latitude=self._view['latitude'],
            longitude=self._view['longitude'],
            zoom=self._view['zoom'],
            pitch=0,
            bearing=0
        )
        return pdk.Deck(
            layers=[layer],
            initial_view_state=view_state,
            tooltip=create_tooltip(),
            map_style=MAP_STYLE,
        )

    def draw(self) -> None:
        if self.view_state is None:
            st.info("Map not rendered yet.")
            return

        deck = self.build_deck()
        if deck is None:
            st.warning("No fields with valid geometry to display on map.")
            return

        render_map_legend()
        st.pydeck_chart(
            deck,
            use_container_width=True,
            height=self.height,
            key=self.widget_key,
            on_select=self._on_widget_select,
            selection_mode='multi-object',
        )
        st.caption(self.build_caption())

    def build_caption(self) -> str:
        """Caption under the map; explains how parcel clicks expand to programs."""
        text = (
            f"{len(self.view_state.highlighted):,} of {len(self.view_state.order):,} fields highlighted "
            f"• Click parcels to select, empty area to clear"
        )
        if self.granularity == LEVEL_SIMULATION:
            text += " • A parcel selects every program enrolling it, so all of their fields light up"
        return text


def _rgba_css(color) -> str:
    r, g, b, a = color
    return f"rgba({r},{g},{b},{a / 255:.2f})"


def render_map_legend():
    """Render a compact legend for field emphasis."""
    items = [
        ("Selected", FIELD_FILL_SELECTED),
        ("Not selected", FIELD_FILL_DIMMED),
        ("No selection", FIELD_FILL_NEUTRAL),
    ]
    swatches = ''.join(
        f'<span style="display:inline-flex;align-items:center;gap:4px;margin-right:12px;">'
        f'<span style="width:12px;height:12px;border:1px solid #999;background:{_rgba_css(c)};display:inline-block;"></span>'
        f'{label}</span>'
        for label, c in items
    )
    st.markdown(
        f'<div style="font-size:11px;color:#555;padding:4px 0;">{swatches}</div>',
        unsafe_allow_html=True
    )
