"""
Color schemes for the linked-views program explorer.
Uses muted, design-conscious colors so highlighted programs stand out
against a de-emphasized background.

Each recruitment bucket gets its own color; selection emphasis is encoded
through opacity (scatter, table) and fill color (map).
"""

# =============================================================================
# Recruitment Bucket Colors
# =============================================================================
BUCKET_COLORS = {
    'Low': [184, 125, 125, 200],       # Dusty Rose #B87D7D
    'Medium': [212, 165, 116, 200],    # Warm Amber #D4A574
    'High': [65, 131, 196, 200],       # Primary Blue #4183C4
    'Perfect': [107, 144, 128, 200],   # Soft Sage #6B9080
    'Unknown': [142, 153, 164, 180],   # Cool Slate #8E99A4
}

BUCKET_COLORS_HEX = {
    'Low': '#B87D7D',
    'Medium': '#D4A574',
    'High': '#4183C4',
    'Perfect': '#6B9080',
    'Unknown': '#8E99A4',
}

# =============================================================================
# Selection Emphasis
# =============================================================================
# Opacity applied to marks when a selection is active. With no selection
# every mark uses NEUTRAL_OPACITY.
SELECTED_OPACITY = 0.95
UNSELECTED_OPACITY = 0.15
NEUTRAL_OPACITY = 0.7

# Map polygon fills
FIELD_FILL_NEUTRAL = [142, 153, 164, 140]     # Cool Slate
FIELD_FILL_SELECTED = [255, 170, 0, 220]      # Bright amber
FIELD_FILL_DIMMED = [210, 214, 219, 60]       # Near-transparent grey
FIELD_LINE_COLOR = [80, 80, 80, 160]

# Table row highlight
TABLE_HIGHLIGHT_CSS = 'background-color: #FFF3CD; font-weight: 600;'

# Outline used for selected scatter points
SELECTED_OUTLINE_HEX = '#262730'


def get_color_for_bucket(bucket_name: str) -> list:
    """Get RGBA color list for a recruitment bucket."""
    return BUCKET_COLORS.get(bucket_name, BUCKET_COLORS['Unknown'])


def get_hex_for_bucket(bucket_name: str) -> str:
    """Get hex color for a recruitment bucket (for charts and legends)."""
    return BUCKET_COLORS_HEX.get(bucket_name, BUCKET_COLORS_HEX['Unknown'])


def emphasis_opacity(is_selected: bool, selection_active: bool) -> float:
    """
    Opacity for a single mark given the selection state.

    Args:
        is_selected: Whether this mark belongs to the active selection
        selection_active: Whether any selection is active at all

    Returns:
        Opacity in [0, 1]
    """
    if not selection_active:
        return NEUTRAL_OPACITY
    return SELECTED_OPACITY if is_selected else UNSELECTED_OPACITY


def field_fill_color(is_selected: bool, selection_active: bool) -> list:
    """RGBA fill for a field polygon given the selection state."""
    if not selection_active:
        return FIELD_FILL_NEUTRAL
    return FIELD_FILL_SELECTED if is_selected else FIELD_FILL_DIMMED
