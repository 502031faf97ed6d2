"""
Data loading and processing utilities for the program explorer.
Handles the simulation table, program-field membership and field geometry.

Data Source: a local data directory containing

- simulations.csv:     one row per optimized program (simulation_id,
                       recruitment_rate, summed outcome columns)
- program_fields.csv:  simulation_id, field_id pairs (fields enrolled
                       by each program)
- fields.geojson:      FeatureCollection of field parcels with
                       'field_id' and per-field attributes in properties

When any file is missing, a deterministic demo dataset is generated instead
so the dashboard can still load.
"""
import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from .catalog import Catalog, FIELD_ATTRIBUTE_COLUMNS, OUTCOME_COLUMNS
from .buckets import RATE_COLUMN

# Configure logging
logger = logging.getLogger(__name__)

# Default data directory (relative to project root)
DEFAULT_DATA_DIR = Path(__file__).parent.parent / 'data'

DATA_FILES = {
    'simulations': 'simulations.csv',
    'membership': 'program_fields.csv',
    'fields': 'fields.geojson',
}

# Demo dataset anchor (south-western corner of the field grid)
DEMO_ORIGIN = {
    'latitude': 36.20,
    'longitude': -119.90,
}
DEMO_CELL_DEGREES = 0.012

# Per-field outcome ranges for the demo dataset (low, high per field)
DEMO_FIELD_OUTCOMES = {
    'nitrogen_runoff': (-40.0, -2.0),
    'phosphorus_runoff': (-8.0, -0.5),
    'sediment_runoff': (-3.0, -0.1),
    'infiltration_storage': (5.0, 60.0),
    'infiltration_gde': (0.0, 25.0),
    'irrigation_groundwater': (-80.0, -10.0),
    'irrigation_surface': (-40.0, 0.0),
}


# =============================================================================
# PARSING HELPERS
# =============================================================================

def parse_polygon(geometry: Optional[dict]) -> Optional[List[List[float]]]:
    """
    Extract the exterior ring of a GeoJSON Polygon or MultiPolygon.

    For MultiPolygons only the first part is kept (field parcels are
    single polygons in practice).

    Returns:
        List of [lon, lat] pairs or None if geometry is missing/unsupported
    """
    if not geometry:
        return None

    geom_type = geometry.get('type')
    coords = geometry.get('coordinates')

    try:
        if geom_type == 'Polygon':
            ring = coords[0]
        elif geom_type == 'MultiPolygon':
            ring = coords[0][0]
        else:
            return None
        return [[float(lon), float(lat)] for lon, lat, *_ in ring]
    except (TypeError, ValueError, IndexError):
        return None


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return np.nan


def polygon_centroid(ring: Optional[List[List[float]]]) -> Tuple[Optional[float], Optional[float]]:
    """Vertex-average centroid (lat, lon) of a ring; good enough for framing the map."""
    if not ring:
        return None, None
    lons = [p[0] for p in ring]
    lats = [p[1] for p in ring]
    return sum(lats) / len(lats), sum(lons) / len(lons)


# =============================================================================
# FILE LOADERS
# =============================================================================

def load_simulations(path: Path) -> pd.DataFrame:
    """
    Load and clean the simulation table.

    - Outcome columns coerced to numeric (missing -> 0)
    - Recruitment rate clipped to [0, 1] (out-of-range values logged)
    - Rows without a simulation_id or rate are dropped
    """
    df = pd.read_csv(path, dtype={'simulation_id': str})

    if 'simulation_id' not in df.columns or RATE_COLUMN not in df.columns:
        raise ValueError(f"{path.name} must contain 'simulation_id' and '{RATE_COLUMN}' columns")

    df = df.dropna(subset=['simulation_id']).copy()
    df['simulation_id'] = df['simulation_id'].str.strip()

    df[RATE_COLUMN] = pd.to_numeric(df[RATE_COLUMN], errors='coerce')
    missing_rate = df[RATE_COLUMN].isna().sum()
    if missing_rate:
        logger.warning(f"Dropping {missing_rate} simulations without a recruitment rate")
        df = df[df[RATE_COLUMN].notna()].copy()

    out_of_range = ((df[RATE_COLUMN] < 0) | (df[RATE_COLUMN] > 1)).sum()
    if out_of_range:
        logger.warning(f"Clipping {out_of_range} recruitment rates to [0, 1]")
        df[RATE_COLUMN] = df[RATE_COLUMN].clip(0.0, 1.0)

    for col in OUTCOME_COLUMNS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors='coerce').fillna(0.0)

    duplicates = df['simulation_id'].duplicated().sum()
    if duplicates:
        logger.warning(f"Dropping {duplicates} duplicate simulation ids")
        df = df.drop_duplicates(subset='simulation_id', keep='first')

    logger.info(f"Loaded {len(df)} simulations from {path.name}")
    return df.set_index('simulation_id')


def load_fields(path: Path) -> pd.DataFrame:
    """Load field parcels from a GeoJSON FeatureCollection."""
    with open(path, 'r') as f:
        geojson = json.load(f)

    rows = []
    skipped = 0
    for feature in geojson.get('features', []):
        props = feature.get('properties') or {}
        field_id = props.get('field_id', feature.get('id'))
        ring = parse_polygon(feature.get('geometry'))
        if field_id is None or ring is None:
            skipped += 1
            continue

        row = {'field_id': str(field_id), 'polygon': ring}
        for col in FIELD_ATTRIBUTE_COLUMNS:
            row[col] = _to_float(props.get(col))
        rows.append(row)

    if skipped:
        logger.warning(f"Skipped {skipped} features without field_id or polygon geometry")

    df = pd.DataFrame(rows, columns=['field_id', 'polygon'] + FIELD_ATTRIBUTE_COLUMNS)
    df = df.drop_duplicates(subset='field_id', keep='first')
    coords = df['polygon'].apply(polygon_centroid)
    df['latitude'] = coords.apply(lambda x: x[0])
    df['longitude'] = coords.apply(lambda x: x[1])

    logger.info(f"Loaded {len(df)} fields from {path.name}")
    return df.set_index('field_id')


def load_membership(path: Path, simulations: pd.DataFrame, fields: pd.DataFrame) -> pd.DataFrame:
    """Load program-field links, dropping rows that reference unknown ids."""
    df = pd.read_csv(path, dtype=str)

    if not {'simulation_id', 'field_id'}.issubset(df.columns):
        raise ValueError(f"{path.name} must contain 'simulation_id' and 'field_id' columns")

    df = df[['simulation_id', 'field_id']].dropna().copy()
    df['simulation_id'] = df['simulation_id'].str.strip()
    df['field_id'] = df['field_id'].str.strip()

    valid = df['simulation_id'].isin(simulations.index) & df['field_id'].isin(fields.index)
    dropped = (~valid).sum()
    if dropped:
        logger.warning(f"Dropping {dropped} program-field links with unknown ids")

    return df[valid].reset_index(drop=True)


def load_catalog(data_dir: Optional[Path] = None, demo_simulations: int = 900) -> Catalog:
    """
    Load the full catalog from a data directory.

    Falls back to generate_demo_catalog() when any data file is missing.

    Args:
        data_dir: Directory with the data files (defaults to ./data)
        demo_simulations: Number of programs for the demo fallback

    Returns:
        Catalog instance

    Raises:
        ValueError: If a data file exists but is malformed
    """
    data_dir = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
    paths = {key: data_dir / name for key, name in DATA_FILES.items()}

    missing = [p.name for p in paths.values() if not p.exists()]
    if missing:
        logger.warning(
            f"Data files not found in {data_dir}: {', '.join(missing)}. "
            f"Falling back to demo data."
        )
        return generate_demo_catalog(n_simulations=demo_simulations)

    simulations = load_simulations(paths['simulations'])
    fields = load_fields(paths['fields'])
    membership = load_membership(paths['membership'], simulations, fields)
    return Catalog(simulations, fields, membership)


# =============================================================================
# DEMO DATA
# =============================================================================

def _square(lon: float, lat: float, size: float) -> List[List[float]]:
    return [
        [lon, lat],
        [lon + size, lat],
        [lon + size, lat + size],
        [lon, lat + size],
        [lon, lat],
    ]


def generate_demo_catalog(n_simulations: int = 900, grid: int = 12, seed: int = 42) -> Catalog:
    """
    Build a deterministic synthetic catalog.

    Fields are laid out on a grid x grid lattice of square parcels. Each
    simulation draws a recruitment rate, enrolls a subset of fields whose
    size grows with the rate, and sums per-field outcomes over the enrolled
    fields (cost = sum of net present cost).

    Args:
        n_simulations: Number of programs to generate
        grid: Lattice size (grid * grid fields)
        seed: Random seed

    Returns:
        Catalog instance
    """
    rng = np.random.default_rng(seed)
    n_fields = grid * grid
    size = DEMO_CELL_DEGREES * 0.9

    field_ids = [f"F{i:04d}" for i in range(n_fields)]
    polygons = []
    for i in range(n_fields):
        row, col = divmod(i, grid)
        lon = DEMO_ORIGIN['longitude'] + col * DEMO_CELL_DEGREES
        lat = DEMO_ORIGIN['latitude'] + row * DEMO_CELL_DEGREES
        polygons.append(_square(lon, lat, size))

    fields = pd.DataFrame({
        'field_id': field_ids,
        'polygon': polygons,
        'acres': rng.uniform(20, 160, n_fields).round(1),
    })
    fields['net_present_cost'] = (fields['acres'] * rng.uniform(800, 2500, n_fields)).round(0)
    coords = fields['polygon'].apply(polygon_centroid)
    fields['latitude'] = coords.apply(lambda x: x[0])
    fields['longitude'] = coords.apply(lambda x: x[1])
    fields = fields.set_index('field_id')

    field_outcomes = {
        col: rng.uniform(low, high, n_fields)
        for col, (low, high) in DEMO_FIELD_OUTCOMES.items()
    }

    sim_rows = []
    links = []
    rates = rng.uniform(0.0, 1.0, n_simulations)
    for s, rate in enumerate(rates):
        sim_id = f"S{s:04d}"
        enrolled = rng.random(n_fields) < (0.05 + 0.35 * rate)
        if not enrolled.any():
            enrolled[rng.integers(n_fields)] = True
        idx = np.flatnonzero(enrolled)

        row = {
            'simulation_id': sim_id,
            RATE_COLUMN: round(float(rate), 4),
            'cost': float(fields['net_present_cost'].to_numpy()[idx].sum()),
        }
        for col, values in field_outcomes.items():
            row[col] = round(float(values[idx].sum()), 2)
        sim_rows.append(row)
        links.extend((sim_id, field_ids[i]) for i in idx)

    simulations = pd.DataFrame(sim_rows).set_index('simulation_id')
    membership = pd.DataFrame(links, columns=['simulation_id', 'field_id'])

    logger.info(f"Generated demo catalog: {n_simulations} simulations over {n_fields} fields")
    return Catalog(simulations, fields, membership)


def get_outcome_options(catalog: Catalog) -> List[str]:
    """Outcome columns available for the scatter plot axes."""
    return catalog.outcome_columns
