"""
Tests for loading the catalog from a data directory and for the demo
dataset fallback.
"""
import json
import logging

import pandas as pd
import pytest

from utils.data_loader import (
    generate_demo_catalog,
    get_outcome_options,
    load_catalog,
    parse_polygon,
    polygon_centroid,
)


def square(lon, lat, size=0.01):
    return [[lon, lat], [lon + size, lat], [lon + size, lat + size], [lon, lat + size], [lon, lat]]


@pytest.fixture
def data_dir(tmp_path):
    """A small, slightly messy data directory."""
    pd.DataFrame({
        'simulation_id': ['A', 'B', 'C', 'C', 'D'],
        'recruitment_rate': [0.2, 1.2, 0.7, 0.1, None],
        'cost': [100, 'n/a', 300, 400, 500],
        'nitrogen_runoff': [-1.0, -2.0, -3.0, -4.0, -5.0],
    }).to_csv(tmp_path / 'simulations.csv', index=False)

    pd.DataFrame({
        'simulation_id': ['A', 'B', 'C', 'Z'],
        'field_id': ['f1', 'f2', 'f2', 'f1'],
    }).to_csv(tmp_path / 'program_fields.csv', index=False)

    geojson = {
        'type': 'FeatureCollection',
        'features': [
            {
                'type': 'Feature',
                'properties': {'field_id': 'f1', 'acres': 12.5, 'net_present_cost': 9000},
                'geometry': {'type': 'Polygon', 'coordinates': [square(-119.9, 36.2)]},
            },
            {
                'type': 'Feature',
                'properties': {'field_id': 'f2', 'acres': None},
                'geometry': {'type': 'MultiPolygon', 'coordinates': [
                    [square(-119.8, 36.3)],
                    [square(-119.7, 36.4)],
                ]},
            },
            {
                'type': 'Feature',
                'properties': {'field_id': 'f3'},
                'geometry': None,
            },
        ],
    }
    (tmp_path / 'fields.geojson').write_text(json.dumps(geojson))
    return tmp_path


class TestLoadCatalog:
    """Tests for load_catalog() with real files."""

    def test_cleans_simulations(self, data_dir, caplog):
        with caplog.at_level(logging.WARNING, logger='utils.data_loader'):
            catalog = load_catalog(data_dir)

        sims = catalog.simulations
        assert sims.index.tolist() == ['A', 'B', 'C']
        assert sims.loc['B', 'recruitment_rate'] == 1.0
        assert sims.loc['B', 'bucket'] == 'Perfect'
        assert sims.loc['B', 'cost'] == 0.0
        assert sims.loc['C', 'cost'] == 300
        assert "Clipping" in caplog.text
        assert "duplicate" in caplog.text

    def test_fields_and_membership(self, data_dir):
        catalog = load_catalog(data_dir)

        assert catalog.field_ids == {'f1', 'f2'}
        fields = catalog.fields
        assert fields.loc['f1', 'acres'] == 12.5
        assert pd.isna(fields.loc['f2', 'acres'])
        # MultiPolygon keeps its first part
        assert fields.loc['f2', 'polygon'][0] == [-119.8, 36.3]

        assert catalog.fields_of(['C']) == {'f2'}
        assert catalog.simulations_with(['f1']) == {'A'}
        assert 'Z' not in set(catalog.membership['simulation_id'])

    def test_missing_files_fall_back_to_demo(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger='utils.data_loader'):
            catalog = load_catalog(tmp_path, demo_simulations=25)

        assert len(catalog) == 25
        assert "Falling back to demo data" in caplog.text

    def test_malformed_simulations_raise(self, data_dir):
        pd.DataFrame({'id': ['A']}).to_csv(data_dir / 'simulations.csv', index=False)
        with pytest.raises(ValueError):
            load_catalog(data_dir)


class TestDemoCatalog:
    """Tests for generate_demo_catalog()."""

    def test_deterministic(self):
        first = generate_demo_catalog(n_simulations=40, grid=4, seed=3)
        second = generate_demo_catalog(n_simulations=40, grid=4, seed=3)
        pd.testing.assert_frame_equal(first.simulations, second.simulations)
        pd.testing.assert_frame_equal(first.membership, second.membership)

    def test_shape(self, demo_catalog):
        assert len(demo_catalog) == 60
        assert len(demo_catalog.field_ids) == 25
        rates = demo_catalog.simulations['recruitment_rate']
        assert rates.between(0.0, 1.0).all()
        assert set(get_outcome_options(demo_catalog)) == set(demo_catalog.outcome_columns)
        assert len(demo_catalog.outcome_columns) == 8

    def test_every_simulation_enrolls_fields(self, demo_catalog):
        for sim_id in demo_catalog.simulation_ids:
            assert demo_catalog.fields_of([sim_id])

    def test_outcomes_are_field_sums(self, demo_catalog):
        sims = demo_catalog.simulations
        fields = demo_catalog.fields
        for sim_id in list(sims.index)[:10]:
            enrolled = list(demo_catalog.fields_of([sim_id]))
            expected = fields.loc[enrolled, 'net_present_cost'].sum()
            assert sims.loc[sim_id, 'cost'] == pytest.approx(expected)


class TestGeometryHelpers:
    """Tests for parse_polygon() and polygon_centroid()."""

    def test_unsupported_geometry(self):
        assert parse_polygon({'type': 'Point', 'coordinates': [1, 2]}) is None
        assert parse_polygon(None) is None
        assert parse_polygon({'type': 'Polygon', 'coordinates': []}) is None

    def test_drops_z_values(self):
        ring = parse_polygon({'type': 'Polygon', 'coordinates': [[[1, 2, 99], [3, 4, 99], [1, 2, 99]]]})
        assert ring == [[1.0, 2.0], [3.0, 4.0], [1.0, 2.0]]

    def test_centroid(self):
        lat, lon = polygon_centroid([[0.0, 10.0], [2.0, 20.0]])
        assert (lat, lon) == (15.0, 1.0)
        assert polygon_centroid(None) == (None, None)
