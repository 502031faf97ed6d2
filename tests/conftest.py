"""
Shared fixtures for the program explorer tests.

The scenario catalog has three simulations with recruitment rates
0.1, 0.5 and 0.95 (Low, Medium, Perfect), each enrolling exactly one field.
"""
import pandas as pd
import pytest

from utils.catalog import Catalog
from utils.coordinator import Coordinator
from utils.data_loader import generate_demo_catalog
from utils.selection import SelectionStore
from components.scatter_view import ScatterPlotView
from components.table_view import SimulationTableView
from components.map_view import FieldMapView


def square(lon, lat, size=0.01):
    return [[lon, lat], [lon + size, lat], [lon + size, lat + size], [lon, lat + size], [lon, lat]]


def make_fields(field_ids):
    return pd.DataFrame({
        'field_id': field_ids,
        'polygon': [square(-119.9 + i * 0.02, 36.2) for i in range(len(field_ids))],
        'net_present_cost': [1000.0 * (i + 1) for i in range(len(field_ids))],
        'acres': [40.0 + i for i in range(len(field_ids))],
        'latitude': [36.205] * len(field_ids),
        'longitude': [-119.895 + i * 0.02 for i in range(len(field_ids))],
    }).set_index('field_id')


@pytest.fixture
def simulations():
    return pd.DataFrame({
        'simulation_id': ['S1', 'S2', 'S3'],
        'recruitment_rate': [0.1, 0.5, 0.95],
        'cost': [1000.0, 2000.0, 3000.0],
        'nitrogen_runoff': [-5.0, -12.0, -20.0],
        'phosphorus_runoff': [-1.0, -2.0, -3.0],
    }).set_index('simulation_id')


@pytest.fixture
def scenario_catalog(simulations):
    """Three simulations, one unique field each."""
    membership = pd.DataFrame({
        'simulation_id': ['S1', 'S2', 'S3'],
        'field_id': ['F1', 'F2', 'F3'],
    })
    return Catalog(simulations, make_fields(['F1', 'F2', 'F3']), membership)


@pytest.fixture
def shared_field_catalog(simulations):
    """Like the scenario catalog, but S2 and S3 both enroll F2."""
    membership = pd.DataFrame({
        'simulation_id': ['S1', 'S2', 'S3', 'S3'],
        'field_id': ['F1', 'F2', 'F2', 'F3'],
    })
    return Catalog(simulations, make_fields(['F1', 'F2', 'F3']), membership)


@pytest.fixture
def demo_catalog():
    return generate_demo_catalog(n_simulations=60, grid=5, seed=7)


@pytest.fixture
def store():
    return SelectionStore()


@pytest.fixture
def linked(scenario_catalog, store):
    """Coordinator with scatter, table and map registered."""
    coordinator = Coordinator(store, scenario_catalog)
    views = {
        'scatter': ScatterPlotView(scenario_catalog),
        'table': SimulationTableView(scenario_catalog),
        'map': FieldMapView(scenario_catalog),
    }
    for view in views.values():
        coordinator.register(view)
    return coordinator, views
