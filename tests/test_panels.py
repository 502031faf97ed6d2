"""
Tests for the selection summary and export helpers.
"""
import pytest

from components.export_panel import get_export_columns, prepare_export_data
from components.stats_panel import calculate_selection_stats
from utils.selection import Selection


class TestSelectionStats:
    """Tests for calculate_selection_stats()."""

    def test_empty_selection_describes_everything(self, scenario_catalog):
        stats = calculate_selection_stats(scenario_catalog, Selection.empty())

        assert not stats['selection_active']
        assert stats['selected_simulations'] == 3
        assert stats['selected_fields'] == 3
        assert stats['selected_pct'] == 100.0
        assert stats['outcome_means']['cost'] == pytest.approx(2000.0)

    def test_bucket_selection(self, scenario_catalog):
        stats = calculate_selection_stats(scenario_catalog, Selection.of_bucket('Perfect'))

        assert stats['selection_active']
        assert stats['selected_simulations'] == 1
        assert stats['selected_fields'] == 1
        assert stats['selected_pct'] == pytest.approx(33.3)
        assert stats['mean_recruitment_rate'] == pytest.approx(0.95)
        assert stats['outcome_means']['nitrogen_runoff'] == pytest.approx(-20.0)

    def test_field_selection_counts_enrolling_programs(self, shared_field_catalog):
        stats = calculate_selection_stats(shared_field_catalog, Selection.of_fields(['F2']))
        assert stats['selected_simulations'] == 2
        assert stats['selected_fields'] == 1

    def test_empty_bucket(self, scenario_catalog):
        stats = calculate_selection_stats(scenario_catalog, Selection.of_bucket('High'))
        assert stats['selected_simulations'] == 0
        assert stats['mean_recruitment_rate'] is None


class TestExport:
    """Tests for prepare_export_data()."""

    def test_selection_export(self, scenario_catalog):
        rows = scenario_catalog.selected_simulations(Selection.of_bucket('Medium'))
        export = prepare_export_data(rows)

        assert export['Simulation'].tolist() == ['S2']
        assert export['Recruitment Bucket'].tolist() == ['Medium']
        assert 'Cost ($)' in export.columns
        # Outcomes absent from the data are skipped
        assert 'Infiltration for GDE (AF)' not in export.columns

    def test_export_columns(self):
        columns = get_export_columns()
        assert columns[:3] == ['simulation_id', 'recruitment_rate', 'bucket']
        assert 'irrigation_surface' in columns
