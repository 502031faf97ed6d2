"""
Tests for the Selection value and the session-scoped SelectionStore.
"""
import logging

import pytest

from utils.selection import (
    LEVEL_BUCKET,
    LEVEL_FIELD,
    LEVEL_NONE,
    LEVEL_SIMULATION,
    InvalidSelectionError,
    Selection,
    SelectionStore,
)


class TestSelection:
    """Tests for Selection constructors."""

    def test_empty_by_default(self):
        selection = Selection()
        assert selection.level == LEVEL_NONE
        assert selection.is_empty
        assert selection.describe() == "No selection"

    def test_of_simulations_stringifies_ids(self):
        selection = Selection.of_simulations([1, 2], origin='scatter')
        assert selection.level == LEVEL_SIMULATION
        assert selection.ids == frozenset({'1', '2'})
        assert selection.origin == 'scatter'

    def test_no_ids_gives_empty(self):
        assert Selection.of_simulations([], origin='table').is_empty
        assert Selection.of_fields([], origin='map').is_empty

    def test_of_fields(self):
        selection = Selection.of_fields(['F1'])
        assert selection.level == LEVEL_FIELD
        assert selection.describe() == "1 field"

    def test_of_bucket(self):
        selection = Selection.of_bucket('Perfect')
        assert selection.level == LEVEL_BUCKET
        assert not selection.is_empty
        assert selection.describe() == "Bucket: Perfect"

    def test_bucket_requires_name(self):
        with pytest.raises(InvalidSelectionError):
            Selection(LEVEL_BUCKET)

    def test_unknown_level_rejected(self):
        with pytest.raises(InvalidSelectionError):
            Selection('region')

    def test_equal_values_compare_equal(self):
        assert Selection.of_simulations(['a', 'b']) == Selection.of_simulations(['b', 'a'])

    def test_immutable(self):
        selection = Selection.of_simulations(['a'])
        with pytest.raises(AttributeError):
            selection.level = LEVEL_FIELD


class TestSelectionStore:
    """Tests for SelectionStore get/set/subscribe."""

    def test_starts_empty(self, store):
        assert store.get().is_empty
        assert store.version == 0

    def test_set_notifies_after_change(self, store):
        seen = []
        store.subscribe(lambda sel: seen.append((sel, store.get())))

        selection = Selection.of_simulations(['S1'])
        store.set(selection)

        assert seen == [(selection, selection)]
        assert store.version == 1

    def test_set_rejects_non_selection(self, store):
        with pytest.raises(TypeError):
            store.set({'ids': ['S1']})
        assert store.version == 0

    def test_clear(self, store):
        store.set(Selection.of_simulations(['S1']))
        store.clear(origin='reset')
        assert store.get().is_empty
        assert store.get().origin == 'reset'
        assert store.version == 2

    def test_unsubscribe(self, store):
        calls = []
        unsubscribe = store.subscribe(calls.append)
        store.set(Selection.of_simulations(['S1']))
        unsubscribe()
        store.set(Selection.of_simulations(['S2']))

        assert len(calls) == 1
        # A second call is harmless
        unsubscribe()

    def test_observer_failure_does_not_stop_others(self, store, caplog):
        calls = []

        def broken(selection):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(calls.append)

        with caplog.at_level(logging.ERROR, logger='utils.selection'):
            store.set(Selection.of_simulations(['S1']))

        assert len(calls) == 1
        assert "observer" in caplog.text

    def test_initial_value(self):
        initial = Selection.of_bucket('Low')
        assert SelectionStore(initial).get() == initial
