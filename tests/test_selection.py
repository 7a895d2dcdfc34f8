#!/usr/bin/env python3
# tests/test_selection.py - Unit tests for selection.py

import pytest
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from filtered_view import FilteredViewProjector
from record_store import CATEGORY_PERSONAL, DictionaryRecord, DictionaryResource, RecordStore
from selection import SelectionTracker

PERSONAL = DictionaryResource(CATEGORY_PERSONAL, 'My Dictionary', '/tmp/personal.json')


class TestSelectionTracker:
    """Test suite for SelectionTracker"""

    @pytest.fixture
    def store(self):
        return RecordStore(PERSONAL, [
            DictionaryRecord("a", "ㄚ", 5),
            DictionaryRecord("b", "ㄅ", 3),
            DictionaryRecord("ab", "ㄚ ㄅ", 1),
        ])

    @pytest.fixture
    def tracker(self, store):
        return SelectionTracker(store)

    def test_starts_unselected(self, tracker):
        assert tracker.selected is None
        assert not tracker.is_selected
        assert tracker.selected_record() is None

    def test_select(self, tracker):
        assert tracker.select(1) is True
        assert tracker.selected == 1
        assert tracker.selected_record().phrase == "b"

    def test_select_out_of_range_is_refused(self, tracker):
        tracker.select(0)
        assert tracker.select(3) is False
        assert tracker.selected is None

    def test_pick_resolves_view_row(self, store, tracker):
        view = FilteredViewProjector(store, "b")
        assert tracker.pick(view, 1) is True
        assert tracker.selected == 2

    def test_pick_invalid_row(self, store, tracker):
        view = FilteredViewProjector(store, "b")
        assert tracker.pick(view, 5) is False
        assert not tracker.is_selected

    def test_filter_change_always_deselects(self, store, tracker):
        view = FilteredViewProjector(store)
        tracker.pick(view, 0)
        # record "a" is still visible under the new filter
        view.set_filter("a")
        tracker.on_filter_changed()
        assert not tracker.is_selected

    def test_inserted_is_selected(self, store, tracker):
        index = store.insert()
        tracker.on_inserted(index)
        assert tracker.selected == 3

    def test_removed_deselects(self, store, tracker):
        tracker.select(1)
        store.remove(1)
        tracker.on_removed()
        assert not tracker.is_selected

    def test_selected_record_after_store_shrinks(self, store, tracker):
        tracker.select(2)
        store.load([])
        assert tracker.selected_record() is None
        assert tracker.selected is None
