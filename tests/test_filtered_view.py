#!/usr/bin/env python3
# tests/test_filtered_view.py - Unit tests for filtered_view.py

import pytest
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from filtered_view import FilteredViewProjector, ViewRow, project
from record_store import CATEGORY_PERSONAL, DictionaryRecord, DictionaryResource, RecordStore

PERSONAL = DictionaryResource(CATEGORY_PERSONAL, 'My Dictionary', '/tmp/personal.json')

RECORDS = [
    DictionaryRecord("a", "ㄚ", 5),
    DictionaryRecord("b", "ㄅ", 3),
    DictionaryRecord("ab", "ㄚ ㄅ", 1),
    DictionaryRecord("A", "ㄚ", 2),
]


class TestProject:
    """Test suite for project()"""

    def test_filter_selects_matching_phrases(self):
        records = [DictionaryRecord("a", "ㄚ", 5), DictionaryRecord("b", "ㄅ", 3)]
        assert project(records, "a") == [ViewRow(0, DictionaryRecord("a", "ㄚ", 5))]

    def test_empty_filter_matches_all(self):
        rows = project(RECORDS, "")
        assert [row.master_index for row in rows] == [0, 1, 2, 3]

    def test_none_filter_matches_all(self):
        assert len(project(RECORDS, None)) == len(RECORDS)

    def test_case_sensitive(self):
        rows = project(RECORDS, "A")
        assert [row.master_index for row in rows] == [3]

    def test_order_preserved(self):
        rows = project(RECORDS, "b")
        assert [row.master_index for row in rows] == [1, 2]

    def test_rows_point_at_master_records(self):
        for filter_text in ["", "a", "b", "z"]:
            for row in project(RECORDS, filter_text):
                assert RECORDS[row.master_index] == row.record
                assert filter_text in row.record.phrase

    def test_idempotent(self):
        assert project(RECORDS, "a") == project(RECORDS, "a")

    def test_reading_is_not_searched(self):
        assert project(RECORDS, "ㄚ") == []


class TestFilteredViewProjector:
    """Test suite for FilteredViewProjector"""

    @pytest.fixture
    def store(self):
        return RecordStore(PERSONAL, RECORDS)

    @pytest.fixture
    def view(self, store):
        return FilteredViewProjector(store)

    def test_initial_rows(self, view):
        assert len(view) == 4
        assert view.filter_text == ""

    def test_set_filter(self, view):
        view.set_filter("b")
        assert [row.master_index for row in view.rows] == [1, 2]

    def test_resolve(self, view):
        view.set_filter("b")
        assert view.resolve(0) == 1
        assert view.resolve(1) == 2
        assert view.resolve(2) is None
        assert view.resolve(-1) is None
        assert view.resolve(None) is None

    def test_row_of(self, view):
        view.set_filter("b")
        assert view.row_of(2) == 1
        assert view.row_of(0) is None

    def test_recompute_after_update(self, store, view):
        view.set_filter("a")
        store.update(0, DictionaryRecord("z", "ㄗ", 1))
        view.recompute()
        assert [row.master_index for row in view.rows] == [2]

    def test_recompute_after_remove(self, store, view):
        store.remove(0)
        view.recompute()
        for row in view.rows:
            assert store.contains_index(row.master_index)
            assert store[row.master_index] == row.record

    def test_rows_is_a_copy(self, view):
        view.rows.clear()
        assert len(view) == 4

    def test_counts(self, view):
        view.set_filter("b")
        assert view.counts() == (2, 4)
