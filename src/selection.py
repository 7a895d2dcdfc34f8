#!/usr/bin/env python3
# selection.py - The single active record of the dictionary editor
#
#     ┌──────────────┐   pick(row) / insert   ┌────────────────────┐
#     │  Unselected  │ ─────────────────────► │ Selected(index)    │
#     │              │ ◄───────────────────── │                    │
#     └──────────────┘  filter change/remove  └────────────────────┘
#
# The selection is dropped on every filter change, even when the selected
# record is still visible under the new filter.

import logging

logger = logging.getLogger(__name__)


class SelectionTracker:
    """Tracks at most one selected master index."""

    def __init__(self, store):
        self._store = store
        self._master_index = None

    @property
    def selected(self):
        """The selected master index, or None when unselected."""
        return self._master_index

    @property
    def is_selected(self):
        return self._master_index is not None

    def select(self, master_index):
        """
        Select ``master_index``.

        An index that is not in the store leaves the tracker unselected.

        Returns:
            bool: True if the tracker is now Selected
        """
        if master_index is None or not self._store.contains_index(master_index):
            logger.debug(f'select: index {master_index} not in store')
            self._master_index = None
            return False
        self._master_index = master_index
        return True

    def pick(self, view, row):
        """
        Select the record shown at ``row`` of ``view``.

        Args:
            view: FilteredViewProjector the row belongs to
            row: View-local row number

        Returns:
            bool: True if the tracker is now Selected
        """
        return self.select(view.resolve(row))

    def clear(self):
        self._master_index = None

    def on_filter_changed(self):
        self.clear()

    def on_inserted(self, master_index):
        self.select(master_index)

    def on_removed(self):
        self.clear()

    def selected_record(self):
        """Return the selected DictionaryRecord, or None."""
        if self._master_index is None:
            return None
        if not self._store.contains_index(self._master_index):
            # store replaced underneath us
            self._master_index = None
            return None
        return self._store[self._master_index]
