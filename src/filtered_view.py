#!/usr/bin/env python3
# filtered_view.py - Filtered, order-preserving projection of a RecordStore
#
# The view is never edited. It is rebuilt from the store every time the
# filter text or the store changes, so a row can never point at a record that
# moved or vanished.

import logging
from collections import namedtuple

logger = logging.getLogger(__name__)

ViewRow = namedtuple('ViewRow', ['master_index', 'record'])


def project(records, filter_text):
    """
    Compute the visible rows for ``filter_text``.

    A record is visible when its phrase contains ``filter_text``
    (case-sensitive). The empty filter matches every record. Rows keep the
    master order.

    Args:
        records: Ordered sequence of DictionaryRecord (RecordStore.snapshot())
        filter_text: Substring to look for in the phrase

    Returns:
        list: ViewRow(master_index, record) for every visible record
    """
    if filter_text is None:
        filter_text = ''
    return [ViewRow(index, record)
            for index, record in enumerate(records)
            if filter_text in record.phrase]


class FilteredViewProjector:
    """
    Holds the current filter text and the rows computed from it.

    ``recompute()`` must be called after every change to the store or the
    filter; the projector does not observe the store.
    """

    def __init__(self, store, filter_text=''):
        self._store = store
        self._filter_text = filter_text
        self._rows = []
        self.recompute()

    @property
    def filter_text(self):
        return self._filter_text

    @property
    def rows(self):
        return list(self._rows)

    def set_filter(self, filter_text):
        """Set the filter text and recompute the rows."""
        self._filter_text = filter_text or ''
        self.recompute()

    def recompute(self):
        """Rebuild the rows from the store snapshot and the current filter."""
        self._rows = project(self._store.snapshot(), self._filter_text)
        logger.debug(f'View recomputed: {len(self._rows)} of {len(self._store)} rows '
                     f'for filter "{self._filter_text}"')
        return self.rows

    def resolve(self, row):
        """
        Map a view-local row number to its master index.

        Args:
            row: Position in the current view

        Returns:
            int or None: The master index, or None if ``row`` is not visible
        """
        if not isinstance(row, int) or row < 0 or row >= len(self._rows):
            return None
        return self._rows[row].master_index

    def row_of(self, master_index):
        """Return the view row showing ``master_index``, or None if hidden."""
        for row, view_row in enumerate(self._rows):
            if view_row.master_index == master_index:
                return row
        return None

    def __len__(self):
        return len(self._rows)

    def counts(self):
        """
        Returns:
            tuple: (visible, total) record counts
        """
        return len(self._rows), len(self._store)
