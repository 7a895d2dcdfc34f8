#!/usr/bin/env python3
# record_store.py - Master list of dictionary records for one open dictionary
#
# The store is a flat, ordered list. Records are addressed by their position
# in this list (the "master index"); the filtered view and the selection refer
# to records only through master indices and never hold their own copies.

import logging
from collections import namedtuple

logger = logging.getLogger(__name__)

# Dictionary categories
CATEGORY_PERSONAL = 'personal'
CATEGORY_SYSTEM = 'system'

EDITABLE_CATEGORIES = frozenset([CATEGORY_PERSONAL])


class ReadOnlyDictionaryError(Exception):
    """Raised when a mutation is attempted on a read-only dictionary."""


def coerce_frequency(value):
    """
    Normalize a frequency value to a non-negative integer.

    Anything that is not a valid non-negative integer (None, NaN, text that
    does not parse, negative numbers, booleans) becomes 0.

    Args:
        value: int, float, str or None

    Returns:
        int: The frequency
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if value >= 0 else 0
    if isinstance(value, float):
        # NaN compares false against everything
        if not value >= 0 or value == float('inf'):
            return 0
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        # leading ASCII digits win, "12abc" -> 12
        digits = ''
        for char in text:
            if char not in '0123456789':
                break
            digits += char
        return int(digits) if digits else 0
    return 0


class DictionaryRecord(namedtuple('DictionaryRecord', ['phrase', 'bopomofo', 'frequency'])):
    """
    One dictionary entry.

    Attributes:
        phrase: The phrase text (字/詞)
        bopomofo: Reading, syllables separated by spaces
        frequency: Non-negative usage frequency
    """
    __slots__ = ()

    def __new__(cls, phrase='', bopomofo='', frequency=0):
        return super().__new__(cls, phrase or '', bopomofo or '', coerce_frequency(frequency))

    @classmethod
    def from_dict(cls, data):
        """Build a record from a mapping with phrase/bopomofo/frequency keys."""
        return cls(data.get('phrase', ''), data.get('bopomofo', ''), data.get('frequency', 0))

    def to_dict(self):
        return {'phrase': self.phrase, 'bopomofo': self.bopomofo, 'frequency': self.frequency}


BLANK_RECORD = DictionaryRecord()


class DictionaryResource(namedtuple('DictionaryResource', ['category', 'name', 'path'])):
    """
    Descriptor of a dictionary file as returned by ``explore``.

    Attributes:
        category: CATEGORY_PERSONAL or CATEGORY_SYSTEM
        name: Dictionary name from its info block
        path: Location of the dictionary file
    """
    __slots__ = ()

    @property
    def editable(self):
        return self.category in EDITABLE_CATEGORIES

    def to_dict(self):
        return {'category': self.category, 'name': self.name, 'path': self.path}


class RecordStore:
    """
    Ordered sequence of DictionaryRecord for one dictionary resource.

    Editability is decided once from the resource category and never changes
    during the session. Mutating a read-only store raises
    ReadOnlyDictionaryError.
    """

    def __init__(self, resource, records=None):
        """
        Args:
            resource: DictionaryResource this store belongs to
            records: Optional initial records
        """
        self.resource = resource
        self._editable = resource.editable
        self._records = []
        if records is not None:
            self.load(records)

    @property
    def editable(self):
        return self._editable

    def __len__(self):
        return len(self._records)

    def __getitem__(self, master_index):
        return self._records[master_index]

    def __iter__(self):
        return iter(self._records)

    def contains_index(self, master_index):
        """Return True if ``master_index`` addresses a record in the store."""
        return isinstance(master_index, int) and 0 <= master_index < len(self._records)

    def _check_editable(self, operation):
        if not self._editable:
            raise ReadOnlyDictionaryError(
                f'Cannot {operation}: {self.resource.path} is a {self.resource.category} dictionary')

    def load(self, records):
        """
        Replace the whole store.

        Args:
            records: Iterable of DictionaryRecord or mappings
        """
        loaded = []
        for record in records:
            if not isinstance(record, DictionaryRecord):
                record = DictionaryRecord.from_dict(record)
            loaded.append(record)
        self._records = loaded
        logger.info(f'Loaded {len(loaded)} records from {self.resource.path}')

    def insert(self, blank=None):
        """
        Append a record to the end of the store.

        Args:
            blank: Record to append; defaults to an empty record

        Returns:
            int: Master index of the new record (length - 1)
        """
        self._check_editable('insert')
        if blank is None:
            blank = BLANK_RECORD
        elif not isinstance(blank, DictionaryRecord):
            blank = DictionaryRecord.from_dict(blank)
        self._records.append(blank)
        return len(self._records) - 1

    def remove(self, master_index):
        """
        Delete the record at ``master_index``.

        Later records shift down by one. An index that is not in the store is
        ignored.

        Returns:
            bool: True if a record was removed
        """
        self._check_editable('remove')
        if not self.contains_index(master_index):
            logger.debug(f'remove: index {master_index} not in store, ignored')
            return False
        del self._records[master_index]
        return True

    def update(self, master_index, record):
        """
        Replace the record at ``master_index`` in place.

        The frequency is coerced to a non-negative integer. Phrase and reading
        are taken as given.

        Raises:
            ReadOnlyDictionaryError: If the store is read-only
            IndexError: If ``master_index`` is not in the store
        """
        self._check_editable('update')
        if not self.contains_index(master_index):
            raise IndexError(f'update: index {master_index} not in store')
        if isinstance(record, DictionaryRecord):
            # re-run coercion in case the tuple was built with _make/_replace
            record = DictionaryRecord(record.phrase, record.bopomofo, record.frequency)
        else:
            record = DictionaryRecord.from_dict(record)
        self._records[master_index] = record
        return record

    def snapshot(self):
        """Return a copy of the ordered record list, used as the save payload."""
        return list(self._records)
