#!/usr/bin/env python3
"""
edit_session.py - Editing session for one opened dictionary

================================================================================
OVERVIEW
================================================================================

An EditSession owns everything the dictionary editor window shows:

    ┌─────────────┐  snapshot()   ┌────────────────────┐  resolve(row)  ┌──────────────────┐
    │ RecordStore │ ────────────► │ FilteredView       │ ─────────────► │ SelectionTracker │
    │ (master)    │               │ Projector          │                │ (master index)   │
    └─────────────┘               └────────────────────┘                └──────────────────┘
           ▲                                                                      │
           └──────────────── insert / update / remove (master index) ◄────────────┘

Every handler leaves the three parts consistent before it returns:

    on_insert()        append blank record, clear filter, select the new record
    on_delete()        remove the selected record, deselect
    on_update(record)  replace the selected record, keep the selection
    on_search(text)    set the filter, deselect
    on_save()          send the snapshot to the backend; success ends the session
    on_abandon()       drop everything; always allowed

================================================================================
BACKEND CALLS
================================================================================

Backend commands go through a CommandRunner and complete later on the main
loop. ``validate`` is advisory: the record is stored whatever the outcome, and
a failure only produces an error notification. ``save`` locks the session
until it completes; insert, delete, update and a second save are refused while
the lock is held. Responses arriving after the session was closed are
dropped.

================================================================================
"""

import logging

from filtered_view import FilteredViewProjector
from record_store import DictionaryRecord, RecordStore
from selection import SelectionTracker

logger = logging.getLogger(__name__)


class EditSession:
    """
    Insert/update/delete orchestration for one dictionary resource.

    Args:
        resource: DictionaryResource being edited
        runner: CommandRunner (or any object with the same ``submit``)
        notify_error: Called with a message when a backend call fails
        on_finished: Called once when the session ends (saved or abandoned)
    """

    def __init__(self, resource, runner, notify_error=None, on_finished=None):
        self.resource = resource
        self.store = RecordStore(resource)
        self.view = FilteredViewProjector(self.store)
        self.selection = SelectionTracker(self.store)

        self._runner = runner
        self._notify_error = notify_error
        self._on_finished = on_finished
        self._listeners = []

        self._loaded = False
        self._saving = False
        self._closed = False

    # ─── State ───────────────────────────────────────────────────────

    @property
    def editable(self):
        return self.store.editable

    @property
    def loaded(self):
        return self._loaded

    @property
    def saving(self):
        return self._saving

    @property
    def closed(self):
        return self._closed

    @property
    def filter_text(self):
        return self.view.filter_text

    @property
    def rows(self):
        return self.view.rows

    @property
    def selected(self):
        return self.selection.selected

    def selected_record(self):
        return self.selection.selected_record()

    @property
    def _mutable(self):
        return self.editable and self._loaded and not self._saving and not self._closed

    @property
    def can_insert(self):
        return self._mutable

    @property
    def can_delete(self):
        return self._mutable and self.selection.is_selected

    @property
    def can_update(self):
        return self._mutable and self.selection.is_selected

    @property
    def can_save(self):
        return self._mutable

    def subscribe(self, callback):
        """Register ``callback(session)``, called after every state change."""
        self._listeners.append(callback)

    def _changed(self):
        for callback in list(self._listeners):
            callback(self)

    def _error(self, message):
        if self._notify_error is not None:
            self._notify_error(message)
        else:
            logger.error(message)

    # ─── Loading ─────────────────────────────────────────────────────

    def open(self):
        """Fetch the records from the backend."""
        self._runner.submit('load', self.resource.path,
                            on_success=self._on_loaded,
                            on_error=self._on_load_failed)

    def _on_loaded(self, records):
        if self._closed:
            logger.debug('load finished after the session was closed, ignored')
            return
        self.store.load(records)
        self.view.recompute()
        self.selection.clear()
        self._loaded = True
        self._changed()

    def _on_load_failed(self, message):
        if self._closed:
            return
        self._error(message)

    # ─── Handlers ────────────────────────────────────────────────────

    def on_select(self, row):
        """
        The user picked ``row`` of the current view.

        Returns:
            bool: True if a record is now selected
        """
        if self._closed:
            return False
        selected = self.selection.pick(self.view, row)
        self._changed()
        return selected

    def on_insert(self):
        """
        Append a blank record and select it.

        The filter is cleared so the new record is visible.

        Returns:
            int or None: Master index of the new record, None if refused
        """
        if not self.can_insert:
            logger.info('insert refused: session is read-only, busy or closed')
            return None
        master_index = self.store.insert()
        self.view.set_filter('')
        self.selection.on_filter_changed()
        self.selection.on_inserted(master_index)
        self._changed()
        return master_index

    def on_delete(self):
        """
        Remove the selected record.

        Returns:
            bool: True if a record was removed
        """
        if not self.can_delete:
            logger.info('delete refused: no selection, read-only, busy or closed')
            return False
        removed = self.store.remove(self.selection.selected)
        self.view.recompute()
        self.selection.on_removed()
        self._changed()
        return removed

    def on_update(self, record):
        """
        Replace the selected record.

        The reading is sent to the backend for a syntax check; the result does
        not affect the stored record.

        Args:
            record: DictionaryRecord or mapping with phrase/bopomofo/frequency

        Returns:
            DictionaryRecord or None: The stored record, None if refused
        """
        if not self.can_update:
            logger.info('update refused: no selection, read-only, busy or closed')
            return None
        if not isinstance(record, DictionaryRecord):
            record = DictionaryRecord.from_dict(record)

        self._runner.submit('validate', record.bopomofo, on_error=self._on_validate_failed)

        stored = self.store.update(self.selection.selected, record)
        self.view.recompute()
        self._changed()
        return stored

    def _on_validate_failed(self, message):
        if self._closed:
            return
        self._error(message)

    def on_search(self, text):
        """Set the filter text. The selection is always dropped."""
        if self._closed:
            return
        self.view.set_filter(text)
        self.selection.on_filter_changed()
        self._changed()

    def on_save(self):
        """
        Send all records to the backend.

        Returns:
            bool: True if the save was started
        """
        if not self.can_save:
            logger.info('save refused: session is read-only, busy or closed')
            return False
        self._saving = True
        self._changed()
        self._runner.submit('save', self.resource.path, self.store.snapshot(),
                            on_success=self._on_saved,
                            on_error=self._on_save_failed)
        return True

    def _on_saved(self, _result):
        if self._closed:
            return
        logger.info(f'Saved {len(self.store)} records to {self.resource.path}')
        self._saving = False
        self._finish()

    def _on_save_failed(self, message):
        if self._closed:
            return
        self._saving = False
        self._changed()
        self._error(message)

    def on_abandon(self):
        """Discard all changes and end the session."""
        if self._closed:
            return
        logger.info(f'Abandoning changes to {self.resource.path}')
        self.store = RecordStore(self.resource)
        self.view = FilteredViewProjector(self.store)
        self.selection = SelectionTracker(self.store)
        self._finish()

    def _finish(self):
        self._closed = True
        self._changed()
        if self._on_finished is not None:
            self._on_finished()
