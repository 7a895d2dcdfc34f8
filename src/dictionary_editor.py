#!/usr/bin/env python3
# dictionary_editor.py - GTK window for editing one dictionary
#
# The window is a thin view over an EditSession: every button and entry
# forwards to a session handler, and the session notifies the window, which
# then rebuilds the list from session.rows.

import logging

import gi
gi.require_version('Gtk', '3.0')
gi.require_version('Gdk', '3.0')
from gi.repository import Gtk, Gdk

import keymap
from edit_session import EditSession
from record_store import DictionaryRecord

logger = logging.getLogger(__name__)

# ListStore columns
COL_INDEX, COL_PHRASE, COL_BOPOMOFO, COL_FREQUENCY = range(4)


class PhraseEditor(Gtk.Box):
    """
    Right-hand pane: fields of the selected record and an on-screen Bopomofo
    keyboard. Changes are kept locally until the OK button is pressed.
    """

    def __init__(self, on_change, keymap_id=None):
        super().__init__(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        self.set_border_width(10)
        self._on_change = on_change
        self._keymap = keymap.get_keymap(keymap_id)
        self._widgets = []

        grid = Gtk.Grid(column_spacing=6, row_spacing=6)
        self.phrase_entry = Gtk.Entry()
        self.bopomofo_entry = Gtk.Entry()
        self.frequency_entry = Gtk.Entry()
        self.frequency_entry.set_input_purpose(Gtk.InputPurpose.DIGITS)
        for row, (label, entry) in enumerate([("Phrase:", self.phrase_entry),
                                              ("Reading:", self.bopomofo_entry),
                                              ("Frequency:", self.frequency_entry)]):
            grid.attach(Gtk.Label(label=label, xalign=0), 0, row, 1, 1)
            entry.set_hexpand(True)
            grid.attach(entry, 1, row, 1, 1)
            self._widgets.append(entry)
        self.pack_start(grid, False, False, 0)

        # On-screen keyboard, rows indented like a physical keyboard
        keyboard = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=4)
        for row_index, (key_row, symbol_row) in enumerate(zip(self._keymap.keys, self._keymap.layout)):
            row_box = Gtk.Box(spacing=4)
            row_box.set_margin_start(10 * row_index)
            for key, symbol in zip(key_row, symbol_row):
                button = Gtk.Button(label=symbol)
                button.set_tooltip_text(key)
                button.connect('clicked', self._on_keycap_clicked, symbol)
                row_box.pack_start(button, False, False, 0)
                self._widgets.append(button)
            keyboard.pack_start(row_box, False, False, 0)

        action_row = Gtk.Box(spacing=4)
        clear_button = Gtk.Button(label="Clear Reading")
        clear_button.connect('clicked', lambda w: self.bopomofo_entry.set_text(''))
        action_row.pack_start(clear_button, False, False, 0)
        space_button = Gtk.Button(label="Space")
        space_button.connect('clicked', self._on_keycap_clicked, ' ')
        action_row.pack_start(space_button, True, True, 0)
        ok_button = Gtk.Button(label="OK")
        ok_button.get_style_context().add_class('suggested-action')
        ok_button.connect('clicked', self._on_ok_clicked)
        action_row.pack_start(ok_button, False, False, 0)
        self._widgets.extend([clear_button, space_button, ok_button])
        keyboard.pack_start(action_row, False, False, 0)

        self.pack_start(keyboard, False, False, 10)
        self.set_record(None, editable=False)

    def set_record(self, record, editable):
        """Show ``record`` (None clears the fields) and set sensitivity."""
        if record is None:
            record = DictionaryRecord()
        self.phrase_entry.set_text(record.phrase)
        self.bopomofo_entry.set_text(record.bopomofo)
        self.frequency_entry.set_text(str(record.frequency))
        self.set_editable(editable)

    def set_editable(self, editable):
        for widget in self._widgets:
            widget.set_sensitive(editable)

    def _on_keycap_clicked(self, button, symbol):
        self.bopomofo_entry.set_text(self.bopomofo_entry.get_text() + symbol)

    def _on_ok_clicked(self, button):
        self._on_change(DictionaryRecord(self.phrase_entry.get_text(),
                                         self.bopomofo_entry.get_text(),
                                         self.frequency_entry.get_text()))


class DictionaryEditorWindow(Gtk.Window):
    """
    GTK Window for editing the records of one dictionary.

    Args:
        resource: DictionaryResource to edit
        runner: CommandRunner used for load/validate/save
        on_back: Called after the session ended (saved or abandoned)
    """

    def __init__(self, resource, runner, on_back=None):
        super().__init__(title=f"Dictionary Editor - {resource.name}")
        self.set_default_size(900, 600)
        self.set_border_width(10)

        self._on_back = on_back
        self._refreshing = False
        self._editor_index = None

        self.session = EditSession(resource, runner,
                                   notify_error=self._show_error,
                                   on_finished=self._on_session_finished)
        self.session.subscribe(self._on_session_changed)

        self._build_ui()
        self._on_session_changed(self.session)

        self.connect('key-press-event', self._on_key_press)
        self.connect('delete-event', self._on_close)

        self.session.open()

    def _build_ui(self):
        """Build the window UI."""
        paned = Gtk.Paned(orientation=Gtk.Orientation.HORIZONTAL)
        self.add(paned)

        left = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)

        # === Actions ===
        button_box = Gtk.Box(spacing=6)
        self.insert_button = Gtk.Button(label="Insert")
        self.insert_button.connect('clicked', lambda w: self.session.on_insert())
        button_box.pack_start(self.insert_button, False, False, 0)

        self.delete_button = Gtk.Button(label="Delete")
        self.delete_button.connect('clicked', self._on_delete_clicked)
        button_box.pack_start(self.delete_button, False, False, 0)

        abandon_button = Gtk.Button(label="Discard Changes")
        abandon_button.connect('clicked', lambda w: self.session.on_abandon())
        button_box.pack_start(abandon_button, False, False, 0)

        self.save_button = Gtk.Button(label="Save")
        self.save_button.connect('clicked', lambda w: self.session.on_save())
        button_box.pack_start(self.save_button, False, False, 0)
        left.pack_start(button_box, False, False, 0)

        # === Search ===
        self.search_entry = Gtk.SearchEntry()
        self.search_entry.set_placeholder_text("Search phrases...")
        self._search_handler = self.search_entry.connect('changed', self._on_search_changed)
        left.pack_start(self.search_entry, False, False, 0)

        # === Records ===
        scroll = Gtk.ScrolledWindow()
        scroll.set_policy(Gtk.PolicyType.AUTOMATIC, Gtk.PolicyType.AUTOMATIC)
        scroll.set_min_content_height(300)

        # ListStore: master index, phrase, reading, frequency
        self.list_store = Gtk.ListStore(int, str, str, int)
        self.tree = Gtk.TreeView(model=self.list_store)
        self.tree.get_selection().set_mode(Gtk.SelectionMode.SINGLE)
        self.tree.get_selection().connect('changed', self._on_tree_selection_changed)

        for title, column_id, min_width in [("Phrase", COL_PHRASE, 80),
                                            ("Reading", COL_BOPOMOFO, 140),
                                            ("Frequency", COL_FREQUENCY, 80)]:
            renderer = Gtk.CellRendererText()
            column = Gtk.TreeViewColumn(title, renderer, text=column_id)
            column.set_resizable(True)
            column.set_min_width(min_width)
            self.tree.append_column(column)

        scroll.add(self.tree)
        left.pack_start(scroll, True, True, 0)

        self.count_label = Gtk.Label(xalign=0)
        left.pack_start(self.count_label, False, False, 0)

        paned.pack1(left, True, False)

        self.phrase_editor = PhraseEditor(self._on_record_changed)
        paned.pack2(self.phrase_editor, True, False)

    # ─── Session → UI ────────────────────────────────────────────────

    def _on_session_changed(self, session):
        """Rebuild the list from the session's view and sync the widgets."""
        if session.closed:
            return
        self._refreshing = True
        try:
            # An insert clears the filter; mirror it without firing on_search
            if self.search_entry.get_text() != session.filter_text:
                self.search_entry.handler_block(self._search_handler)
                self.search_entry.set_text(session.filter_text)
                self.search_entry.handler_unblock(self._search_handler)

            self.list_store.clear()
            for row in session.rows:
                record = row.record
                self.list_store.append([row.master_index, record.phrase,
                                        record.bopomofo, record.frequency])

            tree_selection = self.tree.get_selection()
            row = session.view.row_of(session.selected) if session.selected is not None else None
            if row is None:
                tree_selection.unselect_all()
            else:
                tree_selection.select_path(Gtk.TreePath.new_from_indices([row]))
                self.tree.scroll_to_cell(Gtk.TreePath.new_from_indices([row]), None, False, 0, 0)
        finally:
            self._refreshing = False

        self.insert_button.set_sensitive(session.can_insert)
        self.delete_button.set_sensitive(session.can_delete)
        self.save_button.set_sensitive(session.can_save)

        if session.selected != self._editor_index:
            self._editor_index = session.selected
            self.phrase_editor.set_record(session.selected_record(), session.can_update)
        elif session.selected is not None:
            self.phrase_editor.set_editable(session.can_update)

        visible, total = session.view.counts()
        if session.saving:
            self.count_label.set_text("Saving...")
        elif visible == total:
            self.count_label.set_text(f"{total} entries")
        else:
            self.count_label.set_text(f"Showing {visible} of {total} entries")

    def _on_session_finished(self):
        if self._on_back is not None:
            self._on_back()
        self.destroy()

    # ─── UI → Session ────────────────────────────────────────────────

    def _on_tree_selection_changed(self, tree_selection):
        if self._refreshing:
            return
        model, tree_iter = tree_selection.get_selected()
        if tree_iter is None:
            return
        row = model.get_path(tree_iter).get_indices()[0]
        self.session.on_select(row)

    def _on_record_changed(self, record):
        """OK in the phrase editor; show the record as stored (frequency coerced)."""
        stored = self.session.on_update(record)
        if stored is not None:
            self.phrase_editor.set_record(stored, self.session.can_update)

    def _on_search_changed(self, entry):
        """Handle search text change."""
        self.session.on_search(entry.get_text())

    def _on_delete_clicked(self, widget):
        """Handle delete button click."""
        record = self.session.selected_record()
        if record is None:
            return
        dialog = Gtk.MessageDialog(
            transient_for=self,
            flags=0,
            message_type=Gtk.MessageType.QUESTION,
            buttons=Gtk.ButtonsType.YES_NO,
            text=f'Delete "{record.phrase}" ({record.bopomofo})?'
        )
        response = dialog.run()
        dialog.destroy()
        if response == Gtk.ResponseType.YES:
            self.session.on_delete()

    def _on_key_press(self, widget, event):
        """Handle key press events."""
        if event.keyval == Gdk.KEY_Escape:
            self.session.on_abandon()
            return True
        return False

    def _on_close(self, widget, event):
        """Closing the window discards unsaved changes."""
        if not self.session.closed:
            self.session.on_abandon()
        return False

    def _show_error(self, message):
        """Show an error dialog."""
        dialog = Gtk.MessageDialog(
            transient_for=self,
            flags=0,
            message_type=Gtk.MessageType.ERROR,
            buttons=Gtk.ButtonsType.OK,
            text="Error"
        )
        dialog.format_secondary_text(message)
        dialog.run()
        dialog.destroy()
