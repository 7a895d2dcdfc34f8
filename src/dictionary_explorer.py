#!/usr/bin/env python3
# dictionary_explorer.py - List of available dictionaries

import logging

import gi
gi.require_version('Gtk', '3.0')
from gi.repository import Gtk

from backend import INFO_KEYS
from dictionary_editor import DictionaryEditorWindow
from record_store import CATEGORY_PERSONAL, DictionaryResource

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    'system': "System",
    'personal': "Personal",
}


class DictionaryExplorerWindow(Gtk.Window):
    """
    Shows the system and personal dictionaries with their info block.

    The personal dictionary can be opened in the editor, replaced from a CSV
    file (Import) or written to one (Export). System dictionaries open
    read-only.
    """

    def __init__(self, runner):
        super().__init__(title="ibus-zhuyin Dictionaries")
        self.set_default_size(720, 480)
        self.set_border_width(10)

        self.runner = runner
        self.editor = None

        self._build_ui()
        self.refresh()

    def _build_ui(self):
        main_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)
        self.add(main_box)

        scroll = Gtk.ScrolledWindow()
        scroll.set_policy(Gtk.PolicyType.AUTOMATIC, Gtk.PolicyType.AUTOMATIC)
        scroll.set_min_content_height(200)

        # ListStore: category, name, path
        self.list_store = Gtk.ListStore(str, str, str)
        self.tree = Gtk.TreeView(model=self.list_store)
        self.tree.get_selection().connect('changed', self._on_selection_changed)
        self.tree.connect('row-activated', lambda tree, path, column: self._on_edit_clicked(None))

        renderer = Gtk.CellRendererText()
        column = Gtk.TreeViewColumn("Type", renderer)
        column.set_cell_data_func(renderer, self._category_cell_data)
        self.tree.append_column(column)
        for title, column_id in [("Name", 1), ("Path", 2)]:
            column = Gtk.TreeViewColumn(title, Gtk.CellRendererText(), text=column_id)
            column.set_resizable(True)
            self.tree.append_column(column)

        scroll.add(self.tree)
        main_box.pack_start(scroll, True, True, 0)

        info_frame = Gtk.Frame(label="Information")
        self.info_grid = Gtk.Grid(column_spacing=10, row_spacing=4)
        self.info_grid.set_border_width(10)
        self.info_labels = {}
        for row, key in enumerate(INFO_KEYS):
            self.info_grid.attach(Gtk.Label(label=f"{key.capitalize()}:", xalign=0), 0, row, 1, 1)
            value = Gtk.Label(xalign=0, selectable=True)
            self.info_labels[key] = value
            self.info_grid.attach(value, 1, row, 1, 1)
        info_frame.add(self.info_grid)
        main_box.pack_start(info_frame, False, False, 0)

        button_box = Gtk.Box(spacing=6)
        self.edit_button = Gtk.Button(label="Edit")
        self.edit_button.connect('clicked', self._on_edit_clicked)
        button_box.pack_start(self.edit_button, False, False, 0)

        self.import_button = Gtk.Button(label="Import...")
        self.import_button.connect('clicked', self._on_import_clicked)
        button_box.pack_start(self.import_button, False, False, 0)

        self.export_button = Gtk.Button(label="Export...")
        self.export_button.connect('clicked', self._on_export_clicked)
        button_box.pack_start(self.export_button, False, False, 0)

        refresh_button = Gtk.Button(label="Refresh")
        refresh_button.connect('clicked', lambda w: self.refresh())
        button_box.pack_end(refresh_button, False, False, 0)
        main_box.pack_start(button_box, False, False, 0)

        self._update_buttons()

    def _category_cell_data(self, column, cell, model, tree_iter, data):
        category = model.get_value(tree_iter, 0)
        cell.set_property('text', CATEGORY_LABELS.get(category, category))

    def selected_resource(self):
        model, tree_iter = self.tree.get_selection().get_selected()
        if tree_iter is None:
            return None
        return DictionaryResource(*model[tree_iter][:3])

    def _update_buttons(self):
        resource = self.selected_resource()
        has_personal = any(row[0] == CATEGORY_PERSONAL for row in self.list_store)
        self.edit_button.set_sensitive(resource is not None)
        self.import_button.set_sensitive(has_personal)
        self.export_button.set_sensitive(has_personal)

    # ─── Backend calls ───────────────────────────────────────────────

    def refresh(self):
        """Reload the dictionary list."""
        self.runner.submit('explore', on_success=self._on_explored, on_error=self._show_error)

    def _on_explored(self, resources):
        self.list_store.clear()
        for resource in resources:
            self.list_store.append([resource.category, resource.name, resource.path])
        self._show_info(None)
        self._update_buttons()

    def _on_selection_changed(self, tree_selection):
        resource = self.selected_resource()
        self._update_buttons()
        if resource is None:
            self._show_info(None)
            return
        self.runner.submit('info', resource.path, on_success=self._show_info,
                           on_error=self._show_error)

    def _show_info(self, info):
        for key, label in self.info_labels.items():
            label.set_text(info.get(key, '') if info else '')

    # ─── Actions ─────────────────────────────────────────────────────

    def _on_edit_clicked(self, widget):
        resource = self.selected_resource()
        if resource is None or self.editor is not None:
            return
        logger.info(f'Opening {resource.path} ({resource.category})')
        self.editor = DictionaryEditorWindow(resource, self.runner, on_back=self._on_editor_closed)
        self.editor.set_transient_for(self)
        self.editor.show_all()
        self.hide()

    def _on_editor_closed(self):
        self.editor = None
        self.show_all()
        self.refresh()

    def _choose_csv(self, title, action, accept_label):
        dialog = Gtk.FileChooserDialog(
            title=title,
            parent=self,
            action=action
        )
        dialog.add_buttons(
            Gtk.STOCK_CANCEL, Gtk.ResponseType.CANCEL,
            accept_label, Gtk.ResponseType.OK
        )
        file_filter = Gtk.FileFilter()
        file_filter.set_name("CSV files")
        file_filter.add_pattern("*.csv")
        dialog.add_filter(file_filter)
        if action == Gtk.FileChooserAction.SAVE:
            dialog.set_do_overwrite_confirmation(True)
            dialog.set_current_name("personal.csv")

        response = dialog.run()
        path = dialog.get_filename() if response == Gtk.ResponseType.OK else None
        dialog.destroy()
        return path

    def _on_import_clicked(self, widget):
        dialog = Gtk.MessageDialog(
            transient_for=self,
            flags=0,
            message_type=Gtk.MessageType.WARNING,
            buttons=Gtk.ButtonsType.OK_CANCEL,
            text="Replace the personal dictionary?"
        )
        dialog.format_secondary_text(
            "Importing overwrites every entry of the personal dictionary "
            "with the contents of the selected CSV file.")
        response = dialog.run()
        dialog.destroy()
        if response != Gtk.ResponseType.OK:
            return

        path = self._choose_csv("Import Dictionary", Gtk.FileChooserAction.OPEN, "Import")
        if path is None:
            return
        self.runner.submit('import_file', path,
                           on_success=lambda count: self._on_transferred(f"Imported {count} entries"),
                           on_error=self._show_error)

    def _on_export_clicked(self, widget):
        path = self._choose_csv("Export Dictionary", Gtk.FileChooserAction.SAVE, "Export")
        if path is None:
            return
        self.runner.submit('export_file', path,
                           on_success=lambda count: self._on_transferred(f"Exported {count} entries"),
                           on_error=self._show_error)

    def _on_transferred(self, message):
        dialog = Gtk.MessageDialog(
            transient_for=self,
            flags=0,
            message_type=Gtk.MessageType.INFO,
            buttons=Gtk.ButtonsType.OK,
            text=message
        )
        dialog.run()
        dialog.destroy()
        self.refresh()

    def _show_error(self, message):
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
