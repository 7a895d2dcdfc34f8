#!/usr/bin/env python3
# settings_panel.py - GUI Settings Panel for ibus-zhuyin

import gi
gi.require_version('Gtk', '3.0')
gi.require_version('Gdk', '3.0')
from gi.repository import Gtk, Gdk, GLib
import logging
logger = logging.getLogger(__name__)

import preferences

# (config key, label) per tab, in display order
TYPING_TOGGLES = [
    ('switch_lang_with_shift', "Switch Chinese/English with Shift"),
    ('enable_caps_lock', "Switch Chinese/English with Caps Lock"),
    ('lock_chinese_on_caps_lock', "Stay in Chinese mode while Caps Lock is on"),
    ('enable_fullwidth_toggle_key', "Toggle full/half width with Shift+Space"),
    ('esc_clean_all_buf', "Esc clears the whole composition buffer"),
    ('full_shape_symbols', "Full-width symbols"),
    ('upper_case_with_shift', "Shift + letter types upper case"),
    ('easy_symbols_with_shift', "Shift + letter types easy symbols"),
    ('easy_symbols_with_shift_ctrl', "Ctrl + Shift + letter types easy symbols"),
    ('default_full_space', "Full-width space by default"),
    ('default_english', "English mode by default"),
    ('output_simp_chinese', "Output Simplified Chinese"),
    ('show_notification', "Show mode change notifications"),
]

CANDIDATE_TOGGLES = [
    ('enable_auto_learn', "Learn phrases automatically"),
    ('add_phrase_forward', "Add phrases forward of the cursor"),
    ('phrase_choice_rearward', "Choose phrases rearward of the cursor"),
    ('cursor_cand_list', "Move cursor in the candidate list"),
    ('show_cand_with_space_key', "Space opens the candidate list"),
    ('advance_after_selection', "Advance cursor after selection"),
    ('sort_candidates_by_frequency', "Sort candidates by frequency"),
]

NUMBER_FIELDS = [
    ('cand_per_row', "Candidates per row:"),
    ('cand_per_page', "Candidates per page:"),
    ('font_size', "Font size:"),
]

COLOR_FIELDS = [
    ('font_fg_color', "Text:"),
    ('font_bg_color', "Background:"),
    ('font_highlight_fg_color', "Highlighted text:"),
    ('font_highlight_bg_color', "Highlighted background:"),
    ('font_number_fg_color', "Selection keys:"),
    ('cand_list_border_color', "Border:"),
]

KEYBIND_LABELS = {
    'toggle_simplified_chinese': "Toggle Simplified Chinese",
    'toggle_hsu_keyboard': "Toggle Hsu keyboard",
}


class SettingsPanel(Gtk.Window):
    """
    GUI Settings Panel for ibus-zhuyin configuration.

    Features:
    - Typing and candidate toggles
    - Candidate window layout, font and colors
    - Keyboard layout and keybindings
    - Symbol tables
    - Import/export configuration

    Args:
        runner: CommandRunner for load_config/save_config/import_config/
                export_config/get_system_fonts
    """
    def __init__(self, runner):
        super().__init__(title="ibus-zhuyin Preferences")

        self.set_default_size(720, 560)
        self.set_border_width(10)

        self.runner = runner
        self.config = preferences.default_config()
        self._syncing = False
        self.bool_checks = {}
        self.number_spins = {}
        self.color_entries = {}
        self.keybind_buttons = {}

        # Create UI
        self.create_ui()
        self.set_sensitive(False)

        self.runner.submit('load_config', on_success=self.on_config_loaded,
                           on_error=self.show_error)
        self.runner.submit('get_system_fonts', on_success=self.on_fonts_loaded,
                           on_error=self.on_fonts_failed)

        # Connect Esc key to close window
        self.connect("key-press-event", self.on_key_press)

    @property
    def section(self):
        return self.config[preferences.SECTION]

    def on_key_press(self, widget, event):
        """Handle key press events"""
        if event.keyval == Gdk.KEY_Escape:
            self.destroy()
            return True
        return False

    def on_config_loaded(self, result):
        """Show a (config, warnings) pair from load_config or import_config"""
        self.config, warnings = result
        self.load_settings_to_ui()
        self.set_sensitive(True)

        if warnings:
            GLib.idle_add(self.show_config_warnings, warnings)

    def show_config_warnings(self, warnings):
        """Display configuration warnings in a dialog"""
        dialog = Gtk.MessageDialog(
            transient_for=self,
            flags=0,
            message_type=Gtk.MessageType.WARNING,
            buttons=Gtk.ButtonsType.OK,
            text="Configuration Warnings"
        )
        dialog.format_secondary_text(warnings)
        dialog.run()
        dialog.destroy()
        return False  # Don't call again

    def on_fonts_loaded(self, fonts):
        """Fill the font combo; keep the configured font even if not installed"""
        current = self.section['font_family']
        self.font_combo.remove_all()
        names = set()
        for font in fonts:
            self.font_combo.append(font['name'], font['display_name'])
            names.add(font['name'])
        if current not in names:
            self.font_combo.append(current, current)
        self.font_combo.set_active_id(current)

    def on_fonts_failed(self, message):
        logger.warning(f'Unable to list system fonts: {message}')
        self.on_fonts_loaded([])

    def show_error(self, message):
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
        self.set_sensitive(True)

    def show_key_capture_dialog(self, title, current_value):
        """Show dialog to capture key press

        Args:
            title: Dialog title
            current_value: Current key binding as a string (e.g., "Control+F12")

        Returns:
            str: The captured key combination as a "+"-joined string,
                 empty string "" if removed, or None if cancelled
        """
        dialog = Gtk.Dialog(
            title=title,
            transient_for=self,
            modal=True
        )
        dialog.set_default_size(400, 150)

        content = dialog.get_content_area()
        content.set_spacing(10)
        content.set_border_width(10)

        instruction = Gtk.Label()
        current_str = current_value if current_value else "Not Set"
        instruction.set_markup(
            f"<b>Press a key or key combination</b>\n\n"
            f"Current: <i>{current_str}</i>"
        )
        content.pack_start(instruction, False, False, 0)

        self.captured_keys = []
        self.key_display = Gtk.Label(label="Waiting for key press...")
        content.pack_start(self.key_display, False, False, 0)

        dialog.connect("key-press-event", self.on_key_capture)
        dialog.connect("key-release-event", lambda w, e: True)

        dialog.add_button("Remove", Gtk.ResponseType.REJECT)
        dialog.add_button("Cancel", Gtk.ResponseType.CANCEL)
        dialog.add_button("Save", Gtk.ResponseType.OK)

        dialog.show_all()
        response = dialog.run()
        dialog.destroy()

        if response == Gtk.ResponseType.OK:
            return "+".join(self.captured_keys) if self.captured_keys else current_value
        elif response == Gtk.ResponseType.REJECT:
            return ""
        else:
            return None

    def on_key_capture(self, widget, event):
        """Capture key press"""
        keyname = Gdk.keyval_name(event.keyval)

        keys = []
        if event.state & Gdk.ModifierType.CONTROL_MASK:
            keys.append("Control")
        if event.state & Gdk.ModifierType.SHIFT_MASK:
            keys.append("Shift")
        if event.state & Gdk.ModifierType.MOD1_MASK:  # Alt
            keys.append("Alt")
        if event.state & Gdk.ModifierType.SUPER_MASK:
            keys.append("Super")

        if keyname not in ["Control_L", "Control_R", "Shift_L", "Shift_R",
                           "Alt_L", "Alt_R", "Super_L", "Super_R"]:
            keys.append(keyname)

        modifier_only_names = {"Control", "Shift", "Alt", "Super"}
        has_non_modifier = any(k not in modifier_only_names for k in keys)

        if keys and has_non_modifier:
            self.captured_keys = keys
            self.key_display.set_label("+".join(keys))
        elif keys:
            self.key_display.set_label("Modifier keys alone not allowed")

        return True

    def on_keybind_button_clicked(self, button, action):
        """Show key capture dialog for a keybinding action"""
        current = preferences.keybind_for(self.section, action)
        result = self.show_key_capture_dialog(KEYBIND_LABELS.get(action, action), current)
        if result is not None:
            self.config[preferences.SECTION] = preferences.set_keybind(self.section, action, result)
            button.set_label(result if result else "Not Set")

    # ─── Color entries ───────────────────────────────────────────────

    def on_color_entry_changed(self, entry, preview):
        """Validate color entry and update preview"""
        text = entry.get_text()
        style_context = entry.get_style_context()
        if not text.strip() or preferences.normalize_color(text) is not None:
            style_context.remove_class("error")
        else:
            style_context.add_class("error")
        preview.queue_draw()

    def on_color_preview_draw(self, widget, cr, entry):
        """Draw color preview square"""
        color = preferences.normalize_color(entry.get_text())
        if color is not None:
            r = int(color[0:2], 16) / 255.0
            g = int(color[2:4], 16) / 255.0
            b = int(color[4:6], 16) / 255.0
            a = int(color[6:8], 16) / 255.0
        else:
            # Invalid - show gray
            r, g, b, a = 0.5, 0.5, 0.5, 1.0

        width = widget.get_allocated_width()
        height = widget.get_allocated_height()

        cr.set_source_rgba(r, g, b, a)
        cr.rectangle(0, 0, width, height)
        cr.fill()

        cr.set_source_rgb(0.3, 0.3, 0.3)
        cr.set_line_width(1)
        cr.rectangle(0.5, 0.5, width - 1, height - 1)
        cr.stroke()

        return False

    # ─── Toggles ─────────────────────────────────────────────────────

    def on_bool_toggled(self, check, name):
        if self._syncing:
            return
        self.config[preferences.SECTION] = preferences.set_boolean(
            self.section, name, check.get_active())
        self.sync_toggles()

    def sync_toggles(self):
        """Show the toggle values, which set_boolean may have changed"""
        self._syncing = True
        try:
            for name, check in self.bool_checks.items():
                check.set_active(self.section[name])
            self.bool_checks['lock_chinese_on_caps_lock'].set_sensitive(
                self.section['enable_caps_lock'])
        finally:
            self._syncing = False

    # ─── UI ──────────────────────────────────────────────────────────

    def create_ui(self):
        """Create the user interface"""
        css_provider = Gtk.CssProvider()
        css_provider.load_from_data(b"""
            entry.error {
                background-color: #ffcccc;
            }
        """)
        Gtk.StyleContext.add_provider_for_screen(
            Gdk.Screen.get_default(),
            css_provider,
            Gtk.STYLE_PROVIDER_PRIORITY_APPLICATION
        )

        main_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)
        self.add(main_box)

        notebook = Gtk.Notebook()
        main_box.pack_start(notebook, True, True, 0)

        notebook.append_page(self.create_typing_tab(), Gtk.Label(label="Typing"))
        notebook.append_page(self.create_candidates_tab(), Gtk.Label(label="Candidates"))
        notebook.append_page(self.create_appearance_tab(), Gtk.Label(label="Appearance"))
        notebook.append_page(self.create_keyboard_tab(), Gtk.Label(label="Keyboard"))
        notebook.append_page(self.create_symbols_tab(), Gtk.Label(label="Symbols"))

        button_box = Gtk.Box(spacing=6)
        main_box.pack_start(button_box, False, False, 0)

        import_button = Gtk.Button(label="Import...")
        import_button.connect("clicked", self.on_import_clicked)
        button_box.pack_start(import_button, False, False, 0)

        export_button = Gtk.Button(label="Export...")
        export_button.connect("clicked", self.on_export_clicked)
        button_box.pack_start(export_button, False, False, 0)

        ok_button = Gtk.Button(label="OK")
        ok_button.connect("clicked", self.on_save_clicked, True)
        button_box.pack_end(ok_button, False, False, 0)

        apply_button = Gtk.Button(label="Apply")
        apply_button.connect("clicked", self.on_save_clicked, False)
        button_box.pack_end(apply_button, False, False, 0)

        cancel_button = Gtk.Button(label="Cancel")
        cancel_button.connect("clicked", lambda x: self.destroy())
        button_box.pack_end(cancel_button, False, False, 0)

    def _toggle_box(self, toggles):
        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        box.set_border_width(10)
        for name, label in toggles:
            check = Gtk.CheckButton(label=label)
            check.connect("toggled", self.on_bool_toggled, name)
            self.bool_checks[name] = check
            box.pack_start(check, False, False, 0)
        return box

    def _combo(self, table):
        combo = Gtk.ComboBoxText()
        for value, label in table.items():
            combo.append(str(value), label)
        return combo

    def create_typing_tab(self):
        """Create Typing settings tab"""
        box = self._toggle_box(TYPING_TOGGLES)

        sensitivity_box = Gtk.Box(spacing=6)
        sensitivity_box.pack_start(Gtk.Label(label="Shift key sensitivity (ms):", xalign=0),
                                   False, False, 0)
        low, high = preferences.NUMBER_RANGES['shift_key_sensitivity']
        spin = Gtk.SpinButton.new_with_range(low, high, 10)
        self.number_spins['shift_key_sensitivity'] = spin
        sensitivity_box.pack_start(spin, False, False, 0)
        box.pack_start(sensitivity_box, False, False, 0)
        return box

    def create_candidates_tab(self):
        """Create Candidates settings tab"""
        box = self._toggle_box(CANDIDATE_TOGGLES)

        grid = Gtk.Grid(column_spacing=10, row_spacing=6)
        grid.attach(Gtk.Label(label="Selection keys:", xalign=0), 0, 0, 1, 1)
        self.sel_key_combo = self._combo(preferences.SELECTION_KEYS)
        grid.attach(self.sel_key_combo, 1, 0, 1, 1)

        grid.attach(Gtk.Label(label="Conversion engine:", xalign=0), 0, 1, 1, 1)
        self.conv_engine_combo = self._combo(preferences.CONVERSION_ENGINES)
        grid.attach(self.conv_engine_combo, 1, 1, 1, 1)
        box.pack_start(grid, False, False, 10)
        return box

    def create_appearance_tab(self):
        """Create Appearance settings tab"""
        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)
        box.set_border_width(10)

        layout_frame = Gtk.Frame(label="Candidate Window")
        grid = Gtk.Grid(column_spacing=10, row_spacing=6)
        grid.set_border_width(10)
        layout_frame.add(grid)

        for row, (name, label) in enumerate(NUMBER_FIELDS):
            grid.attach(Gtk.Label(label=label, xalign=0), 0, row, 1, 1)
            low, high = preferences.NUMBER_RANGES[name]
            spin = Gtk.SpinButton.new_with_range(low, high, 1)
            self.number_spins[name] = spin
            grid.attach(spin, 1, row, 1, 1)

        grid.attach(Gtk.Label(label="Font:", xalign=0), 0, len(NUMBER_FIELDS), 1, 1)
        self.font_combo = Gtk.ComboBoxText()
        grid.attach(self.font_combo, 1, len(NUMBER_FIELDS), 1, 1)
        box.pack_start(layout_frame, False, False, 0)

        color_frame = Gtk.Frame(label="Colors (RRGGBB or RRGGBBAA)")
        color_grid = Gtk.Grid(column_spacing=10, row_spacing=6)
        color_grid.set_border_width(10)
        color_frame.add(color_grid)

        for row, (name, label) in enumerate(COLOR_FIELDS):
            color_grid.attach(Gtk.Label(label=label, xalign=0), 0, row, 1, 1)
            entry = Gtk.Entry()
            entry.set_max_length(10)
            entry.set_width_chars(10)
            preview = Gtk.DrawingArea()
            preview.set_size_request(24, 24)
            preview.connect("draw", self.on_color_preview_draw, entry)
            entry.connect("changed", self.on_color_entry_changed, preview)
            self.color_entries[name] = entry
            color_grid.attach(entry, 1, row, 1, 1)
            color_grid.attach(preview, 2, row, 1, 1)
        box.pack_start(color_frame, False, False, 0)
        return box

    def create_keyboard_tab(self):
        """Create Keyboard settings tab"""
        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)
        box.set_border_width(10)

        grid = Gtk.Grid(column_spacing=10, row_spacing=6)
        grid.attach(Gtk.Label(label="Keyboard layout:", xalign=0), 0, 0, 1, 1)
        self.keyboard_layout_combo = self._combo(preferences.KEYBOARD_LAYOUTS)
        grid.attach(self.keyboard_layout_combo, 1, 0, 1, 1)

        grid.attach(Gtk.Label(label="English layout:", xalign=0), 0, 1, 1, 1)
        self.english_layout_combo = self._combo(preferences.SIMULATED_ENGLISH_LAYOUTS)
        grid.attach(self.english_layout_combo, 1, 1, 1, 1)

        grid.attach(Gtk.Label(label="Check for updates:", xalign=0), 0, 2, 1, 1)
        self.update_channel_combo = self._combo(preferences.UPDATE_CHANNELS)
        grid.attach(self.update_channel_combo, 1, 2, 1, 1)
        box.pack_start(grid, False, False, 0)

        keybind_frame = Gtk.Frame(label="Keybindings")
        keybind_grid = Gtk.Grid(column_spacing=10, row_spacing=6)
        keybind_grid.set_border_width(10)
        keybind_frame.add(keybind_grid)
        for row, action in enumerate(preferences.KEYBIND_ACTIONS):
            keybind_grid.attach(Gtk.Label(label=KEYBIND_LABELS.get(action, action), xalign=0),
                                0, row, 1, 1)
            button = Gtk.Button(label="Not Set")
            button.connect("clicked", self.on_keybind_button_clicked, action)
            self.keybind_buttons[action] = button
            keybind_grid.attach(button, 1, row, 1, 1)
        box.pack_start(keybind_frame, False, False, 0)
        return box

    def _text_view(self, label, box):
        box.pack_start(Gtk.Label(label=label, xalign=0), False, False, 0)
        scroll = Gtk.ScrolledWindow()
        scroll.set_policy(Gtk.PolicyType.AUTOMATIC, Gtk.PolicyType.AUTOMATIC)
        text_view = Gtk.TextView()
        text_view.set_monospace(True)
        scroll.add(text_view)
        box.pack_start(scroll, True, True, 0)
        return text_view

    def create_symbols_tab(self):
        """Create Symbols tab (symbols.dat and swkb.dat)"""
        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        box.set_border_width(10)
        self.symbols_view = self._text_view("Symbol table:", box)
        self.swkb_view = self._text_view("Easy symbols (Shift + letter):", box)
        return box

    def load_settings_to_ui(self):
        """Load current config values into UI widgets"""
        section = self.section
        self.sync_toggles()
        for name, spin in self.number_spins.items():
            spin.set_value(section[name])
        for name, entry in self.color_entries.items():
            entry.set_text(section[name])
        self.sel_key_combo.set_active_id(str(section['sel_key_type']))
        self.conv_engine_combo.set_active_id(str(section['conv_engine']))
        self.keyboard_layout_combo.set_active_id(str(section['keyboard_layout']))
        self.english_layout_combo.set_active_id(str(section['simulate_english_layout']))
        self.update_channel_combo.set_active_id(section['auto_check_update_channel'])
        for action, button in self.keybind_buttons.items():
            key = preferences.keybind_for(section, action)
            button.set_label(key if key else "Not Set")
        if not self.font_combo.set_active_id(section['font_family']):
            self.font_combo.append(section['font_family'], section['font_family'])
            self.font_combo.set_active_id(section['font_family'])
        self.symbols_view.get_buffer().set_text(self.config.get('symbols_dat', ''))
        self.swkb_view.get_buffer().set_text(self.config.get('swkb_dat', ''))

    def collect_config(self):
        """Build the config dict from the UI widgets"""
        section = dict(self.section)
        for name, spin in self.number_spins.items():
            section = preferences.set_number(section, name, spin.get_text())
        for name, entry in self.color_entries.items():
            section[name] = preferences.normalize_color(entry.get_text(), default=section[name])
        for key, combo in [('sel_key_type', self.sel_key_combo),
                           ('conv_engine', self.conv_engine_combo),
                           ('keyboard_layout', self.keyboard_layout_combo),
                           ('simulate_english_layout', self.english_layout_combo)]:
            active_id = combo.get_active_id()
            if active_id is not None:
                section[key] = int(active_id)
        channel = self.update_channel_combo.get_active_id()
        if channel is not None:
            section['auto_check_update_channel'] = channel
        font = self.font_combo.get_active_id()
        if font:
            section['font_family'] = font

        config = dict(self.config)
        config[preferences.SECTION] = section
        for key, view in [('symbols_dat', self.symbols_view), ('swkb_dat', self.swkb_view)]:
            buffer = view.get_buffer()
            config[key] = buffer.get_text(buffer.get_start_iter(), buffer.get_end_iter(), False)
        return config

    def on_save_clicked(self, button, close):
        """Handle OK/Apply button click"""
        self.config = self.collect_config()
        self.set_sensitive(False)

        def on_saved(_result):
            self.set_sensitive(True)
            if close:
                self.destroy()

        self.runner.submit('save_config', self.config, on_success=on_saved,
                           on_error=self.show_error)

    def _choose_file(self, title, action, accept_label):
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
        file_filter.set_name("JSON files")
        file_filter.add_pattern("*.json")
        dialog.add_filter(file_filter)
        if action == Gtk.FileChooserAction.SAVE:
            dialog.set_do_overwrite_confirmation(True)
            dialog.set_current_name("ibus-zhuyin-config.json")

        response = dialog.run()
        path = dialog.get_filename() if response == Gtk.ResponseType.OK else None
        dialog.destroy()
        return path

    def on_import_clicked(self, button):
        """Replace the panel contents with a configuration file"""
        path = self._choose_file("Import Configuration", Gtk.FileChooserAction.OPEN, "Import")
        if path is None:
            return
        self.runner.submit('import_config', path, on_success=self.on_config_loaded,
                           on_error=self.show_error)

    def on_export_clicked(self, button):
        """Write the panel contents to a configuration file"""
        path = self._choose_file("Export Configuration", Gtk.FileChooserAction.SAVE, "Export")
        if path is None:
            return
        self.runner.submit('export_config', path, self.collect_config(),
                           on_error=self.show_error)
