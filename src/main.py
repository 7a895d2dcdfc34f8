#!/usr/bin/env python3
"""
main.py - Entry point for the ibus-zhuyin dictionary and preferences tools

================================================================================
WHAT THIS FILE DOES
================================================================================

Starts one of the GTK front-ends on top of a LocalBackend:

    ibus-zhuyin-tools                 dictionary explorer (default)
    ibus-zhuyin-tools --preferences   preferences window
    ibus-zhuyin-tools --edit PATH     editor for one dictionary file

    ┌──────────────┐   submit()   ┌───────────────┐   method call   ┌──────────────┐
    │  GTK window  │ ───────────► │ CommandRunner │ ──────────────► │ LocalBackend │
    │ (main loop)  │ ◄─────────── │ (threads)     │ ◄────────────── │ (files)      │
    └──────────────┘  idle_add    └───────────────┘     result      └──────────────┘

================================================================================
"""

import argparse
import logging
import os
import sys

import gi
gi.require_version('Gtk', '3.0')
from gi.repository import Gtk

import util
from backend import LocalBackend
from commands import CommandRunner
from record_store import CATEGORY_PERSONAL, CATEGORY_SYSTEM, DictionaryResource

logger = logging.getLogger(__name__)


def create_backend():
    """Build the backend on the per-user and system directories."""
    util.ensure_user_dirs()
    return LocalBackend(util.get_user_data_dir(),
                        util.get_system_dictionary_dirs(),
                        util.get_config_path())


def resource_for_path(backend, path):
    """
    Describe a dictionary file given on the command line.

    Only the personal dictionary is editable; any other file opens read-only.
    """
    path = os.path.abspath(path)
    if path == os.path.abspath(backend.personal_dictionary_path):
        category = CATEGORY_PERSONAL
    else:
        category = CATEGORY_SYSTEM
    name = os.path.splitext(os.path.basename(path))[0]
    return DictionaryResource(category, name, path)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='ibus-zhuyin-tools',
        description='Dictionary and preferences tools for ibus-zhuyin')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--explorer', action='store_true',
                      help='show the dictionary explorer (default)')
    mode.add_argument('--preferences', action='store_true',
                      help='show the preferences window')
    mode.add_argument('--edit', metavar='PATH',
                      help='edit a dictionary file')
    parser.add_argument('--debug', action='store_true',
                        help='log debug messages')
    parser.add_argument('--version', action='version',
                        version=f'{util.get_package_name()} {util.get_version()}')
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger.info(f'{util.get_package_name()} {util.get_version()}')

    backend = create_backend()
    runner = CommandRunner(backend)

    if args.preferences:
        from settings_panel import SettingsPanel
        win = SettingsPanel(runner)
        win.connect('destroy', Gtk.main_quit)
    elif args.edit:
        from dictionary_editor import DictionaryEditorWindow
        resource = resource_for_path(backend, args.edit)
        win = DictionaryEditorWindow(resource, runner, on_back=Gtk.main_quit)
    else:
        from dictionary_explorer import DictionaryExplorerWindow
        win = DictionaryExplorerWindow(runner)
        win.connect('delete-event', Gtk.main_quit)

    win.show_all()
    Gtk.main()
    return 0


if __name__ == '__main__':
    sys.exit(main())
