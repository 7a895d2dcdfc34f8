#!/usr/bin/env python3
# tests/test_util.py - Unit tests for util.py

import pytest
import os
import sys
from unittest.mock import patch

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

pytest.importorskip("gi")

import util


class TestPaths:
    """Test suite for path helpers"""

    def test_package_name(self):
        assert util.get_package_name() == 'ibus-zhuyin'

    def test_datadir_override(self):
        with patch.dict(os.environ, {'IBUS_ZHUYIN_DATADIR': '/opt/zhuyin'}):
            assert util.get_datadir() == '/opt/zhuyin'
            assert util.get_system_dictionary_dirs()[0] == '/opt/zhuyin/dictionaries'

    def test_datadir_default(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop('IBUS_ZHUYIN_DATADIR', None)
            assert util.get_datadir() == '/usr/local/share/ibus-zhuyin'

    def test_system_dictionary_dirs_unique(self):
        with patch('util.GLib') as glib:
            glib.get_system_data_dirs.return_value = ['/usr/share', '/usr/share']
            dirs = util.get_system_dictionary_dirs()
        assert dirs.count('/usr/share/ibus-zhuyin/dictionaries') == 1

    def test_user_dirs(self):
        with patch('util.GLib') as glib:
            glib.get_user_config_dir.return_value = '/home/u/.config'
            glib.get_user_data_dir.return_value = '/home/u/.local/share'
            assert util.get_user_config_dir() == '/home/u/.config/ibus-zhuyin'
            assert util.get_config_path() == '/home/u/.config/ibus-zhuyin/config.json'
            assert util.get_user_data_dir() == '/home/u/.local/share/ibus-zhuyin'

    def test_ensure_user_dirs(self, tmp_path):
        with patch('util.GLib') as glib:
            glib.get_user_config_dir.return_value = str(tmp_path / 'config')
            glib.get_user_data_dir.return_value = str(tmp_path / 'data')
            assert util.ensure_user_dirs() is True
        assert (tmp_path / 'config' / 'ibus-zhuyin').is_dir()
        assert (tmp_path / 'data' / 'ibus-zhuyin').is_dir()
