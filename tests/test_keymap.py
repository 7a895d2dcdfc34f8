#!/usr/bin/env python3
# tests/test_keymap.py - Unit tests for keymap.py

import pytest
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import keymap
from keymap import Keymap, STANDARD, get_keymap


class TestStandardKeymap:
    """Test suite for the standard layout"""

    def test_rows_have_matching_shape(self):
        assert len(STANDARD.keys) == len(STANDARD.layout) == 4
        for key_row, symbol_row in zip(STANDARD.keys, STANDARD.layout):
            assert len(key_row) == len(symbol_row)

    @pytest.mark.parametrize("key,symbol", [
        ('1', 'ㄅ'),
        ('q', 'ㄆ'),
        ('a', 'ㄇ'),
        ('z', 'ㄈ'),
        ('-', 'ㄦ'),
        ('/', 'ㄥ'),
        ('3', 'ˇ'),
        ('7', '˙'),
    ])
    def test_symbol_for_key(self, key, symbol):
        assert STANDARD.symbol_for_key(key) == symbol

    def test_upper_case_key(self):
        assert STANDARD.symbol_for_key('Q') == 'ㄆ'

    def test_unknown_key(self):
        assert STANDARD.symbol_for_key('`') is None
        assert STANDARD.symbol_for_key('') is None

    def test_symbols_are_unique(self):
        symbols = STANDARD.symbols()
        assert len(symbols) == 41
        assert len(set(symbols)) == len(symbols)


class TestKeymapConstruction:
    """Test suite for Keymap validation"""

    def test_row_count_mismatch(self):
        with pytest.raises(ValueError):
            Keymap('broken', keys=[['a'], ['b']], layout=[['ㄅ']])

    def test_row_length_mismatch(self):
        with pytest.raises(ValueError):
            Keymap('broken', keys=[['a', 'b']], layout=[['ㄅ']])


class TestGetKeymap:
    """Test suite for get_keymap()"""

    def test_default(self):
        assert get_keymap() is STANDARD

    def test_known_id(self):
        assert get_keymap('STD') is STANDARD

    def test_unknown_id_falls_back(self):
        assert get_keymap('HSU') is keymap.KEYMAPS[keymap.DEFAULT_KEYMAP]
