#!/usr/bin/env python3
# keymap.py - Keyboard layout to Bopomofo symbol rows
#
# The phrase editor shows an on-screen keyboard so that readings can be
# composed without switching the system input method. Each keymap lists the
# physical key rows of a layout and the Bopomofo symbol printed on every key.

import logging

logger = logging.getLogger(__name__)


class Keymap:
    """
    A keyboard layout for composing Bopomofo readings.

    Attributes:
        name: Human readable layout name
        keys: Rows of physical key labels (QWERTY positions)
        layout: Rows of Bopomofo symbols, same shape as ``keys``
    """

    def __init__(self, name, keys, layout):
        if len(keys) != len(layout):
            raise ValueError(f'Keymap "{name}": key rows and symbol rows differ in count')
        for key_row, symbol_row in zip(keys, layout):
            if len(key_row) != len(symbol_row):
                raise ValueError(f'Keymap "{name}": row length mismatch {key_row!r}')
        self.name = name
        self.keys = [list(row) for row in keys]
        self.layout = [list(row) for row in layout]
        self._symbol_by_key = {}
        for key_row, symbol_row in zip(self.keys, self.layout):
            for key, symbol in zip(key_row, symbol_row):
                self._symbol_by_key[key] = symbol

    def symbol_for_key(self, key):
        """
        Look up the Bopomofo symbol on a physical key.

        Args:
            key: Key label such as 'q' or ','

        Returns:
            str or None: The symbol, or None if the key is not part of the layout
        """
        if not key:
            return None
        return self._symbol_by_key.get(key.lower())

    def symbols(self):
        """Return all symbols in row order."""
        return [symbol for row in self.layout for symbol in row]

    def __repr__(self):
        return f'Keymap({self.name!r})'


# Standard (大千) layout
STANDARD = Keymap(
    'Standard',
    keys=[
        ['1', '2', '3', '4', '5', '6', '7', '8', '9', '0', '-'],
        ['q', 'w', 'e', 'r', 't', 'y', 'u', 'i', 'o', 'p'],
        ['a', 's', 'd', 'f', 'g', 'h', 'j', 'k', 'l', ';'],
        ['z', 'x', 'c', 'v', 'b', 'n', 'm', ',', '.', '/'],
    ],
    layout=[
        ['ㄅ', 'ㄉ', 'ˇ', 'ˋ', 'ㄓ', 'ˊ', '˙', 'ㄚ', 'ㄞ', 'ㄢ', 'ㄦ'],
        ['ㄆ', 'ㄊ', 'ㄍ', 'ㄐ', 'ㄔ', 'ㄗ', 'ㄧ', 'ㄛ', 'ㄟ', 'ㄣ'],
        ['ㄇ', 'ㄋ', 'ㄎ', 'ㄑ', 'ㄕ', 'ㄘ', 'ㄨ', 'ㄜ', 'ㄠ', 'ㄤ'],
        ['ㄈ', 'ㄌ', 'ㄏ', 'ㄒ', 'ㄖ', 'ㄙ', 'ㄩ', 'ㄝ', 'ㄡ', 'ㄥ'],
    ],
)

KEYMAPS = {
    'STD': STANDARD,
}

DEFAULT_KEYMAP = 'STD'


def get_keymap(keymap_id=None):
    """
    Return the keymap registered under ``keymap_id``.

    Unknown ids fall back to the standard layout.
    """
    if keymap_id is None:
        keymap_id = DEFAULT_KEYMAP
    keymap = KEYMAPS.get(keymap_id)
    if keymap is None:
        logger.warning(f'Unknown keymap "{keymap_id}", using {DEFAULT_KEYMAP}')
        keymap = KEYMAPS[DEFAULT_KEYMAP]
    return keymap
