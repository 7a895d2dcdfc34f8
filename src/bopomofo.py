#!/usr/bin/env python3
# bopomofo.py - Bopomofo (注音) reading syntax
#
# A reading is a sequence of syllables separated by whitespace. Each syllable
# is built from at most one symbol of each class, in this order:
#
#     initial (聲母)  medial (介音)  final (韻母)  tone (聲調)
#
#     ㄓ   ㄨ   ㄤ   ˋ      -> 壯
#     ㄅ        ㄚ          -> 八  (first tone is unmarked)
#     ㄙ                    -> 絲
#
# Only the syntax is checked. Whether a syllable is pronounceable in Mandarin
# is not.

import logging

logger = logging.getLogger(__name__)

INITIALS = 'ㄅㄆㄇㄈㄉㄊㄋㄌㄍㄎㄏㄐㄑㄒㄓㄔㄕㄖㄗㄘㄙ'
MEDIALS = 'ㄧㄨㄩ'
FINALS = 'ㄚㄛㄜㄝㄞㄟㄠㄡㄢㄣㄤㄥㄦ'
TONES = 'ˊˇˋ˙'

# Visible space used by some dictionary dumps, and the CJK numeral one that is
# easily typed in place of the medial ㄧ.
VISIBLE_SPACE = '␣'
NUMERAL_ONE = '一'


class SyllableError(ValueError):
    """Raised when a syllable does not follow the Bopomofo syntax."""

    def __init__(self, syllable, reason):
        super().__init__(f'Invalid syllable "{syllable}": {reason}')
        self.syllable = syllable
        self.reason = reason


def normalize(reading):
    """
    Normalize a reading before it is split into syllables.

    Args:
        reading: Raw reading as typed by the user

    Returns:
        str: Reading with visible spaces and numeral one replaced, trimmed
    """
    return reading.replace(VISIBLE_SPACE, ' ').replace(NUMERAL_ONE, 'ㄧ').strip()


def parse_syllable(text):
    """
    Parse one syllable into its components.

    Args:
        text: A single syllable, e.g. "ㄓㄨㄤˋ"

    Returns:
        tuple: (initial, medial, final, tone); missing parts are ''

    Raises:
        SyllableError: If the syllable is empty, contains a non-Bopomofo
                       character, or has its components out of order
    """
    if not text:
        raise SyllableError(text, 'empty syllable')

    parts = ['', '', '', '']
    classes = (INITIALS, MEDIALS, FINALS, TONES)
    position = 0
    for char in text:
        for index, symbols in enumerate(classes):
            if char in symbols:
                break
        else:
            raise SyllableError(text, f'"{char}" is not a Bopomofo symbol')
        if index < position or parts[index]:
            raise SyllableError(text, f'"{char}" is out of order')
        parts[index] = char
        position = index + 1

    if not any(parts[:3]):
        # A tone mark alone is not a syllable
        raise SyllableError(text, 'tone mark without a sound')
    return tuple(parts)


def split_syllables(reading):
    """Split a normalized reading into syllable strings."""
    return normalize(reading).split()


def parse_reading(reading):
    """
    Parse a whole reading.

    Args:
        reading: Whitespace separated syllables

    Returns:
        list: One (initial, medial, final, tone) tuple per syllable

    Raises:
        SyllableError: On the first invalid syllable
    """
    return [parse_syllable(syllable) for syllable in split_syllables(reading)]


def is_valid_reading(reading):
    """Return True if ``reading`` is non-empty and every syllable parses."""
    if not normalize(reading):
        return False
    try:
        parse_reading(reading)
    except SyllableError:
        return False
    return True
