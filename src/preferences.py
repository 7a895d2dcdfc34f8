#!/usr/bin/env python3
# preferences.py - Input method configuration rules
#
# The configuration is a plain dict exchanged with the backend:
#
#     {
#       "zhuyin": {...toggles, enums, numbers, colors, "keybind": [...]},
#       "symbols_dat": "...",     # symbol table shown by the ` key
#       "swkb_dat": "..."         # easy symbol table (Shift + letter)
#     }
#
# Functions here never modify their input; they return updated copies so that
# the settings panel can keep the last loaded config for comparison.

import copy
import logging

logger = logging.getLogger(__name__)

SECTION = 'zhuyin'

DEFAULT_SECTION = {
    'switch_lang_with_shift': True,
    'enable_fullwidth_toggle_key': False,
    'enable_caps_lock': True,
    'lock_chinese_on_caps_lock': False,
    'show_notification': True,
    'enable_auto_learn': True,
    'esc_clean_all_buf': False,
    'full_shape_symbols': True,
    'upper_case_with_shift': False,
    'add_phrase_forward': True,
    'phrase_choice_rearward': False,
    'easy_symbols_with_shift': True,
    'easy_symbols_with_shift_ctrl': False,
    'cursor_cand_list': True,
    'show_cand_with_space_key': False,
    'advance_after_selection': True,
    'default_full_space': False,
    'default_english': False,
    'output_simp_chinese': False,
    'sort_candidates_by_frequency': False,
    'sel_key_type': 0,
    'conv_engine': 1,
    'keyboard_layout': 0,
    'simulate_english_layout': 0,
    'auto_check_update_channel': 'stable',
    'cand_per_row': 3,
    'cand_per_page': 9,
    'font_size': 16,
    'shift_key_sensitivity': 200,
    'font_family': 'Sans',
    'font_fg_color': '000000FF',
    'font_bg_color': 'FAFAFAFF',
    'font_highlight_fg_color': 'FFFFFFFF',
    'font_highlight_bg_color': '000000FF',
    'font_number_fg_color': '0000FFFF',
    'cand_list_border_color': '000000FF',
    'keybind': [],
}

DEFAULT_CONFIG = {
    SECTION: DEFAULT_SECTION,
    'symbols_dat': '',
    'swkb_dat': '',
}

# Fallback used when a numeric field does not parse
NUMBER_FALLBACKS = {
    'cand_per_row': 3,
    'cand_per_page': 9,
    'font_size': 16,
    'shift_key_sensitivity': 200,
}

# (min, max) accepted by save_config
NUMBER_RANGES = {
    'cand_per_row': (1, 10),
    'cand_per_page': (1, 10),
    'font_size': (6, 72),
    'shift_key_sensitivity': (100, 1000),
}

COLOR_KEYS = (
    'font_fg_color',
    'font_bg_color',
    'font_highlight_fg_color',
    'font_highlight_bg_color',
    'font_number_fg_color',
    'cand_list_border_color',
)

# ─── Option labels ───────────────────────────────────────────────────

SELECTION_KEYS = {
    0: '1234567890',
    1: 'asdfghjkl;',
    2: 'asdfzxcv89',
    3: 'asdfjkl789',
    4: 'aoeuhtn789',
    5: '1234qweras',
}

CONVERSION_ENGINES = {
    0: 'Simple Zhuyin',
    1: 'Smart phrase selection',
    2: 'Fuzzy smart phrase selection',
}

KEYBOARD_LAYOUTS = {
    0: 'Standard',
    1: 'Hsu',
    2: 'IBM',
    3: 'Gin-Yieh',
    4: 'ETen',
    5: 'ETen 26',
    8: 'Dvorak 26',
    9: 'Hanyu Pinyin',
    10: 'Taiwan Huayu Luomapinyin',
    11: 'MPS2 Pinyin',
}

SIMULATED_ENGLISH_LAYOUTS = {
    0: 'None',
    1: 'Dvorak',
    2: 'Carpalx (QGMLWY)',
    3: 'Colemak',
    4: 'Colemak-DH ANSI',
    5: 'Colemak-DH Ortho',
    6: 'Workman',
}

UPDATE_CHANNELS = {
    'none': 'Disabled',
    'stable': 'Stable',
    'development': 'Preview',
}

KEYBIND_ACTIONS = (
    'toggle_simplified_chinese',
    'toggle_hsu_keyboard',
)


def _label(table, value, default):
    return table.get(value, table[default])


def selection_keys_label(value):
    return _label(SELECTION_KEYS, value, 0)


def conversion_engine_label(value):
    return _label(CONVERSION_ENGINES, value, 1)


def keyboard_layout_label(value):
    return _label(KEYBOARD_LAYOUTS, value, 0)


def simulated_english_layout_label(value):
    return _label(SIMULATED_ENGLISH_LAYOUTS, value, 0)


def update_channel_label(value):
    return _label(UPDATE_CHANNELS, value, 'stable')


# ─── Config construction ─────────────────────────────────────────────

def default_config():
    """Return a fresh copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def _merge_section(section, warnings):
    merged = copy.deepcopy(section)
    for key, default in DEFAULT_SECTION.items():
        if key not in merged:
            warnings.append(f'The key "{key}" was not found in the configuration. Using the default value')
            merged[key] = copy.deepcopy(default)
        elif type(merged[key]) != type(default):
            warnings.append(f'Type mismatch found for the key "{key}". Replacing it with the default value')
            merged[key] = copy.deepcopy(default)

    keybind = []
    for binding in merged['keybind']:
        if isinstance(binding, dict) and isinstance(binding.get('key'), str) \
                and isinstance(binding.get('action'), str):
            keybind.append({'key': binding['key'], 'action': binding['action']})
        else:
            warnings.append(f'Ignoring malformed keybinding: {binding!r}')
    merged['keybind'] = keybind
    return merged


def merge_config(data):
    """
    Merge loaded configuration data with the defaults.

    Missing keys, and keys whose value type differs from the default, are
    replaced by the default value. Unknown keys are kept.

    Args:
        data: Config dict as read from disk (may be None or malformed)

    Returns:
        tuple: (config, warnings_string) where warnings_string is empty if no warnings
    """
    warnings = []
    if not isinstance(data, dict):
        warnings.append('The configuration is not a JSON object. Using the default configuration')
        return default_config(), '\n'.join(warnings)

    config = copy.deepcopy(data)
    section = config.get(SECTION)
    if not isinstance(section, dict):
        warnings.append(f'The "{SECTION}" section is missing or invalid. Using the default values')
        section = {}
    config[SECTION] = _merge_section(section, warnings)

    for key in ('symbols_dat', 'swkb_dat'):
        if not isinstance(config.get(key), str):
            config[key] = ''

    for warning in warnings:
        logger.warning(warning)
    return config, '\n'.join(warnings)


def validate_config(config):
    """
    Check a config before it is saved.

    Raises:
        ValueError: With a message naming the first offending field
    """
    if not isinstance(config, dict) or not isinstance(config.get(SECTION), dict):
        raise ValueError(f'Configuration must contain a "{SECTION}" section')
    section = config[SECTION]
    for key, (low, high) in NUMBER_RANGES.items():
        value = section.get(key)
        if not isinstance(value, int) or isinstance(value, bool) or not low <= value <= high:
            raise ValueError(f'{key} must be between {low} and {high}')
    for key in COLOR_KEYS:
        if normalize_color(section.get(key, '')) is None:
            raise ValueError(f'{key} is not a valid RGB(A) color')
    if section.get('auto_check_update_channel') not in UPDATE_CHANNELS:
        raise ValueError(f'Unsupported update channel: {section.get("auto_check_update_channel")}')
    actions = [binding.get('action') for binding in section.get('keybind', [])]
    if len(actions) != len(set(actions)):
        raise ValueError('Each keybinding action may only be bound once')


# ─── Field rules ─────────────────────────────────────────────────────

def set_boolean(section, name, value):
    """
    Set a boolean toggle.

    Enabling Caps Lock switching turns off Shift switching, since both cannot
    toggle the language at the same time.

    Returns:
        dict: Updated copy of ``section``
    """
    updated = dict(section)
    updated[name] = bool(value)
    if updated.get('enable_caps_lock'):
        updated['switch_lang_with_shift'] = False
    return updated


def parse_number(text, fallback):
    """Parse integer input, returning ``fallback`` if it does not parse."""
    if isinstance(text, bool):
        return fallback
    if isinstance(text, int):
        return text
    try:
        return int(str(text).strip())
    except (TypeError, ValueError):
        return fallback


def set_number(section, name, text):
    """
    Set a numeric field from user input.

    Returns:
        dict: Updated copy of ``section``
    """
    updated = dict(section)
    updated[name] = parse_number(text, NUMBER_FALLBACKS.get(name, DEFAULT_SECTION.get(name, 0)))
    return updated


def normalize_color(text, default=None):
    """
    Normalize a color entry to RRGGBBAA.

    Accepts an optional '#' or '0x' prefix and 6 (opaque) or 8 hex digits.

    Returns:
        str: Upper-case RRGGBBAA, or ``default`` if the text is not a color
    """
    if not isinstance(text, str):
        return default
    value = text.strip().lower()
    if value.startswith('0x'):
        value = value[2:]
    if value.startswith('#'):
        value = value[1:]
    if len(value) not in (6, 8) or not all(c in '0123456789abcdef' for c in value):
        return default
    if len(value) == 6:
        value += 'ff'
    return value.upper()


def keybind_for(section, action):
    """Return the key bound to ``action``, or '' if unbound."""
    for binding in section.get('keybind') or []:
        if binding.get('action') == action:
            return binding.get('key', '')
    return ''


def set_keybind(section, action, key):
    """
    Bind ``key`` to ``action``.

    If a pair for ``action`` exists its key is replaced in place, otherwise a
    new pair is appended. The order of the other pairs is kept.

    Returns:
        dict: Updated copy of ``section``
    """
    keybind = [dict(binding) for binding in section.get('keybind') or []]
    for index, binding in enumerate(keybind):
        if binding.get('action') == action:
            keybind[index] = {'key': key, 'action': action}
            break
    else:
        keybind.append({'key': key, 'action': action})
    updated = dict(section)
    updated['keybind'] = keybind
    return updated
