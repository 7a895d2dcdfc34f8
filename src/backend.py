#!/usr/bin/env python3
# backend.py - File based implementation of the editor backend commands
#
# The front-ends never touch files directly; they go through these commands
# (via commands.CommandRunner). Every command either returns its result or
# raises BackendError with a message that can be shown to the user as is.
#
# Dictionary file format (JSON):
#
#     {
#       "info": {"name": ..., "version": ..., "copyright": ...,
#                "license": ..., "software": ...},
#       "entries": [
#         {"phrase": "注音", "bopomofo": "ㄓㄨˋ ㄧㄣ", "frequency": 3},
#         ...
#       ]
#     }

import csv
import json
import logging
import os

import orjson

import bopomofo
import preferences
from record_store import (
    CATEGORY_PERSONAL,
    CATEGORY_SYSTEM,
    DictionaryRecord,
    DictionaryResource,
)

logger = logging.getLogger(__name__)

DICTIONARY_EXTENSION = '.json'
PERSONAL_DICTIONARY_NAME = 'personal.json'
CONFIG_FILE_NAME = 'config.json'
SYMBOLS_FILE_NAME = 'symbols.dat'
EASY_SYMBOLS_FILE_NAME = 'swkb.dat'

INFO_KEYS = ('name', 'version', 'copyright', 'license', 'software')

DEFAULT_INFO = {
    'name': 'My Dictionary',
    'version': '1.0.0',
    'copyright': 'Unknown',
    'license': 'Unknown',
    'software': 'ibus-zhuyin dictionary editor',
}

CSV_HEADER = ['phrase', 'bopomofo', 'frequency']


class BackendError(Exception):
    """A backend command failed. The message is meant for the user."""


def sort_font_families(fonts):
    """
    Sort font families for the font chooser.

    Families with a localized (non-ASCII) display name come first; each group
    is sorted by display name.

    Args:
        fonts: Iterable of {"name": ..., "display_name": ...} dicts

    Returns:
        list: Sorted list of dicts
    """
    def sort_key(font):
        localized = any(ord(ch) > 127 for ch in font['display_name'])
        return (0 if localized else 1, font['display_name'])
    return sorted(fonts, key=sort_key)


def _read_dictionary_file(path):
    try:
        with open(path, 'rb') as f:
            data = orjson.loads(f.read())
    except FileNotFoundError:
        raise BackendError(f'Dictionary not found: {path}')
    except orjson.JSONDecodeError as e:
        raise BackendError(f'Failed to parse dictionary {path}\n\n{e}')
    except OSError as e:
        raise BackendError(f'Failed to read dictionary {path}\n\n{e}')

    if not isinstance(data, dict) or not isinstance(data.get('entries', []), list):
        raise BackendError(f'Invalid dictionary format: {path}')
    return data


def _write_dictionary_file(path, info, records):
    document = {
        'info': info,
        'entries': [record.to_dict() for record in records],
    }
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = path + '.tmp'
    try:
        with open(tmp_path, 'wb') as f:
            f.write(orjson.dumps(document, option=orjson.OPT_INDENT_2))
        os.replace(tmp_path, path)
    except OSError as e:
        raise BackendError(f'Failed to write dictionary {path}\n\n{e}')
    logger.info(f'Saved dictionary: {path} ({len(records)} entries)')


def _info_from(data, path):
    info = data.get('info')
    if not isinstance(info, dict):
        info = {}
    result = {key: str(info.get(key, '')) for key in INFO_KEYS}
    if not result['name']:
        result['name'] = os.path.splitext(os.path.basename(path))[0]
    return result


def _canonical_reading(reading):
    """Validate a reading and return it with single spaces between syllables."""
    syllables = bopomofo.split_syllables(reading)
    for syllable in syllables:
        bopomofo.parse_syllable(syllable)
    return ' '.join(syllables)


class LocalBackend:
    """
    Backend commands working on local files.

    Attributes:
        user_dir: Directory holding the personal dictionary and user data
                  files (symbols.dat, swkb.dat)
        system_dirs: Directories searched for read-only system dictionaries
                     and default data files
        config_path: Path of the JSON configuration file
    """

    def __init__(self, user_dir, system_dirs=(), config_path=None):
        self.user_dir = user_dir
        self.system_dirs = list(system_dirs)
        self.config_path = config_path or os.path.join(user_dir, CONFIG_FILE_NAME)

    @property
    def personal_dictionary_path(self):
        return os.path.join(self.user_dir, PERSONAL_DICTIONARY_NAME)

    # ─── Dictionary commands ─────────────────────────────────────────

    def load(self, path):
        """
        Read all entries of a dictionary.

        Returns:
            list: DictionaryRecord in file order
        """
        data = _read_dictionary_file(path)
        records = []
        for entry in data.get('entries', []):
            if not isinstance(entry, dict):
                logger.warning(f'Skipping malformed entry in {path}: {entry!r}')
                continue
            records.append(DictionaryRecord.from_dict(entry))
        logger.info(f'Loaded dictionary: {path} ({len(records)} entries)')
        return records

    def save(self, path, records):
        """
        Replace the entries of a dictionary.

        Every reading must be valid; nothing is written otherwise. The info
        block of an existing file is kept.

        Raises:
            BackendError: On an invalid reading or a write failure
        """
        canonical = []
        for record in records:
            if not isinstance(record, DictionaryRecord):
                record = DictionaryRecord.from_dict(record)
            try:
                reading = _canonical_reading(record.bopomofo)
            except bopomofo.SyllableError as e:
                raise BackendError(f'Cannot save "{record.phrase}": {e}')
            if not reading:
                raise BackendError(f'Cannot save "{record.phrase}": the reading is empty')
            canonical.append(DictionaryRecord(record.phrase, reading, record.frequency))

        info = dict(DEFAULT_INFO)
        if os.path.exists(path):
            try:
                info = _info_from(_read_dictionary_file(path), path)
            except BackendError as e:
                logger.warning(f'Existing dictionary unreadable, writing default info: {e}')
        _write_dictionary_file(path, info, canonical)

    def validate(self, reading):
        """
        Check the syntax of a reading.

        Raises:
            BackendError: If the reading is empty or a syllable is invalid
        """
        if not bopomofo.normalize(reading):
            raise BackendError('The reading must not be empty')
        try:
            bopomofo.parse_reading(reading)
        except bopomofo.SyllableError as e:
            raise BackendError(
                'Not a valid Bopomofo reading\n'
                'Note: syllables must be separated by spaces\n\n'
                f'{e}')

    def explore(self):
        """
        List the available dictionaries.

        System dictionaries come first, followed by the personal dictionary,
        which is created empty if it does not exist yet.

        Returns:
            list: DictionaryResource
        """
        resources = []
        for directory in self.system_dirs:
            if not os.path.isdir(directory):
                continue
            for file_name in sorted(os.listdir(directory)):
                if not file_name.endswith(DICTIONARY_EXTENSION):
                    continue
                path = os.path.join(directory, file_name)
                try:
                    info = _info_from(_read_dictionary_file(path), path)
                except BackendError as e:
                    logger.warning(f'Skipping dictionary: {e}')
                    continue
                resources.append(DictionaryResource(CATEGORY_SYSTEM, info['name'], path))

        personal = self.personal_dictionary_path
        if not os.path.exists(personal):
            logger.info(f'Personal dictionary not found, creating: {personal}')
            _write_dictionary_file(personal, dict(DEFAULT_INFO), [])
        try:
            info = _info_from(_read_dictionary_file(personal), personal)
            resources.append(DictionaryResource(CATEGORY_PERSONAL, info['name'], personal))
        except BackendError as e:
            logger.error(f'Personal dictionary unreadable: {e}')
        return resources

    def info(self, path):
        """
        Returns:
            dict: name, version, copyright, license, software
        """
        return _info_from(_read_dictionary_file(path), path)

    def import_file(self, path):
        """
        Replace the personal dictionary with the entries of a CSV file.

        Rows are ``phrase,bopomofo,frequency``. A header row and lines starting
        with '#' are skipped, as are rows with an invalid reading.

        Returns:
            int: Number of imported entries
        """
        records = []
        skipped = 0
        try:
            with open(path, newline='', encoding='utf-8-sig') as f:
                for row in csv.reader(f):
                    if not row or not row[0].strip() or row[0].startswith('#'):
                        continue
                    if [cell.strip().lower() for cell in row[:3]] == CSV_HEADER:
                        continue
                    if len(row) < 2:
                        skipped += 1
                        continue
                    frequency = row[2] if len(row) > 2 else 0
                    try:
                        reading = _canonical_reading(row[1])
                    except bopomofo.SyllableError as e:
                        logger.warning(f'Skipping "{row[0]}": {e}')
                        skipped += 1
                        continue
                    if not reading:
                        skipped += 1
                        continue
                    records.append(DictionaryRecord(row[0].strip(), reading, frequency))
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise BackendError(f'Unable to import dictionary file\n\n{e}')

        info = dict(DEFAULT_INFO)
        personal = self.personal_dictionary_path
        if os.path.exists(personal):
            try:
                info = _info_from(_read_dictionary_file(personal), personal)
            except BackendError:
                pass
        _write_dictionary_file(personal, info, records)
        logger.info(f'Imported {len(records)} entries from {path} ({skipped} skipped)')
        return len(records)

    def export_file(self, path):
        """
        Write the personal dictionary to a CSV file.

        Returns:
            int: Number of exported entries
        """
        records = self.load(self.personal_dictionary_path)
        try:
            with open(path, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(CSV_HEADER)
                for record in records:
                    writer.writerow([record.phrase, record.bopomofo, record.frequency])
        except OSError as e:
            raise BackendError(f'Unable to export dictionary file\n\n{e}')
        logger.info(f'Exported {len(records)} entries to {path}')
        return len(records)

    # ─── Configuration commands ──────────────────────────────────────

    def _system_data_file(self, file_name):
        for directory in self.system_dirs:
            path = os.path.join(directory, file_name)
            if os.path.exists(path):
                return path
        return None

    def _read_data_file(self, file_name):
        """Read a data file, preferring the user copy over the system one."""
        user_path = os.path.join(self.user_dir, file_name)
        path = user_path if os.path.exists(user_path) else self._system_data_file(file_name)
        if path is None:
            return ''
        try:
            with open(path, encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            raise BackendError(f'Unable to read {path}\n\n{e}')

    def _write_data_file(self, file_name, content):
        """Store a user copy of a data file unless it equals the system copy."""
        system_path = self._system_data_file(file_name)
        system_content = ''
        if system_path is not None:
            with open(system_path, encoding='utf-8') as f:
                system_content = f.read()
        if content == system_content:
            return
        user_path = os.path.join(self.user_dir, file_name)
        os.makedirs(self.user_dir, exist_ok=True)
        with open(user_path, 'w', encoding='utf-8') as f:
            f.write(content)
        logger.info(f'Saved {user_path}')

    def load_config(self):
        """
        Read the configuration, merged with the defaults.

        A missing config file yields the default configuration.

        Returns:
            tuple: (config, warnings_string) where warnings_string lists the
                   keys that were missing or had the wrong type, empty if none
        """
        data = preferences.default_config()
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, encoding='utf-8') as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                logger.error(f'Error loading {self.config_path}: {e}. Using the default configuration')
                data = preferences.default_config()
            except OSError as e:
                raise BackendError(f'Unable to read {self.config_path}\n\n{e}')
        else:
            logger.warning(f'{self.config_path} not found, using the default configuration')

        config, warnings = preferences.merge_config(data)
        config['symbols_dat'] = self._read_data_file(SYMBOLS_FILE_NAME)
        config['swkb_dat'] = self._read_data_file(EASY_SYMBOLS_FILE_NAME)
        return config, warnings

    def save_config(self, config):
        """
        Validate and store the configuration.

        The symbol tables are written to the user directory only when they
        differ from the system defaults.
        """
        try:
            preferences.validate_config(config)
        except ValueError as e:
            raise BackendError(f'Invalid configuration\n\n{e}')

        stored = {key: value for key, value in config.items()
                  if key not in ('symbols_dat', 'swkb_dat')}
        try:
            os.makedirs(os.path.dirname(self.config_path) or '.', exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(stored, f, ensure_ascii=False, indent=2)
            self._write_data_file(SYMBOLS_FILE_NAME, config.get('symbols_dat', ''))
            self._write_data_file(EASY_SYMBOLS_FILE_NAME, config.get('swkb_dat', ''))
        except OSError as e:
            raise BackendError(f'Unable to save the configuration\n\n{e}')
        logger.info(f'Configuration saved successfully to {self.config_path}')

    def import_config(self, path):
        """
        Read a configuration file exported earlier.

        Returns:
            tuple: (config, warnings_string), as load_config
        """
        try:
            with open(path, encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise BackendError(f'Unable to read file\n\n{e}')
        except json.JSONDecodeError as e:
            raise BackendError(f'The file content is invalid\n\n{e}')
        if not isinstance(data, dict) or not isinstance(data.get(preferences.SECTION), dict):
            raise BackendError('The file content is invalid')
        return preferences.merge_config(data)

    def export_config(self, path, config):
        """Write the whole configuration, symbol tables included, to ``path``."""
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(config, f, ensure_ascii=False, indent=2)
        except (OSError, TypeError) as e:
            raise BackendError(f'Unable to write file\n\n{e}')
        logger.info(f'Configuration exported to {path}')

    def get_system_fonts(self):
        """
        List installed font families.

        Returns:
            list: {"name": ..., "display_name": ...} dicts, localized first
        """
        import gi
        gi.require_version('PangoCairo', '1.0')
        from gi.repository import PangoCairo

        font_map = PangoCairo.FontMap.get_default()
        fonts = []
        for family in font_map.list_families():
            name = family.get_name()
            fonts.append({'name': name, 'display_name': name})
        return sort_font_families(fonts)
