#!/usr/bin/env python3
# tests/test_backend.py - Unit tests for the file-based backend

import pytest
import json
import os
import sys

import orjson

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import preferences
from backend import (
    DEFAULT_INFO,
    BackendError,
    LocalBackend,
    sort_font_families,
)
from record_store import CATEGORY_PERSONAL, CATEGORY_SYSTEM, DictionaryRecord


def write_dictionary(path, entries, info=None):
    document = {'entries': entries}
    if info is not None:
        document['info'] = info
    with open(path, 'wb') as f:
        f.write(orjson.dumps(document))


@pytest.fixture
def dirs(tmp_path):
    user_dir = tmp_path / 'user'
    system_dir = tmp_path / 'system'
    user_dir.mkdir()
    system_dir.mkdir()
    return user_dir, system_dir


@pytest.fixture
def backend(dirs, tmp_path):
    user_dir, system_dir = dirs
    return LocalBackend(str(user_dir), [str(system_dir)], str(tmp_path / 'config' / 'config.json'))


class TestDictionaryCommands:
    """Test suite for load/save/validate"""

    def test_load(self, backend, tmp_path):
        path = tmp_path / 'dict.json'
        write_dictionary(path, [
            {'phrase': '測試', 'bopomofo': 'ㄘㄜˋ ㄕˋ', 'frequency': 3},
            {'phrase': '八', 'bopomofo': 'ㄅㄚ', 'frequency': 'x'},
            'garbage',
        ])
        records = backend.load(str(path))
        assert records == [
            DictionaryRecord('測試', 'ㄘㄜˋ ㄕˋ', 3),
            DictionaryRecord('八', 'ㄅㄚ', 0),
        ]

    def test_load_missing_file(self, backend, tmp_path):
        with pytest.raises(BackendError):
            backend.load(str(tmp_path / 'missing.json'))

    def test_load_invalid_json(self, backend, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{not json')
        with pytest.raises(BackendError):
            backend.load(str(path))

    def test_save_normalizes_readings(self, backend, tmp_path):
        path = tmp_path / 'out.json'
        backend.save(str(path), [
            DictionaryRecord('測試', 'ㄘㄜˋ␣ㄕˋ', 3),
            {'phrase': '有', 'bopomofo': '一ㄡˇ', 'frequency': 1},
        ])
        data = orjson.loads(path.read_bytes())
        assert data['info'] == DEFAULT_INFO
        assert data['entries'] == [
            {'phrase': '測試', 'bopomofo': 'ㄘㄜˋ ㄕˋ', 'frequency': 3},
            {'phrase': '有', 'bopomofo': 'ㄧㄡˇ', 'frequency': 1},
        ]

    def test_save_keeps_existing_info(self, backend, tmp_path):
        path = tmp_path / 'out.json'
        info = {'name': 'Mine', 'version': '2.0', 'copyright': 'me',
                'license': 'MIT', 'software': 'test'}
        write_dictionary(path, [], info)
        backend.save(str(path), [DictionaryRecord('八', 'ㄅㄚ', 1)])
        assert orjson.loads(path.read_bytes())['info'] == info

    def test_save_rejects_invalid_reading(self, backend, tmp_path):
        path = tmp_path / 'out.json'
        write_dictionary(path, [{'phrase': 'a', 'bopomofo': 'ㄚ', 'frequency': 1}])
        with pytest.raises(BackendError, match='b'):
            backend.save(str(path), [DictionaryRecord('a', 'ㄚ', 1), DictionaryRecord('b', 'bad', 1)])
        # nothing written
        assert len(backend.load(str(path))) == 1

    def test_save_rejects_empty_reading(self, backend, tmp_path):
        with pytest.raises(BackendError):
            backend.save(str(tmp_path / 'out.json'), [DictionaryRecord('a', '', 1)])

    def test_save_load_round_trip(self, backend, tmp_path):
        path = str(tmp_path / 'out.json')
        records = [DictionaryRecord('測試', 'ㄘㄜˋ ㄕˋ', 3), DictionaryRecord('八', 'ㄅㄚ', 0)]
        backend.save(path, records)
        assert backend.load(path) == records

    def test_validate_ok(self, backend):
        assert backend.validate('ㄘㄜˋ ㄕˋ') is None

    def test_validate_empty(self, backend):
        with pytest.raises(BackendError, match='empty'):
            backend.validate('  ')

    def test_validate_unseparated(self, backend):
        with pytest.raises(BackendError, match='separated by spaces'):
            backend.validate('ㄘㄜˋㄕˋ')


class TestExplore:
    """Test suite for explore/info"""

    def test_system_first_then_personal(self, backend, dirs):
        user_dir, system_dir = dirs
        write_dictionary(system_dir / 'tsi.json', [], {'name': 'Main'})
        write_dictionary(system_dir / 'word.json', [])
        (system_dir / 'readme.txt').write_text('ignored')
        resources = backend.explore()
        assert [(r.category, r.name) for r in resources] == [
            (CATEGORY_SYSTEM, 'Main'),
            (CATEGORY_SYSTEM, 'word'),
            (CATEGORY_PERSONAL, DEFAULT_INFO['name']),
        ]
        assert os.path.exists(backend.personal_dictionary_path)

    def test_unreadable_system_dictionary_skipped(self, backend, dirs):
        _, system_dir = dirs
        (system_dir / 'broken.json').write_text('{')
        resources = backend.explore()
        assert [r.category for r in resources] == [CATEGORY_PERSONAL]

    def test_missing_system_dir(self, tmp_path):
        backend = LocalBackend(str(tmp_path / 'user'), [str(tmp_path / 'nowhere')])
        assert len(backend.explore()) == 1

    def test_info(self, backend, tmp_path):
        path = tmp_path / 'dict.json'
        write_dictionary(path, [], {'name': 'Main', 'version': '1.2'})
        info = backend.info(str(path))
        assert info == {'name': 'Main', 'version': '1.2', 'copyright': '',
                        'license': '', 'software': ''}


class TestImportExport:
    """Test suite for CSV import/export"""

    def test_import_replaces_personal(self, backend, tmp_path):
        backend.save(backend.personal_dictionary_path, [DictionaryRecord('舊', 'ㄐㄧㄡˋ', 1)])
        csv_path = tmp_path / 'in.csv'
        csv_path.write_text(
            'phrase,bopomofo,frequency\n'
            '# comment\n'
            '測試,ㄘㄜˋ ㄕˋ,3\n'
            '壞,bad,1\n'
            '八,ㄅㄚ\n',
            encoding='utf-8')
        assert backend.import_file(str(csv_path)) == 2
        assert backend.load(backend.personal_dictionary_path) == [
            DictionaryRecord('測試', 'ㄘㄜˋ ㄕˋ', 3),
            DictionaryRecord('八', 'ㄅㄚ', 0),
        ]

    def test_import_non_ascii_frequency(self, backend, tmp_path):
        csv_path = tmp_path / 'in.csv'
        csv_path.write_text('測試,ㄘㄜˋ ㄕˋ,²\n八,ㄅㄚ,1²\n', encoding='utf-8')
        assert backend.import_file(str(csv_path)) == 2
        assert [r.frequency for r in backend.load(backend.personal_dictionary_path)] == [0, 1]

    def test_import_missing_file(self, backend, tmp_path):
        with pytest.raises(BackendError):
            backend.import_file(str(tmp_path / 'missing.csv'))

    def test_export(self, backend, tmp_path):
        backend.save(backend.personal_dictionary_path, [DictionaryRecord('測試', 'ㄘㄜˋ ㄕˋ', 3)])
        csv_path = tmp_path / 'out.csv'
        assert backend.export_file(str(csv_path)) == 1
        lines = csv_path.read_text(encoding='utf-8').splitlines()
        assert lines == ['phrase,bopomofo,frequency', '測試,ㄘㄜˋ ㄕˋ,3']


class TestConfigCommands:
    """Test suite for configuration commands"""

    def test_load_defaults_when_missing(self, backend):
        config, _ = backend.load_config()
        assert config[preferences.SECTION] == preferences.DEFAULT_SECTION
        assert config['symbols_dat'] == ''

    def test_load_reports_warnings(self, backend):
        os.makedirs(os.path.dirname(backend.config_path))
        with open(backend.config_path, 'w', encoding='utf-8') as f:
            json.dump({preferences.SECTION: {'font_size': 'big'}}, f)
        config, warnings = backend.load_config()
        assert config[preferences.SECTION]['font_size'] == 16
        assert 'font_size' in warnings
        assert 'cand_per_row' in warnings

    def test_no_warnings_for_defaults(self, backend):
        _, warnings = backend.load_config()
        assert warnings == ''

    def test_save_and_load(self, backend):
        config, _ = backend.load_config()
        config[preferences.SECTION]['font_size'] = 20
        backend.save_config(config)
        assert backend.load_config()[0][preferences.SECTION]['font_size'] == 20

    def test_save_invalid_config(self, backend):
        config, _ = backend.load_config()
        config[preferences.SECTION]['font_size'] = 200
        with pytest.raises(BackendError):
            backend.save_config(config)
        assert not os.path.exists(backend.config_path)

    def test_symbol_files(self, backend, dirs):
        user_dir, system_dir = dirs
        (system_dir / 'symbols.dat').write_text('…\n', encoding='utf-8')
        config, _ = backend.load_config()
        assert config['symbols_dat'] == '…\n'

        # unchanged tables are not copied to the user directory
        backend.save_config(config)
        assert not (user_dir / 'symbols.dat').exists()

        config['swkb_dat'] = 'A…\n'
        backend.save_config(config)
        assert (user_dir / 'swkb.dat').read_text(encoding='utf-8') == 'A…\n'
        assert backend.load_config()[0]['swkb_dat'] == 'A…\n'

    def test_symbol_tables_not_in_config_file(self, backend):
        config, _ = backend.load_config()
        config['symbols_dat'] = 'x'
        backend.save_config(config)
        with open(backend.config_path, encoding='utf-8') as f:
            stored = json.load(f)
        assert 'symbols_dat' not in stored

    def test_export_import_round_trip(self, backend, tmp_path):
        config, _ = backend.load_config()
        config[preferences.SECTION] = preferences.set_keybind(
            config[preferences.SECTION], 'toggle_hsu_keyboard', 'Control+F12')
        path = str(tmp_path / 'exported.json')
        backend.export_config(path, config)
        assert backend.import_config(path)[0] == config

    def test_import_invalid(self, backend, tmp_path):
        path = tmp_path / 'bad.json'
        path.write_text('[1, 2]')
        with pytest.raises(BackendError):
            backend.import_config(str(path))


class TestSortFontFamilies:
    """Test suite for sort_font_families()"""

    def test_localized_first(self):
        fonts = [
            {'name': 'Sans', 'display_name': 'Sans'},
            {'name': 'Noto Sans CJK TC', 'display_name': '思源黑體'},
            {'name': 'DejaVu Serif', 'display_name': 'DejaVu Serif'},
        ]
        assert [f['name'] for f in sort_font_families(fonts)] == \
            ['Noto Sans CJK TC', 'DejaVu Serif', 'Sans']
