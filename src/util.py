import logging
import os

from gi.repository import GLib

logger = logging.getLogger(__name__)


def get_package_name():
    '''
    returns 'ibus-zhuyin'
    '''
    return 'ibus-zhuyin'


def get_version():
    return '0.1.0'


def get_prefix():
    '''
    It is usually /usr/local/
    '''
    return '/usr/local'


def get_datadir():
    '''
    Return the path to the data directory under user-independent (central)
    location (= not under the HOME). The IBUS_ZHUYIN_DATADIR environment
    variable takes precedence.
    '''
    override = os.environ.get('IBUS_ZHUYIN_DATADIR')
    if override:
        return override
    return os.path.join(get_prefix(), 'share', get_package_name())


def get_system_dictionary_dirs():
    '''
    Return the directories searched for read-only system dictionaries and the
    default symbols.dat / swkb.dat, in priority order.
    '''
    dirs = [os.path.join(get_datadir(), 'dictionaries')]
    for data_dir in GLib.get_system_data_dirs():
        candidate = os.path.join(data_dir, get_package_name(), 'dictionaries')
        if candidate not in dirs:
            dirs.append(candidate)
    return dirs


def get_user_config_dir():
    '''
    Return the path to the config directory under $HOME.
    Typically, it would be $HOME/.config/ibus-zhuyin
    '''
    return os.path.join(GLib.get_user_config_dir(), get_package_name())


def get_user_data_dir():
    '''
    Return the directory holding the personal dictionary and user copies of
    the symbol tables. Typically $HOME/.local/share/ibus-zhuyin
    '''
    return os.path.join(GLib.get_user_data_dir(), get_package_name())


def get_config_path():
    return os.path.join(get_user_config_dir(), 'config.json')


def ensure_user_dirs():
    '''
    Create the per-user directories if they do not exist yet.

    Returns:
        bool: True if both directories exist afterwards
    '''
    try:
        os.makedirs(get_user_config_dir(), exist_ok=True)
        os.makedirs(get_user_data_dir(), exist_ok=True)
        return True
    except OSError as e:
        logger.error(f'Unable to create user directories: {e}')
        return False
