"""
Configuration loader for drawio-layers.
Reads settings from settings.ini file, falling back to built-in defaults.
"""

import os
import logging
import configparser
from pathlib import Path

SETTINGS_FILENAME = 'settings.ini'
HOME_SETTINGS_FILENAME = '.drawio-layers.ini'

DEFAULT_OUTPUT_FILENAME = 'export.xml'
DEFAULT_TEMPLATE = str(Path(__file__).parent / 'templates' / 'draft.xml')
DEFAULT_LOG_LEVEL = 'WARNING'


def find_settings_file():
    """Find settings.ini file, searching up from current directory."""
    # Check current directory first
    if os.path.exists(SETTINGS_FILENAME):
        return SETTINGS_FILENAME

    # Check in parent directories up to 3 levels
    current = Path.cwd()
    for _ in range(3):
        current = current.parent
        settings_path = current / SETTINGS_FILENAME
        if settings_path.exists():
            return str(settings_path)

    # Per-user settings
    home_path = Path.home() / HOME_SETTINGS_FILENAME
    if home_path.exists():
        return str(home_path)

    # Check in package directory
    package_dir = Path(__file__).parent.parent
    settings_path = package_dir / SETTINGS_FILENAME
    if settings_path.exists():
        return str(settings_path)

    return None


def load_settings(settings_path=None):
    """
    Load settings from INI file.
    Returns a dict with all configuration values.

    Without an explicit path a missing settings file is not an error: the
    defaults are returned. An explicit path that does not exist raises
    FileNotFoundError. A file configparser cannot read raises
    configparser.Error, and an unknown logging level raises ValueError.
    """
    if settings_path is not None and not os.path.exists(settings_path):
        raise FileNotFoundError(f"settings file not found: {settings_path}")

    if settings_path is None:
        settings_path = find_settings_file()

    config = configparser.ConfigParser()
    base_dir = os.getcwd()
    if settings_path is not None:
        config.read(settings_path, encoding='utf-8')
        # Get base directory (where settings.ini is located)
        base_dir = os.path.dirname(os.path.abspath(settings_path))

    def resolve_path(path):
        """Resolve relative paths against base directory."""
        if path.startswith('./') or path.startswith('../'):
            return os.path.normpath(os.path.join(base_dir, path))
        return path

    log_level = config.get('Logging', 'level', fallback=DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"unknown log level in {settings_path}: {log_level}")

    return {
        'settings_path': settings_path,
        'output_filename': config.get('Export', 'output_filename', fallback=DEFAULT_OUTPUT_FILENAME),
        'watermark_template': resolve_path(
            config.get('Classification', 'template', fallback=DEFAULT_TEMPLATE)
        ),
        'log_level': log_level,
    }


class Settings:
    """Singleton-like settings object for easy access."""
    _settings = None

    @classmethod
    def get(cls, key=None, settings_path=None):
        """Get settings value or all settings."""
        if cls._settings is None:
            cls._settings = load_settings(settings_path)

        if key is None:
            return cls._settings
        return cls._settings.get(key)

    @classmethod
    def reload(cls, settings_path=None):
        """Reload settings from file."""
        cls._settings = load_settings(settings_path)
        return cls._settings

    @classmethod
    def clear(cls):
        cls._settings = None
