"""Configuration management using XDG Base Directory Specification.

This module provides centralized configuration management following Linux
standards for config, cache, and data directories.
"""

import configparser
import os
from pathlib import Path
from typing import Optional

from shuffle.logging import get_logger

logger = get_logger(__name__)


class Config:
    """
    Configuration manager using XDG Base Directory Specification.

    Follows Linux standards:
    - Config: ~/.config/shuffle/ (or XDG_CONFIG_HOME)
    - Cache: ~/.cache/shuffle/ (or XDG_CACHE_HOME)
    - Data: ~/.local/share/shuffle/ (or XDG_DATA_HOME)
    """

    _instance: Optional['Config'] = None

    def __init__(self) -> None:
        """
        Initialize configuration manager.

        Sets up XDG Base Directory paths and loads or creates configuration.
        """
        # XDG Base Directory paths
        self.config_home = Path(os.getenv('XDG_CONFIG_HOME', Path.home() / '.config'))
        self.cache_home = Path(os.getenv('XDG_CACHE_HOME', Path.home() / '.cache'))
        self.data_home = Path(os.getenv('XDG_DATA_HOME', Path.home() / '.local' / 'share'))

        # Application-specific directories
        self.app_name = 'shuffle'
        self.config_dir = self.config_home / self.app_name
        self.cache_dir = self.cache_home / self.app_name
        self.data_dir = self.data_home / self.app_name

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self.config_file = self.config_dir / 'config.ini'
        # Interpolation off: the state section stores raw JSON
        self.config = configparser.ConfigParser(interpolation=None)

        self._load_config()

    @classmethod
    def get_instance(cls) -> 'Config':
        """Get the singleton config instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def _load_config(self) -> None:
        """Load configuration from file or create defaults."""
        if self.config_file.exists():
            try:
                self.config.read(self.config_file, encoding='utf-8')
            except configparser.Error as e:
                logger.warning("Ignoring unreadable config %s: %s", self.config_file, e)
                self.config = configparser.ConfigParser(interpolation=None)
                self._create_default_config()
                return
            self._fill_missing_defaults()
        else:
            self._create_default_config()

    def _default_sections(self) -> dict:
        return {
            'library': {
                'supported_extensions': 'mp3,wav,flac,ogg',
                'guard_symlink_cycles': 'true',
            },
            'audio': {
                'volume': '100',
            },
            'state': {},
        }

    def _create_default_config(self) -> None:
        """Create default configuration with sensible defaults."""
        for section, values in self._default_sections().items():
            self.config[section] = values
        self.save()

    def _fill_missing_defaults(self) -> None:
        """Add sections and keys introduced after the file was written."""
        for section, values in self._default_sections().items():
            if section not in self.config:
                self.config.add_section(section)
            for key, value in values.items():
                if not self.config.has_option(section, key):
                    self.config.set(section, key, value)

    def save(self) -> bool:
        """
        Save configuration to file.

        Returns:
            True if the file was written
        """
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                self.config.write(f)
        except OSError as e:
            logger.error("Failed to save config: %s", e, exc_info=True)
            return False
        return True

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """Get a configuration value."""
        return self.config.get(section, key, fallback=fallback)

    def set(self, section: str, key: str, value: str) -> bool:
        """
        Set a configuration value and persist it.

        Args:
            section: Configuration section name
            key: Configuration key name
            value: Value to set

        Returns:
            True if the change reached disk
        """
        if section not in self.config:
            self.config.add_section(section)
        self.config.set(section, key, value)
        return self.save()

    def remove(self, section: str, key: str) -> bool:
        """Remove a key (missing keys are fine) and persist the change."""
        if self.config.has_section(section):
            self.config.remove_option(section, key)
        return self.save()

    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        """Get a boolean configuration value."""
        return self.config.getboolean(section, key, fallback=fallback)

    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """Get an integer configuration value."""
        return self.config.getint(section, key, fallback=fallback)

    def get_list(self, section: str, key: str, separator: str = ',', fallback: Optional[list[str]] = None) -> list[str]:
        """
        Get a list configuration value.

        Args:
            section: Configuration section name
            key: Configuration key name
            separator: Separator character (default: ',')
            fallback: Default value if not found

        Returns:
            List of strings
        """
        value = self.get(section, key)
        if value:
            return [item.strip() for item in value.split(separator) if item.strip()]
        return fallback or []

    # Convenience properties
    @property
    def supported_extensions(self) -> frozenset[str]:
        """Extensions (without dot, lowercase) the scanner accepts."""
        values = self.get_list('library', 'supported_extensions')
        return frozenset(value.lower().lstrip('.') for value in values)

    @property
    def guard_symlink_cycles(self) -> bool:
        return self.get_bool('library', 'guard_symlink_cycles', True)

    @property
    def initial_volume(self) -> int:
        """Startup volume on the 0..100 scale."""
        try:
            volume = self.get_int('audio', 'volume', 100)
        except ValueError:
            logger.warning("Invalid [audio] volume, using 100")
            return 100
        return max(0, min(100, volume))

    @property
    def log_dir(self) -> Path:
        """Get log directory."""
        log_dir = self.data_dir / 'logs'
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir


def get_config() -> Config:
    """Get the configuration instance."""
    return Config.get_instance()
