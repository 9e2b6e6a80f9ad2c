"""Key-value persistence for small pieces of UI state.

The recent-folders registry only needs ``get``/``set``/``remove`` on string
values; ``ConfigKeyValueStore`` keeps them in the ``[state]`` section of the
INI configuration file.
"""

from typing import Dict, Optional

from shuffle.config import Config
from shuffle.exceptions import PersistenceError


class KeyValueStore:
    """String key-value storage. Failures raise PersistenceError."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, used when nothing should touch the disk."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class ConfigKeyValueStore(KeyValueStore):
    """Store backed by one section of the configuration file."""

    def __init__(self, config: Config, section: str = 'state'):
        self._config = config
        self._section = section

    def get(self, key: str) -> Optional[str]:
        return self._config.get(self._section, key)

    def set(self, key: str, value: str) -> None:
        if not self._config.set(self._section, key, value):
            raise PersistenceError(f"Could not write {self._section}.{key}")

    def remove(self, key: str) -> None:
        if not self._config.remove(self._section, key):
            raise PersistenceError(f"Could not remove {self._section}.{key}")
