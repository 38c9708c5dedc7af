"""
In-memory key-value store, used for tests and ``storage_type=memory``.
"""

import copy
from typing import Optional, List, Dict, Any

from .interface import KeyValueStore


class InMemoryKVStore(KeyValueStore):
    """Dict-backed store. Python dicts keep first-insertion order on overwrite."""

    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    async def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(v) for k, v in self._data.items() if k.startswith(prefix)]

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> List[str]:
        """All keys in insertion order."""
        return list(self._data)
