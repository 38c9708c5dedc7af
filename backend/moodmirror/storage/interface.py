"""
Key-Value Store Interface - Abstract base class for all store implementations.
This interface enables switching between the local filesystem store, an
in-memory store for tests, or a hosted key-value service.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any


class KeyValueStore(ABC):
    """
    Abstract key-value store that defines the contract used by the record layer.

    Keys are colon-separated namespaces such as ``user:<id>:survey:<date>``.
    Values are JSON-compatible dictionaries.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Load the value stored under a key.

        Args:
            key: Full key (e.g., "user:123:survey:2024-03-04")

        Returns:
            Optional[Dict]: Stored value, or None if the key does not exist

        Raises:
            StoreUnavailable: If the store cannot be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any]) -> None:
        """
        Store a value, overwriting any previous value under the key.

        Args:
            key: Full key
            value: JSON-compatible dictionary

        Raises:
            StoreUnavailable: If the store cannot be written
        """
        pass

    @abstractmethod
    async def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        """
        Load every value whose key starts with the prefix.

        Values are returned in the order their keys were first written.
        Overwriting a key keeps its original position.

        Args:
            prefix: Key prefix (e.g., "user:123:survey:")

        Returns:
            List[Dict]: Matching values

        Raises:
            StoreUnavailable: If the store cannot be read
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove a key. Records are never deleted by the application; this is
        for maintenance and tests.

        Returns:
            bool: True if the key existed
        """
        pass
