"""Storage module - provides the key-value store contract, implementations and record access."""

from typing import Optional

from .interface import KeyValueStore
from .local_storage import LocalKVStore
from .memory_storage import InMemoryKVStore
from .record_store import RecordStore

# Global key-value store instance
_kv_store: Optional[KeyValueStore] = None


def create_kv_store(storage_type: str = "local", path: str = "./data") -> KeyValueStore:
    """
    Create a key-value store from configuration.

    Args:
        storage_type: "local" or "memory"
        path: Base directory for the local store

    Returns:
        KeyValueStore instance
    """
    if storage_type == "local":
        return LocalKVStore(path)
    elif storage_type == "memory":
        return InMemoryKVStore()
    else:
        raise ValueError(f"Unsupported storage type: {storage_type}")


def init_kv_store(store: KeyValueStore) -> None:
    """Install the process-wide key-value store."""
    global _kv_store
    _kv_store = store


def get_kv_store() -> KeyValueStore:
    """
    Get the process-wide key-value store.

    Raises:
        RuntimeError: If the store has not been initialized
    """
    if _kv_store is None:
        raise RuntimeError("Key-value store not initialized. Call init_kv_store() first.")
    return _kv_store


def get_record_store() -> RecordStore:
    """FastAPI dependency returning a RecordStore over the process-wide store."""
    return RecordStore(get_kv_store())


__all__ = [
    'KeyValueStore', 'LocalKVStore', 'InMemoryKVStore', 'RecordStore',
    'create_kv_store', 'init_kv_store', 'get_kv_store', 'get_record_store',
]
