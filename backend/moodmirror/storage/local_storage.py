"""
Local Filesystem Key-Value Store Implementation.
Stores one JSON file per key on the server's local filesystem.
"""

import asyncio
import json
import logging
import uuid
import aiofiles
import aiofiles.os
from pathlib import Path
from typing import Optional, List, Dict, Any

from .interface import KeyValueStore
from ..core.errors import StoreUnavailable, ValidationError

logger = logging.getLogger(__name__)


class LocalKVStore(KeyValueStore):
    """
    Local filesystem key-value store.

    ``user:abc:survey:2024-03-04`` is stored at
    ``<base_dir>/user/abc/survey/2024-03-04.json``. Key insertion order is
    kept in ``_index.json`` so prefix scans return values in write order.
    """

    INDEX_FILE = "_index.json"

    def __init__(self, base_dir: str = "./data"):
        """
        Initialize local storage with a base directory.

        Args:
            base_dir: Base directory for all stored files
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._index_path = self.base_dir / self.INDEX_FILE
        self._index_lock = asyncio.Lock()
        self._index_cache: Optional[List[str]] = None

    def _get_full_path(self, key: str) -> Path:
        """Convert a key to a file path within the base directory."""
        parts = key.split(":") if key else []
        if not parts or any(part in ("", ".", "..") for part in parts):
            raise ValidationError(f"Invalid key: {key!r}")

        *dirs, name = parts
        full_path = (self.base_dir.joinpath(*dirs) / f"{name}.json").resolve()

        # Security check: ensure path is within base_dir
        if not full_path.is_relative_to(self.base_dir) or full_path == self._index_path:
            raise ValidationError(f"Invalid key: {key} - path traversal detected")

        return full_path

    async def _read_json(self, path: Path) -> Any:
        try:
            async with aiofiles.open(path, 'r', encoding='utf-8') as f:
                return json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading {path}: {e}")
            raise StoreUnavailable(f"Record store unavailable: {e}") from e

    async def _write_json(self, path: Path, data: Any) -> None:
        """Write to a temp file beside ``path`` and swap it in, so readers never see a partial file."""
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            content = json.dumps(data, indent=2, ensure_ascii=False)
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                await f.write(content)
            await aiofiles.os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error writing {path}: {e}")
            tmp_path.unlink(missing_ok=True)
            raise StoreUnavailable(f"Record store unavailable: {e}") from e

    async def _load_index(self) -> List[str]:
        """Load the key insertion index."""
        if self._index_cache is None:
            if self._index_path.exists():
                self._index_cache = await self._read_json(self._index_path)
            else:
                self._index_cache = []
        return self._index_cache

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Load a value from the local filesystem."""
        full_path = self._get_full_path(key)
        if not full_path.exists():
            return None
        return await self._read_json(full_path)

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        """Write a value and record the key in the index on first write."""
        full_path = self._get_full_path(key)
        await self._write_json(full_path, value)

        async with self._index_lock:
            index = await self._load_index()
            if key not in index:
                await self._write_json(self._index_path, index + [key])
                index.append(key)

    async def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        """Load all values whose key starts with the prefix, in insertion order."""
        async with self._index_lock:
            keys = [k for k in await self._load_index() if k.startswith(prefix)]

        values = []
        for key in keys:
            value = await self.get(key)
            if value is not None:
                values.append(value)
        return values

    async def delete(self, key: str) -> bool:
        """Delete a key from the local filesystem."""
        full_path = self._get_full_path(key)
        async with self._index_lock:
            index = await self._load_index()
            if key in index:
                remaining = [k for k in index if k != key]
                await self._write_json(self._index_path, remaining)
                self._index_cache = remaining
        if not full_path.exists():
            return False
        try:
            full_path.unlink()
        except OSError as e:
            raise StoreUnavailable(f"Record store unavailable: {e}") from e
        return True
