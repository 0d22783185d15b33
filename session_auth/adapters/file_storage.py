"""
File Storage Adapter - Key-value storage in a local JSON file.

WARNING: Values are stored in plaintext. The file is created with
owner-only permissions but is not encrypted.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Optional

from session_auth.errors import StorageError
from session_auth.logging import get_logger
from session_auth.ports.storage_port import KeyValueStorePort

logger = get_logger(__name__)


class FileStorageAdapter(KeyValueStorePort):
    """
    JSON-file-backed key-value storage.

    The whole store is one JSON object mapping key -> string. Writes go
    to a temp file which is then renamed over the original, so a crash
    mid-write leaves the previous contents intact. Blocking file I/O
    runs in a worker thread.
    """

    def __init__(self, path: str):
        """
        Initialize file storage adapter.

        Args:
            path: Location of the JSON file (parent directories are created)
        """
        self._path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get_item(self, key: str) -> Optional[str]:
        async with self._lock:
            items = await asyncio.to_thread(self._load)
        return items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            items = await asyncio.to_thread(self._load_for_write)
            items[key] = value
            await asyncio.to_thread(self._write_atomic, items)

    async def multi_remove(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        async with self._lock:
            items = await asyncio.to_thread(self._load_for_write)
            changed = False
            for key in keys:
                if key in items:
                    del items[key]
                    changed = True
            if changed:
                await asyncio.to_thread(self._write_atomic, items)

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"Invalid JSON in {self._path}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        if not isinstance(data, dict):
            raise StorageError(f"{self._path} does not hold a JSON object")
        return data

    def _load_for_write(self) -> Dict[str, str]:
        # A corrupt file must not block every future write
        try:
            return self._load()
        except StorageError as e:
            if not self._path.exists():
                raise
            logger.warning("storage_file_reset", path=str(self._path), error=str(e))
            return {}

    def _write_atomic(self, items: Dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self._path.parent),
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(items, f)
                    f.flush()
                    os.fsync(f.fileno())
                os.chmod(tmp_path, 0o600)
                os.replace(tmp_path, self._path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")
