"""
JSON File Storage Implementation

DESIGN DECISION: One file per key inside a data directory.
1. Each collection document is human-readable on disk
2. No database setup required
3. Whole-document replace matches how the ledger writes

TRADEOFFS:
- Not suitable for large volumes (fine for a single-user ledger)
- No cross-file transactions (the ledger rolls back in memory instead)

File I/O and its retry backoff run in a worker thread, off the event loop.
Writes go to a temporary file that is then atomically renamed over the
target, so a crash mid-write never leaves a truncated document behind.
"""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from finledger.config import get_settings
from finledger.services.storage.interface import (
    ConnectionError,
    KeyValueStorageInterface,
    StorageError,
)


_SUFFIX = ".json"


class JsonFileKeyValueStorage(KeyValueStorageInterface):
    """
    Directory-of-JSON-files storage.

    Transient OS errors (locked files, full buffers) are retried
    before surfacing as StorageError.
    """

    def __init__(self, data_dir: Optional[str] = None):
        self._root = Path(data_dir or get_settings().storage.data_dir)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConnectionError(f"Cannot open storage directory {self._root}: {e}")

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._root / f"{key}{_SUFFIX}"

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write(self, path: Path, value: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".tmp-", suffix=_SUFFIX)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _read(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    async def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return await asyncio.to_thread(self._read, path)
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}")

    async def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, value)
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}")

    async def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}")

    async def keys(self, prefix: str = "") -> list[str]:
        return sorted(
            p.name[: -len(_SUFFIX)]
            for p in self._root.glob(f"*{_SUFFIX}")
            if not p.name.startswith(".") and p.name.startswith(prefix)
        )
