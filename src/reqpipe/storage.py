"""Key/value persistence used for the credential token.

The client only needs three async operations on string values. Applications
plug in whatever store they already have by implementing ``KeyValueStore``;
two implementations ship with the package.
"""

import asyncio
import json
from pathlib import Path
from typing import Protocol, runtime_checkable

from .exceptions import StorageError
from .log_config import logger


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for an asynchronous string key/value store."""

    async def get_item(self, key: str) -> str | None:
        """Returns the value stored under ``key`` or None if absent."""
        ...

    async def set_item(self, key: str, value: str) -> None:
        """Stores ``value`` under ``key``, replacing any previous value."""
        ...

    async def remove_item(self, key: str) -> None:
        """Removes ``key``; removing a missing key is not an error."""
        ...


class InMemoryKeyValueStore:
    """Implements KeyValueStore with a plain dict. Contents do not survive the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileKeyValueStore:
    """Implements KeyValueStore on top of a single JSON object file.

    Every operation reads the file again, so a value written by another store
    instance is seen on the next read. File I/O runs in a worker thread. The
    lock only serialises read-modify-write cycles of this instance; concurrent
    writers in other instances or processes can overwrite each other.

    Attributes:
        _path: Location of the JSON file. Created on first write.
        _lock: Serialises writes from this instance.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = asyncio.Lock()
        logger.debug(f"JsonFileKeyValueStore using {self._path}")

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            content = self._path.read_text(encoding="utf-8")
            items = json.loads(content) if content.strip() else {}
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read key/value file {self._path}: {e}") from e
        if not isinstance(items, dict):
            raise StorageError(f"Key/value file {self._path} does not hold a JSON object")
        return items

    def _write_all(self, items: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(items, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as e:
            raise StorageError(f"Could not write key/value file {self._path}: {e}") from e

    async def get_item(self, key: str) -> str | None:
        items = await asyncio.to_thread(self._read_all)
        value = items.get(key)
        return value if isinstance(value, str) else None

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            items = await asyncio.to_thread(self._read_all)
            items[key] = value
            await asyncio.to_thread(self._write_all, items)

    async def remove_item(self, key: str) -> None:
        async with self._lock:
            items = await asyncio.to_thread(self._read_all)
            if key not in items:
                return
            del items[key]
            await asyncio.to_thread(self._write_all, items)
