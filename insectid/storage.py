"""
Key-Value Storage
=================
Durable string storage for the identification collections.

Each backend offers the same three calls: get, set and clear. Values are
opaque strings (the state manager stores JSON arrays in them).
"""
from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from .exceptions import CorruptValueError, StorageError

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def _check_key(key: str) -> str:
    if not KEY_PATTERN.match(key or ""):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class KeyValueStore:
    """Synchronous string store with get/set/clear semantics."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, used for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(_check_key(key))

    def set(self, key: str, value: str) -> None:
        self._data[_check_key(key)] = value

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> List[str]:
        return sorted(self._data)


class FileKeyValueStore(KeyValueStore):
    """Stores every key as ``<directory>/<key>.json``."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directory {self.directory}: {e}") from e

    def _path(self, key: str) -> Path:
        return self.directory / f"{_check_key(key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            data = path.read_bytes()
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptValueError(f"{path} is not valid UTF-8: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e
        logger.debug(f"Wrote {len(value)} bytes to {path}")

    def clear(self) -> None:
        for path in self.directory.glob("*.json"):
            try:
                path.unlink()
            except OSError as e:
                raise StorageError(f"Cannot remove {path}: {e}") from e

    def keys(self) -> List[str]:
        return sorted(path.stem for path in self.directory.glob("*.json"))
