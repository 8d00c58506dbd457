"""Durable string key-value stores with a capacity limit.

Both stores behave like browser local storage: values are strings, the whole
store has a byte quota, and a write that would exceed it raises
QuotaExceededError without changing anything.
"""

import errno
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from .errors import QuotaExceededError

logger = logging.getLogger(__name__)

# Disk full / quota errnos; EDQUOT is missing on some platforms
_FULL_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


def _size(items: Dict[str, str]) -> int:
    return sum(len(k.encode("utf-8")) + len(v.encode("utf-8")) for k, v in items.items())


class KeyValueStore(ABC):
    """Abstract string key-value store."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._quota = quota_bytes

    @property
    def quota_bytes(self) -> Optional[int]:
        return self._quota

    @abstractmethod
    def _read_all(self) -> Dict[str, str]:
        """Return every stored item."""
        ...

    @abstractmethod
    def _write_all(self, items: Dict[str, str]) -> None:
        """Persist every item, replacing the previous contents."""
        ...

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``.

        Raises:
            QuotaExceededError: If the store would grow past its quota.
        """
        items = dict(self._read_all())
        items[key] = value
        if self._quota is not None:
            size = _size(items)
            if size > self._quota:
                logger.warning(f"Write of {key!r} rejected: {size} bytes exceeds quota of {self._quota}")
                raise QuotaExceededError()
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        items = dict(self._read_all())
        if items.pop(key, None) is not None:
            self._write_all(items)

    def used_bytes(self) -> int:
        return _size(self._read_all())


class MemoryStore(KeyValueStore):
    """Process-local store."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        super().__init__(quota_bytes)
        self._items: Dict[str, str] = {}

    def _read_all(self) -> Dict[str, str]:
        return self._items

    def _write_all(self, items: Dict[str, str]) -> None:
        self._items = items


class FileStore(KeyValueStore):
    """Store kept as one JSON object in a file.

    Writes go to a temporary file in the same directory and are renamed into
    place, so a failed write never leaves a partial file behind.
    """

    def __init__(self, path: Path, quota_bytes: Optional[int] = None) -> None:
        super().__init__(quota_bytes)
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Storage file {self._path} is corrupt, treating it as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Storage file {self._path} does not hold a JSON object, treating it as empty")
            return {}
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
            logger.error(f"Storage file {self._path} holds non-string values, treating it as empty")
            return {}
        return data

    def _write_all(self, items: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".storage-", suffix=".tmp", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False)
            os.replace(tmp_name, self._path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            if e.errno in _FULL_ERRNOS:
                raise QuotaExceededError() from e
            raise
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote {len(items)} item(s) to {self._path}")
