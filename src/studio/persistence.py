"""Named project snapshots kept in a durable key-value store."""

import logging
import time
from typing import Callable, List, Optional

from pydantic import TypeAdapter

from .errors import NotFoundError, ValidationError
from .models.custom import time_based_id
from .models.record import ProjectRecord
from .models.state import ProjectState
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

PROJECTS_STORAGE_KEY = "gemini-creative-suite-projects"

_RECORD_LIST = TypeAdapter(List[ProjectRecord])


def _now_millis() -> int:
    return int(time.time() * 1000)


class ProjectStore:
    """Saved projects, mirrored in memory and stored under a single key.

    Every save and delete writes the complete new record list to the store
    first and only then updates the in-memory list, so a rejected write
    leaves both exactly as they were. Records are copied on the way in and
    on the way out, so a saved record never changes.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        key: str = PROJECTS_STORAGE_KEY,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        """Initialize the store and load existing records.

        Args:
            storage: Durable key-value store.
            key: Storage key holding the record list.
            clock: Returns the current time in epoch milliseconds.
        """
        self._storage = storage
        self._key = key
        self._clock = clock or _now_millis
        self._records: List[ProjectRecord] = self._load()

    def _load(self) -> List[ProjectRecord]:
        raw = self._storage.get_item(self._key)
        if raw is None:
            return []
        try:
            records = _RECORD_LIST.validate_json(raw)
        except ValueError as e:
            logger.error(f"Failed to load projects from storage, discarding them: {e}")
            self._storage.remove_item(self._key)
            return []
        logger.debug(f"Loaded {len(records)} project(s)")
        return records

    def _write(self, records: List[ProjectRecord]) -> None:
        self._storage.set_item(self._key, _RECORD_LIST.dump_json(records).decode("utf-8"))

    def list(self) -> List[ProjectRecord]:
        """Return copies of all records in storage order."""
        return [r.model_copy(deep=True) for r in self._records]

    def list_newest_first(self) -> List[ProjectRecord]:
        return sorted(self.list(), key=lambda r: r.timestamp, reverse=True)

    def storage_bytes(self) -> int:
        """Return the bytes used by the underlying store."""
        return self._storage.used_bytes()

    def save(self, name: str, state: ProjectState) -> ProjectRecord:
        """Store ``state`` as a new record.

        Args:
            name: Display name; must not be blank.
            state: State to save. Its transient video handle is dropped.

        Returns:
            The new record.

        Raises:
            ValidationError: If ``name`` is empty or whitespace.
            QuotaExceededError: If the store is full. Nothing is changed.
        """
        if not name or not name.strip():
            raise ValidationError("Please enter a project name.")

        timestamp = self._clock()
        record = ProjectRecord(
            id=time_based_id("proj", (r.id for r in self._records), now_ms=timestamp),
            name=name.strip(),
            timestamp=timestamp,
            state=state.model_copy(deep=True).without_transients(),
        )

        records = self._records + [record]
        self._write(records)
        self._records = records

        logger.info(f"Saved project '{record.name}' as {record.id}")
        return record.model_copy(deep=True)

    def load(self, record_id: str) -> ProjectRecord:
        """Return a copy of the record with ``record_id``.

        Raises:
            NotFoundError: If no such record exists.
        """
        for record in self._records:
            if record.id == record_id:
                return record.model_copy(deep=True)
        raise NotFoundError(record_id)

    def delete(self, record_id: str) -> None:
        """Remove a record. Deleting an unknown id does nothing."""
        records = [r for r in self._records if r.id != record_id]
        if len(records) == len(self._records):
            logger.debug(f"Delete of unknown project {record_id} ignored")
            return
        self._write(records)
        self._records = records
        logger.info(f"Deleted project {record_id}")
