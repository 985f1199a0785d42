"""In-memory collection store.

The store has exclusive authority over record IDs and system properties.
Values returned by any operation are owned by the caller: they are deep
copies, and mutating them never affects stored state. Records are stored
without their ``_id``; it is attached to every returned copy.
"""

import copy
import threading
import time
from typing import Any, Callable, Mapping

from practicebase.core.errors import NotFoundError
from practicebase.core.logging import get_logger
from practicebase.domain.services.record_id_generator import (
    RecordIdGenerator,
    uuid4_factory,
)

logger = get_logger(__name__)

ID_FIELD = "_id"
CREATED_FIELD = "_createdOn"
UPDATED_FIELD = "_updatedOn"
OWNER_FIELD = "_ownerId"
DELETED_FIELD = "_deletedOn"

SYSTEM_FIELDS = (ID_FIELD, CREATED_FIELD, UPDATED_FIELD, OWNER_FIELD)


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def strip_system_fields(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Deep copy of ``payload`` without any system property."""
    return {
        key: copy.deepcopy(value)
        for key, value in payload.items()
        if key not in SYSTEM_FIELDS
    }


def _tagged(record: Mapping[str, Any], record_id: str) -> dict[str, Any]:
    result = copy.deepcopy(dict(record))
    result[ID_FIELD] = record_id
    return result


class CollectionStore:
    """Owns all collections and records.

    Collections are created lazily on first ``add``. Writes to one
    collection are serialised by a per-collection lock, last writer wins.
    """

    def __init__(
        self,
        seed_data: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None,
        id_factory: Callable[[], str] = uuid4_factory,
        max_id_attempts: int = 100,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize the store.

        Args:
            seed_data: Initial collections as ``{collection: {id: record}}``.
            id_factory: Callable producing candidate record IDs.
            max_id_attempts: Collisions tolerated before giving up.
            clock: Millisecond clock used for system timestamps.
        """
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        self.id_generator = RecordIdGenerator(id_factory, max_id_attempts)
        self.clock = clock

        for name, records in (seed_data or {}).items():
            target = self._ensure_collection(name)
            for record_id, record in records.items():
                stored = copy.deepcopy(dict(record))
                stored.pop(ID_FIELD, None)
                target[record_id] = stored

    # Internals

    def _ensure_collection(self, name: str) -> dict[str, dict[str, Any]]:
        with self._registry_lock:
            if name not in self._collections:
                self._collections[name] = {}
                self._locks[name] = threading.RLock()
            return self._collections[name]

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        try:
            return self._collections[name]
        except KeyError:
            raise NotFoundError(f"Collection does not exist: {name}") from None

    def _existing(self, name: str, record_id: str) -> dict[str, Any]:
        target = self._collection(name)
        try:
            return target[record_id]
        except KeyError:
            raise NotFoundError(f"Entry does not exist: {record_id}") from None

    def _stamp(self, previous: Any = None) -> int:
        """Timestamp strictly after ``previous`` when one is given."""
        stamp = self.clock()
        if isinstance(previous, int) and stamp <= previous:
            stamp = previous + 1
        return stamp

    # Reads

    def list_collections(self) -> list[str]:
        """Names of all collections."""
        return list(self._collections.keys())

    def has_collection(self, name: str) -> bool:
        """Whether ``name`` exists."""
        return name in self._collections

    def get(self, collection: str, record_id: str | None = None) -> Any:
        """Get one record, or every record of a collection.

        Args:
            collection: Collection name.
            record_id: Record ID. When omitted, all records are returned.

        Returns:
            A record copy tagged with ``_id``, or a list of them.

        Raises:
            NotFoundError: If the collection or the record does not exist.
        """
        if record_id is None:
            target = self._collection(collection)
            with self._locks[collection]:
                return [_tagged(record, key) for key, record in target.items()]

        with self._locks.get(collection, self._registry_lock):
            return _tagged(self._existing(collection, record_id), record_id)

    def fetch(self, collection: str, record_id: Any) -> dict[str, Any] | None:
        """Like ``get`` for one record, but returns None instead of raising."""
        if not isinstance(record_id, str):
            return None
        try:
            return self.get(collection, record_id)
        except NotFoundError:
            return None

    def query(self, collection: str, match: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Records whose properties equal every value in ``match``.

        Strings compare case-insensitively, other values exactly. A key
        missing from a record compares as None.

        Raises:
            NotFoundError: If the collection does not exist.
        """
        target = self._collection(collection)
        result = []
        with self._locks[collection]:
            for key, record in target.items():
                if all(_matches(record.get(prop), value) for prop, value in match.items()):
                    result.append(_tagged(record, key))
        return result

    # Writes

    def add(
        self,
        collection: str,
        payload: Mapping[str, Any],
        owner_id: str | None = None,
    ) -> dict[str, Any]:
        """Store a new record.

        Client-supplied system properties are discarded. The collection is
        created if absent.

        Raises:
            RecordIdExhaustedError: If no unique ID could be generated.
        """
        record = strip_system_fields(payload)
        target = self._ensure_collection(collection)

        with self._locks[collection]:
            record_id = self.id_generator.generate(collection, target)
            if owner_id is not None:
                record[OWNER_FIELD] = owner_id
            record[CREATED_FIELD] = self._stamp()
            target[record_id] = record

        logger.debug("Record created", collection=collection, record_id=record_id)
        return _tagged(record, record_id)

    def set(self, collection: str, record_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Replace a record, carrying its system properties forward.

        Raises:
            NotFoundError: If the collection or the record does not exist.
        """
        self._collection(collection)
        with self._locks[collection]:
            existing = self._existing(collection, record_id)
            record = strip_system_fields(payload)
            for key in SYSTEM_FIELDS:
                if key in existing:
                    record[key] = copy.deepcopy(existing[key])
            record[UPDATED_FIELD] = self._stamp(existing.get(UPDATED_FIELD))
            self._collections[collection][record_id] = record

        logger.debug("Record replaced", collection=collection, record_id=record_id)
        return _tagged(record, record_id)

    def merge(self, collection: str, record_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Shallow-merge ``payload`` onto a record; stored system properties win.

        Raises:
            NotFoundError: If the collection or the record does not exist.
        """
        self._collection(collection)
        with self._locks[collection]:
            existing = self._existing(collection, record_id)
            record = copy.deepcopy(existing)
            record.update(strip_system_fields(payload))
            record[UPDATED_FIELD] = self._stamp(existing.get(UPDATED_FIELD))
            self._collections[collection][record_id] = record

        logger.debug("Record merged", collection=collection, record_id=record_id)
        return _tagged(record, record_id)

    def delete(self, collection: str, record_id: str) -> dict[str, int]:
        """Remove a record.

        Returns:
            Deletion marker ``{"_deletedOn": <ms>}``.

        Raises:
            NotFoundError: If the collection or the record does not exist.
        """
        self._collection(collection)
        with self._locks[collection]:
            self._existing(collection, record_id)
            del self._collections[collection][record_id]

        logger.debug("Record deleted", collection=collection, record_id=record_id)
        return {DELETED_FIELD: self.clock()}


def _matches(actual: Any, expected: Any) -> bool:
    if isinstance(expected, str) and isinstance(actual, str):
        return expected.lower() == actual.lower()
    return actual == expected
