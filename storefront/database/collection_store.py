"""
Collection store: named collections of records, loaded and saved whole.

``load`` returns every record of a collection and ``save`` replaces them all.
On top of that contract the store offers record-level helpers (``get``,
``append``, ``update``) that run the read-modify-write cycle under a
per-collection lock, so two writers in the same process never interleave.

Two backends exist:
    JsonFileCollectionStore  one ``<name>.json`` array per collection
    MongoCollectionStore     one MongoDB collection per name
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo import DeleteMany, InsertOne, ReplaceOne
from pymongo.database import Database
from pymongo.errors import PyMongoError

from storefront.config import settings
from storefront.services.exceptions import StoreError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def record_key(record: Record) -> Optional[str]:
    """Return the identifier of a record (``_id``, falling back to ``id``)."""
    value = record.get("_id", record.get("id"))
    return str(value) if value is not None else None


class CollectionStore(ABC):
    """Base class for whole-collection persistence."""

    def __init__(self, fail_fast: bool = False):
        """
        Args:
            fail_fast: If True, ``load``/``save`` raise StoreError on failure.
                If False, failures are logged and downgraded (empty list on
                load, no-op on save).
        """
        self.fail_fast = fail_fast
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @abstractmethod
    def _read(self, name: str) -> List[Record]:
        """Read a full collection. Raises StoreError on failure."""

    @abstractmethod
    def _write(self, name: str, records: List[Record]) -> None:
        """Replace a full collection. Raises StoreError on failure."""

    def lock(self, name: str) -> threading.RLock:
        """Return the lock guarding a collection (re-entrant)."""
        with self._locks_guard:
            if name not in self._locks:
                self._locks[name] = threading.RLock()
            return self._locks[name]

    def load(self, name: str) -> List[Record]:
        """Return every record of a collection.

        A missing collection is an empty list. Unreadable collections are
        logged and also returned as empty unless ``fail_fast`` is set.
        """
        with self.lock(name):
            try:
                return self._read(name)
            except StoreError as e:
                if self.fail_fast:
                    raise
                logger.error(f"Error loading collection {name}: {e}")
                return []

    def save(self, name: str, records: Iterable[Record]) -> None:
        """Overwrite a collection with ``records``."""
        with self.lock(name):
            try:
                self._write(name, list(records))
            except StoreError as e:
                if self.fail_fast:
                    raise
                logger.error(f"Error saving collection {name}: {e}")

    def keyed(self, name: str) -> Dict[str, Record]:
        """Return the collection as a map of record id to record."""
        return {
            key: record
            for record in self.load(name)
            if (key := record_key(record)) is not None
        }

    def get(self, name: str, record_id: str) -> Optional[Record]:
        """Find a single record by id."""
        return self.keyed(name).get(str(record_id))

    def append(self, name: str, records: Iterable[Record]) -> List[Record]:
        """Append records to a collection as one locked read-modify-write.

        Unlike ``load``, the read here never degrades: appending to a
        collection that could not be read would overwrite it.
        """
        new_records = list(records)
        with self.lock(name):
            current = self._read(name)
            current.extend(new_records)
            self._write(name, current)
        return new_records

    def update(self, name: str, record_id: str, changes: Record) -> Optional[Record]:
        """Merge ``changes`` into one record. Returns the updated record or None."""
        with self.lock(name):
            current = self._read(name)
            for record in current:
                if record_key(record) == str(record_id):
                    record.update(changes)
                    self._write(name, current)
                    return record
        return None


class JsonFileCollectionStore(CollectionStore):
    """Stores each collection as a pretty-printed JSON array on disk."""

    def __init__(self, data_dir: str | Path, fail_fast: bool = False):
        super().__init__(fail_fast=fail_fast)
        self.data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def _read(self, name: str) -> List[Record]:
        path = self.path_for(name)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreError(str(e), collection=name) from e
        if not isinstance(data, list):
            raise StoreError(
                f"Expected a JSON array, found {type(data).__name__}", collection=name
            )
        return data

    def _write(self, name: str, records: List[Record]) -> None:
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Write beside the target and rename so readers never see a partial file
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{name}.", suffix=".tmp", dir=path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(records, handle, indent=2, ensure_ascii=False)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(str(e), collection=name) from e


# Fields that hold record ids and are stored natively as ObjectIds
OBJECT_ID_FIELDS = frozenset(
    {"_id", "customer", "product", "category", "supervisor", "user", "quiz"}
)


def from_bson(value: Any) -> Any:
    """Replace ObjectIds with their hex strings, recursively."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: from_bson(item) for key, item in value.items()}
    if isinstance(value, list):
        return [from_bson(item) for item in value]
    return value


def to_bson(value: Any) -> Any:
    """Restore ObjectIds in id fields holding 24-character hex strings."""
    if isinstance(value, dict):
        return {
            key: ObjectId(item)
            if key in OBJECT_ID_FIELDS and isinstance(item, str) and ObjectId.is_valid(item)
            else to_bson(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [to_bson(item) for item in value]
    return value


class MongoCollectionStore(CollectionStore):
    """Stores each collection as a MongoDB collection keyed by ``_id``.

    Records are read with ObjectIds turned into strings. On write, id fields
    holding ObjectId-shaped strings are converted back so existing documents
    keep their key type.
    """

    def __init__(self, db: Database, fail_fast: bool = False):
        super().__init__(fail_fast=fail_fast)
        self.db = db

    def _read(self, name: str) -> List[Record]:
        try:
            return [from_bson(doc) for doc in self.db[name].find({})]
        except PyMongoError as e:
            raise StoreError(str(e), collection=name) from e

    def _write(self, name: str, records: List[Record]) -> None:
        writes: list = []
        kept_ids = []
        for record in records:
            doc = dict(record)
            if "_id" not in doc and doc.get("id") is not None:
                doc["_id"] = doc["id"]
            doc = to_bson(doc)
            if "_id" in doc:
                kept_ids.append(doc["_id"])
                writes.append(ReplaceOne({"_id": doc["_id"]}, doc, upsert=True))
            else:
                writes.append(InsertOne(doc))
        operations = [DeleteMany({"_id": {"$nin": kept_ids}}), *writes]

        try:
            self.db[name].bulk_write(operations, ordered=True)
        except PyMongoError as e:
            raise StoreError(str(e), collection=name) from e


_store: CollectionStore | None = None


def create_store() -> CollectionStore:
    """Build the store selected by ``STORE_BACKEND``."""
    if settings.STORE_BACKEND == "mongo":
        from storefront.database.mongo import get_database

        return MongoCollectionStore(get_database(), fail_fast=settings.STORE_FAIL_FAST)
    if settings.STORE_BACKEND == "file":
        return JsonFileCollectionStore(settings.DATA_DIR, fail_fast=settings.STORE_FAIL_FAST)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")


def get_store() -> CollectionStore:
    """Return the process-wide collection store."""
    global _store
    if _store is None:
        _store = create_store()
    return _store
