from __future__ import annotations

"""Base repository pattern over the collection store"""

from abc import ABC
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from storefront.database.collection_store import CollectionStore
from storefront.entities.base import BaseEntity, utcnow

T = TypeVar("T", bound=BaseEntity)

Predicate = Callable[[Dict[str, Any]], bool]


class BaseRepository(ABC, Generic[T]):
    """Base repository providing typed access to one collection"""

    def __init__(self, store: CollectionStore, collection_name: str, model_class: Type[T]):
        self.store = store
        self.collection_name = collection_name
        self.model_class = model_class

    def load_raw(self) -> List[Dict[str, Any]]:
        """Return the raw records of the collection"""
        return self.store.load(self.collection_name)

    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find a record by its ID"""
        return self._to_model(self.store.get(self.collection_name, entity_id))

    def find_one(self, predicate: Predicate) -> Optional[T]:
        """Find the first record matching the predicate"""
        for doc in self.load_raw():
            if predicate(doc):
                return self._to_model(doc)
        return None

    def find_many(
        self,
        predicate: Optional[Predicate] = None,
        sort_key: Optional[Callable[[Dict[str, Any]], Any]] = None,
        reverse: bool = False,
        skip: int = 0,
        limit: int = 0,
    ) -> List[T]:
        """Find records matching the predicate"""
        docs = [doc for doc in self.load_raw() if predicate is None or predicate(doc)]
        if sort_key:
            docs.sort(key=sort_key, reverse=reverse)
        if skip:
            docs = docs[skip:]
        if limit:
            docs = docs[:limit]
        return [self._to_model(doc) for doc in docs]

    def paginate(
        self,
        predicate: Optional[Predicate] = None,
        sort_key: Optional[Callable[[Dict[str, Any]], Any]] = None,
        reverse: bool = False,
        skip: int = 0,
        limit: int = 0,
    ) -> tuple[List[T], int]:
        """Return paginated results plus total count for the predicate."""
        items = self.find_many(predicate, sort_key=sort_key, reverse=reverse, skip=skip, limit=limit)
        total = self.count(predicate)
        return items, total

    def count(self, predicate: Optional[Predicate] = None) -> int:
        """Count records matching the predicate"""
        return sum(1 for doc in self.load_raw() if predicate is None or predicate(doc))

    def insert_one(self, entity: T) -> T:
        """Append a single record"""
        self.store.append(self.collection_name, [entity.to_document()])
        return entity

    def insert_many(self, entities: Iterable[T]) -> List[T]:
        """Append several records in one write"""
        entities = list(entities)
        if not entities:
            return []
        self.store.append(self.collection_name, [e.to_document() for e in entities])
        return entities

    def update(self, entity: T, **changes: Any) -> Optional[T]:
        """Update fields of a record by field name.

        Fields set to None are written as null.
        """
        changes["updated_at"] = utcnow()
        updated = entity.model_copy(update=changes)
        doc = updated.model_dump(by_alias=True, mode="json", include=set(changes))
        raw = self.store.update(self.collection_name, entity.id, doc)
        return self._to_model(raw)

    def _to_model(self, doc: Optional[Dict[str, Any]]) -> Optional[T]:
        """Convert a raw record to a model instance"""
        if not doc:
            return None
        return self.model_class.model_validate(doc)
