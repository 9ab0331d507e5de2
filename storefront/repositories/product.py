"""Product repository for collection store operations"""

from typing import List, Optional

from storefront.database.collection_store import CollectionStore
from storefront.entities.product import Product

from .base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    def __init__(self, store: CollectionStore):
        super().__init__(store, "products", Product)

    def find_at(self, position: int) -> Optional[Product]:
        """Return the product at a position in stored order, or None."""
        docs = self.load_raw()
        if 0 <= position < len(docs):
            return self._to_model(docs[position])
        return None

    def find_low_stock(self) -> List[Product]:
        return [p for p in self.find_many(lambda doc: doc.get("isActive", True)) if p.is_low_stock]
