"""Order repository for collection store operations"""

from typing import List

from storefront.database.collection_store import CollectionStore
from storefront.entities.order import Order

from .base import BaseRepository


class OrderRepository(BaseRepository[Order]):
    def __init__(self, store: CollectionStore):
        super().__init__(store, "orders", Order)

    def find_by_customer(self, customer_id: str) -> List[Order]:
        """Orders of a customer, newest first."""
        return self.find_many(
            lambda doc: str(doc.get("customer")) == str(customer_id),
            sort_key=lambda doc: doc.get("orderDate") or "",
            reverse=True,
        )
