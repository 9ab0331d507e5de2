"""User repository for collection store operations"""

from typing import List, Optional

from storefront.database.collection_store import CollectionStore
from storefront.entities.user import User

from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for user entities"""

    def __init__(self, store: CollectionStore):
        super().__init__(store, "users", User)

    def find_by_email(self, email: str) -> Optional[User]:
        """Find a user by exact email match"""
        return self.find_one(lambda doc: doc.get("email") == email)

    def find_by_reset_token_hash(self, token_hash: str) -> Optional[User]:
        return self.find_one(lambda doc: doc.get("resetTokenHash") == token_hash)

    def list_all(self, search: str = None, role: str = None) -> List[User]:
        """List users newest first, optionally filtered by search text and role."""
        needle = (search or "").lower()

        def matches(doc) -> bool:
            if role and doc.get("role", "customer") != role:
                return False
            if not needle:
                return True
            fields = (doc.get("email"), doc.get("username"), doc.get("firstName"), doc.get("lastName"))
            return any(needle in (value or "").lower() for value in fields)

        return self.find_many(matches, sort_key=lambda doc: doc.get("createdAt") or "", reverse=True)
