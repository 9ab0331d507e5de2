"""MongoDB client for the ``mongo`` store backend."""

from __future__ import annotations

import logging

from pymongo import MongoClient
from pymongo.database import Database

from storefront.config import settings

logger = logging.getLogger(__name__)

_client: MongoClient | None = None


def get_client() -> MongoClient:
    """Return the process-wide client, connecting lazily on first use."""
    global _client
    if _client is None:
        logger.info("Connecting to MongoDB database %s", settings.MONGODB_DB_NAME)
        _client = MongoClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=int(settings.HTTP_TIMEOUT_SECONDS * 1000),
        )
    return _client


def get_database() -> Database:
    return get_client()[settings.MONGODB_DB_NAME]
