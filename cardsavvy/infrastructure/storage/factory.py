"""Select the storage backend from configuration"""

import logging

from cardsavvy.config import Settings
from cardsavvy.infrastructure.storage.base import Storage
from cardsavvy.infrastructure.storage.memory import MemStorage


def create_storage(settings: Settings) -> Storage:
    """Memory unless disabled; then MongoDB when enabled, else the relational database"""
    if settings.use_mem_storage:
        logging.info("Using in-memory storage", extra={"backend": "memory"})
        return MemStorage()

    if settings.use_mongodb:
        from cardsavvy.infrastructure.storage.mongo import MongoStorage

        logging.info("Using MongoDB storage", extra={"backend": "mongodb"})
        return MongoStorage.from_uri(settings.mongodb_uri, settings.mongodb_db)

    from cardsavvy.infrastructure.storage.sql import SqlStorage

    logging.info("Using relational storage", extra={"backend": "sql"})
    return SqlStorage.from_url(settings.database_url)
