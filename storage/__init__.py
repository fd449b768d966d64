"""
Storage Module
Persistence backends sharing one interface
"""

import logging

from config import Settings
from storage.base import Storage, StorageError, NotFoundError, ConflictError, adherence_percent
from storage.memory_storage import MemStorage
from storage.sql_storage import DatabaseStorage


logger = logging.getLogger(__name__)


def create_storage(settings: Settings) -> Storage:
    """
    Build the backend named by STORAGE_BACKEND ("memory" or "database").
    Database tables are created if missing.
    """
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "memory":
        logger.info("Using in-memory storage")
        return MemStorage()

    if backend == "database":
        from sqlalchemy.orm import sessionmaker
        from database import create_db_engine, init_db

        engine = create_db_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        init_db(bind=engine)
        logger.info("Using database storage")
        return DatabaseStorage(sessionmaker(autocommit=False, autoflush=False, bind=engine))

    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")


__all__ = [
    "Storage",
    "StorageError",
    "NotFoundError",
    "ConflictError",
    "MemStorage",
    "DatabaseStorage",
    "adherence_percent",
    "create_storage",
]
