from docvault.storage.base import DocumentStore, PersistenceError, EXPIRING_SOON_DAYS
from docvault.storage.memory_storage import MemoryStorage
from docvault.storage.sql_storage import SQLStorage

__all__ = [
    "DocumentStore",
    "PersistenceError",
    "EXPIRING_SOON_DAYS",
    "MemoryStorage",
    "SQLStorage",
]
