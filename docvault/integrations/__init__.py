from docvault.integrations.storage_client import FileStorage, StorageException

__all__ = ["FileStorage", "StorageException"]
