"""
File storage for uploaded document bytes on the local filesystem
"""
import os
import uuid
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class StorageException(Exception):
    """Storage operation exception"""
    pass


class FileStorage:
    """
    Local filesystem storage for uploaded files.

    Files are stored flat under upload_dir with a system-assigned name
    (uuid4 plus the original extension) so two uploads never collide.
    """

    def __init__(self, upload_dir: str = "uploads"):
        self.upload_dir = upload_dir

    def path_for(self, stored_name: str) -> str:
        """
        Resolve a stored filename to its path on disk.

        Only the base name is used, so a stored name can never point outside
        upload_dir.
        """
        safe_name = os.path.basename(stored_name or "")
        if not safe_name or safe_name in (".", ".."):
            raise StorageException(f"Invalid stored filename: {stored_name!r}")
        return os.path.join(self.upload_dir, safe_name)

    def save_file(self, content: bytes, original_filename: str) -> str:
        """
        Write file bytes under a fresh name

        Args:
            content: File content
            original_filename: Name supplied by the user, only its extension is kept

        Returns:
            Stored filename (not a path)
        """
        try:
            file_ext = os.path.splitext(original_filename or "")[1].lower()
            stored_name = f"{uuid.uuid4()}{file_ext}"

            os.makedirs(self.upload_dir, exist_ok=True)
            with open(self.path_for(stored_name), 'wb') as f:
                f.write(content)

            logger.debug(f"Stored {len(content)} bytes as {stored_name}")
            return stored_name

        except OSError as e:
            raise StorageException(f"Failed to save file: {str(e)}")

    def read_file(self, stored_name: str) -> Optional[bytes]:
        """Return file bytes, or None if the file is gone"""
        path = self.path_for(stored_name)
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'rb') as f:
                return f.read()
        except OSError as e:
            raise StorageException(f"Failed to read file: {str(e)}")

    def delete_file(self, stored_name: str) -> bool:
        """
        Delete a stored file

        Returns:
            True if deleted, False if it did not exist
        """
        try:
            path = self.path_for(stored_name)
            if os.path.exists(path):
                os.remove(path)
                return True
            return False
        except OSError as e:
            raise StorageException(f"Failed to delete file: {str(e)}")
