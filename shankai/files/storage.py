# shankai/files/storage.py
import logging
import os
from functools import lru_cache
from typing import Tuple
from uuid import uuid4

from shankai.config.settings import settings

logger = logging.getLogger(__name__)


class BlobStorage:
    """
    Stores uploaded file bodies on the local filesystem under a single
    directory, each under a random name that keeps the original extension.
    """

    def __init__(self, root: str):
        self.root = root
        os.makedirs(self.root, exist_ok=True)

    def save(self, data: bytes, original_name: str) -> Tuple[str, str]:
        """Write ``data`` and return (stored filename, path)."""
        ext = os.path.splitext(original_name or "")[1].lower()
        stored_name = f"{uuid4().hex}{ext}"
        path = os.path.join(self.root, stored_name)
        with open(path, "wb") as buffer:
            buffer.write(data)
        return stored_name, path

    def delete(self, path: str) -> bool:
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"[Blob Storage] blob already missing: {path}")
            return False
        return True

    def exists(self, path: str) -> bool:
        return os.path.exists(path)


@lru_cache
def get_storage() -> BlobStorage:
    return BlobStorage(settings.UPLOAD_DIR)
