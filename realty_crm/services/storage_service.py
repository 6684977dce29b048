"""
Local-filesystem bucket storage.

Objects live under ``STORAGE_DIR/<bucket>/<path>`` and are served from
``STORAGE_PUBLIC_URL/<bucket>/<path>``.
"""
import logging
from pathlib import Path, PurePosixPath
from typing import Optional

from realty_crm.config import settings
from realty_crm.core.exceptions import StorageError

logger = logging.getLogger(__name__)

AVATAR_BUCKET = "avatars"


class StorageService:
    """Writes uploaded files to disk and hands back their public URL."""

    def __init__(self, root: Optional[str] = None, public_url: Optional[str] = None):
        self.root = Path(root or settings.STORAGE_DIR)
        self.public_url = (public_url or settings.STORAGE_PUBLIC_URL).rstrip("/")

    def _object_key(self, bucket: str, path: str) -> PurePosixPath:
        key = PurePosixPath(bucket) / PurePosixPath(path)
        if not bucket or not path or key.is_absolute() or ".." in key.parts:
            raise StorageError(bucket, path, "invalid object path")
        return key

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_url}/{self._object_key(bucket, path)}"

    def upload_file(self, bucket: str, path: str, data: bytes, overwrite: bool = False) -> str:
        """
        Store ``data`` and return its public URL.

        Raises:
            StorageError: if the object exists and ``overwrite`` is off, or the
                write fails
        """
        key = self._object_key(bucket, path)
        target = self.root / key

        if target.exists() and not overwrite:
            raise StorageError(bucket, path, "object already exists")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(bucket, path, str(e)) from e

        logger.info(f"Stored {len(data)} bytes at {key}")
        return self.get_public_url(bucket, path)
