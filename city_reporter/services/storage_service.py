"""
Photo storage on Firebase Cloud Storage.

Contract:
- ``upload(data, content_type, filename) -> StoredBlob(url, path)``
- every call writes a new, globally unique object path
- any failure is raised as StorageError
"""

import logging
import os
import time
import uuid
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from city_reporter.core.exceptions import StorageError
from city_reporter.core.settings import settings

logger = logging.getLogger(__name__)

DOWNLOAD_URL_TEMPLATE = "https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{path}?alt=media&token={token}"


@dataclass(frozen=True)
class StoredBlob:
    url: str
    path: str


def build_object_path(filename: str, prefix: Optional[str] = None) -> str:
    """``<prefix>/<epoch ms>-<uuid hex>.<ext>``; the extension comes from the client filename."""
    extension = os.path.splitext(filename or "")[1].lstrip(".").lower() or "bin"
    prefix = prefix or settings.UPLOAD_PREFIX
    return f"{prefix}/{int(time.time() * 1000)}-{uuid.uuid4().hex}.{extension}"


class FirebaseBlobStore:
    """Uploads photo bytes and returns a Firebase download URL."""

    def __init__(self, bucket=None, prefix: Optional[str] = None):
        if bucket is None:
            from city_reporter.config.firebase import get_bucket
            bucket = get_bucket()
        self.bucket = bucket
        self.prefix = prefix or settings.UPLOAD_PREFIX

    def upload(self, data: bytes, content_type: str, filename: str) -> StoredBlob:
        path = build_object_path(filename, self.prefix)
        token = uuid.uuid4().hex
        try:
            blob = self.bucket.blob(path)
            blob.metadata = {
                "firebaseStorageDownloadTokens": token,
                "originalName": filename,
            }
            logger.info(f"Uploading to Firebase Storage: {path}")
            blob.upload_from_string(data, content_type=content_type)
        except Exception as e:
            logger.error(f"Firebase upload failed for {path}: {e}", exc_info=True)
            raise StorageError("Photo upload failed") from e

        url = DOWNLOAD_URL_TEMPLATE.format(bucket=self.bucket.name, path=quote(path, safe=""), token=token)
        logger.info(f"Firebase Storage URL: {url}")
        return StoredBlob(url=url, path=path)


# Global adapter instance
_blob_store = None


def get_blob_store() -> FirebaseBlobStore:
    global _blob_store
    if _blob_store is None:
        _blob_store = FirebaseBlobStore()
    return _blob_store
