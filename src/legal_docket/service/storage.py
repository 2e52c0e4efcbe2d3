"""
Local content-addressed blob store.

Keys have the shape ``<org_id>/<sha[:2]>/<sha><ext>`` relative to
``settings.STORAGE_PATH``. Identical content within an org maps to one key.
"""
import hashlib
import logging
import os
from dataclasses import dataclass

from legal_docket.config import settings

logger = logging.getLogger(__name__)

PROVIDER = "local"


@dataclass
class StoredBlob:
    key: str
    sha256: str
    size_bytes: int
    created: bool  # False when the blob already existed; the caller must not clean it up


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def blob_key(org_id, sha256: str, filename: str | None) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return f"{org_id}/{sha256[:2]}/{sha256}{ext}"


def _abs_path(key: str) -> str:
    return os.path.join(settings.STORAGE_PATH, *key.split("/"))


def put_blob(org_id, data: bytes, filename: str | None) -> StoredBlob:
    """Write ``data`` under its content key. Raises OSError on storage failure."""
    digest = sha256_bytes(data)
    key = blob_key(org_id, digest, filename)
    path = _abs_path(key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o640)
    except FileExistsError:
        return StoredBlob(key=key, sha256=digest, size_bytes=len(data), created=False)
    try:
        with os.fdopen(fd, "wb") as buffer:
            buffer.write(data)
    except OSError:
        # Never leave a truncated blob behind
        _remove(path)
        raise
    logger.info("Stored blob %s (%d bytes)", key, len(data))
    return StoredBlob(key=key, sha256=digest, size_bytes=len(data), created=True)


def delete_blob(key: str) -> bool:
    """Release a blob. Returns False if it was already gone."""
    removed = _remove(_abs_path(key))
    if removed:
        logger.info("Released blob %s", key)
    return removed


def blob_exists(key: str) -> bool:
    return os.path.exists(_abs_path(key))


def _remove(path: str) -> bool:
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
