"""
Attachment storage backends.

ATTACHMENT_STORAGE selects where uploaded files land:
- 'local': written under MEDIA_ROOT and served from MEDIA_URL
- 'minio': pushed to an S3-compatible bucket and referenced by public URL

There is no retry and no fallback from one backend to the other.
"""
import os
import uuid
from dataclasses import dataclass
from pathlib import Path

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.files.storage import FileSystemStorage
from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

LOCAL = 'local'
MINIO = 'minio'


class AttachmentStorageError(Exception):
    """Raised when the storage backend cannot store, remove or reach a file."""
    pass


@dataclass(frozen=True)
class StoredFile:
    key: str
    url: str
    backend: str


def generate_object_key(prefix: str, filename: str) -> str:
    """
    Generate unique object key for attachment storage.

    Args:
        prefix: Folder prefix (e.g., 'attachments/<vehicle_id>')
        filename: Original filename

    Returns:
        Unique object key string
    """
    unique_id = uuid.uuid4().hex[:12]
    # Sanitize filename
    safe_filename = "".join(c for c in filename if c.isalnum() or c in "._-") or 'file'
    return f"{prefix}/{unique_id}_{safe_filename}"


def get_minio_client():
    """Get configured MinIO client instance."""
    return Minio(
        settings.MINIO_ENDPOINT,
        access_key=settings.MINIO_ACCESS_KEY,
        secret_key=settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_USE_SSL
    )


class LocalAttachmentStorage:
    """Stores attachments on the local filesystem below MEDIA_ROOT."""

    backend = LOCAL

    def __init__(self):
        self.root = Path(settings.MEDIA_ROOT)
        self._storage = FileSystemStorage(location=self.root, base_url=settings.MEDIA_URL)

    def save(self, key: str, fileobj, content_type: str = '') -> StoredFile:
        try:
            name = self._storage.save(key, fileobj)
        except OSError as e:
            raise AttachmentStorageError(f"Failed to write {key}: {e}") from e
        return StoredFile(key=name, url=self._storage.url(name), backend=self.backend)

    def delete(self, key: str) -> None:
        try:
            self._storage.delete(key)
        except OSError as e:
            raise AttachmentStorageError(f"Failed to delete {key}: {e}") from e

    def check(self) -> None:
        # MEDIA_ROOT is created on first save; it only has to be writable once it exists
        target = self.root if self.root.exists() else self.root.parent
        if not os.access(target, os.W_OK):
            raise AttachmentStorageError(f"{target} is not writable")


class MinioAttachmentStorage:
    """Stores attachments in a MinIO/S3 bucket with public-read URLs."""

    backend = MINIO

    def __init__(self, client=None):
        self.client = client or get_minio_client()
        self.bucket = settings.MINIO_ATTACHMENTS_BUCKET

    def public_url(self, key: str) -> str:
        return f"{settings.MINIO_PUBLIC_URL.rstrip('/')}/{self.bucket}/{key}"

    def save(self, key: str, fileobj, content_type: str = '') -> StoredFile:
        try:
            self.client.put_object(
                bucket_name=self.bucket,
                object_name=key,
                data=fileobj,
                length=fileobj.size,
                content_type=content_type or 'application/octet-stream',
            )
        except (S3Error, HTTPError) as e:
            raise AttachmentStorageError(f"Failed to upload {key} to bucket {self.bucket}: {e}") from e
        return StoredFile(key=key, url=self.public_url(key), backend=self.backend)

    def delete(self, key: str) -> None:
        try:
            self.client.remove_object(bucket_name=self.bucket, object_name=key)
        except (S3Error, HTTPError) as e:
            raise AttachmentStorageError(f"Failed to delete {key} from bucket {self.bucket}: {e}") from e

    def check(self) -> None:
        try:
            exists = self.client.bucket_exists(bucket_name=self.bucket)
        except (S3Error, HTTPError) as e:
            raise AttachmentStorageError(f"Bucket {self.bucket} unreachable: {e}") from e
        if not exists:
            raise AttachmentStorageError(f"Bucket {self.bucket} does not exist")


STORAGE_BACKENDS = {
    LOCAL: LocalAttachmentStorage,
    MINIO: MinioAttachmentStorage,
}


def get_attachment_storage(backend: str = None):
    """
    Return the storage for `backend`, or for ATTACHMENT_STORAGE when omitted.

    Raises:
        ImproperlyConfigured: unknown backend name
    """
    name = (backend or settings.ATTACHMENT_STORAGE or '').strip().lower()
    try:
        storage_class = STORAGE_BACKENDS[name]
    except KeyError:
        raise ImproperlyConfigured(
            f"Unknown attachment storage '{name}'. Expected one of: {', '.join(STORAGE_BACKENDS)}"
        )
    return storage_class()
