# src/pinwatch/services/blob_store.py
"""Object storage for report images."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Protocol
from urllib.parse import quote

from minio import Minio
from minio.commonconfig import CopySource
from minio.error import S3Error

from pinwatch.core.settings import settings
from pinwatch.services.errors import BlobNotFoundError

logger = logging.getLogger(__name__)

VERIFIED_PREFIX = "reports/verified"
DENIED_PREFIX = "reports/denied"
# Longest lifetime S3 allows for presigned URLs.
PRESIGNED_URL_LIFETIME = timedelta(days=7)

_MISSING_CODES = {"NoSuchKey", "NoSuchObject", "NotFound"}


class BlobStore(Protocol):
    """Copy, delete and publish objects by path."""

    def copy(self, source: str, destination: str) -> None:
        """Copy ``source`` to ``destination``; raise BlobNotFoundError if absent."""

    def exists(self, path: str) -> bool: ...

    def delete(self, path: str) -> None:
        """Remove ``path``; raise BlobNotFoundError if it does not exist."""

    def public_url(self, path: str) -> str: ...


def file_name(path: str) -> str:
    """Return the final path segment of an object path."""
    return path.rstrip("/").rsplit("/", 1)[-1]


def verified_path(report_id: str, source: str) -> str:
    return f"{VERIFIED_PREFIX}/{report_id}/{file_name(source)}"


def denied_path(report_id: str, source: str) -> str:
    return f"{DENIED_PREFIX}/{report_id}/{file_name(source)}"


def get_minio_client() -> Minio:
    """Create and return a MinIO client instance."""
    return Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )


def ensure_bucket_exists(client: Minio, bucket_name: str) -> None:
    """Create bucket if it doesn't exist."""
    try:
        if not client.bucket_exists(bucket_name):
            client.make_bucket(bucket_name)
            logger.info("Created MinIO bucket: %s", bucket_name)
        else:
            logger.info("MinIO bucket exists: %s", bucket_name)
    except S3Error as exc:
        logger.error("Error ensuring bucket exists: %s", exc)
        raise


class MinioBlobStore:
    """BlobStore backed by a single MinIO/S3 bucket."""

    def __init__(
        self,
        client: Minio,
        bucket: str,
        public_base_url: str | None = None,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def exists(self, path: str) -> bool:
        try:
            self.client.stat_object(self.bucket, path)
        except S3Error as exc:
            if exc.code in _MISSING_CODES:
                return False
            raise
        return True

    def copy(self, source: str, destination: str) -> None:
        try:
            self.client.copy_object(self.bucket, destination, CopySource(self.bucket, source))
        except S3Error as exc:
            if exc.code in _MISSING_CODES:
                raise BlobNotFoundError(source) from exc
            raise

    def delete(self, path: str) -> None:
        # S3 deletes are idempotent, so existence is checked up front.
        if not self.exists(path):
            raise BlobNotFoundError(path)
        self.client.remove_object(self.bucket, path)

    def public_url(self, path: str) -> str:
        """Return a URL that serves ``path`` without credentials.

        With ``PUBLIC_MEDIA_BASE_URL`` configured (a public-read bucket
        behind a CDN or proxy) the URL is permanent; otherwise a presigned
        URL with the longest permitted lifetime is minted.
        """
        if self.public_base_url:
            return f"{self.public_base_url}/{self.bucket}/{quote(path)}"
        return self.client.presigned_get_object(
            self.bucket, path, expires=PRESIGNED_URL_LIFETIME
        )


class _BlobStoreSingleton:
    """Singleton wrapper for MinioBlobStore."""

    _instance: MinioBlobStore | None = None

    @classmethod
    def get_instance(cls) -> MinioBlobStore:
        """Get or create the store, creating its bucket on first use."""
        if cls._instance is None:
            client = get_minio_client()
            ensure_bucket_exists(client, settings.minio_bucket)
            cls._instance = MinioBlobStore(
                client, settings.minio_bucket, settings.public_media_base_url
            )
        return cls._instance


def get_blob_store() -> BlobStore:
    """Return the process-wide blob store."""
    return _BlobStoreSingleton.get_instance()
