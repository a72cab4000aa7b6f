"""Durable media persistence.

Generated media comes back from the remote service as short-lived URLs.
``MediaPersister`` copies those bytes into a Google Cloud Storage bucket
and hands back a stable public URL instead.
"""

import asyncio
import logging
import secrets
from pathlib import PurePosixPath
from typing import Optional, Protocol

import httpx
from google.cloud import storage

from ..config import Config, config

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class MediaStore(Protocol):
    """Durable object storage."""

    async def upload(self, data: bytes, content_type: str, name: str) -> str:
        """Store ``data`` under ``name`` and return its public URL."""
        ...


class GCSMediaStore:
    """Media store backed by a Google Cloud Storage bucket."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        project_id: Optional[str] = None,
        client: Optional[storage.Client] = None,
    ) -> None:
        """Initialize the store.

        Args:
            bucket: Bucket name, without the ``gs://`` scheme.
            prefix: Optional object name prefix inside the bucket.
            project_id: Google Cloud project ID. Defaults to GOOGLE_CLOUD_PROJECT env var.
            client: Storage client. Created if not provided.
        """
        self._bucket_name = bucket
        self._prefix = prefix.strip("/")
        self._client = client or storage.Client(project=project_id or config.google_cloud_project or None)
        logger.info(f"Persisting media to gs://{bucket}/{self._prefix}")

    @classmethod
    def from_config(cls, settings: Config = config) -> Optional["GCSMediaStore"]:
        """Build a store from configuration, or None when no bucket is set."""
        location = settings.validate_storage()
        if location is None:
            return None
        bucket, _, prefix = location.partition("/")
        return cls(bucket, prefix=prefix, project_id=settings.google_cloud_project)

    def _upload_blocking(self, data: bytes, content_type: str, name: str) -> str:
        blob_name = f"{self._prefix}/{name}" if self._prefix else name
        blob = self._client.bucket(self._bucket_name).blob(blob_name)
        blob.upload_from_string(data, content_type=content_type)
        return blob.public_url

    async def upload(self, data: bytes, content_type: str, name: str) -> str:
        return await asyncio.to_thread(self._upload_blocking, data, content_type, name)


def unique_name(suggested: str) -> str:
    """Return ``suggested`` with a random token before its extension."""
    path = PurePosixPath(suggested)
    return f"{path.stem}-{secrets.token_hex(6)}{path.suffix}"


class MediaPersister:
    """Copies remote media into durable storage, best effort.

    Any failure along the fetch/upload chain is logged and the source URL is
    returned unchanged, so persistence never fails a pipeline run.
    """

    def __init__(
        self,
        store: Optional[MediaStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 120.0,
    ) -> None:
        self._store = store
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    @property
    def enabled(self) -> bool:
        return self._store is not None

    async def persist(self, source_url: str, suggested_name: str) -> str:
        """Persist ``source_url`` and return its durable URL.

        Args:
            source_url: Possibly short-lived media URL.
            suggested_name: Base object name, e.g. ``scene-1.mp4``.

        Returns:
            The durable URL, or ``source_url`` if persistence failed or is
            not configured.
        """
        if self._store is None:
            logger.debug(f"No media store configured, keeping {source_url[:80]}")
            return source_url

        name = unique_name(suggested_name)
        try:
            logger.debug(f"Fetching source: {source_url[:80]}")
            response = await self._http.get(source_url)
            response.raise_for_status()

            content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
            data = response.content
            logger.info(f"Uploading {name} ({len(data) / 1024:.1f} KB, {content_type})")

            url = await self._store.upload(data, content_type, name)
            logger.info(f"Persisted {suggested_name} -> {url[:80]}")
            return url

        except Exception as e:
            logger.warning(f"Upload failed for {suggested_name}, using original URL: {e}")
            return source_url

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
