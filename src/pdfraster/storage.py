"""Object storage backends and the concurrent upload coordinator."""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config

from pdfraster.exceptions import SettingsError, StorageError
from pdfraster.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pdfraster.settings import Settings
    from pdfraster.typing.models import RenderedImage
    from pdfraster.typing.protocol import ObjectStore

logger = get_logger(__name__)


class S3ObjectStore:
    """S3-compatible store bound to one bucket.

    The boto3 client is thread-safe and pools its connections, so a single
    instance is shared by every request and every concurrent upload.
    """

    def __init__(self, client: Any, bucket: str) -> None:
        self._client = client
        self.bucket = bucket

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        """Upload `body` under `key`, overwriting any existing object."""
        self._client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)

    def delete_object(self, key: str) -> None:
        """Delete `key` from the bucket."""
        self._client.delete_object(Bucket=self.bucket, Key=key)


class InMemoryObjectStore:
    """Thread-safe in-process store, used for dry runs and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.objects: dict[str, tuple[bytes, str]] = {}

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        """Store `body` under `key`."""
        with self._lock:
            self.objects[key] = (body, content_type)

    def delete_object(self, key: str) -> None:
        """Remove `key` if present."""
        with self._lock:
            self.objects.pop(key, None)


def build_s3_client(settings: Settings) -> Any:
    """Create the boto3 S3 client described by `settings`.

    Raises:
        SettingsError: If credentials, bucket or endpoint are missing.

    Returns:
        Any: A botocore S3 client.
    """
    missing = settings.missing_storage_settings()
    if missing:
        raise SettingsError(message=f"Object store configuration is incomplete, set {', '.join(missing)}")

    config = Config(
        region_name=settings.region,
        connect_timeout=settings.timeout,
        read_timeout=settings.timeout,
        max_pool_connections=settings.max_connections,
        proxies=settings.proxies() or None,
    )
    session = boto3.session.Session(
        aws_access_key_id=settings.key_id,
        aws_secret_access_key=settings.access_key_secret,
    )
    return session.client(
        "s3",
        endpoint_url=settings.resolve_endpoint_url(),
        config=config,
        verify=settings.cert_path if settings.cert_path else None,
    )


def build_object_store(settings: Settings) -> S3ObjectStore:
    """Create the bucket-bound object store from settings.

    Returns:
        S3ObjectStore: Store bound to `settings.bucket`.
    """
    client = build_s3_client(settings)
    return S3ObjectStore(client, settings.bucket or "")


async def _put_image(store: ObjectStore, image: RenderedImage) -> str:
    await asyncio.to_thread(store.put_object, image.object_key, image.data, image.content_type)
    return image.object_key


async def _rollback(store: ObjectStore, keys: Sequence[str]) -> None:
    """Delete already persisted keys, best effort."""
    results = await asyncio.gather(
        *(asyncio.to_thread(store.delete_object, key) for key in keys),
        return_exceptions=True,
    )
    for key, result in zip(keys, results, strict=True):
        if isinstance(result, Exception):
            logger.warning("Failed to roll back uploaded object", extra={"key": key, "error": str(result)})
        else:
            logger.info("Rolled back uploaded object", extra={"key": key})


async def upload_images(
    store: ObjectStore,
    images: Sequence[RenderedImage],
    *,
    rollback: bool = False,
) -> list[str]:
    """Persist every image concurrently and wait for all uploads to finish.

    One task is spawned per image. A failure does not cancel its siblings.
    Once every task has finished, the first failure in input order is raised.

    Args:
        store (ObjectStore): Target store.
        images (Sequence[RenderedImage]): Images to persist.
        rollback (bool): Delete the objects that did upload when one fails.

    Raises:
        StorageError: If at least one upload failed.

    Returns:
        list[str]: Object keys, in the order of `images`.
    """
    results = await asyncio.gather(*(_put_image(store, image) for image in images), return_exceptions=True)

    uploaded: list[str] = []
    failures: list[tuple[str, BaseException]] = []
    for image, result in zip(images, results, strict=True):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error("Upload failed", extra={"key": image.object_key, "error": str(result)})
            failures.append((image.object_key, result))
        else:
            uploaded.append(result)

    if not failures:
        return uploaded

    if rollback and uploaded:
        await _rollback(store, uploaded)

    key, cause = failures[0]
    raise StorageError(
        message=f"Failed to upload {len(failures)} of {len(images)} images, first failure on {key}: {cause}",
        key=key,
        failed=len(failures),
    ) from cause
