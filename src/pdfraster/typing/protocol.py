"""Storage interfaces."""

from __future__ import annotations

from typing import Protocol


class ObjectStore(Protocol):
    """Bucket-bound object store shared by every concurrent upload.

    Implementations must be safe to call from several threads at once.
    """

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        """Store `body` under `key`, replacing any existing object.

        Args:
            key: Object key.
            body: Object payload.
            content_type: MIME type recorded with the object.
        """

    def delete_object(self, key: str) -> None:
        """Delete the object stored under `key`.

        Args:
            key: Object key.
        """
