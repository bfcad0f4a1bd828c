"""Attachment store interface and implementations."""

import mimetypes
from abc import ABC, abstractmethod
from uuid import uuid4

import httpx

from sitedesk.db.errors import ConnectionError, StoreError
from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)

_EXTENSIONS = {"image/jpeg": "jpg", "image/jpg": "jpg", "image/png": "png"}


class AttachmentStoreError(StoreError):
    """Raised when an attachment cannot be stored."""


def object_key(folder: str, mime_type: str) -> str:
    """Build a collision-free object key ``{folder}/{uuid}.{ext}``."""
    extension = _EXTENSIONS.get(mime_type) or (mimetypes.guess_extension(mime_type) or ".bin").lstrip(".")
    return f"{folder.strip('/')}/{uuid4()}.{extension}"


class AttachmentStore(ABC):
    """Durable storage for uploaded files."""

    @abstractmethod
    async def store(self, content: bytes, mime_type: str, folder: str) -> str:
        """Store bytes and return a stable reference.

        Raises:
            AttachmentStoreError: If the file could not be stored
        """
        pass


class InMemoryAttachmentStore(AttachmentStore):
    """Keeps files in a dict; references look like ``memory://folder/key``."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}

    async def store(self, content: bytes, mime_type: str, folder: str) -> str:
        key = object_key(folder, mime_type)
        self.objects[key] = (content, mime_type)
        return f"memory://{key}"


class HttpAttachmentStore(AttachmentStore):
    """PUTs files to an S3-compatible bucket endpoint with httpx.

    The reference is the object's public URL.
    """

    def __init__(
        self,
        base_url: str,
        public_url: str | None = None,
        auth_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._public_url = (public_url or base_url).rstrip("/")
        self._headers = {"Authorization": f"Bearer {auth_token}"} if auth_token else {}
        self._client = client or httpx.AsyncClient()

    async def store(self, content: bytes, mime_type: str, folder: str) -> str:
        key = object_key(folder, mime_type)
        try:
            response = await self._client.put(
                f"{self._base_url}/{key}",
                content=content,
                headers={**self._headers, "Content-Type": mime_type},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "attachment_store_rejected",
                status_code=e.response.status_code,
                key=key,
            )
            raise AttachmentStoreError(
                f"Attachment store returned {e.response.status_code}", cause=e
            ) from e
        except httpx.HTTPError as e:
            logger.error("attachment_store_unreachable", error=str(e), key=key)
            raise ConnectionError(f"Attachment store unreachable: {e}", cause=e) from e

        logger.info("attachment_stored", key=key, size=len(content))
        return f"{self._public_url}/{key}"

    async def close(self) -> None:
        await self._client.aclose()
