"""Fetching attachment bytes that were not sent inline."""

from abc import ABC, abstractmethod

import httpx

from sitedesk.db.errors import ConnectionError, NotFoundError
from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)


class MediaFetcher(ABC):
    """Downloads a channel media object by id."""

    @abstractmethod
    async def fetch(self, media_id: str) -> bytes:
        """Return the bytes for a media id.

        Raises:
            NotFoundError: If the channel no longer has the media
            ConnectionError: If the channel could not be reached
        """
        pass


class InMemoryMediaFetcher(MediaFetcher):
    """Serves media from a dict, for development and testing."""

    def __init__(self, media: dict[str, bytes] | None = None) -> None:
        self.media = dict(media or {})

    async def fetch(self, media_id: str) -> bytes:
        try:
            return self.media[media_id]
        except KeyError as e:
            raise NotFoundError(f"Media not found: {media_id}", cause=e) from e


class HttpMediaFetcher(MediaFetcher):
    """Downloads media from ``{media_url}/{media_id}`` with httpx."""

    def __init__(
        self,
        media_url: str,
        auth_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._media_url = media_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {auth_token}"} if auth_token else {}
        self._client = client or httpx.AsyncClient()

    async def fetch(self, media_id: str) -> bytes:
        try:
            response = await self._client.get(
                f"{self._media_url}/{media_id}", headers=self._headers
            )
            if response.status_code == 404:
                raise NotFoundError(f"Media not found: {media_id}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("media_fetch_failed", media_id=media_id, error=str(e))
            raise ConnectionError(f"Failed to fetch media: {e}", cause=e) from e
        return response.content

    async def close(self) -> None:
        await self._client.aclose()
