"""Tests for UploadPipeline."""

import asyncio
import hashlib

import httpx
import pytest
from pydantic import ValidationError

from sitedesk.conversation.models import Attachment
from sitedesk.uploads.media import InMemoryMediaFetcher
from sitedesk.uploads.models import UploadFailure, UploadFailureReason, UploadResult
from sitedesk.uploads.pipeline import UploadPipeline
from sitedesk.uploads.store import AttachmentStore, AttachmentStoreError, HttpAttachmentStore, InMemoryAttachmentStore
from tests.factories import PNG_BYTES, photo


class SlowAttachmentStore(AttachmentStore):
    async def store(self, content: bytes, mime_type: str, folder: str) -> str:
        await asyncio.sleep(5)
        return "never"


class RejectingAttachmentStore(AttachmentStore):
    async def store(self, content: bytes, mime_type: str, folder: str) -> str:
        raise AttachmentStoreError("quota exceeded")


class TestValidation:
    """Tests for MIME and content checks."""

    @pytest.mark.asyncio
    async def test_rejects_disallowed_mime(self) -> None:
        store = InMemoryAttachmentStore()
        result = await UploadPipeline(store).upload(photo(mime_type="application/pdf"), "activities")

        assert isinstance(result, UploadFailure)
        assert result.reason is UploadFailureReason.INVALID_MIME
        assert not result.consumes_retry
        assert store.objects == {}

    @pytest.mark.asyncio
    async def test_mime_check_is_case_insensitive(self) -> None:
        result = await UploadPipeline(InMemoryAttachmentStore()).upload(photo(mime_type="IMAGE/PNG"), "x")

        assert isinstance(result, UploadResult)

    @pytest.mark.asyncio
    async def test_missing_content(self) -> None:
        result = await UploadPipeline(InMemoryAttachmentStore()).upload(photo(content=None), "x")

        assert isinstance(result, UploadFailure)
        assert result.reason is UploadFailureReason.MISSING_CONTENT
        assert not result.consumes_retry


class TestUpload:
    """Tests for the upload attempt itself."""

    @pytest.mark.asyncio
    async def test_inline_content(self) -> None:
        store = InMemoryAttachmentStore()
        result = await UploadPipeline(store).upload(photo(), "activities")

        assert isinstance(result, UploadResult)
        assert result.reference.startswith("memory://activities/")
        assert result.reference.endswith(".png")
        assert result.checksum == hashlib.sha256(PNG_BYTES).hexdigest()
        assert len(store.objects) == 1

    @pytest.mark.asyncio
    async def test_fetches_media_by_id(self) -> None:
        media = InMemoryMediaFetcher({"m-1": PNG_BYTES})
        result = await UploadPipeline(InMemoryAttachmentStore(), media).upload(
            photo(content=None, media_id="m-1"), "x"
        )

        assert isinstance(result, UploadResult)

    @pytest.mark.asyncio
    async def test_expired_media(self) -> None:
        media = InMemoryMediaFetcher()
        result = await UploadPipeline(InMemoryAttachmentStore(), media).upload(
            photo(content=None, media_id="gone"), "x"
        )

        assert result.reason is UploadFailureReason.MISSING_CONTENT
        assert result.consumes_retry

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Should give up after the configured timeout."""
        pipeline = UploadPipeline(SlowAttachmentStore(), timeout_seconds=0.05)
        result = await pipeline.upload(photo(), "x")

        assert isinstance(result, UploadFailure)
        assert result.reason is UploadFailureReason.TIMEOUT

    @pytest.mark.asyncio
    async def test_store_error(self) -> None:
        result = await UploadPipeline(RejectingAttachmentStore()).upload(photo(), "x")

        assert result.reason is UploadFailureReason.STORE_ERROR
        assert "quota exceeded" in result.detail

    @pytest.mark.asyncio
    async def test_distinct_references(self) -> None:
        pipeline = UploadPipeline(InMemoryAttachmentStore())
        first = await pipeline.upload(photo(), "x")
        second = await pipeline.upload(photo(), "x")

        assert first.reference != second.reference


class TestHttpAttachmentStore:
    """Tests for the httpx-backed store using a mock transport."""

    @pytest.mark.asyncio
    async def test_put_returns_public_url(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        store = HttpAttachmentStore(
            "https://bucket.internal", public_url="https://cdn.example.com", auth_token="t", client=client
        )
        reference = await store.store(PNG_BYTES, "image/png", "invoices")

        assert reference.startswith("https://cdn.example.com/invoices/")
        assert seen[0].method == "PUT"
        assert seen[0].headers["Authorization"] == "Bearer t"
        assert seen[0].headers["Content-Type"] == "image/png"

    @pytest.mark.asyncio
    async def test_error_status(self) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        store = HttpAttachmentStore("https://bucket.internal", client=client)

        with pytest.raises(AttachmentStoreError):
            await store.store(PNG_BYTES, "image/png", "invoices")


def test_attachment_is_immutable() -> None:
    attachment = Attachment(content=PNG_BYTES, mime_type="image/png")
    with pytest.raises(ValidationError):
        attachment.mime_type = "image/jpeg"
