"""Timeout-guarded attachment upload.

One call is one attempt. Retries are driven by the user re-sending the
file, so the retry counter lives in the session (see flows.wizard), not
here.
"""

import asyncio
import hashlib
import time

from sitedesk.conversation.models import Attachment
from sitedesk.db.errors import NotFoundError, StoreError
from sitedesk.observability.logging import get_logger
from sitedesk.observability.metrics import UPLOAD_ATTEMPTS, UPLOAD_LATENCY
from sitedesk.uploads.media import MediaFetcher
from sitedesk.uploads.models import UploadFailure, UploadFailureReason, UploadResult
from sitedesk.uploads.store import AttachmentStore

logger = get_logger(__name__)

DEFAULT_ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/jpg")


class UploadPipeline:
    """Validates and stores one attachment per call."""

    def __init__(
        self,
        store: AttachmentStore,
        media: MediaFetcher | None = None,
        *,
        timeout_seconds: float = 30.0,
        max_retries: int = 2,
        allowed_mime_types: list[str] | tuple[str, ...] = DEFAULT_ALLOWED_MIME_TYPES,
    ) -> None:
        self._store = store
        self._media = media
        self._timeout = timeout_seconds
        self._allowed = frozenset(m.lower() for m in allowed_mime_types)
        self.max_retries = max_retries

    def validate(self, attachment: Attachment) -> UploadFailure | None:
        """Reject an attachment before any transfer is attempted.

        Checks the declared MIME type against the allow-list and that there
        are bytes to send or a media id to fetch them with.
        """
        mime_type = (attachment.mime_type or "").lower()
        if mime_type not in self._allowed:
            return UploadFailure(
                reason=UploadFailureReason.INVALID_MIME,
                detail=f"Unsupported file type: {attachment.mime_type or 'unknown'}",
                attempted=False,
            )
        if attachment.content is None and (attachment.media_id is None or self._media is None):
            return UploadFailure(
                reason=UploadFailureReason.MISSING_CONTENT,
                detail="Attachment carries neither content nor a fetchable media id",
                attempted=False,
            )
        return None

    async def upload(self, attachment: Attachment, folder: str) -> UploadResult | UploadFailure:
        """Make one upload attempt.

        Args:
            attachment: The file the user sent
            folder: Destination folder in the attachment store

        Returns:
            UploadResult on success, UploadFailure otherwise (never raises
            for collaborator failures)
        """
        rejected = self.validate(attachment)
        if rejected is not None:
            UPLOAD_ATTEMPTS.labels(outcome=rejected.reason.value).inc()
            logger.info("upload_rejected", reason=rejected.reason.value, folder=folder)
            return rejected

        start = time.perf_counter()
        try:
            result = await asyncio.wait_for(
                self._transfer(attachment, folder),
                timeout=self._timeout,
            )
        except TimeoutError:
            return self._failed(UploadFailureReason.TIMEOUT, f"No response within {self._timeout}s", folder)
        except NotFoundError as e:
            return self._failed(UploadFailureReason.MISSING_CONTENT, str(e), folder)
        except StoreError as e:
            return self._failed(UploadFailureReason.STORE_ERROR, str(e), folder)

        UPLOAD_LATENCY.observe(time.perf_counter() - start)
        UPLOAD_ATTEMPTS.labels(outcome="success").inc()
        logger.info("upload_succeeded", folder=folder, reference=result.reference)
        return result

    async def _transfer(self, attachment: Attachment, folder: str) -> UploadResult:
        content = attachment.content
        if content is None:
            assert self._media is not None and attachment.media_id is not None
            content = await self._media.fetch(attachment.media_id)

        mime_type = (attachment.mime_type or "").lower()
        reference = await self._store.store(content, mime_type, folder)
        return UploadResult(
            reference=reference,
            mime_type=mime_type,
            checksum=hashlib.sha256(content).hexdigest(),
        )

    def _failed(self, reason: UploadFailureReason, detail: str, folder: str) -> UploadFailure:
        UPLOAD_ATTEMPTS.labels(outcome=reason.value).inc()
        logger.warning("upload_failed", reason=reason.value, detail=detail, folder=folder)
        return UploadFailure(reason=reason, detail=detail)
