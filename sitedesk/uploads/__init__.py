"""Attachment upload pipeline and its collaborators."""

from sitedesk.uploads.media import HttpMediaFetcher, InMemoryMediaFetcher, MediaFetcher
from sitedesk.uploads.models import UploadFailure, UploadFailureReason, UploadResult
from sitedesk.uploads.pipeline import UploadPipeline
from sitedesk.uploads.store import (
    AttachmentStore,
    AttachmentStoreError,
    HttpAttachmentStore,
    InMemoryAttachmentStore,
)

__all__ = [
    "AttachmentStore",
    "AttachmentStoreError",
    "HttpAttachmentStore",
    "HttpMediaFetcher",
    "InMemoryAttachmentStore",
    "InMemoryMediaFetcher",
    "MediaFetcher",
    "UploadFailure",
    "UploadFailureReason",
    "UploadPipeline",
    "UploadResult",
]
