"""Attachment store configuration."""

from typing import Literal

from pydantic import BaseModel, Field

AttachmentBackendType = Literal["inmemory", "http"]


class UploadsConfig(BaseModel):
    """Attachment store backend configuration."""

    backend: AttachmentBackendType = Field(
        default="inmemory",
        description="Attachment store backend",
    )
    base_url: str | None = Field(
        default=None,
        description="Bucket endpoint objects are PUT to (http backend)",
    )
    public_url: str | None = Field(
        default=None,
        description="Public URL prefix for stored objects; defaults to base_url",
    )
    auth_token: str | None = Field(
        default=None,
        description="Bearer token sent with uploads",
    )
    media_url: str | None = Field(
        default=None,
        description="Channel media endpoint used to fetch attachment bytes by id",
    )
