"""Conversation engine configuration."""

from pydantic import BaseModel, Field


class EngineConfig(BaseModel):
    """Behavioural settings shared by the dispatcher, flows and uploads."""

    upload_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Hard timeout for one attachment upload attempt",
    )
    max_upload_retries: int = Field(
        default=2,
        ge=0,
        description="Retries allowed after a failed upload (attempts = retries + 1)",
    )
    allowed_mime_types: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/jpg"],
        description="MIME types accepted for attachments",
    )
    session_ttl_seconds: int = Field(
        default=86400,
        gt=0,
        description="In-memory sessions idle longer than this are discarded",
    )
    skip_keywords: list[str] = Field(
        default_factory=lambda: ["skip"],
        description="Replies that bypass an optional step",
    )
    cancel_keywords: list[str] = Field(
        default_factory=lambda: ["cancel", "menu"],
        description="Replies that abandon the current flow",
    )
    delegation_exit_keywords: list[str] = Field(
        default_factory=lambda: ["exit", "admin"],
        description="Replies that end an administrator delegation",
    )
    timezone_offset_minutes: int = Field(
        default=330,
        ge=-720,
        le=840,
        description="UTC offset used to decide what 'today' is for date validation",
    )
