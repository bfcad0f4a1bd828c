"""Database connectivity and the shared store error hierarchy."""

from sitedesk.db.errors import (
    ConnectionError,
    NotFoundError,
    StoreError,
    ValidationError,
)

__all__ = [
    "ConnectionError",
    "NotFoundError",
    "StoreError",
    "ValidationError",
]
