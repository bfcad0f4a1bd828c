"""Logging and metrics for SiteDesk."""

from sitedesk.observability.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
