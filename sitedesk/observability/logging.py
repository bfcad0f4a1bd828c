"""Structured logging configuration using structlog.

Events render as JSON lines in deployments and as colored console output
in development. Conversations are keyed by phone numbers, so addresses are
masked down to their last four digits before anything is written.
"""

import logging
import re
import sys
from collections.abc import Mapping
from typing import Any, cast

import structlog
from structlog.types import EventDict, WrappedLogger

# Values under these keys never reach the log
SENSITIVE_KEYS: frozenset[str] = frozenset({
    "auth_token",
    "access_token",
    "api_key",
    "authorization",
    "bearer",
    "content",
    "email",
    "otp",
    "password",
    "pin",
    "secret",
    "token",
})

# Identity addresses; the tail stays visible so a conversation can be traced
MASKED_KEYS: frozenset[str] = frozenset({"address", "phone", "customer_phone"})

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"\+?[\d\s\-\(\)]{10,}")


def mask_address(value: str) -> str:
    """Mask all but the last four characters of an address."""
    if len(value) <= 4:
        return "****"
    return value[-4:].rjust(len(value), "*")


def scrub_text(value: str) -> str:
    """Replace e-mail addresses and phone numbers inside free text."""
    return PHONE_PATTERN.sub("[PHONE]", EMAIL_PATTERN.sub("[EMAIL]", value))


class PIIRedactor:
    """structlog processor that keeps personal data out of log lines.

    Sensitive keys are dropped to a placeholder, address keys are masked,
    and every other string found while walking the event is scrubbed.
    """

    def __call__(self, _logger: WrappedLogger, _method_name: str, event_dict: EventDict) -> EventDict:
        return cast(EventDict, self._walk_mapping(event_dict))

    def _walk_mapping(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {key: self._redact_field(key, value) for key, value in data.items()}

    def _redact_field(self, key: str, value: Any) -> Any:
        name = key.lower()
        if name in SENSITIVE_KEYS:
            return "[REDACTED]"
        if name in MASKED_KEYS and isinstance(value, str):
            return mask_address(value)
        return self._walk(value)

    def _walk(self, value: Any) -> Any:
        if isinstance(value, str):
            return scrub_text(value)
        if isinstance(value, Mapping):
            return self._walk_mapping(value)
        if isinstance(value, list | tuple):
            return [self._walk(item) for item in value]
        return value


def setup_logging(level: str = "INFO", format: str = "json", redact_pii: bool = True) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        format: "json" for line-delimited JSON, anything else for the console renderer
        redact_pii: Run the PIIRedactor over every event
    """
    processors: list[Any] = [structlog.contextvars.merge_contextvars]
    # Redaction runs before the timestamp is added, which would look like a phone number
    if redact_pii:
        processors.append(PIIRedactor())
    processors += [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if format == "json" else structlog.dev.ConsoleRenderer(),
    ]

    threshold = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def bind_event_context(**values: Any) -> None:
    """Bind values to every log line emitted while handling the current event."""
    structlog.contextvars.bind_contextvars(**values)


def clear_event_context() -> None:
    """Drop all per-event context bound with bind_event_context."""
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance bound to the given name.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        A bound structlog logger
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
