"""Test factories for creating test data."""

from tests.factories.conversation import (
    PNG_BYTES,
    EngineHarness,
    IdentityFactory,
    SiteFactory,
    flow_context,
    make_services,
    photo,
)

__all__ = [
    "PNG_BYTES",
    "EngineHarness",
    "IdentityFactory",
    "SiteFactory",
    "flow_context",
    "make_services",
    "photo",
]
