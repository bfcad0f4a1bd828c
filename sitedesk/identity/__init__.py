"""Identity resolution for inbound addresses."""

from sitedesk.identity.models import Identity, Role
from sitedesk.identity.resolver import IdentityResolver, InMemoryIdentityResolver

__all__ = ["Identity", "IdentityResolver", "InMemoryIdentityResolver", "Role"]
