"""Identity resolver interface and in-memory implementation."""

from abc import ABC, abstractmethod

from sitedesk.identity.models import Identity, Role
from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)


class IdentityResolver(ABC):
    """Maps an address to the identity behind it.

    The engine trusts this mapping; authentication lives with the
    implementation.
    """

    @abstractmethod
    async def resolve(self, address: str) -> Identity:
        """Resolve an address. Unknown addresses resolve to a customer."""
        pass


class InMemoryIdentityResolver(IdentityResolver):
    """Dictionary-backed resolver for development and testing."""

    def __init__(self, identities: list[Identity] | None = None) -> None:
        self._identities: dict[str, Identity] = {}
        for identity in identities or []:
            self.register(identity)

    def register(self, identity: Identity) -> None:
        self._identities[identity.address] = identity

    async def resolve(self, address: str) -> Identity:
        identity = self._identities.get(address)
        if identity is None:
            logger.debug("identity_unknown", address=address)
            return Identity(address=address, role=Role.CUSTOMER)
        return identity
