"""Site directory interface and in-memory implementation."""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from sitedesk.identity.models import Identity, Role
from sitedesk.sites.models import SiteContext


class Site(BaseModel):
    """A site as held by the directory."""

    site_id: str = Field(..., description="Site identifier")
    name: str = Field(..., description="Display name")
    location: str | None = Field(default=None, description="Location line")
    active: bool = Field(default=True, description="Inactive sites are never offered")
    assigned_user_ids: set[str] = Field(
        default_factory=set,
        description="Employees assigned to this site",
    )

    def to_context(self) -> SiteContext:
        return SiteContext(site_id=self.site_id, site_name=self.name, location=self.location)


class SiteDirectory(ABC):
    """Lists the sites an identity may work on."""

    @abstractmethod
    async def list_eligible_sites(self, identity: Identity) -> list[SiteContext]:
        """Return eligible sites in display order."""
        pass


class InMemorySiteDirectory(SiteDirectory):
    """Dictionary-backed site directory.

    Administrators are eligible for every active site; employees only for
    active sites they are assigned to; customers for none.
    """

    def __init__(self, sites: list[Site] | None = None) -> None:
        self._sites: dict[str, Site] = {site.site_id: site for site in sites or []}

    def add(self, site: Site) -> None:
        self._sites[site.site_id] = site

    async def list_eligible_sites(self, identity: Identity) -> list[SiteContext]:
        active = [site for site in self._sites.values() if site.active]
        if identity.role is Role.ADMIN:
            eligible = active
        elif identity.role is Role.EMPLOYEE:
            eligible = [
                site for site in active
                if identity.user_id is not None and identity.user_id in site.assigned_user_ids
            ]
        else:
            eligible = []
        return [site.to_context() for site in sorted(eligible, key=lambda s: s.name)]
