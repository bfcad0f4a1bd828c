"""Resolution and selection of the site a conversation is about."""

from enum import Enum

from pydantic import BaseModel, Field

from sitedesk.conversation.models.responses import Option, Response
from sitedesk.db.errors import StoreError
from sitedesk.identity.models import Identity
from sitedesk.observability.logging import get_logger
from sitedesk.sites.directory import SiteDirectory
from sitedesk.sites.models import SiteContext
from sitedesk.sites.scope import SiteScope

logger = get_logger(__name__)

NO_SITES_MESSAGE = (
    "No active sites are assigned to you yet. "
    "Please contact an administrator to get a site assigned."
)
DIRECTORY_ERROR_MESSAGE = "Sorry, we could not load your sites right now. Please try again shortly."


class SiteResolutionStatus(str, Enum):
    """Outcome of resolving the site for an identity."""

    SELECTED = "selected"
    AUTO_SELECTED = "auto_selected"
    NEEDS_SELECTION = "needs_selection"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


class SiteResolution(BaseModel):
    """Result of SiteContextResolver.resolve."""

    status: SiteResolutionStatus
    site: SiteContext | None = None
    options: list[SiteContext] = Field(default_factory=list)
    responses: list[Response] = Field(default_factory=list)

    @property
    def ready(self) -> bool:
        """Whether a site is now in scope."""
        return self.site is not None


def site_options(sites: list[SiteContext]) -> list[Option]:
    return [
        Option(id=site.site_id, title=site.site_name, description=site.location)
        for site in sites
    ]


def selection_prompt(sites: list[SiteContext]) -> Response:
    lines = [f"{index}. {site.site_name}" for index, site in enumerate(sites, start=1)]
    return Response.prompt(
        "Which site is this for?\n" + "\n".join(lines),
        site_options(sites),
    )


class SiteContextResolver:
    """Resolves the site for an identity through a SiteScope.

    The scope decides where the selection is stored, so the resolver
    behaves the same for plain and delegated sessions.
    """

    def __init__(self, directory: SiteDirectory) -> None:
        self._directory = directory

    async def eligible_sites(self, identity: Identity) -> list[SiteContext]:
        return await self._directory.list_eligible_sites(identity)

    async def resolve(self, identity: Identity, scope: SiteScope) -> SiteResolution:
        """Return the site in scope, selecting it automatically where possible.

        Exactly one eligible site is selected and confirmed; several
        produce a selection prompt; none is terminal.
        """
        if scope.current is not None:
            return SiteResolution(status=SiteResolutionStatus.SELECTED, site=scope.current)

        try:
            sites = await self.eligible_sites(identity)
        except StoreError as e:
            logger.error("site_directory_unavailable", error=str(e))
            return SiteResolution(
                status=SiteResolutionStatus.ERROR,
                responses=[Response.error(DIRECTORY_ERROR_MESSAGE)],
            )

        if not sites:
            logger.info("no_eligible_sites", role=identity.role.value)
            return SiteResolution(
                status=SiteResolutionStatus.UNAVAILABLE,
                responses=[Response.error(NO_SITES_MESSAGE)],
            )

        if len(sites) == 1:
            site = sites[0]
            scope.select(site)
            logger.info("site_auto_selected", site_id=site.site_id)
            return SiteResolution(
                status=SiteResolutionStatus.AUTO_SELECTED,
                site=site,
                responses=[Response.confirmation(f"Working on site: {site.site_name}")],
            )

        scope.mark_selection_shown()
        return SiteResolution(
            status=SiteResolutionStatus.NEEDS_SELECTION,
            options=sites,
            responses=[selection_prompt(sites)],
        )

    async def choose(
        self,
        identity: Identity,
        scope: SiteScope,
        choice: str,
        sites: list[SiteContext] | None = None,
    ) -> SiteContext | None:
        """Validate a reply against the eligible sites and persist it.

        A reply may be the site id, its 1-based position in the list, or
        its name (case-insensitive). Returns None if nothing matches.
        """
        if sites is None:
            sites = await self.eligible_sites(identity)
        site = match_site(sites, choice)
        if site is None:
            logger.info("site_choice_rejected", choice=choice)
            return None
        scope.select(site)
        logger.info("site_selected", site_id=site.site_id)
        return site


def match_site(sites: list[SiteContext], choice: str) -> SiteContext | None:
    normalized = choice.strip().lower()
    if not normalized:
        return None
    for site in sites:
        if site.site_id.lower() == normalized or site.site_name.lower() == normalized:
            return site
    if normalized.isdigit():
        index = int(normalized)
        if 1 <= index <= len(sites):
            return sites[index - 1]
    return None
