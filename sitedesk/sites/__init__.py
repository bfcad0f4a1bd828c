"""Site context: directory and site models.

``sitedesk.sites.scope`` and ``sitedesk.sites.resolver`` depend on the
conversation models, which themselves depend on ``sites.models``; import
them from their modules directly.
"""

from sitedesk.sites.directory import InMemorySiteDirectory, Site, SiteDirectory
from sitedesk.sites.models import SiteContext

__all__ = [
    "InMemorySiteDirectory",
    "Site",
    "SiteContext",
    "SiteDirectory",
]
