"""Scoped access to the session's site fields."""

from sitedesk.conversation.models import SessionContext
from sitedesk.sites.models import SiteContext


class SiteScope:
    """The single reader/writer of site fields on a session context.

    Plain sessions get a scope over their own context. Delegated runs get
    a scope over the outer (privileged) session's context, marked
    transient so the selection is dropped when the delegation ends.
    """

    def __init__(self, context: SessionContext, *, transient: bool = False) -> None:
        self._context = context
        self._transient = transient

    @property
    def current(self) -> SiteContext | None:
        return self._context.site

    def select(self, site: SiteContext) -> None:
        self._context.site = site
        self._context.site_selection_shown = True
        self._context.site_is_transient = self._transient

    def mark_selection_shown(self) -> None:
        self._context.site_selection_shown = True

    def reset(self) -> None:
        """Forget the selected site so the next flow asks again."""
        self._context.site = None
        self._context.site_selection_shown = False
        self._context.site_is_transient = False
