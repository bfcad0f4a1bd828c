"""Delegation frame: a privileged session split into outer and inner parts."""

from dataclasses import dataclass

from sitedesk.conversation.models import FlowState, Session
from sitedesk.engine.errors import DelegationError
from sitedesk.identity.models import Role
from sitedesk.sites.models import SiteContext

DELEGATION_INTENT = "delegation"
SELECTING_TARGET = "select_site"
ACTIVE = "active"


@dataclass(frozen=True)
class OuterMarker:
    """Outer fields a delegated run must never change."""

    original_role: Role
    acting_as: Role
    site: SiteContext | None = None


@dataclass(frozen=True)
class DelegationFrame:
    """Rebuilt from the session on every delegated event, never stored.

    The inner handler only ever sees ``inner`` (an immutable FlowState)
    and returns a new one; ``restore`` is the only way its result reaches
    the session, and it writes the outer fields from the frame, not from
    anything the inner handler produced. Site fields are written solely
    through the SiteScope handed to the inner run.
    """

    outer: OuterMarker
    inner: FlowState

    @property
    def acting_as(self) -> Role:
        return self.outer.acting_as

    @classmethod
    def from_session(cls, session: Session) -> "DelegationFrame":
        context = session.context
        if not context.is_delegated or context.acting_as is None or context.original_role is None:
            raise DelegationError(f"Session {session.address!r} is not delegating")
        return cls(
            outer=OuterMarker(
                original_role=context.original_role,
                acting_as=context.acting_as,
                site=context.outer_site,
            ),
            inner=session.inner or FlowState.idle(),
        )

    def restore(self, session: Session, inner_result: FlowState, step: str = ACTIVE) -> None:
        """Write an inner result back under the reserved key.

        An idle inner result means the inner flow finished; the outer
        session stays on the delegation rather than falling back to the
        privileged identity's own menu.
        """
        session.context.original_role = self.outer.original_role
        session.context.acting_as = self.outer.acting_as
        session.context.outer_site = self.outer.site
        session.context.is_delegated = True
        session.apply_flow(FlowState(intent=DELEGATION_INTENT, step=step))
        session.inner = None if inner_result.is_idle else inner_result


def begin_delegation(session: Session, original_role: Role, acting_as: Role) -> DelegationFrame:
    """Mark a session as delegating and return its frame."""
    context = session.context
    context.outer_site = None if context.site_is_transient else context.site
    context.original_role = original_role
    context.acting_as = acting_as
    context.is_delegated = True
    session.inner = None
    session.apply_flow(FlowState(intent=DELEGATION_INTENT, step=SELECTING_TARGET))
    return DelegationFrame.from_session(session)


def end_delegation(session: Session) -> None:
    """Drop every delegation marker and the inner state.

    A site picked during the delegation is forgotten and the site the
    privileged identity had before it is put back. An untouched site is
    kept as it is.
    """
    context = session.context
    if context.site_is_transient or context.site is None:
        context.site = context.outer_site
        context.site_selection_shown = context.outer_site is not None
    context.site_is_transient = False
    context.outer_site = None
    context.original_role = None
    context.acting_as = None
    context.is_delegated = False
    session.inner = None
    session.reset_flow()
