"""Per-event context handed to menus and flows."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sitedesk.config.models.engine import EngineConfig
from sitedesk.conversation.models import FlowState, Response, Session, utc_now
from sitedesk.engine.frame import DelegationFrame
from sitedesk.identity.models import Identity, Role
from sitedesk.inventory.catalog import InventoryCatalog
from sitedesk.records.sink import RecordSink
from sitedesk.sites.resolver import SiteContextResolver
from sitedesk.sites.scope import SiteScope
from sitedesk.uploads.pipeline import UploadPipeline


@dataclass
class Services:
    """Collaborators shared by every flow."""

    records: RecordSink
    uploads: UploadPipeline
    sites: SiteContextResolver
    inventory: InventoryCatalog
    settings: EngineConfig = field(default_factory=EngineConfig)


@dataclass
class FlowContext:
    """What a handler may know about the event it is handling.

    ``frame`` is set only while running under a delegation; handlers
    never look at session fields to find that out.
    """

    identity: Identity
    site: SiteScope
    services: Services
    frame: DelegationFrame | None = None
    principal: Identity | None = None
    """The real identity behind a synthetic one while delegating."""
    now: datetime = field(default_factory=utc_now)

    @property
    def site_identity(self) -> Identity:
        """Identity whose site eligibility applies to this run."""
        return self.principal or self.identity

    @property
    def settings(self) -> EngineConfig:
        return self.services.settings

    def today(self) -> date:
        """The local calendar date used for date validation."""
        return (self.now + timedelta(minutes=self.settings.timezone_offset_minutes)).date()

    def is_skip(self, value: str) -> bool:
        return value in self.settings.skip_keywords

    def is_cancel(self, value: str) -> bool:
        return value in self.settings.cancel_keywords


@dataclass
class Outcome:
    """Result of handing one event to a menu or flow."""

    state: FlowState
    responses: list[Response]
    completed: bool = False
    record_id: str | None = None
    follow_up: str | None = None
    """Intent the caller should start next, after these responses."""
    delegate_to: Role | None = None
    """Role a privileged identity asked to delegate into."""


@dataclass
class RouteResult:
    """A routed event: the session to commit and the responses to send."""

    session: Session
    responses: list[Response]
