"""Wiring of the conversation engine from settings and collaborators."""

from sitedesk.config.models.uploads import UploadsConfig
from sitedesk.config.settings import Settings
from sitedesk.conversation.store import SessionStore
from sitedesk.engine.context import Services
from sitedesk.engine.dispatcher import Dispatcher
from sitedesk.engine.mutex import LocalSessionMutex, SessionMutex
from sitedesk.engine.runtime import ConversationEngine
from sitedesk.identity.models import Role
from sitedesk.identity.resolver import IdentityResolver
from sitedesk.inventory.catalog import InventoryCatalog, LedgerInventoryCatalog
from sitedesk.observability.logging import get_logger
from sitedesk.records.sink import RecordSink
from sitedesk.roles import AdminRouter, CustomerRouter, EmployeeRouter, Verifier
from sitedesk.roles.base import RoleRouter
from sitedesk.sites.directory import SiteDirectory
from sitedesk.sites.resolver import SiteContextResolver
from sitedesk.uploads.media import HttpMediaFetcher, MediaFetcher
from sitedesk.uploads.pipeline import UploadPipeline
from sitedesk.uploads.store import AttachmentStore, HttpAttachmentStore, InMemoryAttachmentStore

logger = get_logger(__name__)


def build_attachment_store(config: UploadsConfig) -> AttachmentStore:
    """Create the attachment store selected by ``uploads.backend``."""
    if config.backend == "http":
        if not config.base_url:
            raise ValueError("uploads.base_url is required for the http attachment backend")
        return HttpAttachmentStore(
            base_url=config.base_url,
            public_url=config.public_url,
            auth_token=config.auth_token,
        )
    return InMemoryAttachmentStore()


def build_media_fetcher(config: UploadsConfig) -> MediaFetcher | None:
    if config.media_url:
        return HttpMediaFetcher(config.media_url, auth_token=config.auth_token)
    return None


def build_routers(verifier: Verifier | None = None) -> dict[Role, RoleRouter]:
    return {
        Role.ADMIN: AdminRouter(),
        Role.EMPLOYEE: EmployeeRouter(verifier=verifier),
        Role.CUSTOMER: CustomerRouter(),
    }


def build_services(
    settings: Settings,
    *,
    records: RecordSink,
    directory: SiteDirectory,
    attachments: AttachmentStore | None = None,
    media: MediaFetcher | None = None,
    inventory: InventoryCatalog | None = None,
) -> Services:
    engine = settings.engine
    uploads = UploadPipeline(
        attachments or build_attachment_store(settings.uploads),
        media if media is not None else build_media_fetcher(settings.uploads),
        timeout_seconds=engine.upload_timeout_seconds,
        max_retries=engine.max_upload_retries,
        allowed_mime_types=engine.allowed_mime_types,
    )
    return Services(
        records=records,
        uploads=uploads,
        sites=SiteContextResolver(directory),
        inventory=inventory or LedgerInventoryCatalog([], records),
        settings=engine,
    )


def build_engine(
    settings: Settings,
    *,
    store: SessionStore,
    identities: IdentityResolver,
    services: Services,
    mutex: SessionMutex | None = None,
    verifier: Verifier | None = None,
) -> ConversationEngine:
    """Assemble a ConversationEngine.

    Args:
        settings: Application settings
        store: Session store backend
        identities: Address to identity resolver
        services: Collaborators shared by every flow
        mutex: Per-address lock (in-process lock if not provided)
        verifier: Gate for unverified employees

    Returns:
        Ready-to-use ConversationEngine
    """
    dispatcher = Dispatcher(build_routers(verifier), services)
    engine = ConversationEngine(
        store=store,
        identities=identities,
        dispatcher=dispatcher,
        mutex=mutex or LocalSessionMutex(settings.storage.redis.lock_blocking_timeout_seconds),
    )
    logger.info(
        "engine_built",
        session_backend=settings.storage.session_backend,
        record_backend=settings.storage.record_backend,
        upload_backend=settings.uploads.backend,
    )
    return engine
