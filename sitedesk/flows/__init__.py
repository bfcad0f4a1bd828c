"""Data-collection flows built on the stepped wizard."""

from sitedesk.flows.activity import ACTIVITY_LOGGING
from sitedesk.flows.base import FlowHandler, FlowRegistry
from sitedesk.flows.booking import BOOKING
from sitedesk.flows.inquiry import CUSTOMER_INQUIRY
from sitedesk.flows.inventory import INVENTORY
from sitedesk.flows.invoice import INVOICE_TRACKING
from sitedesk.flows.material import MATERIAL_REQUEST
from sitedesk.flows.site_selection import SiteSelectionFlow
from sitedesk.flows.wizard import (
    COMPLETE,
    UPLOAD_RETRY_KEY,
    Advance,
    AttachmentStep,
    Completion,
    FlowDefinition,
    InvalidInput,
    Step,
    StepInput,
    Wizard,
)

__all__ = [
    "ACTIVITY_LOGGING",
    "BOOKING",
    "COMPLETE",
    "CUSTOMER_INQUIRY",
    "INVENTORY",
    "INVOICE_TRACKING",
    "MATERIAL_REQUEST",
    "UPLOAD_RETRY_KEY",
    "Advance",
    "AttachmentStep",
    "Completion",
    "FlowDefinition",
    "FlowHandler",
    "FlowRegistry",
    "InvalidInput",
    "SiteSelectionFlow",
    "Step",
    "StepInput",
    "Wizard",
]
