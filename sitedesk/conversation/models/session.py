"""Session models for the conversation domain.

A session is split into two zones:

- the flow-local zone (``intent``, ``step``, ``data``), owned by whichever
  flow is running and wiped when it finishes;
- the persistent zone (``context``), which carries the selected site and
  delegation markers across flows and is never written by flow steps.

While an administrator is delegating, the delegated role's own flow
state lives in ``inner`` so it cannot collide with either zone.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sitedesk.identity.models import Role
from sitedesk.sites.models import SiteContext


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class FlowState(BaseModel):
    """The ``(intent, step, data)`` triple a flow reads and produces."""

    model_config = ConfigDict(frozen=True)

    intent: str | None = Field(default=None, description="Active flow, None for the menu")
    step: str | None = Field(default=None, description="Position within the flow")
    data: dict[str, Any] = Field(default_factory=dict, description="Flow-local scratch fields")

    @classmethod
    def idle(cls) -> "FlowState":
        return cls()

    @property
    def is_idle(self) -> bool:
        """No flow is running and nothing is left over."""
        return self.intent is None and self.step is None and not self.data

    @property
    def is_corrupted(self) -> bool:
        """Intent and step must be set together."""
        return (self.intent is None) != (self.step is None)

    def advance(self, step: str, patch: dict[str, Any] | None = None) -> "FlowState":
        """Move to ``step`` with ``patch`` merged over the current data."""
        return FlowState(intent=self.intent, step=step, data={**self.data, **(patch or {})})


class SessionContext(BaseModel):
    """Persistent fields that outlive any single flow."""

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    site: SiteContext | None = Field(default=None, description="Selected site")
    site_selection_shown: bool = Field(
        default=False,
        description="The site selection prompt has already been shown",
    )
    site_is_transient: bool = Field(
        default=False,
        description="Site was picked during a delegation and is dropped when it ends",
    )
    outer_site: SiteContext | None = Field(
        default=None,
        description="The delegating identity's own site, put back when the delegation ends",
    )
    original_role: Role | None = Field(default=None, description="Role of the delegating identity")
    is_delegated: bool = Field(default=False, description="A delegation is in progress")
    acting_as: Role | None = Field(default=None, description="Role being delegated into")


class Session(BaseModel):
    """Per-address conversational state."""

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    address: str = Field(..., description="External identity key")
    intent: str | None = Field(default=None, description="Active flow")
    step: str | None = Field(default=None, description="Current step of the active flow")
    data: dict[str, Any] = Field(default_factory=dict, description="Flow-local fields")
    context: SessionContext = Field(
        default_factory=SessionContext,
        description="Persistent cross-flow fields",
    )
    inner: FlowState | None = Field(
        default=None,
        description="Delegated role's own flow state while delegating",
    )
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
    updated_at: datetime = Field(default_factory=utc_now, description="Last write time")

    @property
    def flow(self) -> FlowState:
        """Snapshot of the flow-local zone."""
        return FlowState(intent=self.intent, step=self.step, data=dict(self.data))

    def apply_flow(self, flow: FlowState) -> None:
        """Replace the flow-local zone; the persistent zone is untouched."""
        self.intent = flow.intent
        self.step = flow.step
        self.data = dict(flow.data)

    def reset_flow(self) -> None:
        """Return to the menu, keeping the persistent zone."""
        self.apply_flow(FlowState.idle())

    def clear(self) -> None:
        """Reset every zone to the null/null/{} state."""
        self.reset_flow()
        self.context = SessionContext()
        self.inner = None

    def touch(self) -> None:
        self.updated_at = utc_now()

    def apply_patch(self, patch: "SessionPatch") -> None:
        """Apply a partial update.

        ``data`` and ``context`` are merged key by key; ``intent``, ``step``
        and ``inner`` are replaced when the patch sets them explicitly.
        """
        fields_set = patch.model_fields_set
        if "intent" in fields_set:
            self.intent = patch.intent
        if "step" in fields_set:
            self.step = patch.step
        if "inner" in fields_set:
            self.inner = patch.inner
        if patch.data:
            self.data = {**self.data, **patch.data}
        if patch.context:
            self.context = SessionContext.model_validate(
                {**self.context.model_dump(), **patch.context}
            )


class SessionPatch(BaseModel):
    """Partial session update for SessionStore.upsert."""

    intent: str | None = None
    step: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    context: dict[str, Any] = Field(default_factory=dict)
    inner: FlowState | None = None
