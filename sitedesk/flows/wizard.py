"""Generic stepped wizard.

Every data-collection flow is a FlowDefinition: an ordered table of
named steps, each with a prompt and a parser, plus a completion side
effect. The Wizard runs any definition one event at a time:

- a parser raising InvalidInput leaves the state untouched and re-sends
  the step's prompt with a hint;
- a parser returning Advance merges its patch and enters the next step;
- advancing to COMPLETE runs the completion once and returns to idle.

Attachment steps are handled here too, with the upload retry counter
kept in flow data so it survives between events.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from sitedesk.conversation.models import FlowState, InboundEvent, Response
from sitedesk.db.errors import StoreError
from sitedesk.engine.context import FlowContext, Outcome
from sitedesk.engine.errors import CorruptedSessionError
from sitedesk.observability.logging import get_logger
from sitedesk.observability.metrics import FLOW_COMPLETIONS, FLOW_STARTS, VALIDATION_FAILURES
from sitedesk.uploads.models import UploadFailureReason, UploadResult

logger = get_logger(__name__)

COMPLETE = "complete"
UPLOAD_RETRY_KEY = "upload_retry_count"

SAVE_FAILED_MESSAGE = (
    "Sorry, we couldn't save this right now and nothing was recorded. "
    "Please start again in a little while."
)
LOAD_FAILED_MESSAGE = "Sorry, something went wrong on our side. Please send your reply again."


class InvalidInput(Exception):
    """Raised by a step parser to reject the user's reply."""

    def __init__(self, hint: str) -> None:
        super().__init__(hint)
        self.hint = hint


@dataclass(frozen=True)
class StepInput:
    """What a step parser gets to look at."""

    event: InboundEvent
    data: Mapping[str, Any]
    ctx: FlowContext

    @property
    def text(self) -> str:
        return self.event.text

    @property
    def value(self) -> str:
        return self.event.value


@dataclass(frozen=True)
class Advance:
    """Accepted input: move to ``next_step`` with ``patch`` applied."""

    next_step: str
    patch: dict[str, Any] = field(default_factory=dict)
    notes: tuple[Response, ...] = ()


PromptFn = Callable[[Mapping[str, Any], FlowContext], Response]
ParseFn = Callable[[StepInput], Advance]
LoadFn = Callable[[Mapping[str, Any], FlowContext], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class Step:
    """A text or selection step.

    ``load`` runs when the step is entered and may add fields the prompt
    and parser need (for example, the items offered for selection). It
    may raise InvalidInput to refuse entry, which rejects the reply that
    led here.
    """

    name: str
    prompt: PromptFn
    parse: ParseFn
    load: LoadFn | None = None


@dataclass(frozen=True)
class AttachmentStep:
    """A step that waits for an uploaded photo."""

    name: str
    prompt: PromptFn
    folder: str
    mandatory: bool
    next_step: str = COMPLETE
    field: str = "attachment"


@dataclass
class Completion:
    """What a flow's completion produced."""

    responses: list[Response]
    record_id: str | None = None
    follow_up: str | None = None
    # False when the flow ended without doing what it was for
    recorded: bool = True


CompleteFn = Callable[[dict[str, Any], FlowContext], Awaitable[Completion]]


@dataclass(frozen=True)
class FlowDefinition:
    """Declarative description of one flow."""

    intent: str
    title: str
    steps: tuple[Step | AttachmentStep, ...]
    complete: CompleteFn
    requires_site: bool = False
    table: dict[str, Step | AttachmentStep] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError(f"Flow {self.intent!r} has no steps")
        table: dict[str, Step | AttachmentStep] = {}
        for step in self.steps:
            if step.name in table or step.name == COMPLETE:
                raise ValueError(f"Flow {self.intent!r} has a duplicate or reserved step {step.name!r}")
            table[step.name] = step
        for step in self.steps:
            if isinstance(step, AttachmentStep) and step.next_step not in table and step.next_step != COMPLETE:
                raise ValueError(f"Flow {self.intent!r} step {step.name!r} leads to unknown step")
        object.__setattr__(self, "table", table)

    @property
    def first_step(self) -> str:
        return self.steps[0].name

    def step(self, name: str | None) -> Step | AttachmentStep | None:
        return self.table.get(name) if name else None


def attachment_reference(data: Mapping[str, Any], key: str = "attachment") -> str | None:
    """The stored reference of an uploaded attachment, or None if skipped."""
    stored = data.get(key)
    if isinstance(stored, dict):
        return stored.get("reference")
    return None


class Wizard:
    """Runs a FlowDefinition."""

    def __init__(self, definition: FlowDefinition) -> None:
        self.definition = definition

    @property
    def intent(self) -> str:
        return self.definition.intent

    @property
    def title(self) -> str:
        return self.definition.title

    @property
    def requires_site(self) -> bool:
        return self.definition.requires_site

    async def start(self, ctx: FlowContext, seed: dict[str, Any] | None = None) -> Outcome:
        """Begin the flow at its first step."""
        FLOW_STARTS.labels(intent=self.intent).inc()
        logger.info("flow_started", intent=self.intent)
        state = FlowState(intent=self.intent, step=None, data=dict(seed or {}))
        first = self.definition.table[self.definition.first_step]
        try:
            return await self._enter(state, first, ctx, [])
        except InvalidInput as e:
            return Outcome(state=FlowState.idle(), responses=[Response.error(e.hint)])
        except StoreError as e:
            logger.error("flow_start_failed", intent=self.intent, error=str(e))
            return Outcome(state=FlowState.idle(), responses=[Response.error(LOAD_FAILED_MESSAGE)])

    async def handle(self, state: FlowState, event: InboundEvent, ctx: FlowContext) -> Outcome:
        """Advance the flow by one event.

        Raises:
            CorruptedSessionError: If ``state.step`` is not part of this flow
        """
        step = self.definition.step(state.step)
        if step is None or state.intent != self.intent:
            raise CorruptedSessionError(state.intent, state.step)

        if isinstance(step, AttachmentStep):
            return await self._handle_attachment(step, state, event, ctx)

        try:
            advance = step.parse(StepInput(event=event, data=MappingProxyType(state.data), ctx=ctx))
        except InvalidInput as e:
            return self._reject(step, state, ctx, e.hint)
        return await self._transition(step, state, advance, ctx)

    async def _transition(
        self,
        current: Step | AttachmentStep,
        state: FlowState,
        advance: Advance,
        ctx: FlowContext,
    ) -> Outcome:
        data = {**state.data, **advance.patch}
        notes = list(advance.notes)

        if advance.next_step == COMPLETE:
            return await self._complete(data, ctx, notes)

        target = self.definition.step(advance.next_step)
        if target is None:
            raise CorruptedSessionError(self.intent, advance.next_step)

        try:
            return await self._enter(FlowState(intent=self.intent, step=current.name, data=data), target, ctx, notes)
        except InvalidInput as e:
            return self._reject(current, state, ctx, e.hint)
        except StoreError as e:
            logger.error("flow_step_load_failed", intent=self.intent, step=target.name, error=str(e))
            return Outcome(state=state, responses=[Response.error(LOAD_FAILED_MESSAGE)])

    async def _enter(
        self,
        state: FlowState,
        step: Step | AttachmentStep,
        ctx: FlowContext,
        notes: list[Response],
    ) -> Outcome:
        patch: dict[str, Any] = {}
        if isinstance(step, AttachmentStep):
            patch[UPLOAD_RETRY_KEY] = 0
        elif step.load is not None:
            patch.update(await step.load(MappingProxyType(state.data), ctx))

        entered = FlowState(intent=self.intent, step=step.name, data={**state.data, **patch})
        return Outcome(state=entered, responses=[*notes, step.prompt(entered.data, ctx)])

    def _reject(
        self,
        step: Step | AttachmentStep,
        state: FlowState,
        ctx: FlowContext,
        hint: str,
    ) -> Outcome:
        VALIDATION_FAILURES.labels(intent=self.intent, step=step.name).inc()
        logger.info("step_input_rejected", intent=self.intent, step=step.name, hint=hint)
        return Outcome(state=state, responses=[step.prompt(state.data, ctx).with_hint(hint)])

    async def _complete(self, data: dict[str, Any], ctx: FlowContext, notes: list[Response]) -> Outcome:
        try:
            completion = await self.definition.complete(data, ctx)
        except StoreError as e:
            FLOW_COMPLETIONS.labels(intent=self.intent, outcome="failed").inc()
            logger.error("flow_completion_failed", intent=self.intent, error=str(e))
            return Outcome(state=FlowState.idle(), responses=[*notes, Response.error(SAVE_FAILED_MESSAGE)])

        if not completion.recorded:
            FLOW_COMPLETIONS.labels(intent=self.intent, outcome="not_recorded").inc()
            logger.info("flow_not_recorded", intent=self.intent)
            return Outcome(
                state=FlowState.idle(),
                responses=[*notes, *completion.responses],
                follow_up=completion.follow_up,
            )

        FLOW_COMPLETIONS.labels(intent=self.intent, outcome="completed").inc()
        logger.info("flow_completed", intent=self.intent, record_id=completion.record_id)
        return Outcome(
            state=FlowState.idle(),
            responses=[*notes, *completion.responses],
            completed=True,
            record_id=completion.record_id,
            follow_up=completion.follow_up,
        )

    async def _handle_attachment(
        self,
        step: AttachmentStep,
        state: FlowState,
        event: InboundEvent,
        ctx: FlowContext,
    ) -> Outcome:
        if not event.has_attachment:
            if ctx.is_skip(event.value):
                if step.mandatory:
                    return self._reject(step, state, ctx, "A photo is required here and cannot be skipped.")
                skipped = Advance(step.next_step, {step.field: None}, (Response.message("No photo attached."),))
                return await self._transition(step, state, skipped, ctx)
            hint = "Please send a photo." if step.mandatory else "Please send a photo, or type 'skip'."
            return self._reject(step, state, ctx, hint)

        assert event.attachment is not None
        pipeline = ctx.services.uploads
        result = await pipeline.upload(event.attachment, step.folder)

        if isinstance(result, UploadResult):
            uploaded = Advance(
                step.next_step,
                {step.field: result.model_dump(mode="json"), UPLOAD_RETRY_KEY: 0},
                (Response.confirmation("Photo received."),),
            )
            return await self._transition(step, state, uploaded, ctx)

        if not result.consumes_retry:
            if result.reason is UploadFailureReason.INVALID_MIME:
                return self._reject(step, state, ctx, f"{result.detail}. Please send a JPEG or PNG image.")
            return self._reject(step, state, ctx, "We could not read that file. Please send the photo again.")

        retries = int(state.data.get(UPLOAD_RETRY_KEY, 0))
        total_attempts = pipeline.max_retries + 1
        if retries < pipeline.max_retries:
            message = f"Upload failed (attempt {retries + 1} of {total_attempts}). Please send the photo again."
            if not step.mandatory:
                message += " You can also type 'skip'."
            return Outcome(
                state=state.advance(step.name, {UPLOAD_RETRY_KEY: retries + 1}),
                responses=[Response.error(message)],
            )

        logger.warning(
            "upload_retries_exhausted",
            intent=self.intent,
            step=step.name,
            mandatory=step.mandatory,
        )
        if step.mandatory:
            return Outcome(
                state=state,
                responses=[
                    Response.error(
                        "We could not upload your photo after several attempts. "
                        "A photo is required to finish; send it again later or type 'cancel' to stop."
                    )
                ],
            )
        fallback = Advance(
            step.next_step,
            {step.field: None},
            (Response.error("We could not upload your photo, so we'll continue without it."),),
        )
        return await self._transition(step, state, fallback, ctx)
