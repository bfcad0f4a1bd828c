"""Outbound response descriptors.

Handlers return an ordered list of these; turning them into channel
messages (buttons, lists, delays) is the renderer's job.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ResponseKind(str, Enum):
    """What the renderer should draw."""

    TEXT = "text"
    PROMPT = "prompt"
    CONFIRMATION = "confirmation"
    ERROR = "error"


class Option(BaseModel):
    """One selectable choice offered with a prompt."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Value sent back when selected")
    title: str = Field(..., description="Label shown to the user")
    description: str | None = Field(default=None, description="Secondary label")


class Response(BaseModel):
    """A single outbound message fragment."""

    model_config = ConfigDict(frozen=True)

    kind: ResponseKind = Field(..., description="Fragment type")
    text: str = Field(..., description="Message body")
    options: list[Option] = Field(default_factory=list, description="Selectable choices")
    hint: str | None = Field(
        default=None,
        description="Corrective note shown when the previous reply was rejected",
    )

    @classmethod
    def message(cls, text: str) -> "Response":
        return cls(kind=ResponseKind.TEXT, text=text)

    @classmethod
    def prompt(cls, text: str, options: list[Option] | None = None) -> "Response":
        return cls(kind=ResponseKind.PROMPT, text=text, options=options or [])

    @classmethod
    def confirmation(cls, text: str) -> "Response":
        return cls(kind=ResponseKind.CONFIRMATION, text=text)

    @classmethod
    def error(cls, text: str) -> "Response":
        return cls(kind=ResponseKind.ERROR, text=text)

    def with_hint(self, hint: str) -> "Response":
        """Return a copy of this prompt annotated with a corrective hint."""
        return self.model_copy(update={"hint": hint})


def options_from(pairs: list[tuple[str, str]]) -> list[Option]:
    """Build options from ``(id, title)`` pairs."""
    return [Option(id=option_id, title=title) for option_id, title in pairs]
