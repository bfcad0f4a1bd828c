"""Engine error hierarchy."""


class EngineError(Exception):
    """Base exception for conversation engine errors."""


class CorruptedSessionError(EngineError):
    """Raised when a session's intent/step pair cannot be resumed.

    Covers an intent without a step, a step without an intent, and a step
    name the flow does not define. Always recovered by resetting to the menu.
    """

    def __init__(self, intent: str | None, step: str | None) -> None:
        super().__init__(f"Cannot resume intent={intent!r} step={step!r}")
        self.intent = intent
        self.step = step


class DelegationError(EngineError):
    """Raised when a session cannot be decomposed into a delegation frame."""
