from __future__ import annotations

from typing import Any


class InikioError(Exception):
    """Base class for errors raised by inikio itself (not by user programs)."""


class ProgramNotStartedError(InikioError, RuntimeError):
    """Raised when a builder is advanced before any computation was launched."""

    def __init__(self, message: str = "empty trace") -> None:
        super().__init__(message)


class ContinuationAlreadyResumedError(InikioError, RuntimeError):
    """Raised when a delivery callback is invoked a second time.

    Continuations are one-shot. This is a precondition violation on the
    consumer's side and is never turned into a ``Failed`` program state.
    """

    def __init__(self, cont_id: int) -> None:
        self.cont_id = cont_id
        super().__init__(
            f"One-shot violation: continuation {cont_id} has already been resumed. "
            "Each delivery callback can only be invoked once."
        )


class DslDefinitionError(InikioError, TypeError):
    """Raised when an instruction hierarchy does not have the expected shape."""

    def __init__(self, base: type, reason: str) -> None:
        self.base = base
        self.reason = reason
        super().__init__(f"Invalid initial-style DSL {base.__qualname__}: {reason}")


class MissingHandlerError(InikioError, LookupError):
    """Raised by the interpreter when no handler is registered for an instruction."""

    def __init__(self, instruction: Any) -> None:
        self.instruction = instruction
        super().__init__(
            f"No handler for {type(instruction).__name__}\n"
            f"Hint: Provide one via `handlers={{{type(instruction).__name__}: ...}}`"
        )


class StepLimitExceededError(InikioError, RuntimeError):
    """Raised by the interpreter when ``max_steps`` instructions were consumed."""

    def __init__(self, max_steps: int) -> None:
        self.max_steps = max_steps
        super().__init__(f"interpret exceeded max_steps ({max_steps})")


__all__ = [
    "ContinuationAlreadyResumedError",
    "DslDefinitionError",
    "InikioError",
    "MissingHandlerError",
    "ProgramNotStartedError",
    "StepLimitExceededError",
]
