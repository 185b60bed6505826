"""
ProgramBuilder: the engine that reifies generator code into instructions.

A builder owns one program state (see ``inikio.state``). User code suspends by
yielding the requests created by ``perform``/``perform_unit``; ``advance``
unfolds the current state into the next concrete instruction.

The instruction tree is never built eagerly. Every delivery callback embedded
in an instruction re-enters the frozen computation and pulls exactly one more
layer of the tree into existence, so arbitrarily large (or infinite) programs
are consumed lazily by whoever holds the returned instruction.

Example:
    >>> @dataclass(frozen=True)
    ... class Ask:
    ...     next: Callable[[int], Any]
    >>> @dataclass(frozen=True)
    ... class Finished:
    ...     result: int
    >>> def body(b):
    ...     x = yield b.perform(Ask)
    ...     return x + 1
    >>> program(Finished, body).next(41)
    Finished(result=42)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable, Generator
from typing import Any, Generic, NoReturn, TypeVar, overload

from inikio.errors import ContinuationAlreadyResumedError, ProgramNotStartedError
from inikio.state import Continuation, Done, Failed, Pending, ProgramState
from inikio.step import Perform, launch, resume

A = TypeVar("A")
R = TypeVar("R")
T = TypeVar("T")
X = TypeVar("X")
Y = TypeVar("Y")

logger = logging.getLogger(__name__)

# Generated builders only ever pass zero, one or two plain arguments.
MAX_EXTRA_ARGS = 2


def _reraise(error: BaseException) -> NoReturn:
    raise error


def _debug_enabled() -> bool:
    return os.environ.get("INIKIO_DEBUG", "").lower() in ("1", "true", "yes")


def _check_extra_args(args: tuple[Any, ...]) -> None:
    if len(args) > MAX_EXTRA_ARGS:
        raise TypeError(
            f"perform accepts at most {MAX_EXTRA_ARGS} extra arguments, got {len(args)}"
        )


def _describe(state: ProgramState) -> str:
    if isinstance(state, Done):
        return f"Done({state.result!r})"
    if isinstance(state, Failed):
        return f"Failed({type(state.error).__name__}: {state.error})"
    return f"Pending({state.continuation!r})"


class ProgramBuilder(Generic[A, R]):
    """Build initial-style programs over the instruction type ``A``.

    Args:
        end_with: Constructor of the terminal instruction, called with the
            computation's result.
        on_error: Constructor of the terminal-failure instruction, called with
            the uncaught exception. By default the exception is re-raised to
            whoever advanced the builder.

    DSL-specific builders subclass this and expose one method per
    instruction, each delegating to ``perform`` or ``perform_unit``.
    """

    def __init__(
        self,
        end_with: Callable[[R], A],
        on_error: Callable[[BaseException], A] | None = None,
    ) -> None:
        self._end_with = end_with
        self._on_error: Callable[[BaseException], A] = on_error if on_error is not None else _reraise
        self._state: ProgramState = Failed(ProgramNotStartedError())
        self._launched = False
        self._debug = _debug_enabled()

    @property
    def state(self) -> ProgramState:
        return self._state

    @overload
    def perform(self, request: Callable[[Callable[[T], A]], A]) -> Perform[A, T]: ...

    @overload
    def perform(self, request: Callable[[X, Callable[[T], A]], A], x: X) -> Perform[A, T]: ...

    @overload
    def perform(
        self, request: Callable[[X, Y, Callable[[T], A]], A], x: X, y: Y
    ) -> Perform[A, T]: ...

    def perform(self, request: Callable[..., A], *args: Any) -> Perform[A, Any]:
        """Record an instruction which consumes a value.

        ``request`` receives the delivery callback as its last argument,
        after any extra arguments given here.
        """
        if not args:
            return Perform(request)
        _check_extra_args(args)
        return Perform(lambda deliver: request(*args, deliver))

    @overload
    def perform_unit(self, request: Callable[[Callable[[], A]], A]) -> Perform[A, None]: ...

    @overload
    def perform_unit(
        self, request: Callable[[X, Callable[[], A]], A], x: X
    ) -> Perform[A, None]: ...

    @overload
    def perform_unit(
        self, request: Callable[[X, Y, Callable[[], A]], A], x: X, y: Y
    ) -> Perform[A, None]: ...

    def perform_unit(self, request: Callable[..., A], *args: Any) -> Perform[A, None]:
        """Record an instruction whose continuation takes no value."""
        _check_extra_args(args)
        return self.perform(lambda deliver: request(*args, lambda: deliver(None)))

    def _claim(self) -> None:
        if self._launched:
            raise RuntimeError("ProgramBuilder instances cannot be reused across programs")
        self._launched = True

    def _launch(self, generator: Generator[Any, Any, R]) -> None:
        self._settle(launch(generator))

    def _done(self, result: R) -> None:
        self._transition(Done(result))

    def _fail(self, error: BaseException) -> None:
        self._transition(Failed(error))

    def _settle(self, outcome: ProgramState) -> None:
        if isinstance(outcome, Done):
            self._done(outcome.result)
        elif isinstance(outcome, Failed):
            self._fail(outcome.error)
        else:
            self._transition(outcome)

    def _transition(self, new_state: ProgramState) -> None:
        if self._debug:
            print(
                f"[inikio] {type(self).__name__}: {_describe(self._state)} -> {_describe(new_state)}",
                file=sys.stderr,
            )
        self._state = new_state

    def _deliver_to(self, continuation: Continuation) -> Callable[[Any], A]:
        def deliver(value: Any) -> A:
            if continuation.resumed:
                raise ContinuationAlreadyResumedError(continuation.cont_id)
            continuation.resumed = True
            logger.debug("delivering %r to %r", value, continuation)
            self._settle(resume(continuation, value))
            return self.advance()

        return deliver

    def advance(self) -> A:
        """Unfold the current state into the next instruction."""
        state = self._state
        if isinstance(state, Done):
            return self._end_with(state.result)
        if isinstance(state, Failed):
            return self._on_error(state.error)
        assert isinstance(state, Pending)
        return state.request(self._deliver_to(state.continuation))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({_describe(self._state)})"


__all__ = ["MAX_EXTRA_ARGS", "ProgramBuilder"]
