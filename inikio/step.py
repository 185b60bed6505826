"""Generator stepping for suspended computations.

A running computation is a stack of generators (``ReturnFrame``s, outermost
first, so the innermost frame is on top). ``drive`` sends values into / throws
errors into the innermost frame until one of three things happens:

- a ``Perform`` request is yielded: the remaining stack is parked in a
  ``Continuation`` and a ``Pending`` state is returned;
- the stack empties with a value: ``Done``;
- the stack empties with an error: ``Failed``.

A yielded generator is a sub-program: it is pushed as a new frame instead of
being called recursively, so nested programs do not grow the Python stack.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from inikio.state import Continuation, Done, Failed, Pending, ProgramState, ReturnFrame

A = TypeVar("A")
T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Perform(Generic[A, T]):
    """A request to suspend the computation until a ``T`` is delivered.

    ``request`` receives the delivery callback and builds one instruction.
    Yield the request to suspend (``x = yield b.perform(...)``); it can also
    be delegated to with ``yield from``.
    """

    request: Callable[[Callable[[Any], A]], A]

    def __iter__(self) -> Generator[Perform[A, T], T, T]:
        value = yield self
        return value


@dataclass(frozen=True)
class Value:
    value: Any


@dataclass(frozen=True)
class Error:
    error: BaseException


Control = Value | Error


def launch(generator: Generator[Any, Any, Any]) -> ProgramState:
    return drive([ReturnFrame(generator)], Value(None))


def resume(continuation: Continuation, value: Any) -> ProgramState:
    return drive(continuation.frames, Value(value))


def drive(k: list[ReturnFrame], control: Control) -> ProgramState:
    """Step the frame stack ``k`` (outermost first) until it parks or empties.

    ``k`` is mutated in place and handed to the ``Continuation`` on suspension.
    """
    while True:
        if not k:
            if isinstance(control, Value):
                logger.debug("computation finished with %r", control.value)
                return Done(control.value)
            logger.debug("computation failed with %r", control.error)
            return Failed(control.error)

        frame = k[-1]
        try:
            if isinstance(control, Value):
                yielded = frame.generator.send(control.value)
            else:
                yielded = frame.generator.throw(control.error)
        except StopIteration as e:
            control = Value(e.value)
            k.pop()
            continue
        except Exception as e:
            control = Error(e)
            k.pop()
            continue

        if isinstance(yielded, Perform):
            continuation = Continuation(frames=k)
            logger.debug("suspended at %r", continuation)
            return Pending(yielded.request, continuation)

        if isinstance(yielded, Generator):
            k.append(ReturnFrame(yielded))
            control = Value(None)
            continue

        control = Error(
            TypeError(
                f"Programs may only yield perform requests or sub-programs, "
                f"got {type(yielded).__name__}"
            )
        )


__all__ = [
    "Control",
    "Error",
    "Perform",
    "Value",
    "drive",
    "launch",
    "resume",
]
