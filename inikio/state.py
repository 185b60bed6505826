"""Program states for the builder state machine.

Exactly one state is active per builder:

- ``Done``: the computation returned normally.
- ``Failed``: the computation raised and nothing caught it.
- ``Pending``: the computation is parked at a suspension point, waiting for a
  value to be delivered to its continuation.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

A = TypeVar("A")
R = TypeVar("R")

_frame_id_counter = itertools.count(1)
_continuation_id_counter = itertools.count(1)


def _next_frame_id() -> int:
    return next(_frame_id_counter)


def _next_continuation_id() -> int:
    return next(_continuation_id_counter)


@dataclass(frozen=True)
class ReturnFrame:
    generator: Generator[Any, Any, Any]
    frame_id: int = field(default_factory=_next_frame_id, compare=False)


@dataclass(eq=False)
class Continuation:
    """The frozen remainder of a computation, resumable exactly once.

    ``frames`` holds the suspended generators, outermost first. The list is
    owned by the continuation and consumed by the single resume.
    """

    frames: list[ReturnFrame]
    cont_id: int = field(default_factory=_next_continuation_id)
    resumed: bool = False

    def __repr__(self) -> str:
        ids = ", ".join(f"RF#{frame.frame_id}" for frame in reversed(self.frames))
        status = "resumed" if self.resumed else "parked"
        return f"Continuation(#{self.cont_id}, [{ids}], {status})"


@dataclass(frozen=True)
class Done(Generic[R]):
    result: R


@dataclass(frozen=True)
class Failed:
    error: BaseException


@dataclass(frozen=True)
class Pending(Generic[A]):
    request: Callable[[Callable[[Any], A]], A]
    continuation: Continuation


ProgramState = Union[Done[Any], Failed, Pending[Any]]


def is_terminal(state: ProgramState) -> bool:
    return isinstance(state, (Done, Failed))


__all__ = [
    "Continuation",
    "Done",
    "Failed",
    "Pending",
    "ProgramState",
    "ReturnFrame",
    "is_terminal",
]
