"""A mutable cell threaded through a program (the classic State DSL)."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from inikio import derive_builder, derive_entry, initial_style_dsl, interpret

S = TypeVar("S")


@initial_style_dsl
class State:
    pass


@dataclass(frozen=True)
class Finished(State):
    result: Any


@dataclass(frozen=True)
class Get(State):
    next: Callable[[S], State]


@dataclass(frozen=True)
class Put(State):
    new: S
    next: Callable[[], State]


StateBuilder = derive_builder(State)
state = derive_entry(State, StateBuilder)


def increment(b):
    yield b.put((yield b.get()) + 1)


def execute(program: State, initial: S) -> tuple[S, Any]:
    """Run ``program`` from ``initial``, returning the final cell and result."""
    current = initial

    def put(instruction: Put) -> None:
        nonlocal current
        current = instruction.new

    result = interpret(program, {Get: lambda _: current, Put: put}).unwrap()
    return current, result


if __name__ == "__main__":
    print(execute(state(increment), 0))
