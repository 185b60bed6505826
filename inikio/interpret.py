"""
Generic consumer for instruction trees.

``interpret`` walks a tree produced by a builder, asking a handler per
instruction variant for the value to deliver, until it reaches the terminal
(or error) instruction. It loops rather than recursing, so long programs do
not grow the Python stack.

Example:
    result = interpret(
        dice(two_throws),
        {Throw: lambda _: random.randint(1, 6)},
    )
    result.value  # sum of the two throws
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from inikio.dsl import DslSchema
from inikio.errors import MissingHandlerError, StepLimitExceededError
from inikio.result import Err, Ok, Result

T = TypeVar("T")

Handler = Callable[[Any], Any]
Handlers = Mapping[type, Handler]


@dataclass
class RunResult(Generic[T]):
    """Outcome of interpreting one instruction tree.

    Attributes:
        result: ``Ok`` with the program's result, or ``Err`` with the error.
        steps: Number of continuable instructions consumed.
        trace: Variant names of the consumed instructions, in order.
    """

    result: Result[T]
    steps: int = 0
    trace: list[str] = field(default_factory=list)

    @property
    def is_ok(self) -> bool:
        return self.result.is_ok()

    @property
    def is_err(self) -> bool:
        return self.result.is_err()

    @property
    def value(self) -> T:
        return self.result.unwrap()

    @property
    def error(self) -> Exception:
        return self.result.unwrap_err()

    def unwrap(self) -> T:
        return self.result.unwrap()


def _find_handler(handlers: Handlers, instruction: Any) -> Handler | None:
    for klass in type(instruction).__mro__:
        handler = handlers.get(klass)
        if handler is not None:
            return handler
    return None


def _failure_of(schema: DslSchema, instruction: Any) -> Exception:
    assert schema.error is not None
    error = schema.error.value_of(instruction)
    if isinstance(error, Exception):
        return error
    return RuntimeError(f"program ended with {schema.error.name}({error!r})")


def _run(
    instruction: Any,
    handlers: Handlers,
    schema: DslSchema | None,
    max_steps: int | None,
    on_step: Callable[[int, Any], None] | None,
) -> RunResult[Any]:
    if schema is None:
        schema = DslSchema.from_instruction(instruction)

    trace: list[str] = []
    steps = 0
    current = instruction
    while True:
        if on_step is not None:
            on_step(steps, current)

        if schema.is_terminal(current):
            return RunResult(Ok(schema.terminal.value_of(current)), steps, trace)
        if schema.is_error(current):
            return RunResult(Err(_failure_of(schema, current)), steps, trace)
        if max_steps is not None and steps >= max_steps:
            return RunResult(Err(StepLimitExceededError(max_steps)), steps, trace)

        handler = _find_handler(handlers, current)
        if handler is None:
            return RunResult(Err(MissingHandlerError(current)), steps, trace)

        try:
            spec = schema.spec_for(current)
            delivered = handler(current)
            continuation = spec.continuation_of(current)
            current = continuation(delivered) if spec.takes_value else continuation()
        except Exception as exc:
            return RunResult(Err(exc), steps, trace)

        trace.append(spec.name)
        steps += 1


def interpret(
    instruction: Any,
    handlers: Handlers,
    *,
    schema: DslSchema | None = None,
    max_steps: int | None = None,
) -> RunResult[Any]:
    """Run ``instruction`` to completion with ``handlers``.

    Args:
        instruction: Root of the tree (usually what a builder entry returned).
        handlers: Maps variant classes to functions receiving the instruction
            and returning the value to deliver. Handlers of zero-argument
            continuations are called for their side effects only.
        schema: Schema of the hierarchy; looked up from the instruction's
            class when omitted.
        max_steps: Stop with ``StepLimitExceededError`` after this many
            continuable instructions.

    Returns:
        RunResult whose ``result`` is ``Ok`` with the terminal value, or
        ``Err`` for the error instruction, a missing handler, a raising
        handler or continuation, or the step limit.
    """
    return _run(instruction, handlers, schema, max_steps, None)


def debug_interpret(
    instruction: Any,
    handlers: Handlers,
    *,
    schema: DslSchema | None = None,
    max_steps: int | None = 1000,
) -> RunResult[Any]:
    def show(step: int, current: Any) -> None:
        print(f"[DEBUG] Step {step}: {current!r}", file=sys.stderr)

    result = _run(instruction, handlers, schema, max_steps, show)
    if result.is_ok:
        print(f"[DEBUG] Done({result.result.ok()!r})", file=sys.stderr)
    else:
        print(f"[DEBUG] Failed({result.result.err()})", file=sys.stderr)
    return result


__all__ = ["Handler", "Handlers", "RunResult", "debug_interpret", "interpret"]
