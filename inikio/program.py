"""
Entry points that turn generator code into an instruction tree.

``program`` is the quick form taking the terminal constructors directly;
``run_program`` takes an already constructed (usually DSL-specific) builder.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any, TypeVar, Union

from inikio.builder import ProgramBuilder
from inikio.step import Perform

A = TypeVar("A")
R = TypeVar("R")
B = TypeVar("B", bound=ProgramBuilder[Any, Any])

ProgramBody = Callable[[B], Union[Generator[Any, Any, R], R]]


def run_program(builder: B, body: ProgramBody[B, R]) -> Any:
    """Launch ``body`` against ``builder`` and return the first instruction.

    ``body`` is called with the builder. If it returns a generator (or a single
    ``perform`` request, which is run as a one-step program), the
    generator is driven up to its first suspension; any other return value is
    taken as the finished result. Normal completion moves the builder to
    ``Done``, an uncaught exception to ``Failed``. The returned instruction is
    the root of the lazily unfolding tree.

    Raises:
        RuntimeError: If ``builder`` was already used for another program.
    """
    builder._claim()
    try:
        produced = body(builder)
    except Exception as exc:
        builder._fail(exc)
    else:
        if isinstance(produced, Perform):
            produced = iter(produced)
        if isinstance(produced, Generator):
            builder._launch(produced)
        else:
            builder._done(produced)
    return builder.advance()


def program(
    end_with: Callable[[R], A],
    body: ProgramBody[ProgramBuilder[A, R], R],
    *,
    on_error: Callable[[BaseException], A] | None = None,
) -> A:
    """Turn ``body`` into an instruction using a plain ``ProgramBuilder``.

    Args:
        end_with: Constructor of the terminal instruction.
        body: Generator function receiving the builder.
        on_error: Constructor of the terminal-failure instruction. When
            omitted, an exception raised by ``body`` propagates out of
            ``program`` (or out of the delivery call that triggered it).

    Example:
        >>> def body(b):
        ...     yield b.perform_unit(Beep)
        ...     return "ok"
        >>> program(Finished, body).next()
        Finished(result='ok')
    """
    return run_program(ProgramBuilder(end_with, on_error), body)


__all__ = ["ProgramBody", "program", "run_program"]
