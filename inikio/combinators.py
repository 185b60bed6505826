"""Control-flow combinators over builder programs.

Each combinator takes zero-argument callables producing programs (a
generator, or a request returned by ``perform``) and is itself a program, so
it can be delegated to with ``yield from`` or yielded as a sub-program:

    cards = yield from repeat(3, b.draw)
    yield when(hp <= 0, b.faint)
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable
from typing import Any, NoReturn

ProgramFactory = Callable[[], Iterable[Any]]


def repeat(n: int, f: ProgramFactory) -> Generator[Any, Any, list[Any]]:
    """Run ``f`` ``n`` times, in order, collecting the results."""
    results: list[Any] = []
    for _ in range(n):
        results.append((yield from f()))
    return results


def when(condition: bool, f: ProgramFactory) -> Generator[Any, Any, None]:
    """Run ``f`` only if ``condition`` is true."""
    if condition:
        yield from f()


def forever(f: ProgramFactory) -> Generator[Any, Any, NoReturn]:
    """Run ``f`` over and over, discarding its results.

    Never returns normally; the DSL is expected to offer an escape
    instruction whose consumer simply stops delivering values.
    """
    while True:
        yield from f()


def while_(f: Callable[[], Iterable[Any]]) -> Generator[Any, Any, None]:
    """Run ``f`` until it returns a false value. ``f`` runs at least once."""
    while (yield from f()):
        pass


__all__ = ["ProgramFactory", "forever", "repeat", "when", "while_"]
