"""
Outcome of walking an instruction tree to its end.

``interpret`` reports every run as an ``Ok`` holding the terminal
instruction's value or an ``Err`` holding the exception that stopped it: the
error instruction's payload, a missing handler, a raising handler or
continuation, or the step limit.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, cast

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)
U = TypeVar("U")


class Result(Generic[T_co]):
    """Base of ``Ok`` and ``Err``. Truthy exactly when the run finished."""

    __slots__ = ()

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def ok(self) -> T_co | None:
        if isinstance(self, Ok):
            return self.value
        return None

    def err(self) -> Exception | None:
        if isinstance(self, Err):
            return self.error
        return None

    def unwrap(self) -> T_co:
        """The terminal value; an ``Err`` re-raises the exception that ended the run."""
        if isinstance(self, Ok):
            return self.value
        assert isinstance(self, Err)
        raise self.error

    def unwrap_err(self) -> Exception:
        if isinstance(self, Err):
            return self.error
        raise RuntimeError("Called unwrap_err on Ok value")

    def unwrap_or(self, default: U) -> T_co | U:
        if isinstance(self, Ok):
            return self.value
        return default

    def map(self, f: Callable[[T_co], U]) -> Result[U]:
        """Post-process a terminal value, e.g. ``run.result.map(len)``; errors pass through."""
        if isinstance(self, Ok):
            return Ok(f(self.value))
        return cast(Result[U], self)

    def __bool__(self) -> bool:
        return self.is_ok()


@dataclass(frozen=True)
class Ok(Result[T], Generic[T]):
    value: T


@dataclass(frozen=True)
class Err(Result[NoReturn]):
    error: Exception


__all__ = ["Err", "Ok", "Result"]
