"""Throwing dice: the smallest useful initial-style DSL.

    >>> program = dice(two_throws)
    >>> program.next(3).next(4)
    Result(result=7)
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass

from inikio import derive_builder, derive_entry, initial_style_dsl, interpret


@initial_style_dsl(result_type=int)
class Dice:
    pass


@dataclass(frozen=True)
class Result(Dice):
    result: int


@dataclass(frozen=True)
class Throw(Dice):
    next: Callable[[int], Dice]


DiceBuilder = derive_builder(Dice)
dice = derive_entry(Dice, DiceBuilder)


def two_throws(b):
    first = yield b.throw()
    second = yield b.throw()
    return first + second


def execute(program: Dice, rng: random.Random | None = None) -> int:
    rng = rng if rng is not None else random.Random()
    return interpret(program, {Throw: lambda _: rng.randint(1, 6)}).unwrap()


if __name__ == "__main__":
    print(execute(dice(two_throws)))
