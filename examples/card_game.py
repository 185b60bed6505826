"""Attacks of a trading card game, written as sequential code.

An attack flips coins and draws cards; how coins land and which cards come up
is decided by whoever executes the resulting ``Attack`` tree.
"""

from __future__ import annotations

import enum
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from inikio import derive_builder, derive_entry, initial_style_dsl, interpret, repeat


class Outcome(enum.Enum):
    HEADS = "heads"
    TAILS = "tails"


@dataclass(frozen=True)
class Card:
    name: str


@initial_style_dsl
class Attack:
    pass


@dataclass(frozen=True)
class Done(Attack):
    result: Any


@dataclass(frozen=True)
class FlipCoin(Attack):
    next: Callable[[Outcome], Attack]


@dataclass(frozen=True)
class Draw(Attack):
    next: Callable[[Card | None], Attack]


AttackBuilder = derive_builder(Attack)
attack = derive_entry(Attack, AttackBuilder)


def draw_n(b, n: int):
    """Draw ``n`` times, dropping draws from an empty deck."""
    cards = yield from repeat(n, b.draw)
    return [card for card in cards if card is not None]


def iron_tail_worker(b):
    if (yield b.flip_coin()) is Outcome.HEADS:
        return 30 + (yield iron_tail_worker(b))
    return 0


def iron_tail(b):
    """Flip until tails; 30 damage per heads."""
    return (yield iron_tail_worker(b))


def execute(
    program: Attack,
    rng: random.Random | None = None,
    deck: list[Card] | None = None,
) -> tuple[list[str], Any]:
    """Run ``program``, returning the log of draws and the attack's result."""
    rng = rng if rng is not None else random.Random()
    remaining = list(deck or [])
    log: list[str] = []

    def flip(_: FlipCoin) -> Outcome:
        return Outcome.HEADS if rng.random() < 0.5 else Outcome.TAILS

    def draw(_: Draw) -> Card | None:
        log.append("draw")
        return remaining.pop(0) if remaining else None

    result = interpret(program, {FlipCoin: flip, Draw: draw}).unwrap()
    return log, result


if __name__ == "__main__":
    print(execute(attack(iron_tail)))
