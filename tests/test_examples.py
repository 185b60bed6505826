"""Tests for the programs under examples/."""

from __future__ import annotations

import random

from examples.card_game import (
    Card,
    Done,
    Draw,
    FlipCoin,
    Outcome,
    attack,
    draw_n,
    execute as execute_attack,
    iron_tail,
)
from examples.dice import Result, Throw, dice, execute as execute_dice, two_throws
from examples.state_machine import Finished, Get, Put, execute as execute_state, increment, state
from inikio import interpret


class TestDice:
    def test_manual_unfolding(self):
        first = dice(two_throws)

        assert isinstance(first, Throw)
        assert first.next(3).next(4) == Result(7)

    def test_execute_with_random_throws(self):
        total = execute_dice(dice(two_throws), random.Random(7))

        assert 2 <= total <= 12


class TestState:
    def test_increment(self):
        assert execute_state(state(increment), 0) == (1, None)

    def test_instruction_shapes(self):
        first = state(increment)

        assert isinstance(first, Get)
        put = first.next(41)
        assert isinstance(put, Put)
        assert put.new == 42
        assert put.next() == Finished(None)

    def test_get_after_put(self):
        def body(b):
            yield b.put("changed")
            return (yield b.get())

        assert execute_state(state(body), "initial") == ("changed", "changed")


class TestCardGame:
    def test_iron_tail_counts_heads(self):
        flips = iter([Outcome.HEADS, Outcome.HEADS, Outcome.TAILS])

        result = interpret(attack(iron_tail), {FlipCoin: lambda _: next(flips)})

        assert result.value == 60
        assert result.trace == ["FlipCoin"] * 3

    def test_long_heads_streak(self):
        flips = iter([Outcome.HEADS] * 500 + [Outcome.TAILS])

        result = interpret(attack(iron_tail), {FlipCoin: lambda _: next(flips)})

        assert result.value == 30 * 500

    def test_draw_n_drops_empty_draws(self):
        log, cards = execute_attack(attack(lambda b: draw_n(b, 3)), deck=[Card("pikachu")])

        assert log == ["draw", "draw", "draw"]
        assert cards == [Card("pikachu")]

    def test_draw_unfolds_one_instruction_per_card(self):
        first = attack(lambda b: draw_n(b, 2))

        assert isinstance(first, Draw)
        assert first.next(Card("a")).next(None) == Done([Card("a")])

    def test_execute_iron_tail(self):
        log, damage = execute_attack(attack(iron_tail), random.Random(3))

        assert log == []
        assert damage % 30 == 0
