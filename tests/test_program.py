"""Tests for program/run_program entry points."""

from __future__ import annotations

import pytest

from dsl_fixtures import Ask, Crashed, Finished, Tell
from examples.dice import Result, Throw, dice
from inikio import ProgramBuilder, program, run_program


class TestProgram:
    def test_single_perform_then_constant(self):
        def body(b):
            yield b.perform(Ask)
            return 42

        first = program(Finished, body)

        assert isinstance(first, Ask)
        assert first.next("anything") == Finished(42)

    def test_non_generator_body_finishes_immediately(self):
        assert program(Finished, lambda b: 7) == Finished(7)

    def test_generator_without_suspension(self):
        def body(b):
            return 3
            yield  # pragma: no cover

        assert program(Finished, body) == Finished(3)

    def test_deliveries_reach_the_program_in_order(self):
        def body(b):
            received = []
            for _ in range(3):
                received.append((yield b.perform(Ask)))
            return received

        assert program(Finished, body).next("a").next("b").next("c") == Finished(["a", "b", "c"])


class TestErrors:
    def test_error_before_first_suspension_propagates(self):
        def body(b):
            raise ValueError("boom")
            yield  # pragma: no cover

        with pytest.raises(ValueError, match="boom"):
            program(Finished, body)

    def test_error_before_first_suspension_uses_on_error(self):
        error = ValueError("boom")

        def body(b):
            raise error
            yield  # pragma: no cover

        assert program(Finished, body, on_error=Crashed) == Crashed(error)

    def test_non_generator_body_raising_uses_on_error(self):
        error = RuntimeError("no generator")

        def body(b):
            raise error

        assert program(Finished, body, on_error=Crashed) == Crashed(error)

    @pytest.mark.parametrize("j", [1, 2, 4])
    def test_error_after_j_suspensions_uses_on_error(self, j):
        error = ZeroDivisionError("after suspensions")

        def body(b):
            for _ in range(j):
                yield b.perform(Ask)
            raise error

        current = program(Finished, body, on_error=Crashed)
        for index in range(j):
            assert isinstance(current, Ask)
            current = current.next(index)

        assert current == Crashed(error)

    def test_error_after_suspension_propagates_from_delivery(self):
        def body(b):
            yield b.perform(Ask)
            raise LookupError("late")

        first = program(Finished, body)

        with pytest.raises(LookupError, match="late"):
            first.next(None)

    def test_program_may_catch_its_own_errors(self):
        def body(b):
            try:
                value = yield b.perform(Ask)
                return 10 // value
            except ZeroDivisionError:
                return "divided by zero"

        assert program(Finished, body).next(0) == Finished("divided by zero")


class TestRunProgram:
    def test_runs_against_given_builder(self, builder):
        def body(b):
            assert b is builder
            return (yield b.perform(Ask))

        assert run_program(builder, body).next(1) == Finished(1)

    def test_builder_cannot_be_reused(self, builder):
        run_program(builder, lambda b: 1)

        with pytest.raises(RuntimeError, match="cannot be reused"):
            run_program(builder, lambda b: 2)

    def test_independent_builders_do_not_interfere(self):
        def body(b):
            return (yield b.perform(Ask))

        first = run_program(ProgramBuilder(Finished), body)
        second = run_program(ProgramBuilder(Finished), body)

        assert second.next("second") == Finished("second")
        assert first.next("first") == Finished("first")


class TestRequestBodies:
    def test_body_returning_a_request_suspends(self):
        first = program(Finished, lambda b: b.perform(Ask))

        assert isinstance(first, Ask)
        assert first.next("answer") == Finished("answer")

    def test_body_returning_a_unit_request(self):
        first = program(Finished, lambda b: b.perform_unit(Tell, "hi"))

        assert isinstance(first, Tell)
        assert first.next() == Finished(None)

    def test_derived_entry_with_request_body(self):
        first = dice(lambda b: b.throw())

        assert isinstance(first, Throw)
        assert first.next(6) == Result(6)
