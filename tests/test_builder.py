"""Tests for the ProgramBuilder state machine."""

from __future__ import annotations

import pytest

from dsl_fixtures import Ask, Crashed, Finished, Lookup, Note, Pair, Tell
from inikio import (
    ContinuationAlreadyResumedError,
    Done,
    Failed,
    Pending,
    Perform,
    ProgramBuilder,
    ProgramNotStartedError,
    program,
    run_program,
)


def ask_once(b):
    x = yield b.perform(Ask)
    return x


def ask_twice(b):
    x = yield b.perform(Ask)
    y = yield b.perform(Ask)
    return x + y


class TestInitialState:
    def test_fresh_builder_is_failed_with_empty_trace(self, builder):
        assert isinstance(builder.state, Failed)
        assert isinstance(builder.state.error, ProgramNotStartedError)
        assert str(builder.state.error) == "empty trace"

    def test_advance_before_launch_raises(self, builder):
        with pytest.raises(ProgramNotStartedError):
            builder.advance()

    def test_advance_before_launch_uses_on_error(self, catching_builder):
        instruction = catching_builder.advance()

        assert isinstance(instruction, Crashed)
        assert isinstance(instruction.error, ProgramNotStartedError)

    def test_repr_shows_state(self, builder):
        assert repr(builder) == "ProgramBuilder(Failed(ProgramNotStartedError: empty trace))"


class TestTransitions:
    def test_pending_after_first_perform(self, builder):
        first = run_program(builder, ask_once)

        assert isinstance(first, Ask)
        assert isinstance(builder.state, Pending)

    def test_done_after_last_delivery(self, builder):
        first = run_program(builder, ask_once)

        assert first.next(5) == Finished(5)
        assert builder.state == Done(5)

    def test_failed_after_uncaught_error(self, catching_builder):
        error = ValueError("boom")

        def body(b):
            yield b.perform(Ask)
            raise error

        first = run_program(catching_builder, body)

        assert first.next(None) == Crashed(error)
        assert catching_builder.state == Failed(error)

    def test_advance_on_done_is_idempotent(self, builder):
        run_program(builder, ask_once).next(5)

        assert builder.advance() == Finished(5)
        assert builder.advance() == Finished(5)
        assert builder.state == Done(5)

    def test_advance_on_failed_is_idempotent(self, catching_builder):
        error = KeyError("missing")

        def body(b):
            raise error
            yield  # pragma: no cover

        run_program(catching_builder, body)

        assert catching_builder.advance().error is error
        assert catching_builder.advance().error is error

    def test_advance_on_pending_rebuilds_same_request(self, builder):
        first = run_program(builder, ask_once)
        again = builder.advance()

        assert isinstance(again, Ask)
        assert again is not first


class TestOneShot:
    def test_second_delivery_raises(self):
        first = program(Finished, ask_once)
        first.next(1)

        with pytest.raises(ContinuationAlreadyResumedError, match="already been resumed"):
            first.next(2)

    def test_second_delivery_leaves_state_untouched(self, builder):
        first = run_program(builder, ask_once)
        first.next(1)

        with pytest.raises(ContinuationAlreadyResumedError):
            first.next(2)
        assert builder.state == Done(1)

    def test_stale_callback_rejected_after_progress(self):
        first = program(Finished, ask_twice)
        second = first.next(1)

        with pytest.raises(ContinuationAlreadyResumedError):
            first.next(9)
        assert second.next(2) == Finished(3)

    def test_error_carries_continuation_id(self, builder):
        first = run_program(builder, ask_once)
        continuation = builder.state.continuation
        first.next(1)

        with pytest.raises(ContinuationAlreadyResumedError) as exc_info:
            first.next(1)
        assert exc_info.value.cont_id == continuation.cont_id


class TestPerformArity:
    def test_perform_without_arguments(self, builder):
        assert isinstance(builder.perform(Ask), Perform)

    def test_perform_with_one_argument(self):
        def body(b):
            value = yield b.perform(Lookup, "user")
            return value

        first = program(Finished, body)

        assert first.key == "user"
        assert first.next("ada") == Finished("ada")

    def test_perform_with_two_arguments(self):
        def body(b):
            total = yield b.perform(Pair, 1, 2)
            return total

        first = program(Finished, body)

        assert (first.left, first.right) == (1, 2)
        assert first.next(3) == Finished(3)

    def test_perform_unit_with_one_argument(self):
        def body(b):
            result = yield b.perform_unit(Tell, "hi")
            return result

        first = program(Finished, body)

        assert first.message == "hi"
        assert first.next() == Finished(None)

    def test_perform_unit_with_two_arguments(self):
        def body(b):
            yield b.perform_unit(Note, 2, "careful")
            return "noted"

        first = program(Finished, body)

        assert (first.level, first.message) == (2, "careful")
        assert first.next() == Finished("noted")

    def test_perform_rejects_three_arguments(self, builder):
        with pytest.raises(TypeError, match="at most 2 extra arguments"):
            builder.perform(Pair, 1, 2, 3)

    def test_perform_unit_rejects_three_arguments(self, builder):
        with pytest.raises(TypeError, match="at most 2 extra arguments"):
            builder.perform_unit(Note, 1, 2, 3)


class TestInstructionSequence:
    @pytest.mark.parametrize("k", [1, 2, 5, 20])
    def test_k_suspensions_unfold_in_order(self, k):
        def body(b):
            seen = []
            for index in range(k):
                seen.append((yield b.perform(Lookup, f"key-{index}")))
            return seen

        instructions = []
        current = program(Finished, body)
        while not isinstance(current, Finished):
            instructions.append(current)
            current = current.next(current.key.upper())

        assert [instruction.key for instruction in instructions] == [
            f"key-{index}" for index in range(k)
        ]
        assert current == Finished([f"KEY-{index}" for index in range(k)])


class TestDebugOutput:
    def test_transitions_printed_when_enabled(self, monkeypatch, capsys):
        monkeypatch.setenv("INIKIO_DEBUG", "1")
        b = ProgramBuilder(Finished)

        run_program(b, ask_once).next(1)

        err = capsys.readouterr().err
        assert "[inikio] ProgramBuilder: Failed(ProgramNotStartedError: empty trace) -> Pending(" in err
        assert "-> Done(1)" in err

    def test_silent_by_default(self, capsys):
        run_program(ProgramBuilder(Finished), ask_once).next(1)

        assert capsys.readouterr().err == ""
