"""
inikio - initial-style DSLs from sequential Python code.

Write a generator that yields instruction requests, and get back the first
node of a lazily unfolding instruction tree instead of running it. Each
continuable instruction carries a callback; calling it resumes the generator
up to its next request and returns the next node.

Example:
    >>> @initial_style_dsl(result_type=int)
    ... class Dice: ...
    >>> @dataclass(frozen=True)
    ... class Result(Dice):
    ...     result: int
    >>> @dataclass(frozen=True)
    ... class Throw(Dice):
    ...     next: Callable[[int], Dice]
    >>> dice = derive_entry(Dice)
    >>> def two_throws(b):
    ...     first = yield b.throw()
    ...     second = yield b.throw()
    ...     return first + second
    >>> dice(two_throws).next(3).next(4)
    Result(result=7)
"""

from loguru import logger

from inikio.builder import ProgramBuilder
from inikio.codegen import derive_builder, derive_entry, render_module
from inikio.combinators import forever, repeat, when, while_
from inikio.dsl import DslSchema, VariantSpec, initial_style_dsl, is_initial_style_dsl
from inikio.errors import (
    ContinuationAlreadyResumedError,
    DslDefinitionError,
    InikioError,
    MissingHandlerError,
    ProgramNotStartedError,
    StepLimitExceededError,
)
from inikio.interpret import RunResult, debug_interpret, interpret
from inikio.program import program, run_program
from inikio.result import Err, Ok, Result
from inikio.state import Continuation, Done, Failed, Pending, ProgramState
from inikio.step import Perform

# Library code stays quiet unless an application opts in with logger.enable("inikio").
logger.disable("inikio")

__all__ = [
    "Continuation",
    "ContinuationAlreadyResumedError",
    "Done",
    "DslDefinitionError",
    "DslSchema",
    "Err",
    "Failed",
    "InikioError",
    "MissingHandlerError",
    "Ok",
    "Pending",
    "Perform",
    "ProgramBuilder",
    "ProgramNotStartedError",
    "ProgramState",
    "Result",
    "RunResult",
    "StepLimitExceededError",
    "VariantSpec",
    "debug_interpret",
    "derive_builder",
    "derive_entry",
    "forever",
    "initial_style_dsl",
    "interpret",
    "is_initial_style_dsl",
    "program",
    "render_module",
    "repeat",
    "run_program",
    "when",
    "while_",
]
