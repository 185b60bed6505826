"""Instruction types shared by the test modules."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from inikio import initial_style_dsl

# Plain instruction classes for driving ProgramBuilder directly.


@dataclass(frozen=True)
class Finished:
    result: Any


@dataclass(frozen=True)
class Crashed:
    error: BaseException


@dataclass(frozen=True)
class Ask:
    next: Callable[[Any], Any]


@dataclass(frozen=True)
class Lookup:
    key: str
    next: Callable[[Any], Any]


@dataclass(frozen=True)
class Pair:
    left: Any
    right: Any
    next: Callable[[Any], Any]


@dataclass(frozen=True)
class Tell:
    message: str
    next: Callable[[], Any]


@dataclass(frozen=True)
class Note:
    level: int
    message: str
    next: Callable[[], Any]


# A marked hierarchy for schema, codegen, interpreter and CLI tests.


@initial_style_dsl(result_type=str, terminal="Reply", error="Crash")
class Chat:
    pass


@dataclass(frozen=True)
class Reply(Chat):
    text: str


@dataclass(frozen=True)
class Crash(Chat):
    error: Exception


@dataclass(frozen=True)
class Prompt(Chat):
    question: str
    next: Callable[[str], Chat]


@dataclass(frozen=True)
class Log(Chat):
    level: int
    message: str
    next: Callable[[], Chat]


@dataclass(frozen=True)
class Pause(Chat):
    next: Callable[[], Chat]


def conversation(b):
    yield b.log(1, "starting")
    name = yield b.prompt("name?")
    yield b.pause()
    return f"Hello {name}"
