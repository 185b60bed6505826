"""
Declarative description of initial-style instruction hierarchies.

An instruction hierarchy is a base class plus a closed family of dataclass
subclasses, each of one of two shapes:

- terminal: exactly one field, not a callable (the finished value);
- continuable: the last field is a callback taking zero or one argument and
  returning the next instruction.

Example:
    @initial_style_dsl(result_type=int)
    class Dice:
        pass

    @dataclass(frozen=True)
    class Result(Dice):
        result: int

    @dataclass(frozen=True)
    class Throw(Dice):
        next: Callable[[int], Dice]

    schema = DslSchema.from_hierarchy(Dice)
    schema.terminal.cls        # Result
    schema.instructions[0]     # VariantSpec(Throw, method_name="throw", ...)
"""

from __future__ import annotations

import collections.abc
import dataclasses
import keyword
import re
import typing
from dataclasses import dataclass, field
from typing import Any, Literal, TypeVar, get_args, get_origin, get_type_hints

from frozendict import frozendict

from inikio.builder import ProgramBuilder
from inikio.errors import DslDefinitionError

C = TypeVar("C", bound=type)

DSL_MARKER = "__inikio_dsl__"

VariantKind = Literal["terminal", "continuable"]

_CALLABLE_PREFIXES = ("Callable", "typing.Callable", "collections.abc.Callable")


@dataclass(frozen=True)
class DslOptions:
    result_type: Any = None
    terminal: type | str | None = None
    error: type | str | None = None


@typing.overload
def initial_style_dsl(cls: C) -> C: ...


@typing.overload
def initial_style_dsl(
    cls: None = None,
    *,
    result_type: Any = None,
    terminal: type | str | None = None,
    error: type | str | None = None,
) -> typing.Callable[[C], C]: ...


def initial_style_dsl(
    cls: C | None = None,
    *,
    result_type: Any = None,
    terminal: type | str | None = None,
    error: type | str | None = None,
) -> C | typing.Callable[[C], C]:
    """Mark ``cls`` as the base of an initial-style instruction hierarchy.

    Args:
        result_type: Fixes the result type of programs in this DSL instead of
            leaving it generic.
        terminal: The terminal-success variant (class or class name). Defaults
            to the first terminal-shaped variant in definition order.
        error: The terminal-failure variant (class or class name). When given,
            builders map uncaught exceptions to it instead of re-raising.
    """
    options = DslOptions(result_type=result_type, terminal=terminal, error=error)

    def mark(target: C) -> C:
        setattr(target, DSL_MARKER, options)
        return target

    if cls is None:
        return mark
    return mark(cls)


def is_initial_style_dsl(cls: Any) -> bool:
    return isinstance(cls, type) and DSL_MARKER in vars(cls)


def snake_case(name: str) -> str:
    """``FlipCoin`` -> ``flip_coin``; keywords get a trailing underscore."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()
    if keyword.iskeyword(name):
        return f"{name}_"
    return name


@dataclass(frozen=True)
class VariantSpec:
    """Shape of one instruction variant.

    ``params`` are the plain fields (for a terminal variant, its single value
    field). ``delivers`` is the type handed to the continuation, ``None`` when
    the continuation takes no argument.
    """

    cls: type
    kind: VariantKind
    params: tuple[str, ...]
    param_types: frozendict[str, Any] = field(default_factory=frozendict)
    continuation: str | None = None
    delivers: Any = None
    takes_value: bool = False

    @property
    def name(self) -> str:
        return self.cls.__name__

    @property
    def method_name(self) -> str:
        return snake_case(self.cls.__name__)

    @property
    def is_terminal(self) -> bool:
        return self.kind == "terminal"

    def value_of(self, instruction: Any) -> Any:
        """Return the finished value held by a terminal instruction."""
        return getattr(instruction, self.params[0])

    def continuation_of(self, instruction: Any) -> typing.Callable[..., Any]:
        assert self.continuation is not None
        return getattr(instruction, self.continuation)


@dataclass(frozen=True)
class DslSchema:
    """The instruction hierarchy of one initial-style DSL."""

    base: type
    terminal: VariantSpec
    instructions: tuple[VariantSpec, ...]
    error: VariantSpec | None = None
    result_type: Any = None
    variants: frozendict[type, VariantSpec] = field(default_factory=frozendict)

    @classmethod
    def from_hierarchy(cls, base: type) -> DslSchema:
        if not is_initial_style_dsl(base):
            raise DslDefinitionError(base, "base class is not marked with @initial_style_dsl")
        options: DslOptions = vars(base)[DSL_MARKER]

        subclasses = base.__subclasses__()
        if not subclasses:
            raise DslDefinitionError(base, "no variants are defined")

        specs = [_inspect_variant(base, variant) for variant in subclasses]
        candidates = [spec for spec in specs if spec.is_terminal]

        if options.terminal is not None:
            terminal = _find_named(base, candidates, options.terminal, "terminal")
        elif candidates:
            terminal = candidates[0]
        else:
            raise DslDefinitionError(base, "no terminal variant found")

        error = None
        if options.error is not None:
            error = _find_named(base, candidates, options.error, "error")
            if error.cls is terminal.cls:
                raise DslDefinitionError(base, "terminal and error variants must differ")

        for spec in candidates:
            if spec.cls is not terminal.cls and (error is None or spec.cls is not error.cls):
                raise DslDefinitionError(
                    base,
                    f"variant {spec.name} has the terminal shape but is neither the "
                    f"terminal nor the error variant; name them with terminal=/error=",
                )

        instructions = tuple(spec for spec in specs if not spec.is_terminal)
        _check_method_names(base, instructions)

        return cls(
            base=base,
            terminal=terminal,
            instructions=instructions,
            error=error,
            result_type=options.result_type,
            variants=frozendict({spec.cls: spec for spec in specs}),
        )

    @classmethod
    def from_instruction(cls, instruction: Any) -> DslSchema:
        for klass in type(instruction).__mro__:
            if is_initial_style_dsl(klass):
                return cls.from_hierarchy(klass)
        raise TypeError(
            f"{type(instruction).__name__} does not belong to an @initial_style_dsl hierarchy"
        )

    @property
    def builder_name(self) -> str:
        return f"{self.base.__name__}Builder"

    @property
    def entry_name(self) -> str:
        return snake_case(self.base.__name__)

    def spec_for(self, instruction: Any) -> VariantSpec:
        for klass in type(instruction).__mro__:
            spec = self.variants.get(klass)
            if spec is not None:
                return spec
        raise TypeError(
            f"{type(instruction).__name__} is not an instruction of {self.base.__name__}"
        )

    def is_terminal(self, instruction: Any) -> bool:
        return isinstance(instruction, self.terminal.cls)

    def is_error(self, instruction: Any) -> bool:
        return self.error is not None and isinstance(instruction, self.error.cls)


def _resolve_hints(variant: type) -> dict[str, Any]:
    try:
        return get_type_hints(variant)
    except Exception:
        return {}


def _inspect_variant(base: type, variant: type) -> VariantSpec:
    if not dataclasses.is_dataclass(variant):
        raise DslDefinitionError(base, f"variant {variant.__name__} is not a dataclass")

    hints = _resolve_hints(variant)
    variant_fields = [f for f in dataclasses.fields(variant) if f.init]
    if not variant_fields:
        raise DslDefinitionError(base, f"variant {variant.__name__} has no fields")

    annotations = [hints.get(f.name, f.type) for f in variant_fields]
    last = _continuation_shape(base, variant, annotations[-1])

    if last is None:
        if len(variant_fields) != 1:
            raise DslDefinitionError(
                base,
                f"variant {variant.__name__} is neither terminal (one plain field) "
                f"nor continuable (last field a callable)",
            )
        only = variant_fields[0]
        return VariantSpec(
            cls=variant,
            kind="terminal",
            params=(only.name,),
            param_types=frozendict({only.name: annotations[0]}),
        )

    takes_value, delivers = last
    plain = variant_fields[:-1]
    return VariantSpec(
        cls=variant,
        kind="continuable",
        params=tuple(f.name for f in plain),
        param_types=frozendict({f.name: hint for f, hint in zip(plain, annotations)}),
        continuation=variant_fields[-1].name,
        delivers=delivers,
        takes_value=takes_value,
    )


def _continuation_shape(base: type, variant: type, annotation: Any) -> tuple[bool, Any] | None:
    """Return ``(takes_value, delivered_type)`` for callables, else ``None``."""
    if isinstance(annotation, str):
        return _string_continuation_shape(base, variant, annotation)

    if annotation in (collections.abc.Callable, typing.Callable):
        return True, Any
    if get_origin(annotation) is not collections.abc.Callable:
        return None

    args = get_args(annotation)
    if not args or args[0] is Ellipsis:
        return True, Any
    params = args[0]
    if len(params) == 0:
        return False, None
    if len(params) == 1:
        return True, params[0]
    raise DslDefinitionError(
        base, f"continuation of {variant.__name__} must take at most one argument"
    )


def _string_continuation_shape(
    base: type, variant: type, annotation: str
) -> tuple[bool, Any] | None:
    text = annotation.replace(" ", "")
    prefix = next((p for p in _CALLABLE_PREFIXES if text == p or text.startswith(f"{p}[")), None)
    if prefix is None:
        return None
    inner = text[len(prefix):]
    if not inner or not inner.startswith("[["):
        return True, Any
    closing = _matching_bracket(inner, 1)
    params = _split_top_level(inner[2:closing])
    if not params:
        return False, None
    if len(params) == 1:
        return True, params[0]
    raise DslDefinitionError(
        base, f"continuation of {variant.__name__} must take at most one argument"
    )


def _matching_bracket(text: str, start: int) -> int:
    depth = 0
    for index in range(start, len(text)):
        if text[index] == "[":
            depth += 1
        elif text[index] == "]":
            depth -= 1
            if depth == 0:
                return index
    return len(text)


def _split_top_level(text: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for char in text:
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        current += char
    if current:
        parts.append(current)
    return parts


def _find_named(
    base: type, candidates: list[VariantSpec], wanted: type | str, role: str
) -> VariantSpec:
    for spec in candidates:
        if spec.cls is wanted or spec.name == wanted:
            return spec
    label = wanted if isinstance(wanted, str) else wanted.__name__
    raise DslDefinitionError(
        base, f"{role} variant {label} is missing or does not have the terminal shape"
    )


def _check_method_names(base: type, instructions: tuple[VariantSpec, ...]) -> None:
    seen: dict[str, str] = {}
    for spec in instructions:
        method = spec.method_name
        if hasattr(ProgramBuilder, method) or method.startswith("_"):
            raise DslDefinitionError(
                base, f"variant {spec.name} would shadow ProgramBuilder.{method}"
            )
        if method in seen:
            raise DslDefinitionError(
                base, f"variants {seen[method]} and {spec.name} both map to {method}()"
            )
        seen[method] = spec.name


__all__ = [
    "DSL_MARKER",
    "DslOptions",
    "DslSchema",
    "VariantSpec",
    "initial_style_dsl",
    "is_initial_style_dsl",
    "snake_case",
]
