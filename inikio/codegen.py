"""
Builder generation for initial-style DSLs.

From a ``DslSchema`` this module produces

- a ``ProgramBuilder`` subclass named ``<Base>Builder`` exposing one method per
  continuable variant. Each method takes the variant's plain fields and
  returns the matching ``perform``/``perform_unit`` request;
- an entry function named after the base class (``Dice`` -> ``dice``) that
  runs a block against a fresh builder.

Two stages share the same rendering:

- offline: ``render_module`` emits an importable Python module (used by
  ``python -m inikio generate``);
- runtime: ``derive_builder``/``derive_entry`` compile the rendered class
  directly against the variant classes.

Generated code only calls ``perform``/``perform_unit`` with zero, one or two
extra arguments.
"""

from __future__ import annotations

import collections.abc
import types
from collections.abc import Callable, Generator
from typing import Any, TypeVar, Union, get_args, get_origin

from beartype import beartype
from loguru import logger as loguru_logger

from inikio.builder import ProgramBuilder
from inikio.dsl import DslSchema, VariantSpec
from inikio.program import run_program
from inikio.step import Perform

logger = loguru_logger.bind(component="codegen")

Ref = Callable[[type], str]

INDENT = "    "


def qualified_ref(cls: type) -> str:
    if "<locals>" in cls.__qualname__:
        raise ValueError(
            f"Cannot reference {cls.__qualname__} from generated code: "
            "variants must be importable module-level classes"
        )
    return cls.__qualname__


def type_repr(hint: Any) -> str:
    """Render a type hint the way it would be written in source."""
    if isinstance(hint, str):
        return hint
    if hint is None or hint is type(None):
        return "None"
    if hint is Any:
        return "Any"
    if hint is Ellipsis:
        return "..."
    if isinstance(hint, TypeVar):
        return hint.__name__

    origin = get_origin(hint)
    args = get_args(hint)
    if origin is None:
        if isinstance(hint, type):
            return hint.__qualname__
        return repr(hint).replace("typing.", "")
    if origin is Union or origin is types.UnionType:
        return " | ".join(type_repr(arg) for arg in args)
    if origin is collections.abc.Callable:
        params, result = args[0], args[-1]
        if params is Ellipsis:
            return f"Callable[..., {type_repr(result)}]"
        rendered = ", ".join(type_repr(param) for param in params)
        return f"Callable[[{rendered}], {type_repr(result)}]"
    name = getattr(origin, "__qualname__", None) or repr(origin).replace("typing.", "")
    if not args:
        return name
    return f"{name}[{', '.join(type_repr(arg) for arg in args)}]"


def _result_repr(schema: DslSchema) -> str:
    if schema.result_type is None:
        return "Any"
    return type_repr(schema.result_type)


def _render_method(spec: VariantSpec, ref: Ref, annotate: bool) -> list[str]:
    primitive = "perform" if spec.takes_value else "perform_unit"
    call_args = ", ".join([ref(spec.cls), *spec.params])

    if annotate:
        params = ", ".join(
            ["self", *(f"{name}: {type_repr(spec.param_types[name])}" for name in spec.params)]
        )
        delivered = type_repr(spec.delivers) if spec.takes_value else "None"
        signature = f"def {spec.method_name}({params}) -> Perform[Any, {delivered}]:"
    else:
        signature = f"def {spec.method_name}({', '.join(['self', *spec.params])}):"

    return [
        f"{INDENT}{signature}",
        f'{INDENT * 2}"""Perform a ``{spec.name}`` instruction."""',
        f"{INDENT * 2}return self.{primitive}({call_args})",
    ]


def render_builder_class(
    schema: DslSchema, ref: Ref = qualified_ref, *, annotate: bool = False
) -> str:
    on_error = ref(schema.error.cls) if schema.error is not None else "None"
    init_signature = "def __init__(self) -> None:" if annotate else "def __init__(self):"
    lines = [
        f"class {schema.builder_name}(ProgramBuilder):",
        f'{INDENT}"""Builder for ``{schema.base.__name__}`` programs."""',
        "",
        f"{INDENT}{init_signature}",
        f"{INDENT * 2}super().__init__({ref(schema.terminal.cls)}, on_error={on_error})",
    ]
    for spec in schema.instructions:
        lines.append("")
        lines.extend(_render_method(spec, ref, annotate))
    return "\n".join(lines) + "\n"


def render_entry_function(schema: DslSchema, ref: Ref = qualified_ref) -> str:
    result = _result_repr(schema)
    return "\n".join(
        [
            f"def {schema.entry_name}(",
            f"{INDENT}block: Callable[[{schema.builder_name}], Generator[Any, Any, {result}]],",
            f") -> {ref(schema.base)}:",
            f'{INDENT}"""Build a ``{schema.base.__name__}`` program from ``block``."""',
            f"{INDENT}return run_program({schema.builder_name}(), block)",
        ]
    ) + "\n"


def _import_lines(schema: DslSchema) -> list[str]:
    by_module: dict[str, set[str]] = {}
    classes = [schema.base, *(spec.cls for spec in schema.variants.values())]
    for cls in classes:
        top_level = qualified_ref(cls).split(".", 1)[0]
        by_module.setdefault(cls.__module__, set()).add(top_level)
    return [
        f"from {module} import {', '.join(sorted(names))}"
        for module, names in sorted(by_module.items())
    ]


def render_module(schema: DslSchema) -> str:
    """Render an importable module holding the builder and entry function."""
    base = schema.base
    parts = [
        f'"""Builder for the {base.__name__} DSL.\n\n'
        f"Generated by inikio from {base.__module__}.{base.__qualname__}; do not edit.\n"
        '"""',
        "",
        "from __future__ import annotations",
        "",
        "from collections.abc import Callable, Generator",
        "from typing import Any",
        "",
        "from inikio import Perform, ProgramBuilder, run_program",
        *_import_lines(schema),
        "",
        "",
        render_builder_class(schema, annotate=True),
        "",
        render_entry_function(schema),
        "",
        f'__all__ = ["{schema.builder_name}", "{schema.entry_name}"]',
        "",
    ]
    logger.debug(
        "Rendered {} with {} instruction methods", schema.builder_name, len(schema.instructions)
    )
    return "\n".join(parts)


def _runtime_annotations(spec: VariantSpec) -> dict[str, Any]:
    annotations = {
        name: hint for name, hint in spec.param_types.items() if not isinstance(hint, str)
    }
    annotations["return"] = Perform
    return annotations


def derive_builder(
    base: type, *, check_types: bool = False, schema: DslSchema | None = None
) -> type[ProgramBuilder[Any, Any]]:
    """Create the builder class for ``base`` at runtime.

    Args:
        base: The ``@initial_style_dsl`` base class.
        check_types: Wrap each instruction method with ``beartype`` so that
            arguments not matching the variant's field annotations are
            rejected at the call site.
        schema: A precomputed schema for ``base``.
    """
    if schema is None:
        schema = DslSchema.from_hierarchy(base)

    aliases = {
        spec.cls: f"_{spec.name}_{index}" for index, spec in enumerate(schema.variants.values())
    }
    namespace: dict[str, Any] = {
        "__name__": base.__module__,
        "ProgramBuilder": ProgramBuilder,
        **{alias: cls for cls, alias in aliases.items()},
    }
    source = render_builder_class(schema, aliases.__getitem__)
    exec(compile(source, f"<inikio {schema.builder_name}>", "exec"), namespace)

    builder_cls: type[ProgramBuilder[Any, Any]] = namespace[schema.builder_name]
    builder_cls.__qualname__ = schema.builder_name
    for spec in schema.instructions:
        method = vars(builder_cls)[spec.method_name]
        method.__annotations__ = _runtime_annotations(spec)
        if check_types:
            setattr(builder_cls, spec.method_name, beartype(method))

    logger.debug(
        "Derived {} for {} (check_types={})", schema.builder_name, base.__qualname__, check_types
    )
    return builder_cls


def derive_entry(
    base: type, builder_cls: type[ProgramBuilder[Any, Any]] | None = None
) -> Callable[[Callable[[Any], Generator[Any, Any, Any]]], Any]:
    """Create the entry function running blocks against ``base``'s builder."""
    schema = DslSchema.from_hierarchy(base)
    resolved = builder_cls if builder_cls is not None else derive_builder(base, schema=schema)

    def entry(block: Callable[[Any], Generator[Any, Any, Any]]) -> Any:
        return run_program(resolved(), block)

    entry.__name__ = schema.entry_name
    entry.__qualname__ = schema.entry_name
    entry.__module__ = base.__module__
    entry.__doc__ = f"Build a ``{base.__name__}`` program from ``block``."
    return entry


__all__ = [
    "derive_builder",
    "derive_entry",
    "qualified_ref",
    "render_builder_class",
    "render_entry_function",
    "render_module",
    "type_repr",
]
