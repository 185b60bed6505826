from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from loguru import logger

from inikio.cli.profiling import StageTimer, profiling_requested
from inikio.cli.symbols import import_hierarchy
from inikio.codegen import render_module, type_repr
from inikio.dsl import DslSchema, VariantSpec


def _variant_payload(spec: VariantSpec) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "variant": spec.name,
        "params": {name: type_repr(spec.param_types[name]) for name in spec.params},
    }
    if not spec.is_terminal:
        payload["method"] = spec.method_name
        payload["delivers"] = type_repr(spec.delivers) if spec.takes_value else None
    return payload


def describe_schema(schema: DslSchema) -> dict[str, Any]:
    return {
        "base": schema.base.__qualname__,
        "module": schema.base.__module__,
        "builder": schema.builder_name,
        "entry": schema.entry_name,
        "result_type": type_repr(schema.result_type) if schema.result_type is not None else None,
        "terminal": _variant_payload(schema.terminal),
        "error": _variant_payload(schema.error) if schema.error is not None else None,
        "instructions": [_variant_payload(spec) for spec in schema.instructions],
    }


def _format_fields(spec: VariantSpec) -> str:
    return ", ".join(f"{name}: {type_repr(spec.param_types[name])}" for name in spec.params)


def format_schema(schema: DslSchema) -> str:
    result_type = type_repr(schema.result_type) if schema.result_type is not None else "generic"
    error = schema.error
    lines = [
        f"{schema.base.__qualname__} ({schema.base.__module__})",
        f"  builder:  {schema.builder_name}",
        f"  entry:    {schema.entry_name}(block)",
        f"  result:   {result_type}",
        f"  terminal: {schema.terminal.name}({_format_fields(schema.terminal)})",
        f"  error:    {f'{error.name}({_format_fields(error)})' if error is not None else '-'}",
        "  instructions:",
    ]
    for spec in schema.instructions:
        delivered = type_repr(spec.delivers) if spec.takes_value else "None"
        lines.append(f"    {spec.method_name}({_format_fields(spec)}) -> {delivered}  [{spec.name}]")
    return "\n".join(lines)


def _load_schema(args: argparse.Namespace) -> DslSchema:
    timer: StageTimer = args.timer
    with timer.stage("import", args.hierarchy):
        base = import_hierarchy(args.hierarchy)
    with timer.stage("inspect") as timing:
        schema = DslSchema.from_hierarchy(base)
        count = len(schema.instructions)
        timing.detail = (
            f"{len(schema.variants)} variants, {count} instruction{'' if count == 1 else 's'}"
        )
    return schema


def handle_describe(args: argparse.Namespace) -> int:
    schema = _load_schema(args)
    if args.format == "json":
        print(json.dumps(describe_schema(schema), indent=2))
    else:
        print(format_schema(schema))
    return 0


def handle_generate(args: argparse.Namespace) -> int:
    schema = _load_schema(args)
    with args.timer.stage("render") as timing:
        source = render_module(schema)
        timing.detail = f"{schema.builder_name}, {len(source.splitlines())} lines"

    if args.output is None:
        sys.stdout.write(source)
        return 0

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(source, encoding="utf-8")
    logger.info("Wrote {} to {}", schema.builder_name, output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inikio", description="Utilities for working with initial-style DSLs"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log generation details to stderr"
    )
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Print stage timings to stderr (also enabled by INIKIO_PROFILE=1)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    describe_parser = subparsers.add_parser(
        "describe",
        help="Show the variants of an instruction hierarchy",
        description=(
            "Show the terminal variant and the builder methods derived from an "
            "@initial_style_dsl hierarchy.\n\n"
            "Example:\n"
            "  inikio describe myapp.dice:Dice --format json"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    describe_parser.add_argument("hierarchy", help="Base class as module:Class")
    describe_parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text)",
    )
    describe_parser.set_defaults(func=handle_describe)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate the builder module for an instruction hierarchy",
        description=(
            "Render a module with the <Base>Builder class and the entry function "
            "for an @initial_style_dsl hierarchy.\n\n"
            "Examples:\n"
            "  inikio generate myapp.dice:Dice\n"
            "  inikio generate myapp.dice:Dice -o myapp/dice_builder.py"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    generate_parser.add_argument("hierarchy", help="Base class as module:Class")
    generate_parser.add_argument(
        "-o", "--output", help="File to write (default: print to stdout)"
    )
    generate_parser.set_defaults(func=handle_generate)

    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    args.timer = StageTimer(enabled=args.profile or profiling_requested())
    logger.remove()
    handler_id = logger.add(
        sys.stderr, level="DEBUG" if args.verbose else "INFO", format="[INIKIO] {message}"
    )
    logger.enable("inikio")
    try:
        return args.func(args)
    except Exception as exc:
        if getattr(args, "format", "text") == "json":
            payload = {
                "status": "error",
                "error": exc.__class__.__name__,
                "message": str(exc),
            }
            print(json.dumps(payload))
        else:
            print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        if args.timer.enabled:
            print(args.timer.report(), file=sys.stderr)
        logger.remove(handler_id)
        logger.disable("inikio")


if __name__ == "__main__":
    sys.exit(main())
