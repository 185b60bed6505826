"""Import helpers for CLI arguments naming Python objects."""

from __future__ import annotations

import importlib
from typing import Any

from inikio.dsl import is_initial_style_dsl


def import_symbol(path: str) -> Any:
    """Import ``module:attr.path`` or ``module.attr``."""
    if ":" in path:
        module_name, attr_path = path.split(":", 1)
        module = importlib.import_module(module_name)
        return _resolve_attr(module, attr_path)
    parts = path.split(".")
    if len(parts) < 2:
        raise ValueError(
            f"'{path}' is not a fully-qualified symbol. Use module:Class or module.Class format."
        )
    module = importlib.import_module(".".join(parts[:-1]))
    return getattr(module, parts[-1])


def _resolve_attr(obj: Any, attr_path: str) -> Any:
    current = obj
    for attr in attr_path.split("."):
        current = getattr(current, attr)
    return current


def import_hierarchy(path: str) -> type:
    """Import the @initial_style_dsl base class named by ``path``."""
    base = import_symbol(path)
    if not is_initial_style_dsl(base):
        raise TypeError(f"{path} is not marked with @initial_style_dsl")
    return base
