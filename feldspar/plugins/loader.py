"""Load callables named by ``module.submodule:attribute`` specs.

Used for tool chain stages declared in YAML scripts and for the adapter
plugin hook. The attribute part may be dotted (``pkg.mod:Class.method``).
"""

from __future__ import annotations

import importlib
from functools import lru_cache
from typing import Any, Callable, Iterable


def _parse_spec(spec: str) -> tuple[str, str]:
    text = str(spec).strip()
    if not text or ":" not in text:
        raise ValueError(f"Invalid callable spec '{spec}'. Expected module:function")
    module_name, attr_path = text.split(":", 1)
    module_name = module_name.strip()
    attr_path = attr_path.strip()
    if not module_name or not attr_path:
        raise ValueError(f"Invalid callable spec '{spec}'. Expected module:function")
    return module_name, attr_path


@lru_cache(maxsize=128)
def load_callable_from_spec(spec: str) -> Callable[..., Any]:
    """Import and cache the callable a spec points at."""
    module_name, attr_path = _parse_spec(spec)
    try:
        target: Any = importlib.import_module(module_name)
    except Exception as err:
        raise ValueError(f"Failed to import module '{module_name}' for spec '{spec}': {err}") from err
    for part in attr_path.split("."):
        target = getattr(target, part, None)
        if target is None:
            raise ValueError(f"'{attr_path}' not found in module '{module_name}'")
    if not callable(target):
        raise ValueError(f"'{attr_path}' in module '{module_name}' is not callable")
    return target


def load_callables_from_specs(specs: str | Iterable[str]) -> list[Callable[..., Any]]:
    """Resolve a comma-list or sequence of specs, preserving order."""
    if isinstance(specs, str):
        raw_specs = [s.strip() for s in specs.split(",") if s.strip()]
    else:
        raw_specs = [str(s).strip() for s in specs if str(s).strip()]
    return [load_callable_from_spec(spec) for spec in raw_specs]
