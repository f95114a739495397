"""Tool invocation pipeline: validate input, run the chain, validate output."""

from __future__ import annotations

from typing import Any, Mapping

from ..errors import SchemaError, SchemaErrorKind, StageError
from .schema import ToolDescriptor


def validate_input(descriptor: ToolDescriptor, arguments: Mapping[str, Any]) -> tuple[Any, ...]:
    """Check arguments against the input schema and return them in schema order."""
    if not isinstance(arguments, Mapping):
        raise SchemaError(SchemaErrorKind.TYPE_MISMATCH, "(input)", f"expected an object, got {type(arguments).__name__}")

    declared = descriptor.input_fields
    for field_name in declared:
        if field_name not in arguments:
            raise SchemaError(SchemaErrorKind.MISSING, field_name)

    extra = sorted(str(k) for k in arguments if k not in declared)
    if extra:
        raise SchemaError(SchemaErrorKind.EXTRA, extra[0])

    values: list[Any] = []
    for field_name, tag in descriptor.input_schema:
        value = arguments[field_name]
        if not tag.matches(value):
            raise SchemaError(
                SchemaErrorKind.TYPE_MISMATCH,
                field_name,
                f"expected {tag.value}, got {type(value).__name__}",
            )
        values.append(value)
    return tuple(values)


def validate_output(descriptor: ToolDescriptor, value: Any) -> Any:
    field_name, tag = descriptor.output_schema
    if not tag.matches(value):
        raise SchemaError(
            SchemaErrorKind.TYPE_MISMATCH,
            field_name,
            f"expected {tag.value}, got {type(value).__name__}",
        )
    return value


def run_chain(descriptor: ToolDescriptor, values: tuple[Any, ...]) -> Any:
    """Thread one value through every stage; a raising stage aborts the chain."""
    current: Any = None
    for index, stage in enumerate(descriptor.chain):
        try:
            current = stage(*values) if index == 0 else stage(current)
        except Exception as err:
            raise StageError(index, err) from err
    return current


def invoke(descriptor: ToolDescriptor, arguments: Mapping[str, Any]) -> Any:
    """Run one tool call and return its validated output value.

    Raises SchemaError for input/output contract violations and StageError when
    a chain stage fails. History and registry are never touched here.
    """
    values = validate_input(descriptor, arguments)
    result = run_chain(descriptor, values)
    return validate_output(descriptor, result)
