"""Tool descriptors, primitive type tags and definition-time checks."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from ..errors import ConfigError


class TypeTag(str, Enum):
    """Primitive value types a tool field may declare."""

    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"

    @classmethod
    def parse(cls, value: str | TypeTag) -> TypeTag:
        if isinstance(value, TypeTag):
            return value
        text = str(value).strip().lower()
        aliases = {"str": "string", "boolean": "bool", "float": "number", "int": "number", "integer": "number"}
        text = aliases.get(text, text)
        try:
            return cls(text)
        except ValueError:
            raise ConfigError(f"Unknown type tag '{value}'. Expected string, number or bool") from None

    def matches(self, value: Any) -> bool:
        if self is TypeTag.STRING:
            return isinstance(value, str)
        if self is TypeTag.BOOL:
            return isinstance(value, bool)
        # bool is an int subclass but never a number here.
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    @property
    def json_type(self) -> str:
        return "boolean" if self is TypeTag.BOOL else self.value

    def __str__(self) -> str:
        return f"<{self.value}>"


Stage = Callable[..., Any]


@dataclass(frozen=True)
class ToolSchema:
    """Schema view of a tool, advertised to the provider."""

    name: str
    description: str
    input_schema: tuple[tuple[str, TypeTag], ...]
    output_schema: tuple[str, TypeTag]

    def to_function_schema(self) -> dict[str, Any]:
        """OpenAI-format function schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {
                        field_name: {"type": tag.json_type} for field_name, tag in self.input_schema
                    },
                    "required": [field_name for field_name, _ in self.input_schema],
                    "additionalProperties": False,
                },
            },
        }


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: tuple[tuple[str, TypeTag], ...]
    output_schema: tuple[str, TypeTag]
    chain: tuple[Stage, ...]

    @property
    def input_fields(self) -> tuple[str, ...]:
        return tuple(field_name for field_name, _ in self.input_schema)

    def schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
            output_schema=self.output_schema,
        )

    def describe(self) -> str:
        """Human-readable summary of the tool."""
        lines = [f"Name: {self.name}", f"Description: {self.description}", "Input:"]
        for field_name, tag in self.input_schema:
            lines.append(f'  {{"{field_name}": {tag}}}')
        out_field, out_tag = self.output_schema
        lines.append(f'Output: {{"{out_field}": {out_tag}}}')
        stages = " -> ".join(_stage_name(stage) for stage in self.chain)
        lines.append(f"Chain: {stages}")
        return "\n".join(lines)


def _stage_name(stage: Stage) -> str:
    return getattr(stage, "__qualname__", None) or getattr(stage, "__name__", None) or repr(stage)


def _normalize_fields(schema: Mapping[str, Any] | Iterable[tuple[str, Any]], what: str) -> tuple[tuple[str, TypeTag], ...]:
    items = schema.items() if isinstance(schema, Mapping) else schema
    fields: list[tuple[str, TypeTag]] = []
    seen: set[str] = set()
    for entry in items:
        try:
            field_name, tag = entry
        except (TypeError, ValueError):
            raise ConfigError(f"{what} entries must be (field, type) pairs, got {entry!r}") from None
        field_name = str(field_name).strip()
        if not field_name:
            raise ConfigError(f"{what} contains an empty field name")
        if field_name in seen:
            raise ConfigError(f"{what} declares field '{field_name}' twice")
        seen.add(field_name)
        fields.append((field_name, TypeTag.parse(tag)))
    return tuple(fields)


def _accepts_positional(stage: Stage, count: int) -> bool:
    try:
        signature = inspect.signature(stage)
    except (TypeError, ValueError):
        # Some builtins expose no signature; they are checked when called.
        return True
    try:
        signature.bind(*([None] * count))
    except TypeError:
        return False
    return True


def make_tool(
    name: str,
    input_schema: Mapping[str, Any] | Iterable[tuple[str, Any]],
    output_schema: Mapping[str, Any] | tuple[str, Any],
    description: str,
    chain: Iterable[Stage] | Stage,
) -> ToolDescriptor:
    """Build a tool descriptor, rejecting malformed definitions with ConfigError.

    ``input_schema`` is an ordered mapping (or pairs) of field name to type tag.
    ``output_schema`` is a single field name and type tag. ``chain`` is the
    ordered list of stages: the first receives the input fields positionally in
    schema order, each later stage receives the previous stage's return value.
    """
    name = (name or "").strip()
    if not name:
        raise ConfigError("Tool name must not be empty")

    inputs = _normalize_fields(input_schema, f"Tool '{name}' input schema")
    if not inputs:
        raise ConfigError(f"Tool '{name}' input schema must not be empty")

    if isinstance(output_schema, Mapping):
        outputs = _normalize_fields(output_schema, f"Tool '{name}' output schema")
    else:
        outputs = _normalize_fields([output_schema], f"Tool '{name}' output schema")
    if len(outputs) != 1:
        raise ConfigError(f"Tool '{name}' output schema must declare exactly one field, got {len(outputs)}")

    stages = (chain,) if callable(chain) else tuple(chain)
    if not stages:
        raise ConfigError(f"Tool '{name}' chain must have at least one stage")
    for index, stage in enumerate(stages):
        if not callable(stage):
            raise ConfigError(f"Tool '{name}' stage {index} is not callable: {stage!r}")
        arity = len(inputs) if index == 0 else 1
        if not _accepts_positional(stage, arity):
            raise ConfigError(
                f"Tool '{name}' stage {index} ({_stage_name(stage)}) cannot take {arity} argument(s)"
            )

    return ToolDescriptor(
        name=name,
        description=(description or "").strip(),
        input_schema=inputs,
        output_schema=outputs[0],
        chain=stages,
    )
