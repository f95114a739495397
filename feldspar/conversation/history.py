"""Conversation history: an append-only log of immutable turns."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCall:
    """The tool call a tool turn answers."""

    tool_name: str
    call_id: str
    input: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", MappingProxyType(dict(self.input)))


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool call: either an output value or a structured error."""

    call_id: str
    output: Any = None
    output_field: str | None = None
    error: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.error is not None:
            object.__setattr__(self, "error", MappingProxyType(dict(self.error)))

    @property
    def ok(self) -> bool:
        return self.error is None

    def payload(self) -> dict[str, Any]:
        """JSON-ready body shown to the model."""
        if self.error is not None:
            return {"error": dict(self.error)}
        if self.output_field:
            return {self.output_field: self.output}
        return {"output": self.output}


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str = ""
    tool_call: ToolCall | None = None
    tool_result: ToolResult | None = None
    round: int | None = None

    def __post_init__(self) -> None:
        role = Role(self.role)
        object.__setattr__(self, "role", role)
        if role is Role.TOOL:
            if self.tool_call is None or self.tool_result is None:
                raise ValueError("tool turns need both tool_call and tool_result")
            if self.tool_call.call_id != self.tool_result.call_id:
                raise ValueError(
                    f"tool_result call_id '{self.tool_result.call_id}' does not match "
                    f"tool_call call_id '{self.tool_call.call_id}'"
                )
        elif self.tool_call is not None or self.tool_result is not None:
            raise ValueError(f"{role.value} turns cannot carry tool calls or results")

    @classmethod
    def user(cls, content: str) -> Turn:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Turn:
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def tool(cls, call: ToolCall, result: ToolResult, *, round: int | None = None, content: str = "") -> Turn:
        return cls(role=Role.TOOL, content=content, tool_call=call, tool_result=result, round=round)


class History:
    """Ordered log of turns owned by one session.

    ``append`` is the only mutator besides ``clear``; ``snapshot`` returns a
    tuple that never reflects later appends.
    """

    def __init__(self, turns: list[Turn] | tuple[Turn, ...] | None = None):
        self._turns: list[Turn] = []
        self._lock = threading.Lock()
        for turn in turns or ():
            self.append(turn)

    def append(self, turn: Turn) -> None:
        if not isinstance(turn, Turn):
            raise TypeError(f"History only accepts Turn objects, got {type(turn).__name__}")
        with self._lock:
            self._turns.append(turn)

    def snapshot(self) -> tuple[Turn, ...]:
        with self._lock:
            return tuple(self._turns)

    def clear(self) -> None:
        with self._lock:
            self._turns.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.snapshot())
