"""Provider adapter interface and normalized response types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence, Union

from ..conversation.history import Turn
from ..tools.schema import ToolSchema


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool call requested by the model."""

    call_id: str
    name: str
    arguments: dict[str, Any]
    argument_error: str | None = None


@dataclass(frozen=True)
class FinalText:
    """The model answered; the loop ends."""

    text: str
    reasoning_content: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolCalls:
    """The model asked for one or more tool calls before answering."""

    requests: tuple[ToolCallRequest, ...]
    content: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


Response = Union[FinalText, ToolCalls]


@dataclass(frozen=True)
class ModelSettings:
    """Frozen sampling settings for a provider."""

    temperature: float = 0.0
    max_tokens: int = 2048
    seed: int | None = None
    timeout_s: float | None = 60.0


class ProviderAdapter(Protocol):
    """Protocol for provider adapters: one network round trip per call."""

    def complete(self, history: Sequence[Turn], tools: Sequence[ToolSchema]) -> Response:
        """Translate history + tools to the wire, exchange once, and normalize the reply.

        Raises ProviderError on any failed or unparseable exchange.
        """
        ...
