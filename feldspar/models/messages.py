"""Translate conversation turns and tool schemas into chat-completion wire shapes."""

from __future__ import annotations

import json
from typing import Any, Sequence

from ..conversation.history import Role, Turn
from ..tools.schema import ToolSchema


def _tool_call_entry(turn: Turn) -> dict[str, Any]:
    call = turn.tool_call
    assert call is not None
    return {
        "id": call.call_id,
        "type": "function",
        "function": {
            "name": call.tool_name,
            "arguments": json.dumps(dict(call.input)),
        },
    }


def _tool_result_message(turn: Turn) -> dict[str, Any]:
    result = turn.tool_result
    assert result is not None
    return {
        "role": "tool",
        "tool_call_id": result.call_id,
        "content": json.dumps(result.payload(), default=str),
    }


def build_messages(history: Sequence[Turn], system_prompt: str | None = None) -> list[dict[str, Any]]:
    """Build the chat message list for a provider call.

    Consecutive tool turns from the same round become one assistant message
    carrying every tool call, followed by one tool message per result.
    """
    messages: list[dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})

    index = 0
    turns = list(history)
    while index < len(turns):
        turn = turns[index]
        if turn.role is not Role.TOOL:
            messages.append({"role": turn.role.value, "content": turn.content})
            index += 1
            continue

        group = [turn]
        index += 1
        while (
            index < len(turns)
            and turns[index].role is Role.TOOL
            and turns[index].round == turn.round
        ):
            group.append(turns[index])
            index += 1

        messages.append(
            {
                "role": "assistant",
                # Text the model sent alongside its tool calls, if any.
                "content": group[0].content or None,
                "tool_calls": [_tool_call_entry(t) for t in group],
            }
        )
        messages.extend(_tool_result_message(t) for t in group)
    return messages


def build_tool_schemas(tools: Sequence[ToolSchema]) -> list[dict[str, Any]]:
    return [tool.to_function_schema() for tool in tools]
