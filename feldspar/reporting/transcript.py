"""History display as JSON-able dicts and Rich console output."""

from __future__ import annotations

import json
from typing import Any, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich import box

from ..conversation.history import Role, Turn

console = Console()

_ROLE_STYLES = {
    Role.USER: "cyan",
    Role.ASSISTANT: "magenta",
    Role.TOOL: "yellow",
}


def turn_to_dict(turn: Turn) -> dict[str, Any]:
    out: dict[str, Any] = {"role": turn.role.value, "content": turn.content}
    if turn.tool_call is not None:
        out["tool_call"] = {
            "tool_name": turn.tool_call.tool_name,
            "call_id": turn.tool_call.call_id,
            "input": dict(turn.tool_call.input),
        }
    if turn.tool_result is not None:
        out["tool_result"] = {"call_id": turn.tool_result.call_id, **turn.tool_result.payload()}
    if turn.round is not None:
        out["round"] = turn.round
    return out


def history_to_dicts(turns: Sequence[Turn]) -> list[dict[str, Any]]:
    return [turn_to_dict(t) for t in turns]


def _turn_text(turn: Turn) -> str:
    if turn.role is not Role.TOOL:
        return turn.content
    call = turn.tool_call
    result = turn.tool_result
    assert call is not None and result is not None
    args = json.dumps(dict(call.input), ensure_ascii=False, default=str)
    body = json.dumps(result.payload(), ensure_ascii=False, default=str)
    status = "ok" if result.ok else "error"
    return f"{call.tool_name}({args}) [{status}] → {body}"


def print_history(turns: Sequence[Turn], out: Console | None = None) -> None:
    """Print the conversation as a Rich table."""
    out = out or console
    if not turns:
        out.print("[dim]History is empty.[/dim]")
        return

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Role")
    table.add_column("Content", overflow="fold")
    for idx, turn in enumerate(turns, start=1):
        style = _ROLE_STYLES.get(turn.role, "white")
        table.add_row(str(idx), Text(turn.role.value, style=style), Text(_turn_text(turn)))
    out.print(table)
