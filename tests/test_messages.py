"""Tests for wire translation of turns."""

from __future__ import annotations

import json
import unittest

from feldspar.conversation.history import ToolCall, ToolResult, Turn
from feldspar.models.messages import build_messages


def _tool_turn(call_id: str, round_no: int, content: str = "", error=None) -> Turn:
    result = (
        ToolResult(call_id=call_id, error=error)
        if error
        else ToolResult(call_id=call_id, output=f"out-{call_id}", output_field="summary")
    )
    return Turn.tool(ToolCall("research", call_id, {"topic": call_id}), result, round=round_no, content=content)


class BuildMessagesTests(unittest.TestCase):
    def test_plain_conversation_with_system_prompt(self) -> None:
        messages = build_messages([Turn.user("hi"), Turn.assistant("hello")], system_prompt="Be kind.")
        self.assertEqual(
            messages,
            [
                {"role": "system", "content": "Be kind."},
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "hello"},
            ],
        )

    def test_tool_turns_of_one_round_share_one_assistant_message(self) -> None:
        history = [
            Turn.user("q"),
            _tool_turn("a", 1, content="Checking."),
            _tool_turn("b", 1),
            _tool_turn("c", 2, error={"type": "NotFoundError", "name": "research"}),
            Turn.assistant("done"),
        ]
        messages = build_messages(history)

        self.assertEqual([m["role"] for m in messages], ["user", "assistant", "tool", "tool", "assistant", "tool", "assistant"])
        first_call_msg = messages[1]
        self.assertEqual(first_call_msg["content"], "Checking.")
        self.assertEqual([tc["id"] for tc in first_call_msg["tool_calls"]], ["a", "b"])
        self.assertEqual(json.loads(first_call_msg["tool_calls"][0]["function"]["arguments"]), {"topic": "a"})
        self.assertEqual(messages[2]["tool_call_id"], "a")
        self.assertEqual(json.loads(messages[2]["content"]), {"summary": "out-a"})
        self.assertIsNone(messages[4]["content"])
        self.assertEqual(json.loads(messages[5]["content"]), {"error": {"type": "NotFoundError", "name": "research"}})


if __name__ == "__main__":
    unittest.main()
