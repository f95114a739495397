"""Tests for conversation turns and history."""

from __future__ import annotations

import unittest

from feldspar.conversation.history import History, Role, ToolCall, ToolResult, Turn


class TurnTests(unittest.TestCase):
    def test_tool_turn_requires_call_and_result(self) -> None:
        with self.assertRaises(ValueError):
            Turn(role=Role.TOOL, content="")

    def test_tool_turn_rejects_mismatched_call_ids(self) -> None:
        with self.assertRaises(ValueError):
            Turn.tool(ToolCall("research", "a", {}), ToolResult(call_id="b", output="x"))

    def test_user_turn_cannot_carry_tool_fields(self) -> None:
        with self.assertRaises(ValueError):
            Turn(role=Role.USER, content="hi", tool_result=ToolResult(call_id="a"))

    def test_role_accepts_plain_strings(self) -> None:
        turn = Turn(role="assistant", content="hello")
        self.assertIs(turn.role, Role.ASSISTANT)

    def test_tool_call_input_is_read_only_copy(self) -> None:
        args = {"topic": "kangaroos"}
        call = ToolCall("research", "c1", args)
        args["topic"] = "wombats"
        self.assertEqual(call.input["topic"], "kangaroos")
        with self.assertRaises(TypeError):
            call.input["topic"] = "koalas"  # type: ignore[index]

    def test_result_payload_uses_output_field_or_error(self) -> None:
        ok = ToolResult(call_id="c1", output="Marsupials.", output_field="summary")
        failed = ToolResult(call_id="c2", error={"type": "NotFoundError", "name": "x"})
        self.assertTrue(ok.ok)
        self.assertEqual(ok.payload(), {"summary": "Marsupials."})
        self.assertFalse(failed.ok)
        self.assertEqual(failed.payload(), {"error": {"type": "NotFoundError", "name": "x"}})


class HistoryTests(unittest.TestCase):
    def test_snapshot_is_a_value_not_a_live_view(self) -> None:
        history = History()
        history.append(Turn.user("hi"))
        snap = history.snapshot()
        history.append(Turn.assistant("hello"))

        self.assertEqual(len(snap), 1)
        self.assertEqual(len(history), 2)

    def test_clear_truncates_to_empty(self) -> None:
        history = History([Turn.user("a"), Turn.assistant("b")])
        history.clear()
        self.assertEqual(history.snapshot(), ())

    def test_append_rejects_non_turns(self) -> None:
        history = History()
        with self.assertRaises(TypeError):
            history.append({"role": "user", "content": "hi"})  # type: ignore[arg-type]

    def test_iteration_preserves_insertion_order(self) -> None:
        history = History([Turn.user("1"), Turn.assistant("2"), Turn.user("3")])
        self.assertEqual([t.content for t in history], ["1", "2", "3"])


if __name__ == "__main__":
    unittest.main()
