"""Conversation history shared by the chat front-end and the orchestration loop."""

from .history import History, Role, ToolCall, ToolResult, Turn

__all__ = ["History", "Role", "ToolCall", "ToolResult", "Turn"]
