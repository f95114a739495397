"""Display helpers for conversation history."""

from .transcript import history_to_dicts, print_history, turn_to_dict

__all__ = ["history_to_dicts", "print_history", "turn_to_dict"]
