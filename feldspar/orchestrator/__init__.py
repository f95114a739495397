"""Orchestration loop and chat sessions."""

from .loop import DEFAULT_MAX_ROUNDS, LoopOutcome, OrchestrationLoop
from .session import Session, create_session

__all__ = ["DEFAULT_MAX_ROUNDS", "LoopOutcome", "OrchestrationLoop", "Session", "create_session"]
