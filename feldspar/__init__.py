"""Feldspar: an agent-orchestration runtime for tool-using LLM chat sessions."""

from .config import AdapterKind, ProviderConfig, configure_model, lookup_env
from .conversation import History, Role, ToolCall, ToolResult, Turn
from .errors import (
    ConfigError,
    DuplicateNameError,
    FeldsparError,
    NotFoundError,
    ProviderError,
    ProviderErrorKind,
    RoundCancelled,
    RoundLimitExceeded,
    SchemaError,
    SchemaErrorKind,
    SessionBusyError,
    StageError,
)
from .orchestrator import LoopOutcome, OrchestrationLoop, Session, create_session
from .tools import Registry, ToolDescriptor, TypeTag, invoke, make_tool

__version__ = "0.1.0"

__all__ = [
    "AdapterKind",
    "ConfigError",
    "DuplicateNameError",
    "FeldsparError",
    "History",
    "LoopOutcome",
    "NotFoundError",
    "OrchestrationLoop",
    "ProviderConfig",
    "ProviderError",
    "ProviderErrorKind",
    "Registry",
    "Role",
    "RoundCancelled",
    "RoundLimitExceeded",
    "SchemaError",
    "SchemaErrorKind",
    "Session",
    "SessionBusyError",
    "StageError",
    "ToolCall",
    "ToolDescriptor",
    "ToolResult",
    "Turn",
    "TypeTag",
    "configure_model",
    "create_session",
    "invoke",
    "lookup_env",
    "make_tool",
]
