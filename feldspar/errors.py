"""Error taxonomy for Feldspar sessions, providers and tools."""

from __future__ import annotations

from enum import Enum
from typing import Any


class FeldsparError(Exception):
    """Base class for every error raised by Feldspar."""

    def to_dict(self) -> dict[str, Any]:
        return {"type": type(self).__name__, "message": str(self)}


class ConfigError(FeldsparError):
    """Malformed or missing configuration (provider fields, tool definitions, scripts)."""


class ProviderErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    MALFORMED = "malformed"
    UNREACHABLE = "unreachable"


class ProviderError(FeldsparError):
    """The remote exchange failed or its reply could not be interpreted."""

    def __init__(self, kind: ProviderErrorKind, detail: str):
        self.kind = ProviderErrorKind(kind)
        self.detail = detail
        super().__init__(f"{self.kind.value}: {detail}")

    @property
    def retryable(self) -> bool:
        return self.kind in {
            ProviderErrorKind.RATE_LIMITED,
            ProviderErrorKind.TIMEOUT,
            ProviderErrorKind.UNREACHABLE,
        }

    def to_dict(self) -> dict[str, Any]:
        return {"type": "ProviderError", "kind": self.kind.value, "detail": self.detail}


class ToolError(FeldsparError):
    """A tool call could not produce a valid output."""


class SchemaErrorKind(str, Enum):
    MISSING = "missing"
    EXTRA = "extra"
    TYPE_MISMATCH = "type_mismatch"


class SchemaError(ToolError):
    """Tool input or output does not match the declared schema."""

    def __init__(self, kind: SchemaErrorKind, field: str, detail: str = ""):
        self.kind = SchemaErrorKind(kind)
        self.field = field
        self.detail = detail
        message = f"{self.kind.value} field '{field}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": "SchemaError", "kind": self.kind.value, "field": self.field}
        if self.detail:
            out["detail"] = self.detail
        return out


class StageError(ToolError):
    """A stage of a tool chain raised; the chain was aborted."""

    def __init__(self, stage_index: int, cause: BaseException):
        self.stage_index = stage_index
        self.cause = cause
        super().__init__(f"stage {stage_index} failed: {type(cause).__name__}: {cause}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "StageError",
            "stage_index": self.stage_index,
            "cause": f"{type(self.cause).__name__}: {self.cause}",
        }


class RegistryError(FeldsparError):
    """Misuse of a tool registry."""


class DuplicateNameError(RegistryError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool '{name}' is already registered")


class NotFoundError(RegistryError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool '{name}' is not registered")

    def to_dict(self) -> dict[str, Any]:
        return {"type": "NotFoundError", "name": self.name}


class RoundLimitExceeded(FeldsparError):
    """The model was still requesting tools when the round budget ran out."""

    def __init__(self, max_rounds: int):
        self.max_rounds = max_rounds
        super().__init__(f"Round limit exceeded: the model was still requesting tools after {max_rounds} rounds")


class SessionBusyError(FeldsparError):
    """A chat call is already in flight for this session."""


class RoundCancelled(FeldsparError):
    """The caller cancelled a pending round."""
