"""Provider adapters and normalized model responses."""

from .adapter import FinalText, ModelSettings, ProviderAdapter, Response, ToolCallRequest, ToolCalls
from .litellm_adapter import LiteLLMAdapter
from .resolve import resolve_adapter
from .retry import RetryingAdapter

__all__ = [
    "FinalText",
    "LiteLLMAdapter",
    "ModelSettings",
    "ProviderAdapter",
    "Response",
    "RetryingAdapter",
    "ToolCallRequest",
    "ToolCalls",
    "resolve_adapter",
]
