"""LiteLLM-based provider adapter: OpenAI, Anthropic, Ollama, Groq and compatible endpoints."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Sequence

import litellm

from ..config import AdapterKind, ProviderConfig
from ..conversation.history import Turn
from ..errors import ProviderError, ProviderErrorKind
from ..tools.schema import ToolSchema
from .adapter import FinalText, ModelSettings, Response, ToolCallRequest, ToolCalls
from .messages import build_messages, build_tool_schemas

logger = logging.getLogger(__name__)

# Suppress litellm's noisy logging
litellm.suppress_debug_info = True


# LiteLLM routes requests by model prefix.
MODEL_PREFIXES: dict[AdapterKind, str] = {
    AdapterKind.OPENAI: "openai",
    AdapterKind.ANTHROPIC: "anthropic",
    AdapterKind.OLLAMA: "ollama_chat",
    AdapterKind.GROQ: "groq",
    AdapterKind.GEMINI: "gemini",
    AdapterKind.COHERE: "cohere",
    AdapterKind.CUSTOM: "openai",
}


def litellm_model_name(config: ProviderConfig) -> str:
    prefix = MODEL_PREFIXES[config.adapter_kind]
    if config.model_id.startswith(f"{prefix}/"):
        return config.model_id
    return f"{prefix}/{config.model_id}"


def _extract_think_tags(content: str | None) -> tuple[str | None, str | None]:
    """Extract <think>...</think> blocks from content. Returns (think_content, remaining_content)."""
    if not content:
        return None, content

    match = re.search(r"<think>(.*?)</think>", content, flags=re.DOTALL)
    if match:
        think_content = match.group(1).strip()
        remaining_content = re.sub(r"<think>.*?</think>", "", content, flags=re.DOTALL).strip()
        return think_content, remaining_content

    return None, content


def _get_field(obj: Any, key: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _extract_usage(response: Any) -> dict[str, int]:
    usage_obj = _get_field(response, "usage")
    if not usage_obj:
        return {}

    usage: dict[str, int] = {}
    for name in ("prompt_tokens", "completion_tokens", "total_tokens"):
        value = _get_field(usage_obj, name)
        if isinstance(value, (int, float)):
            usage[name] = int(value)
    return usage


def _litellm_types(*names: str) -> tuple[type, ...]:
    return tuple(t for t in (getattr(litellm, name, None) for name in names) if isinstance(t, type))


def classify_error(exc: Exception) -> ProviderErrorKind:
    """Map a litellm (or transport) exception onto a ProviderError kind."""
    # Timeout subclasses the connection error in litellm, so it is checked first.
    checks: tuple[tuple[tuple[type, ...], ProviderErrorKind], ...] = (
        (_litellm_types("AuthenticationError", "PermissionDeniedError"), ProviderErrorKind.UNAUTHORIZED),
        (_litellm_types("RateLimitError"), ProviderErrorKind.RATE_LIMITED),
        (_litellm_types("Timeout"), ProviderErrorKind.TIMEOUT),
        (
            _litellm_types("APIConnectionError", "ServiceUnavailableError", "InternalServerError"),
            ProviderErrorKind.UNREACHABLE,
        ),
        (
            _litellm_types("BadRequestError", "UnprocessableEntityError", "NotFoundError", "JSONSchemaValidationError"),
            ProviderErrorKind.MALFORMED,
        ),
    )
    for types, kind in checks:
        if types and isinstance(exc, types):
            return kind

    if isinstance(exc, TimeoutError):
        return ProviderErrorKind.TIMEOUT
    if isinstance(exc, ConnectionError):
        return ProviderErrorKind.UNREACHABLE

    message = str(exc).lower()
    token_kinds = (
        (("invalid api key", "authentication", "unauthorized", "forbidden", "401", "403"), ProviderErrorKind.UNAUTHORIZED),
        (("rate limit", "too many requests", "429"), ProviderErrorKind.RATE_LIMITED),
        (("timeout", "timed out"), ProviderErrorKind.TIMEOUT),
        (
            (
                "connection error",
                "name resolution",
                "temporarily unavailable",
                "500",
                "502",
                "503",
                "504",
                "internal server error",
            ),
            ProviderErrorKind.UNREACHABLE,
        ),
    )
    for tokens, kind in token_kinds:
        if any(token in message for token in tokens):
            return kind
    return ProviderErrorKind.MALFORMED


class LiteLLMAdapter:
    """Adapter that uses LiteLLM to call the configured provider."""

    def __init__(
        self,
        config: ProviderConfig,
        settings: ModelSettings | None = None,
        system_prompt: str | None = None,
        extra_headers: dict[str, str] | None = None,
    ):
        self.config = config
        self.settings = settings or ModelSettings()
        self.system_prompt = system_prompt
        self.extra_headers = extra_headers or {}

    @property
    def model_name(self) -> str:
        return litellm_model_name(self.config)

    def _request_kwargs(self, history: Sequence[Turn], tools: Sequence[ToolSchema]) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model_name,
            "messages": build_messages(history, self.system_prompt),
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
            "api_base": self.config.base_url,
        }

        if self.settings.seed is not None:
            kwargs["seed"] = self.settings.seed
        if self.settings.timeout_s:
            kwargs["timeout"] = float(self.settings.timeout_s)
        if self.config.credential:
            kwargs["api_key"] = self.config.credential
        if self.extra_headers:
            kwargs["extra_headers"] = self.extra_headers

        if tools:
            kwargs["tools"] = build_tool_schemas(tools)
            kwargs["tool_choice"] = "auto"
        return kwargs

    def complete(self, history: Sequence[Turn], tools: Sequence[ToolSchema]) -> Response:
        """Execute one chat completion and normalize the reply."""
        if not history:
            raise ValueError("complete() needs at least one turn of history")

        kwargs = self._request_kwargs(history, tools)
        logger.debug("Calling %s with %d messages and %d tools", kwargs["model"], len(kwargs["messages"]), len(tools))
        try:
            response = litellm.completion(**kwargs)
        except Exception as exc:
            kind = classify_error(exc)
            logger.info("Provider call to %s failed (%s): %s", kwargs["model"], kind.value, exc)
            raise ProviderError(kind, str(exc)) from exc

        return self._parse_response(response)

    def _parse_response(self, response: Any) -> Response:
        choices = _get_field(response, "choices")
        if not choices:
            raise ProviderError(ProviderErrorKind.MALFORMED, "reply contained no choices")
        message = _get_field(choices[0], "message")
        if message is None:
            raise ProviderError(ProviderErrorKind.MALFORMED, "reply choice has no message")

        usage = _extract_usage(response)
        if usage:
            logger.debug("Token usage: %s", usage)

        content = _get_field(message, "content")
        raw_calls = _get_field(message, "tool_calls") or []
        if raw_calls:
            requests: list[ToolCallRequest] = []
            for tc in raw_calls:
                function = _get_field(tc, "function")
                name = _get_field(function, "name") if function is not None else None
                if not name:
                    raise ProviderError(ProviderErrorKind.MALFORMED, "tool call without a function name")
                args = _get_field(function, "arguments")
                argument_error = None
                if isinstance(args, str):
                    try:
                        args = json.loads(args) if args.strip() else {}
                    except json.JSONDecodeError as err:
                        argument_error = f"arguments are not valid JSON: {err}"
                        args = {}
                if args is None:
                    args = {}
                if not isinstance(args, dict):
                    argument_error = f"arguments must be a JSON object, got {type(args).__name__}"
                    args = {}

                requests.append(
                    ToolCallRequest(
                        call_id=_get_field(tc, "id") or f"call_{len(requests)}",
                        name=str(name),
                        arguments=args,
                        argument_error=argument_error,
                    )
                )
            return ToolCalls(requests=tuple(requests), content=content or None, usage=usage)

        if not isinstance(content, str):
            raise ProviderError(ProviderErrorKind.MALFORMED, "reply has neither text nor tool calls")

        reasoning_content = _get_field(message, "reasoning_content")
        if not reasoning_content:
            extracted_think, cleaned_content = _extract_think_tags(content)
            if extracted_think:
                reasoning_content = extracted_think
                content = cleaned_content or ""

        return FinalText(text=content, reasoning_content=reasoning_content, usage=usage)
