"""Provider configuration and environment-backed runtime settings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import os
from urllib.parse import urlparse

from .errors import ConfigError


def _get_env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


class AdapterKind(str, Enum):
    """Wire-format family spoken by a provider endpoint."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"
    GROQ = "groq"
    GEMINI = "gemini"
    COHERE = "cohere"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str | AdapterKind) -> AdapterKind:
        if isinstance(value, AdapterKind):
            return value
        text = str(value or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            known = ", ".join(k.value for k in cls)
            raise ConfigError(f"Unknown adapter kind '{value}'. Expected one of: {known}") from None


# Local endpoints that accept requests without a credential.
ANONYMOUS_KINDS = frozenset({AdapterKind.OLLAMA})


@dataclass(frozen=True)
class ProviderConfig:
    """Endpoint, credential and model for the active provider."""

    base_url: str
    credential: str | None
    model_id: str
    adapter_kind: AdapterKind

    def __post_init__(self) -> None:
        base_url = (self.base_url or "").strip()
        if not base_url:
            raise ConfigError("Provider base_url must not be empty")
        parsed = urlparse(base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ConfigError(f"Provider base_url must be an http(s) URL, got '{self.base_url}'")
        if not (self.model_id or "").strip():
            raise ConfigError("Provider model_id must not be empty")

        kind = AdapterKind.parse(self.adapter_kind)
        credential = (self.credential or "").strip() or None
        if credential is None and kind not in ANONYMOUS_KINDS:
            raise ConfigError(f"Adapter '{kind.value}' requires a credential")

        object.__setattr__(self, "base_url", base_url.rstrip("/"))
        object.__setattr__(self, "model_id", self.model_id.strip())
        object.__setattr__(self, "credential", credential)
        object.__setattr__(self, "adapter_kind", kind)

    def __repr__(self) -> str:
        masked = "***" if self.credential else None
        return (
            f"ProviderConfig(base_url={self.base_url!r}, credential={masked!r}, "
            f"model_id={self.model_id!r}, adapter_kind={self.adapter_kind.value!r})"
        )


def configure_model(
    base_url: str,
    credential: str | None,
    model_id: str,
    adapter_kind: str | AdapterKind,
) -> ProviderConfig:
    """Build the provider config for a session; invalid fields raise ConfigError."""
    return ProviderConfig(
        base_url=base_url,
        credential=credential,
        model_id=model_id,
        adapter_kind=AdapterKind.parse(adapter_kind),
    )


def lookup_env(name: str) -> str:
    """Return an environment variable, raising ConfigError when it is unset or blank."""
    value = _get_env(name)
    if value is None:
        raise ConfigError(f"Environment variable '{name}' is not set")
    return value


@dataclass(frozen=True)
class EnvSettings:
    """Resolved CLI defaults from FELDSPAR_* environment variables."""

    base_url: str | None
    api_key: str | None
    model: str | None
    adapter: str | None
    max_rounds: int | None
    log_level: str | None
    history_file: str | None = None


def load_env_settings() -> EnvSettings:
    """Load CLI defaults from environment variables."""

    raw_rounds = _get_env("FELDSPAR_MAX_ROUNDS")
    max_rounds: int | None = None
    if raw_rounds is not None:
        try:
            max_rounds = int(raw_rounds)
        except ValueError:
            raise ConfigError(f"FELDSPAR_MAX_ROUNDS must be an integer, got '{raw_rounds}'") from None
        if max_rounds < 1:
            raise ConfigError(f"FELDSPAR_MAX_ROUNDS must be at least 1, got {max_rounds}")

    return EnvSettings(
        base_url=_get_env("FELDSPAR_BASE_URL"),
        api_key=_get_env("FELDSPAR_API_KEY"),
        model=_get_env("FELDSPAR_MODEL"),
        adapter=_get_env("FELDSPAR_ADAPTER"),
        max_rounds=max_rounds,
        log_level=_get_env("FELDSPAR_LOG_LEVEL"),
        history_file=_get_env("FELDSPAR_HISTORY_FILE"),
    )
