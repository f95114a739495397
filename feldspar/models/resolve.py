"""Adapter resolution for a provider config, with an optional plugin override."""

from __future__ import annotations

import os

from ..config import ProviderConfig
from ..errors import ConfigError
from ..plugins import load_callable_from_spec
from .adapter import ModelSettings, ProviderAdapter
from .litellm_adapter import LiteLLMAdapter


def resolve_adapter(
    config: ProviderConfig,
    settings: ModelSettings | None = None,
    *,
    system_prompt: str | None = None,
) -> ProviderAdapter:
    """
    Return the adapter that speaks ``config.adapter_kind``.

    When FELDSPAR_ADAPTER_PLUGIN names a ``module:function`` plugin, it is
    called with the same arguments and must return an object with ``complete``.
    """
    plugin_spec = os.getenv("FELDSPAR_ADAPTER_PLUGIN", "").strip()
    if plugin_spec:
        try:
            plugin = load_callable_from_spec(plugin_spec)
        except ValueError as err:
            raise ConfigError(str(err)) from err
        adapter = plugin(config=config, settings=settings, system_prompt=system_prompt)
        if not callable(getattr(adapter, "complete", None)):
            raise ConfigError(f"Adapter plugin '{plugin_spec}' must return an object with a complete() method")
        return adapter

    return LiteLLMAdapter(config=config, settings=settings, system_prompt=system_prompt)
