"""Load configuration scripts: declarative YAML or executable Python."""

from __future__ import annotations

import json
import logging
import runpy
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import jsonschema
import yaml

from .config import ProviderConfig, configure_model, lookup_env
from .errors import ConfigError, FeldsparError
from .models.adapter import ModelSettings
from .orchestrator.loop import DEFAULT_MAX_ROUNDS
from .plugins import load_callables_from_specs
from .tools.registry import Registry
from .tools.schema import ToolDescriptor, TypeTag, make_tool

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schemas" / "config.schema.json"
YAML_SUFFIXES = {".yaml", ".yml"}


@dataclass
class LoadedScript:
    """Everything a configuration script declares for one session."""

    config: ProviderConfig
    registry: Registry
    system_prompt: str | None = None
    max_rounds: int = DEFAULT_MAX_ROUNDS
    settings: ModelSettings = field(default_factory=ModelSettings)
    path: Path | None = None


def load_schema() -> dict:
    """Load the configuration JSON Schema."""
    with open(SCHEMA_PATH) as f:
        return json.load(f)


def validate_config(data: Any, schema: dict | None = None) -> list[str]:
    """
    Validate a configuration dict against the JSON Schema.
    Returns a list of error messages (empty if valid).
    """
    if schema is None:
        schema = load_schema()

    validator = jsonschema.Draft7Validator(schema)
    errors = []
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        path = ".".join(str(p) for p in error.absolute_path) or "(root)"
        errors.append(f"[{path}] {error.message}")
    return errors


@contextmanager
def _script_dir_on_path(path: Path) -> Iterator[None]:
    """Make modules next to the script importable while it loads."""
    script_dir = str(path.resolve().parent)
    added = script_dir not in sys.path
    if added:
        sys.path.insert(0, script_dir)
    try:
        yield
    finally:
        if added and script_dir in sys.path:
            sys.path.remove(script_dir)


def _settings_from(provider: dict[str, Any]) -> ModelSettings:
    defaults = ModelSettings()
    return ModelSettings(
        temperature=float(provider.get("temperature", defaults.temperature)),
        max_tokens=int(provider.get("max_tokens", defaults.max_tokens)),
        seed=provider.get("seed", defaults.seed),
        timeout_s=provider.get("timeout_s", defaults.timeout_s),
    )


def load_yaml_script(path: str | Path) -> LoadedScript:
    """Load and validate a YAML configuration script."""
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as err:
        raise ConfigError(f"Failed to load YAML from {path}: {err}") from err

    errors = validate_config(data)
    if errors:
        raise ConfigError(f"Invalid configuration in {path}:\n  " + "\n  ".join(errors))

    provider = data["provider"]
    credential = provider.get("credential")
    if provider.get("credential_env"):
        credential = lookup_env(provider["credential_env"])
    config = configure_model(
        base_url=provider["base_url"],
        credential=credential,
        model_id=provider["model"],
        adapter_kind=provider["adapter"],
    )

    registry = Registry()
    with _script_dir_on_path(path):
        for tool in data.get("tools", []):
            try:
                chain = load_callables_from_specs(tool["chain"])
            except ValueError as err:
                raise ConfigError(f"Tool '{tool['name']}': {err}") from err
            registry.register(
                make_tool(
                    name=tool["name"],
                    input_schema=tool["input"],
                    output_schema=tool["output"],
                    description=tool.get("description", ""),
                    chain=chain,
                )
            )

    logger.info("Loaded %s: %s with %d tool(s)", path, config.model_id, len(registry))
    return LoadedScript(
        config=config,
        registry=registry,
        system_prompt=data.get("system_prompt"),
        max_rounds=data.get("max_rounds", DEFAULT_MAX_ROUNDS),
        settings=_settings_from(provider),
        path=path,
    )


class ScriptContext:
    """Configuration functions exposed to Python configuration scripts."""

    def __init__(self) -> None:
        self.config: ProviderConfig | None = None
        self.registry = Registry()
        self.system_prompt: str | None = None
        self.max_rounds = DEFAULT_MAX_ROUNDS
        self.settings = ModelSettings()

    def configure_model(
        self,
        base_url: str,
        credential: str | None,
        model_id: str,
        adapter_kind: str,
    ) -> ProviderConfig:
        """Install the active provider, replacing any earlier one."""
        self.config = configure_model(base_url, credential, model_id, adapter_kind)
        return self.config

    def register_tool(self, descriptor: ToolDescriptor) -> ToolDescriptor:
        self.registry.register(descriptor)
        return descriptor

    def set_system_prompt(self, prompt: str) -> None:
        self.system_prompt = prompt

    def set_max_rounds(self, max_rounds: int) -> None:
        if not isinstance(max_rounds, int) or max_rounds < 1:
            raise ConfigError(f"max_rounds must be a positive integer, got {max_rounds!r}")
        self.max_rounds = max_rounds

    def set_model_settings(self, **kwargs: Any) -> None:
        try:
            self.settings = ModelSettings(**kwargs)
        except TypeError as err:
            raise ConfigError(f"Invalid model settings: {err}") from err

    def namespace(self) -> dict[str, Any]:
        return {
            "configure_model": self.configure_model,
            "make_tool": make_tool,
            "register_tool": self.register_tool,
            "lookup_env": lookup_env,
            "set_system_prompt": self.set_system_prompt,
            "set_max_rounds": self.set_max_rounds,
            "set_model_settings": self.set_model_settings,
            "TypeTag": TypeTag,
            "STRING": TypeTag.STRING,
            "NUMBER": TypeTag.NUMBER,
            "BOOL": TypeTag.BOOL,
        }

    def build(self, path: Path | None = None) -> LoadedScript:
        if self.config is None:
            raise ConfigError(f"{path or 'Script'} never called configure_model()")
        return LoadedScript(
            config=self.config,
            registry=self.registry,
            system_prompt=self.system_prompt,
            max_rounds=self.max_rounds,
            settings=self.settings,
            path=path,
        )


def load_python_script(path: str | Path) -> LoadedScript:
    """Execute a Python configuration script with the configuration functions in scope."""
    path = Path(path)
    context = ScriptContext()
    with _script_dir_on_path(path):
        try:
            runpy.run_path(str(path), init_globals=context.namespace(), run_name="__feldspar_script__")
        except FeldsparError:
            raise
        except Exception as err:
            raise ConfigError(f"Error in {path}: {type(err).__name__}: {err}") from err
    loaded = context.build(path)
    logger.info("Loaded %s: %s with %d tool(s)", path, loaded.config.model_id, len(loaded.registry))
    return loaded


def load_script(path: str | Path) -> LoadedScript:
    """Load a configuration script, choosing the format by file suffix."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration script not found: {path}")
    if path.suffix.lower() in YAML_SUFFIXES:
        return load_yaml_script(path)
    if path.suffix.lower() == ".py":
        return load_python_script(path)
    raise ConfigError(f"Unsupported configuration script '{path}'. Expected .py, .yaml or .yml")
