"""Feldspar CLI: chat with a configured model, open a scripting REPL and inspect scripts."""

from __future__ import annotations

import code
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import click
from dotenv import load_dotenv
from rich.console import Console

from .config import EnvSettings, configure_model, load_env_settings
from .conversation.history import History
from .errors import ConfigError, FeldsparError, ProviderError, RoundCancelled, SessionBusyError
from .logging_config import setup_logging
from .models.adapter import ModelSettings
from .models.resolve import resolve_adapter
from .models.retry import RetryingAdapter
from .orchestrator.loop import DEFAULT_MAX_ROUNDS
from .orchestrator.session import Session
from .reporting.transcript import print_history
from .script_loader import LoadedScript, load_script
from .tools.registry import Registry

try:
    import readline
except ImportError:  # not available on Windows
    readline = None

logger = logging.getLogger(__name__)

console = Console()

PROMPT = "[cyan]λ >[/cyan] "

HELP_TEXT = """Commands:
  :help         (:h)  Show this help
  :load <file>  (:l)  Load a configuration script (.py, .yaml, .yml)
  :history      (:H)  Show the conversation so far
  :clear        (:c)  Clear the conversation
  :quit         (:q)  Exit
Anything else is sent to the model."""

HISTORY_LENGTH = 1000


@dataclass
class SessionOptions:
    """Command-line overrides applied when building a session."""

    system_prompt: str | None = None
    max_rounds: int | None = None
    max_retries: int = 0


def _session_from_script(loaded: LoadedScript, options: SessionOptions, history: History | None = None) -> Session:
    system_prompt = options.system_prompt if options.system_prompt is not None else loaded.system_prompt
    adapter = resolve_adapter(loaded.config, loaded.settings, system_prompt=system_prompt)
    if options.max_retries > 0:
        adapter = RetryingAdapter(adapter, max_retries=options.max_retries)
    return Session(
        adapter=adapter,
        registry=loaded.registry,
        history=history,
        max_rounds=options.max_rounds or loaded.max_rounds,
    )


def _build_session(
    *,
    config_path: str | None,
    base_url: str | None,
    model: str | None,
    adapter_kind: str | None,
    api_key: str | None,
    options: SessionOptions,
) -> Session:
    """Build a session from a configuration script or from flags and FELDSPAR_* variables."""
    if config_path:
        return _session_from_script(load_script(config_path), options)

    env = load_env_settings()
    config = configure_model(
        base_url=base_url or env.base_url,
        credential=api_key or env.api_key,
        model_id=model or env.model,
        adapter_kind=adapter_kind or env.adapter,
    )
    loaded = LoadedScript(
        config=config,
        registry=Registry(),
        max_rounds=env.max_rounds or DEFAULT_MAX_ROUNDS,
        settings=ModelSettings(),
    )
    return _session_from_script(loaded, options)


def _history_path(settings: EnvSettings) -> Path:
    return Path(settings.history_file) if settings.history_file else default_history_path()


def _print_error(err: Exception) -> None:
    console.print(f"[red]✗ {type(err).__name__}: {err}[/red]", highlight=False)


@dataclass
class ChatState:
    session: Session
    options: SessionOptions


def _handle_command(cmd: str, state: ChatState) -> bool:
    """Run one ``:command``; returns True when the REPL should exit."""
    parts = cmd[1:].split(" ", 1)
    command = parts[0]
    arg = parts[1].strip() if len(parts) > 1 else ""

    if command in {"h", "help"}:
        console.print(HELP_TEXT, markup=False)
    elif command in {"q", "quit"}:
        return True
    elif command in {"H", "history"}:
        print_history(state.session.history_dump(), console)
    elif command in {"c", "clear"}:
        state.session.clear_history()
        console.print("[dim]History cleared.[/dim]")
    elif command in {"l", "load"}:
        if not arg:
            console.print("[red]Usage: :load <file>[/red]")
            return False
        try:
            loaded = load_script(arg)
            session = _session_from_script(loaded, state.options, history=state.session.history)
        except FeldsparError as err:
            _print_error(err)
            return False
        state.session = session
        console.print(f"[green]✓[/green] Loaded {arg} ({loaded.config.model_id}, {len(loaded.registry)} tool(s))")
    else:
        console.print(f"[red]Unknown command: {command}. Type :help for available commands.[/red]")
    return False


def default_history_path() -> Path:
    """Per-user location of the chat input history."""
    if sys.platform == "win32" and os.environ.get("LOCALAPPDATA"):
        base = Path(os.environ["LOCALAPPDATA"])
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share")
    return base / "feldspar" / "history.txt"


class LineHistory:
    """Line editing and persisted input history for the chat prompt.

    Backed by ``readline``; a no-op where the platform has none.
    """

    def __init__(self, path: Path | None, max_length: int = HISTORY_LENGTH):
        self.path = path
        self.max_length = max_length

    def load(self) -> None:
        if readline is None:
            return
        readline.set_history_length(self.max_length)
        if self.path is None or not self.path.is_file():
            return
        try:
            readline.read_history_file(str(self.path))
        except OSError as err:
            logger.warning("Could not read input history %s: %s", self.path, err)

    def save(self) -> None:
        if readline is None or self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            readline.write_history_file(str(self.path))
        except OSError as err:
            logger.warning("Could not save input history %s: %s", self.path, err)


def _chat_repl(state: ChatState, read_line: Callable[[str], str] | None = None) -> None:
    read_line = read_line or console.input
    while True:
        try:
            line = read_line(PROMPT)
        except KeyboardInterrupt:
            console.print("^C")
            continue
        except EOFError:
            console.print()
            break

        text = line.strip()
        if not text:
            continue
        if text.startswith(":"):
            if _handle_command(text, state):
                break
            continue

        try:
            outcome = state.session.send(text)
        except (ProviderError, RoundCancelled, SessionBusyError) as err:
            _print_error(err)
            continue

        if outcome.limit_exceeded:
            console.print(f"[yellow]⚠ {outcome.text}[/yellow]", highlight=False)
        else:
            console.print(f"[magenta]=>[/magenta] {outcome.text}", highlight=False)


@click.group()
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ...). Env: FELDSPAR_LOG_LEVEL")
def cli(log_level: str | None):
    """Feldspar: tool-using chat sessions over any LLM provider"""
    load_dotenv()
    try:
        settings = load_env_settings()
    except ConfigError as err:
        _print_error(err)
        sys.exit(1)
    setup_logging(log_level or settings.log_level or "WARNING")


_provider_options = [
    click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="Configuration script (.py, .yaml)."),
    click.option("--base-url", default=None, help="Provider base URL. Env: FELDSPAR_BASE_URL"),
    click.option("--model", default=None, help="Model id. Env: FELDSPAR_MODEL"),
    click.option("--adapter", "adapter_kind", default=None, help="Adapter kind (openai, anthropic, ollama, groq, custom, ...). Env: FELDSPAR_ADAPTER"),
    click.option("--api-key", default=None, help="Provider credential. Env: FELDSPAR_API_KEY"),
    click.option("--system-prompt", default=None, help="System prompt sent before the conversation."),
    click.option("--max-rounds", default=None, type=click.IntRange(min=1), help="Maximum tool rounds per message."),
    click.option("--max-retries", default=0, type=click.IntRange(min=0), show_default=True, help="Retries for rate-limited or unreachable providers."),
]


def provider_options(fn):
    for option in reversed(_provider_options):
        fn = option(fn)
    return fn


@cli.command()
@provider_options
def chat(
    config_path: str | None,
    base_url: str | None,
    model: str | None,
    adapter_kind: str | None,
    api_key: str | None,
    system_prompt: str | None,
    max_rounds: int | None,
    max_retries: int,
):
    """Start an interactive chat session."""
    options = SessionOptions(system_prompt=system_prompt, max_rounds=max_rounds, max_retries=max_retries)
    try:
        session = _build_session(
            config_path=config_path,
            base_url=base_url,
            model=model,
            adapter_kind=adapter_kind,
            api_key=api_key,
            options=options,
        )
    except FeldsparError as err:
        _print_error(err)
        sys.exit(1)

    line_history = LineHistory(_history_path(load_env_settings()))
    line_history.load()
    console.print("Type :help for commands\n")
    try:
        _chat_repl(ChatState(session=session, options=options))
    finally:
        line_history.save()


@cli.command()
@click.argument("script_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--max-retries", default=0, type=click.IntRange(min=0), show_default=True, help="Retries for rate-limited or unreachable providers.")
def repl(script_path: str, max_retries: int):
    """Load a configuration script, then open a Python REPL with `chat` bound."""
    try:
        loaded = load_script(script_path)
    except FeldsparError as err:
        _print_error(err)
        sys.exit(1)

    session = _session_from_script(loaded, SessionOptions(max_retries=max_retries))
    namespace = {
        "session": session,
        "chat": session.chat,
        "history": session.history_dump,
        "clear": session.clear_history,
        "show_history": lambda: print_history(session.history_dump(), console),
        "registry": session.registry,
    }
    banner = (
        f"Loaded {script_path} ({loaded.config.model_id}, {len(loaded.registry)} tool(s)).\n"
        "Available: chat(message), history(), show_history(), clear(), session, registry"
    )
    code.InteractiveConsole(locals=namespace).interact(banner=banner, exitmsg="")


@cli.command()
@click.argument("script_path", type=click.Path(exists=True, dir_okay=False))
def validate(script_path: str):
    """Validate a configuration script without contacting the provider."""
    console.print(f"\n[cyan]Validating:[/cyan] {script_path}")
    try:
        loaded = load_script(script_path)
    except FeldsparError as err:
        console.print("\n[red]✗ Validation failed:[/red]")
        console.print(f"  [red]•[/red] {err}", highlight=False, markup=False)
        sys.exit(1)

    config = loaded.config
    console.print(f"[green]✓ Valid![/green] {config.adapter_kind.value} model '{config.model_id}' at {config.base_url}")
    console.print(f"  Tools: {', '.join(loaded.registry.names()) or '(none)'}")
    console.print(f"  Max rounds: {loaded.max_rounds}")


@cli.command()
@click.argument("script_path", type=click.Path(exists=True, dir_okay=False))
def tools(script_path: str):
    """Describe every tool a configuration script registers."""
    try:
        loaded = load_script(script_path)
    except FeldsparError as err:
        _print_error(err)
        sys.exit(1)

    if not len(loaded.registry):
        console.print("[dim]No tools registered.[/dim]")
        return
    for descriptor in loaded.registry:
        console.print(descriptor.describe(), markup=False, highlight=False)
        console.print()


def main() -> None:
    cli()


if __name__ == "__main__":
    cli()
