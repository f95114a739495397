"""Tests for the feldspar command-line interface."""

from __future__ import annotations

import os
import sys
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from feldspar import cli as cli_module
from feldspar.cli import ChatState, LineHistory, SessionOptions, _chat_repl, _handle_command, cli, default_history_path
from feldspar.conversation.history import Turn
from feldspar.errors import ProviderError, ProviderErrorKind
from feldspar.models.adapter import FinalText
from feldspar.orchestrator.session import Session

YAML_SCRIPT = textwrap.dedent(
    """
    provider:
      adapter: ollama
      base_url: http://localhost:11434
      model: llama3.1
    max_rounds: 5
    tools:
      - name: basename
        description: Last path component.
        input:
          path: string
        output:
          name: string
        chain:
          - os.path:basename
    """
)


class FakeAdapter:
    def __init__(self, text: str = "Hello!"):
        self.text = text
        self.calls = 0

    def complete(self, history, tools):
        self.calls += 1
        return FinalText(text=self.text)


class FailingAdapter:
    def complete(self, history, tools):
        raise ProviderError(ProviderErrorKind.UNAUTHORIZED, "bad key")


def _write_script(td: str, name: str = "config.yaml", body: str = YAML_SCRIPT) -> str:
    path = Path(td) / name
    path.write_text(body)
    return str(path)


class CLIValidateAndToolsTests(unittest.TestCase):
    def test_validate_reports_tools_and_limits(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            script = _write_script(td)
            result = CliRunner().invoke(cli, ["validate", script])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Valid!", result.output)
        self.assertIn("basename", result.output)
        self.assertIn("Max rounds: 5", result.output)

    def test_validate_fails_on_schema_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            script = _write_script(td, body="provider: {adapter: ollama}\n")
            result = CliRunner().invoke(cli, ["validate", script])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Validation failed", result.output)

    def test_tools_describes_registered_tools(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            script = _write_script(td)
            result = CliRunner().invoke(cli, ["tools", script])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Name: basename", result.output)
        self.assertIn('{"path": <string>}', result.output)

    def test_tools_without_registrations(self) -> None:
        body = "provider: {adapter: ollama, base_url: 'http://localhost:11434', model: llama3.1}\n"
        with tempfile.TemporaryDirectory() as td:
            script = _write_script(td, body=body)
            result = CliRunner().invoke(cli, ["tools", script])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("No tools registered.", result.output)


class CLIChatTests(unittest.TestCase):
    def test_chat_round_trip_with_history_command(self) -> None:
        adapter = FakeAdapter("Hello there")
        with tempfile.TemporaryDirectory() as td:
            script = _write_script(td)
            history_file = Path(td) / "state" / "history.txt"
            with patch("feldspar.cli.resolve_adapter", return_value=adapter):
                result = CliRunner().invoke(
                    cli,
                    ["chat", "--config", script],
                    input="hi\n:history\n:quit\n",
                    env={"FELDSPAR_HISTORY_FILE": str(history_file)},
                )
            if cli_module.readline is not None:
                self.assertTrue(history_file.is_file())

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(adapter.calls, 1)
        self.assertIn("=> Hello there", result.output)
        self.assertIn("user", result.output)

    def test_chat_setup_error_exits_nonzero(self) -> None:
        result = CliRunner().invoke(
            cli,
            ["chat", "--base-url", "https://api.example.com/v1", "--model", "m", "--adapter", "bogus", "--api-key", "k"],
        )

        self.assertEqual(result.exit_code, 1)
        self.assertIn("ConfigError", result.output)

    def test_invalid_max_rounds_env_is_reported(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            script = _write_script(td)
            for raw in ("abc", "-2"):
                result = CliRunner().invoke(cli, ["validate", script], env={"FELDSPAR_MAX_ROUNDS": raw})
                self.assertEqual(result.exit_code, 1, result.output)
                self.assertIn("ConfigError", result.output)
                self.assertIn("FELDSPAR_MAX_ROUNDS", result.output)


class ChatCommandTests(unittest.TestCase):
    def _state(self, adapter=None) -> ChatState:
        return ChatState(session=Session(adapter=adapter or FakeAdapter()), options=SessionOptions())

    def test_quit_and_help(self) -> None:
        state = self._state()
        self.assertTrue(_handle_command(":q", state))
        self.assertTrue(_handle_command(":quit", state))
        self.assertFalse(_handle_command(":help", state))
        self.assertFalse(_handle_command(":nope", state))

    def test_clear_empties_history(self) -> None:
        state = self._state()
        state.session.chat("hi")
        self.assertEqual(len(state.session.history), 2)

        self.assertFalse(_handle_command(":clear", state))
        self.assertEqual(len(state.session.history), 0)

    def test_load_replaces_session_and_keeps_history(self) -> None:
        state = self._state()
        state.session.chat("hi")
        new_adapter = FakeAdapter("second")
        with tempfile.TemporaryDirectory() as td:
            script = _write_script(td)
            with patch("feldspar.cli.resolve_adapter", return_value=new_adapter):
                self.assertFalse(_handle_command(f":load {script}", state))

        self.assertIs(state.session.adapter, new_adapter)
        self.assertIn("basename", state.session.registry)
        self.assertEqual(state.session.max_rounds, 5)
        self.assertEqual(len(state.session.history), 2)

    def test_load_failure_keeps_session(self) -> None:
        state = self._state()
        before = state.session
        self.assertFalse(_handle_command(":load /no/such/file.yaml", state))
        self.assertIs(state.session, before)

    def test_load_with_unloadable_adapter_plugin_keeps_session(self) -> None:
        state = self._state()
        before = state.session
        with tempfile.TemporaryDirectory() as td:
            script = _write_script(td)
            with patch.dict(os.environ, {"FELDSPAR_ADAPTER_PLUGIN": "no_such_adapter_plugin_mod:factory"}, clear=False):
                self.assertFalse(_handle_command(f":load {script}", state))

        self.assertIs(state.session, before)

    def test_ctrl_c_at_prompt_keeps_reading(self) -> None:
        adapter = FakeAdapter()
        state = self._state(adapter)
        lines = iter([KeyboardInterrupt(), "hello", ":quit"])

        def read_line(prompt: str) -> str:
            item = next(lines)
            if isinstance(item, BaseException):
                raise item
            return item

        _chat_repl(state, read_line=read_line)

        self.assertEqual(adapter.calls, 1)
        self.assertEqual(state.session.history_dump()[0], Turn.user("hello"))

    def test_repl_survives_provider_errors(self) -> None:
        state = self._state(FailingAdapter())
        lines = iter(["hello", ":quit"])

        _chat_repl(state, read_line=lambda prompt: next(lines))

        turns = state.session.history_dump()
        self.assertEqual(len(turns), 1)
        self.assertEqual(turns[0], Turn.user("hello"))

    def test_repl_exits_on_eof(self) -> None:
        state = self._state()

        def read_line(prompt: str) -> str:
            raise EOFError

        _chat_repl(state, read_line=read_line)
        self.assertEqual(len(state.session.history), 0)



@unittest.skipIf(cli_module.readline is None, "readline is not available")
class LineHistoryTests(unittest.TestCase):
    def setUp(self) -> None:
        cli_module.readline.clear_history()

    def tearDown(self) -> None:
        cli_module.readline.clear_history()

    def test_history_is_saved_and_reloaded(self) -> None:
        readline = cli_module.readline
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "feldspar" / "history.txt"
            readline.add_history("tell me about kangaroos")
            LineHistory(path).save()
            self.assertIn("tell me about kangaroos", path.read_text())

            readline.clear_history()
            LineHistory(path).load()

        self.assertEqual(readline.get_current_history_length(), 1)
        self.assertEqual(readline.get_history_item(1), "tell me about kangaroos")

    def test_missing_history_file_loads_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            LineHistory(Path(td) / "absent.txt").load()
        self.assertEqual(cli_module.readline.get_current_history_length(), 0)


class HistoryPathTests(unittest.TestCase):
    @unittest.skipIf(sys.platform in {"win32", "darwin"}, "XDG layout only")
    def test_default_path_follows_xdg_data_home(self) -> None:
        with patch.dict(os.environ, {"XDG_DATA_HOME": "/tmp/xdg-data"}, clear=False):
            self.assertEqual(default_history_path(), Path("/tmp/xdg-data/feldspar/history.txt"))


if __name__ == "__main__":
    unittest.main()
