"""Tests for YAML and Python configuration scripts."""

from __future__ import annotations

import os
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import patch

from feldspar.config import AdapterKind
from feldspar.errors import ConfigError, DuplicateNameError
from feldspar.script_loader import load_script, validate_config
from feldspar.tools.pipeline import invoke
from feldspar.tools.schema import TypeTag

STAGES_MODULE = """
def fetch(topic):
    return {"extract": topic + " are marsupials."}

def extract(record):
    return record["extract"]
"""

YAML_SCRIPT = """
provider:
  adapter: anthropic
  base_url: https://api.anthropic.com
  model: claude-3-5-haiku-latest
  credential_env: FELDSPAR_TEST_ANTHROPIC_KEY
  max_tokens: 256
system_prompt: Be brief.
max_rounds: 4
tools:
  - name: research
    description: Research a topic.
    input:
      topic: string
    output:
      summary: string
    chain:
      - yaml_stages_ok:fetch
      - yaml_stages_ok:extract
"""

PY_SCRIPT = """
from py_stages_ok import fetch, extract

configure_model("http://localhost:11434", None, "llama3.1", "ollama")
set_system_prompt("Use tools.")
set_max_rounds(3)
register_tool(make_tool("research", {"topic": STRING}, {"summary": STRING}, "Research.", [fetch, extract]))
"""


class YamlScriptTests(unittest.TestCase):
    def test_loads_provider_and_tools(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            (Path(td) / "yaml_stages_ok.py").write_text(STAGES_MODULE)
            script = Path(td) / "config.yaml"
            script.write_text(YAML_SCRIPT)
            with patch.dict(os.environ, {"FELDSPAR_TEST_ANTHROPIC_KEY": "sk-ant"}, clear=False):
                loaded = load_script(script)

        self.assertIs(loaded.config.adapter_kind, AdapterKind.ANTHROPIC)
        self.assertEqual(loaded.config.credential, "sk-ant")
        self.assertEqual(loaded.system_prompt, "Be brief.")
        self.assertEqual(loaded.max_rounds, 4)
        self.assertEqual(loaded.settings.max_tokens, 256)
        descriptor = loaded.registry.lookup("research")
        self.assertEqual(descriptor.input_schema, (("topic", TypeTag.STRING),))
        self.assertEqual(invoke(descriptor, {"topic": "Kangaroos"}), "Kangaroos are marsupials.")

    def test_missing_credential_env_is_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            (Path(td) / "yaml_stages_ok.py").write_text(STAGES_MODULE)
            script = Path(td) / "config.yaml"
            script.write_text(YAML_SCRIPT.replace("FELDSPAR_TEST_ANTHROPIC_KEY", "FELDSPAR_TEST_UNSET_KEY_123"))
            with self.assertRaises(ConfigError):
                load_script(script)

    def test_schema_errors_are_reported_with_paths(self) -> None:
        errors = validate_config({"provider": {"base_url": "https://x", "model": "m", "adapter": "bogus"}})
        self.assertTrue(any("provider.adapter" in e for e in errors))
        self.assertEqual(validate_config({"provider": {"base_url": "https://x", "model": "m", "adapter": "openai"}}), [])

    def test_invalid_yaml_tool_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            script = Path(td) / "bad.yml"
            script.write_text(
                textwrap.dedent(
                    """
                    provider: {adapter: ollama, base_url: "http://localhost:11434", model: llama3.1}
                    tools:
                      - name: broken
                        input: {}
                        output: {out: string}
                        chain: [os.path:basename]
                    """
                )
            )
            with self.assertRaises(ConfigError) as ctx:
                load_script(script)
        self.assertIn("tools.0.input", str(ctx.exception))

    def test_unknown_stage_module_is_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            script = Path(td) / "bad.yaml"
            script.write_text(
                textwrap.dedent(
                    """
                    provider: {adapter: ollama, base_url: "http://localhost:11434", model: llama3.1}
                    tools:
                      - name: missing
                        input: {x: string}
                        output: {y: string}
                        chain: ["no_such_stage_module_xyz:fn"]
                    """
                )
            )
            with self.assertRaises(ConfigError):
                load_script(script)


class PythonScriptTests(unittest.TestCase):
    def test_loads_python_script(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            (Path(td) / "py_stages_ok.py").write_text(STAGES_MODULE)
            script = Path(td) / "config.py"
            script.write_text(PY_SCRIPT)
            loaded = load_script(script)

        self.assertIs(loaded.config.adapter_kind, AdapterKind.OLLAMA)
        self.assertEqual(loaded.system_prompt, "Use tools.")
        self.assertEqual(loaded.max_rounds, 3)
        self.assertEqual(loaded.registry.names(), ["research"])

    def test_script_without_provider_is_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            script = Path(td) / "empty.py"
            script.write_text("x = 1\n")
            with self.assertRaises(ConfigError):
                load_script(script)

    def test_registry_errors_propagate(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            script = Path(td) / "dup.py"
            script.write_text(
                textwrap.dedent(
                    """
                    configure_model("http://localhost:11434", None, "llama3.1", "ollama")
                    tool = make_tool("t", {"x": STRING}, {"y": STRING}, "", [str.upper])
                    register_tool(tool)
                    register_tool(tool)
                    """
                )
            )
            with self.assertRaises(DuplicateNameError):
                load_script(script)

    def test_script_exceptions_become_config_errors(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            script = Path(td) / "boom.py"
            script.write_text("raise RuntimeError('boom')\n")
            with self.assertRaises(ConfigError) as ctx:
                load_script(script)
        self.assertIn("boom", str(ctx.exception))

    def test_unsupported_suffix(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            script = Path(td) / "config.scm"
            script.write_text("(configure-model)")
            with self.assertRaises(ConfigError):
                load_script(script)


if __name__ == "__main__":
    unittest.main()
