#!/usr/bin/env python3
"""Send one message through a configured session and print the full transcript."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from feldspar.errors import FeldsparError
from feldspar.logging_config import setup_logging
from feldspar.models.resolve import resolve_adapter
from feldspar.orchestrator.session import Session
from feldspar.reporting.transcript import history_to_dicts
from feldspar.script_loader import load_script


class _Printer:
    def __init__(self, log_path: str | None) -> None:
        self._lines: list[str] = []
        self._log_path = Path(log_path) if log_path else None

    def line(self, text: str = "") -> None:
        print(text)
        self._lines.append(text)

    def write_log(self) -> Path | None:
        if self._log_path is None:
            return None
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._log_path.write_text("\n".join(self._lines).rstrip() + "\n")
        return self._log_path


def _json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=True, sort_keys=True, default=str)


def _print_transcript(pr: _Printer, turns: list[dict[str, Any]]) -> None:
    pr.line("\n=== TRANSCRIPT ===")
    if not turns:
        pr.line("(no turns)")
        return
    for idx, turn in enumerate(turns, start=1):
        pr.line(f"[{idx}] role={turn['role']} round={turn.get('round', '-')}")
        if turn.get("content"):
            pr.line(turn["content"])
        if "tool_call" in turn:
            pr.line("tool_call:")
            pr.line(_json(turn["tool_call"]))
        if "tool_result" in turn:
            pr.line("tool_result:")
            pr.line(_json(turn["tool_result"]))
        pr.line("-")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run one chat message and print every turn.")
    parser.add_argument("--config", required=True, help="Configuration script (.py, .yaml)")
    parser.add_argument("--message", required=True, help="User message to send")
    parser.add_argument("--max-rounds", type=int, default=None)
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-file", default=None, help="Optional file path to also save printed output")
    return parser


def main() -> int:
    args = _build_parser().parse_args()
    pr = _Printer(log_path=args.log_file)
    load_dotenv()
    setup_logging(args.log_level)

    try:
        loaded = load_script(args.config)
    except FeldsparError as err:
        pr.line(f"Configuration failed: {err}")
        pr.write_log()
        return 1

    adapter = resolve_adapter(loaded.config, loaded.settings, system_prompt=loaded.system_prompt)
    session = Session(
        adapter=adapter,
        registry=loaded.registry,
        max_rounds=args.max_rounds or loaded.max_rounds,
    )

    pr.line("=== RUN CONFIG ===")
    pr.line(f"config: {args.config}")
    pr.line(f"provider: {loaded.config!r}")
    pr.line(f"tools: {', '.join(loaded.registry.names()) or '(none)'}")
    pr.line(f"max_rounds: {session.max_rounds}")

    exit_code = 0
    try:
        outcome = session.send(args.message)
    except FeldsparError as err:
        pr.line(f"\nChat failed: {type(err).__name__}: {err}")
        exit_code = 1
    else:
        pr.line("\n=== OUTCOME ===")
        pr.line(f"status: {outcome.status}")
        pr.line(f"rounds: {outcome.rounds}")
        pr.line(f"tool_calls: {outcome.tool_calls}")
        pr.line(outcome.text)

    _print_transcript(pr, history_to_dicts(session.history_dump()))

    log_path = pr.write_log()
    if log_path is not None:
        pr.line(f"\nVerbose log saved: {log_path}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
