"""Orchestration loop that drives model and tool rounds until a final answer."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Sequence

from ..conversation.history import History, ToolCall, ToolResult, Turn
from ..errors import (
    NotFoundError,
    ProviderError,
    ProviderErrorKind,
    RoundCancelled,
    RoundLimitExceeded,
    SchemaError,
    SchemaErrorKind,
    ToolError,
)
from ..models.adapter import FinalText, ProviderAdapter, ToolCallRequest, ToolCalls
from ..tools.pipeline import invoke
from ..tools.registry import Registry

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 8
_CANCEL_POLL_SECONDS = 0.05


@dataclass
class LoopOutcome:
    """How one chat call ended."""

    text: str
    status: str  # "final" | "round_limit"
    rounds: int
    tool_calls: int
    error: RoundLimitExceeded | None = None

    @property
    def limit_exceeded(self) -> bool:
        return self.status == "round_limit"


class OrchestrationLoop:
    """Runs Requesting/Executing rounds for one user message against one history."""

    def __init__(
        self,
        adapter: ProviderAdapter,
        registry: Registry,
        history: History,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        max_workers: int = 4,
    ):
        if max_rounds < 1:
            raise ValueError(f"max_rounds must be at least 1, got {max_rounds}")
        self.adapter = adapter
        self.registry = registry
        self.history = history
        self.max_rounds = max_rounds
        self.max_workers = max(1, int(max_workers))

    def run(self, message: str, cancel: threading.Event | None = None) -> LoopOutcome:
        """Append the user message and loop until a final answer or the round limit.

        ProviderError propagates unchanged; the history then holds every turn
        recorded so far (at least the user turn) so the caller can retry.
        """
        self.history.append(Turn.user(message))

        rounds = 0
        tool_calls = 0
        while True:
            _check_cancel(cancel)
            response = self.adapter.complete(self.history.snapshot(), self.registry.export_schemas())

            if isinstance(response, FinalText):
                self.history.append(Turn.assistant(response.text))
                logger.debug("Final answer after %d round(s)", rounds)
                return LoopOutcome(text=response.text, status="final", rounds=rounds, tool_calls=tool_calls)

            if not isinstance(response, ToolCalls) or not response.requests:
                raise ProviderError(ProviderErrorKind.MALFORMED, "reply carried an empty tool call list")

            rounds += 1
            logger.info(
                "Round %d: model requested %s",
                rounds,
                ", ".join(r.name for r in response.requests),
            )
            turns = self._execute_round(response.requests, rounds, response.content, cancel)
            tool_calls += len(turns)

            if rounds >= self.max_rounds:
                limit = RoundLimitExceeded(self.max_rounds)
                logger.warning("%s", limit)
                text = str(limit)
                self.history.append(Turn.assistant(text))
                return LoopOutcome(
                    text=text,
                    status="round_limit",
                    rounds=rounds,
                    tool_calls=tool_calls,
                    error=limit,
                )

    def resolve_call(self, request: ToolCallRequest) -> ToolResult:
        """Look up and invoke one tool; contract failures become error results."""
        try:
            descriptor = self.registry.lookup(request.name)
        except NotFoundError as err:
            logger.info("Model requested unknown tool %s", request.name)
            return ToolResult(call_id=request.call_id, error=err.to_dict())

        if request.argument_error is not None:
            logger.info("Tool %s called with undecodable arguments", request.name)
            err = SchemaError(SchemaErrorKind.TYPE_MISMATCH, "(arguments)", request.argument_error)
            return ToolResult(call_id=request.call_id, output_field=descriptor.output_schema[0], error=err.to_dict())

        try:
            output = invoke(descriptor, request.arguments)
        except ToolError as err:
            logger.info("Tool %s failed: %s", request.name, err)
            return ToolResult(call_id=request.call_id, output_field=descriptor.output_schema[0], error=err.to_dict())
        return ToolResult(call_id=request.call_id, output=output, output_field=descriptor.output_schema[0])

    def _execute_round(
        self,
        requests: Sequence[ToolCallRequest],
        round_no: int,
        content: str | None,
        cancel: threading.Event | None,
    ) -> list[Turn]:
        if len(requests) == 1 or self.max_workers == 1:
            results: list[ToolResult | None] = []
            for request in requests:
                if cancel is not None and cancel.is_set():
                    results.extend([None] * (len(requests) - len(results)))
                    break
                results.append(self.resolve_call(request))
        else:
            results = self._dispatch_parallel(requests, cancel)

        turns = self._record(requests, results, round_no, content)
        if any(result is None for result in results):
            raise RoundCancelled(f"Round {round_no} cancelled with {len(turns)}/{len(requests)} tool calls recorded")
        return turns

    def _dispatch_parallel(
        self,
        requests: Sequence[ToolCallRequest],
        cancel: threading.Event | None,
    ) -> list[ToolResult | None]:
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(requests)))
        try:
            futures: list[Future[ToolResult]] = [executor.submit(self.resolve_call, r) for r in requests]
            pending = set(futures)
            while pending:
                if cancel is not None and cancel.is_set():
                    for future in pending:
                        future.cancel()
                    break
                _, pending = wait(pending, timeout=_CANCEL_POLL_SECONDS, return_when=FIRST_COMPLETED)
            return [f.result() if f.done() and not f.cancelled() else None for f in futures]
        finally:
            # Abandoned stages keep running in their worker thread; their results are discarded.
            executor.shutdown(wait=False, cancel_futures=True)

    def _record(
        self,
        requests: Sequence[ToolCallRequest],
        results: Sequence[ToolResult | None],
        round_no: int,
        content: str | None,
    ) -> list[Turn]:
        """Append one complete tool turn per finished call, in the order the model listed them."""
        turns: list[Turn] = []
        for request, result in zip(requests, results):
            if result is None:
                continue
            turn = Turn.tool(
                ToolCall(tool_name=request.name, call_id=request.call_id, input=request.arguments),
                result,
                round=round_no,
                content=(content or "") if not turns else "",
            )
            self.history.append(turn)
            turns.append(turn)
        return turns


def _check_cancel(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise RoundCancelled("Cancelled before the provider call")
