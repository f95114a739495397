"""Caller-side retry policy for transient provider errors.

The orchestration loop never retries; front-ends opt in by wrapping their
adapter with ``RetryingAdapter``.
"""

from __future__ import annotations

import logging
import time
from typing import Sequence

from ..conversation.history import Turn
from ..errors import ProviderError
from ..tools.schema import ToolSchema
from .adapter import ProviderAdapter, Response

logger = logging.getLogger(__name__)


class RetryingAdapter:
    """Wraps an adapter and retries rate-limited, timed-out or unreachable calls."""

    def __init__(
        self,
        adapter: ProviderAdapter,
        max_retries: int = 2,
        retry_backoff_seconds: float = 1.0,
        retry_backoff_multiplier: float = 2.0,
    ):
        self.adapter = adapter
        self.max_retries = max(0, int(max_retries))
        self.retry_backoff_seconds = max(0.0, float(retry_backoff_seconds))
        self.retry_backoff_multiplier = max(1.0, float(retry_backoff_multiplier))

    def complete(self, history: Sequence[Turn], tools: Sequence[ToolSchema]) -> Response:
        for attempt in range(self.max_retries + 1):
            try:
                return self.adapter.complete(history, tools)
            except ProviderError as err:
                should_retry = attempt < self.max_retries and err.retryable
                if not should_retry:
                    raise
                backoff = self.retry_backoff_seconds * (self.retry_backoff_multiplier ** attempt)
                logger.warning(
                    "Provider error (%s), retrying in %.1fs (attempt %d/%d)",
                    err.kind.value,
                    backoff,
                    attempt + 1,
                    self.max_retries,
                )
                if backoff > 0:
                    time.sleep(backoff)
        raise RuntimeError("unreachable")  # pragma: no cover
