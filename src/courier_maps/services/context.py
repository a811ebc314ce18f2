"""Per-request call context: external-call budget, cancellation and retry markers.

Cancellation is checked before every outgoing call and once more before a
result is cached. A call already in flight is not aborted; it ends at its own
connect or read timeout and its answer is discarded.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .errors import CallBudgetExceeded, ResolutionCancelled

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CallContext:
    """Threaded through every external call made on behalf of one request.

    ``spend`` is invoked once per outgoing HTTP attempt, so the budget also
    bounds timeout retries. The retry markers let the route calculator run
    each fallback tier at most once per request. ``ceiling`` is a tighter,
    temporary limit used while resolving one endpoint of a route.
    """

    max_calls: int
    cancel_event: threading.Event = field(default_factory=threading.Event)
    calls: int = 0
    reexpansions: int = 0
    geocode_retries: int = 0
    ceiling: Optional[int] = None
    labels: list[str] = field(default_factory=list)

    @property
    def limit(self) -> int:
        if self.ceiling is None:
            return self.max_calls
        return min(self.max_calls, self.ceiling)

    def raise_if_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise ResolutionCancelled("Request was cancelled by the caller.")

    @contextmanager
    def sub_budget(self, max_calls: int) -> Iterator["CallContext"]:
        """Cap the calls made inside the block at ``max_calls`` more than already spent."""
        previous = self.ceiling
        self.ceiling = self.calls + max_calls
        try:
            yield self
        finally:
            self.ceiling = previous

    def spend(self, label: str) -> None:
        self.raise_if_cancelled()
        limit = self.limit
        if self.calls >= limit:
            logger.warning(f"External call budget exhausted ({limit}) before '{label}'")
            raise CallBudgetExceeded(f"External call budget of {limit} exhausted before '{label}'.")
        self.calls += 1
        self.labels.append(label)
