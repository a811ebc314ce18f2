"""Short-link expansion with a bounded number of redirect hops."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..context import CallContext
from ..errors import ProviderUnavailableError
from .classifier import is_short_link
from .extractor import extract
from .models import ExpandedResult

MAX_HOP_BUDGET = 2

logger = logging.getLogger(__name__)

FAILED = ExpandedResult(final_url=None)


class RedirectFollower(Protocol):
    def follow_redirect(self, url: str, context: CallContext) -> Optional[str]: ...


class LinkExpander:
    def __init__(self, client: RedirectFollower, hop_budget: int = MAX_HOP_BUDGET) -> None:
        self.client = client
        self.hop_budget = hop_budget

    def expand(self, url: str, context: CallContext, hop_budget: int | None = None) -> ExpandedResult:
        """Follow up to ``hop_budget`` redirects, extracting coordinates after every hop.

        Hopping stops as soon as the link leaves the short-link host.

        Timeouts, non-redirect answers and links that never leave the
        short-link host all yield a failed result. Cancellation, the call
        budget and a refused or unreachable connection propagate.
        """
        budget = hop_budget if hop_budget is not None else self.hop_budget
        if budget < 1:
            raise ValueError("Hop budget must be at least 1.")
        budget = min(budget, MAX_HOP_BUDGET)

        current = url
        hops = 0
        while hops < budget:
            try:
                target = self.client.follow_redirect(current, context)
            except ProviderUnavailableError as exc:
                if not exc.timed_out:
                    raise
                logger.warning(f"Expansion of {url} failed at hop {hops + 1}: {exc}")
                return FAILED
            if target is None:
                if hops == 0:
                    logger.warning(f"Expansion of {url} failed: first response was not a redirect")
                    return FAILED
                break
            hops += 1
            if target == current:
                logger.warning(f"Expansion of {url} loops on itself")
                return FAILED
            current = target
            match = extract(current)
            if match is not None:
                coordinates, rank = match
                logger.info(f"Expanded {url} in {hops} hop(s) to coordinates {coordinates.as_query()}")
                return ExpandedResult(final_url=current, coordinates=coordinates, precision_rank=rank, hops=hops)
            if not is_short_link(current):
                break

        if is_short_link(current):
            logger.warning(f"Expansion of {url} never left the short-link host after {hops} hop(s)")
            return FAILED
        logger.info(f"Expanded {url} in {hops} hop(s) to {current} (no coordinates)")
        return ExpandedResult(final_url=current, hops=hops)
