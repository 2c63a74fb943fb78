"""Client-side tracking of the server's rate limit."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Mapping

import httpx

from esa.exceptions import TOO_MANY_REQUESTS, RateLimitExceededError
from esa.models import Rate
from esa.response import Response

logger = logging.getLogger(__name__)


class RateLimitTracker:
    """Thread-safe cell holding the most recently observed :class:`Rate`.

    Values are best-effort: concurrent calls racing at the reset boundary
    may let a few requests through or block a few needlessly. The server
    remains the authority.
    """

    def __init__(self) -> None:
        self._rate = Rate()
        self._lock = threading.Lock()

    def observe(self, headers: Mapping[str, str]) -> Rate | None:
        """Record rate-limit headers from a response.

        Returns the parsed :class:`Rate`, or *None* (leaving the tracked
        value untouched) when the response carries no rate-limit headers.
        """
        rate = Rate.from_headers(headers)
        if rate is None:
            return None
        with self._lock:
            self._rate = rate
        return rate

    def snapshot(self) -> Rate:
        with self._lock:
            return self._rate

    def precheck(
        self,
        request: httpx.Request,
        now: datetime | None = None,
    ) -> RateLimitExceededError | None:
        """Predict a rate-limit rejection without touching the network.

        Returns a synthesized error when the limit is exhausted and the
        reset time is still in the future, otherwise *None*.
        """
        rate = self.snapshot()
        if rate.remaining != 0 or rate.reset is None:
            return None
        now = now or datetime.now(timezone.utc)
        if now >= rate.reset:
            return None

        logger.warning(
            "Rate limit of %d exhausted until %s; skipping %s request",
            rate.limit, rate.reset.isoformat(), request.method,
        )
        fake = httpx.Response(TOO_MANY_REQUESTS, request=request)
        return RateLimitExceededError(
            rate,
            f"API rate limit of {rate.limit} still exceeded until "
            f"{rate.reset.isoformat()}, not making remote request.",
            method=request.method,
            url=request.url,
            response=Response(fake, rate),
        )

    def clear(self) -> None:
        """Forget all tracked state (useful in tests)."""
        with self._lock:
            self._rate = Rate()
