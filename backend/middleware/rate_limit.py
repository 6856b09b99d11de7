"""
In-memory rate limiting for deployment creation.

Deployments run a full npm install and build, so each client gets a
bounded number per window. Counts live in process memory.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import UTC, datetime, timedelta


class RateLimiter:
    """
    Sliding-window request counter per key (client address or account id).
    """

    def __init__(self):
        self._requests: dict[str, list[datetime]] = defaultdict(list)

    def check_rate_limit(self, key: str, max_requests: int, window_minutes: int = 60) -> bool:
        """
        Record a request for `key` if it is still under the limit.

        Returns True if the request is allowed, False if the limit is reached.
        """
        now = datetime.now(UTC)
        cutoff = now - timedelta(minutes=window_minutes)

        self._requests[key] = [ts for ts in self._requests[key] if ts > cutoff]
        if len(self._requests[key]) >= max_requests:
            return False

        self._requests[key].append(now)
        return True

    def cleanup_old_entries(self, max_age_hours: int = 2) -> None:
        """Forget keys with no requests in the last `max_age_hours`."""
        cutoff = datetime.now(UTC) - timedelta(hours=max_age_hours)
        for key in list(self._requests.keys()):
            self._requests[key] = [ts for ts in self._requests[key] if ts > cutoff]
            if not self._requests[key]:
                del self._requests[key]


# Global rate limiter instance
rate_limiter = RateLimiter()
