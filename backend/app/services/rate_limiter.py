"""Rate limiting for visitor-facing endpoints using Redis."""
import redis
import time
from typing import Tuple


class RateLimiter:
    """Redis-based fixed window rate limiter keyed by client."""

    def __init__(self, redis_client: redis.Redis, limit: int = 600, window: int = 60):
        self.redis = redis_client
        self.limit = limit
        self.window = window

    def check_rate_limit(self, key: str) -> Tuple[bool, int]:
        """
        Count a request against the client's current window.

        Uses fixed window algorithm:
        - Window resets every `window` seconds
        - Allows up to `limit` requests per window

        Args:
            key: Client identifier (e.g., client IP)

        Returns:
            Tuple of (allowed: bool, current_count: int)

        Example:
            >>> limiter = RateLimiter(redis_client, limit=600, window=60)
            >>> allowed, count = limiter.check_rate_limit("203.0.113.7")
            >>> if not allowed:
            >>>     raise HTTPException(429, "Rate limit exceeded")
        """
        window_key = self._get_window_key(key)

        # Increment counter atomically
        pipe = self.redis.pipeline()
        pipe.incr(window_key)
        pipe.expire(window_key, self.window)
        results = pipe.execute()

        new_count = int(results[0])
        return new_count <= self.limit, new_count

    def get_remaining(self, key: str) -> int:
        """Get remaining requests in current window."""
        current = self.redis.get(self._get_window_key(key))
        used = int(current) if current else 0
        return max(0, self.limit - used)

    def _get_window_key(self, key: str) -> str:
        """Generate Redis key for current time window."""
        window_id = int(time.time()) // self.window
        return f"visitor_rate:{key}:{window_id}"
