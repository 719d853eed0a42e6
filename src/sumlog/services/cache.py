"""CacheAsideStore - Redis-backed cache of computed sums.

Entries map a canonical key built from the two operands to their sum.
They never expire and are never invalidated; writing the same key again
replaces the value (which, for a pure sum, is the same value).

Cache Key Format:
    {num1}:{num2} - each operand canonicalized by canonical_number()

Unlike a best-effort cache, failures are not swallowed here: a broken
connection or a timeout raises CacheUnavailableError and the caller's
request fails.
"""

import asyncio

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from sumlog.core.exceptions import CacheUnavailableError
from sumlog.core.resolver import ConnectionConfig

logger = structlog.get_logger(__name__)

KEY_SEPARATOR = ":"

# Largest magnitude below which every integral double is exactly an integer
_EXACT_INT_LIMIT = 2**53

CACHE_ERRORS = (RedisError, OSError, TimeoutError)


def canonical_number(value: float) -> str:
    """Render a finite number as a stable string.

    - negative zero becomes "0"
    - integral values below 2**53 in magnitude render without a fraction
      ("1", "-7"), so 1 and 1.0 share a representation
    - everything else uses the shortest round-trip repr ("0.1", "1e+300")

    Args:
        value: A finite number

    Returns:
        Canonical string form
    """
    number = float(value)
    if number == 0:
        return "0"
    if number.is_integer() and abs(number) < _EXACT_INT_LIMIT:
        return str(int(number))
    return repr(number)


def cache_key(num1: float, num2: float) -> str:
    """Build the cache key for an operand pair.

    Returns:
        Cache key (e.g., "2:3", "0.1:-2.5")
    """
    return f"{canonical_number(num1)}{KEY_SEPARATOR}{canonical_number(num2)}"


class CacheAsideStore:
    """Lookup and write-through of computed sums.

    Usage with FastAPI:
        ```python
        store = CacheAsideStore(redis, timeout=2.0)
        key = cache_key(2.0, 3.0)
        if (value := await store.lookup(key)) is None:
            value = 5.0
            await store.store(key, value)
        ```
    """

    def __init__(self, redis: Redis, *, timeout: float = 2.0) -> None:
        """Initialize the store.

        Args:
            redis: Async Redis client (decode_responses=True)
            timeout: Upper bound in seconds for each cache call
        """
        self.redis = redis
        self.timeout = timeout

    async def lookup(self, key: str) -> float | None:
        """Get the cached sum for ``key``.

        Returns:
            The cached value, or None on a miss

        Raises:
            CacheUnavailableError: If the cache cannot be reached, times out
                or holds a non-numeric value
        """
        try:
            async with asyncio.timeout(self.timeout):
                raw = await self.redis.get(key)
        except CACHE_ERRORS as e:
            logger.error("cache_lookup_failed", cache_key=key, error=str(e))
            raise CacheUnavailableError(operation="get", key=key, error=str(e)) from e

        if raw is None:
            logger.debug("cache_miss", cache_key=key)
            return None

        try:
            value = float(raw)
        except (TypeError, ValueError) as e:
            logger.error("cache_value_corrupt", cache_key=key, raw=repr(raw))
            raise CacheUnavailableError(
                operation="get", key=key, error="non-numeric cached value"
            ) from e

        logger.debug("cache_hit", cache_key=key)
        return value

    async def store(self, key: str, value: float) -> None:
        """Store ``value`` under ``key`` with no expiry.

        Raises:
            CacheUnavailableError: If the cache cannot be reached or times out
        """
        try:
            async with asyncio.timeout(self.timeout):
                await self.redis.set(key, repr(float(value)))
        except CACHE_ERRORS as e:
            logger.error("cache_store_failed", cache_key=key, error=str(e))
            raise CacheUnavailableError(operation="set", key=key, error=str(e)) from e

        logger.debug("cache_set", cache_key=key)

    async def ping(self) -> bool:
        """Check if the cache answers."""
        try:
            async with asyncio.timeout(self.timeout):
                return bool(await self.redis.ping())
        except CACHE_ERRORS as e:
            logger.error("Cache health check failed", error=str(e))
            return False


def create_redis_client(config: ConnectionConfig, *, timeout: float) -> Redis:
    """Create the process-wide Redis client.

    The client pools connections internally and is safe to share between
    concurrent requests. No connection is opened until the first command.
    """
    return Redis(
        host=config.redis_host,
        port=config.redis_port,
        password=config.redis_password,
        decode_responses=True,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )
