"""Redis connection for the rate limiter and the login lockout counters.

The rate limiter lets traffic through while no pool is initialised; login
needs it and fails through ``get_redis`` raising RuntimeError.
"""

import redis.asyncio as redis

_pool: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20) -> redis.Redis:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        await _pool.aclose()
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        decode_responses=True,
        max_connections=max_connections,
        socket_connect_timeout=2,
    )
    return _pool


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    pool, _pool = _pool, None
    if pool is not None:
        await pool.aclose()


def get_redis() -> redis.Redis:
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool
