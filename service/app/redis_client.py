from functools import lru_cache

from redis.asyncio import Redis

from app.config import get_settings

# Drop idle pooled connections before the server closes them
HEALTH_CHECK_INTERVAL = 30


@lru_cache
def get_redis() -> Redis:
    """Subscription store client, one pool per process."""
    settings = get_settings()
    return Redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        health_check_interval=HEALTH_CHECK_INTERVAL,
    )
