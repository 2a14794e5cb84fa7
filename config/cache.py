# config/cache.py
from typing import Optional
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError
from config.settings import settings
import logging

logger = logging.getLogger(__name__)

# Shows up in CLIENT LIST next to the limiter's connections
CLIENT_NAME = "nomnomchow-api"

_client: Optional[Redis] = None


async def get_redis() -> Redis:
    global _client
    if _client is None:
        _client = from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=False,  # meal documents are decoded by pydantic
            socket_keepalive=True,
            health_check_interval=30,
            client_name=CLIENT_NAME,
        )
        # Fail fast on startup if Redis is unreachable.
        await _client.ping()
        logger.info("redis.connected client=%s", CLIENT_NAME)
    return _client


async def redis_healthy() -> bool:
    """
    Ping the shared client for /healthz. A connection error counts as down.
    """
    try:
        r = await get_redis()
        return bool(await r.ping())
    except (RedisError, OSError) as e:
        logger.warning("redis.ping.failed err=%s", type(e).__name__)
        return False


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("redis.closed client=%s", CLIENT_NAME)
