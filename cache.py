from functools import wraps
from fastapi.encoders import jsonable_encoder
from redis import Redis
import json
import logging

from core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

CACHE_NAMESPACE = "cache"

redis_client: Redis | None = (
    Redis.from_url(settings.REDIS_URL, decode_responses=True)
    if settings.REDIS_URL else None
)

def build_cache_key(name: str, params: dict) -> str:
    parts = [f"{key}={params[key]}" for key in sorted(params)]
    return f"{CACHE_NAMESPACE}:{name}:{':'.join(parts)}"

def cache_response(expire_time=300, key_params: tuple[str, ...] = ()):
    """Cache a route's JSON result in Redis.

    Only the keyword arguments named in ``key_params`` make up the key, so
    injected dependencies such as the database session are ignored.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            if redis_client is None:
                return await func(*args, **kwargs)

            cache_key = build_cache_key(
                func.__name__, {name: kwargs.get(name) for name in key_params}
            )
            try:
                cached_result = redis_client.get(cache_key)
                if cached_result:
                    return json.loads(cached_result)
            except Exception as e:
                logger.error(f"Cache error in {func.__name__}: {str(e)}")
                return await func(*args, **kwargs)

            result = await func(*args, **kwargs)
            try:
                redis_client.setex(
                    cache_key,
                    expire_time,
                    json.dumps(jsonable_encoder(result))
                )
            except Exception as e:
                logger.error(f"Cache write error in {func.__name__}: {str(e)}")
            return result
        return wrapper
    return decorator

def clear_cache() -> int:
    """Delete every cached response, returns the number of removed keys"""
    if redis_client is None:
        raise RuntimeError("Redis is not configured")
    removed = 0
    for key in redis_client.scan_iter(match=f"{CACHE_NAMESPACE}:*"):
        removed += redis_client.delete(key)
    return removed
