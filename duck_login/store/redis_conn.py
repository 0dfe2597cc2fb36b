from functools import lru_cache

from redis import Redis
from duck_login.settings import settings


@lru_cache(maxsize=None)
def _client(url: str) -> Redis:
    return Redis.from_url(url, decode_responses=True)


def get_redis() -> Redis:
    """One pooled client per configured URL."""
    return _client(settings.REDIS_URL)
