"""
Shared key-value store.

Holds the bearer-token sessions. With REDIS_URL set, Flask-Caching talks to
Redis so every gunicorn worker sees the same sessions; otherwise each process
gets its own SimpleCache and sessions do not survive a restart.

    cache.set(cache_key('session', token), data, timeout=ttl)
    cache.get(cache_key('session', token))
"""
import logging
import redis
from flask_caching import Cache

logger = logging.getLogger(__name__)

cache = Cache()

KEY_PREFIX = 'lunara:'


def _redis_reachable(url: str) -> bool:
    try:
        redis.from_url(url, socket_connect_timeout=2).ping()
        return True
    except redis.RedisError as e:
        logger.warning('Redis at %s unreachable (%s); sessions fall back to process memory',
                       url.split('@')[-1], e)
        return False


def init_cache(app) -> str:
    """
    Bind the cache to the app.

    Returns:
        The Flask-Caching backend in use ('RedisCache' or 'SimpleCache')
    """
    redis_url = app.config.get('REDIS_URL')

    if redis_url and not app.config.get('TESTING') and _redis_reachable(redis_url):
        app.config.update(
            CACHE_TYPE='RedisCache',
            CACHE_REDIS_URL=redis_url,
            CACHE_KEY_PREFIX=KEY_PREFIX,
        )
    else:
        app.config['CACHE_TYPE'] = 'SimpleCache'

    cache.init_app(app)
    logger.info('Session store: %s', app.config['CACHE_TYPE'])
    return app.config['CACHE_TYPE']


def cache_key(*parts) -> str:
    """'session', 'abc' -> 'session:abc'"""
    return ':'.join(str(p) for p in parts)
