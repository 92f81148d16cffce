"""
Cache utilities for PlayPredix
Caches slow-changing reference data (competition and team lists).
Leaderboards are never cached; they are recomputed on every read.
"""

import functools

from flask import current_app, request

from playpredix import cache


def make_cache_key(*args, **kwargs):
    """Generate a cache key from request path and arguments"""
    path = request.path
    args_str = "_".join(str(arg) for arg in args)
    kwargs_str = "_".join(f"{k}_{v}" for k, v in sorted(kwargs.items()))
    return f"{path}_{args_str}_{kwargs_str}".replace("/", "_")


def cached_route(timeout=300, key_prefix="view"):
    """
    Decorator for caching route responses

    Args:
        timeout: Cache timeout in seconds (default 5 minutes)
        key_prefix: Prefix for cache key, also used for invalidation
    """

    def decorator(f):
        @functools.wraps(f)
        def wrapped(*args, **kwargs):
            cache_key = f"{key_prefix}_{make_cache_key(*args, **kwargs)}"

            result = cache.get(cache_key)
            if result is not None:
                current_app.logger.debug(f"Cache hit for key: {cache_key}")
                return result

            result = f(*args, **kwargs)
            cache.set(cache_key, result, timeout=timeout)
            current_app.logger.debug(f"Cache set for key: {cache_key}")

            return result

        return wrapped

    return decorator


def invalidate_model_cache(model_name):
    """
    Invalidate all cache entries for a specific model

    Args:
        model_name: Name of the model to invalidate
    """
    # SimpleCache cannot delete by pattern, so the whole cache goes.
    # Only reference data lives in it.
    if cache.clear():
        current_app.logger.info(f"Cache cleared after {model_name} change")
    else:
        current_app.logger.warning(f"Cache backend refused to clear after {model_name} change")
