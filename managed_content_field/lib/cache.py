"""
Test-friendly helpers for caching.

Bundle definitions and moderation workflows are read far more often than they
change, so we cache them with LRU caches. Because tests create and discard
bundles and swap workflow settings, we need to be able to track and clear
these caches across test runs.
"""
import functools

# Every function decorated with our lru_cache, so clear_lru_caches can reach it
_lru_cached_fns = []


def lru_cache(*args, **kwargs):
    """
    Thin wrapper over functools.lru_cache that lets us clear all caches later.
    """
    def decorator(fn):
        wrapped_fn = functools.lru_cache(*args, **kwargs)(fn)
        _lru_cached_fns.append(wrapped_fn)
        return wrapped_fn
    return decorator


def clear_lru_caches():
    """
    Clear all LRU caches that use our lru_cache decorator.

    Useful for tests, and whenever MANAGED_CONTENT settings are changed at
    runtime.
    """
    for fn in _lru_cached_fns:
        fn.cache_clear()
