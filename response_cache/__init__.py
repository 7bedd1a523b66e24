"""
Response Cache Core Library.

This package provides the HTTP response-caching interceptor and the
store clients it runs on, together with configuration and logging.

Usage:
    # Store
    from response_cache.cache import create_store, RedisStore, InMemoryStore

    # Interceptor
    from response_cache.middleware import CacheInterceptor, cache

    # Config
    from response_cache.config import get_settings, Settings

    # Logging
    from response_cache.logging import get_logger, configure_logging
"""

__version__ = "1.0.0"

# Users should import directly from submodules:
#   from response_cache.cache import create_store
#   from response_cache.config import get_settings
#   from response_cache.logging import get_logger
