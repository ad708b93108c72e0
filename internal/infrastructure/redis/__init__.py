"""
Redis infrastructure package.
"""
from .cache import RedisCache, CustomerCacheService

__all__ = ["RedisCache", "CustomerCacheService"]
