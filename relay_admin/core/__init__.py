"""Core utilities for the relay admin control plane."""

from .pool import RedisPool, redis_pool, redis_session

__all__ = ["RedisPool", "redis_pool", "redis_session"]
