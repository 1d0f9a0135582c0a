"""Asyncio HTTP gateway server with path routing, INI configuration, a connection pool and a Redis store."""

__version__ = "0.1.0"
__all__ = ["config", "pool", "urlcodec", "redis_store", "logic", "http_connection", "server"]