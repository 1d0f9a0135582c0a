"""Redis key/value, list and hash operations over a pool of clients."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import redis

from gategate.config import Config
from gategate.pool import ConnectionPool, PoolClosedError

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 5
CONNECT_TIMEOUT = 5.0

R = TypeVar("R")


def create_redis_pool(
    size: int, host: str, port: int, password: str
) -> ConnectionPool[Any]:
    """Open ``size`` authenticated Redis clients and pool them.

    A client whose authentication is rejected is dropped; a server that
    cannot be reached raises ConnectionError.
    """
    clients: list[Any] = []
    for _ in range(size):
        try:
            client = redis.Redis(
                host=host,
                port=port,
                password=password or None,
                decode_responses=True,
                single_connection_client=True,
                socket_connect_timeout=CONNECT_TIMEOUT,
            )
            client.ping()
        except redis.AuthenticationError:
            logger.warning("redis authentication failed for %s:%s", host, port)
            continue
        except redis.ConnectionError as exc:
            for opened in clients:
                opened.close()
            raise ConnectionError(
                f"Failed to connect to Redis server at {host}:{port}"
            ) from exc
        except redis.ResponseError as exc:
            logger.warning("redis authentication failed: %s", exc)
            client.close()
            continue
        logger.info("redis authentication succeeded for %s:%s", host, port)
        clients.append(client)
    return ConnectionPool(clients)


def _as_text(value: Any) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8", "surrogateescape")
    if isinstance(value, str):
        return value
    return None


def _parse_port(raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"invalid Redis port {raw!r}") from None


class RedisStore:
    """Runs single Redis commands, borrowing a client from a pool each time.

    Commands report failure through their return value: a closed pool or a
    Redis error yields False, None or '' as the method documents.
    """

    def __init__(self, pool: ConnectionPool[Any]) -> None:
        self._pool = pool

    @classmethod
    def from_config(cls, config: Config) -> RedisStore:
        """Build a store from the [Redis] Host, Port and Passwd settings."""
        section = config["Redis"]
        return cls(
            create_redis_pool(
                DEFAULT_POOL_SIZE,
                section["Host"],
                _parse_port(section["Port"]),
                section["Passwd"],
            )
        )

    def _run(self, command: str, op: Callable[[Any], R], default: R) -> R:
        try:
            with self._pool.connection() as client:
                return op(client)
        except PoolClosedError:
            logger.warning("redis pool closed; command [%s] not run", command)
        except redis.RedisError as exc:
            logger.warning("command [%s] failed: %s", command, exc)
        return default

    def get(self, key: str) -> str | None:
        """Return the string stored at ``key``, or None."""
        return self._run(f"GET {key}", lambda c: _as_text(c.get(key)), None)

    def set(self, key: str, value: str) -> bool:
        """Store ``value`` at ``key``; True when the server replied OK."""
        return self._run(f"SET {key}", lambda c: c.set(key, value) is True, False)

    def _push(self, command: str, key: str, value: str | bytes) -> bool:
        def op(client: Any) -> bool:
            length = getattr(client, command.lower())(key, value)
            return isinstance(length, int) and length > 0

        return self._run(f"{command} {key}", op, False)

    def lpush(self, key: str, value: str | bytes) -> bool:
        """Prepend ``value`` to the list at ``key``."""
        return self._push("LPUSH", key, value)

    def rpush(self, key: str, value: str | bytes) -> bool:
        """Append ``value`` to the list at ``key``."""
        return self._push("RPUSH", key, value)

    def lpop(self, key: str) -> str | None:
        """Remove and return the first element of the list, or None."""
        return self._run(f"LPOP {key}", lambda c: _as_text(c.lpop(key)), None)

    def rpop(self, key: str) -> str | None:
        """Remove and return the last element of the list, or None."""
        return self._run(f"RPOP {key}", lambda c: _as_text(c.rpop(key)), None)

    def hset(self, key: str, field: str, value: str | bytes) -> bool:
        """Set one hash field; True whenever the server accepted it."""
        return self._run(
            f"HSET {key} {field}",
            lambda c: isinstance(c.hset(key, field, value), int),
            False,
        )

    def hget(self, key: str, field: str) -> str:
        """Return one hash field, or '' when it is missing."""
        return self._run(
            f"HGET {key} {field}",
            lambda c: _as_text(c.hget(key, field)) or "",
            "",
        )

    def hdel(self, key: str, field: str) -> bool:
        """Delete one hash field; True only if a field was removed."""

        def op(client: Any) -> bool:
            removed = client.hdel(key, field)
            return isinstance(removed, int) and removed > 0

        return self._run(f"HDEL {key} {field}", op, False)

    def delete(self, key: str) -> bool:
        """Delete ``key``; True whenever the command ran, even for no key."""
        return self._run(
            f"DEL {key}", lambda c: isinstance(c.delete(key), int), False
        )

    def exists(self, key: str) -> bool:
        """Tell whether ``key`` is present."""

        def op(client: Any) -> bool:
            count = client.exists(key)
            return isinstance(count, int) and count > 0

        return self._run(f"EXISTS {key}", op, False)

    def close(self) -> None:
        """Close the pool; later commands fail instead of blocking."""
        self._pool.close()